"""
Progress graph renderer - HTML for heatmaps, chapter maps and time meters.

Provides:
- Long-term heatmaps (time studied / chapters completed per day)
- Per-textbook chapter maps
- Per-course daily time meter
"""

import html
from datetime import date
from typing import Optional, Sequence

from studytrack.graphing import (
    NO_DATA,
    WEEK_DAYS,
    aggregate_calendar,
    bucket_levels,
    chapter_state,
    grid_position,
    meter_states,
    unelapsed_days,
)
from studytrack.schemas import OverallProgress, Settings, TextbookProgress


TIME_LEVELS = 5
CHAPTER_LEVELS = 3
CHAPTER_MAP_WIDTH = 10

# Only every other weekday is labelled
ROW_LABELS = [name if index % 2 == 0 else "" for index, name in enumerate(WEEK_DAYS)]


def get_progress_css() -> str:
    """Get CSS styles for progress graphs."""
    return """
    <style>
    .progress-map {
        border-collapse: separate;
        border-spacing: 3px;
        margin: 0.5em 0;
    }
    .progress-map td {
        width: 12px;
        height: 12px;
        border-radius: 2px;
        background: #ebedf0;
        padding: 0;
    }
    .progress-map td.pad,
    .progress-map td.blank {
        background: transparent;
    }
    .progress-map td.no-data {
        background: transparent;
        border: 1px dashed #ccc;
    }
    .progress-map th {
        font-size: 0.7em;
        font-weight: normal;
        color: #888;
        padding: 0 0.3em;
    }
    .progress-map caption {
        text-align: left;
        font-weight: 600;
        color: #333;
        padding-bottom: 0.3em;
    }
    .progress-map td.in-progress {
        outline: 1px solid #555;
    }
    .time-map td.finished { background: #1976D2; }
    .time-map td.incomplete { background: #90CAF9; }
    .time-map td.level-1 { background: #BBDEFB; }
    .time-map td.level-2 { background: #90CAF9; }
    .time-map td.level-3 { background: #42A5F5; }
    .time-map td.level-4 { background: #1E88E5; }
    .time-map td.level-5 { background: #1565C0; }
    .chapter-map td.finished { background: #388E3C; }
    .chapter-map td.incomplete { background: #A5D6A7; }
    .chapter-map td.level-1 { background: #A5D6A7; }
    .chapter-map td.level-2 { background: #66BB6A; }
    .chapter-map td.level-3 { background: #2E7D32; }
    </style>
    """


def _cell(css_class: str) -> str:
    if css_class:
        return f'<td class="{css_class}"></td>'
    return '<td></td>'


def render_heatmap(
    values: dict,
    kind: str,
    weeks: int,
    maximum: float,
    today: date,
    title: Optional[str] = None,
) -> str:
    """
    Render a long-term heatmap for one metric.

    Args:
        values: Sparse YYYY-MM-DD -> value record
        kind: "time" or "chapter"
        weeks: Number of week columns
        maximum: Value shown at the highest level
        today: Current local day
        title: Optional caption

    Returns:
        HTML string with the grid and a color key
    """
    if kind not in ("time", "chapter"):
        raise ValueError(f"Unknown heatmap kind: {kind}")
    levels = TIME_LEVELS if kind == "time" else CHAPTER_LEVELS

    cells = aggregate_calendar(values, weeks, today)
    cell_levels = bucket_levels(cells, 0, maximum, levels)
    today_offset = unelapsed_days(today)

    grid = [["blank"] * weeks for _ in WEEK_DAYS]
    for offset, level in enumerate(cell_levels):
        row, weeks_ago = grid_position(offset, today)
        column = weeks - 1 - weeks_ago
        css_class = "no-data" if level is NO_DATA else f"level-{level}"
        if offset == today_offset:
            css_class += " in-progress"
        grid[row][column] = css_class

    parts = [f'<table class="progress-map {kind}-map">']
    if title:
        parts.append(f'<caption>{html.escape(title)}</caption>')
    parts.append('<tbody>')
    for row, label in enumerate(ROW_LABELS):
        parts.append(f'<tr><th>{label}</th>')
        parts.extend(_cell(css_class) for css_class in grid[row])
        parts.append('</tr>')
    parts.append('</tbody>')

    # Week footer, counted backwards from the current week
    parts.append('<tfoot><tr><th>Week</th>')
    for weeks_ago in range(weeks - 1, -1, -1):
        label = str(weeks_ago) if weeks_ago % 4 == 0 and weeks_ago != 0 else ""
        parts.append(f'<th>{label}</th>')
    parts.append('</tr></tfoot></table>')

    parts.append(render_heatmap_key(kind, levels))
    return ''.join(parts)


def render_heatmap_key(kind: str, levels: int) -> str:
    """Render the Less ... More color key."""
    parts = [f'<table class="progress-map {kind}-map"><tbody><tr><th>Less</th>']
    parts.append(_cell("level-0"))
    parts.extend(_cell(f"level-{level}") for level in range(1, levels + 1))
    parts.append('<th>More</th></tr></tbody></table>')
    return ''.join(parts)


def render_overall_heatmaps(overall: OverallProgress, settings: Settings, today: date) -> tuple[str, str]:
    """Render the time-studied and chapters-completed heatmaps."""
    time_map = render_heatmap(
        overall.time_spent,
        "time",
        settings.weeks_displayed,
        settings.maximum_daily_time * 60,
        today,
        title="Time Spent Studying Per Day",
    )
    chapter_map = render_heatmap(
        overall.chapters_completed,
        "chapter",
        settings.weeks_displayed,
        settings.maximum_daily_chapters,
        today,
        title="Chapters Completed Per Day",
    )
    return time_map, chapter_map


def render_chapter_map(
    progress: TextbookProgress,
    label: Optional[str] = None,
    width: int = CHAPTER_MAP_WIDTH,
) -> str:
    """
    Render one cell per chapter of a textbook, wrapped at `width`.

    Args:
        progress: TextbookProgress for the book
        label: Optional caption (book label)
        width: Cells per row

    Returns:
        HTML string for the chapter map
    """
    values: Sequence[float] = progress.chapter_progress
    parts = ['<table class="progress-map chapter-map">']
    if label:
        parts.append(f'<caption>{html.escape(label)}</caption>')
    parts.append('<tbody>')
    for start in range(0, len(values), width):
        row = values[start:start + width]
        parts.append('<tr>')
        parts.extend(_cell(chapter_state(value)) for value in row)
        if len(row) < width:
            parts.append(_cell("pad"))
        parts.append('</tr>')
    parts.append('</tbody></table>')
    return ''.join(parts)


def render_time_meter(seconds: float, maximum_minutes: int, size: int = 5) -> str:
    """Render today's study time against the per-course daily goal."""
    states = meter_states(seconds, 0, maximum_minutes * 60, size)
    parts = ['<table class="progress-map time-map"><tbody><tr><th>Today</th>']
    parts.extend(_cell(state) for state in states)
    parts.append('</tr></tbody></table>')
    return ''.join(parts)
