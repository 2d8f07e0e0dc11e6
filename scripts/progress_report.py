#!/usr/bin/env python3
"""
progress_report.py - Print course progress and study history.

Shows per-textbook completion for every installed course and a text
rendering of the trailing study-time calendar.

Usage:
  python scripts/progress_report.py
  python scripts/progress_report.py --weeks 12 --metric chapters
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from studytrack.config import DEFAULT_COURSES_DIR, DEFAULT_PROGRESS_DB, configure_logging
from studytrack.graphing import NO_DATA, WEEK_DAYS, aggregate_calendar, bucket_levels, grid_position
from studytrack.storage import CourseLibrary, ProgressDatabase
from studytrack.tracking import calculate_course_progress, is_course_complete, sort_courses

configure_logging()
logger = logging.getLogger(__name__)

LEVEL_GLYPHS = " .:-=#"


def print_courses(library: CourseLibrary, database: ProgressDatabase, today: date):
    """Print completion per course and textbook."""
    active_ids = set(database.get_active_courses())
    courses = []
    for course in library.get_courses():
        completion, _ = database.get_course_completion(course.id)
        courses.append((course, calculate_course_progress(course, completion, today)))

    if not courses:
        print("No courses installed.")
        return

    for course, progress in sort_courses(courses, active_ids):
        marker = "*" if course.id in active_ids else " "
        done = " (complete)" if is_course_complete(progress) else ""
        print(f"{marker} {course.title}{done}")
        for book, book_progress in zip(course.books, progress.completion):
            if not book_progress.completable:
                print(f"    {book.label}: not tracked")
                continue
            percent = round(book_progress.overall_completion * 100, 1)
            print(f"    {book.label}: {percent}%")
        print(f"    today: {progress.time_spent_today // 60} min")


def print_calendar(values: dict, weeks: int, maximum: float, levels: int, today: date):
    """Print a heatmap as text, one row per weekday, oldest week first."""
    cells = bucket_levels(aggregate_calendar(values, weeks, today), 0, maximum, levels)

    grid = [[" "] * weeks for _ in WEEK_DAYS]
    for offset, level in enumerate(cells):
        row, weeks_ago = grid_position(offset, today)
        glyph = "?" if level is NO_DATA else LEVEL_GLYPHS[min(level, len(LEVEL_GLYPHS) - 1)]
        grid[row][weeks - 1 - weeks_ago] = glyph

    for name, row in zip(WEEK_DAYS, grid):
        print(f"{name} |{''.join(row)}|")


def main():
    parser = argparse.ArgumentParser(description="Print StudyTrack progress")
    parser.add_argument(
        "--courses-dir",
        type=Path,
        default=DEFAULT_COURSES_DIR,
        help=f"Course library directory (default: {DEFAULT_COURSES_DIR})"
    )
    parser.add_argument(
        "--db",
        type=Path,
        default=DEFAULT_PROGRESS_DB,
        help=f"Progress database (default: {DEFAULT_PROGRESS_DB})"
    )
    parser.add_argument(
        "--weeks",
        type=int,
        default=None,
        help="Weeks of history to show (default: from settings)"
    )
    parser.add_argument(
        "--metric",
        choices=["time", "chapters"],
        default="time",
        help="History metric to show"
    )

    args = parser.parse_args()

    database = ProgressDatabase(args.db)
    library = CourseLibrary(args.courses_dir)
    settings = database.get_settings()
    today = date.today()

    print_courses(library, database, today)
    print()

    weeks = args.weeks or settings.weeks_displayed
    overall = database.get_overall_progress()
    if args.metric == "time":
        print(f"Time studied per day, last {weeks} weeks")
        print_calendar(overall.time_spent, weeks, settings.maximum_daily_time * 60, 5, today)
    else:
        print(f"Chapters completed per day, last {weeks} weeks")
        print_calendar(overall.chapters_completed, weeks, settings.maximum_daily_chapters, 3, today)


if __name__ == "__main__":
    main()
