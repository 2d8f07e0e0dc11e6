"""
Cell states for the small progress graphs.

- Daily time meter: a row of cells filled as today's study time grows
- Chapter map: one cell per chapter of a textbook
"""

import math


FINISHED = "finished"
INCOMPLETE = "incomplete"
EMPTY = ""


def meter_states(value: float, minimum: float, maximum: float, size: int = 5) -> list[str]:
    """
    Fill states for a time meter of `size` cells.

    Cells below the value are finished; the next cell is shown as
    incomplete once the value is at least halfway into it.
    """
    if size < 1:
        raise ValueError(f"Meter needs at least one cell: {size}")
    if maximum <= minimum:
        raise ValueError(f"Maximum {maximum} must be greater than minimum {minimum}")

    normalized = (value - minimum) / ((maximum - minimum) / size)
    lower = math.floor(normalized)
    upper = math.floor(normalized + 0.5)

    states = []
    for i in range(size):
        if lower > i:
            states.append(FINISHED)
        elif upper > i:
            states.append(INCOMPLETE)
        else:
            states.append(EMPTY)
    return states


def chapter_state(value: float) -> str:
    if value >= 1:
        return FINISHED
    if value > 0:
        return INCOMPLETE
    return EMPTY
