"""
Course-level progress summaries.

Derives display data for whole courses from their completion records:
- Per-textbook and per-chapter completion
- Course complete / started / completable predicates
- Course ordering for listings
"""

from datetime import date
from typing import Optional

from studytrack.schemas import Course, CourseCompletionData, CourseProgress

from .clock import format_day
from .completion import CompletionModel


def build_models(course: Course, completion: CourseCompletionData) -> list[CompletionModel]:
    """Build a CompletionModel for every textbook in a course."""
    models = []
    for index, book in enumerate(course.books):
        record = completion.books.get(index)
        sections = record.completed_sections if record else set()
        models.append(CompletionModel(book, sections, textbook_index=index))
    return models


def calculate_course_progress(
    course: Course,
    completion: CourseCompletionData,
    today: date,
) -> CourseProgress:
    """
    Calculate displayed progress through a course.

    Args:
        course: Course metadata
        completion: Stored completion record
        today: Day used for time_spent_today

    Returns:
        CourseProgress with one entry per textbook, in course order
    """
    return CourseProgress(
        completion=[model.to_progress() for model in build_models(course, completion)],
        time_spent_today=completion.time_spent.get(format_day(today), 0),
    )


def count_completed_chapters(course: Course, completion: CourseCompletionData) -> float:
    """Total number of complete chapters across all textbooks."""
    total = 0.0
    for model in build_models(course, completion):
        total += sum(model.chapter_fraction(i) for i in range(len(model.chapters)))
    return total


def is_course_complete(progress: CourseProgress) -> bool:
    """All completable textbooks finished; a course with none is never complete."""
    books = [book for book in progress.completion if book.completable]
    return bool(books) and all(book.overall_completion >= 1.0 for book in books)


def is_course_started(progress: CourseProgress) -> bool:
    return any(
        book.completable and any(value > 0.0 for value in book.chapter_progress)
        for book in progress.completion
    )


def is_course_completable(course: Course) -> bool:
    return course.completable


def sort_courses(
    courses: list[tuple[Course, CourseProgress]],
    active_ids: Optional[set[str]] = None,
) -> list[tuple[Course, CourseProgress]]:
    """
    Order courses for listing: active courses first, then by title.

    Returns a new list; the input is left as is.
    """
    active_ids = active_ids or set()
    return sorted(
        courses,
        key=lambda pair: (pair[0].id not in active_ids, pair[0].title),
    )
