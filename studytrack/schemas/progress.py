"""
Progress tracking schemas for StudyTrack.

Defines Pydantic models for:
- The mutable per-course completion record
- Derived per-course and per-textbook progress
- Overall (all courses) daily history
- User settings
"""

from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import Optional


def validate_day(value: str) -> str:
    """Validate a local calendar day key (YYYY-MM-DD)."""
    if len(value) != 10:
        raise ValueError(f"Day must be formatted as YYYY-MM-DD: {value!r}")
    date.fromisoformat(value)
    return value


def _validate_day_keys(values: dict) -> dict:
    for key in values:
        validate_day(key)
    return values


class TextbookCompletion(BaseModel):
    completed_sections: set[str] = set()
    position: Optional[str] = None  # renderer-specific, stored verbatim


class CourseCompletionData(BaseModel):
    """
    Raw completion record for one course.

    time_spent is sparse: a missing day means nothing was recorded,
    not zero. Values are seconds.
    """
    time_spent: dict[str, int] = {}
    books: dict[int, TextbookCompletion] = {}

    @field_validator("time_spent")
    @classmethod
    def check_time_spent(cls, v: dict[str, int]) -> dict[str, int]:
        _validate_day_keys(v)
        for day, seconds in v.items():
            if seconds < 0:
                raise ValueError(f"Negative time recorded for {day}")
        return v

    def book(self, index: int) -> TextbookCompletion:
        """Get the record for a textbook, creating an empty one if needed."""
        if index not in self.books:
            self.books[index] = TextbookCompletion()
        return self.books[index]

    def total_time(self) -> int:
        return sum(self.time_spent.values())


class TextbookProgress(BaseModel):
    completable: bool = False
    overall_completion: float = Field(0.0, ge=0.0, le=1.0)
    chapter_completion: list[float] = []  # 1.0 or 0.0 per chapter
    chapter_progress: list[float] = []    # weighted partial, display only


class CourseProgress(BaseModel):
    completion: list[TextbookProgress]
    time_spent_today: int = 0


class OverallProgress(BaseModel):
    """Daily totals across every course."""
    chapters_completed: dict[str, float] = {}
    time_spent: dict[str, int] = {}

    @field_validator("chapters_completed", "time_spent")
    @classmethod
    def check_days(cls, v: dict) -> dict:
        return _validate_day_keys(v)

    def update(self, chapter_change: float, time_change: int, day: str):
        """
        Apply a change in completed chapters and seconds studied to a day.

        Existing buckets never drop below zero; a bucket is only created
        for a positive change.
        """
        validate_day(day)

        if chapter_change != 0:
            if day in self.chapters_completed:
                self.chapters_completed[day] = max(self.chapters_completed[day] + chapter_change, 0.0)
            elif chapter_change > 0:
                self.chapters_completed[day] = chapter_change

        if day in self.time_spent:
            self.time_spent[day] = max(self.time_spent[day] + time_change, 0)
        elif time_change > 0:
            self.time_spent[day] = time_change


class Settings(BaseModel):
    show_course_clock: bool = True
    maximum_course_time: int = Field(150, ge=1)        # minutes per course per day
    maximum_daily_time: int = Field(300, ge=1)         # minutes across all courses
    maximum_daily_chapters: float = Field(1.5, gt=0)
    weeks_displayed: int = Field(24, ge=1, le=104)
    tick_interval: int = Field(1, ge=1)                # seconds
