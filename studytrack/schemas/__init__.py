"""
StudyTrack Schemas - Pydantic models for the learning tracker.

This module exports all schema classes for:
- Course: courses, textbooks, chapters, section groups
- Progress: completion records, derived progress, settings
"""

# Course schemas
from .course import (
    SectionGroup,
    Chapter,
    Textbook,
    Course,
)

# Progress schemas
from .progress import (
    TextbookCompletion,
    CourseCompletionData,
    TextbookProgress,
    CourseProgress,
    OverallProgress,
    Settings,
    validate_day,
)

__all__ = [
    # Course
    'SectionGroup',
    'Chapter',
    'Textbook',
    'Course',
    # Progress
    'TextbookCompletion',
    'CourseCompletionData',
    'TextbookProgress',
    'CourseProgress',
    'OverallProgress',
    'Settings',
    'validate_day',
]
