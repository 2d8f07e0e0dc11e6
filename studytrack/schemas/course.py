"""
Course schemas for StudyTrack.

Defines Pydantic models for authored course metadata:
- Courses made of textbooks
- Textbooks made of chapters
- Chapters made of weighted section groups
"""

from pydantic import BaseModel, Field
from typing import Optional


class SectionGroup(BaseModel):
    """A run of leaf sections; weight only affects display emphasis."""
    weight: Optional[float] = None
    sections: list[str] = []

    @property
    def effective_weight(self) -> float:
        if self.weight is None:
            return 1.0
        return max(self.weight, 0.0)


class Chapter(BaseModel):
    """
    A checkable chapter.

    A chapter without a root but with leaf sections has an implicit root,
    complete when every leaf is. A chapter with neither is not tracked.
    """
    root: Optional[str] = None
    groups: list[SectionGroup] = []

    @property
    def leaves(self) -> list[str]:
        return [section for group in self.groups for section in group.sections]

    @property
    def has_leaves(self) -> bool:
        return any(group.sections for group in self.groups)

    @property
    def completable(self) -> bool:
        return self.root is not None or self.has_leaves


class Textbook(BaseModel):
    label: str
    file: str  # resolved by a renderer, opaque here
    chapters: list[Chapter] = []

    @property
    def completable(self) -> bool:
        return any(chapter.completable for chapter in self.chapters)


class Course(BaseModel):
    id: str = Field(..., min_length=1)
    title: str
    description: Optional[str] = None
    books: list[Textbook] = []

    @property
    def completable(self) -> bool:
        return any(book.completable for book in self.books)
