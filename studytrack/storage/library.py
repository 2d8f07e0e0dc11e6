"""
CourseLibrary - Load course definitions from the courses directory.

Layout:
    <root>/<course_id>/course.yaml    course metadata
    <root>/<course_id>/...            textbook files referenced by it
"""

import logging
import shutil
import uuid
import zipfile
from pathlib import Path, PurePath
from typing import Optional

import yaml
from pydantic import ValidationError

from studytrack.config import DEFAULT_COURSES_DIR
from studytrack.errors import CourseFormatError, CourseNotFoundError
from studytrack.schemas import Course


logger = logging.getLogger(__name__)

COURSE_INDEX = "course.yaml"


def into_relative_path(root: Path, path: str) -> Path:
    """
    Resolve `path` under `root` without ever leaving it.

    Absolute prefixes are dropped and ".." can only climb back out of
    directories entered by `path` itself.
    """
    parts: list[str] = []
    for part in PurePath(path).parts:
        if part in ("", ".") or part == PurePath(path).anchor:
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return root.joinpath(*parts)


class CourseLibrary:
    """
    Read-only access to installed courses, plus installation.

    Course ids are the names of the course directories.
    """

    def __init__(self, root: Optional[Path] = None):
        """
        Initialize library.

        Args:
            root: Courses directory (default: ~/.studytrack/courses)
        """
        self.root = Path(root) if root else DEFAULT_COURSES_DIR
        self.root.mkdir(parents=True, exist_ok=True)

    def course_dir(self, course_id: str) -> Path:
        return into_relative_path(self.root, course_id)

    def list_course_ids(self) -> list[str]:
        """Get ids of all directories holding a course index."""
        return sorted(
            path.name for path in self.root.iterdir()
            if path.is_dir() and (path / COURSE_INDEX).is_file()
        )

    def get_course(self, course_id: str) -> Course:
        """
        Load a course by id.

        Textbook file paths are made absolute within the course directory.

        Raises:
            CourseNotFoundError: If no such course is installed
            CourseFormatError: If course.yaml is not a valid course
        """
        index_path = self.course_dir(course_id) / COURSE_INDEX
        if not index_path.is_file():
            raise CourseNotFoundError(f"Course not found: {course_id}")

        try:
            with open(index_path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
            if not isinstance(raw, dict):
                raise CourseFormatError(f"{index_path} does not contain a mapping")
            raw["id"] = course_id
            course = Course.model_validate(raw)
        except yaml.YAMLError as e:
            raise CourseFormatError(f"Invalid YAML in {index_path}: {e}") from e
        except ValidationError as e:
            raise CourseFormatError(f"Invalid course definition in {index_path}: {e}") from e

        course_root = index_path.parent
        for book in course.books:
            book.file = str(into_relative_path(course_root, book.file))
        return course

    def get_courses(self) -> list[Course]:
        """Load every valid course; invalid ones are logged and skipped."""
        courses = []
        for course_id in self.list_course_ids():
            try:
                courses.append(self.get_course(course_id))
            except CourseFormatError as e:
                logger.warning(f"Skipping course {course_id}: {e}")
        return courses

    # -------------------------------------------------------------------------
    # Installation
    # -------------------------------------------------------------------------

    def install(self, source: Path) -> str:
        """
        Install a course from a directory or a .zip archive.

        The archive or directory must have course.yaml at its top level.

        Returns:
            The new course id
        """
        source = Path(source)
        course_id = uuid.uuid4().hex
        target = self.root / course_id

        if source.is_dir():
            if not (source / COURSE_INDEX).is_file():
                raise CourseFormatError(f"No {COURSE_INDEX} in {source}")
            shutil.copytree(source, target)
        elif zipfile.is_zipfile(source):
            with zipfile.ZipFile(source) as archive:
                if COURSE_INDEX not in archive.namelist():
                    raise CourseFormatError(f"No {COURSE_INDEX} in {source}")
                target.mkdir()
                for member in archive.infolist():
                    destination = into_relative_path(target, member.filename)
                    if member.is_dir():
                        destination.mkdir(parents=True, exist_ok=True)
                        continue
                    destination.parent.mkdir(parents=True, exist_ok=True)
                    with archive.open(member) as src, open(destination, "wb") as dst:
                        shutil.copyfileobj(src, dst)
        else:
            raise CourseFormatError(f"Not a course directory or zip archive: {source}")

        try:
            self.get_course(course_id)
        except CourseFormatError:
            shutil.rmtree(target)
            raise

        logger.info(f"Installed course {course_id} from {source}")
        return course_id
