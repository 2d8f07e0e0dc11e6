#!/usr/bin/env python3
"""
install_course.py - Install a course into the StudyTrack library.

Accepts a directory or .zip archive with course.yaml at its top level.

Usage:
  python scripts/install_course.py path/to/course.zip
  python scripts/install_course.py path/to/course_dir --activate
"""

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from studytrack.config import DEFAULT_COURSES_DIR, DEFAULT_PROGRESS_DB, configure_logging
from studytrack.errors import CourseFormatError
from studytrack.storage import CourseLibrary, ProgressDatabase

configure_logging()
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Install a StudyTrack course")
    parser.add_argument(
        "source",
        type=Path,
        help="Course directory or .zip archive"
    )
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
        "--activate",
        action="store_true",
        help="Add the course to the active course list"
    )

    args = parser.parse_args()

    if not args.source.exists():
        logger.error(f"Source not found: {args.source}")
        sys.exit(1)

    library = CourseLibrary(args.courses_dir)

    logger.info(f"Installing course from {args.source}...")
    try:
        course_id = library.install(args.source)
    except CourseFormatError as e:
        logger.error(f"Invalid course: {e}")
        sys.exit(1)

    course = library.get_course(course_id)
    logger.info(f"  Title: {course.title}")
    logger.info(f"  Textbooks: {len(course.books)}")
    for book in course.books:
        chapters = sum(1 for chapter in book.chapters if chapter.completable)
        logger.info(f"    - {book.label}: {chapters} trackable chapters")

    if args.activate:
        database = ProgressDatabase(args.db)
        active = database.get_active_courses()
        if course_id not in active:
            database.set_active_courses(active + [course_id])
        logger.info("  Marked as active")

    logger.info(f"Installed course id: {course_id}")


if __name__ == "__main__":
    main()
