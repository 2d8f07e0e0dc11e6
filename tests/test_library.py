"""
Tests for CourseLibrary: loading, path handling and installation.
"""

import zipfile
from pathlib import Path

import pytest
import yaml

from studytrack.errors import CourseFormatError, CourseNotFoundError
from studytrack.storage import CourseLibrary, into_relative_path


COURSE = {
    "title": "Linear Algebra",
    "description": "Vectors and matrices",
    "books": [
        {
            "label": "Main Text",
            "file": "books/main.pdf",
            "chapters": [
                {"root": "ch1", "groups": [{"sections": ["1.1", "1.2"]}]},
                {"groups": [{"weight": 2, "sections": ["2.1"]}]},
            ],
        }
    ],
}


def write_course(directory: Path, course: dict = COURSE) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    (directory / "course.yaml").write_text(yaml.safe_dump(course), encoding="utf-8")
    (directory / "books").mkdir(exist_ok=True)
    (directory / "books" / "main.pdf").write_bytes(b"%PDF-1.4")
    return directory


@pytest.fixture
def library(tmp_path):
    return CourseLibrary(tmp_path / "courses")


class TestRelativePaths:
    """Test path clamping inside a root."""

    def test_plain_path(self, tmp_path):
        assert into_relative_path(tmp_path, "books/a.pdf") == tmp_path / "books" / "a.pdf"

    def test_parent_references_clamped(self, tmp_path):
        assert into_relative_path(tmp_path, "../../etc/passwd") == tmp_path / "etc" / "passwd"
        assert into_relative_path(tmp_path, "a/../b.pdf") == tmp_path / "b.pdf"

    def test_absolute_path_made_relative(self, tmp_path):
        assert into_relative_path(tmp_path, "/abs/x.pdf") == tmp_path / "abs" / "x.pdf"


class TestLoading:
    """Test reading installed courses."""

    def test_get_course(self, library):
        write_course(library.root / "linalg")
        course = library.get_course("linalg")
        assert course.id == "linalg"
        assert course.title == "Linear Algebra"
        assert course.books[0].chapters[1].groups[0].weight == 2
        assert Path(course.books[0].file) == library.root / "linalg" / "books" / "main.pdf"

    def test_id_comes_from_directory(self, library):
        write_course(library.root / "dir-name", {**COURSE, "id": "other"})
        assert library.get_course("dir-name").id == "dir-name"

    def test_missing_course(self, library):
        with pytest.raises(CourseNotFoundError):
            library.get_course("missing")

    def test_invalid_course(self, library):
        write_course(library.root / "broken", {"books": []})
        with pytest.raises(CourseFormatError):
            library.get_course("broken")

    def test_invalid_yaml(self, library):
        directory = library.root / "bad-yaml"
        directory.mkdir(parents=True)
        (directory / "course.yaml").write_text("title: [unclosed", encoding="utf-8")
        with pytest.raises(CourseFormatError):
            library.get_course("bad-yaml")

    def test_get_courses_skips_invalid(self, library):
        write_course(library.root / "good")
        write_course(library.root / "broken", {"books": []})
        (library.root / "not-a-course").mkdir()

        assert library.list_course_ids() == ["broken", "good"]
        assert [course.id for course in library.get_courses()] == ["good"]


class TestInstall:
    """Test installing from directories and archives."""

    def test_install_directory(self, library, tmp_path):
        source = write_course(tmp_path / "source")
        course_id = library.install(source)

        assert library.list_course_ids() == [course_id]
        assert library.get_course(course_id).title == "Linear Algebra"
        assert (library.root / course_id / "books" / "main.pdf").is_file()

    def test_install_zip(self, library, tmp_path):
        archive = tmp_path / "course.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("course.yaml", yaml.safe_dump(COURSE))
            zf.writestr("books/main.pdf", b"%PDF-1.4")
            zf.writestr("../escape.txt", "outside")

        course_id = library.install(archive)
        target = library.root / course_id
        assert (target / "books" / "main.pdf").is_file()
        assert (target / "escape.txt").is_file()
        assert not (library.root / "escape.txt").exists()

    def test_install_without_index(self, library, tmp_path):
        source = tmp_path / "empty"
        source.mkdir()
        with pytest.raises(CourseFormatError):
            library.install(source)

    def test_install_invalid_course_cleans_up(self, library, tmp_path):
        source = write_course(tmp_path / "source", {"title": "No books", "books": "nope"})
        with pytest.raises(CourseFormatError):
            library.install(source)
        assert list(library.root.iterdir()) == []

    def test_install_unknown_file(self, library, tmp_path):
        source = tmp_path / "notes.txt"
        source.write_text("hello")
        with pytest.raises(CourseFormatError):
            library.install(source)
