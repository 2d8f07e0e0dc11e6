"""StudyTrack - Course progress tracking over externally rendered textbooks."""

__version__ = "0.1.0"
