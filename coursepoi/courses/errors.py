from __future__ import annotations


class RecordError(ValueError):
    """A single raw coordinate record is unusable and must be skipped."""


class EmptyResultError(RuntimeError):
    """The provider answered but no usable hole survived classification."""

    def __init__(self, course_id: str, record_count: int = 0) -> None:
        super().__init__(
            f"no usable poi for course {course_id} ({record_count} raw records)"
        )
        self.course_id = course_id
        self.record_count = record_count


class StorageError(RuntimeError):
    """Persisting or reading a course record failed."""


class CourseNotFoundError(LookupError):
    """Raised when the requested course record does not exist."""
