"""Domain-specific exceptions for course-media."""

from __future__ import annotations

import uuid


class CourseMediaError(Exception):
    """Base class for all course-media domain errors."""


class LessonNotFoundError(CourseMediaError):
    """Raised when a Lesson id does not exist."""

    def __init__(self, lesson_id: uuid.UUID) -> None:
        self.lesson_id = lesson_id
        super().__init__(f"Lesson {lesson_id} not found")


class CourseNotFoundError(CourseMediaError):
    """Raised when a Course id does not exist."""

    def __init__(self, course_id: uuid.UUID) -> None:
        self.course_id = course_id
        super().__init__(f"Course {course_id} not found")


class VideoNotFoundError(CourseMediaError):
    """Local video file is missing or outside the public directory."""


class VideoAccessDeniedError(CourseMediaError):
    """Signed token rejected. The message never says which check failed."""

    def __init__(self) -> None:
        super().__init__("Invalid or expired video token")


class StreamParametersError(CourseMediaError):
    """Stream request lacks the ``path`` or ``token`` parameter."""

    def __init__(self) -> None:
        super().__init__("Missing parameters: path and token are required")


class InvalidRangeError(CourseMediaError):
    """Range header is malformed or cannot be satisfied."""

    def __init__(self, header: str, file_size: int) -> None:
        self.header = header
        self.file_size = file_size
        super().__init__(f"Unsatisfiable range {header!r} for {file_size} bytes")


class LessonOrderError(CourseMediaError):
    """Reorder request does not list exactly the lessons of the course."""


class UnsafePathError(CourseMediaError):
    """Relative path resolves outside the public directory."""

    def __init__(self, relative_path: str) -> None:
        self.relative_path = relative_path
        super().__init__(f"Path escapes the public directory: {relative_path!r}")
