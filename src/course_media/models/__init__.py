"""Domain value objects for course-media."""

from course_media.models.patches import CoursePatch, LessonPatch

__all__ = ["CoursePatch", "LessonPatch"]
