"""Request/response schemas for the API layer."""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from course_media.models.patches import CoursePatch, LessonPatch

# --- Video ---


class SignedUrlResponse(BaseModel):
    """Response for ``GET /videos/{lesson_id}/signed-url``.

    ``url`` is either a ``/videos/stream?path=...&token=...`` link or,
    for externally hosted videos, the original link with ``expires = 0``.
    """

    url: str
    expires: int = Field(description="Token expiry in epoch milliseconds, 0 if none.")


# --- Lesson ---


class LessonUpdateRequest(BaseModel):
    """Request body for PATCH /courses/{course_id}/lessons/{lesson_id}.

    Every field is optional; omitted fields are left unchanged.
    """

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    duration: str | None = Field(default=None, max_length=50)
    video_url: str | None = Field(default=None, min_length=1, max_length=1000)
    is_live: bool | None = None

    def to_patch(self) -> LessonPatch:
        return LessonPatch(**self.model_dump(exclude_unset=True))


class LessonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    course_id: uuid.UUID
    title: str
    description: str
    duration: str
    video_url: str
    order: int
    is_live: bool


class ReorderLessonsRequest(BaseModel):
    """Lesson ids of one course in the desired order."""

    lesson_ids: list[uuid.UUID] = Field(..., min_length=1)


# --- Course ---


class CourseUpdateRequest(BaseModel):
    """Request body for PATCH /courses/{course_id}."""

    title: str | None = Field(default=None, min_length=1, max_length=500)
    description: str | None = None
    price: Decimal | None = Field(default=None, ge=0)
    thumbnail_url: str | None = Field(default=None, min_length=1, max_length=1000)

    def to_patch(self) -> CoursePatch:
        return CoursePatch(**self.model_dump(exclude_unset=True))


class CourseResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: str
    price: Decimal
    thumbnail_url: str | None
    created_at: datetime
    updated_at: datetime
