"""Course and lesson mutation endpoints with media cleanup."""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from course_media.api.deps import get_lifecycle
from course_media.api.schemas import (
    CourseResponse,
    CourseUpdateRequest,
    LessonResponse,
    LessonUpdateRequest,
    ReorderLessonsRequest,
)
from course_media.errors import (
    CourseNotFoundError,
    LessonNotFoundError,
    LessonOrderError,
)
from course_media.lifecycle import MediaLifecycle

router = APIRouter(prefix="/courses", tags=["courses"])

LifecycleDep = Annotated[MediaLifecycle, Depends(get_lifecycle)]


@router.patch("/{course_id}")
async def update_course(
    course_id: uuid.UUID,
    body: CourseUpdateRequest,
    lifecycle: LifecycleDep,
) -> CourseResponse:
    """Update course fields. A replaced local thumbnail is removed
    from storage once no other course uses it."""
    try:
        course = await lifecycle.update_course(course_id, body.to_patch())
    except CourseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return CourseResponse.model_validate(course)


@router.delete("/{course_id}", status_code=204)
async def delete_course(course_id: uuid.UUID, lifecycle: LifecycleDep) -> Response:
    """Delete a course, its lessons, and their now-unused files."""
    try:
        await lifecycle.delete_course(course_id)
    except CourseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return Response(status_code=204)


# Must be declared before /{course_id}/lessons/{lesson_id}, otherwise
# "reorder" is captured as a lesson id.
@router.patch("/{course_id}/lessons/reorder", status_code=204)
async def reorder_lessons(
    course_id: uuid.UUID,
    body: ReorderLessonsRequest,
    lifecycle: LifecycleDep,
) -> Response:
    """Reorder all lessons of a course."""
    try:
        await lifecycle.reorder_lessons(course_id, body.lesson_ids)
    except CourseNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except LessonOrderError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return Response(status_code=204)


@router.patch("/{course_id}/lessons/{lesson_id}")
async def update_lesson(
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
    body: LessonUpdateRequest,
    lifecycle: LifecycleDep,
) -> LessonResponse:
    """Partially update a lesson. A replaced local video is removed
    from storage once no other lesson uses it."""
    try:
        lesson = await lifecycle.update_lesson(
            lesson_id, body.to_patch(), course_id=course_id
        )
    except LessonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return LessonResponse.model_validate(lesson)


@router.delete("/{course_id}/lessons/{lesson_id}", status_code=204)
async def remove_lesson(
    course_id: uuid.UUID,
    lesson_id: uuid.UUID,
    lifecycle: LifecycleDep,
) -> Response:
    """Delete a lesson and its video file if nothing else uses it."""
    try:
        await lifecycle.remove_lesson(lesson_id, course_id=course_id)
    except LessonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return Response(status_code=204)
