"""Repositories for course and lesson persistence."""

from __future__ import annotations

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from course_media.models.patches import CoursePatch, LessonPatch
from course_media.storage.orm import Course, Lesson


class CourseRepository:
    """Repository for Course reads, updates and deletion."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, course_id: uuid.UUID) -> Course | None:
        """Get course by primary key.

        Args:
            course_id: UUID of the course.

        Returns:
            Course if found, None otherwise.
        """
        return await self._session.get(Course, course_id)

    async def get_with_lessons(self, course_id: uuid.UUID) -> Course | None:
        """Get course with its lessons eagerly loaded.

        Args:
            course_id: UUID of the course.

        Returns:
            Course with ``lessons`` loaded (ordered by position),
            or None if not found.
        """
        stmt = (
            select(Course)
            .where(Course.id == course_id)
            .options(selectinload(Course.lessons))
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def update(self, course: Course, patch: CoursePatch) -> Course:
        """Apply a patch to a loaded course, flush, and reload server defaults."""
        patch.apply_to(course)
        await self._session.flush()
        await self._session.refresh(course)
        return course

    async def delete(self, course: Course) -> None:
        """Delete a course. Its lessons are removed by cascade."""
        await self._session.delete(course)
        await self._session.flush()

    async def count_with_thumbnail_url(
        self,
        url: str,
        *,
        exclude_id: uuid.UUID | None = None,
    ) -> int:
        """Count courses whose ``thumbnail_url`` equals ``url``.

        Args:
            url: Exact thumbnail URL to match.
            exclude_id: Course to leave out of the count (the one being
                edited), or None to count every course.

        Returns:
            Number of matching courses.
        """
        stmt = (
            select(func.count())
            .select_from(Course)
            .where(Course.thumbnail_url == url)
        )
        if exclude_id is not None:
            stmt = stmt.where(Course.id != exclude_id)
        result = await self._session.execute(stmt)
        return result.scalar_one()


class LessonRepository:
    """Repository for Lesson operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, lesson_id: uuid.UUID) -> Lesson | None:
        return await self._session.get(Lesson, lesson_id)

    async def list_by_course(self, course_id: uuid.UUID) -> list[Lesson]:
        """List lessons of a course ordered by position."""
        stmt = (
            select(Lesson)
            .where(Lesson.course_id == course_id)
            .order_by(Lesson.order)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def update(self, lesson: Lesson, patch: LessonPatch) -> Lesson:
        """Apply a patch to a loaded lesson, flush, and reload server defaults."""
        patch.apply_to(lesson)
        await self._session.flush()
        await self._session.refresh(lesson)
        return lesson

    async def delete(self, lesson: Lesson) -> None:
        await self._session.delete(lesson)
        await self._session.flush()

    async def count_with_video_url(
        self,
        url: str,
        *,
        exclude_id: uuid.UUID | None = None,
    ) -> int:
        """Count lessons whose ``video_url`` equals ``url``.

        Args:
            url: Exact video URL to match.
            exclude_id: Lesson to leave out of the count (the one being
                edited), or None to count every lesson.

        Returns:
            Number of matching lessons.
        """
        stmt = select(func.count()).select_from(Lesson).where(Lesson.video_url == url)
        if exclude_id is not None:
            stmt = stmt.where(Lesson.id != exclude_id)
        result = await self._session.execute(stmt)
        return result.scalar_one()

    async def reorder(self, lessons: list[Lesson], lesson_ids: list[uuid.UUID]) -> None:
        """Set ``order`` of each lesson to its index in ``lesson_ids``.

        Args:
            lessons: All lessons of one course (already loaded).
            lesson_ids: The same lesson ids in the desired order.
        """
        position = {lesson_id: idx for idx, lesson_id in enumerate(lesson_ids)}
        for lesson in lessons:
            lesson.order = position[lesson.id]
        await self._session.flush()


class ReferenceCounter:
    """Reference-count queries that each run in their own short session.

    An ``AsyncSession`` cannot run statements concurrently, so cleanup
    fan-out gives every count a fresh session from the factory.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def count_with_video_url(
        self, url: str, *, exclude_id: uuid.UUID | None = None
    ) -> int:
        async with self._session_factory() as session:
            return await LessonRepository(session).count_with_video_url(
                url, exclude_id=exclude_id
            )

    async def count_with_thumbnail_url(
        self, url: str, *, exclude_id: uuid.UUID | None = None
    ) -> int:
        async with self._session_factory() as session:
            return await CourseRepository(session).count_with_thumbnail_url(
                url, exclude_id=exclude_id
            )
