"""Course and lesson mutations that keep local media files consistent.

Every workflow follows the same order:

1. Read the row and note which local files it references.
2. Mutate and commit. A failure here propagates and no file is touched.
3. Reclaim the noted files that nothing references any more.

Step 3 is best-effort: the mutation already succeeded, so cleanup
errors are logged and never change the result. A crash between 2 and 3
leaves an unreferenced file on disk, never a row pointing at a missing
file.
"""

from __future__ import annotations

import asyncio
import uuid
from typing import TYPE_CHECKING

import structlog

from course_media.errors import (
    CourseNotFoundError,
    LessonNotFoundError,
    LessonOrderError,
)
from course_media.reclaimer import OrphanFileReclaimer
from course_media.storage.repositories import (
    CourseRepository,
    LessonRepository,
    ReferenceCounter,
)

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from course_media.models.patches import CoursePatch, LessonPatch
    from course_media.storage.files import LocalFileStorage
    from course_media.storage.orm import Course, Lesson

logger = structlog.get_logger()


class MediaLifecycle:
    """Lesson/course edits and deletions with orphan-file cleanup.

    Each call opens its own session from ``session_factory`` and commits
    before any file is deleted.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        storage: LocalFileStorage,
        *,
        reclaimer: OrphanFileReclaimer | None = None,
    ) -> None:
        self._session_factory = session_factory
        if reclaimer is None:
            counter = ReferenceCounter(session_factory)
            reclaimer = OrphanFileReclaimer(
                storage, videos=counter, thumbnails=counter
            )
        self._reclaimer = reclaimer

    async def update_lesson(
        self,
        lesson_id: uuid.UUID,
        patch: LessonPatch,
        *,
        course_id: uuid.UUID | None = None,
    ) -> Lesson:
        """Apply a patch to a lesson, dropping its old video if orphaned.

        The old video is checked against every *other* lesson before the
        update and deleted only after the update commits. The new video
        is never a deletion candidate.

        Raises:
            LessonNotFoundError: No lesson with this id (in ``course_id``,
                when given).
        """
        log = logger.bind(lesson_id=str(lesson_id))

        async with self._session_factory() as session:
            repo = LessonRepository(session)
            lesson = await repo.get_by_id(lesson_id)
            if lesson is None or (
                course_id is not None and lesson.course_id != course_id
            ):
                raise LessonNotFoundError(lesson_id)

            old_url = lesson.video_url
            orphaned = False
            if patch.video_url is not None and patch.video_url != old_url:
                orphaned = await self._reclaimer.is_video_orphaned(
                    old_url, exclude_lesson_id=lesson_id
                )

            await repo.update(lesson, patch)
            await session.commit()

        log.info("lesson_updated", fields=sorted(patch.changes()))
        if orphaned:
            await self._delete_best_effort(old_url)
        return lesson

    async def remove_lesson(
        self, lesson_id: uuid.UUID, *, course_id: uuid.UUID | None = None
    ) -> None:
        """Delete a lesson, then its video if no other lesson uses it.

        Raises:
            LessonNotFoundError: No lesson with this id (in ``course_id``,
                when given).
        """
        async with self._session_factory() as session:
            repo = LessonRepository(session)
            lesson = await repo.get_by_id(lesson_id)
            if lesson is None or (
                course_id is not None and lesson.course_id != course_id
            ):
                raise LessonNotFoundError(lesson_id)

            video_url = lesson.video_url
            await repo.delete(lesson)
            await session.commit()

        logger.info("lesson_removed", lesson_id=str(lesson_id))
        await self._reclaimer.reclaim_videos([video_url])

    async def delete_course(self, course_id: uuid.UUID) -> None:
        """Delete a course with its lessons, then every orphaned file.

        Video URLs of all lessons and the thumbnail URL are captured
        before the delete. After commit they are re-checked without
        exclusions, since the rows are gone, and reclaimed concurrently.

        Raises:
            CourseNotFoundError: No course with this id.
        """
        async with self._session_factory() as session:
            repo = CourseRepository(session)
            course = await repo.get_with_lessons(course_id)
            if course is None:
                raise CourseNotFoundError(course_id)

            video_urls = [lesson.video_url for lesson in course.lessons]
            thumbnail_urls = [course.thumbnail_url] if course.thumbnail_url else []

            await repo.delete(course)
            await session.commit()

        logger.info(
            "course_deleted", course_id=str(course_id), lessons=len(video_urls)
        )
        await asyncio.gather(
            self._reclaimer.reclaim_videos(video_urls),
            self._reclaimer.reclaim_thumbnails(thumbnail_urls),
        )

    async def update_course(self, course_id: uuid.UUID, patch: CoursePatch) -> Course:
        """Apply a patch to a course, dropping its old thumbnail if orphaned.

        Raises:
            CourseNotFoundError: No course with this id.
        """
        async with self._session_factory() as session:
            repo = CourseRepository(session)
            course = await repo.get_by_id(course_id)
            if course is None:
                raise CourseNotFoundError(course_id)

            old_url = course.thumbnail_url
            orphaned = False
            if (
                old_url is not None
                and patch.thumbnail_url is not None
                and patch.thumbnail_url != old_url
            ):
                orphaned = await self._reclaimer.is_thumbnail_orphaned(
                    old_url, exclude_course_id=course_id
                )

            await repo.update(course, patch)
            await session.commit()

        logger.info(
            "course_updated", course_id=str(course_id), fields=sorted(patch.changes())
        )
        if orphaned and old_url is not None:
            await self._delete_best_effort(old_url)
        return course

    async def reorder_lessons(
        self, course_id: uuid.UUID, lesson_ids: list[uuid.UUID]
    ) -> None:
        """Set lesson positions to the order of ``lesson_ids``.

        Raises:
            CourseNotFoundError: No course with this id.
            LessonOrderError: ``lesson_ids`` is not exactly the course's
                lessons, each listed once.
        """
        async with self._session_factory() as session:
            course = await CourseRepository(session).get_by_id(course_id)
            if course is None:
                raise CourseNotFoundError(course_id)

            repo = LessonRepository(session)
            lessons = await repo.list_by_course(course_id)
            existing = {lesson.id for lesson in lessons}

            unknown = [str(i) for i in lesson_ids if i not in existing]
            if unknown:
                msg = f"Lessons do not belong to this course: {', '.join(unknown)}"
                raise LessonOrderError(msg)
            if len(lesson_ids) != len(existing) or len(set(lesson_ids)) != len(
                lesson_ids
            ):
                msg = "lesson_ids must list every lesson of the course exactly once"
                raise LessonOrderError(msg)

            await repo.reorder(lessons, lesson_ids)
            await session.commit()

    async def _delete_best_effort(self, url: str) -> None:
        try:
            await self._reclaimer.delete_url(url)
        except Exception:
            logger.exception("orphan_cleanup_failed", url=url)
