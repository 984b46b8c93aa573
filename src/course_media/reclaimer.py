"""Reference-counted deletion of orphaned video and thumbnail files.

A local file may be deleted only when no lesson ``video_url`` (for
videos) or course ``thumbnail_url`` (for thumbnails) still equals its
URL. Callers run the reclaimer *after* the database change that drops
their own reference has been committed: a failed commit then leaves
every file intact, and a failed delete only leaks an unreferenced file.

Deletion is best-effort. Errors are logged per file and never reach
the caller.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Iterable
from typing import Protocol

import structlog

from course_media.storage.files import LocalFileStorage

logger = structlog.get_logger()


class VideoReferenceCounter(Protocol):
    async def count_with_video_url(
        self, url: str, *, exclude_id: uuid.UUID | None = None
    ) -> int: ...


class ThumbnailReferenceCounter(Protocol):
    async def count_with_thumbnail_url(
        self, url: str, *, exclude_id: uuid.UUID | None = None
    ) -> int: ...


class OrphanFileReclaimer:
    """Delete local files that no database row references any more."""

    def __init__(
        self,
        storage: LocalFileStorage,
        *,
        videos: VideoReferenceCounter,
        thumbnails: ThumbnailReferenceCounter,
    ) -> None:
        self._storage = storage
        self._videos = videos
        self._thumbnails = thumbnails

    async def is_video_orphaned(
        self, url: str, *, exclude_lesson_id: uuid.UUID | None = None
    ) -> bool:
        """True if ``url`` is local and no (other) lesson references it."""
        if not self._storage.is_local_path(url):
            return False
        count = await self._videos.count_with_video_url(
            url, exclude_id=exclude_lesson_id
        )
        return count == 0

    async def is_thumbnail_orphaned(
        self, url: str, *, exclude_course_id: uuid.UUID | None = None
    ) -> bool:
        """True if ``url`` is local and no (other) course references it."""
        if not self._storage.is_local_path(url):
            return False
        count = await self._thumbnails.count_with_thumbnail_url(
            url, exclude_id=exclude_course_id
        )
        return count == 0

    async def delete_url(self, url: str) -> None:
        """Delete the file behind a local URL without any reference check."""
        await self._storage.delete_file(self._storage.to_relative_path(url))

    async def reclaim_video(self, url: str) -> bool:
        """Delete a video file if no lesson references it.

        Returns:
            True if a delete was issued.
        """
        if not await self.is_video_orphaned(url):
            logger.debug("video_still_referenced", url=url)
            return False
        await self.delete_url(url)
        return True

    async def reclaim_thumbnail(self, url: str) -> bool:
        """Delete a thumbnail file if no course references it.

        Returns:
            True if a delete was issued.
        """
        if not await self.is_thumbnail_orphaned(url):
            logger.debug("thumbnail_still_referenced", url=url)
            return False
        await self.delete_url(url)
        return True

    async def reclaim_videos(self, urls: Iterable[str]) -> list[str]:
        """Reclaim several video URLs concurrently.

        Duplicates are collapsed by exact string equality so a file shared
        by two lessons is checked and deleted once. One candidate failing
        does not stop the others.

        Returns:
            URLs whose files were deleted.
        """
        return await self._fan_out(urls, self.reclaim_video)

    async def reclaim_thumbnails(self, urls: Iterable[str]) -> list[str]:
        """Thumbnail counterpart of :meth:`reclaim_videos`."""
        return await self._fan_out(urls, self.reclaim_thumbnail)

    async def _fan_out(
        self,
        urls: Iterable[str],
        reclaim: Callable[[str], Awaitable[bool]],
    ) -> list[str]:
        candidates = list(
            dict.fromkeys(url for url in urls if self._storage.is_local_path(url))
        )
        results = await asyncio.gather(
            *(reclaim(url) for url in candidates),
            return_exceptions=True,
        )

        deleted: list[str] = []
        for url, result in zip(candidates, results, strict=True):
            if isinstance(result, BaseException):
                logger.error(
                    "orphan_cleanup_failed",
                    url=url,
                    error=str(result),
                    error_type=type(result).__name__,
                )
            elif result:
                deleted.append(url)
        return deleted
