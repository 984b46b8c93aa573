"""Local filesystem storage for uploaded videos and thumbnails.

Files live under ``public_dir`` and are referenced from the database by
URLs carrying the static prefix, e.g. ``/static/videos/intro.mp4`` maps
to ``<public_dir>/videos/intro.mp4``. Any other URL (a video host link)
is external and never touched.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from pathlib import Path

import anyio
import structlog

from course_media.errors import UnsafePathError

logger = structlog.get_logger()

READ_CHUNK_SIZE = 64 * 1024  # 64 KB


class LocalFileStorage:
    """Async access to files under the public directory.

    Usage::

        storage = LocalFileStorage(Path("public"), "/static/")
        if storage.is_local_path(lesson.video_url):
            await storage.delete_file(storage.to_relative_path(lesson.video_url))
    """

    def __init__(self, public_dir: Path, static_prefix: str = "/static/") -> None:
        self._public_dir = Path(public_dir).resolve()
        self._static_prefix = static_prefix

    @property
    def public_dir(self) -> Path:
        return self._public_dir

    def is_local_path(self, url: str | None) -> bool:
        """True only for URLs under the static prefix."""
        return url is not None and url.startswith(self._static_prefix)

    def to_relative_path(self, url: str) -> str:
        """Strip the static prefix: ``/static/videos/a.mp4`` -> ``videos/a.mp4``."""
        return url.removeprefix(self._static_prefix)

    def resolve(self, relative_path: str) -> Path:
        """Return the absolute path of a file under the public directory.

        Raises:
            UnsafePathError: If the path is absolute or climbs out of
                the public directory.
        """
        candidate = (self._public_dir / relative_path).resolve()
        if candidate == self._public_dir or not candidate.is_relative_to(
            self._public_dir
        ):
            raise UnsafePathError(relative_path)
        return candidate

    async def file_exists(self, relative_path: str) -> bool:
        try:
            path = self.resolve(relative_path)
        except UnsafePathError:
            return False
        return await anyio.Path(path).is_file()

    async def file_size(self, relative_path: str) -> int:
        stat = await anyio.Path(self.resolve(relative_path)).stat()
        return stat.st_size

    async def read_range(
        self,
        relative_path: str,
        start: int,
        end: int,
        *,
        chunk_size: int = READ_CHUNK_SIZE,
    ) -> AsyncIterator[bytes]:
        """Yield bytes ``start..end`` (inclusive) of a file in chunks."""
        remaining = end - start + 1
        async with await anyio.open_file(self.resolve(relative_path), "rb") as fh:
            await fh.seek(start)
            while remaining > 0:
                data = await fh.read(min(chunk_size, remaining))
                if not data:
                    break
                remaining -= len(data)
                yield data

    async def delete_file(self, relative_path: str) -> None:
        """Delete a file, best-effort.

        A missing file is a no-op with a warning. Any other OS error is
        logged and swallowed; callers never see an exception.
        """
        try:
            path = self.resolve(relative_path)
        except UnsafePathError:
            logger.warning("file_delete_unsafe_path", path=relative_path)
            return

        try:
            await anyio.Path(path).unlink()
        except FileNotFoundError:
            logger.warning("file_delete_missing", path=str(path))
            return
        except OSError as e:
            logger.error("file_delete_failed", path=str(path), error=str(e))
            return

        logger.info("orphan_file_deleted", path=str(path))
