"""Byte-range streaming of local video files."""

from __future__ import annotations

import re
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import PurePosixPath

import structlog

from course_media.errors import InvalidRangeError, VideoNotFoundError
from course_media.storage.files import LocalFileStorage

logger = structlog.get_logger()

DEFAULT_CHUNK_BYTES = 1024 * 1024  # 1 MiB
DEFAULT_MIME_TYPE = "video/mp4"

MIME_TYPES: dict[str, str] = {
    ".mp4": "video/mp4",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
}

# Byte offsets are bounded so int() never sees an oversized digit run.
_RANGE_RE = re.compile(r"^bytes=([0-9]{1,18})-([0-9]{0,18})$")


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Inclusive byte range within a file."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True, slots=True)
class VideoStream:
    """Everything the HTTP layer needs to send a (partial) video."""

    body: AsyncIterator[bytes]
    headers: dict[str, str]
    status_code: int


def content_type_for(path: str) -> str:
    """MIME type from the file extension, ``video/mp4`` if unknown."""
    return MIME_TYPES.get(PurePosixPath(path).suffix.lower(), DEFAULT_MIME_TYPE)


def parse_range(
    header: str,
    file_size: int,
    chunk_bytes: int = DEFAULT_CHUNK_BYTES,
) -> ByteRange:
    """Parse a ``Range: bytes=START-END`` header.

    An open end (``bytes=START-``) is capped to a window of
    ``chunk_bytes`` bytes so a client cannot pull the rest of a large
    file in one response. An explicit end past EOF is clamped.

    Args:
        header: Raw Range header value.
        file_size: Size of the file in bytes.
        chunk_bytes: Window size for open-ended ranges.

    Returns:
        The resolved inclusive range.

    Raises:
        InvalidRangeError: Malformed header, suffix range, start beyond
            EOF, or end before start.
    """
    match = _RANGE_RE.match(header.strip())
    if match is None:
        raise InvalidRangeError(header, file_size)

    start = int(match.group(1))
    last_byte = file_size - 1
    if start > last_byte:
        raise InvalidRangeError(header, file_size)

    if match.group(2):
        end = min(int(match.group(2)), last_byte)
    else:
        end = min(start + chunk_bytes - 1, last_byte)

    if end < start:
        raise InvalidRangeError(header, file_size)
    return ByteRange(start=start, end=end)


class LocalVideoStreamer:
    """Serve videos stored under the public directory.

    Supports HTTP range requests so players can seek and buffer
    without downloading the whole file.
    """

    def __init__(
        self,
        storage: LocalFileStorage,
        *,
        chunk_bytes: int = DEFAULT_CHUNK_BYTES,
    ) -> None:
        self._storage = storage
        self._chunk_bytes = chunk_bytes

    async def video_exists(self, relative_path: str) -> bool:
        return await self._storage.file_exists(relative_path)

    async def open_stream(
        self,
        relative_path: str,
        range_header: str | None = None,
    ) -> VideoStream:
        """Build a 200 (whole file) or 206 (range) stream for a video.

        Raises:
            VideoNotFoundError: The file does not exist.
            InvalidRangeError: The Range header cannot be satisfied.
        """
        if not await self._storage.file_exists(relative_path):
            logger.warning("video_not_found", path=relative_path)
            raise VideoNotFoundError(relative_path)

        file_size = await self._storage.file_size(relative_path)
        content_type = content_type_for(relative_path)

        if range_header:
            byte_range = parse_range(range_header, file_size, self._chunk_bytes)
            return VideoStream(
                body=self._storage.read_range(
                    relative_path, byte_range.start, byte_range.end
                ),
                headers={
                    "Content-Range": (
                        f"bytes {byte_range.start}-{byte_range.end}/{file_size}"
                    ),
                    "Accept-Ranges": "bytes",
                    "Content-Length": str(byte_range.length),
                    "Content-Type": content_type,
                },
                status_code=206,
            )

        return VideoStream(
            body=self._storage.read_range(relative_path, 0, file_size - 1),
            headers={
                "Content-Length": str(file_size),
                "Content-Type": content_type,
                "Accept-Ranges": "bytes",
            },
            status_code=200,
        )
