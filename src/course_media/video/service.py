"""Signed-URL issuance and token-gated streaming for lesson videos.

Two-step flow:

1. An authenticated client asks for a signed URL for a lesson. External
   videos (video host links) come back unchanged; local ones get a
   ``/videos/stream?path=...&token=...`` URL.
2. The ``<video>`` element requests that URL directly. The token is the
   credential here, since media elements cannot attach auth headers.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol
from urllib.parse import quote

import structlog

from course_media.errors import (
    LessonNotFoundError,
    StreamParametersError,
    VideoAccessDeniedError,
)

if TYPE_CHECKING:
    from course_media.storage.files import LocalFileStorage
    from course_media.storage.orm import Lesson
    from course_media.video.streaming import LocalVideoStreamer, VideoStream
    from course_media.video.tokens import VideoTokenSigner

logger = structlog.get_logger()

STREAM_ENDPOINT = "/videos/stream"


class LessonReader(Protocol):
    async def get_by_id(self, lesson_id: uuid.UUID) -> Lesson | None: ...


@dataclass(frozen=True, slots=True)
class SignedVideoUrl:
    """URL to hand to the player; ``expires`` is 0 for external videos."""

    url: str
    expires: int


def build_stream_url(relative_path: str, token: str) -> str:
    return f"{STREAM_ENDPOINT}?path={quote(relative_path, safe='')}&token={token}"


class VideoAccessService:
    """Mint signed lesson video URLs and serve token-gated streams."""

    def __init__(
        self,
        *,
        lessons: LessonReader,
        signer: VideoTokenSigner,
        streamer: LocalVideoStreamer,
        storage: LocalFileStorage,
    ) -> None:
        self._lessons = lessons
        self._signer = signer
        self._streamer = streamer
        self._storage = storage

    async def issue_signed_url(self, lesson_id: uuid.UUID) -> SignedVideoUrl:
        """Return a playable URL for the lesson's video.

        Raises:
            LessonNotFoundError: No lesson with this id.
        """
        lesson = await self._lessons.get_by_id(lesson_id)
        if lesson is None:
            raise LessonNotFoundError(lesson_id)

        if not self._storage.is_local_path(lesson.video_url):
            return SignedVideoUrl(url=lesson.video_url, expires=0)

        relative_path = self._storage.to_relative_path(lesson.video_url)
        signed = self._signer.issue(relative_path)
        logger.debug(
            "video_url_signed",
            lesson_id=str(lesson_id),
            path=relative_path,
            expires_at_ms=signed.expires_at_ms,
        )
        return SignedVideoUrl(
            url=build_stream_url(relative_path, signed.token),
            expires=signed.expires_at_ms,
        )

    async def serve_stream(
        self,
        path: str | None,
        token: str | None,
        range_header: str | None = None,
    ) -> VideoStream:
        """Verify the token for ``path`` and open the stream.

        Raises:
            StreamParametersError: ``path`` or ``token`` is missing.
            VideoAccessDeniedError: The token is invalid for this path.
            VideoNotFoundError: The file does not exist.
            InvalidRangeError: The Range header cannot be satisfied.
        """
        if not path or not token:
            raise StreamParametersError

        if not self._signer.verify(token, path):
            raise VideoAccessDeniedError

        return await self._streamer.open_stream(path, range_header)
