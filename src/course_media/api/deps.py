"""FastAPI dependency injection."""

from __future__ import annotations

from typing import cast

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from course_media.lifecycle import MediaLifecycle
from course_media.storage.database import get_session
from course_media.storage.files import LocalFileStorage
from course_media.storage.repositories import LessonRepository
from course_media.video.service import VideoAccessService
from course_media.video.streaming import LocalVideoStreamer
from course_media.video.tokens import VideoTokenSigner

__all__ = [
    "get_lifecycle",
    "get_session",
    "get_storage",
    "get_video_service",
]

_get_session = Depends(get_session)


async def get_storage(request: Request) -> LocalFileStorage:
    """Retrieve LocalFileStorage from app state.

    Initialized during lifespan startup.
    """
    return cast(LocalFileStorage, request.app.state.storage)


async def get_lifecycle(request: Request) -> MediaLifecycle:
    """Retrieve MediaLifecycle from app state.

    Initialized during lifespan startup.
    """
    return cast(MediaLifecycle, request.app.state.lifecycle)


async def get_video_service(
    request: Request,
    session: AsyncSession = _get_session,
) -> VideoAccessService:
    """Build a per-request VideoAccessService over the request session."""
    state = request.app.state
    return VideoAccessService(
        lessons=LessonRepository(session),
        signer=cast(VideoTokenSigner, state.video_signer),
        streamer=cast(LocalVideoStreamer, state.video_streamer),
        storage=cast(LocalFileStorage, state.storage),
    )
