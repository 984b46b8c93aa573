"""Video streaming API endpoints.

``GET /videos/{lesson_id}/signed-url`` hands out a short-lived URL;
``GET /videos/stream`` serves bytes to whoever holds a valid token for
the requested path. The signed token is the only credential of the
stream endpoint.
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from fastapi.responses import StreamingResponse

from course_media.api.deps import get_video_service
from course_media.api.schemas import SignedUrlResponse
from course_media.errors import (
    InvalidRangeError,
    LessonNotFoundError,
    StreamParametersError,
    VideoAccessDeniedError,
    VideoNotFoundError,
)
from course_media.video.service import VideoAccessService

router = APIRouter(prefix="/videos", tags=["videos"])

VideoServiceDep = Annotated[VideoAccessService, Depends(get_video_service)]


@router.get("/stream")
async def stream_video(
    service: VideoServiceDep,
    path: str | None = Query(default=None, description="Relative video path."),
    token: str | None = Query(default=None, description="Signed video token."),
    range_header: str | None = Header(default=None, alias="range"),
) -> StreamingResponse:
    """Stream a video, whole (200) or as a byte range (206)."""
    try:
        stream = await service.serve_stream(path, token, range_header)
    except StreamParametersError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except VideoAccessDeniedError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    except VideoNotFoundError as e:
        raise HTTPException(status_code=404, detail="Video not found") from e
    except InvalidRangeError as e:
        raise HTTPException(
            status_code=416,
            detail="Requested range not satisfiable",
            headers={"Content-Range": f"bytes */{e.file_size}"},
        ) from e

    return StreamingResponse(
        stream.body,
        status_code=stream.status_code,
        headers=stream.headers,
        media_type=stream.headers["Content-Type"],
    )


@router.get("/{lesson_id}/signed-url")
async def get_signed_url(
    lesson_id: uuid.UUID,
    service: VideoServiceDep,
) -> SignedUrlResponse:
    """Return a temporary URL for the lesson's video."""
    try:
        signed = await service.issue_signed_url(lesson_id)
    except LessonNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    return SignedUrlResponse(url=signed.url, expires=signed.expires)
