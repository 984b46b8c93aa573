"""Signed video tokens and byte-range streaming."""

from course_media.video.service import SignedVideoUrl, VideoAccessService
from course_media.video.streaming import LocalVideoStreamer, VideoStream
from course_media.video.tokens import SignedToken, VideoTokenSigner

__all__ = [
    "LocalVideoStreamer",
    "SignedToken",
    "SignedVideoUrl",
    "VideoAccessService",
    "VideoStream",
    "VideoTokenSigner",
]
