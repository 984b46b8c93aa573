"""CLI for minting and checking signed video stream URLs.

Usage::

    uv run python -m scripts.video_token <command> [options]

Commands:
    sign     Print a signed stream URL for a local video path
    verify   Check a token against a video path (exit 1 if rejected)
"""

from __future__ import annotations

import argparse
import sys
from collections.abc import Callable
from datetime import UTC, datetime

from course_media.config import settings
from course_media.video.service import build_stream_url
from course_media.video.tokens import VideoTokenSigner


def get_signer() -> VideoTokenSigner:
    """Build a signer from application settings."""
    return VideoTokenSigner(
        settings.video_signing_secret,
        settings.video_token_ttl_ms,
    )


def _relative(path: str) -> str:
    return path.removeprefix(settings.static_url_prefix)


def sign(args: argparse.Namespace) -> None:
    """Print a stream URL and its expiry."""
    path = _relative(args.path)
    signed = get_signer().issue(path)
    expires = datetime.fromtimestamp(signed.expires_at_ms / 1000, tz=UTC)
    print(build_stream_url(path, signed.token))
    print(f"expires: {expires.isoformat(timespec='seconds')} ({signed.expires_at_ms})")


def verify(args: argparse.Namespace) -> None:
    """Report whether a token is accepted for a path."""
    path = _relative(args.path)
    if get_signer().verify(args.token, path):
        print(f"valid: {path}")
        return
    print(f"rejected: {path}", file=sys.stderr)
    sys.exit(1)


def main() -> None:
    """Parse arguments and dispatch to command handler."""
    parser = argparse.ArgumentParser(description="Signed video URL CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("sign", help="Sign a stream URL for a video")
    p.add_argument("path", help="Video path, e.g. videos/intro.mp4 or /static/...")

    p = sub.add_parser("verify", help="Verify a token for a video")
    p.add_argument("path", help="Video path the token was issued for")
    p.add_argument("token", help="Token in <signature>.<expires_ms> form")

    args = parser.parse_args()
    commands: dict[str, Callable[[argparse.Namespace], None]] = {
        "sign": sign,
        "verify": verify,
    }
    commands[args.command](args)


if __name__ == "__main__":
    main()
