"""Shared pytest fixtures."""

from collections.abc import Callable
from pathlib import Path

import pytest

from course_media.storage.files import LocalFileStorage


@pytest.fixture()
def public_dir(tmp_path: Path) -> Path:
    """Empty public directory with ``videos/`` and ``thumbnails/``."""
    root = tmp_path / "public"
    (root / "videos").mkdir(parents=True)
    (root / "thumbnails").mkdir()
    return root


@pytest.fixture()
def storage(public_dir: Path) -> LocalFileStorage:
    return LocalFileStorage(public_dir, "/static/")


@pytest.fixture()
def make_file(public_dir: Path) -> Callable[..., Path]:
    """Factory creating a file under the public directory."""

    def _make(relative_path: str, data: bytes = b"\x00" * 16) -> Path:
        path = public_dir / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    return _make
