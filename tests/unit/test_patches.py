"""Tests for LessonPatch / CoursePatch."""

from decimal import Decimal
from types import SimpleNamespace

import pytest

from course_media.models import CoursePatch, LessonPatch


class TestPatches:
    def test_empty_patch_has_no_changes(self) -> None:
        assert LessonPatch().changes() == {}

    def test_changes_lists_only_set_fields(self) -> None:
        patch = LessonPatch(title="New", is_live=False)
        assert patch.changes() == {"title": "New", "is_live": False}

    def test_apply_to_leaves_unset_fields(self) -> None:
        """Only set fields are assigned onto the entity."""
        entity = SimpleNamespace(title="Old", video_url="/static/videos/a.mp4")
        LessonPatch(title="New").apply_to(entity)
        assert entity.title == "New"
        assert entity.video_url == "/static/videos/a.mp4"

    def test_course_patch(self) -> None:
        entity = SimpleNamespace(price=Decimal("0"), thumbnail_url=None)
        CoursePatch(price=Decimal("9.50"), thumbnail_url="/static/t.jpg").apply_to(
            entity
        )
        assert entity.price == Decimal("9.50")
        assert entity.thumbnail_url == "/static/t.jpg"

    def test_patch_is_immutable(self) -> None:
        patch = LessonPatch(title="x")
        with pytest.raises(AttributeError):
            patch.title = "y"  # type: ignore[misc]
