"""Tests for course and lesson mutation endpoints."""

import uuid
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from course_media.api.app import app
from course_media.api.deps import get_lifecycle
from course_media.errors import (
    CourseNotFoundError,
    LessonNotFoundError,
    LessonOrderError,
)
from course_media.models import CoursePatch, LessonPatch


@pytest.fixture()
def lifecycle() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
async def client(lifecycle: AsyncMock) -> AsyncGenerator[AsyncClient]:
    app.dependency_overrides[get_lifecycle] = lambda: lifecycle
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


def _lesson(course_id: uuid.UUID, **overrides: object) -> SimpleNamespace:
    fields: dict[str, object] = {
        "id": uuid.uuid4(),
        "course_id": course_id,
        "title": "Intro",
        "description": "",
        "duration": "10:00",
        "video_url": "/static/videos/y.mp4",
        "order": 0,
        "is_live": False,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


def _course(**overrides: object) -> SimpleNamespace:
    now = datetime.now(UTC)
    fields: dict[str, object] = {
        "id": uuid.uuid4(),
        "title": "Python",
        "description": "",
        "price": Decimal("10.00"),
        "thumbnail_url": "/static/thumbnails/t2.jpg",
        "created_at": now,
        "updated_at": now,
    }
    fields.update(overrides)
    return SimpleNamespace(**fields)


class TestUpdateLesson:
    async def test_patch_passes_only_sent_fields(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        course_id = uuid.uuid4()
        lesson = _lesson(course_id)
        lifecycle.update_lesson.return_value = lesson

        response = await client.patch(
            f"/api/v1/courses/{course_id}/lessons/{lesson.id}",
            json={"video_url": "/static/videos/y.mp4"},
        )

        assert response.status_code == 200
        assert response.json()["video_url"] == "/static/videos/y.mp4"
        lifecycle.update_lesson.assert_awaited_once_with(
            lesson.id,
            LessonPatch(video_url="/static/videos/y.mp4"),
            course_id=course_id,
        )

    async def test_unknown_lesson(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        lesson_id = uuid.uuid4()
        lifecycle.update_lesson.side_effect = LessonNotFoundError(lesson_id)

        response = await client.patch(
            f"/api/v1/courses/{uuid.uuid4()}/lessons/{lesson_id}",
            json={"title": "x"},
        )

        assert response.status_code == 404

    async def test_empty_title_rejected(self, client: AsyncClient) -> None:
        response = await client.patch(
            f"/api/v1/courses/{uuid.uuid4()}/lessons/{uuid.uuid4()}",
            json={"title": ""},
        )
        assert response.status_code == 422


class TestRemoveLesson:
    async def test_returns_204(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        course_id, lesson_id = uuid.uuid4(), uuid.uuid4()

        response = await client.delete(
            f"/api/v1/courses/{course_id}/lessons/{lesson_id}"
        )

        assert response.status_code == 204
        lifecycle.remove_lesson.assert_awaited_once_with(
            lesson_id, course_id=course_id
        )

    async def test_unknown_lesson(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        lesson_id = uuid.uuid4()
        lifecycle.remove_lesson.side_effect = LessonNotFoundError(lesson_id)
        response = await client.delete(
            f"/api/v1/courses/{uuid.uuid4()}/lessons/{lesson_id}"
        )
        assert response.status_code == 404


class TestReorderLessons:
    async def test_reorder(self, client: AsyncClient, lifecycle: AsyncMock) -> None:
        course_id = uuid.uuid4()
        ids = [uuid.uuid4(), uuid.uuid4()]

        response = await client.patch(
            f"/api/v1/courses/{course_id}/lessons/reorder",
            json={"lesson_ids": [str(i) for i in ids]},
        )

        assert response.status_code == 204
        lifecycle.reorder_lessons.assert_awaited_once_with(course_id, ids)

    async def test_invalid_order(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        lifecycle.reorder_lessons.side_effect = LessonOrderError("bad order")
        response = await client.patch(
            f"/api/v1/courses/{uuid.uuid4()}/lessons/reorder",
            json={"lesson_ids": [str(uuid.uuid4())]},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "bad order"

    async def test_empty_list_rejected(self, client: AsyncClient) -> None:
        response = await client.patch(
            f"/api/v1/courses/{uuid.uuid4()}/lessons/reorder",
            json={"lesson_ids": []},
        )
        assert response.status_code == 422


class TestCourses:
    async def test_update_course(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        course = _course()
        lifecycle.update_course.return_value = course

        response = await client.patch(
            f"/api/v1/courses/{course.id}",
            json={"thumbnail_url": "/static/thumbnails/t2.jpg"},
        )

        assert response.status_code == 200
        assert response.json()["thumbnail_url"] == "/static/thumbnails/t2.jpg"
        lifecycle.update_course.assert_awaited_once_with(
            course.id, CoursePatch(thumbnail_url="/static/thumbnails/t2.jpg")
        )

    async def test_negative_price_rejected(self, client: AsyncClient) -> None:
        response = await client.patch(
            f"/api/v1/courses/{uuid.uuid4()}", json={"price": "-1"}
        )
        assert response.status_code == 422

    async def test_delete_course(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        course_id = uuid.uuid4()
        response = await client.delete(f"/api/v1/courses/{course_id}")
        assert response.status_code == 204
        lifecycle.delete_course.assert_awaited_once_with(course_id)

    async def test_delete_unknown_course(
        self, client: AsyncClient, lifecycle: AsyncMock
    ) -> None:
        course_id = uuid.uuid4()
        lifecycle.delete_course.side_effect = CourseNotFoundError(course_id)
        response = await client.delete(f"/api/v1/courses/{course_id}")
        assert response.status_code == 404
