"""Typed partial updates for courses and lessons.

A patch lists every mutable field as optional; ``None`` means
"leave unchanged". ``apply_to`` copies only the fields that are set.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any


@dataclass(frozen=True, slots=True)
class _Patch:
    def changes(self) -> dict[str, Any]:
        """Return the set fields as a ``{name: value}`` dict."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not None
        }

    def apply_to(self, entity: object) -> None:
        """Assign every set field onto ``entity``."""
        for name, value in self.changes().items():
            setattr(entity, name, value)


@dataclass(frozen=True, slots=True)
class LessonPatch(_Patch):
    title: str | None = None
    description: str | None = None
    duration: str | None = None
    video_url: str | None = None
    is_live: bool | None = None


@dataclass(frozen=True, slots=True)
class CoursePatch(_Patch):
    title: str | None = None
    description: str | None = None
    price: Decimal | None = None
    thumbnail_url: str | None = None
