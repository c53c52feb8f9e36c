from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from typing import Optional

from ..core.constants import WEEKDAY_NAMES
from ..core.enums import ConflictType


@dataclass(frozen=True)
class Lesson:
    lesson_id: int
    group_id: int
    title: str
    weekday: int
    start_time: time
    end_time: time
    teacher_id: int
    is_active: bool = True

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]


@dataclass(frozen=True)
class LessonView:
    """Lesson joined with its group and teacher names (listings, conflicts)."""

    lesson: Lesson
    group_name: str
    teacher_name: str

    def to_dict(self) -> dict:
        lesson = self.lesson
        return {
            "lesson_id": lesson.lesson_id,
            "group_id": lesson.group_id,
            "group_name": self.group_name,
            "title": lesson.title,
            "weekday": lesson.weekday,
            "weekday_name": lesson.weekday_name,
            "start_time": lesson.start_time.strftime("%H:%M"),
            "end_time": lesson.end_time.strftime("%H:%M"),
            "teacher_id": lesson.teacher_id,
            "teacher_name": self.teacher_name,
            "is_active": lesson.is_active,
        }


@dataclass(frozen=True)
class LessonConflict:
    has_conflict: bool
    conflict_type: Optional[ConflictType] = None
    lesson_title: Optional[str] = None
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    counterpart_name: Optional[str] = None

    @property
    def message(self) -> str:
        if not self.has_conflict:
            return ""
        span = f"{self.start_time:%H:%M}-{self.end_time:%H:%M}"
        if self.conflict_type == ConflictType.TEACHER:
            return (
                f"Teacher already teaches '{self.lesson_title}' ({span}) "
                f"for group {self.counterpart_name} at that time"
            )
        return (
            f"Group already has '{self.lesson_title}' ({span}) "
            f"with {self.counterpart_name} at that time"
        )

    def to_dict(self) -> dict:
        if not self.has_conflict:
            return {"has_conflict": False}
        return {
            "has_conflict": True,
            "conflict_type": self.conflict_type.value,
            "lesson_title": self.lesson_title,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "counterpart_name": self.counterpart_name,
            "message": self.message,
        }


NO_CONFLICT = LessonConflict(has_conflict=False)
