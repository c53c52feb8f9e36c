from __future__ import annotations

from datetime import time
from typing import Optional, Protocol, Sequence

from .model import Lesson, LessonView


class LessonRepository(Protocol):
    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        raise NotImplementedError

    def get_view(self, lesson_id: int) -> Optional[LessonView]:
        raise NotImplementedError

    def list_views(
        self,
        *,
        group_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        title: Optional[str] = None,
        weekday: Optional[int] = None,
        active_only: bool = False,
    ) -> Sequence[LessonView]:
        """Lessons ordered by weekday, then start time.

        ``title`` is a case-insensitive substring filter.
        """

        raise NotImplementedError

    def find_active_on_day(
        self,
        *,
        weekday: int,
        teacher_id: Optional[int] = None,
        group_id: Optional[int] = None,
        exclude_lesson_id: Optional[int] = None,
    ) -> Sequence[LessonView]:
        """Active lessons on ``weekday`` for a teacher or a group, ordered by start time."""

        raise NotImplementedError

    def create_lesson(
        self,
        *,
        group_id: int,
        title: str,
        weekday: int,
        start_time: time,
        end_time: time,
        teacher_id: int,
    ) -> int:
        raise NotImplementedError

    def update_lesson(
        self,
        *,
        lesson_id: int,
        group_id: int,
        title: str,
        weekday: int,
        start_time: time,
        end_time: time,
        teacher_id: int,
        is_active: bool,
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, lesson_id: int) -> bool:
        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError
