"""Weekly schedule overlap detection.

Lessons repeat every week on a fixed ISO weekday, so two lessons can only clash
when they share a weekday. Intervals are half-open: a lesson ending at 08:45
does not clash with one starting at 08:45.
"""

from __future__ import annotations

from datetime import time
from typing import Iterable, Optional

from ..core.enums import ConflictType
from .model import NO_CONFLICT, LessonConflict, LessonView
from .repository import LessonRepository


def intervals_overlap(a_start: time, a_end: time, b_start: time, b_end: time) -> bool:
    return a_start < b_end and b_start < a_end


def find_overlap(candidates: Iterable[LessonView], start: time, end: time) -> Optional[LessonView]:
    """First candidate (in iteration order) whose time range overlaps [start, end)."""
    for candidate in candidates:
        lesson = candidate.lesson
        if intervals_overlap(start, end, lesson.start_time, lesson.end_time):
            return candidate
    return None


class LessonConflictChecker:
    def __init__(self, lessons: LessonRepository):
        self._lessons = lessons

    def check_teacher(
        self,
        teacher_id: int,
        weekday: int,
        start: time,
        end: time,
        exclude_lesson_id: Optional[int] = None,
    ) -> LessonConflict:
        candidates = self._lessons.find_active_on_day(
            weekday=weekday, teacher_id=teacher_id, exclude_lesson_id=exclude_lesson_id
        )
        hit = find_overlap(candidates, start, end)
        if hit is None:
            return NO_CONFLICT
        return LessonConflict(
            has_conflict=True,
            conflict_type=ConflictType.TEACHER,
            lesson_title=hit.lesson.title,
            start_time=hit.lesson.start_time,
            end_time=hit.lesson.end_time,
            counterpart_name=hit.group_name,
        )

    def check_group(
        self,
        group_id: int,
        weekday: int,
        start: time,
        end: time,
        exclude_lesson_id: Optional[int] = None,
    ) -> LessonConflict:
        candidates = self._lessons.find_active_on_day(
            weekday=weekday, group_id=group_id, exclude_lesson_id=exclude_lesson_id
        )
        hit = find_overlap(candidates, start, end)
        if hit is None:
            return NO_CONFLICT
        return LessonConflict(
            has_conflict=True,
            conflict_type=ConflictType.GROUP,
            lesson_title=hit.lesson.title,
            start_time=hit.lesson.start_time,
            end_time=hit.lesson.end_time,
            counterpart_name=hit.teacher_name,
        )

    def check(
        self,
        teacher_id: int,
        group_id: int,
        weekday: int,
        start: time,
        end: time,
        exclude_lesson_id: Optional[int] = None,
    ) -> LessonConflict:
        """Teacher clash is reported before a group clash."""
        conflict = self.check_teacher(teacher_id, weekday, start, end, exclude_lesson_id)
        if conflict.has_conflict:
            return conflict
        return self.check_group(group_id, weekday, start, end, exclude_lesson_id)
