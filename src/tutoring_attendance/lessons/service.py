from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..common.validators import require_non_empty, require_weekday
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, LessonConflictError, NotFoundError, ValidationError
from ..groups.repository import GroupRepository
from ..users.repository import UserRepository
from .conflicts import LessonConflictChecker
from .model import Lesson, LessonView
from .repository import LessonRepository


class LessonService:
    """Weekly lesson timetable: validation, ownership and overlap checks."""

    def __init__(
        self,
        lessons: LessonRepository,
        groups: GroupRepository,
        users: UserRepository,
        checker: LessonConflictChecker,
    ):
        self._lessons = lessons
        self._groups = groups
        self._users = users
        self._checker = checker

    def list_lessons(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        group_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        title: Optional[str] = None,
        weekday: Optional[int] = None,
    ) -> Sequence[LessonView]:
        """Active lessons; teachers only ever see their own."""
        if current_role != Role.ADMIN:
            teacher_id = current_user_id
        if weekday is not None:
            weekday = require_weekday(weekday)
        return self._lessons.list_views(
            group_id=group_id,
            teacher_id=teacher_id,
            title=(title or "").strip() or None,
            weekday=weekday,
            active_only=True,
        )

    def get_lesson(self, lesson_id: int) -> LessonView:
        view = self._lessons.get_view(int(lesson_id))
        if not view:
            raise NotFoundError("Lesson not found")
        return view

    def create_lesson(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        group_id: int,
        title: str,
        weekday: int,
        start_time: time,
        end_time: time,
        teacher_id: Optional[int] = None,
    ) -> int:
        # Teachers can only schedule themselves.
        if current_role != Role.ADMIN or teacher_id is None:
            teacher_id = current_user_id

        title, weekday = self._validate(
            group_id=group_id, title=title, weekday=weekday, start_time=start_time, end_time=end_time,
            teacher_id=teacher_id,
        )

        conflict = self._checker.check(int(teacher_id), int(group_id), weekday, start_time, end_time)
        if conflict.has_conflict:
            raise LessonConflictError(conflict)

        return self._lessons.create_lesson(
            group_id=int(group_id),
            title=title,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            teacher_id=int(teacher_id),
        )

    def update_lesson(
        self,
        *,
        current_user_id: int,
        current_role: Role,
        lesson_id: int,
        group_id: int,
        title: str,
        weekday: int,
        start_time: time,
        end_time: time,
        teacher_id: Optional[int] = None,
        is_active: bool = True,
    ) -> None:
        existing = self._get_owned(lesson_id, current_user_id=current_user_id, current_role=current_role)
        if current_role != Role.ADMIN or teacher_id is None:
            teacher_id = existing.teacher_id

        title, weekday = self._validate(
            group_id=group_id, title=title, weekday=weekday, start_time=start_time, end_time=end_time,
            teacher_id=teacher_id,
        )

        # An inactive lesson never clashes with anything.
        if is_active:
            conflict = self._checker.check(
                int(teacher_id), int(group_id), weekday, start_time, end_time, exclude_lesson_id=existing.lesson_id
            )
            if conflict.has_conflict:
                raise LessonConflictError(conflict)

        if not self._lessons.update_lesson(
            lesson_id=existing.lesson_id,
            group_id=int(group_id),
            title=title,
            weekday=weekday,
            start_time=start_time,
            end_time=end_time,
            teacher_id=int(teacher_id),
            is_active=is_active,
        ):
            raise NotFoundError("Lesson not found")

    def delete_lesson(self, *, current_user_id: int, current_role: Role, lesson_id: int) -> None:
        existing = self._get_owned(lesson_id, current_user_id=current_user_id, current_role=current_role)
        if not self._lessons.delete_by_id(existing.lesson_id):
            raise NotFoundError("Lesson not found")

    def _get_owned(self, lesson_id: int, *, current_user_id: int, current_role: Role) -> Lesson:
        lesson = self._lessons.get_by_id(int(lesson_id))
        if not lesson:
            raise NotFoundError("Lesson not found")
        if current_role != Role.ADMIN and lesson.teacher_id != int(current_user_id):
            raise AuthorizationError("You can only manage your own lessons")
        return lesson

    def _validate(
        self,
        *,
        group_id: int,
        title: str,
        weekday: int,
        start_time: time,
        end_time: time,
        teacher_id: int,
    ) -> tuple[str, int]:
        title = require_non_empty(title, "Title")
        weekday = require_weekday(weekday)
        if start_time is None or end_time is None:
            raise ValidationError("Start and end time are required")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")
        if not self._groups.get_by_id(int(group_id)):
            raise ValidationError("Group not found")
        teacher = self._users.get_by_id(int(teacher_id))
        if not teacher or not teacher.is_active:
            raise ValidationError("Teacher not found")
        return title, weekday
