from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

from ..common.validators import optional_text, require_non_empty
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..lessons.model import LessonView
from ..lessons.repository import LessonRepository
from ..users.repository import UserRepository
from .model import Group, Student
from .repository import GroupRepository, StudentRepository


@dataclass(frozen=True)
class GroupDetail:
    group: Group
    students: Sequence[Student]
    lessons: Sequence[LessonView]


@dataclass(frozen=True)
class SidebarEntry:
    group: Group
    lessons: Sequence[LessonView]


@dataclass(frozen=True)
class DashboardCounts:
    groups: int
    active_students: int
    active_lessons: int
    active_users: int

    def to_dict(self) -> dict:
        return {
            "groups": self.groups,
            "active_students": self.active_students,
            "active_lessons": self.active_lessons,
            "active_users": self.active_users,
        }


def _require_admin(current_role: Role) -> None:
    if current_role != Role.ADMIN:
        raise AuthorizationError("You do not have permission")


class GroupService:
    def __init__(
        self,
        groups: GroupRepository,
        students: StudentRepository,
        lessons: LessonRepository,
        users: UserRepository,
    ):
        self._groups = groups
        self._students = students
        self._lessons = lessons
        self._users = users

    def list_groups(self) -> Sequence[Group]:
        return self._groups.list_all()

    def get_group_detail(self, group_id: int) -> GroupDetail:
        group = self._groups.get_by_id(int(group_id))
        if not group:
            raise NotFoundError("Group not found")
        return GroupDetail(
            group=group,
            students=self._students.list_for_group(group.group_id, active_only=False),
            lessons=self._lessons.list_views(group_id=group.group_id),
        )

    def sidebar(self) -> list[SidebarEntry]:
        """Every group with its active lessons ordered by weekday and start time."""
        by_group: dict[int, list[LessonView]] = {}
        for view in self._lessons.list_views(active_only=True):
            by_group.setdefault(view.lesson.group_id, []).append(view)
        return [SidebarEntry(group=g, lessons=by_group.get(g.group_id, [])) for g in self._groups.list_all()]

    def dashboard_counts(self, *, current_role: Role) -> DashboardCounts:
        _require_admin(current_role)
        return DashboardCounts(
            groups=self._groups.count_all(),
            active_students=self._students.count_active(),
            active_lessons=self._lessons.count_active(),
            active_users=self._users.count_active(),
        )

    def create_group(
        self, *, current_role: Role, name: str, code: str, description: Optional[str] = None
    ) -> int:
        _require_admin(current_role)
        name = require_non_empty(name, "Group name")
        code = require_non_empty(code, "Group code")
        return self._groups.create_group(name=name, code=code, description=optional_text(description))

    def delete_group(self, *, current_role: Role, group_id: int) -> None:
        _require_admin(current_role)
        if not self._groups.delete_by_id(int(group_id)):
            raise NotFoundError("Group not found")

    def add_student(
        self,
        *,
        current_role: Role,
        group_id: int,
        first_name: str,
        last_name: str,
        student_number: str,
        phone: Optional[str] = None,
    ) -> int:
        _require_admin(current_role)
        first_name = require_non_empty(first_name, "First name")
        last_name = require_non_empty(last_name, "Last name")
        student_number = require_non_empty(student_number, "Student number")

        if not self._groups.get_by_id(int(group_id)):
            raise NotFoundError("Group not found")
        if self._students.get_by_number(student_number):
            raise ValidationError("Student number already exists")

        return self._students.create_student(
            first_name=first_name,
            last_name=last_name,
            student_number=student_number,
            group_id=int(group_id),
            phone=optional_text(phone),
        )

    def set_student_active(self, *, current_role: Role, student_id: int, is_active: bool) -> None:
        _require_admin(current_role)
        if not self._students.set_active(int(student_id), is_active=is_active):
            raise NotFoundError("Student not found")
