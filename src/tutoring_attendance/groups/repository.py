from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import Group, Student


class GroupRepository(Protocol):
    def get_by_id(self, group_id: int) -> Optional[Group]:
        raise NotImplementedError

    def list_all(self) -> Sequence[Group]:
        raise NotImplementedError

    def create_group(self, *, name: str, code: str, description: Optional[str] = None) -> int:
        raise NotImplementedError

    def delete_by_id(self, group_id: int) -> bool:
        """Delete a group; its students and lessons go with it."""

        raise NotImplementedError

    def count_all(self) -> int:
        raise NotImplementedError


class StudentRepository(Protocol):
    def get_by_id(self, student_id: int) -> Optional[Student]:
        raise NotImplementedError

    def get_by_number(self, student_number: str) -> Optional[Student]:
        raise NotImplementedError

    def list_for_group(self, group_id: int, *, active_only: bool = True) -> Sequence[Student]:
        """Students of a group ordered by last name, then first name."""

        raise NotImplementedError

    def create_student(
        self,
        *,
        first_name: str,
        last_name: str,
        student_number: str,
        group_id: int,
        phone: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def set_active(self, student_id: int, *, is_active: bool) -> bool:
        raise NotImplementedError

    def count_active(self) -> int:
        raise NotImplementedError
