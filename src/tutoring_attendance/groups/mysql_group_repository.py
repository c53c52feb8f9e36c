from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Group, Student
from .repository import GroupRepository, StudentRepository


def _to_group(r: dict) -> Group:
    return Group(
        group_id=int(r["group_id"]),
        name=r["name"],
        code=r["code"],
        description=r.get("description"),
        created_at=r.get("created_at"),
    )


def _to_student(r: dict) -> Student:
    return Student(
        student_id=int(r["student_id"]),
        first_name=r["first_name"],
        last_name=r["last_name"],
        student_number=r["student_number"],
        group_id=int(r["group_id"]),
        phone=r.get("phone"),
        is_active=bool(r.get("is_active", True)),
        created_at=r.get("created_at"),
    )


class MySQLGroupRepository(GroupRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, group_id: int) -> Optional[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT group_id, name, code, description, created_at FROM student_groups WHERE group_id=%s",
                (int(group_id),),
            )
            r = fetchone(cur)
            return _to_group(r) if r else None

    def list_all(self) -> Sequence[Group]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT group_id, name, code, description, created_at FROM student_groups ORDER BY name")
            return [_to_group(r) for r in fetchall(cur)]

    def create_group(self, *, name: str, code: str, description: Optional[str] = None) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO student_groups(name, code, description) VALUES(%s,%s,%s)",
                (name, code, description),
            )
            return int(cur.lastrowid)

    def delete_by_id(self, group_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM student_groups WHERE group_id=%s", (int(group_id),))
            return cur.rowcount > 0

    def count_all(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM student_groups")
            return int(fetchone(cur)["n"])


class MySQLStudentRepository(StudentRepository):
    _COLUMNS = "student_id, first_name, last_name, student_number, group_id, phone, is_active, created_at"

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {self._COLUMNS} FROM students WHERE student_id=%s", (int(student_id),))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def get_by_number(self, student_number: str) -> Optional[Student]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {self._COLUMNS} FROM students WHERE student_number=%s", (student_number,))
            r = fetchone(cur)
            return _to_student(r) if r else None

    def list_for_group(self, group_id: int, *, active_only: bool = True) -> Sequence[Student]:
        where = "group_id=%s AND is_active=1" if active_only else "group_id=%s"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {self._COLUMNS} FROM students WHERE {where} ORDER BY last_name, first_name",
                (int(group_id),),
            )
            return [_to_student(r) for r in fetchall(cur)]

    def create_student(
        self,
        *,
        first_name: str,
        last_name: str,
        student_number: str,
        group_id: int,
        phone: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO students(first_name, last_name, student_number, group_id, phone)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (first_name, last_name, student_number, int(group_id), phone),
            )
            return int(cur.lastrowid)

    def set_active(self, student_id: int, *, is_active: bool) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE students SET is_active=%s WHERE student_id=%s",
                (1 if is_active else 0, int(student_id)),
            )
            return cur.rowcount > 0

    def count_active(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM students WHERE is_active=1")
            return int(fetchone(cur)["n"])
