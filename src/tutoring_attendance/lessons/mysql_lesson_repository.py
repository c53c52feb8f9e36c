from __future__ import annotations

from datetime import time
from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, normalize_mysql_time
from .model import Lesson, LessonView
from .repository import LessonRepository

_VIEW_SELECT = """
    SELECT
        l.lesson_id, l.group_id, l.title, l.weekday, l.start_time, l.end_time,
        l.teacher_id, l.is_active,
        g.name AS group_name,
        u.full_name AS teacher_name
    FROM lessons l
    JOIN student_groups g ON g.group_id = l.group_id
    JOIN users u ON u.user_id = l.teacher_id
"""


def _to_lesson(r: dict) -> Lesson:
    return Lesson(
        lesson_id=int(r["lesson_id"]),
        group_id=int(r["group_id"]),
        title=r["title"],
        weekday=int(r["weekday"]),
        start_time=normalize_mysql_time(r["start_time"]),
        end_time=normalize_mysql_time(r["end_time"]),
        teacher_id=int(r["teacher_id"]),
        is_active=bool(r.get("is_active", True)),
    )


def _to_view(r: dict) -> LessonView:
    return LessonView(lesson=_to_lesson(r), group_name=r["group_name"], teacher_name=r["teacher_name"])


class MySQLLessonRepository(LessonRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT lesson_id, group_id, title, weekday, start_time, end_time, teacher_id, is_active
                FROM lessons
                WHERE lesson_id=%s
                """,
                (int(lesson_id),),
            )
            r = fetchone(cur)
            return _to_lesson(r) if r else None

    def get_view(self, lesson_id: int) -> Optional[LessonView]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_VIEW_SELECT + " WHERE l.lesson_id=%s", (int(lesson_id),))
            r = fetchone(cur)
            return _to_view(r) if r else None

    def list_views(
        self,
        *,
        group_id: Optional[int] = None,
        teacher_id: Optional[int] = None,
        title: Optional[str] = None,
        weekday: Optional[int] = None,
        active_only: bool = False,
    ) -> Sequence[LessonView]:
        clauses: list[str] = []
        params: list[object] = []
        if group_id is not None:
            clauses.append("l.group_id=%s")
            params.append(int(group_id))
        if teacher_id is not None:
            clauses.append("l.teacher_id=%s")
            params.append(int(teacher_id))
        if title:
            clauses.append("LOWER(l.title) LIKE %s")
            params.append(f"%{title.lower()}%")
        if weekday is not None:
            clauses.append("l.weekday=%s")
            params.append(int(weekday))
        if active_only:
            clauses.append("l.is_active=1")

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_VIEW_SELECT + where + " ORDER BY l.weekday, l.start_time", tuple(params))
            return [_to_view(r) for r in fetchall(cur)]

    def find_active_on_day(
        self,
        *,
        weekday: int,
        teacher_id: Optional[int] = None,
        group_id: Optional[int] = None,
        exclude_lesson_id: Optional[int] = None,
    ) -> Sequence[LessonView]:
        clauses = ["l.weekday=%s", "l.is_active=1"]
        params: list[object] = [int(weekday)]
        if teacher_id is not None:
            clauses.append("l.teacher_id=%s")
            params.append(int(teacher_id))
        if group_id is not None:
            clauses.append("l.group_id=%s")
            params.append(int(group_id))
        if exclude_lesson_id is not None:
            clauses.append("l.lesson_id<>%s")
            params.append(int(exclude_lesson_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                _VIEW_SELECT + f" WHERE {' AND '.join(clauses)} ORDER BY l.start_time, l.lesson_id",
                tuple(params),
            )
            return [_to_view(r) for r in fetchall(cur)]

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO lessons(group_id, title, weekday, start_time, end_time, teacher_id, is_active)
                VALUES(%s,%s,%s,%s,%s,%s,1)
                """,
                (int(group_id), title, int(weekday), start_time, end_time, int(teacher_id)),
            )
            return int(cur.lastrowid)

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
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE lessons
                SET group_id=%s, title=%s, weekday=%s, start_time=%s, end_time=%s, teacher_id=%s, is_active=%s
                WHERE lesson_id=%s
                """,
                (
                    int(group_id),
                    title,
                    int(weekday),
                    start_time,
                    end_time,
                    int(teacher_id),
                    1 if is_active else 0,
                    int(lesson_id),
                ),
            )
            return cur.rowcount > 0

    def delete_by_id(self, lesson_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM lessons WHERE lesson_id=%s", (int(lesson_id),))
            return cur.rowcount > 0

    def count_active(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM lessons WHERE is_active=1")
            return int(fetchone(cur)["n"])
