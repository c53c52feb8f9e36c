from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Optional, Sequence

from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from ..core.enums import AttendanceStatus, SessionStatus
from ..core.exceptions import ConcurrencyConflictError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import (
    AbsenceRow,
    AttendanceRecord,
    AttendanceSession,
    RecordExportRow,
    SessionSummary,
    StudentHistoryRow,
)
from .repository import AttendanceBatch, AttendanceRepository

_SESSION_COLUMNS = "session_id, lesson_id, group_id, teacher_id, scheduled_at, status, created_at, ended_at"
_RECORD_COLUMNS = (
    "record_id, session_id, student_id, status, late_minutes, note, marked_at, marked_by, row_version"
)

_SUMMARY_SELECT = """
    SELECT
        s.session_id, s.lesson_id, s.group_id, s.teacher_id, s.scheduled_at, s.status, s.created_at, s.ended_at,
        l.title AS lesson_title,
        g.name AS group_name,
        g.code AS group_code,
        u.full_name AS teacher_name
    FROM attendance_sessions s
    JOIN lessons l ON l.lesson_id = s.lesson_id
    JOIN student_groups g ON g.group_id = s.group_id
    JOIN users u ON u.user_id = s.teacher_id
"""


def _to_session(r: dict) -> AttendanceSession:
    return AttendanceSession(
        session_id=int(r["session_id"]),
        lesson_id=int(r["lesson_id"]),
        group_id=int(r["group_id"]),
        teacher_id=int(r["teacher_id"]),
        scheduled_at=r["scheduled_at"],
        status=SessionStatus(r["status"]),
        created_at=r["created_at"],
        ended_at=r.get("ended_at"),
    )


def _to_summary(r: dict) -> SessionSummary:
    return SessionSummary(
        session=_to_session(r),
        lesson_title=r["lesson_title"],
        group_name=r["group_name"],
        group_code=r["group_code"],
        teacher_name=r["teacher_name"],
    )


def _to_record(r: dict) -> AttendanceRecord:
    late = r.get("late_minutes")
    return AttendanceRecord(
        record_id=int(r["record_id"]),
        session_id=int(r["session_id"]),
        student_id=int(r["student_id"]),
        status=AttendanceStatus(r["status"]),
        late_minutes=int(late) if late is not None else None,
        note=r.get("note"),
        marked_at=r["marked_at"],
        marked_by=int(r["marked_by"]),
        row_version=int(r["row_version"]),
    )


class _MySQLAttendanceBatch(AttendanceBatch):
    def __init__(self, cur):
        self._cur = cur

    def lock_session(self, session_id: int) -> Optional[AttendanceSession]:
        self._cur.execute(
            f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE session_id=%s FOR UPDATE",
            (int(session_id),),
        )
        r = fetchone(self._cur)
        return _to_session(r) if r else None

    def student_group_id(self, student_id: int) -> Optional[int]:
        self._cur.execute("SELECT group_id FROM students WHERE student_id=%s", (int(student_id),))
        r = fetchone(self._cur)
        return int(r["group_id"]) if r else None

    def find_record(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        self._cur.execute(
            f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE session_id=%s AND student_id=%s",
            (int(session_id), int(student_id)),
        )
        r = fetchone(self._cur)
        return _to_record(r) if r else None

    def insert_record(
        self,
        *,
        session_id: int,
        student_id: int,
        status: AttendanceStatus,
        late_minutes: Optional[int],
        note: Optional[str],
        marked_at: datetime,
        marked_by: int,
    ) -> int:
        try:
            self._cur.execute(
                """
                INSERT INTO attendance_records(
                    session_id, student_id, status, late_minutes, note, marked_at, marked_by, row_version
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,1)
                """,
                (int(session_id), int(student_id), status.value, late_minutes, note, marked_at, int(marked_by)),
            )
        except IntegrityError as e:
            if e.errno == errorcode.ER_DUP_ENTRY:
                raise ConcurrencyConflictError(
                    "Attendance for this student was recorded by someone else; reload and try again"
                ) from e
            raise
        return int(self._cur.lastrowid)

    def update_record(
        self,
        *,
        record_id: int,
        expected_version: int,
        status: AttendanceStatus,
        late_minutes: Optional[int],
        note: Optional[str],
        marked_at: datetime,
        marked_by: int,
    ) -> bool:
        self._cur.execute(
            """
            UPDATE attendance_records
            SET status=%s, late_minutes=%s, note=%s, marked_at=%s, marked_by=%s, row_version=row_version+1
            WHERE record_id=%s AND row_version=%s
            """,
            (status.value, late_minutes, note, marked_at, int(marked_by), int(record_id), int(expected_version)),
        )
        return self._cur.rowcount > 0


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_SESSION_COLUMNS} FROM attendance_sessions WHERE session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_session(r) if r else None

    def get_session_summary(self, session_id: int) -> Optional[SessionSummary]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SUMMARY_SELECT + " WHERE s.session_id=%s", (int(session_id),))
            r = fetchone(cur)
            return _to_summary(r) if r else None

    def find_session(self, lesson_id: int, scheduled_at: datetime) -> Optional[AttendanceSession]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_SESSION_COLUMNS}
                FROM attendance_sessions
                WHERE lesson_id=%s AND scheduled_at=%s
                ORDER BY session_id
                LIMIT 1
                """,
                (int(lesson_id), scheduled_at),
            )
            r = fetchone(cur)
            return _to_session(r) if r else None

    def create_session(
        self,
        *,
        lesson_id: int,
        group_id: int,
        teacher_id: int,
        scheduled_at: datetime,
        created_at: datetime,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO attendance_sessions(lesson_id, group_id, teacher_id, scheduled_at, status, created_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (int(lesson_id), int(group_id), int(teacher_id), scheduled_at, SessionStatus.OPEN.value, created_at),
            )
            return int(cur.lastrowid)

    def finalize_session(self, session_id: int, *, ended_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_sessions
                SET status=%s, ended_at=%s
                WHERE session_id=%s AND status<>%s
                """,
                (SessionStatus.FINALIZED.value, ended_at, int(session_id), SessionStatus.FINALIZED.value),
            )
            return cur.rowcount > 0

    def list_sessions(
        self,
        *,
        teacher_id: Optional[int] = None,
        group_id: Optional[int] = None,
        finalized: Optional[bool] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[SessionSummary]:
        clauses: list[str] = []
        params: list[object] = []
        if teacher_id is not None:
            clauses.append("s.teacher_id=%s")
            params.append(int(teacher_id))
        if group_id is not None:
            clauses.append("s.group_id=%s")
            params.append(int(group_id))
        if finalized is True:
            clauses.append("s.status=%s")
            params.append(SessionStatus.FINALIZED.value)
        elif finalized is False:
            clauses.append("s.status<>%s")
            params.append(SessionStatus.FINALIZED.value)
        if start is not None:
            clauses.append("s.scheduled_at>=%s")
            params.append(start)
        if end is not None:
            clauses.append("s.scheduled_at<%s")
            params.append(end)

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(_SUMMARY_SELECT + where + " ORDER BY s.scheduled_at DESC, s.session_id DESC", tuple(params))
            return [_to_summary(r) for r in fetchall(cur)]

    def records_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_RECORD_COLUMNS} FROM attendance_records WHERE session_id=%s ORDER BY record_id",
                (int(session_id),),
            )
            return [_to_record(r) for r in fetchall(cur)]

    @contextmanager
    def record_batch(self) -> Iterator[AttendanceBatch]:
        with db_cursor(self._conn_factory) as (_, cur):
            yield _MySQLAttendanceBatch(cur)

    def export_rows(self, session_id: int) -> Sequence[RecordExportRow]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT st.student_number, st.first_name, st.last_name,
                       r.status, r.late_minutes, r.note, r.marked_at
                FROM attendance_records r
                JOIN students st ON st.student_id = r.student_id
                WHERE r.session_id=%s
                ORDER BY st.student_number
                """,
                (int(session_id),),
            )
            return [
                RecordExportRow(
                    student_number=r["student_number"],
                    first_name=r["first_name"],
                    last_name=r["last_name"],
                    status=AttendanceStatus(r["status"]),
                    late_minutes=int(r["late_minutes"]) if r.get("late_minutes") is not None else None,
                    note=r.get("note"),
                    marked_at=r["marked_at"],
                )
                for r in fetchall(cur)
            ]

    def student_history(
        self, *, start: datetime, end: datetime, student_id: Optional[int] = None, group_id: Optional[int] = None
    ) -> Sequence[StudentHistoryRow]:
        clauses = ["s.scheduled_at>=%s", "s.scheduled_at<%s"]
        params: list[object] = [start, end]
        if student_id is not None:
            clauses.append("r.student_id=%s")
            params.append(int(student_id))
        if group_id is not None:
            clauses.append("st.group_id=%s")
            params.append(int(group_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT r.student_id, r.session_id, s.scheduled_at, l.title AS lesson_title,
                       r.status, r.late_minutes, r.note
                FROM attendance_records r
                JOIN attendance_sessions s ON s.session_id = r.session_id
                JOIN lessons l ON l.lesson_id = s.lesson_id
                JOIN students st ON st.student_id = r.student_id
                WHERE {' AND '.join(clauses)}
                ORDER BY s.scheduled_at DESC, r.record_id DESC
                """,
                tuple(params),
            )
            return [
                StudentHistoryRow(
                    student_id=int(r["student_id"]),
                    session_id=int(r["session_id"]),
                    scheduled_at=r["scheduled_at"],
                    lesson_title=r["lesson_title"],
                    status=AttendanceStatus(r["status"]),
                    late_minutes=int(r["late_minutes"]) if r.get("late_minutes") is not None else None,
                    note=r.get("note"),
                )
                for r in fetchall(cur)
            ]

    def finalized_absences(self, *, group_id: Optional[int] = None) -> Sequence[AbsenceRow]:
        clauses = ["r.status=%s", "s.status=%s"]
        params: list[object] = [AttendanceStatus.ABSENT.value, SessionStatus.FINALIZED.value]
        if group_id is not None:
            clauses.append("l.group_id=%s")
            params.append(int(group_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT r.record_id, st.student_id, st.first_name, st.last_name, st.student_number, st.phone,
                       g.group_id, g.name AS group_name, l.title AS lesson_title, s.scheduled_at
                FROM attendance_records r
                JOIN attendance_sessions s ON s.session_id = r.session_id
                JOIN lessons l ON l.lesson_id = s.lesson_id
                JOIN student_groups g ON g.group_id = l.group_id
                JOIN students st ON st.student_id = r.student_id
                WHERE {' AND '.join(clauses)}
                ORDER BY s.scheduled_at DESC, r.record_id DESC
                """,
                tuple(params),
            )
            return [
                AbsenceRow(
                    record_id=int(r["record_id"]),
                    student_id=int(r["student_id"]),
                    student_name=f"{r['first_name']} {r['last_name']}",
                    student_number=r["student_number"],
                    phone=r.get("phone"),
                    group_id=int(r["group_id"]),
                    group_name=r["group_name"],
                    lesson_title=r["lesson_title"],
                    scheduled_at=r["scheduled_at"],
                )
                for r in fetchall(cur)
            ]
