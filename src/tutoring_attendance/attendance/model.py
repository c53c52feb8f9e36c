from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Sequence

from ..core.enums import AttendanceStatus, SessionStatus


@dataclass(frozen=True)
class AttendanceSession:
    """One concrete occurrence of a lesson; group and teacher are snapshotted on creation."""

    session_id: int
    lesson_id: int
    group_id: int
    teacher_id: int
    scheduled_at: datetime
    status: SessionStatus
    created_at: datetime
    ended_at: Optional[datetime] = None

    @property
    def is_finalized(self) -> bool:
        return self.status == SessionStatus.FINALIZED


@dataclass(frozen=True)
class AttendanceRecord:
    record_id: int
    session_id: int
    student_id: int
    status: AttendanceStatus
    marked_at: datetime
    marked_by: int
    row_version: int
    late_minutes: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class StudentMark:
    """Input for one student on the marking screen.

    ``row_version`` is the token the caller read with the record; leave it
    empty only when the student has no record yet.
    """

    student_id: int
    status: AttendanceStatus
    late_minutes: Optional[int] = None
    note: Optional[str] = None
    row_version: Optional[int] = None


@dataclass(frozen=True)
class SessionSummary:
    """Read-model for session listings."""

    session: AttendanceSession
    lesson_title: str
    group_name: str
    group_code: str
    teacher_name: str

    def to_dict(self) -> dict:
        s = self.session
        return {
            "session_id": s.session_id,
            "lesson_id": s.lesson_id,
            "lesson_title": self.lesson_title,
            "group_id": s.group_id,
            "group_name": self.group_name,
            "teacher_id": s.teacher_id,
            "teacher_name": self.teacher_name,
            "scheduled_at": s.scheduled_at.isoformat(timespec="minutes"),
            "status": s.status.value,
            "ended_at": s.ended_at.isoformat(timespec="minutes") if s.ended_at else None,
        }


@dataclass(frozen=True)
class SheetRow:
    student_id: int
    student_number: str
    full_name: str
    status: AttendanceStatus = AttendanceStatus.PRESENT
    late_minutes: Optional[int] = None
    note: Optional[str] = None
    row_version: Optional[int] = None


@dataclass(frozen=True)
class SessionSheet:
    """Everything the marking screen needs for one session."""

    summary: SessionSummary
    rows: Sequence[SheetRow]

    def to_dict(self) -> dict:
        data = self.summary.to_dict()
        data["rows"] = [
            {
                "student_id": r.student_id,
                "student_number": r.student_number,
                "full_name": r.full_name,
                "status": r.status.value,
                "late_minutes": r.late_minutes,
                "note": r.note,
                "row_version": r.row_version,
            }
            for r in self.rows
        ]
        return data


@dataclass(frozen=True)
class RecordExportRow:
    student_number: str
    first_name: str
    last_name: str
    status: AttendanceStatus
    late_minutes: Optional[int]
    note: Optional[str]
    marked_at: datetime


@dataclass(frozen=True)
class StudentHistoryRow:
    student_id: int
    session_id: int
    scheduled_at: datetime
    lesson_title: str
    status: AttendanceStatus
    late_minutes: Optional[int] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class AbsenceRow:
    """An ABSENT record of a finalized session, joined for the absentee list."""

    record_id: int
    student_id: int
    student_name: str
    student_number: str
    phone: Optional[str]
    group_id: int
    group_name: str
    lesson_title: str
    scheduled_at: datetime
