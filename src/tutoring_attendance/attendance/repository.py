from __future__ import annotations

from contextlib import AbstractContextManager
from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..core.enums import AttendanceStatus
from .model import (
    AbsenceRow,
    AttendanceRecord,
    AttendanceSession,
    RecordExportRow,
    SessionSummary,
    StudentHistoryRow,
)


class AttendanceBatch(Protocol):
    """Reads and writes that share one transaction.

    Everything done through a batch is committed together when the ``with``
    block exits normally and rolled back when it raises.
    """

    def lock_session(self, session_id: int) -> Optional[AttendanceSession]:
        """Read the session and hold it until the batch ends."""

        raise NotImplementedError

    def student_group_id(self, student_id: int) -> Optional[int]:
        raise NotImplementedError

    def find_record(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

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
        """Insert with row_version 1.

        Raises ConcurrencyConflictError when a record for the same student and
        session already exists.
        """

        raise NotImplementedError

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
        """Update only when row_version still equals ``expected_version``, then bump it."""

        raise NotImplementedError


class AttendanceRepository(Protocol):
    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def get_session_summary(self, session_id: int) -> Optional[SessionSummary]:
        raise NotImplementedError

    def find_session(self, lesson_id: int, scheduled_at: datetime) -> Optional[AttendanceSession]:
        raise NotImplementedError

    def create_session(
        self,
        *,
        lesson_id: int,
        group_id: int,
        teacher_id: int,
        scheduled_at: datetime,
        created_at: datetime,
    ) -> int:
        raise NotImplementedError

    def finalize_session(self, session_id: int, *, ended_at: datetime) -> bool:
        """Flip a non-finalized session to FINALIZED.

        Returns False when the session was already finalized (or vanished).
        """

        raise NotImplementedError

    def list_sessions(
        self,
        *,
        teacher_id: Optional[int] = None,
        group_id: Optional[int] = None,
        finalized: Optional[bool] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Sequence[SessionSummary]:
        """Sessions with ``start <= scheduled_at < end``, newest first."""

        raise NotImplementedError

    def records_for_session(self, session_id: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def record_batch(self) -> AbstractContextManager[AttendanceBatch]:
        raise NotImplementedError

    def export_rows(self, session_id: int) -> Sequence[RecordExportRow]:
        """Records of a session ordered by student number."""

        raise NotImplementedError

    def student_history(
        self, *, start: datetime, end: datetime, student_id: Optional[int] = None, group_id: Optional[int] = None
    ) -> Sequence[StudentHistoryRow]:
        """Records of one student (or every student of a group) in [start, end), newest first."""

        raise NotImplementedError

    def finalized_absences(self, *, group_id: Optional[int] = None) -> Sequence[AbsenceRow]:
        raise NotImplementedError
