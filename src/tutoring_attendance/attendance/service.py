from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Optional, Sequence

from ..common.datetime_utils import to_whole_seconds, week_bounds
from ..common.validators import optional_non_negative_int, optional_text
from ..core.constants import NOTE_MAX_LENGTH
from ..core.enums import AttendanceStatus
from ..core.exceptions import (
    AlreadyFinalizedError,
    ConcurrencyConflictError,
    NotFoundError,
    SessionFinalizedError,
    StudentNotInGroupError,
    ValidationError,
)
from ..groups.repository import StudentRepository
from ..lessons.model import LessonView
from ..lessons.repository import LessonRepository
from .model import AttendanceSession, SessionSheet, SessionSummary, SheetRow, StudentMark
from .repository import AttendanceRepository


class AttendanceService:
    """Session lifecycle and per-student marking.

    Every operation takes the acting user explicitly; who may call it is
    decided by the web layer.
    """

    def __init__(self, attendance: AttendanceRepository, lessons: LessonRepository, students: StudentRepository):
        self._attendance = attendance
        self._lessons = lessons
        self._students = students

    # --- lifecycle ---

    def open_or_get_session(
        self, lesson_id: int, scheduled_at: datetime, acting_user_id: int, *, now: datetime | None = None
    ) -> AttendanceSession:
        now = now or datetime.now()

        lesson = self._lessons.get_by_id(int(lesson_id))
        if not lesson or not lesson.is_active:
            raise NotFoundError("Lesson not found")

        scheduled_at = to_whole_seconds(scheduled_at)
        existing = self._attendance.find_session(lesson.lesson_id, scheduled_at)
        if existing:
            return existing

        session_id = self._attendance.create_session(
            lesson_id=lesson.lesson_id,
            group_id=lesson.group_id,
            teacher_id=lesson.teacher_id,
            scheduled_at=scheduled_at,
            created_at=now,
        )
        created = self._attendance.get_session(session_id)
        if not created:
            raise NotFoundError("Session not found")
        return created

    def finalize_session(self, session_id: int, acting_user_id: int, *, now: datetime | None = None) -> None:
        now = now or datetime.now()

        session = self._attendance.get_session(int(session_id))
        if not session:
            raise NotFoundError("Session not found")
        if session.is_finalized:
            raise AlreadyFinalizedError("Session is already finalized")

        # Someone else may have finalized between the read and this update.
        if not self._attendance.finalize_session(session.session_id, ended_at=now):
            raise AlreadyFinalizedError("Session is already finalized")

    # --- marking ---

    def mark_one(
        self, session_id: int, mark: StudentMark, acting_user_id: int, *, now: datetime | None = None
    ) -> int:
        """Insert or update one student's record; returns its new row_version."""
        versions = self._mark(session_id, [mark], acting_user_id, now=now)
        return versions[int(mark.student_id)]

    def mark_bulk(
        self,
        session_id: int,
        marks: Sequence[StudentMark],
        acting_user_id: int,
        *,
        now: datetime | None = None,
    ) -> dict[int, int]:
        """All-or-nothing marking; returns the new row_version per student."""
        return self._mark(session_id, marks, acting_user_id, now=now)

    def _mark(
        self,
        session_id: int,
        marks: Sequence[StudentMark],
        acting_user_id: int,
        *,
        now: datetime | None = None,
    ) -> dict[int, int]:
        now = now or datetime.now()
        cleaned = [self._clean_mark(m) for m in marks]
        seen: set[int] = set()
        for mark in cleaned:
            if mark.student_id in seen:
                raise ValidationError(f"Student {mark.student_id} appears more than once")
            seen.add(mark.student_id)

        versions: dict[int, int] = {}
        with self._attendance.record_batch() as batch:
            session = batch.lock_session(int(session_id))
            if not session:
                raise NotFoundError("Session not found")
            if session.is_finalized:
                raise SessionFinalizedError("Session is finalized; attendance can no longer be changed")

            for mark in cleaned:
                group_id = batch.student_group_id(mark.student_id)
                if group_id is None:
                    raise NotFoundError(f"Student {mark.student_id} not found")
                if group_id != session.group_id:
                    raise StudentNotInGroupError(f"Student {mark.student_id} is not in this session's group")

                existing = batch.find_record(session.session_id, mark.student_id)
                if existing is None:
                    batch.insert_record(
                        session_id=session.session_id,
                        student_id=mark.student_id,
                        status=mark.status,
                        late_minutes=mark.late_minutes,
                        note=mark.note,
                        marked_at=now,
                        marked_by=int(acting_user_id),
                    )
                    versions[mark.student_id] = 1
                    continue

                if mark.row_version is None or not batch.update_record(
                    record_id=existing.record_id,
                    expected_version=mark.row_version,
                    status=mark.status,
                    late_minutes=mark.late_minutes,
                    note=mark.note,
                    marked_at=now,
                    marked_by=int(acting_user_id),
                ):
                    raise ConcurrencyConflictError(
                        f"Attendance for student {mark.student_id} was changed by someone else; reload and try again"
                    )
                versions[mark.student_id] = mark.row_version + 1

        return versions

    @staticmethod
    def _clean_mark(mark: StudentMark) -> StudentMark:
        try:
            status = AttendanceStatus(mark.status)
            student_id = int(mark.student_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid student or attendance status")
        row_version = mark.row_version
        if row_version is not None:
            try:
                row_version = int(row_version)
            except (TypeError, ValueError):
                raise ValidationError("Invalid row version")
        return StudentMark(
            student_id=student_id,
            status=status,
            late_minutes=optional_non_negative_int(mark.late_minutes, "Late minutes"),
            note=optional_text(mark.note, "Note", max_len=NOTE_MAX_LENGTH),
            row_version=row_version,
        )

    # --- views ---

    def get_session_summary(self, session_id: int) -> SessionSummary:
        summary = self._attendance.get_session_summary(int(session_id))
        if not summary:
            raise NotFoundError("Session not found")
        return summary

    def get_session_sheet(self, session_id: int) -> SessionSheet:
        summary = self.get_session_summary(session_id)
        records = {r.student_id: r for r in self._attendance.records_for_session(summary.session.session_id)}

        rows = []
        for student in self._students.list_for_group(summary.session.group_id, active_only=True):
            record = records.get(student.student_id)
            if record is None:
                rows.append(
                    SheetRow(student_id=student.student_id, student_number=student.student_number, full_name=student.full_name)
                )
                continue
            rows.append(
                SheetRow(
                    student_id=student.student_id,
                    student_number=student.student_number,
                    full_name=student.full_name,
                    status=record.status,
                    late_minutes=record.late_minutes,
                    note=record.note,
                    row_version=record.row_version,
                )
            )
        return SessionSheet(summary=summary, rows=rows)

    def sessions_for_teacher(self, teacher_id: int) -> Sequence[SessionSummary]:
        return self._attendance.list_sessions(teacher_id=int(teacher_id))

    def open_sessions(self, group_id: Optional[int] = None) -> Sequence[SessionSummary]:
        return self._attendance.list_sessions(group_id=group_id, finalized=False)

    def sessions_on(self, day: date, teacher_id: Optional[int] = None) -> Sequence[SessionSummary]:
        start = datetime.combine(day, time.min)
        return self._attendance.list_sessions(teacher_id=teacher_id, start=start, end=start + timedelta(days=1))

    def lessons_to_start(self, teacher_id: int, *, today: date | None = None) -> list[LessonView]:
        """Active lessons of the teacher without a running session this ISO week."""
        today = today or date.today()
        monday, next_monday = week_bounds(today)

        running = self._attendance.list_sessions(
            teacher_id=int(teacher_id),
            finalized=False,
            start=datetime.combine(monday, time.min),
            end=datetime.combine(next_monday, time.min),
        )
        busy = {s.session.lesson_id for s in running}

        lessons = self._lessons.list_views(teacher_id=int(teacher_id), active_only=True)
        return [v for v in lessons if v.lesson.lesson_id not in busy]
