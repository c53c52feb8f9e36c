from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from ..attendance.model import SessionSummary, StudentHistoryRow
from ..attendance.repository import AttendanceRepository
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import NotFoundError, ValidationError
from ..groups.model import Group, Student
from ..groups.repository import GroupRepository, StudentRepository

SESSION_CSV_HEADER = ["Student No", "First Name", "Last Name", "Status", "Late (min)", "Note", "Marked At"]
STUDENT_CSV_HEADER = ["Date", "Lesson", "Status", "Late (min)", "Note"]

STATUS_LABELS = {
    AttendanceStatus.PRESENT: "Present",
    AttendanceStatus.ABSENT: "Absent",
    AttendanceStatus.LATE: "Late",
    AttendanceStatus.EXCUSED: "Excused",
}


@dataclass(frozen=True)
class CsvExport:
    filename: str
    content: bytes


@dataclass(frozen=True)
class AttendanceSummary:
    total: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0
    excused: int = 0

    @classmethod
    def of(cls, statuses: Iterable[AttendanceStatus]) -> "AttendanceSummary":
        counts = {s: 0 for s in AttendanceStatus}
        total = 0
        for status in statuses:
            counts[status] += 1
            total += 1
        return cls(
            total=total,
            present=counts[AttendanceStatus.PRESENT],
            absent=counts[AttendanceStatus.ABSENT],
            late=counts[AttendanceStatus.LATE],
            excused=counts[AttendanceStatus.EXCUSED],
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "present": self.present,
            "absent": self.absent,
            "late": self.late,
            "excused": self.excused,
        }


@dataclass(frozen=True)
class StudentReport:
    student: Student
    start: date
    end: date
    rows: Sequence[StudentHistoryRow]
    summary: AttendanceSummary


@dataclass(frozen=True)
class StudentSummaryRow:
    student: Student
    summary: AttendanceSummary


@dataclass(frozen=True)
class GroupReport:
    group: Group
    start: date
    end: date
    students: Sequence[StudentSummaryRow]


def _to_csv_bytes(header: Sequence[str], rows: Iterable[Sequence[object]]) -> bytes:
    out = io.StringIO()
    writer = csv.writer(out)
    writer.writerow(header)
    for row in rows:
        writer.writerow(["" if v is None else v for v in row])
    # BOM so spreadsheet apps pick up UTF-8.
    return out.getvalue().encode("utf-8-sig")


def _safe_filename_part(value: str) -> str:
    return "".join(ch if ch.isalnum() or ch in "-_" else "_" for ch in value.strip())


class ReportService:
    def __init__(self, attendance: AttendanceRepository, groups: GroupRepository, students: StudentRepository):
        self._attendance = attendance
        self._groups = groups
        self._students = students

    @staticmethod
    def resolve_range(start: Optional[date], end: Optional[date], *, today: date | None = None) -> tuple[date, date]:
        """Default window is the last DEFAULT_REPORT_DAYS days up to today."""
        today = today or date.today()
        end = end or today
        start = start or (today - timedelta(days=DEFAULT_REPORT_DAYS))
        if start > end:
            raise ValidationError("Start date must not be after end date")
        return start, end

    def finalized_sessions(
        self, *, current_role: Role, current_user_id: int, group_id: Optional[int] = None
    ) -> Sequence[SessionSummary]:
        """Teachers see their own finalized sessions; admins see all (optionally one group)."""
        if current_role != Role.ADMIN:
            return self._attendance.list_sessions(teacher_id=int(current_user_id), finalized=True)
        return self._attendance.list_sessions(group_id=group_id, finalized=True)

    def session_csv(self, session_id: int) -> CsvExport:
        summary = self._attendance.get_session_summary(int(session_id))
        if not summary:
            raise NotFoundError("Session not found")

        rows = (
            (
                r.student_number,
                r.first_name,
                r.last_name,
                STATUS_LABELS[r.status],
                r.late_minutes,
                r.note,
                r.marked_at.strftime("%Y-%m-%d %H:%M"),
            )
            for r in self._attendance.export_rows(summary.session.session_id)
        )
        filename = "attendance_{}_{}_{:%Y%m%d_%H%M}.csv".format(
            _safe_filename_part(summary.group_code),
            _safe_filename_part(summary.lesson_title),
            summary.session.scheduled_at,
        )
        return CsvExport(filename=filename, content=_to_csv_bytes(SESSION_CSV_HEADER, rows))

    def student_report(
        self, student_id: int, start: Optional[date] = None, end: Optional[date] = None, *, today: date | None = None
    ) -> StudentReport:
        student = self._students.get_by_id(int(student_id))
        if not student:
            raise NotFoundError("Student not found")

        start, end = self.resolve_range(start, end, today=today)
        rows = self._attendance.student_history(
            student_id=student.student_id,
            start=datetime.combine(start, time.min),
            end=datetime.combine(end + timedelta(days=1), time.min),
        )
        return StudentReport(
            student=student,
            start=start,
            end=end,
            rows=rows,
            summary=AttendanceSummary.of(r.status for r in rows),
        )

    def student_csv(
        self, student_id: int, start: Optional[date] = None, end: Optional[date] = None, *, today: date | None = None
    ) -> CsvExport:
        report = self.student_report(student_id, start, end, today=today)
        rows = (
            (
                r.scheduled_at.strftime("%Y-%m-%d %H:%M"),
                r.lesson_title,
                STATUS_LABELS[r.status],
                r.late_minutes,
                r.note,
            )
            for r in report.rows
        )
        filename = "student_report_{}_{:%Y%m%d}_{:%Y%m%d}.csv".format(
            _safe_filename_part(report.student.student_number), report.start, report.end
        )
        return CsvExport(filename=filename, content=_to_csv_bytes(STUDENT_CSV_HEADER, rows))

    def group_report(
        self, group_id: int, start: Optional[date] = None, end: Optional[date] = None, *, today: date | None = None
    ) -> GroupReport:
        group = self._groups.get_by_id(int(group_id))
        if not group:
            raise NotFoundError("Group not found")

        start, end = self.resolve_range(start, end, today=today)
        history = self._attendance.student_history(
            group_id=group.group_id,
            start=datetime.combine(start, time.min),
            end=datetime.combine(end + timedelta(days=1), time.min),
        )
        by_student: dict[int, list[AttendanceStatus]] = {}
        for row in history:
            by_student.setdefault(row.student_id, []).append(row.status)

        students = self._students.list_for_group(group.group_id, active_only=True)
        return GroupReport(
            group=group,
            start=start,
            end=end,
            students=[
                StudentSummaryRow(student=s, summary=AttendanceSummary.of(by_student.get(s.student_id, [])))
                for s in sorted(students, key=lambda s: (s.last_name.lower(), s.first_name.lower()))
            ],
        )
