from __future__ import annotations

from datetime import date
from typing import Optional, Sequence

from ..attendance.model import AbsenceRow
from ..attendance.repository import AttendanceRepository
from ..core.exceptions import ValidationError
from ..notifications.sms import SmsMessage, SmsSender

SORT_KEYS = ("date", "student", "group", "lesson")

NOTICE_TEMPLATE = (
    "Dear parent, your child has missed one or more lessons. Latest missed lesson: {latest:%d.%m.%Y %H:%M}."
)


class AbsenceService:
    """Absentee list for admins and SMS notices to parents."""

    def __init__(self, attendance: AttendanceRepository, sms: SmsSender):
        self._attendance = attendance
        self._sms = sms

    def list_absentees(
        self,
        *,
        search: Optional[str] = None,
        group_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
        sort_by: str = "date",
    ) -> list[AbsenceRow]:
        """ABSENT records of finalized sessions.

        ``start``/``end`` compare calendar days and are both inclusive.
        """
        sort_by = (sort_by or "date").strip().lower()
        if sort_by not in SORT_KEYS:
            raise ValidationError(f"sort_by must be one of: {', '.join(SORT_KEYS)}")

        rows = list(self._attendance.finalized_absences(group_id=group_id))

        if start is not None:
            rows = [r for r in rows if r.scheduled_at.date() >= start]
        if end is not None:
            rows = [r for r in rows if r.scheduled_at.date() <= end]

        needle = (search or "").strip().lower()
        if needle:
            rows = [
                r
                for r in rows
                if needle in r.student_name.lower()
                or needle in r.student_number.lower()
                or needle in r.lesson_title.lower()
                or needle in r.group_name.lower()
            ]

        if sort_by == "student":
            rows.sort(key=lambda r: r.student_name.lower())
        elif sort_by == "group":
            rows.sort(key=lambda r: (r.group_name.lower(), r.student_name.lower()))
        elif sort_by == "lesson":
            rows.sort(key=lambda r: (r.lesson_title.lower(), r.student_name.lower()))
        else:
            rows.sort(key=lambda r: r.scheduled_at, reverse=True)
        return rows

    @staticmethod
    def build_notices(rows: Sequence[AbsenceRow]) -> list[SmsMessage]:
        """One message per distinct phone number, naming the latest absence."""
        latest: dict[str, AbsenceRow] = {}
        for row in rows:
            phone = (row.phone or "").strip()
            if not phone:
                continue
            seen = latest.get(phone)
            if seen is None or row.scheduled_at > seen.scheduled_at:
                latest[phone] = row

        return [
            SmsMessage(phone=phone, text=NOTICE_TEMPLATE.format(latest=row.scheduled_at))
            for phone, row in latest.items()
        ]

    def send_notices(self) -> int:
        rows = self._attendance.finalized_absences()
        return self._sms.send_bulk(self.build_notices(rows))
