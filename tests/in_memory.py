"""In-memory repositories that mirror the MySQL ones closely enough for service tests."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import datetime, time
from typing import Optional

from tutoring_attendance.announcements.model import Announcement
from tutoring_attendance.attendance.model import (
    AbsenceRow,
    AttendanceRecord,
    AttendanceSession,
    RecordExportRow,
    SessionSummary,
    StudentHistoryRow,
)
from tutoring_attendance.core.enums import AttendanceStatus, SessionStatus
from tutoring_attendance.core.exceptions import ConcurrencyConflictError
from tutoring_attendance.groups.model import Group, Student
from tutoring_attendance.lessons.model import Lesson, LessonView
from tutoring_attendance.users.model import User

ADMIN_ID = 1
TEACHER_ID = 2
OTHER_TEACHER_ID = 3

MATH_GROUP_ID = 10
SCIENCE_GROUP_ID = 20

ALGEBRA_LESSON_ID = 1


@dataclass
class Directory:
    users: dict[int, User] = field(default_factory=dict)
    groups: dict[int, Group] = field(default_factory=dict)
    students: dict[int, Student] = field(default_factory=dict)
    lessons: dict[int, Lesson] = field(default_factory=dict)

    def next_id(self, table: dict) -> int:
        return max(table, default=0) + 1

    def lesson_view(self, lesson: Lesson) -> LessonView:
        return LessonView(
            lesson=lesson,
            group_name=self.groups[lesson.group_id].name,
            teacher_name=self.users[lesson.teacher_id].full_name,
        )


class InMemoryUsers:
    def __init__(self, directory: Directory):
        self._d = directory

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self._d.users.get(int(user_id))

    def get_by_username(self, username: str) -> Optional[User]:
        return next((u for u in self._d.users.values() if u.username == username), None)

    def create_user(self, *, full_name, username, password_hash, role) -> int:
        user_id = self._d.next_id(self._d.users)
        self._d.users[user_id] = User(
            user_id=user_id, full_name=full_name, username=username, password_hash=password_hash, role=role
        )
        return user_id

    def delete_by_id(self, user_id: int) -> bool:
        return self._d.users.pop(int(user_id), None) is not None

    def set_active(self, user_id: int, *, is_active: bool) -> bool:
        user = self._d.users.get(int(user_id))
        if not user:
            return False
        self._d.users[user.user_id] = replace(user, is_active=is_active)
        return True

    def list_all(self):
        return sorted(self._d.users.values(), key=lambda u: u.user_id)

    def count_active(self) -> int:
        return sum(1 for u in self._d.users.values() if u.is_active)


class InMemoryGroups:
    def __init__(self, directory: Directory):
        self._d = directory

    def get_by_id(self, group_id: int) -> Optional[Group]:
        return self._d.groups.get(int(group_id))

    def list_all(self):
        return sorted(self._d.groups.values(), key=lambda g: g.name)

    def create_group(self, *, name, code, description=None) -> int:
        group_id = self._d.next_id(self._d.groups)
        self._d.groups[group_id] = Group(group_id=group_id, name=name, code=code, description=description)
        return group_id

    def delete_by_id(self, group_id: int) -> bool:
        if self._d.groups.pop(int(group_id), None) is None:
            return False
        for table in (self._d.students, self._d.lessons):
            for key in [k for k, v in table.items() if v.group_id == int(group_id)]:
                del table[key]
        return True

    def count_all(self) -> int:
        return len(self._d.groups)


class InMemoryStudents:
    def __init__(self, directory: Directory):
        self._d = directory

    def get_by_id(self, student_id: int) -> Optional[Student]:
        return self._d.students.get(int(student_id))

    def get_by_number(self, student_number: str) -> Optional[Student]:
        return next((s for s in self._d.students.values() if s.student_number == student_number), None)

    def list_for_group(self, group_id: int, *, active_only: bool = True):
        rows = [
            s
            for s in self._d.students.values()
            if s.group_id == int(group_id) and (s.is_active or not active_only)
        ]
        return sorted(rows, key=lambda s: (s.last_name, s.first_name))

    def create_student(self, *, first_name, last_name, student_number, group_id, phone=None) -> int:
        student_id = self._d.next_id(self._d.students)
        self._d.students[student_id] = Student(
            student_id=student_id,
            first_name=first_name,
            last_name=last_name,
            student_number=student_number,
            group_id=int(group_id),
            phone=phone,
        )
        return student_id

    def set_active(self, student_id: int, *, is_active: bool) -> bool:
        student = self._d.students.get(int(student_id))
        if not student:
            return False
        self._d.students[student.student_id] = replace(student, is_active=is_active)
        return True

    def count_active(self) -> int:
        return sum(1 for s in self._d.students.values() if s.is_active)


class InMemoryLessons:
    def __init__(self, directory: Directory):
        self._d = directory

    def get_by_id(self, lesson_id: int) -> Optional[Lesson]:
        return self._d.lessons.get(int(lesson_id))

    def get_view(self, lesson_id: int) -> Optional[LessonView]:
        lesson = self.get_by_id(lesson_id)
        return self._d.lesson_view(lesson) if lesson else None

    def list_views(self, *, group_id=None, teacher_id=None, title=None, weekday=None, active_only=False):
        rows = []
        for lesson in self._d.lessons.values():
            if group_id is not None and lesson.group_id != int(group_id):
                continue
            if teacher_id is not None and lesson.teacher_id != int(teacher_id):
                continue
            if title and title.lower() not in lesson.title.lower():
                continue
            if weekday is not None and lesson.weekday != int(weekday):
                continue
            if active_only and not lesson.is_active:
                continue
            rows.append(lesson)
        rows.sort(key=lambda l: (l.weekday, l.start_time))
        return [self._d.lesson_view(l) for l in rows]

    def find_active_on_day(self, *, weekday, teacher_id=None, group_id=None, exclude_lesson_id=None):
        rows = [
            l
            for l in self._d.lessons.values()
            if l.is_active
            and l.weekday == int(weekday)
            and (teacher_id is None or l.teacher_id == int(teacher_id))
            and (group_id is None or l.group_id == int(group_id))
            and (exclude_lesson_id is None or l.lesson_id != int(exclude_lesson_id))
        ]
        rows.sort(key=lambda l: (l.start_time, l.lesson_id))
        return [self._d.lesson_view(l) for l in rows]

    def create_lesson(self, *, group_id, title, weekday, start_time, end_time, teacher_id) -> int:
        lesson_id = self._d.next_id(self._d.lessons)
        self._d.lessons[lesson_id] = Lesson(
            lesson_id=lesson_id,
            group_id=int(group_id),
            title=title,
            weekday=int(weekday),
            start_time=start_time,
            end_time=end_time,
            teacher_id=int(teacher_id),
        )
        return lesson_id

    def update_lesson(self, *, lesson_id, group_id, title, weekday, start_time, end_time, teacher_id, is_active):
        if int(lesson_id) not in self._d.lessons:
            return False
        self._d.lessons[int(lesson_id)] = Lesson(
            lesson_id=int(lesson_id),
            group_id=int(group_id),
            title=title,
            weekday=int(weekday),
            start_time=start_time,
            end_time=end_time,
            teacher_id=int(teacher_id),
            is_active=is_active,
        )
        return True

    def delete_by_id(self, lesson_id: int) -> bool:
        return self._d.lessons.pop(int(lesson_id), None) is not None

    def count_active(self) -> int:
        return sum(1 for l in self._d.lessons.values() if l.is_active)


class InMemoryBatch:
    def __init__(self, repo: "InMemoryAttendance"):
        self._repo = repo

    def lock_session(self, session_id: int) -> Optional[AttendanceSession]:
        return self._repo.sessions.get(int(session_id))

    def student_group_id(self, student_id: int) -> Optional[int]:
        student = self._repo.directory.students.get(int(student_id))
        return student.group_id if student else None

    def find_record(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        return self._repo.find_record(session_id, student_id)

    def insert_record(self, *, session_id, student_id, status, late_minutes, note, marked_at, marked_by) -> int:
        if self._repo.find_record(session_id, student_id):
            raise ConcurrencyConflictError("duplicate record")
        record_id = max(self._repo.records, default=0) + 1
        self._repo.records[record_id] = AttendanceRecord(
            record_id=record_id,
            session_id=int(session_id),
            student_id=int(student_id),
            status=status,
            late_minutes=late_minutes,
            note=note,
            marked_at=marked_at,
            marked_by=int(marked_by),
            row_version=1,
        )
        return record_id

    def update_record(self, *, record_id, expected_version, status, late_minutes, note, marked_at, marked_by) -> bool:
        current = self._repo.records.get(int(record_id))
        if not current or current.row_version != int(expected_version):
            return False
        self._repo.records[current.record_id] = replace(
            current,
            status=status,
            late_minutes=late_minutes,
            note=note,
            marked_at=marked_at,
            marked_by=int(marked_by),
            row_version=current.row_version + 1,
        )
        return True


class InMemoryAttendance:
    def __init__(self, directory: Directory):
        self.directory = directory
        self.sessions: dict[int, AttendanceSession] = {}
        self.records: dict[int, AttendanceRecord] = {}
        self.batches_rolled_back = 0

    # helpers for tests
    def find_record(self, session_id: int, student_id: int) -> Optional[AttendanceRecord]:
        return next(
            (r for r in self.records.values() if r.session_id == int(session_id) and r.student_id == int(student_id)),
            None,
        )

    def add_session(
        self,
        *,
        lesson_id: int,
        scheduled_at: datetime,
        status: SessionStatus = SessionStatus.OPEN,
        created_at: Optional[datetime] = None,
    ) -> AttendanceSession:
        lesson = self.directory.lessons[lesson_id]
        session_id = self.create_session(
            lesson_id=lesson_id,
            group_id=lesson.group_id,
            teacher_id=lesson.teacher_id,
            scheduled_at=scheduled_at,
            created_at=created_at or scheduled_at,
        )
        self.sessions[session_id] = replace(self.sessions[session_id], status=status)
        return self.sessions[session_id]

    # AttendanceRepository
    def get_session(self, session_id: int) -> Optional[AttendanceSession]:
        return self.sessions.get(int(session_id))

    def get_session_summary(self, session_id: int) -> Optional[SessionSummary]:
        session = self.get_session(session_id)
        return self._summary(session) if session else None

    def find_session(self, lesson_id: int, scheduled_at: datetime) -> Optional[AttendanceSession]:
        return next(
            (s for s in self.sessions.values() if s.lesson_id == int(lesson_id) and s.scheduled_at == scheduled_at),
            None,
        )

    def create_session(self, *, lesson_id, group_id, teacher_id, scheduled_at, created_at) -> int:
        session_id = max(self.sessions, default=0) + 1
        self.sessions[session_id] = AttendanceSession(
            session_id=session_id,
            lesson_id=int(lesson_id),
            group_id=int(group_id),
            teacher_id=int(teacher_id),
            scheduled_at=scheduled_at,
            status=SessionStatus.OPEN,
            created_at=created_at,
        )
        return session_id

    def finalize_session(self, session_id: int, *, ended_at: datetime) -> bool:
        session = self.sessions.get(int(session_id))
        if not session or session.status == SessionStatus.FINALIZED:
            return False
        self.sessions[session.session_id] = replace(session, status=SessionStatus.FINALIZED, ended_at=ended_at)
        return True

    def list_sessions(self, *, teacher_id=None, group_id=None, finalized=None, start=None, end=None):
        rows = []
        for s in self.sessions.values():
            if teacher_id is not None and s.teacher_id != int(teacher_id):
                continue
            if group_id is not None and s.group_id != int(group_id):
                continue
            if finalized is not None and s.is_finalized != finalized:
                continue
            if start is not None and s.scheduled_at < start:
                continue
            if end is not None and s.scheduled_at >= end:
                continue
            rows.append(s)
        rows.sort(key=lambda s: (s.scheduled_at, s.session_id), reverse=True)
        return [self._summary(s) for s in rows]

    def records_for_session(self, session_id: int):
        return sorted(
            (r for r in self.records.values() if r.session_id == int(session_id)), key=lambda r: r.record_id
        )

    @contextmanager
    def record_batch(self):
        snapshot = dict(self.records)
        try:
            yield InMemoryBatch(self)
        except Exception:
            self.records = snapshot
            self.batches_rolled_back += 1
            raise

    def export_rows(self, session_id: int):
        rows = []
        for r in self.records_for_session(session_id):
            st = self.directory.students[r.student_id]
            rows.append(
                RecordExportRow(
                    student_number=st.student_number,
                    first_name=st.first_name,
                    last_name=st.last_name,
                    status=r.status,
                    late_minutes=r.late_minutes,
                    note=r.note,
                    marked_at=r.marked_at,
                )
            )
        return sorted(rows, key=lambda r: r.student_number)

    def student_history(self, *, start, end, student_id=None, group_id=None):
        rows = []
        for r in self.records.values():
            s = self.sessions[r.session_id]
            if not (start <= s.scheduled_at < end):
                continue
            if student_id is not None and r.student_id != int(student_id):
                continue
            if group_id is not None and self.directory.students[r.student_id].group_id != int(group_id):
                continue
            rows.append(
                StudentHistoryRow(
                    student_id=r.student_id,
                    session_id=r.session_id,
                    scheduled_at=s.scheduled_at,
                    lesson_title=self.directory.lessons[s.lesson_id].title,
                    status=r.status,
                    late_minutes=r.late_minutes,
                    note=r.note,
                )
            )
        rows.sort(key=lambda h: h.scheduled_at, reverse=True)
        return rows

    def finalized_absences(self, *, group_id=None):
        rows = []
        for r in self.records.values():
            s = self.sessions[r.session_id]
            if r.status != AttendanceStatus.ABSENT or s.status != SessionStatus.FINALIZED:
                continue
            lesson = self.directory.lessons[s.lesson_id]
            if group_id is not None and lesson.group_id != int(group_id):
                continue
            st = self.directory.students[r.student_id]
            rows.append(
                AbsenceRow(
                    record_id=r.record_id,
                    student_id=st.student_id,
                    student_name=st.full_name,
                    student_number=st.student_number,
                    phone=st.phone,
                    group_id=lesson.group_id,
                    group_name=self.directory.groups[lesson.group_id].name,
                    lesson_title=lesson.title,
                    scheduled_at=s.scheduled_at,
                )
            )
        rows.sort(key=lambda a: a.scheduled_at, reverse=True)
        return rows

    def _summary(self, s: AttendanceSession) -> SessionSummary:
        group = self.directory.groups[s.group_id]
        return SessionSummary(
            session=s,
            lesson_title=self.directory.lessons[s.lesson_id].title,
            group_name=group.name,
            group_code=group.code,
            teacher_name=self.directory.users[s.teacher_id].full_name,
        )


class InMemoryAnnouncements:
    def __init__(self, directory: Directory):
        self._d = directory
        self.rows: dict[int, Announcement] = {}

    def get_by_id(self, announcement_id: int) -> Optional[Announcement]:
        row = self.rows.get(int(announcement_id))
        return self._with_author(row) if row else None

    def list_all(self, *, active_only: bool = False):
        rows = [a for a in self.rows.values() if a.is_active or not active_only]
        rows.sort(key=lambda a: (a.priority, a.created_at, a.announcement_id), reverse=True)
        return [self._with_author(a) for a in rows]

    def create_announcement(self, *, title, content, priority, is_active, created_by, created_at) -> int:
        announcement_id = max(self.rows, default=0) + 1
        self.rows[announcement_id] = Announcement(
            announcement_id=announcement_id,
            title=title,
            content=content,
            priority=priority,
            is_active=is_active,
            created_by=int(created_by),
            created_at=created_at,
        )
        return announcement_id

    def update_announcement(self, *, announcement_id, title, content, priority, is_active, updated_at) -> bool:
        current = self.rows.get(int(announcement_id))
        if not current:
            return False
        self.rows[current.announcement_id] = replace(
            current, title=title, content=content, priority=priority, is_active=is_active, updated_at=updated_at
        )
        return True

    def delete_by_id(self, announcement_id: int) -> bool:
        return self.rows.pop(int(announcement_id), None) is not None

    def _with_author(self, a: Announcement) -> Announcement:
        author = self._d.users.get(a.created_by)
        return replace(a, author_name=author.full_name if author else None)


class RecordingSmsSender:
    def __init__(self):
        self.batches: list[list] = []

    def send_bulk(self, messages) -> int:
        batch = [m for m in messages if m.phone.strip() and m.text.strip()]
        self.batches.append(batch)
        return len(batch)


def t(hhmm: str) -> time:
    hours, minutes = hhmm.split(":")
    return time(int(hours), int(minutes))
