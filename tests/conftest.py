from __future__ import annotations

from datetime import datetime

import pytest
from werkzeug.security import generate_password_hash

from in_memory import (
    ADMIN_ID,
    ALGEBRA_LESSON_ID,
    MATH_GROUP_ID,
    OTHER_TEACHER_ID,
    SCIENCE_GROUP_ID,
    TEACHER_ID,
    Directory,
    InMemoryAnnouncements,
    InMemoryAttendance,
    InMemoryGroups,
    InMemoryLessons,
    InMemoryStudents,
    InMemoryUsers,
    RecordingSmsSender,
    t,
)
from tutoring_attendance.container import Container, wire_services
from tutoring_attendance.core.enums import Role
from tutoring_attendance.groups.model import Group, Student
from tutoring_attendance.lessons.model import Lesson
from tutoring_attendance.users.model import User


@pytest.fixture
def fixed_now() -> datetime:
    # Monday
    return datetime(2026, 2, 2, 9, 0, 0)


@pytest.fixture
def directory() -> Directory:
    d = Directory()
    d.users[ADMIN_ID] = User(ADMIN_ID, "Admin Demo", "admin", generate_password_hash("admin123"), Role.ADMIN)
    d.users[TEACHER_ID] = User(TEACHER_ID, "Ayse Teacher", "ayse", generate_password_hash("teacher123"), Role.TEACHER)
    d.users[OTHER_TEACHER_ID] = User(
        OTHER_TEACHER_ID, "Burak Teacher", "burak", generate_password_hash("teacher123"), Role.TEACHER
    )

    d.groups[MATH_GROUP_ID] = Group(MATH_GROUP_ID, "Grade 9 - Math", "G9-MAT")
    d.groups[SCIENCE_GROUP_ID] = Group(SCIENCE_GROUP_ID, "Grade 10 - Science", "G10-SCI")

    for student in (
        Student(101, "Ada", "Yilmaz", "S-1001", MATH_GROUP_ID, phone="905550000001"),
        Student(102, "Can", "Demir", "S-1002", MATH_GROUP_ID, phone="905550000002"),
        Student(103, "Deniz", "Kaya", "S-1003", MATH_GROUP_ID),
        Student(104, "Ece", "Arslan", "S-1004", MATH_GROUP_ID, phone="905550000004"),
        Student(105, "Efe", "Polat", "S-1005", MATH_GROUP_ID, phone="  "),
        Student(201, "Elif", "Sahin", "S-2001", SCIENCE_GROUP_ID, phone="905550000201"),
    ):
        d.students[student.student_id] = student

    d.lessons[ALGEBRA_LESSON_ID] = Lesson(
        lesson_id=ALGEBRA_LESSON_ID,
        group_id=MATH_GROUP_ID,
        title="Algebra",
        weekday=1,
        start_time=t("08:00"),
        end_time=t("08:45"),
        teacher_id=TEACHER_ID,
    )
    return d


@pytest.fixture
def attendance_repo(directory) -> InMemoryAttendance:
    return InMemoryAttendance(directory)


@pytest.fixture
def announcements_repo(directory) -> InMemoryAnnouncements:
    return InMemoryAnnouncements(directory)


@pytest.fixture
def sms_sender() -> RecordingSmsSender:
    return RecordingSmsSender()


@pytest.fixture
def container(directory, attendance_repo, announcements_repo, sms_sender) -> Container:
    return wire_services(
        users_repo=InMemoryUsers(directory),
        groups_repo=InMemoryGroups(directory),
        students_repo=InMemoryStudents(directory),
        lessons_repo=InMemoryLessons(directory),
        attendance_repo=attendance_repo,
        announcements_repo=announcements_repo,
        sms_sender=sms_sender,
    )
