from __future__ import annotations

import pytest

from in_memory import MATH_GROUP_ID, SCIENCE_GROUP_ID, TEACHER_ID, t
from tutoring_attendance.core.enums import Role
from tutoring_attendance.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tutoring_attendance.lessons.model import Lesson


def test_groups_are_listed_by_name(container):
    names = [g.name for g in container.group_service.list_groups()]
    assert names == ["Grade 10 - Science", "Grade 9 - Math"]


def test_group_detail_includes_inactive_students_and_lessons(container):
    container.group_service.set_student_active(current_role=Role.ADMIN, student_id=104, is_active=False)

    detail = container.group_service.get_group_detail(MATH_GROUP_ID)

    assert detail.group.code == "G9-MAT"
    assert len(detail.students) == 5
    assert [lv.lesson.title for lv in detail.lessons] == ["Algebra"]


def test_unknown_group_detail_is_not_found(container):
    with pytest.raises(NotFoundError):
        container.group_service.get_group_detail(999)


def test_sidebar_groups_active_lessons_by_weekday(container, directory):
    directory.lessons[2] = Lesson(2, MATH_GROUP_ID, "Geometry", 3, t("10:00"), t("10:45"), TEACHER_ID)
    directory.lessons[3] = Lesson(3, MATH_GROUP_ID, "Old", 2, t("10:00"), t("10:45"), TEACHER_ID, is_active=False)

    entries = container.group_service.sidebar()

    by_name = {e.group.name: [lv.lesson.title for lv in e.lessons] for e in entries}
    assert by_name == {"Grade 10 - Science": [], "Grade 9 - Math": ["Algebra", "Geometry"]}


def test_admin_creates_group_and_adds_students(container, directory):
    svc = container.group_service
    group_id = svc.create_group(current_role=Role.ADMIN, name=" Grade 11 - Physics ", code="G11-PHY")
    student_id = svc.add_student(
        current_role=Role.ADMIN,
        group_id=group_id,
        first_name="Mert",
        last_name="Ozturk",
        student_number="S-3001",
        phone=" ",
    )

    assert directory.groups[group_id].name == "Grade 11 - Physics"
    student = directory.students[student_id]
    assert student.group_id == group_id
    assert student.phone is None
    assert student.full_name == "Mert Ozturk"


def test_duplicate_student_number_is_rejected(container):
    with pytest.raises(ValidationError, match="already exists"):
        container.group_service.add_student(
            current_role=Role.ADMIN,
            group_id=SCIENCE_GROUP_ID,
            first_name="Ada",
            last_name="Copy",
            student_number="S-1001",
        )


def test_student_for_unknown_group_is_not_found(container):
    with pytest.raises(NotFoundError):
        container.group_service.add_student(
            current_role=Role.ADMIN, group_id=999, first_name="A", last_name="B", student_number="S-9"
        )


def test_teachers_cannot_change_groups(container):
    svc = container.group_service
    with pytest.raises(AuthorizationError):
        svc.create_group(current_role=Role.TEACHER, name="X", code="X")
    with pytest.raises(AuthorizationError):
        svc.delete_group(current_role=Role.TEACHER, group_id=MATH_GROUP_ID)
    with pytest.raises(AuthorizationError):
        svc.set_student_active(current_role=Role.TEACHER, student_id=101, is_active=False)


def test_delete_group_removes_students_and_lessons(container, directory):
    container.group_service.delete_group(current_role=Role.ADMIN, group_id=MATH_GROUP_ID)

    assert MATH_GROUP_ID not in directory.groups
    assert all(s.group_id != MATH_GROUP_ID for s in directory.students.values())
    assert directory.lessons == {}

    with pytest.raises(NotFoundError):
        container.group_service.delete_group(current_role=Role.ADMIN, group_id=MATH_GROUP_ID)


def test_set_active_on_unknown_student_is_not_found(container):
    with pytest.raises(NotFoundError):
        container.group_service.set_student_active(current_role=Role.ADMIN, student_id=999, is_active=True)


def test_dashboard_counts_only_active_rows(container, directory):
    container.group_service.set_student_active(current_role=Role.ADMIN, student_id=104, is_active=False)
    directory.lessons[2] = Lesson(2, MATH_GROUP_ID, "Old", 2, t("10:00"), t("10:45"), TEACHER_ID, is_active=False)

    counts = container.group_service.dashboard_counts(current_role=Role.ADMIN)

    assert counts.to_dict() == {"groups": 2, "active_students": 5, "active_lessons": 1, "active_users": 3}


def test_dashboard_counts_are_admin_only(container):
    with pytest.raises(AuthorizationError):
        container.group_service.dashboard_counts(current_role=Role.TEACHER)
