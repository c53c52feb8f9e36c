from __future__ import annotations

from dataclasses import replace

import pytest

from in_memory import ADMIN_ID, OTHER_TEACHER_ID, TEACHER_ID
from tutoring_attendance.core.enums import Role
from tutoring_attendance.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)


def test_login_ok(container):
    user = container.auth_service.authenticate(" ayse ", "teacher123")

    assert user.user_id == TEACHER_ID
    assert user.role == Role.TEACHER
    assert user.full_name == "Ayse Teacher"


@pytest.mark.parametrize("username, password", [("ayse", "wrong"), ("nobody", "teacher123"), ("", "")])
def test_login_rejects_bad_credentials(container, username, password):
    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate(username, password)


def test_login_rejects_inactive_user(container, directory):
    directory.users[TEACHER_ID] = replace(directory.users[TEACHER_ID], is_active=False)

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("ayse", "teacher123")


def test_login_with_placeholder_hash_fails_cleanly(container, directory):
    directory.users[TEACHER_ID] = replace(directory.users[TEACHER_ID], password_hash="CHANGE_ME")

    with pytest.raises(AuthenticationError):
        container.auth_service.authenticate("ayse", "CHANGE_ME")


def test_admin_creates_teacher_account(container):
    user_id = container.user_service.create_account(
        current_role=Role.ADMIN, full_name="Cem Teacher", username="cem", password="secret1", role=Role.TEACHER
    )

    assert container.auth_service.authenticate("cem", "secret1").user_id == user_id


@pytest.mark.parametrize(
    "kwargs, message",
    [
        (dict(full_name=" ", username="x", password="secret1"), "Full name is required"),
        (dict(full_name="X", username=" ", password="secret1"), "Username is required"),
        (dict(full_name="X", username="x", password="123"), "at least 6"),
        (dict(full_name="X", username="ayse", password="secret1"), "already exists"),
    ],
)
def test_create_account_validation(container, kwargs, message):
    with pytest.raises(ValidationError, match=message):
        container.user_service.create_account(current_role=Role.ADMIN, role=Role.TEACHER, **kwargs)


def test_teacher_cannot_manage_accounts(container):
    svc = container.user_service
    with pytest.raises(AuthorizationError):
        svc.create_account(
            current_role=Role.TEACHER, full_name="X", username="x", password="secret1", role=Role.TEACHER
        )
    with pytest.raises(AuthorizationError):
        svc.delete_user(current_role=Role.TEACHER, user_id=OTHER_TEACHER_ID)


def test_admin_accounts_cannot_be_deleted(container):
    with pytest.raises(ValidationError):
        container.user_service.delete_user(current_role=Role.ADMIN, user_id=ADMIN_ID)


def test_delete_and_deactivate_teacher(container, directory):
    svc = container.user_service
    svc.set_active(current_role=Role.ADMIN, user_id=TEACHER_ID, is_active=False)
    svc.delete_user(current_role=Role.ADMIN, user_id=OTHER_TEACHER_ID)

    assert directory.users[TEACHER_ID].is_active is False
    assert OTHER_TEACHER_ID not in directory.users
    with pytest.raises(NotFoundError):
        svc.delete_user(current_role=Role.ADMIN, user_id=OTHER_TEACHER_ID)
    with pytest.raises(NotFoundError):
        svc.set_active(current_role=Role.ADMIN, user_id=OTHER_TEACHER_ID, is_active=True)


def test_list_users(container):
    assert [u.username for u in container.user_service.list_users()] == ["admin", "ayse", "burak"]
