from __future__ import annotations

import logging
from datetime import timedelta

from flask import Flask, jsonify, session

from ..common.web import admin_required, as_bool, current_role, current_user_id, login_required, request_data
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)


def _user_to_dict(user) -> dict:
    return {
        "user_id": user.user_id,
        "full_name": user.full_name,
        "username": user.username,
        "role": user.role.value,
        "is_active": user.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/login", methods=["POST"], endpoint="login")
    def login():
        data = request_data()
        s_user = container.auth_service.authenticate(data.get("username", ""), data.get("password", ""))

        session.clear()
        session.permanent = as_bool(data.get("remember_me"))
        app.permanent_session_lifetime = timedelta(days=7)

        session["user_id"] = s_user.user_id
        session["name"] = s_user.full_name
        session["role"] = s_user.role.value

        logger.info("User %s signed in", s_user.user_id)
        user = {"user_id": s_user.user_id, "full_name": s_user.full_name, "role": s_user.role.value}
        return jsonify({"success": True, "user": user})

    @app.route("/api/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"success": True})

    @app.route("/api/me", endpoint="me")
    @login_required
    def me():
        return jsonify({"user_id": current_user_id(), "full_name": session.get("name"), "role": current_role().value})

    @app.route("/api/users", methods=["GET"], endpoint="admin_users")
    @admin_required
    def admin_users():
        return jsonify([_user_to_dict(u) for u in container.user_service.list_users()])

    @app.route("/api/users", methods=["POST"], endpoint="add_user")
    @admin_required
    def add_user():
        data = request_data()
        try:
            role = Role(data.get("role") or Role.TEACHER.value)
        except ValueError:
            raise ValidationError("Invalid account type")

        user_id = container.user_service.create_account(
            current_role=current_role(),
            full_name=data.get("full_name", ""),
            username=data.get("username", ""),
            password=data.get("password", ""),
            role=role,
        )
        return jsonify({"success": True, "user_id": user_id}), 201

    @app.route("/api/users/<int:user_id>/active", methods=["POST"], endpoint="set_user_active")
    @admin_required
    def set_user_active(user_id: int):
        is_active = as_bool(request_data().get("is_active"))
        container.user_service.set_active(current_role=current_role(), user_id=user_id, is_active=is_active)
        return jsonify({"success": True})

    @app.route("/api/users/<int:user_id>", methods=["DELETE"], endpoint="delete_user")
    @admin_required
    def delete_user(user_id: int):
        container.user_service.delete_user(current_role=current_role(), user_id=user_id)
        return jsonify({"success": True})
