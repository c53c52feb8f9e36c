from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import next_occurrence, now_local, parse_hhmm, parse_iso_datetime
from ..common.validators import optional_text
from ..common.web import (
    as_bool,
    current_role,
    current_user_id,
    int_field,
    login_required,
    optional_int_arg,
    request_data,
)
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError


def register(app: Flask, container: Container) -> None:
    @app.route("/api/lessons", methods=["GET"], endpoint="lessons")
    @login_required
    def lessons():
        views = container.lesson_service.list_lessons(
            current_user_id=current_user_id(),
            current_role=current_role(),
            group_id=optional_int_arg("group_id"),
            teacher_id=optional_int_arg("teacher_id"),
            title=request.args.get("title"),
            weekday=optional_int_arg("weekday"),
        )
        return jsonify([v.to_dict() for v in views])

    @app.route("/api/lessons", methods=["POST"], endpoint="create_lesson")
    @login_required
    def create_lesson():
        data = request_data()
        lesson_id = container.lesson_service.create_lesson(
            current_user_id=current_user_id(),
            current_role=current_role(),
            group_id=int_field(data, "group_id"),
            title=data.get("title", ""),
            weekday=data.get("weekday"),
            start_time=parse_hhmm(data.get("start_time", "")),
            end_time=parse_hhmm(data.get("end_time", "")),
            teacher_id=int_field(data, "teacher_id", required=False),
        )
        return jsonify({"success": True, "lesson_id": lesson_id}), 201

    @app.route("/api/lessons/<int:lesson_id>", methods=["GET"], endpoint="lesson_detail")
    @login_required
    def lesson_detail(lesson_id: int):
        return jsonify(container.lesson_service.get_lesson(lesson_id).to_dict())

    @app.route("/api/lessons/<int:lesson_id>", methods=["PUT", "POST"], endpoint="edit_lesson")
    @login_required
    def edit_lesson(lesson_id: int):
        data = request_data()
        container.lesson_service.update_lesson(
            current_user_id=current_user_id(),
            current_role=current_role(),
            lesson_id=lesson_id,
            group_id=int_field(data, "group_id"),
            title=data.get("title", ""),
            weekday=data.get("weekday"),
            start_time=parse_hhmm(data.get("start_time", "")),
            end_time=parse_hhmm(data.get("end_time", "")),
            teacher_id=int_field(data, "teacher_id", required=False),
            is_active=as_bool(data.get("is_active", True)),
        )
        return jsonify({"success": True})

    @app.route("/api/lessons/<int:lesson_id>", methods=["DELETE"], endpoint="delete_lesson")
    @login_required
    def delete_lesson(lesson_id: int):
        container.lesson_service.delete_lesson(
            current_user_id=current_user_id(), current_role=current_role(), lesson_id=lesson_id
        )
        return jsonify({"success": True})

    @app.route("/api/lessons/<int:lesson_id>/sessions", methods=["POST"], endpoint="open_session")
    @login_required
    def open_session(lesson_id: int):
        """Open (or reopen) the session of a lesson occurrence.

        Without ``scheduled_at`` the next occurrence of the lesson is used, today included.
        """
        lesson = container.lesson_service.get_lesson(lesson_id).lesson
        if current_role() != Role.ADMIN and lesson.teacher_id != current_user_id():
            raise AuthorizationError("You can only open sessions for your own lessons")

        raw = optional_text(request_data().get("scheduled_at"), "Scheduled time")
        if raw:
            scheduled_at = parse_iso_datetime(raw)
        else:
            scheduled_at = next_occurrence(lesson.weekday, lesson.start_time, now_local())

        session_obj = container.attendance_service.open_or_get_session(lesson.lesson_id, scheduled_at, current_user_id())
        summary = container.attendance_service.get_session_summary(session_obj.session_id)
        return jsonify({"success": True, "session": summary.to_dict()})
