from __future__ import annotations

import logging
from datetime import date

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_role, current_user_id, int_field, login_required, optional_int_arg, request_data
from ..container import Container
from ..core.enums import AttendanceStatus, Role
from ..core.exceptions import AuthorizationError, ValidationError
from .model import SessionSummary, StudentMark

logger = logging.getLogger(__name__)


def _mark_from(data: dict, *, student_id: int | None = None) -> StudentMark:
    try:
        status = AttendanceStatus(str(data.get("status") or "").strip().upper())
    except ValueError:
        raise ValidationError("Status must be one of: " + ", ".join(s.value for s in AttendanceStatus))
    return StudentMark(
        student_id=student_id if student_id is not None else int_field(data, "student_id"),
        status=status,
        late_minutes=data.get("late_minutes"),
        note=data.get("note"),
        row_version=int_field(data, "row_version", required=False),
    )


def register(app: Flask, container: Container) -> None:
    def _session_for_current_user(session_id: int) -> SessionSummary:
        """The session, if the signed-in user is its teacher or an admin."""
        summary = container.attendance_service.get_session_summary(session_id)
        if current_role() != Role.ADMIN and summary.session.teacher_id != current_user_id():
            raise AuthorizationError("Only the session's teacher or an admin can do this")
        return summary

    @app.route("/api/sessions", endpoint="sessions")
    @login_required
    def sessions():
        """Admins get every running session; teachers get their sessions and the lessons still to start."""
        if current_role() == Role.ADMIN:
            rows = container.attendance_service.open_sessions(optional_int_arg("group_id"))
            return jsonify({"sessions": [s.to_dict() for s in rows]})

        teacher_id = current_user_id()
        rows = container.attendance_service.sessions_for_teacher(teacher_id)
        to_start = container.attendance_service.lessons_to_start(teacher_id)
        return jsonify(
            {
                "sessions": [s.to_dict() for s in rows],
                "lessons_to_start": [v.to_dict() for v in to_start],
            }
        )

    @app.route("/api/sessions/day", endpoint="sessions_on_day")
    @login_required
    def sessions_on_day():
        day_s = request.args.get("date")
        day = parse_iso_date(day_s) if day_s else date.today()
        teacher_id = None if current_role() == Role.ADMIN else current_user_id()
        rows = container.attendance_service.sessions_on(day, teacher_id)
        return jsonify({"date": day.isoformat(), "sessions": [s.to_dict() for s in rows]})

    @app.route("/api/dashboard", endpoint="dashboard")
    @login_required
    def dashboard():
        """Today's sessions plus school-wide counts (admin) or the teacher's own totals."""
        today = date.today()
        if current_role() == Role.ADMIN:
            counts = container.group_service.dashboard_counts(current_role=current_role())
            rows = container.attendance_service.sessions_on(today)
            return jsonify({"counts": counts.to_dict(), "sessions_today": [s.to_dict() for s in rows]})

        teacher_id = current_user_id()
        lessons = container.lesson_service.list_lessons(current_user_id=teacher_id, current_role=current_role())
        rows = container.attendance_service.sessions_on(today, teacher_id)
        return jsonify(
            {
                "lesson_count": len(lessons),
                "session_count": len(container.attendance_service.sessions_for_teacher(teacher_id)),
                "sessions_today": [s.to_dict() for s in rows],
            }
        )

    @app.route("/api/sessions/<int:session_id>", endpoint="session_sheet")
    @login_required
    def session_sheet(session_id: int):
        _session_for_current_user(session_id)
        return jsonify(container.attendance_service.get_session_sheet(session_id).to_dict())

    @app.route("/api/sessions/<int:session_id>/marks", methods=["POST"], endpoint="bulk_mark")
    @login_required
    def bulk_mark(session_id: int):
        _session_for_current_user(session_id)

        entries = request_data().get("marks")
        if not isinstance(entries, list) or not entries:
            raise ValidationError("marks must be a non-empty list")
        marks = [_mark_from(e) for e in entries if isinstance(e, dict)]
        if len(marks) != len(entries):
            raise ValidationError("Each mark must be an object")

        versions = container.attendance_service.mark_bulk(session_id, marks, current_user_id())
        logger.info("Session %s: %d mark(s) saved by user %s", session_id, len(marks), current_user_id())
        return jsonify({"success": True, "row_versions": {str(k): v for k, v in versions.items()}})

    @app.route(
        "/api/sessions/<int:session_id>/marks/<int:student_id>", methods=["PUT", "POST"], endpoint="mark_student"
    )
    @login_required
    def mark_student(session_id: int, student_id: int):
        _session_for_current_user(session_id)
        mark = _mark_from(request_data(), student_id=student_id)
        row_version = container.attendance_service.mark_one(session_id, mark, current_user_id())
        return jsonify({"success": True, "student_id": student_id, "row_version": row_version})

    @app.route("/api/sessions/<int:session_id>/finalize", methods=["POST"], endpoint="finalize_session")
    @login_required
    def finalize_session(session_id: int):
        _session_for_current_user(session_id)
        container.attendance_service.finalize_session(session_id, current_user_id())
        logger.info("Session %s finalized by user %s", session_id, current_user_id())
        return jsonify({"success": True})
