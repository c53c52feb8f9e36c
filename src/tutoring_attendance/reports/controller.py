from __future__ import annotations

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_role, current_user_id, login_required, optional_int_arg
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import AuthorizationError
from .service import CsvExport, StudentReport


def _date_arg(name: str):
    value = request.args.get(name)
    return parse_iso_date(value) if value else None


def _student_report_to_dict(report: StudentReport) -> dict:
    s = report.student
    return {
        "student": {
            "student_id": s.student_id,
            "student_number": s.student_number,
            "full_name": s.full_name,
            "group_id": s.group_id,
        },
        "start": report.start.isoformat(),
        "end": report.end.isoformat(),
        "summary": report.summary.to_dict(),
        "records": [
            {
                "session_id": r.session_id,
                "scheduled_at": r.scheduled_at.isoformat(timespec="minutes"),
                "lesson_title": r.lesson_title,
                "status": r.status.value,
                "late_minutes": r.late_minutes,
                "note": r.note,
            }
            for r in report.rows
        ],
    }


def register(app: Flask, container: Container) -> None:
    def _send_csv(export: CsvExport):
        return app.response_class(
            export.content,
            mimetype="text/csv",
            headers={"Content-Disposition": f"attachment; filename={export.filename}"},
        )

    @app.route("/api/reports/sessions", endpoint="report_sessions")
    @login_required
    def report_sessions():
        rows = container.report_service.finalized_sessions(
            current_role=current_role(),
            current_user_id=current_user_id(),
            group_id=optional_int_arg("group_id"),
        )
        return jsonify([s.to_dict() for s in rows])

    @app.route("/api/reports/sessions/<int:session_id>.csv", endpoint="report_session_csv")
    @login_required
    def report_session_csv(session_id: int):
        summary = container.attendance_service.get_session_summary(session_id)
        if current_role() != Role.ADMIN and summary.session.teacher_id != current_user_id():
            raise AuthorizationError("You can only export your own sessions")
        return _send_csv(container.report_service.session_csv(session_id))

    @app.route("/api/reports/students/<int:student_id>", endpoint="report_student")
    @login_required
    def report_student(student_id: int):
        report = container.report_service.student_report(student_id, _date_arg("start"), _date_arg("end"))
        return jsonify(_student_report_to_dict(report))

    @app.route("/api/reports/students/<int:student_id>.csv", endpoint="report_student_csv")
    @login_required
    def report_student_csv(student_id: int):
        return _send_csv(container.report_service.student_csv(student_id, _date_arg("start"), _date_arg("end")))

    @app.route("/api/reports/groups/<int:group_id>", endpoint="report_group")
    @login_required
    def report_group(group_id: int):
        report = container.report_service.group_report(group_id, _date_arg("start"), _date_arg("end"))
        return jsonify(
            {
                "group": {"group_id": report.group.group_id, "name": report.group.name, "code": report.group.code},
                "start": report.start.isoformat(),
                "end": report.end.isoformat(),
                "students": [
                    {
                        "student_id": row.student.student_id,
                        "student_number": row.student.student_number,
                        "full_name": row.student.full_name,
                        "summary": row.summary.to_dict(),
                    }
                    for row in report.students
                ],
            }
        )
