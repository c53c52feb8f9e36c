from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import admin_required, optional_int_arg
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/absences", endpoint="absences")
    @admin_required
    def absences():
        start_s = request.args.get("start")
        end_s = request.args.get("end")
        rows = container.absence_service.list_absentees(
            search=request.args.get("search"),
            group_id=optional_int_arg("group_id"),
            start=parse_iso_date(start_s) if start_s else None,
            end=parse_iso_date(end_s) if end_s else None,
            sort_by=request.args.get("sort_by") or "date",
        )
        return jsonify(
            [
                {
                    "record_id": r.record_id,
                    "student_id": r.student_id,
                    "student_name": r.student_name,
                    "student_number": r.student_number,
                    "phone": r.phone,
                    "group_id": r.group_id,
                    "group_name": r.group_name,
                    "lesson_title": r.lesson_title,
                    "scheduled_at": r.scheduled_at.isoformat(timespec="minutes"),
                }
                for r in rows
            ]
        )

    @app.route("/api/absences/notify", methods=["POST"], endpoint="absences_notify")
    @admin_required
    def absences_notify():
        sent = container.absence_service.send_notices()
        logger.info("Absence notices sent: %d", sent)
        return jsonify({"success": True, "sent": sent})
