from __future__ import annotations

import logging

from flask import Flask, jsonify, request

from ..common.web import admin_required, as_bool, current_role, current_user_id, request_data
from ..container import Container

logger = logging.getLogger(__name__)


def register(app: Flask, container: Container) -> None:
    @app.route("/api/announcements", methods=["GET"], endpoint="announcements")
    @admin_required
    def announcements():
        rows = container.announcement_service.list_announcements(
            current_role=current_role(), active_only=as_bool(request.args.get("active_only"))
        )
        return jsonify([a.to_dict() for a in rows])

    @app.route("/api/announcements", methods=["POST"], endpoint="create_announcement")
    @admin_required
    def create_announcement():
        data = request_data()
        announcement_id = container.announcement_service.create_announcement(
            current_user_id=current_user_id(),
            current_role=current_role(),
            title=data.get("title", ""),
            content=data.get("content", ""),
            priority=data.get("priority"),
            is_active=as_bool(data.get("is_active", True)),
        )
        logger.info("Announcement %s created by user %s", announcement_id, current_user_id())
        return jsonify({"success": True, "announcement_id": announcement_id}), 201

    @app.route("/api/announcements/<int:announcement_id>", methods=["GET"], endpoint="announcement_detail")
    @admin_required
    def announcement_detail(announcement_id: int):
        announcement = container.announcement_service.get_announcement(
            current_role=current_role(), announcement_id=announcement_id
        )
        return jsonify(announcement.to_dict())

    @app.route("/api/announcements/<int:announcement_id>", methods=["PUT"], endpoint="update_announcement")
    @admin_required
    def update_announcement(announcement_id: int):
        data = request_data()
        container.announcement_service.update_announcement(
            current_role=current_role(),
            announcement_id=announcement_id,
            title=data.get("title", ""),
            content=data.get("content", ""),
            priority=data.get("priority"),
            is_active=as_bool(data.get("is_active", True)),
        )
        return jsonify({"success": True})

    @app.route("/api/announcements/<int:announcement_id>", methods=["DELETE"], endpoint="delete_announcement")
    @admin_required
    def delete_announcement(announcement_id: int):
        container.announcement_service.delete_announcement(
            current_role=current_role(), announcement_id=announcement_id
        )
        logger.info("Announcement %s deleted by user %s", announcement_id, current_user_id())
        return jsonify({"success": True})
