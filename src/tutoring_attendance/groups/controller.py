from __future__ import annotations

from flask import Flask, jsonify

from ..common.web import admin_required, as_bool, current_role, login_required, request_data
from ..container import Container
from .model import Group, Student


def _group_to_dict(g: Group) -> dict:
    return {"group_id": g.group_id, "name": g.name, "code": g.code, "description": g.description}


def _student_to_dict(s: Student) -> dict:
    return {
        "student_id": s.student_id,
        "student_number": s.student_number,
        "first_name": s.first_name,
        "last_name": s.last_name,
        "full_name": s.full_name,
        "phone": s.phone,
        "group_id": s.group_id,
        "is_active": s.is_active,
    }


def register(app: Flask, container: Container) -> None:
    @app.route("/api/groups", methods=["GET"], endpoint="groups")
    @login_required
    def groups():
        return jsonify([_group_to_dict(g) for g in container.group_service.list_groups()])

    @app.route("/api/groups", methods=["POST"], endpoint="create_group")
    @admin_required
    def create_group():
        data = request_data()
        group_id = container.group_service.create_group(
            current_role=current_role(),
            name=data.get("name", ""),
            code=data.get("code", ""),
            description=data.get("description"),
        )
        return jsonify({"success": True, "group_id": group_id}), 201

    @app.route("/api/groups/<int:group_id>", methods=["GET"], endpoint="group_detail")
    @login_required
    def group_detail(group_id: int):
        detail = container.group_service.get_group_detail(group_id)
        body = _group_to_dict(detail.group)
        body["students"] = [_student_to_dict(s) for s in detail.students]
        body["lessons"] = [v.to_dict() for v in detail.lessons]
        return jsonify(body)

    @app.route("/api/groups/<int:group_id>", methods=["DELETE"], endpoint="delete_group")
    @admin_required
    def delete_group(group_id: int):
        container.group_service.delete_group(current_role=current_role(), group_id=group_id)
        return jsonify({"success": True})

    @app.route("/api/groups/<int:group_id>/students", methods=["POST"], endpoint="add_student")
    @admin_required
    def add_student(group_id: int):
        data = request_data()
        student_id = container.group_service.add_student(
            current_role=current_role(),
            group_id=group_id,
            first_name=data.get("first_name", ""),
            last_name=data.get("last_name", ""),
            student_number=data.get("student_number", ""),
            phone=data.get("phone"),
        )
        return jsonify({"success": True, "student_id": student_id}), 201

    @app.route("/api/students/<int:student_id>/active", methods=["POST"], endpoint="set_student_active")
    @admin_required
    def set_student_active(student_id: int):
        container.group_service.set_student_active(
            current_role=current_role(),
            student_id=student_id,
            is_active=as_bool(request_data().get("is_active")),
        )
        return jsonify({"success": True})

    @app.route("/api/sidebar", endpoint="sidebar")
    @login_required
    def sidebar():
        return jsonify(
            [
                {**_group_to_dict(entry.group), "lessons": [v.to_dict() for v in entry.lessons]}
                for entry in container.group_service.sidebar()
            ]
        )
