from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import login_required, roles_required
from ..container import Container
from ..core.constants import DEFAULT_HIRED_BY
from ..core.enums import RoleName
from ..core.exceptions import ValidationError
from .model import HireRequest


def register(app: Flask, container: Container) -> None:
    @app.route("/reference/roles", methods=["GET"], endpoint="list_roles")
    @login_required
    def list_roles():
        roles = container.references_repo.list_roles()
        return jsonify([{"id": r.id, "role_name": r.role_name, "display_name": r.display_name} for r in roles])

    @app.route("/reference/departments", methods=["GET"], endpoint="list_departments")
    @login_required
    def list_departments():
        departments = container.references_repo.list_departments()
        return jsonify(
            [{"id": d.id, "name": d.name, "description": d.description, "code": d.code} for d in departments]
        )

    @app.route("/hires", methods=["POST"], endpoint="hire_employee")
    @roles_required(RoleName.HR, RoleName.ADMIN)
    def hire_employee():
        payload = request.get_json(silent=True) or {}
        try:
            department_id = int(payload.get("department_id") or 0) or None
        except (TypeError, ValueError):
            raise ValidationError("Department is required")

        user = container.provisioning_service.hire(
            HireRequest(
                email=str(payload.get("email") or ""),
                password=str(payload.get("password") or ""),
                name=str(payload.get("name") or ""),
                role_name=str(payload.get("role_name") or ""),
                department_id=department_id,
                designation=payload.get("designation"),
                mobile_no=payload.get("mobile_no"),
                personal_email=payload.get("personal_email"),
                hired_by=session.get("email") or app.config.get("DEFAULT_HIRED_BY") or DEFAULT_HIRED_BY,
            )
        )
        return (
            jsonify(
                {
                    "id": user.id,
                    "user_id": user.user_id,
                    "email": user.email,
                    "name": user.name,
                    "role_name": user.role_name,
                    "role_display_name": user.role_display_name,
                    "department_name": user.department_name,
                    "department_code": user.department_code,
                    "message": "User created successfully",
                }
            ),
            201,
        )
