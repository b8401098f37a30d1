from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request, session

from ..common.http import login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    @app.route("/mail/inbox", methods=["GET"], endpoint="mail_inbox")
    @login_required
    def inbox():
        items = container.mail_service.inbox(session["identity_id"])
        return jsonify([asdict(i) for i in items])

    @app.route("/mail/departments", methods=["GET"], endpoint="mail_departments")
    @login_required
    def departments():
        return jsonify(
            [{"id": d.id, "name": d.name, "description": d.description} for d in container.mail_service.departments()]
        )

    @app.route("/mail/employee-type", methods=["GET"], endpoint="mail_employee_type")
    @login_required
    def employee_type():
        user_id = session["identity_id"]
        et = container.mail_service.employee_type(user_id)
        return jsonify(
            {
                "employee_type": asdict(et) if et else None,
                "is_department_head": container.mail_service.is_department_head(user_id),
            }
        )

    @app.route("/mail", methods=["POST"], endpoint="send_department_mail")
    @login_required
    def send_department_mail():
        payload = request.get_json(silent=True) or {}
        try:
            department_id = int(payload.get("recipient_department_id") or 0) or None
        except (TypeError, ValueError):
            raise ValidationError("Please select a recipient department")

        sent = container.mail_service.send_department_mail(
            session["identity_id"],
            str(payload.get("subject") or ""),
            str(payload.get("body") or ""),
            department_id,
            is_urgent=bool(payload.get("is_urgent")),
        )
        return jsonify({**asdict(sent), "message": "Email sent successfully!"}), 201

    @app.route("/mail/<int:mail_id>/read", methods=["POST"], endpoint="mark_mail_read")
    @login_required
    def mark_read(mail_id: int):
        container.mail_service.mark_as_read(mail_id, session["identity_id"])
        return jsonify({"mail_id": mail_id, "is_read": True})

    @app.route("/mail/<int:mail_id>/analytics", methods=["GET"], endpoint="mail_analytics")
    @login_required
    def analytics(mail_id: int):
        statuses = container.mail_service.mail_analytics(session["identity_id"], mail_id)
        return jsonify([asdict(s) for s in statuses])
