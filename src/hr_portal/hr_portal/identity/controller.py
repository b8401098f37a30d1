from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import login_required, roles_required
from ..container import Container
from ..core.enums import RoleName


def register(app: Flask, container: Container) -> None:
    @app.route("/auth/login", methods=["POST"], endpoint="login")
    def login():
        payload = request.get_json(silent=True) or {}
        s_user = container.auth_service.authenticate(payload.get("email", ""), payload.get("password", ""))

        session.clear()
        session.permanent = bool(payload.get("remember_me"))
        session["identity_id"] = s_user.id
        session["email"] = s_user.email
        session["name"] = s_user.name
        session["role"] = s_user.role.value if s_user.role else None

        # No role yet: the UI shows the "no role assigned" screen.
        return jsonify({"id": s_user.id, "email": s_user.email, "name": s_user.name, "role": session["role"]})

    @app.route("/auth/logout", methods=["POST"], endpoint="logout")
    def logout():
        session.clear()
        return jsonify({"message": "Logged out"})

    @app.route("/auth/me", methods=["GET"], endpoint="me")
    @login_required
    def me():
        return jsonify(
            {
                "id": session["identity_id"],
                "email": session.get("email"),
                "name": session.get("name"),
                "role": session.get("role"),
            }
        )

    @app.route("/admin/users", methods=["GET"], endpoint="admin_users")
    @roles_required(RoleName.ADMIN)
    def admin_users():
        page = request.args.get("page", 1, type=int)
        per_page = request.args.get("per_page", 50, type=int)
        return jsonify(container.metadata_service.list_users_with_metadata(page, per_page))

    @app.route("/admin/users/<identity_id>/role", methods=["POST"], endpoint="update_user_role")
    @roles_required(RoleName.ADMIN, RoleName.HR)
    def update_user_role(identity_id: str):
        payload = request.get_json(silent=True) or {}
        identity = container.metadata_service.update_user_role(
            identity_id, payload.get("role", ""), updated_by=session.get("email") or "hr"
        )
        return jsonify({"id": identity.id, "email": identity.email, "metadata": identity.metadata})

    @app.route("/admin/metadata/migrate", methods=["POST"], endpoint="migrate_metadata")
    @roles_required(RoleName.ADMIN)
    def migrate_metadata():
        report = container.metadata_service.migrate_all()
        return jsonify(
            {
                "results": [r.__dict__ for r in report.results],
                "summary": {"total": report.total, "successful": report.successful, "failed": report.failed},
            }
        )
