from __future__ import annotations

from flask import Flask, jsonify, request, session

from ..common.http import current_role, login_required
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    def _load(profile_id: str) -> dict:
        profile = container.profiles_repo.get_by_id(profile_id)
        if not profile:
            raise ValidationError("Profile not found")
        return profile

    @app.route("/profiles/<profile_id>/editable-fields", methods=["GET"], endpoint="editable_fields")
    @login_required
    def editable_fields(profile_id: str):
        policy = container.access_policy
        role = current_role()
        is_own = session["identity_id"] == profile_id
        fields = sorted(policy.get_allowed_fields(role, is_own))
        labels = policy.field_display_names()
        return jsonify(
            {
                "fields": fields,
                "labels": {f: labels.get(f, f) for f in fields},
                "instructions": policy.editing_instructions(role, is_own),
            }
        )

    @app.route("/profiles/<profile_id>", methods=["PATCH"], endpoint="save_profile")
    @login_required
    def save_profile(profile_id: str):
        original = _load(profile_id)
        is_own = session["identity_id"] == profile_id

        # The editor submits the whole form; untouched fields keep their stored value.
        edited = {**original, **(request.get_json(silent=True) or {})}
        result = container.profile_reconciler.save(original, edited, current_role(), is_own)

        if is_own and "name" in result.updated_fields:
            session["name"] = result.profile.get("name")
        return jsonify({"profile": result.profile, "updated_fields": result.updated_fields})
