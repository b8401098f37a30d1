"""Shared Flask glue: session guards and the domain-error -> JSON mapping."""

from __future__ import annotations

import logging
from functools import wraps
from typing import Any

from flask import Flask, jsonify, session

from ..core.enums import RoleName
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    DepartmentCodeMissingError,
    DepartmentNotFoundError,
    DomainError,
    IdentityCreationError,
    InvalidReferenceError,
    PartialProvisioningError,
    PersistenceError,
    RoleNotFoundError,
    StoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS = (
    (PartialProvisioningError, 502, "partial_provisioning"),
    (DepartmentCodeMissingError, 409, "department_code_missing"),
    (RoleNotFoundError, 404, "role_not_found"),
    (DepartmentNotFoundError, 404, "department_not_found"),
    (IdentityCreationError, 409, "identity_creation_failed"),
    (InvalidReferenceError, 400, "invalid_reference"),
    (PersistenceError, 502, "persistence_failed"),
    (ValidationError, 400, "validation_error"),
    (AuthenticationError, 401, "authentication_failed"),
    (AuthorizationError, 403, "forbidden"),
)


def error_body(error: DomainError) -> tuple[dict[str, Any], int]:
    status, code = 400, "domain_error"
    for cls, cls_status, cls_code in _STATUS:
        if isinstance(error, cls):
            status, code = cls_status, cls_code
            break

    body: dict[str, Any] = {"error": code, "message": str(error)}
    if isinstance(error, ValidationError):
        body["errors"] = error.errors
    if isinstance(error, InvalidReferenceError):
        body["reference"] = error.reference
    if isinstance(error, PartialProvisioningError):
        body.update(email=error.email, identity_id=error.identity_id, user_id=error.user_id)
    stage = getattr(error, "stage", None)
    if stage is not None:
        body["stage"] = stage.value
    return body, status


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def _domain_error(e: DomainError):
        body, status = error_body(e)
        return jsonify(body), status

    @app.errorhandler(StoreError)
    def _store_error(e: StoreError):
        logger.error("Backend call failed: %s", e)
        if app.config.get("DEBUG"):
            return jsonify({"error": "store_unavailable", "message": str(e)}), 503
        return jsonify({"error": "store_unavailable", "message": "Backend is unavailable, please retry"}), 503


def current_role() -> RoleName:
    return RoleName.parse(session.get("role"))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "identity_id" not in session:
            return jsonify({"error": "authentication_required", "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: RoleName):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "identity_id" not in session:
                return jsonify({"error": "authentication_required", "message": "Please log in to continue"}), 401
            if session.get("role") not in allowed:
                return jsonify({"error": "forbidden", "message": "You do not have permission"}), 403
            return view(*args, **kwargs)

        return wrapper

    return decorator
