from __future__ import annotations

from datetime import timedelta

from flask import Flask, request, session

from ..attendance.model import AttendanceResult
from ..common.responses import json_api, result_response
from ..container import Container
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    app.permanent_session_lifetime = timedelta(days=7)

    @app.route("/api/auth/login", methods=["POST"], endpoint="login")
    @json_api
    def login():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")

        caller = container.auth_service.authenticate(
            str(body.get("username") or ""),
            str(body.get("password") or ""),
        )

        session.clear()
        session.permanent = bool(body.get("remember_me"))
        session["user_id"] = caller.user_id

        return result_response(
            AttendanceResult.ok(
                f"Welcome, {caller.full_name}",
                user_id=caller.user_id,
                full_name=caller.full_name,
                role=caller.role,
            )
        )

    @app.route("/api/auth/logout", methods=["POST"], endpoint="logout")
    @json_api
    def logout():
        session.clear()
        return result_response(AttendanceResult.ok("Logged out"))
