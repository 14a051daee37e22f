from __future__ import annotations

import hmac
import logging

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date, utc_now
from ..common.responses import json_api, result_response
from ..common.validators import require_positive_int
from ..container import Container
from ..core.enums import AttendanceAction, Channel, Role
from ..core.exceptions import ValidationError
from ..geofence.model import Location
from .model import AttendanceCommand, AttendanceResult
from .scheduler import run_maintenance_pass

logger = logging.getLogger(__name__)

_ACTIONS = ", ".join(a.value for a in AttendanceAction)


def _command_from_request(channel: Channel, employee_id: int) -> AttendanceCommand:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")

    try:
        action = AttendanceAction(body.get("type"))
    except ValueError:
        raise ValidationError(f"type must be one of: {_ACTIONS}")

    class_id = body.get("class_id")
    if class_id is not None:
        class_id = require_positive_int(class_id, "class_id")

    raw_location = body.get("location")
    location = Location.from_dict(raw_location) if raw_location is not None else None

    return AttendanceCommand.for_channel(
        channel,
        action=action,
        employee_id=employee_id,
        class_id=class_id,
        location=location,
        # Only a literal true counts; the verifier is external.
        biometric_verified=body.get("biometric_verified") is True,
    )


def register(app: Flask, container: Container) -> None:
    identity = container.identity

    def _record(channel: Channel):
        caller = identity.require_role(Role.EMPLOYEE, Role.TRAINER)
        command = _command_from_request(channel, caller.user_id)
        return result_response(container.attendance_engine.handle(command))

    @app.route("/api/attendance/web", methods=["POST"], endpoint="attendance_web")
    @json_api
    def attendance_web():
        return _record(Channel.WEB)

    @app.route("/api/attendance/mobile", methods=["POST"], endpoint="attendance_mobile")
    @json_api
    def attendance_mobile():
        return _record(Channel.MOBILE)

    @app.route("/api/attendance/status", methods=["GET"], endpoint="attendance_status")
    @json_api
    def attendance_status():
        caller = identity.authenticate()
        status = container.query_service.today_status(caller.user_id)
        return result_response(AttendanceResult.ok("Attendance status", **status))

    @app.route("/api/admin/attendance/summary", methods=["GET"], endpoint="admin_attendance_summary")
    @json_api
    def admin_attendance_summary():
        identity.require_role(Role.ADMIN)
        date_s = request.args.get("date")
        if date_s:
            try:
                work_date = parse_iso_date(date_s)
            except ValueError:
                raise ValidationError("date must be formatted as YYYY-MM-DD")
        else:
            work_date = utc_now().astimezone(container.config.tz).date()
        summary = container.query_service.day_summary(work_date)
        return result_response(AttendanceResult.ok(f"Attendance summary for {work_date.isoformat()}", **summary))

    @app.route("/api/cron/auto-checkout", methods=["GET"], endpoint="cron_auto_checkout")
    @json_api
    def cron_auto_checkout():
        secret = app.config.get("CRON_SECRET") or ""
        if secret:
            supplied = request.headers.get("Authorization", "")
            if not hmac.compare_digest(supplied, f"Bearer {secret}"):
                logger.warning("Rejected cron call from %s", request.remote_addr)
                body = {
                    "success": False,
                    "message": "Unauthorized",
                    "error": {"kind": "Unauthenticated", "detail": {"message": "Unauthorized"}},
                }
                return jsonify(body), 401

        report, marked = run_maintenance_pass(container.sweeper, container.absence_service)
        return result_response(
            AttendanceResult.ok(
                "Auto-checkout completed",
                work_closed=report.work_closed,
                class_closed=report.class_closed,
                failures=report.failures,
                absentees_marked=marked,
            )
        )
