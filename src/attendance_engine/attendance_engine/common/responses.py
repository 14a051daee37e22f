"""JSON envelopes shared by the controllers: ``{success, message, data?, error?}``."""
from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify

from ..core.exceptions import DomainError, TransientStoreError

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "Unauthenticated": 401,
    "Forbidden": 403,
    "TransientStoreFailure": 503,
}


def status_for_kind(kind: str | None) -> int:
    return STATUS_BY_KIND.get(kind or "", 400)


def error_response(exc: DomainError | TransientStoreError):
    body = {"success": False, "message": exc.message, "error": exc.to_dict()}
    return jsonify(body), status_for_kind(exc.kind)


def result_response(result):
    """Serialize an ``AttendanceResult``; failures map to their error status."""

    status = 200
    if not result.success:
        status = status_for_kind((result.error or {}).get("kind"))
    return jsonify(result.to_dict()), status


def json_api(view):
    """Turn raised domain/store errors into JSON envelopes; hide anything else."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except (DomainError, TransientStoreError) as e:
            if isinstance(e, TransientStoreError):
                logger.warning("Store failure in %s: %s", view.__name__, e.message)
            return error_response(e)
        except Exception:
            logger.exception("Unhandled error in %s", view.__name__)
            body = {
                "success": False,
                "message": "Internal server error",
                "error": {"kind": "Internal", "detail": {"message": "Internal server error"}},
            }
            return jsonify(body), 500

    return wrapper
