"""Single (de)serialization point for the ``sessions`` JSON column.

Stored payloads come from several generations of clients: a JSON string or an
already-decoded list, ``check_in``/``check_out`` or ``check_in_time``/
``check_out_time`` keys, and checkout-only entries appended after the session
they close. Business code only ever sees ``WorkSession`` tuples.
"""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Tuple

from ..core.exceptions import ValidationError
from ..geofence.model import Location
from .model import WorkSession

logger = logging.getLogger(__name__)

_CHECK_IN_KEYS = ("check_in", "check_in_time")
_CHECK_OUT_KEYS = ("check_out", "check_out_time")


def _parse_timestamp(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _first(entry: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        if entry.get(key) is not None:
            return entry[key]
    return None


def _parse_location(value: Any) -> Optional[Location]:
    if not value:
        return None
    try:
        return Location.from_dict(value)
    except ValidationError:
        return None


def _load_entries(raw: Any) -> List[dict]:
    if raw is None:
        return []
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        if not raw.strip():
            return []
        raw = json.loads(raw)
    if not isinstance(raw, list):
        raise ValueError(f"sessions payload must be a list, got {type(raw).__name__}")
    return [e for e in raw if isinstance(e, dict)]


def decode_sessions(raw: Any) -> Tuple[WorkSession, ...]:
    try:
        entries = _load_entries(raw)
    except ValueError:
        logger.warning("Discarding unparsable sessions payload: %r", raw)
        return ()

    sessions: List[WorkSession] = []
    for entry in entries:
        try:
            check_in = _parse_timestamp(_first(entry, _CHECK_IN_KEYS))
            check_out = _parse_timestamp(_first(entry, _CHECK_OUT_KEYS))
        except (TypeError, ValueError):
            logger.warning("Skipping session entry with bad timestamps: %r", entry)
            continue
        auto = bool(entry.get("auto_checkout", False))

        if check_in is None:
            # Legacy checkout-only entry: it closes the preceding open session.
            if check_out is not None and sessions and sessions[-1].is_open:
                last = sessions[-1]
                sessions[-1] = WorkSession(
                    check_in=last.check_in,
                    check_out=max(check_out, last.check_in),
                    auto_checkout=auto,
                    location=last.location,
                )
            continue

        sessions.append(
            WorkSession(
                check_in=check_in,
                check_out=check_out,
                auto_checkout=auto,
                location=_parse_location(entry.get("location")),
            )
        )
    return tuple(sessions)


def _iso_utc(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


def encode_sessions(sessions: Iterable[WorkSession]) -> str:
    payload = []
    for s in sessions:
        entry = {
            "check_in": _iso_utc(s.check_in),
            "check_out": _iso_utc(s.check_out),
            "auto_checkout": bool(s.auto_checkout),
        }
        if s.location is not None:
            entry["location"] = s.location.to_dict()
        payload.append(entry)
    return json.dumps(payload)
