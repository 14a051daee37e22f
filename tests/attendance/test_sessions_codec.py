import json
from datetime import datetime, timezone

from src.attendance_engine.attendance_engine.attendance.model import WorkSession
from src.attendance_engine.attendance_engine.attendance.sessions_codec import decode_sessions, encode_sessions
from tests.fakes import at, on_site


def utc(hour, minute=0):
    return datetime(2025, 3, 3, hour, minute, tzinfo=timezone.utc)


def test_decode_accepts_json_string_and_list():
    payload = [{"check_in": "2025-03-03T05:00:00Z", "check_out": "2025-03-03T07:30:00+00:00"}]

    from_text = decode_sessions(json.dumps(payload))
    from_list = decode_sessions(payload)
    from_bytes = decode_sessions(json.dumps(payload).encode("utf-8"))

    assert from_text == from_list == from_bytes
    assert from_text[0].check_in == utc(5)
    assert from_text[0].check_out == utc(7, 30)


def test_decode_legacy_keys_and_checkout_only_entry():
    payload = [
        {"check_in_time": "2025-03-03T05:00:00"},
        {"check_out_time": "2025-03-03T14:00:00", "auto_checkout": True},
        {"check_in_time": "2025-03-03T15:00:00"},
    ]

    sessions = decode_sessions(payload)

    assert len(sessions) == 2
    assert sessions[0].check_out == utc(14)
    assert sessions[0].auto_checkout is True
    assert sessions[1].is_open


def test_decode_tolerates_garbage():
    assert decode_sessions(None) == ()
    assert decode_sessions("") == ()
    assert decode_sessions("not json") == ()
    assert decode_sessions({"check_in": "2025-03-03T05:00:00"}) == ()
    assert decode_sessions([{"check_in": "yesterday"}, "x", {"check_in": "2025-03-03T05:00:00"}]) == (
        WorkSession(check_in=utc(5)),
    )


def test_encode_writes_utc_and_location():
    sessions = (
        WorkSession(check_in=at(8, 0), check_out=at(17, 0), auto_checkout=True, location=on_site()),
        WorkSession(check_in=at(18, 0)),
    )

    payload = json.loads(encode_sessions(sessions))

    assert payload[0]["check_in"] == "2025-03-03T05:00:00+00:00"
    assert payload[0]["auto_checkout"] is True
    assert payload[0]["location"]["accuracy"] == 5.0
    assert payload[1]["check_out"] is None
    assert "location" not in payload[1]
    assert decode_sessions(encode_sessions(sessions)) == sessions
