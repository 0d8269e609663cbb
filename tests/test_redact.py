from __future__ import annotations

from hubalert._redact import redact_for_log, redact_url


def test_redact_url_masks_access_token() -> None:
    url = "https://192.168.1.20/apps/api/7/devices/all?access_token=secret-token"

    assert redact_url(url) == "https://192.168.1.20/apps/api/7/devices/all?access_token=<redacted>"


def test_redact_url_masks_userinfo() -> None:
    assert redact_url("mqtt://user:pw@broker.local:1883") == "mqtt://<redacted>@broker.local:1883"


def test_redact_url_keeps_plain_urls() -> None:
    url = "http://localhost:3000/sounds/chime.wav"

    assert redact_url(url) == url


def test_redact_for_log_masks_sensitive_keys() -> None:
    payload = {
        "mqtt_password": "p",
        "nested": {"access_token": "abc", "ok": "value"},
        "items": [{"token": "t"}, {"name": "contact"}],
    }

    redacted = redact_for_log(payload)

    assert redacted["mqtt_password"] == "<redacted>"
    assert redacted["nested"]["access_token"] == "<redacted>"
    assert redacted["nested"]["ok"] == "value"
    assert redacted["items"][0]["token"] == "<redacted>"
    assert redacted["items"][1]["name"] == "contact"


def test_redact_for_log_redacts_urls_inside_strings() -> None:
    redacted = redact_for_log({"url": "https://hub.local/apps/api/7/devices/all?access_token=abc"})

    assert "abc" not in redacted["url"]


def test_redact_for_log_truncates_and_summarizes_bytes() -> None:
    assert redact_for_log("x" * 10, max_string=4) == "xxxx…<truncated>"
    assert redact_for_log(b"\x00\x01\x02") == "<bytes:3b>"
