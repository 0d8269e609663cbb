from __future__ import annotations

import asyncio
import json
from typing import Any

import pytest

from hubalert._mqtt import HubEventRuntime, parse_mqtt_message
from hubalert.config import AlertConfig


def test_json_object_payload() -> None:
    payload = json.dumps({"deviceId": 5, "name": "motion", "value": "active"}).encode()

    assert parse_mqtt_message("hubitat/events", payload) == [{"deviceId": 5, "name": "motion", "value": "active"}]


def test_json_list_payload_keeps_objects_only() -> None:
    payload = json.dumps([{"deviceId": "5", "name": "contact", "value": "open"}, 3, "x"]).encode()

    assert parse_mqtt_message("hubitat/events", payload) == [{"deviceId": "5", "name": "contact", "value": "open"}]


def test_bare_value_uses_topic_levels() -> None:
    assert parse_mqtt_message("hubitat/home/12/contact", b"open") == [
        {"deviceId": "12", "name": "contact", "value": "open"}
    ]


def test_bare_number_is_passed_as_text() -> None:
    assert parse_mqtt_message("hubitat/12/temperature", b"21.5") == [
        {"deviceId": "12", "name": "temperature", "value": "21.5"}
    ]


def test_unusable_messages_yield_nothing() -> None:
    assert parse_mqtt_message("hubitat/12/contact", b"   ") == []
    assert parse_mqtt_message("contact", b"open") == []


@pytest.mark.asyncio
async def test_messages_are_handed_to_the_event_loop() -> None:
    loop = asyncio.get_running_loop()
    received: list[list[dict[str, Any]]] = []
    done = asyncio.Event()

    def on_batch(batch: list[dict[str, Any]]) -> None:
        received.append(batch)
        done.set()

    runtime = HubEventRuntime(loop=loop, config=AlertConfig(mqtt_host="broker.local"), on_batch=on_batch)

    await loop.run_in_executor(None, runtime._handle_message, "hubitat/7/motion", b"active")
    await asyncio.wait_for(done.wait(), timeout=1.0)

    assert received == [[{"deviceId": "7", "name": "motion", "value": "active"}]]
    assert not runtime.is_running
