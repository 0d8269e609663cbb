"""Push event ingestion.

Live events carry no previous value, so every matching event is taken at
face value as a candidate; the cooldown gate is the only thing standing
between a flapping sensor and repeated alerts.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from pydantic import ValidationError

from hubalert.models.hub import HubEvent
from hubalert.state.events import Transition, TransitionSource
from hubalert.state.policy import classify_attribute


def parse_hub_events(batch: Iterable[Any]) -> list[HubEvent]:
    """Validate a batch of raw events, silently dropping malformed ones."""
    events: list[HubEvent] = []
    for raw in batch:
        if isinstance(raw, HubEvent):
            events.append(raw)
            continue
        try:
            events.append(HubEvent.model_validate(raw))
        except ValidationError:
            continue
    return events


def build_transitions_from_events(events: Iterable[HubEvent], now_ms: int) -> list[Transition]:
    transitions: list[Transition] = []
    for event in events:
        kind = classify_attribute(event.name, event.value)
        if kind is None:
            continue
        transitions.append(
            Transition(
                device_id=event.device_id,
                kind=kind,
                observed_at_ms=now_ms,
                source=TransitionSource.PUSH,
            )
        )
    return transitions
