"""Deterministic transition rules.

This module intentionally contains *no* payload parsing. The ingestion
boundary is responsible for producing ``DeviceState`` values and validated
hub events.
"""

from __future__ import annotations

from hubalert.state.events import TransitionKind
from hubalert.state.store import ContactState, DeviceState, MotionState


def detect_edge(prev: DeviceState, nxt: DeviceState) -> TransitionKind | None:
    """Return the transition between two states of one device, if any.

    At most one kind is reported; priority is doorOpen > doorClose > motion.
    """
    if prev.contact != ContactState.OPEN and nxt.contact == ContactState.OPEN:
        return TransitionKind.DOOR_OPEN
    if prev.contact == ContactState.OPEN and nxt.contact == ContactState.CLOSED:
        return TransitionKind.DOOR_CLOSE
    if prev.motion != MotionState.ACTIVE and nxt.motion == MotionState.ACTIVE:
        return TransitionKind.MOTION
    return None


def classify_attribute(name: str, value: str) -> TransitionKind | None:
    """Classify a single attribute change at face value (no previous state)."""
    if name == "contact":
        if value == ContactState.OPEN:
            return TransitionKind.DOOR_OPEN
        if value == ContactState.CLOSED:
            return TransitionKind.DOOR_CLOSE
        return None
    if name == "motion" and value == MotionState.ACTIVE:
        return TransitionKind.MOTION
    return None
