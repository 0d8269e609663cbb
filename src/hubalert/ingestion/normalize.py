"""Normalization helpers.

Turns raw hub status payloads into ``DeviceState`` snapshots.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from hubalert._constants import CONTACT_VALUES, MOTION_VALUES
from hubalert.models.hub import DeviceStatus
from hubalert.state.store import DeviceState

_logger = logging.getLogger(__name__)


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def device_state_from_attributes(attributes: Mapping[str, Any]) -> DeviceState | None:
    """Derive a ``DeviceState`` from an attribute mapping.

    Returns ``None`` for devices that report neither a known motion value
    nor a known contact value.
    """
    motion = (safe_str(attributes.get("motion")) or "").lower()
    contact = (safe_str(attributes.get("contact")) or "").lower()
    if motion not in MOTION_VALUES and contact not in CONTACT_VALUES:
        return None
    return DeviceState(motion=motion, contact=contact)


def _attributes_of(status: Any) -> Mapping[str, Any]:
    if not isinstance(status, Mapping):
        return {}
    nested = status.get("attributes")
    if isinstance(nested, Mapping):
        return nested
    if isinstance(nested, list):
        return DeviceStatus.model_validate({"attributes": nested}).attributes
    return status


def build_snapshot(statuses: Mapping[str, Any] | Iterable[Any]) -> dict[str, DeviceState]:
    """Build a poll snapshot from a full-state read.

    *statuses* is either a mapping ``{device_id: status}`` (status being
    ``{"attributes": {...}}`` or the attribute mapping itself) or the Maker
    API list form ``[{"id": ..., "attributes": ...}]``.  Devices without
    motion/contact activity are left out.
    """
    snapshot: dict[str, DeviceState] = {}

    if isinstance(statuses, Mapping):
        items: Iterable[tuple[str | None, Any]] = ((safe_str(k), v) for k, v in statuses.items())
    else:
        pairs: list[tuple[str | None, Any]] = []
        for entry in statuses:
            try:
                device = DeviceStatus.model_validate(entry)
            except ValidationError:
                _logger.debug("Dropping malformed device status entry", exc_info=True)
                continue
            pairs.append((safe_str(device.id), {"attributes": device.attributes}))
        items = pairs

    for device_id, status in items:
        if not device_id:
            continue
        state = device_state_from_attributes(_attributes_of(status))
        if state is not None:
            snapshot[device_id] = state
    return snapshot
