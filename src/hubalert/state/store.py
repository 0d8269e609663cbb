"""In-memory device snapshot store.

Pure data: the last known ``{motion, contact}`` pair per device id.
Absence of a key means the device was never observed.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class MotionState(StrEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ContactState(StrEnum):
    OPEN = "open"
    CLOSED = "closed"


def _coerce_enum(enum_cls: type[StrEnum], value: Any) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    text = str(value).strip().lower()
    try:
        return enum_cls(text)
    except ValueError:
        return None


class DeviceState(BaseModel):
    """Motion/contact pair for a single device.

    Values outside the known vocabularies are stored as ``None``.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    motion: MotionState | None = None
    contact: ContactState | None = None

    @field_validator("motion", mode="before")
    @classmethod
    def _coerce_motion(cls, value: Any) -> Any:
        return _coerce_enum(MotionState, value)

    @field_validator("contact", mode="before")
    @classmethod
    def _coerce_contact(cls, value: Any) -> Any:
        return _coerce_enum(ContactState, value)

    @property
    def has_activity(self) -> bool:
        return self.motion is not None or self.contact is not None


_EMPTY = DeviceState()


class DeviceSnapshotStore:
    """Last known device states, keyed by device id.

    The store is replaced wholesale by poll snapshots and patched one field
    at a time by push events.  ``initialized`` stays ``False`` until the
    first wholesale replacement.
    """

    def __init__(self) -> None:
        self._devices: dict[str, DeviceState] = {}
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def __len__(self) -> int:
        return len(self._devices)

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __iter__(self) -> Iterator[str]:
        return iter(self._devices)

    def get(self, device_id: str) -> DeviceState:
        """Return the stored state, or an all-``None`` state if never observed."""
        return self._devices.get(device_id, _EMPTY)

    def replace(self, devices: Mapping[str, DeviceState]) -> None:
        self._devices = dict(devices)
        self._initialized = True

    def update_field(self, device_id: str, name: str, value: Any) -> DeviceState:
        """Set a single ``motion``/``contact`` field for a device."""
        if name not in DeviceState.model_fields:
            return self.get(device_id)
        coerced = getattr(DeviceState.model_validate({name: value}), name)
        updated = self.get(device_id).model_copy(update={name: coerced})
        self._devices[device_id] = updated
        return updated

    def snapshot(self) -> dict[str, DeviceState]:
        return dict(self._devices)

    def reset(self) -> None:
        self._devices = {}
        self._initialized = False
