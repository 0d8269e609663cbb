"""Hub payload models: full-state device status and live attribute events."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field, field_validator, model_validator

from hubalert.models._base import HubBaseModel


def _id_text(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return str(int(value))
    if isinstance(value, str):
        return value.strip()
    return value


class DeviceStatus(HubBaseModel):
    """One device from a full-state poll."""

    id: str = Field(default="", validation_alias=AliasChoices("id", "deviceId", "device_id"))
    label: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("attributes", mode="before")
    @classmethod
    def _flatten_attributes(cls, value: Any) -> Any:
        # Per-device Maker API responses list attributes as
        # [{"name": ..., "currentValue": ...}] instead of a mapping.
        if isinstance(value, list):
            flat: dict[str, Any] = {}
            for item in value:
                if isinstance(item, dict) and isinstance(item.get("name"), str):
                    flat[item["name"]] = item.get("currentValue", item.get("value"))
            return flat
        if value is None:
            return {}
        return value


class HubEvent(HubBaseModel):
    """A single attribute change delivered over the live channel.

    Accepts both the flat ``{deviceId, name, value}`` shape and the Maker API
    webhook envelope ``{"content": {...}}``.
    """

    device_id: str = Field(..., validation_alias=AliasChoices("deviceId", "device_id", "id"))
    name: str
    value: str

    @model_validator(mode="before")
    @classmethod
    def _unwrap_content(cls, values: Any) -> Any:
        if isinstance(values, dict) and isinstance(values.get("content"), dict):
            return values["content"]
        return values

    @field_validator("device_id", mode="before")
    @classmethod
    def _coerce_device_id(cls, value: Any) -> Any:
        return _id_text(value)

    @field_validator("device_id")
    @classmethod
    def _require_device_id(cls, value: str) -> str:
        if not value:
            raise ValueError("device_id must be non-empty")
        return value

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_value(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value
