"""Sound configuration model."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any
from urllib.parse import quote, urljoin, urlsplit

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from hubalert.state.events import TransitionKind


def resolve_sound_url(value: Any, asset_prefix: str) -> str | None:
    """Resolve a configured sound to a fetchable URL.

    Absolute URLs (anything with a scheme) are kept as-is; bare filenames
    and root-relative paths are resolved against *asset_prefix*.
    """
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if urlsplit(text).scheme:
        return text
    prefix = asset_prefix if asset_prefix.endswith("/") else f"{asset_prefix}/"
    # Root-relative paths resolve against the prefix's origin.
    return urljoin(prefix, quote(text))


class SoundSet(BaseModel):
    """Configured sound URL per transition kind.

    Two sets are equal only when all three URLs are equal.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )

    motion: str | None = None
    door_open: str | None = None
    door_close: str | None = None

    @field_validator("motion", "door_open", "door_close", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_config(cls, raw: Mapping[str, Any] | None, *, asset_prefix: str) -> SoundSet:
        """Build a set from UI/config keys (``motion``, ``doorOpen``, ``doorClose``)."""
        raw = raw or {}

        def pick(*keys: str) -> str | None:
            for key in keys:
                if key in raw:
                    return resolve_sound_url(raw[key], asset_prefix)
            return None

        return cls(
            motion=pick("motion"),
            door_open=pick("doorOpen", "door_open"),
            door_close=pick("doorClose", "door_close"),
        )

    def url_for(self, kind: TransitionKind) -> str | None:
        if kind == TransitionKind.MOTION:
            return self.motion
        if kind == TransitionKind.DOOR_OPEN:
            return self.door_open
        return self.door_close
