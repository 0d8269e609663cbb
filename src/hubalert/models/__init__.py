"""Typed models for hub payloads and sound configuration."""

from hubalert.models._base import HubBaseModel
from hubalert.models.hub import DeviceStatus, HubEvent
from hubalert.models.sounds import SoundSet, resolve_sound_url

__all__ = [
    "DeviceStatus",
    "HubBaseModel",
    "HubEvent",
    "SoundSet",
    "resolve_sound_url",
]
