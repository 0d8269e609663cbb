"""Candidate transitions.

Both ingestion paths (poll diff and push events) convert their inputs into
these values. Only the cooldown gate decides whether one becomes an alert.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransitionKind(StrEnum):
    MOTION = "motion"
    DOOR_OPEN = "doorOpen"
    DOOR_CLOSE = "doorClose"


class TransitionSource(StrEnum):
    POLL = "poll"
    PUSH = "push"


class Transition(BaseModel):
    """A detected motion/contact transition for one device."""

    model_config = ConfigDict(frozen=True)

    device_id: str = Field(..., description="Hub device id")
    kind: TransitionKind
    observed_at_ms: int = Field(..., description="Epoch milliseconds when the transition was observed")
    source: TransitionSource = TransitionSource.POLL

    @field_validator("device_id")
    @classmethod
    def _normalize_device_id(cls, value: str) -> str:
        device_id = value.strip()
        if not device_id:
            raise ValueError("device_id must be non-empty")
        return device_id

    @property
    def cooldown_key(self) -> str:
        return f"{self.device_id}:{self.kind.value}"
