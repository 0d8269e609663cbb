"""Cooldown gate for candidate transitions.

Two windows must both have elapsed before an alert is admitted: one per
``device:kind`` key and one global.  ``allow`` checks and records in a
single synchronous call, so on one event loop no other callback can
observe the ledger between the check and the write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hubalert._constants import GLOBAL_COOLDOWN_MS, PER_SENSOR_COOLDOWN_MS
from hubalert.state.events import TransitionKind

_logger = logging.getLogger(__name__)


@dataclass
class CooldownLedger:
    """Last admission times in epoch milliseconds.

    ``None``/missing means the key (or the global slot) never fired.
    """

    per_key: dict[str, int] = field(default_factory=dict)
    last_global_fired_at_ms: int | None = None


class CooldownGate:
    """Single-admission valve guarding the alert output."""

    def __init__(
        self,
        *,
        per_sensor_cooldown_ms: int = PER_SENSOR_COOLDOWN_MS,
        global_cooldown_ms: int = GLOBAL_COOLDOWN_MS,
        ledger: CooldownLedger | None = None,
    ) -> None:
        if per_sensor_cooldown_ms < 0 or global_cooldown_ms < 0:
            raise ValueError("cooldown windows must be non-negative")
        self._per_sensor_cooldown_ms = per_sensor_cooldown_ms
        self._global_cooldown_ms = global_cooldown_ms
        self._ledger = ledger if ledger is not None else CooldownLedger()

    @property
    def ledger(self) -> CooldownLedger:
        return self._ledger

    def allow(self, device_id: str, kind: TransitionKind | str, now_ms: int) -> bool:
        """Admit a transition if both windows have elapsed, recording it."""
        kind_value = kind.value if isinstance(kind, TransitionKind) else str(kind)
        key = f"{device_id}:{kind_value}"

        last_key = self._ledger.per_key.get(key)
        if last_key is not None and now_ms - last_key < self._per_sensor_cooldown_ms:
            _logger.debug("Cooldown denied %s (per-key, %d ms since last)", key, now_ms - last_key)
            return False

        last_global = self._ledger.last_global_fired_at_ms
        if last_global is not None and now_ms - last_global < self._global_cooldown_ms:
            _logger.debug("Cooldown denied %s (global, %d ms since last)", key, now_ms - last_global)
            return False

        self._ledger.per_key[key] = now_ms
        self._ledger.last_global_fired_at_ms = now_ms
        return True

    def reset(self) -> None:
        self._ledger = CooldownLedger()
