"""Poll snapshot ingestion.

Diffs each full-state snapshot against the previous one and reports true
edges only.  The previous-state store is owned here and is never touched
by the push path.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from hubalert.state.events import Transition, TransitionSource
from hubalert.state.policy import detect_edge
from hubalert.state.store import DeviceSnapshotStore, DeviceState

_logger = logging.getLogger(__name__)


class PollTransitionDetector:
    """Edge detector for the poll path.

    The first snapshot after construction (or :meth:`reset`) only seeds the
    store.  Every snapshot replaces the stored one, whether or not alerts
    are enabled downstream.
    """

    def __init__(self, store: DeviceSnapshotStore | None = None) -> None:
        self._store = store if store is not None else DeviceSnapshotStore()

    @property
    def store(self) -> DeviceSnapshotStore:
        return self._store

    def process(self, snapshot: Mapping[str, DeviceState], now_ms: int) -> list[Transition]:
        """Diff *snapshot* against the stored one and replace it."""
        if not self._store.initialized:
            self._store.replace(snapshot)
            _logger.debug("Poll detector initialized with %d devices", len(snapshot))
            return []

        transitions: list[Transition] = []
        for device_id, nxt in snapshot.items():
            kind = detect_edge(self._store.get(device_id), nxt)
            if kind is None:
                continue
            transitions.append(
                Transition(
                    device_id=device_id,
                    kind=kind,
                    observed_at_ms=now_ms,
                    source=TransitionSource.POLL,
                )
            )

        self._store.replace(snapshot)
        return transitions

    def reset(self) -> None:
        self._store.reset()
