"""High-level async activity monitor for a home-automation hub."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

import aiohttp

from hubalert._mqtt import HubEventRuntime
from hubalert._transport import HubTransport, Transport
from hubalert.audio.backend import AudioBackend, open_default_backend
from hubalert.audio.cache import SoundResourceCache
from hubalert.audio.engine import AudioEngine
from hubalert.audio.synth import ToneSynthesizer
from hubalert.config import AlertConfig
from hubalert.cooldown import CooldownGate
from hubalert.dispatcher import AlertDispatcher
from hubalert.exceptions import HubAlertError
from hubalert.ingestion.hubitat import HubitatPoller
from hubalert.ingestion.normalize import build_snapshot
from hubalert.ingestion.poll import PollTransitionDetector
from hubalert.ingestion.push import build_transitions_from_events, parse_hub_events
from hubalert.models.sounds import SoundSet
from hubalert.state.events import Transition
from hubalert.state.store import ContactState, DeviceSnapshotStore, DeviceState, MotionState

_logger = logging.getLogger(__name__)


def _now_ms() -> int:
    """Current epoch timestamp in milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True, slots=True)
class ActivitySummary:
    motion_active: int
    door_open: int


class ActivityMonitor:
    """Alerting engine fed by full-state polls and live events.

    Usage::

        async with ActivityMonitor(config) as monitor:
            monitor.enable_alerts()  # from a user action
            ...

    Polls and live events can also be fed directly with
    :meth:`on_snapshot` / :meth:`on_events` when another component owns the
    hub connection.
    """

    def __init__(
        self,
        config: AlertConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        backend_factory: Callable[[], AudioBackend | None] | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._config = config or AlertConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport = transport
        self._clock = clock

        factory = backend_factory or (lambda: open_default_backend(self._config.sample_rate))
        self._engine = AudioEngine(factory)
        self._cache = SoundResourceCache(fetch=self._fetch_sound, decode=self._engine.decode)
        self._gate = CooldownGate(
            per_sensor_cooldown_ms=self._config.per_sensor_cooldown_ms,
            global_cooldown_ms=self._config.global_cooldown_ms,
        )
        self._dispatcher = AlertDispatcher(
            engine=self._engine,
            cache=self._cache,
            gate=self._gate,
            synthesizer=ToneSynthesizer(),
            sound_set=SoundSet.from_config(
                {
                    "motion": self._config.sound_motion,
                    "doorOpen": self._config.sound_door_open,
                    "doorClose": self._config.sound_door_close,
                },
                asset_prefix=self._config.sound_asset_prefix,
            ),
            buffer_gain=self._config.buffer_gain,
        )
        self._poll_detector = PollTransitionDetector()
        self._live = DeviceSnapshotStore()
        self._poll_task: asyncio.Task[None] | None = None
        self._mqtt_runtime: HubEventRuntime | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> ActivityMonitor:
        loop = asyncio.get_running_loop()
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HubTransport(self._http_session, tls_insecure=self._config.hubitat_tls_insecure)

        if self._config.hubitat_configured:
            poller = HubitatPoller(
                transport=self._transport,
                devices_url=self._config.hubitat_devices_url,
                on_snapshot=self.on_snapshot,
                interval=self._config.hubitat_poll_interval,
            )
            self._poll_task = loop.create_task(poller.run())

        if self._config.mqtt_enabled:
            runtime = HubEventRuntime(loop=loop, config=self._config, on_batch=self.on_events, logger=_logger)
            try:
                await loop.run_in_executor(None, runtime.start)
                self._mqtt_runtime = runtime
            except Exception:
                _logger.warning("MQTT runtime start failed; live events disabled", exc_info=True)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        task = self._poll_task
        self._poll_task = None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        runtime = self._mqtt_runtime
        self._mqtt_runtime = None
        if runtime is not None:
            await asyncio.get_running_loop().run_in_executor(None, runtime.stop)

        self._engine.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # User controls
    # ------------------------------------------------------------------

    @property
    def alerts_enabled(self) -> bool:
        return self._dispatcher.enabled

    def enable_alerts(self) -> bool:
        """Enable alerts; call directly from the user's enable action."""
        return self._dispatcher.enable()

    def disable_alerts(self) -> None:
        self._dispatcher.disable()

    def set_alerts_enabled(self, enabled: bool) -> bool:
        if enabled:
            return self.enable_alerts()
        self.disable_alerts()
        return False

    def set_sound_config(self, sounds: Mapping[str, Any] | None) -> SoundSet:
        """Apply a ``{motion, doorOpen, doorClose}`` sound configuration."""
        sound_set = SoundSet.from_config(sounds, asset_prefix=self._config.sound_asset_prefix)
        self._dispatcher.set_sound_set(sound_set)
        return sound_set

    # ------------------------------------------------------------------
    # Ingestion entry points
    # ------------------------------------------------------------------

    def on_snapshot(self, statuses: Mapping[str, Any] | Iterable[Any], now_ms: int | None = None) -> list[Transition]:
        """Handle a full-state poll.  Returns the detected transitions."""
        now = self._clock() if now_ms is None else now_ms
        snapshot = build_snapshot(statuses)
        self._live.replace(snapshot)
        transitions = self._poll_detector.process(snapshot, now)
        self._dispatch_all(transitions)
        return transitions

    def on_events(self, batch: Iterable[Any], now_ms: int | None = None) -> list[Transition]:
        """Handle a batch of live attribute events.  Returns the candidates."""
        now = self._clock() if now_ms is None else now_ms
        events = parse_hub_events(batch)
        for event in events:
            self._live.update_field(event.device_id, event.name, event.value)
        transitions = build_transitions_from_events(events, now)
        _logger.debug("Push batch: %d events, %d candidates", len(events), len(transitions))
        self._dispatch_all(transitions)
        return transitions

    def _dispatch_all(self, transitions: list[Transition]) -> None:
        for transition in transitions:
            try:
                self._dispatcher.dispatch(transition)
            except HubAlertError:
                _logger.debug("Dispatch failed for %s", transition.cooldown_key, exc_info=True)

    # ------------------------------------------------------------------
    # Display state
    # ------------------------------------------------------------------

    def device_state(self, device_id: str) -> DeviceState:
        return self._live.get(device_id)

    def summary(self) -> ActivitySummary:
        motion_active = 0
        door_open = 0
        for device_id in self._live:
            state = self._live.get(device_id)
            if state.motion == MotionState.ACTIVE:
                motion_active += 1
            if state.contact == ContactState.OPEN:
                door_open += 1
        return ActivitySummary(motion_active=motion_active, door_open=door_open)

    async def _fetch_sound(self, url: str) -> bytes:
        transport = self._transport
        if transport is None:
            raise HubAlertError("Monitor not started. Use 'async with ActivityMonitor(...) as monitor:'")
        return await transport.get_bytes(url)
