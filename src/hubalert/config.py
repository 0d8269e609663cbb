"""Alert engine configuration for hubalert."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Callable
from typing import Any

from hubalert._constants import (
    BUFFER_PLAYBACK_GAIN,
    DEFAULT_SAMPLE_RATE,
    DEFAULT_SOUND_ASSET_PREFIX,
    GLOBAL_COOLDOWN_MS,
    HUBITAT_POLL_INTERVAL_S,
    PER_SENSOR_COOLDOWN_MS,
)
from hubalert.exceptions import HubAlertConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def normalize_hubitat_host(raw: str | None) -> str:
    """Normalize a Hubitat host value to a base URL.

    A bare IP/hostname defaults to HTTPS; use ``http://`` explicitly for
    hubs only reachable over plain HTTP.
    """
    trimmed = (raw or "").strip()
    if not trimmed:
        return ""
    no_trailing_slash = trimmed.rstrip("/")
    lowered = no_trailing_slash.lower()
    if not (lowered.startswith("http://") or lowered.startswith("https://")):
        return f"https://{no_trailing_slash}"
    return no_trailing_slash


@dataclasses.dataclass(frozen=True)
class AlertConfig:
    """Alert engine configuration.

    Parameters
    ----------
    per_sensor_cooldown_ms : int
        Minimum spacing between two admitted alerts for the same
        device and transition kind.
    global_cooldown_ms : int
        Minimum spacing between any two admitted alerts.
    sound_asset_prefix : str
        Base URL that bare sound filenames are resolved against.
    sound_motion, sound_door_open, sound_door_close : str or None
        Optional sound asset per transition kind (absolute URL or bare
        filename).  Kinds without an asset use the tone synthesizer.
    buffer_gain : float
        Fixed gain applied when playing a decoded sound asset.
    sample_rate : int
        Output sample rate for the audio backend and the synthesizer.
    hubitat_host : str
        Hub address (IP, hostname or URL).  Bare hosts default to HTTPS.
    hubitat_app_id : str
        Maker API app id.
    hubitat_access_token : str
        Maker API access token.
    hubitat_poll_interval : float
        Seconds between two full-state polls.
    hubitat_tls_insecure : bool
        Skip TLS certificate verification for the hub (self-signed certs).
    mqtt_host : str or None
        Broker carrying live device events.  ``None`` disables the push
        channel.
    mqtt_port : int
        Broker port.
    mqtt_topic : str
        Topic filter to subscribe to.
    mqtt_username, mqtt_password : str or None
        Optional broker credentials.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    """

    per_sensor_cooldown_ms: int = PER_SENSOR_COOLDOWN_MS
    global_cooldown_ms: int = GLOBAL_COOLDOWN_MS
    sound_asset_prefix: str = DEFAULT_SOUND_ASSET_PREFIX
    sound_motion: str | None = None
    sound_door_open: str | None = None
    sound_door_close: str | None = None
    buffer_gain: float = BUFFER_PLAYBACK_GAIN
    sample_rate: int = DEFAULT_SAMPLE_RATE
    hubitat_host: str = ""
    hubitat_app_id: str = ""
    hubitat_access_token: str = ""
    hubitat_poll_interval: float = HUBITAT_POLL_INTERVAL_S
    hubitat_tls_insecure: bool = False
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_topic: str = "hubitat/#"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_keepalive: int = 60

    @property
    def hubitat_base_url(self) -> str:
        return normalize_hubitat_host(self.hubitat_host)

    @property
    def hubitat_configured(self) -> bool:
        """Whether enough hub settings are present to poll."""
        return bool(self.hubitat_base_url and self.hubitat_app_id.strip() and self.hubitat_access_token.strip())

    @property
    def hubitat_devices_url(self) -> str:
        """Maker API URL returning the full state of every device."""
        if not self.hubitat_configured:
            raise HubAlertConfigError("Hubitat host, app id and access token are required for polling")
        return (
            f"{self.hubitat_base_url}/apps/api/{self.hubitat_app_id.strip()}"
            f"/devices/all?access_token={self.hubitat_access_token.strip()}"
        )

    @property
    def mqtt_enabled(self) -> bool:
        return bool(self.mqtt_host and self.mqtt_host.strip())

    @classmethod
    def from_env(cls, **overrides: Any) -> AlertConfig:
        """Create configuration from environment variables.

        Reads optional ``HUBALERT_*`` variables.  Explicit keyword
        arguments override environment values.

        Raises
        ------
        HubAlertConfigError
            If a numeric variable cannot be parsed.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "HUBALERT_SOUND_ASSET_PREFIX": "sound_asset_prefix",
            "HUBALERT_SOUND_MOTION": "sound_motion",
            "HUBALERT_SOUND_DOOR_OPEN": "sound_door_open",
            "HUBALERT_SOUND_DOOR_CLOSE": "sound_door_close",
            "HUBALERT_HUBITAT_HOST": "hubitat_host",
            "HUBALERT_HUBITAT_APP_ID": "hubitat_app_id",
            "HUBALERT_HUBITAT_ACCESS_TOKEN": "hubitat_access_token",
            "HUBALERT_MQTT_HOST": "mqtt_host",
            "HUBALERT_MQTT_TOPIC": "mqtt_topic",
            "HUBALERT_MQTT_USERNAME": "mqtt_username",
            "HUBALERT_MQTT_PASSWORD": "mqtt_password",
        }
        _ENV_NUMERIC_MAP: dict[str, tuple[str, Callable[[str], Any]]] = {
            "HUBALERT_PER_SENSOR_COOLDOWN_MS": ("per_sensor_cooldown_ms", int),
            "HUBALERT_GLOBAL_COOLDOWN_MS": ("global_cooldown_ms", int),
            "HUBALERT_BUFFER_GAIN": ("buffer_gain", float),
            "HUBALERT_SAMPLE_RATE": ("sample_rate", int),
            "HUBALERT_HUBITAT_POLL_INTERVAL": ("hubitat_poll_interval", float),
            "HUBALERT_MQTT_PORT": ("mqtt_port", int),
            "HUBALERT_MQTT_KEEPALIVE": ("mqtt_keepalive", int),
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, (field_name, parse) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = parse(val)
            except ValueError as exc:
                raise HubAlertConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        if "hubitat_tls_insecure" not in overrides:
            config_kwargs["hubitat_tls_insecure"] = _env_bool(env.get("HUBALERT_HUBITAT_TLS_INSECURE"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
