"""hubalert - Sensor transition detection and audio alerts for home-automation hubs."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("hubalert")
except PackageNotFoundError:
    __version__ = "0+local"
from hubalert.audio import AudioEngine, EngineState, SoundResourceCache, ToneSynthesizer
from hubalert.config import AlertConfig
from hubalert.cooldown import CooldownGate, CooldownLedger
from hubalert.dispatcher import AlertDispatcher
from hubalert.exceptions import (
    AudioBackendError,
    HubAlertConfigError,
    HubAlertError,
    HubTransportError,
    SoundAssetError,
)
from hubalert.models import DeviceStatus, HubEvent, SoundSet
from hubalert.monitor import ActivityMonitor, ActivitySummary
from hubalert.state.events import Transition, TransitionKind, TransitionSource
from hubalert.state.store import ContactState, DeviceSnapshotStore, DeviceState, MotionState

__all__ = [
    "__version__",
    "ActivityMonitor",
    "ActivitySummary",
    "AlertConfig",
    "AlertDispatcher",
    "AudioBackendError",
    "AudioEngine",
    "ContactState",
    "CooldownGate",
    "CooldownLedger",
    "DeviceSnapshotStore",
    "DeviceState",
    "DeviceStatus",
    "EngineState",
    "HubAlertConfigError",
    "HubAlertError",
    "HubEvent",
    "HubTransportError",
    "MotionState",
    "SoundAssetError",
    "SoundResourceCache",
    "SoundSet",
    "ToneSynthesizer",
    "Transition",
    "TransitionKind",
    "TransitionSource",
]
