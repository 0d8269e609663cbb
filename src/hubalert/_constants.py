"""Internal constants shared across the library."""

# ------------------------------------------------------------------
# Cooldown windows (milliseconds)
# ------------------------------------------------------------------

PER_SENSOR_COOLDOWN_MS = 12_000
GLOBAL_COOLDOWN_MS = 1_500

# ------------------------------------------------------------------
# Sound assets and playback
# ------------------------------------------------------------------

DEFAULT_SOUND_ASSET_PREFIX = "http://localhost:3000/sounds/"
DEFAULT_SAMPLE_RATE = 44_100
BUFFER_PLAYBACK_GAIN = 0.6

#: Linear attack applied to every synthesized segment.
TONE_ATTACK_MS = 10
#: Silence after each segment before the next one starts.
TONE_TAIL_MS = 20

# ------------------------------------------------------------------
# Hub polling
# ------------------------------------------------------------------

HUBITAT_POLL_INTERVAL_S = 2.0
HUBITAT_ERROR_LOG_INTERVAL_S = 30.0

MOTION_VALUES: frozenset[str] = frozenset({"active", "inactive"})
CONTACT_VALUES: frozenset[str] = frozenset({"open", "closed"})
