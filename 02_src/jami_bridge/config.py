"""Project-level configuration and daemon constants."""

import os
from dataclasses import dataclass
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGS_DIR = PROJECT_ROOT / "04_logs"
DEFAULT_LOG_PATH = LOGS_DIR / "jami_bridge.log"

# Jami daemon on the session bus
DAEMON_BUS_NAME = "cx.ring.Ring"
DAEMON_OBJECT_PATH = "/cx/ring/Ring/ConfigurationManager"
DAEMON_INTERFACE = "cx.ring.Ring.ConfigurationManager"

DEFAULT_BUS = "SESSION"
DEFAULT_POLL_INTERVAL = 0.01  # seconds
DEFAULT_CHANNEL_CAPACITY = 100
DEFAULT_CALL_TIMEOUT = 5.0  # seconds
DEFAULT_EVENT_HISTORY = 200


@dataclass
class Settings:
    """Runtime settings for the bridge."""

    bus: str = DEFAULT_BUS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    channel_capacity: int = DEFAULT_CHANNEL_CAPACITY
    call_timeout: float = DEFAULT_CALL_TIMEOUT
    event_history: int = DEFAULT_EVENT_HISTORY

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from JAMI_* environment variables."""
        poll_ms = os.getenv("JAMI_POLL_INTERVAL_MS")
        capacity = os.getenv("JAMI_CHANNEL_CAPACITY")
        timeout = os.getenv("JAMI_CALL_TIMEOUT")
        history = os.getenv("JAMI_EVENT_HISTORY")
        settings = cls(
            bus=os.getenv("JAMI_BUS", DEFAULT_BUS),
            poll_interval=(
                int(poll_ms) / 1000 if poll_ms else DEFAULT_POLL_INTERVAL
            ),
            channel_capacity=int(capacity) if capacity else DEFAULT_CHANNEL_CAPACITY,
            call_timeout=float(timeout) if timeout else DEFAULT_CALL_TIMEOUT,
            event_history=int(history) if history else DEFAULT_EVENT_HISTORY,
        )
        if settings.poll_interval <= 0:
            raise ValueError("JAMI_POLL_INTERVAL_MS must be positive")
        if settings.channel_capacity < 1:
            raise ValueError("JAMI_CHANNEL_CAPACITY must be at least 1")
        return settings
