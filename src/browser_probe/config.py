"""
Run settings for browser-probe.

Values come from BROWSER_PROBE_* environment variables, then CLI
overrides are applied on top.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

SCENARIO_URL = "https://web.whatsapp.com"
NAVIGATION_TIMEOUT = 30.0
DWELL_SECONDS = 3.0
LAUNCH_TIMEOUT = 30.0
VIEWPORT = (1280, 720)


@dataclass
class Settings:
    """Settings for one run."""

    scenario_url: str = SCENARIO_URL
    navigation_timeout: float = NAVIGATION_TIMEOUT
    dwell_seconds: float = DWELL_SECONDS
    launch_timeout: float = LAUNCH_TIMEOUT
    viewport: tuple[int, int] = VIEWPORT
    registry_path: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from the environment, keeping defaults for unset or bad values."""
        env = os.environ if environ is None else environ

        return cls(
            scenario_url=env.get("BROWSER_PROBE_SCENARIO_URL") or SCENARIO_URL,
            navigation_timeout=_float(env, "BROWSER_PROBE_NAV_TIMEOUT", NAVIGATION_TIMEOUT, positive=True),
            dwell_seconds=_float(env, "BROWSER_PROBE_DWELL", DWELL_SECONDS),
            launch_timeout=_float(env, "BROWSER_PROBE_LAUNCH_TIMEOUT", LAUNCH_TIMEOUT, positive=True),
            registry_path=env.get("BROWSER_PROBE_REGISTRY") or None,
        )


def _float(env: Mapping[str, str], name: str, default: float, positive: bool = False) -> float:
    raw = env.get(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"Ignoring {name}={raw!r}: not a number, using {default}")
        return default
    if value < 0:
        logger.warning(f"Ignoring {name}={raw!r}: negative, using {default}")
        return default
    if positive and value == 0:
        logger.warning(f"Ignoring {name}={raw!r}: must be greater than zero, using {default}")
        return default
    return value
