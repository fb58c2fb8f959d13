"""Immutable play configuration.

Passed explicitly to the play context instead of living in module globals, so
tests and several loaded charts can use different windows side by side.
"""

import dataclasses
import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from emulator.timing import DEFAULT_BEAT_LENGTH
from geometry.utils import calculate_preempt

logger = logging.getLogger(__name__)

ENV_OVERRIDES = {
    "preempt_time": "OSU_PREEMPT_MS",
    "fade_out_time": "OSU_FADE_OUT_MS",
    "default_beat_length": "OSU_DEFAULT_BEAT_LENGTH",
}


@dataclass(frozen=True)
class PlayConfig:
    # how long before its hit time an object appears, ms
    preempt_time: float = 600.0
    # how long an object lingers after its hit (or slider end) time, ms
    fade_out_time: float = 100.0
    # tempo used before the first timing point, ms per beat
    default_beat_length: float = DEFAULT_BEAT_LENGTH

    def __post_init__(self):
        if self.preempt_time < 0 or self.fade_out_time < 0:
            raise ValueError("preempt and fade-out times must not be negative")
        if self.default_beat_length <= 0:
            raise ValueError("default beat length must be positive")

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PlayConfig":
        """Build a config, overriding defaults from ``OSU_*`` environment variables.

        Values that do not parse as numbers are logged and ignored.
        """
        environ = os.environ if environ is None else environ
        changes = {}
        for name, variable in ENV_OVERRIDES.items():
            raw = environ.get(variable)
            if raw is None or not raw.strip():
                continue
            try:
                changes[name] = float(raw)
            except ValueError:
                logger.warning("ignoring %s=%r: not a number", variable, raw)
        return cls(**changes)

    @classmethod
    def from_approach_rate(cls, ar: float, **changes) -> "PlayConfig":
        return cls(preempt_time=calculate_preempt(ar), **changes)

    def replace(self, **changes) -> "PlayConfig":
        return dataclasses.replace(self, **changes)
