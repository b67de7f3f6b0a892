"""
Runtime configuration, read from the environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path


SESSIONS_FOLDER_ENV = "DRIVELOG_SESSIONS_FOLDER"
STATE_FOLDER_ENV = "DRIVELOG_STATE_FOLDER"
TICK_PERIOD_ENV = "DRIVELOG_TICK_PERIOD"
LOG_LEVEL_ENV = "DRIVELOG_LOG_LEVEL"
SIMULATE_ENV = "DRIVELOG_SIMULATE"

DEFAULT_SESSIONS_FOLDER = Path("./data/sessions")
DEFAULT_STATE_FOLDER = Path("./data/state")
DEFAULT_TICK_PERIOD_S = 1.0


@dataclass
class Settings:
    """Locations and timing for one recorder process."""

    sessions_folder: Path = DEFAULT_SESSIONS_FOLDER
    state_folder: Path = DEFAULT_STATE_FOLDER
    tick_period_s: float = DEFAULT_TICK_PERIOD_S
    log_level: str = "INFO"
    simulate: bool = False  # replay a synthetic drive instead of pushed fixes

    @property
    def counter_path(self) -> Path:
        return self.state_folder / "counter.json"

    @property
    def preferences_path(self) -> Path:
        return self.state_folder / "preferences.json"

    @classmethod
    def from_env(cls) -> "Settings":
        period = float(os.getenv(TICK_PERIOD_ENV, str(DEFAULT_TICK_PERIOD_S)))
        if period <= 0:
            raise ValueError(f"{TICK_PERIOD_ENV} must be positive, got {period}")

        return cls(
            sessions_folder=Path(os.getenv(SESSIONS_FOLDER_ENV, str(DEFAULT_SESSIONS_FOLDER))),
            state_folder=Path(os.getenv(STATE_FOLDER_ENV, str(DEFAULT_STATE_FOLDER))),
            tick_period_s=period,
            log_level=os.getenv(LOG_LEVEL_ENV, "INFO").upper(),
            simulate=os.getenv(SIMULATE_ENV, "").lower() in ("1", "true", "yes"),
        )
