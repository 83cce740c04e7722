"""EngineConfig — thresholds and cool-downs for the proximity engine."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from dataclasses import dataclass

ENV_PREFIX = "SPEEDWATCH_"

ALERT_POLICIES = frozenset({"nearest", "every"})


@dataclass(frozen=True)
class EngineConfig:
    """Recognised engine options.  Distances in metres, durations in milliseconds."""

    camera_visible_radius_m: float = 10_000.0
    alert_distance_m: float = 1_000.0
    per_hazard_throttle_ms: int = 5_000
    global_throttle_ms: int = 2_500
    ahead_angle_deg: float = 60.0
    zone_gap_epsilon_m: float = 60.0
    zone_overrun_epsilon_m: float = 30.0
    zone_speed_sample_cap: int = 80
    alert_policy: str = "nearest"
    """``'nearest'``: one alert per sample, nearest qualifying hazard first.
    ``'every'``: every qualifying hazard alerts (one at most during the global cool-down)."""

    def __post_init__(self) -> None:
        if self.alert_policy not in ALERT_POLICIES:
            raise ValueError(
                f"alert_policy must be one of {sorted(ALERT_POLICIES)}, got {self.alert_policy!r}"
            )
        if self.zone_speed_sample_cap < 1:
            raise ValueError("zone_speed_sample_cap must be >= 1")
        for name in ("camera_visible_radius_m", "alert_distance_m", "zone_gap_epsilon_m"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")
        for name in ("per_hazard_throttle_ms", "global_throttle_ms", "zone_overrun_epsilon_m"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must not be negative")
        if not 0 <= self.ahead_angle_deg <= 180:
            raise ValueError("ahead_angle_deg must be within [0, 180]")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a config from ``SPEEDWATCH_<OPTION>`` environment variables.

        Unset variables keep their defaults.  Call ``load_dotenv()`` first if
        a ``.env`` file should be honoured.

        Raises
        ------
        ValueError
            If a variable is set but cannot be converted.
        """
        env = os.environ if environ is None else environ
        overrides: dict = {}
        for f in dataclasses.fields(cls):
            key = ENV_PREFIX + f.name.upper()
            raw = env.get(key)
            if raw is None or raw.strip() == "":
                continue
            cast = type(f.default)
            try:
                overrides[f.name] = cast(raw.strip())
            except ValueError as exc:
                raise ValueError(f"{key}={raw!r} is not a valid {cast.__name__}") from exc
        return cls(**overrides)
