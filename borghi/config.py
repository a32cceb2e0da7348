"""Runtime settings read from environment variables.

Entry points call ``dotenv.load_dotenv()`` first, so a ``.env`` file at the
project root works too.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field

from borghi.contracts.targeting import TargetOptions

DEFAULT_DATA_DIR = Path.home() / ".borghi"


class Settings(BaseModel):
    data_dir: Path = DEFAULT_DATA_DIR
    villages_path: Path | None = None  # None = bundled dataset
    upload_url: str | None = None  # None = simulated upload
    upload_token: str | None = None
    reachability_url: str | None = None

    # Targeting tuning
    max_km: float = Field(default=25.0, ge=0)
    angle_tolerance_deg: float = Field(default=12.0, ge=0, le=180)
    nearest_max_km: float = Field(default=30.0, ge=0)
    heading_window: int = Field(default=12, ge=1)
    native_compass: bool = True

    # Sync policy
    min_battery_level: float = Field(default=0.15, ge=0, le=1)
    max_tries: int = Field(default=5, ge=1)

    cors_origins: list[str] = Field(default_factory=lambda: ["http://localhost:8081"])

    @classmethod
    def from_env(cls) -> "Settings":
        env = os.environ
        values: dict = {}
        if env.get("BORGHI_DATA_DIR"):
            values["data_dir"] = Path(env["BORGHI_DATA_DIR"]).expanduser()
        if env.get("BORGHI_VILLAGES_PATH"):
            values["villages_path"] = Path(env["BORGHI_VILLAGES_PATH"]).expanduser()
        for key, name in [
            ("upload_url", "BORGHI_UPLOAD_URL"),
            ("upload_token", "BORGHI_UPLOAD_TOKEN"),
            ("reachability_url", "BORGHI_REACHABILITY_URL"),
            ("max_km", "BORGHI_MAX_KM"),
            ("angle_tolerance_deg", "BORGHI_ANGLE_TOLERANCE_DEG"),
            ("nearest_max_km", "BORGHI_NEAREST_MAX_KM"),
            ("heading_window", "BORGHI_HEADING_WINDOW"),
            ("min_battery_level", "BORGHI_MIN_BATTERY_LEVEL"),
            ("max_tries", "BORGHI_MAX_TRIES"),
            ("native_compass", "BORGHI_NATIVE_COMPASS"),
        ]:
            if env.get(name):
                values[key] = env[name]
        if env.get("CORS_ORIGINS"):
            values["cors_origins"] = env["CORS_ORIGINS"].split(",")
        return cls.model_validate(values)

    def target_options(self) -> TargetOptions:
        return TargetOptions(max_km=self.max_km, angle_tolerance_deg=self.angle_tolerance_deg)
