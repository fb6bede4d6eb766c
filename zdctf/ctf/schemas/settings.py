"""Immutable game settings snapshot read once per submission"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zdctf.config import settings as app_settings

# system_settings keys read by the submission pipeline
SETTING_KEYS = (
    "game_paused",
    "game_start_time",
    "game_end_time",
    "decay_rate",
    "decay_factor",
    "min_points",
    "first_blood_bonus",
    "flag_salt",
    "honeypot_hash",
)


class SettingsSnapshot(BaseModel):
    """All game settings for a single submission, read in one query"""

    model_config = ConfigDict(frozen=True)

    game_paused: bool = False
    game_start_time: datetime | None = None
    game_end_time: datetime | None = None
    decay_rate: float = Field(default=app_settings.DEFAULT_DECAY_RATE, gt=0, le=1)
    decay_factor: float = Field(default=app_settings.DEFAULT_DECAY_FACTOR, gt=0)
    min_points: int = Field(default=app_settings.DEFAULT_MIN_POINTS, ge=0)
    first_blood_bonus: int = Field(
        default=app_settings.DEFAULT_FIRST_BLOOD_BONUS, ge=0
    )
    flag_salt: str = app_settings.DEFAULT_FLAG_SALT
    honeypot_hash: str | None = None

    @field_validator("game_start_time", "game_end_time")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Naive timestamps are interpreted as UTC"""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @field_validator("honeypot_hash", mode="before")
    @classmethod
    def normalize_honeypot(cls, v):
        if v is None or not str(v).strip():
            return None
        return str(v).strip().lower()

    @classmethod
    def from_rows(cls, rows: dict[str, str | None]) -> "SettingsSnapshot":
        """Build a snapshot from raw key/value rows
        - blank values (cleared by an admin) fall back to the defaults
        """
        values = {
            key: value
            for key, value in rows.items()
            if key in SETTING_KEYS and value is not None and str(value).strip()
        }
        return cls(**values)
