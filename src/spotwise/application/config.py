from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from spotwise.domain import constants as C


class EngineConfig(BaseSettings):
    """
    Tunables for the scheduling and readiness engine.
    Supports loading from:
    1. Environment variables (SPOTWISE_*)
    2. Config file (~/.config/spotwise/config.toml)
    3. Manual overrides (CLI)
    """

    model_config = SettingsConfigDict(env_prefix="SPOTWISE_", extra="ignore")

    # Piece aggregation
    color_weights: dict[str, float] = Field(default_factory=lambda: dict(C.COLOR_WEIGHTS))
    practice_saturation_hours: float = C.PRACTICE_SATURATION_HOURS
    practice_bonus: float = C.PRACTICE_BONUS
    tempo_bonus: float = C.TEMPO_BONUS
    tempo_floor_ratio: float = C.TEMPO_FLOOR_RATIO
    recent_practice_days: int = C.RECENT_PRACTICE_DAYS

    # Concert pressure
    concert_urgent_days: int = C.CONCERT_URGENT_DAYS
    concert_near_days: int = C.CONCERT_NEAR_DAYS

    # Priority
    stale_practice_days: int = C.STALE_PRACTICE_DAYS
    never_practiced_days: int = C.NEVER_PRACTICED_DAYS

    # Planning
    target_readiness: float = C.TARGET_READINESS
    planning_horizon_days: int = C.PLANNING_HORIZON_DAYS
    high_score_time_multiplier: float = C.HIGH_SCORE_TIME_MULTIPLIER

    # Storage
    backend: Literal["memory", "yaml"] = "memory"
    snapshot_path: Path | None = None

    # Logging
    verbose: int = 1

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        from pydantic_settings import TomlConfigSettingsSource

        toml_files = [
            Path.home() / ".config/spotwise/config.toml",
            Path.home() / ".spotwise.toml",
        ]

        # First existing file wins
        toml_file = next((f for f in toml_files if f.exists()), None)

        # Explicit overrides beat the environment, which beats the file
        if toml_file:
            return (
                init_settings,
                env_settings,
                TomlConfigSettingsSource(settings_cls, toml_file=toml_file),
            )
        return (init_settings, env_settings)

    @field_validator("color_weights")
    @classmethod
    def check_color_weights(cls, v: dict[str, float]) -> dict[str, float]:
        missing = set(C.COLOR_WEIGHTS) - set(v)
        if missing:
            raise ValueError(f"color_weights missing {sorted(missing)}")
        if any(w <= 0 for w in v.values()):
            raise ValueError("color_weights must be positive")
        return v

    @field_validator(
        "practice_saturation_hours",
        "tempo_floor_ratio",
        "target_readiness",
        "recent_practice_days",
        "planning_horizon_days",
    )
    @classmethod
    def check_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @field_validator(
        "concert_urgent_days",
        "concert_near_days",
        "stale_practice_days",
        "never_practiced_days",
        "practice_bonus",
        "high_score_time_multiplier",
    )
    @classmethod
    def check_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("snapshot_path", mode="before")
    @classmethod
    def resolve_snapshot_path(cls, v: Any) -> Path | None:
        if v is None:
            return None
        return Path(v).resolve()

    @model_validator(mode="after")
    def check_thresholds(self) -> "EngineConfig":
        if self.concert_urgent_days > self.concert_near_days:
            raise ValueError("concert_urgent_days must not exceed concert_near_days")
        if self.tempo_bonus < 1.0:
            raise ValueError("tempo_bonus must be >= 1.0")
        if self.tempo_floor_ratio >= 1.0:
            raise ValueError("tempo_floor_ratio must be below 1.0")
        return self


def resolve_config(overrides: dict[str, Any] | None = None) -> EngineConfig:
    """
    Multi-layered configuration resolution.
    1. Defaults in EngineConfig (domain constants)
    2. ~/.config/spotwise/config.toml (if exists)
    3. Environment variables (SPOTWISE_*)
    4. overrides (passed from Typer)
    """
    # Typer passes every option; None means "not given"
    clean = {k: v for k, v in (overrides or {}).items() if v is not None}
    config = EngineConfig(**clean)

    if config.snapshot_path is not None and config.backend == "memory":
        config.backend = "yaml"

    return config
