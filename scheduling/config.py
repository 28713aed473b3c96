"""
Centralized configuration with environment variable overrides.

Slot granularity, lead-time defaults, range limits and the reference
time zone are configurable here. Nothing is hardcoded in engine logic.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime

from dotenv import load_dotenv

from scheduling.logging_context import install_request_id_filter

load_dotenv()

logger = logging.getLogger(__name__)

ALLOWED_SLOT_STEPS = (5, 10, 15, 20, 30, 60)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_time(env_var: str, default: str) -> str:
    """Read an HH:MM value from an env var, rejecting anything else."""
    raw = os.getenv(env_var, default).strip()
    try:
        datetime.strptime(raw, "%H:%M")
    except ValueError:
        raise ValueError(f"Invalid HH:MM time for {env_var}: {raw!r}") from None
    return raw


@dataclass(frozen=True)
class SchedulingConfig:
    """Slot generation and booking policy settings."""

    slot_step_minutes: int = _safe_int("SLOT_STEP_MINUTES", "30")
    default_min_lead_minutes: int = _safe_int("DEFAULT_MIN_LEAD_MINUTES", "0")
    max_range_days: int = _safe_int("MAX_RANGE_DAYS", "62")
    booking_horizon_days: int = _safe_int("BOOKING_HORIZON_DAYS", "30")
    default_day_start: str = _safe_time("DEFAULT_DAY_START", "09:00")
    default_day_end: str = _safe_time("DEFAULT_DAY_END", "17:00")
    timezone: str = os.getenv("SCHEDULING_TIMEZONE", "UTC")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    scheduling: SchedulingConfig = field(default_factory=SchedulingConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    app_name: str = os.getenv("APP_NAME", "scheduling-core")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    sched = config.scheduling
    if sched.slot_step_minutes not in ALLOWED_SLOT_STEPS:
        raise ValueError(
            f"SLOT_STEP_MINUTES must be one of {ALLOWED_SLOT_STEPS}, "
            f"got {sched.slot_step_minutes}"
        )
    if sched.default_min_lead_minutes < 0:
        raise ValueError(
            f"DEFAULT_MIN_LEAD_MINUTES must be >= 0, got {sched.default_min_lead_minutes}"
        )
    if sched.max_range_days < 1:
        raise ValueError(f"MAX_RANGE_DAYS must be >= 1, got {sched.max_range_days}")
    if sched.booking_horizon_days < 1:
        raise ValueError(
            f"BOOKING_HORIZON_DAYS must be >= 1, got {sched.booking_horizon_days}"
        )
    if sched.booking_horizon_days > sched.max_range_days:
        raise ValueError(
            "BOOKING_HORIZON_DAYS must not exceed MAX_RANGE_DAYS, "
            f"got {sched.booking_horizon_days} > {sched.max_range_days}"
        )
    if sched.default_day_start >= sched.default_day_end:
        raise ValueError(
            "DEFAULT_DAY_START must be earlier than DEFAULT_DAY_END, "
            f"got {sched.default_day_start} >= {sched.default_day_end}"
        )
    if not sched.timezone.strip():
        raise ValueError("SCHEDULING_TIMEZONE must not be empty")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    for handler in logging.getLogger().handlers:
        install_request_id_filter(handler)
    logger.info("Configuration loaded for '%s'", config.app_name)
    return config


# Singleton instance
settings = load_config()
