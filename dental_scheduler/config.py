"""
Centralized configuration with environment variable overrides.

Practice hours, scoring weights and optimizer penalties are all
configurable here. Nothing is hardcoded in the scheduling logic.
"""

import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, time

from dotenv import load_dotenv

from dental_scheduler.logging_context import configure_logging

load_dotenv()

logger = logging.getLogger(__name__)


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_clock(env_var: str, default: str) -> time:
    """Parse an HH:MM clock time from an env var."""
    raw = os.getenv(env_var, default)
    try:
        return datetime.strptime(raw.strip(), "%H:%M").time()
    except (ValueError, TypeError, AttributeError):
        raise ValueError(
            f"Invalid HH:MM time for {env_var}: {raw!r}"
        ) from None


@dataclass(frozen=True)
class PracticeConfig:
    """Default working hours and slot search parameters."""

    day_start: time = _safe_clock("PRACTICE_DAY_START", "08:00")
    day_end: time = _safe_clock("PRACTICE_DAY_END", "17:00")
    default_duration_minutes: int = _safe_int("DEFAULT_DURATION_MINUTES", "60")
    default_granularity_minutes: int = _safe_int("DEFAULT_GRANULARITY_MINUTES", "15")


@dataclass(frozen=True)
class RiskConfig:
    """No-show risk model weights.

    The 1.0 / 0.5 / 0.1 weights are a heuristic, not a fitted model.
    """

    no_show_weight: float = _safe_float("RISK_NO_SHOW_WEIGHT", "1.0")
    cancellation_weight: float = _safe_float("RISK_CANCELLATION_WEIGHT", "0.5")
    completed_credit: float = _safe_float("RISK_COMPLETED_CREDIT", "0.1")
    new_patient_risk: float = _safe_float("RISK_NEW_PATIENT_DEFAULT", "0.1")
    recency_days: int = _safe_int("RISK_RECENCY_DAYS", "90")
    recency_boost: float = _safe_float("RISK_RECENCY_BOOST", "0.2")
    medium_threshold: float = _safe_float("RISK_MEDIUM_THRESHOLD", "0.3")
    high_threshold: float = _safe_float("RISK_HIGH_THRESHOLD", "0.6")


@dataclass(frozen=True)
class OptimizerConfig:
    """Penalties and limits used when ranking candidate slots."""

    time_penalty_per_hour: float = _safe_float("OPT_TIME_PENALTY_PER_HOUR", "0.05")
    max_time_penalty: float = _safe_float("OPT_MAX_TIME_PENALTY", "0.3")
    routine_day_penalty: float = _safe_float("OPT_ROUTINE_DAY_PENALTY", "0.01")
    urgent_day_penalty: float = _safe_float("OPT_URGENT_DAY_PENALTY", "0.1")
    max_date_penalty: float = _safe_float("OPT_MAX_DATE_PENALTY", "0.5")
    emergency_horizon_days: int = _safe_int("OPT_EMERGENCY_HORIZON_DAYS", "1")
    max_alternatives: int = _safe_int("OPT_MAX_ALTERNATIVES", "3")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    practice: PracticeConfig = field(default_factory=PracticeConfig)
    risk: RiskConfig = field(default_factory=RiskConfig)
    optimizer: OptimizerConfig = field(default_factory=OptimizerConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if config.practice.day_start >= config.practice.day_end:
        raise ValueError(
            "PRACTICE_DAY_START must be before PRACTICE_DAY_END, got "
            f"{config.practice.day_start} - {config.practice.day_end}"
        )
    if config.practice.default_duration_minutes < 1:
        raise ValueError(
            "DEFAULT_DURATION_MINUTES must be >= 1, "
            f"got {config.practice.default_duration_minutes}"
        )
    if config.practice.default_granularity_minutes < 1:
        raise ValueError(
            "DEFAULT_GRANULARITY_MINUTES must be >= 1, "
            f"got {config.practice.default_granularity_minutes}"
        )
    if config.risk.recency_days < 0:
        raise ValueError(
            f"RISK_RECENCY_DAYS must be >= 0, got {config.risk.recency_days}"
        )
    if config.risk.medium_threshold > config.risk.high_threshold:
        raise ValueError(
            "RISK_MEDIUM_THRESHOLD must not exceed RISK_HIGH_THRESHOLD, got "
            f"{config.risk.medium_threshold} > {config.risk.high_threshold}"
        )
    if config.optimizer.emergency_horizon_days < 0:
        raise ValueError(
            "OPT_EMERGENCY_HORIZON_DAYS must be >= 0, "
            f"got {config.optimizer.emergency_horizon_days}"
        )
    if config.optimizer.max_alternatives < 0:
        raise ValueError(
            f"OPT_MAX_ALTERNATIVES must be >= 0, got {config.optimizer.max_alternatives}"
        )

    for name, value in [
        ("RISK_NEW_PATIENT_DEFAULT", config.risk.new_patient_risk),
        ("RISK_RECENCY_BOOST", config.risk.recency_boost),
        ("RISK_MEDIUM_THRESHOLD", config.risk.medium_threshold),
        ("RISK_HIGH_THRESHOLD", config.risk.high_threshold),
        ("OPT_MAX_TIME_PENALTY", config.optimizer.max_time_penalty),
        ("OPT_MAX_DATE_PENALTY", config.optimizer.max_date_penalty),
    ]:
        if not 0.0 <= value <= 1.0:
            raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")

    for name, value in [
        ("RISK_NO_SHOW_WEIGHT", config.risk.no_show_weight),
        ("RISK_CANCELLATION_WEIGHT", config.risk.cancellation_weight),
        ("RISK_COMPLETED_CREDIT", config.risk.completed_credit),
        ("OPT_TIME_PENALTY_PER_HOUR", config.optimizer.time_penalty_per_hour),
        ("OPT_ROUTINE_DAY_PENALTY", config.optimizer.routine_day_penalty),
        ("OPT_URGENT_DAY_PENALTY", config.optimizer.urgent_day_penalty),
    ]:
        if value < 0:
            raise ValueError(f"{name} must be >= 0, got {value}")


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    configure_logging(getattr(logging, config.log_level.upper(), logging.INFO))
    logger.info(
        "Configuration loaded: practice hours %s-%s",
        config.practice.day_start.strftime("%H:%M"),
        config.practice.day_end.strftime("%H:%M"),
    )
    return config


# Singleton instance
settings = load_config()
