"""
Centralized configuration with environment variable overrides.

Dealership details, extraction thresholds, readiness rules and search
limits are configurable here. Nothing is hardcoded in handler or tool logic.
"""

import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

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


@dataclass(frozen=True)
class BusinessConfig:
    """Dealership-specific settings loaded from environment or defaults."""

    name: str = os.getenv("DEALERSHIP_NAME", "Prime Used Cars")
    assistant_name: str = os.getenv("ASSISTANT_NAME", "Max")
    currency_symbol: str = os.getenv("CURRENCY_SYMBOL", "$")


@dataclass(frozen=True)
class ModelConfig:
    """LLM settings used by the prompted extraction adapter."""

    llm_model: str = os.getenv("LLM_MODEL", "gpt-4o-mini")
    llm_temperature: float = _safe_float("LLM_TEMPERATURE", "0.1")


@dataclass(frozen=True)
class ExtractionConfig:
    """Thresholds for preference extraction and sanitising."""

    min_confidence: float = _safe_float("EXTRACTION_MIN_CONFIDENCE", "0.5")
    history_window: int = _safe_int("EXTRACTION_HISTORY_WINDOW", "3")
    max_year: int = _safe_int("EXTRACTION_MAX_YEAR", "2025")


@dataclass(frozen=True)
class ReadinessConfig:
    """Message-count thresholds for recommending with partial information."""

    partial_info_messages: int = _safe_int("READINESS_PARTIAL_MESSAGES", "5")
    force_recommend_messages: int = _safe_int("READINESS_FORCE_MESSAGES", "8")


@dataclass(frozen=True)
class SearchConfig:
    """Result limits and ride-hail eligibility rules."""

    result_limit: int = _safe_int("SEARCH_RESULT_LIMIT", "5")
    min_match_score: int = _safe_int("SEARCH_MIN_MATCH_SCORE", "60")
    wide_limit: int = _safe_int("SEARCH_WIDE_LIMIT", "20")
    ride_hail_standard_max_age: int = _safe_int("RIDE_HAIL_STANDARD_MAX_AGE", "10")
    ride_hail_premium_max_age: int = _safe_int("RIDE_HAIL_PREMIUM_MAX_AGE", "6")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    business: BusinessConfig = field(default_factory=BusinessConfig)
    model: ModelConfig = field(default_factory=ModelConfig)
    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    readiness: ReadinessConfig = field(default_factory=ReadinessConfig)
    search: SearchConfig = field(default_factory=SearchConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    agent_name: str = os.getenv("AGENT_NAME", "sales-assistant")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    if not 0.0 <= config.model.llm_temperature <= 2.0:
        raise ValueError(
            f"LLM_TEMPERATURE must be between 0.0 and 2.0, got {config.model.llm_temperature}"
        )
    if not 0.0 <= config.extraction.min_confidence <= 1.0:
        raise ValueError(
            "EXTRACTION_MIN_CONFIDENCE must be between 0.0 and 1.0, "
            f"got {config.extraction.min_confidence}"
        )
    if config.extraction.history_window < 0:
        raise ValueError(
            f"EXTRACTION_HISTORY_WINDOW must be >= 0, got {config.extraction.history_window}"
        )
    if config.extraction.max_year < 1950:
        raise ValueError(
            f"EXTRACTION_MAX_YEAR must be >= 1950, got {config.extraction.max_year}"
        )
    if config.readiness.partial_info_messages < 1:
        raise ValueError(
            "READINESS_PARTIAL_MESSAGES must be >= 1, "
            f"got {config.readiness.partial_info_messages}"
        )
    if config.readiness.force_recommend_messages < config.readiness.partial_info_messages:
        raise ValueError(
            "READINESS_FORCE_MESSAGES must be >= READINESS_PARTIAL_MESSAGES, "
            f"got {config.readiness.force_recommend_messages}"
        )

    for limit_name, limit_value in [
        ("SEARCH_RESULT_LIMIT", config.search.result_limit),
        ("SEARCH_WIDE_LIMIT", config.search.wide_limit),
        ("RIDE_HAIL_STANDARD_MAX_AGE", config.search.ride_hail_standard_max_age),
        ("RIDE_HAIL_PREMIUM_MAX_AGE", config.search.ride_hail_premium_max_age),
    ]:
        if limit_value < 1:
            raise ValueError(f"{limit_name} must be >= 1, got {limit_value}")

    if not 0 <= config.search.min_match_score <= 100:
        raise ValueError(
            f"SEARCH_MIN_MATCH_SCORE must be between 0 and 100, got {config.search.min_match_score}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logger.info("Configuration loaded for '%s'", config.business.name)
    return config


# Singleton instance
settings = load_config()
