import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./ingredients.db"
    log_level: str = "INFO"
    max_batch_size: int = 20
    search_limit: int = 5
    fuzzy_threshold: float = 0.6
    auto_correct_threshold: float = 0.8
    suggest_threshold: float = 0.6
    review_threshold: int = 5
    vocabulary_ttl_seconds: float = 300.0
    validation_workers: int = 1
    store_retry_attempts: int = 3
    store_retry_base_delay: float = 0.05


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def get_settings() -> Settings:
    """Build settings from the environment (and ``.env`` when present)."""
    load_dotenv()
    settings = Settings(
        database_url=os.getenv("DATABASE_URL", Settings.database_url),
        log_level=os.getenv("LOG_LEVEL", Settings.log_level).upper(),
        max_batch_size=_env_int("MAX_BATCH_SIZE", Settings.max_batch_size),
        search_limit=_env_int("SEARCH_LIMIT", Settings.search_limit),
        fuzzy_threshold=_env_float("FUZZY_THRESHOLD", Settings.fuzzy_threshold),
        auto_correct_threshold=_env_float(
            "AUTO_CORRECT_THRESHOLD", Settings.auto_correct_threshold
        ),
        suggest_threshold=_env_float("SUGGEST_THRESHOLD", Settings.suggest_threshold),
        review_threshold=_env_int("REVIEW_THRESHOLD", Settings.review_threshold),
        vocabulary_ttl_seconds=_env_float(
            "VOCABULARY_TTL_SECONDS", Settings.vocabulary_ttl_seconds
        ),
        validation_workers=_env_int("VALIDATION_WORKERS", Settings.validation_workers),
        store_retry_attempts=_env_int("STORE_RETRY_ATTEMPTS", Settings.store_retry_attempts),
        store_retry_base_delay=_env_float(
            "STORE_RETRY_BASE_DELAY", Settings.store_retry_base_delay
        ),
    )
    if not 0.0 <= settings.suggest_threshold <= settings.auto_correct_threshold <= 1.0:
        raise ValueError(
            "thresholds must satisfy 0 <= SUGGEST_THRESHOLD <= AUTO_CORRECT_THRESHOLD <= 1"
        )
    if settings.max_batch_size < 1:
        raise ValueError("MAX_BATCH_SIZE must be at least 1")
    return settings


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level)
