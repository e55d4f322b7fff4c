import json
import logging
from typing import Any, Dict, List, Protocol

logger = logging.getLogger(__name__)

REVIEW_ALERT_TYPE = "invalid_ingredient_review_needed"
REVIEW_ACTION = "Review ingredient for potential addition to master database"


class Notifier(Protocol):
    def publish(self, event: Dict[str, Any]) -> None:
        ...


class LoggingNotifier:
    """Default curator channel: writes the alert to the log."""

    def __init__(self, logger_name: str = "ingredient_validator.curators"):
        self._log = logging.getLogger(logger_name)

    def publish(self, event: Dict[str, Any]) -> None:
        self._log.warning("Curator alert: %s", json.dumps(event, ensure_ascii=False, default=str))


class MemoryNotifier:
    """Keeps published events in a list; handy for local runs and tests."""

    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    def publish(self, event: Dict[str, Any]) -> None:
        self.events.append(event)
