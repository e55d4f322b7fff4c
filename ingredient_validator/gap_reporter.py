"""Records ingredients the vocabulary could not match.

Each failure appends an immutable report row and bumps a per-name summary
with a single atomic ``UPDATE ... SET total_reports = total_reports + 1``.
Concurrent failures for the same name therefore never lose an increment;
a racing first insert is retried as an update. Once a name reaches the
review threshold, curators are notified exactly once.

Reporting is best effort: every error is logged and swallowed.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from sqlalchemy import case, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import models
from .notifications import REVIEW_ACTION, REVIEW_ALERT_TYPE, LoggingNotifier, Notifier
from .retry import is_transient_db_error, retry_with_backoff

logger = logging.getLogger(__name__)

REVIEW_THRESHOLD = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, IntegrityError) or is_transient_db_error(exc)


@dataclass(frozen=True)
class ReportResult:
    normalized_name: str
    report_count: int
    needs_admin_review: bool
    # True only on the call that crossed the review threshold
    escalated: bool


class GapReporter:
    def __init__(self, session_factory: Callable[[], Session],
                 notifier: Optional[Notifier] = None,
                 review_threshold: int = REVIEW_THRESHOLD,
                 retry_attempts: int = 3,
                 retry_base_delay: float = 0.05,
                 clock: Callable[[], datetime] = _utcnow):
        self._session_factory = session_factory
        self._notifier = notifier if notifier is not None else LoggingNotifier()
        self.review_threshold = review_threshold
        self._retry_attempts = retry_attempts
        self._retry_base_delay = retry_base_delay
        self._clock = clock

    def report(self, original_name: str, normalized_name: str) -> None:
        try:
            result = retry_with_backoff(
                lambda: self.record(original_name, normalized_name),
                attempts=self._retry_attempts,
                base_delay=self._retry_base_delay,
                should_retry=_is_retryable,
            )
        except Exception:
            logger.exception("Error logging invalid ingredient %r", original_name)
            return

        logger.info(
            "Invalid ingredient logged: %r (normalized %r) count=%d review=%s",
            original_name, normalized_name, result.report_count, result.needs_admin_review,
        )
        if result.escalated:
            self._notify(original_name, normalized_name, result.report_count)

    def record(self, original_name: str, normalized_name: str) -> ReportResult:
        """Persist one failure; raises on store errors."""
        now = self._clock()
        session = self._session_factory()
        try:
            count = self._increment(session, original_name, normalized_name, now)
            needs_review = count >= self.review_threshold
            session.add(models.InvalidIngredientReport(
                report_id=str(uuid.uuid4()),
                original_name=original_name,
                normalized_name=normalized_name,
                report_count=count,
                reported_at=now,
                needs_admin_review=needs_review,
            ))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

        return ReportResult(
            normalized_name=normalized_name,
            report_count=count,
            needs_admin_review=needs_review,
            escalated=count == self.review_threshold,
        )

    def _increment(self, session: Session, original_name: str,
                   normalized_name: str, now: datetime) -> int:
        summary = models.InvalidIngredientSummary
        result = session.execute(
            update(summary)
            .where(summary.normalized_name == normalized_name)
            .values(
                total_reports=summary.total_reports + 1,
                original_name=original_name,
                last_reported_at=now,
                needs_admin_review=case(
                    (summary.total_reports + 1 >= self.review_threshold, True),
                    else_=summary.needs_admin_review,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            session.add(summary(
                normalized_name=normalized_name,
                original_name=original_name,
                total_reports=1,
                first_reported_at=now,
                last_reported_at=now,
                needs_admin_review=1 >= self.review_threshold,
            ))
            # a concurrent first report surfaces here as IntegrityError
            session.flush()
            return 1

        return session.execute(
            select(summary.total_reports).where(summary.normalized_name == normalized_name)
        ).scalar_one()

    def _notify(self, original_name: str, normalized_name: str, report_count: int) -> None:
        event = {
            "alert_type": REVIEW_ALERT_TYPE,
            "ingredient": original_name,
            "normalized_name": normalized_name,
            "report_count": report_count,
            "timestamp": self._clock().isoformat(),
            "action_required": REVIEW_ACTION,
        }
        try:
            self._notifier.publish(event)
        except Exception:
            logger.exception("Failed to send curator notification for %r", original_name)
            return
        logger.info("Curator notification sent for %r (count=%d)", original_name, report_count)
