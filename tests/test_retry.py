# flake8: noqa
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import pytest
from sqlalchemy.exc import OperationalError

from ingredient_validator.retry import (
    backoff_delay,
    is_transient_db_error,
    retry_with_backoff,
)


class Flaky:
    def __init__(self, failures, exc=ConnectionError):
        self.failures = failures
        self.exc = exc
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc(f"failure {self.calls}")
        return "ok"


def test_succeeds_after_transient_failures():
    sleeps = []
    fn = Flaky(2)
    assert retry_with_backoff(fn, attempts=3, base_delay=0.1, sleep=sleeps.append) == "ok"
    assert fn.calls == 3
    assert len(sleeps) == 2
    assert 0.1 <= sleeps[0] <= 0.13
    assert 0.2 <= sleeps[1] <= 0.26


def test_last_error_propagates():
    fn = Flaky(5)
    with pytest.raises(ConnectionError, match="failure 3"):
        retry_with_backoff(fn, attempts=3, sleep=lambda s: None)
    assert fn.calls == 3


def test_rejected_errors_are_not_retried():
    fn = Flaky(1, exc=KeyError)
    with pytest.raises(KeyError):
        retry_with_backoff(
            fn, attempts=5, sleep=lambda s: None,
            should_retry=lambda exc: isinstance(exc, ConnectionError),
        )
    assert fn.calls == 1


def test_on_retry_sees_each_failure():
    seen = []
    retry_with_backoff(Flaky(2), attempts=3, sleep=lambda s: None,
                       on_retry=lambda exc, attempt: seen.append(attempt))
    assert seen == [1, 2]


def test_attempts_must_be_positive():
    with pytest.raises(ValueError):
        retry_with_backoff(lambda: None, attempts=0)


def test_backoff_delay_bounds():
    for _ in range(50):
        delay = backoff_delay(3, 0.1, 10.0)
        assert 0.4 <= delay <= 0.52
    assert backoff_delay(20, 0.1, 2.0) == 2.0


def test_transient_db_errors():
    assert is_transient_db_error(OperationalError("SELECT 1", {}, Exception("locked")))
    assert not is_transient_db_error(ValueError("nope"))
