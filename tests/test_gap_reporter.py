# flake8: noqa
import sys
import threading
from datetime import datetime, timedelta
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))  # noqa: E402

import pytest
from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ingredient_validator import crud, models
from ingredient_validator.db import init_db
from ingredient_validator.gap_reporter import GapReporter
from ingredient_validator.notifications import MemoryNotifier


class TickingClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, 0)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


def make_reporter(session_factory, notifier=None, **kwargs):
    return GapReporter(session_factory, notifier=notifier or MemoryNotifier(),
                       clock=TickingClock(), retry_base_delay=0, **kwargs)


def test_first_report_creates_summary_and_event(session_factory):
    reporter = make_reporter(session_factory)
    reporter.report("Rau răm", "rau ram")

    db = session_factory()
    summary = crud.get_summary(db, "rau ram")
    assert summary.total_reports == 1
    assert summary.original_name == "Rau răm"
    assert summary.needs_admin_review is False
    assert summary.first_reported_at == summary.last_reported_at
    events = crud.get_reports(db, "rau ram")
    assert [e.report_count for e in events] == [1]
    db.close()


def test_counts_accumulate_and_keep_first_timestamp(session_factory):
    reporter = make_reporter(session_factory)
    for _ in range(3):
        reporter.report("rau ram", "rau ram")

    db = session_factory()
    summary = crud.get_summary(db, "rau ram")
    events = crud.get_reports(db, "rau ram")
    assert summary.total_reports == 3
    assert [e.report_count for e in events] == [1, 2, 3]
    assert summary.first_reported_at == events[0].reported_at
    assert summary.last_reported_at == events[-1].reported_at
    db.close()


def test_fifth_report_escalates_once(session_factory):
    notifier = MemoryNotifier()
    reporter = make_reporter(session_factory, notifier=notifier)
    for _ in range(4):
        reporter.report("bot ngot", "bot ngot")
    assert notifier.events == []

    reporter.report("Bột ngọt", "bot ngot")
    db = session_factory()
    summary = crud.get_summary(db, "bot ngot")
    assert summary.total_reports == 5
    assert summary.needs_admin_review is True
    db.close()
    assert len(notifier.events) == 1
    event = notifier.events[0]
    assert event["ingredient"] == "Bột ngọt"
    assert event["normalized_name"] == "bot ngot"
    assert event["report_count"] == 5

    reporter.report("bot ngot", "bot ngot")
    db = session_factory()
    assert crud.get_summary(db, "bot ngot").needs_admin_review is True
    db.close()
    assert len(notifier.events) == 1


def test_escalation_from_existing_history(session_factory):
    db = session_factory()
    start = datetime(2023, 12, 1)
    for i in range(4):
        db.add(models.InvalidIngredientReport(
            report_id=f"seed-{i}", original_name="la lot", normalized_name="la lot",
            report_count=i + 1, reported_at=start + timedelta(days=i),
        ))
    db.add(models.InvalidIngredientSummary(
        normalized_name="la lot", original_name="la lot", total_reports=4,
        first_reported_at=start, last_reported_at=start + timedelta(days=3),
    ))
    db.commit()
    db.close()

    notifier = MemoryNotifier()
    make_reporter(session_factory, notifier=notifier).report("lá lốt", "la lot")

    db = session_factory()
    summary = crud.get_summary(db, "la lot")
    assert summary.total_reports == 5
    assert summary.needs_admin_review is True
    assert summary.first_reported_at == start
    assert len(crud.get_reports(db, "la lot")) == 5
    db.close()
    assert len(notifier.events) == 1


def test_report_history_by_prefix(session_factory):
    reporter = make_reporter(session_factory)
    reporter.report("rau ram", "rau ram")
    reporter.report("rau ngot", "rau ngot")
    reporter.report("ram", "ram")

    db = session_factory()
    assert {e.normalized_name for e in crud.get_reports(db, "rau")} == {"rau ram", "rau ngot"}
    assert [e.normalized_name for e in crud.get_reports(db, "rau ram")] == ["rau ram"]
    db.close()


def test_store_errors_are_swallowed():
    def broken_session():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    notifier = MemoryNotifier()
    reporter = GapReporter(broken_session, notifier=notifier, retry_attempts=2,
                           retry_base_delay=0)
    reporter.report("anything", "anything")
    assert notifier.events == []


def test_notifier_errors_are_swallowed(session_factory):
    class BrokenNotifier:
        def publish(self, event):
            raise ConnectionError("channel down")

    reporter = make_reporter(session_factory, notifier=BrokenNotifier(), review_threshold=1)
    reporter.report("hat nem", "hat nem")

    db = session_factory()
    assert crud.get_summary(db, "hat nem").needs_admin_review is True
    db.close()


def test_concurrent_reports_do_not_lose_increments(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'reports.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    init_db(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    notifier = MemoryNotifier()
    reporter = GapReporter(factory, notifier=notifier, retry_attempts=10,
                           retry_base_delay=0.01)

    threads = [
        threading.Thread(target=reporter.report, args=("mam ruoc", "mam ruoc"))
        for _ in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    db = factory()
    assert crud.get_summary(db, "mam ruoc").total_reports == 8
    counts = sorted(e.report_count for e in crud.get_reports(db, "mam ruoc"))
    assert counts == list(range(1, 9))
    db.close()
    engine.dispose()
    assert len(notifier.events) == 1
