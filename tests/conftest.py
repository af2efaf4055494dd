from __future__ import annotations

import logging
from datetime import date, timedelta

import pytest

from job_tracker.records import DATE_FORMAT, Record, Records, Status, Today

TODAY = Today(date(2026, 10, 19))


def days_ago(days: int) -> str:
    return (TODAY.day - timedelta(days=days)).strftime(DATE_FORMAT)


def make_record(name: str, status: Status = Status.TODO, age: int = 0, **fields) -> Record:
    return Record(last_action_date=days_ago(age), name=name, status=status, **fields)


@pytest.fixture
def today() -> Today:
    return TODAY


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("JOB_TRACKER_LOG_FILE", str(tmp_path / "job_tracker.log"))
    monkeypatch.setenv("JOB_TRACKER_FILE", str(tmp_path / "records.json"))
    monkeypatch.delenv("NO_COLOR", raising=False)


@pytest.fixture
def mixed_records() -> Records:
    """Already in canonical order."""
    return Records(
        [
            make_record("Acme", Status.TODO, age=1, subname="Engineer", place="Berlin"),
            make_record("Globex", Status.TODO, age=3),
            make_record("Initech", Status.PENDING, age=2, stage="1st interview"),
            make_record("Umbrella", Status.PENDING, age=20),
            make_record("Hooli", Status.REJECTED, age=5),
            make_record("Vandelay", Status.DECLINED, age=30),
        ]
    )


@pytest.fixture(autouse=True)
def _reset_logging():
    yield
    logger = logging.getLogger("job_tracker")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
