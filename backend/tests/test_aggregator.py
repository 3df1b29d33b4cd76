import logging
from decimal import Decimal
from uuid import uuid4

import pytest

from app.models.enums import SchedulerStatus
from app.services.aggregator import applicable_rate, normalize_status
from app.services.prerequisites import missing_prerequisites, prerequisite_ids

CANONICAL = {status.value for status in SchedulerStatus}


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("confirmed", SchedulerStatus.CONFIRMED),
        ("CONFIRMED", SchedulerStatus.CONFIRMED),
        ("IN_PROGRESS", SchedulerStatus.FLYING),
        ("flying", SchedulerStatus.FLYING),
        ("COMPLETED", SchedulerStatus.COMPLETE),
        ("complete", SchedulerStatus.COMPLETE),
        ("Cancelled", SchedulerStatus.CANCELLED),
        ("UNCONFIRMED", SchedulerStatus.PENDING),
        ("pending", SchedulerStatus.PENDING),
    ],
)
def test_normalize_status(raw, expected):
    assert normalize_status(raw) == expected


@pytest.mark.parametrize(
    "raw", ["confirmed", "IN_PROGRESS", "COMPLETED", "garbage", "", None, "inProgress"]
)
def test_normalize_status_is_idempotent(raw):
    once = normalize_status(raw)
    assert normalize_status(once.value) == once
    assert once.value in CANONICAL


def test_unknown_status_falls_back_to_pending_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="app.services.aggregator"):
        assert normalize_status("on_hold") == SchedulerStatus.PENDING
    assert "on_hold" in caplog.text


class Rate:
    def __init__(self, flight_type_id, rate):
        self.id = uuid4()
        self.flight_type_id = flight_type_id
        self.rate = rate


def test_applicable_rate_matches_flight_type():
    dual, solo = uuid4(), uuid4()
    rates = [Rate(dual, Decimal("250")), Rate(solo, Decimal("0"))]
    assert applicable_rate(rates, solo).rate == Decimal("0")
    assert applicable_rate(rates, uuid4()) is None
    assert applicable_rate(rates, None) is None


def test_prerequisite_ids_accepts_both_shapes():
    first, second = str(uuid4()), str(uuid4())
    assert prerequisite_ids([first, second]) == [first, second]
    assert prerequisite_ids([{"prerequisites": [first]}]) == [first]
    assert prerequisite_ids(None) == []


def test_missing_prerequisites_keeps_order():
    assert missing_prerequisites(["a", "b", "c"], ["b"]) == ["a", "c"]
