"""
Tests for structured JSON logging
"""

import json
import logging

import pytest

from warehouse_booking.utils.logging_config import (
    JSONFormatter,
    clear_request_context,
    get_logger,
    set_request_context,
)


class CapturingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.setFormatter(JSONFormatter())
        self.lines = []

    def emit(self, record):
        self.lines.append(json.loads(self.format(record)))


@pytest.fixture
def captured():
    handler = CapturingHandler()
    base = logging.getLogger("warehouse_booking.tests.logging")
    base.addHandler(handler)
    base.setLevel(logging.INFO)
    base.propagate = False
    yield get_logger(base.name), handler.lines
    base.removeHandler(handler)
    clear_request_context()


class TestJSONFormatter:

    def test_rejection_carries_unit_and_kind(self, captured):
        logger, lines = captured

        logger.reservation_rejected("unit-7", "conflict", "Unit is already booked for the selected dates")

        line = lines[0]
        assert line["unit_id"] == "unit-7"
        assert line["error_kind"] == "conflict"
        assert line["entity_type"] == "unit"
        assert line["data"]["reason"] == "Unit is already booked for the selected dates"
        assert "booking_id" not in line

    def test_creation_carries_booking_and_unit(self, captured):
        logger, lines = captured

        logger.reservation_created("booking-1", "unit-7", "240.00", duration_ms=3.5)

        line = lines[0]
        assert line["booking_id"] == "booking-1"
        assert line["unit_id"] == "unit-7"
        assert line["duration_ms"] == 3.5
        assert line["data"] == {"total_price": "240.00"}

    def test_request_context_is_included(self, captured):
        logger, lines = captured
        set_request_context("req-1", "user-1")

        logger.reservation_status_changed("booking-1", "pending", "confirmed")

        assert lines[0]["request_id"] == "req-1"
        assert lines[0]["user_id"] == "user-1"
        assert lines[0]["level"] == "INFO"
