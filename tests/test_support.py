"""
Tests for settings, structured logging and demo seeding
"""

import json
import logging
import pytest
from datetime import date
from decimal import Decimal

from pydantic import ValidationError
from sqlalchemy import func

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from extranet.config import Settings, settings
from extranet.models import Property, RatePlan, RoomPrice, RoomInventory
from extranet.seed import seed_demo_property
from extranet.services.write_window import today_in_zone
from extranet.utils.logging_config import (
    JSONFormatter,
    get_logger,
    set_request_context,
    clear_request_context,
)


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ("WRITE_WINDOW_PAST_DAYS", "WRITE_WINDOW_FUTURE_DAYS", "PRICING_TIMEZONE"):
            monkeypatch.delenv(name, raising=False)
        s = Settings(_env_file=None)

        assert s.write_window_past_days == 2
        assert s.write_window_future_days == 183
        assert s.pricing_timezone == "UTC"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("WRITE_WINDOW_FUTURE_DAYS", "30")
        assert Settings(_env_file=None).write_window_future_days == 30

    def test_negative_window_rejected(self, monkeypatch):
        monkeypatch.setenv("WRITE_WINDOW_PAST_DAYS", "-1")
        with pytest.raises(ValidationError):
            Settings(_env_file=None)

    def test_cors_origins_are_deduplicated(self, monkeypatch):
        monkeypatch.setenv("ALLOWED_ORIGINS", "https://a.example/, https://a.example ,https://b.example")
        assert Settings(_env_file=None).cors_origins == ["https://a.example", "https://b.example"]


class TestJSONLogging:

    def _format(self, logger_name, emit):
        records = []

        class Capture(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = Capture()
        base = logging.getLogger(logger_name)
        base.addHandler(handler)
        base.setLevel(logging.DEBUG)
        try:
            emit(get_logger(logger_name))
        finally:
            base.removeHandler(handler)
        return [json.loads(JSONFormatter().format(r)) for r in records]

    def test_price_materialized_event(self):
        set_request_context("req-1")
        try:
            (entry,) = self._format(
                "test.pricing",
                lambda log: log.price_materialized(7, 2, date(2025, 6, 1), Decimal("110.00"))
            )
        finally:
            clear_request_context()

        assert entry["level"] == "INFO"
        assert entry["request_id"] == "req-1"
        assert entry["entity_type"] == "room_price"
        assert entry["entity_id"] == "7:2:2025-06-01"
        assert entry["data"]["price"] == "110.00"

    def test_save_event_duration(self):
        (entry,) = self._format(
            "test.pricing.save",
            lambda log: log.partner_prices_saved(7, written=3, skipped=1, duration_ms=4.2)
        )
        assert entry["duration_ms"] == 4.2
        assert "request_id" not in entry


class TestSeed:

    def test_seed_is_idempotent(self, db):
        first = seed_demo_property(db, today=date(2025, 6, 1), nights=5)
        second = seed_demo_property(db, today=date(2025, 6, 1), nights=5)

        assert first.id == second.id
        assert db.query(Property).count() == 1
        assert {p.code for p in db.query(RatePlan).all()} == {"STD", "BB", "NRF"}
        assert db.query(RoomPrice).count() == 5
        assert db.query(RoomInventory).count() == 5

    def test_seed_starts_on_pricing_timezone_today(self, db, monkeypatch):
        monkeypatch.setattr(settings, "pricing_timezone", "Pacific/Kiritimati")

        seed_demo_property(db, nights=3)

        first_night = db.query(func.min(RoomPrice.date)).scalar()
        assert first_night == today_in_zone("Pacific/Kiritimati")
        assert db.query(func.min(RoomInventory.date)).scalar() == first_night
