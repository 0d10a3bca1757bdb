"""
Concurrency Tests for Fill Race Conditions

Tests cover:
- Conflict-aware INSERT builders per dialect
- A fill that loses the insert race serves the winner's row
- Parallel fills of the same nights write each row exactly once

These tests verify that a derived price is materialized at most once and
that every concurrent reader sees the same value.
"""

import dataclasses
import pytest
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock
from concurrent.futures import ThreadPoolExecutor

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from extranet.database import Base
from extranet.models import Property, RoomType, RatePlan, RoomPrice
from extranet.services.materialization_engine import MaterializationEngine, date_range
from extranet.services.price_store import PriceStore, PriceRowData
from extranet.utils.db_helpers import insert_do_nothing, insert_do_update, supports_on_conflict

TODAY = date(2025, 6, 1)


def _mock_session(dialect):
    db = MagicMock()
    db.get_bind.return_value.dialect.name = dialect
    return db


class TestDialectHelpers:
    """ON CONFLICT statements are only built where the dialect supports them"""

    def test_postgres_do_nothing(self):
        stmt = insert_do_nothing(_mock_session('postgresql'), RoomPrice,
                                 {"price": Decimal("1")}, ["room_type_id", "rate_plan_id", "date"])
        assert stmt is not None
        assert stmt.__class__.__module__.startswith("sqlalchemy.dialects.postgresql")

    def test_sqlite_do_update(self):
        stmt = insert_do_update(_mock_session('sqlite'), RoomPrice,
                                {"price": Decimal("1")}, ["room_type_id", "rate_plan_id", "date"], ["price"])
        assert stmt is not None
        assert stmt.__class__.__module__.startswith("sqlalchemy.dialects.sqlite")

    def test_other_dialects_fall_back(self):
        db = _mock_session('mysql')
        assert not supports_on_conflict(db)
        assert insert_do_nothing(db, RoomPrice, {}, ["date"]) is None
        assert insert_do_update(db, RoomPrice, {}, ["date"], ["price"]) is None


@pytest.fixture
def file_db(tmp_path):
    """File-backed SQLite so each session gets its own connection"""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'race.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    setup = factory()
    setup.add(Property(id=1, name="Race Resort"))
    setup.add(RoomType(id=7, property_id=1, name="Deluxe", base_price=Decimal("100.00")))
    setup.flush()
    std = RatePlan(property_id=1, room_type_id=7, code="STD", name="Standard")
    bb = RatePlan(property_id=1, room_type_id=7, code="BB", name="Breakfast",
                  kind="ABSOLUTE", value=Decimal("10"), active=True)
    setup.add_all([std, bb])
    setup.flush()
    store = PriceStore(setup)
    for day in date_range(date(2025, 6, 1), date(2025, 6, 5)):
        store.upsert(PriceRowData(1, 7, std.id, day, Decimal("100.00")))
    setup.commit()
    plan_ids = {"std": std.id, "bb": bb.id}
    setup.close()

    yield factory, plan_ids
    engine.dispose()


class TestFillRace:
    """Insert-only fills under contention"""

    def test_losing_writer_serves_the_winning_row(self, file_db, monkeypatch):
        """Another writer inserts first: the fill returns that row, not its own value"""
        factory, plans = file_db
        original = PriceStore.insert_if_absent
        raced = []

        def racing_insert(self, data):
            if not raced:
                raced.append(data.key)
                other = factory()
                try:
                    PriceStore(other).insert_if_absent(dataclasses.replace(data, price=Decimal("999.00")))
                    other.commit()
                finally:
                    other.close()
            return original(self, data)

        monkeypatch.setattr(PriceStore, "insert_if_absent", racing_insert)

        db = factory()
        try:
            day = date(2025, 6, 3)
            engine = MaterializationEngine(db, past_days=2, future_days=183, timezone="UTC")
            result = engine.fill(1, [(7, plans["bb"])], day, day, today=TODAY)
            cell = result.cells[0]

            assert cell.price == Decimal("999.00")
            assert cell.materialized is False
            assert result.writes == 0
            assert db.query(RoomPrice).filter(RoomPrice.rate_plan_id == plans["bb"]).count() == 1
        finally:
            db.close()

    def test_parallel_fills_write_each_row_once(self, file_db):
        factory, plans = file_db
        start, end = date(2025, 6, 1), date(2025, 6, 5)

        def run_fill():
            db = factory()
            try:
                engine = MaterializationEngine(db, past_days=2, future_days=183, timezone="UTC")
                result = engine.fill(1, [(7, plans["bb"])], start, end, today=TODAY)
                return result.writes, [c.price for c in result.cells]
            finally:
                db.close()

        with ThreadPoolExecutor(max_workers=4) as pool:
            outcomes = list(pool.map(lambda _: run_fill(), range(4)))

        total_writes = sum(writes for writes, _ in outcomes)
        served = [prices for _, prices in outcomes]

        assert total_writes == 5
        assert all(prices == [Decimal("110.00")] * 5 for prices in served)

        db = factory()
        try:
            assert db.query(RoomPrice).filter(RoomPrice.rate_plan_id == plans["bb"]).count() == 5
        finally:
            db.close()
