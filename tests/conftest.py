"""
Shared fixtures: an in-memory SQLite database with one property, one room
type (id 7) and its rate plans:

- STD  (base, partner-entered)
- BB   ABSOLUTE +10
- NRF  PERCENT  -10
- PROMO PERCENT +5, inactive
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from extranet.database import Base  # noqa: E402
from extranet.models import Property, RoomType, RatePlan  # noqa: E402
from extranet.services.materialization_engine import MaterializationEngine  # noqa: E402
from extranet.services.price_store import PriceStore, PriceRowData  # noqa: E402

TODAY = date(2025, 6, 1)


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def hotel(db):
    """Property 1 with room type 7 and its four rate plans"""
    prop = Property(id=1, name="Test Resort")
    room = RoomType(id=7, property_id=1, name="Deluxe", base_price=Decimal("100.00"))
    db.add_all([prop, room])
    db.flush()

    std = RatePlan(property_id=1, room_type_id=7, code="STD", name="Standard")
    bb = RatePlan(property_id=1, room_type_id=7, code="BB", name="Breakfast",
                  kind="ABSOLUTE", value=Decimal("10"), active=True)
    nrf = RatePlan(property_id=1, room_type_id=7, code="NRF", name="Non-refundable",
                   kind="PERCENT", value=Decimal("-10"), active=True)
    promo = RatePlan(property_id=1, room_type_id=7, code="PROMO", name="Promo",
                     kind="PERCENT", value=Decimal("5"), active=False)
    db.add_all([std, bb, nrf, promo])
    db.commit()

    return SimpleNamespace(
        property_id=1,
        room_type_id=7,
        std=std.id,
        bb=bb.id,
        nrf=nrf.id,
        promo=promo.id,
    )


@pytest.fixture
def set_std(db, hotel):
    """Write STD prices the way a partner would: set_std(day, price) or set_std({day: price})"""
    store = PriceStore(db)

    def _set(day_or_map, price=None):
        items = day_or_map if isinstance(day_or_map, dict) else {day_or_map: price}
        for day, value in items.items():
            store.upsert(PriceRowData(
                property_id=hotel.property_id,
                room_type_id=hotel.room_type_id,
                rate_plan_id=hotel.std,
                date=day,
                price=Decimal(str(value))
            ))
        db.commit()

    return _set


@pytest.fixture
def engine(db):
    return MaterializationEngine(db, past_days=2, future_days=183, timezone="UTC")


def days_from(start: date, count: int):
    return [start + timedelta(days=i) for i in range(count)]
