"""
Demo data for local development.

Creates one property with a room type, STD/BB/NRF rate plans and 30 nights
of STD prices and inventory starting today (in the pricing timezone). Safe to run more than once.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from .config import settings
from .models.property import Property, RoomType
from .models.pricing import RatePlan, RuleKind, STD_PLAN_CODE
from .services.inventory_store import InventoryStore, InventoryDayData
from .services.price_store import PriceStore, PriceRowData
from .services.write_window import today_in_zone

logger = logging.getLogger(__name__)

DEMO_PROPERTY_NAME = "Siargao Demo Resort"


def seed_demo_property(db: Session, today: Optional[date] = None, nights: int = 30) -> Property:
    """Create the demo property if it does not exist yet"""
    existing = db.query(Property).filter(Property.name == DEMO_PROPERTY_NAME).first()
    if existing:
        logger.info(f"Demo property already present (id={existing.id})")
        return existing

    today = today or today_in_zone(settings.pricing_timezone)

    prop = Property(name=DEMO_PROPERTY_NAME)
    db.add(prop)
    db.flush()

    room = RoomType(property_id=prop.id, name="Deluxe Double", base_price=Decimal("120.00"))
    db.add(room)
    db.flush()

    plans = [
        RatePlan(property_id=prop.id, room_type_id=room.id, code=STD_PLAN_CODE, name="Standard"),
        RatePlan(property_id=prop.id, room_type_id=room.id, code="BB", name="Bed & Breakfast",
                 kind=RuleKind.ABSOLUTE.value, value=Decimal("15")),
        RatePlan(property_id=prop.id, room_type_id=room.id, code="NRF", name="Non-refundable",
                 kind=RuleKind.PERCENT.value, value=Decimal("-10")),
    ]
    db.add_all(plans)
    db.flush()

    store = PriceStore(db)
    inventory = InventoryStore(db)
    for offset in range(nights):
        day = today + timedelta(days=offset)
        store.upsert(PriceRowData(
            property_id=prop.id,
            room_type_id=room.id,
            rate_plan_id=plans[0].id,
            date=day,
            price=room.base_price
        ))
        inventory.upsert(prop.id, room.id, InventoryDayData(date=day, rooms_open=5))

    db.commit()
    logger.info(f"Seeded demo property id={prop.id} with {nights} STD nights")
    return prop
