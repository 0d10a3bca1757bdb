"""
Price Store

Persistence for nightly RoomPrice rows, keyed by
(room_type_id, rate_plan_id, date). No pricing logic lives here.

Two write operations with different intents:
- insert_if_absent: fill path, never overwrites; reports inserted vs conflict
- upsert: partner path, always overwrites (last writer wins)
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..models.pricing import RoomPrice
from ..utils.db_helpers import insert_do_nothing, insert_do_update

logger = logging.getLogger(__name__)

PriceKey = Tuple[int, int, date]

KEY_COLUMNS = ("room_type_id", "rate_plan_id", "date")


@dataclass(frozen=True)
class PriceRowData:
    """Values for a RoomPrice row that is about to be written"""
    property_id: int
    room_type_id: int
    rate_plan_id: int
    date: date
    price: Decimal

    @property
    def key(self) -> PriceKey:
        return (self.room_type_id, self.rate_plan_id, self.date)


@dataclass
class InsertResult:
    """
    Outcome of insert_if_absent.

    inserted=True: this call created the row.
    inserted=False: a row already existed for the key (conflict); `row` is
    that existing row, re-read from the store.
    """
    inserted: bool
    row: Optional[RoomPrice]

    @property
    def conflict(self) -> bool:
        return not self.inserted


class PriceStore:
    """Reads and writes RoomPrice rows on a SQLAlchemy session"""

    def __init__(self, db: Session):
        self.db = db

    def get_price(self, room_type_id: int, rate_plan_id: int, day: date) -> Optional[RoomPrice]:
        """Fetch the row for a key, bypassing stale identity-map state"""
        return self.db.query(RoomPrice).populate_existing().filter(
            RoomPrice.room_type_id == room_type_id,
            RoomPrice.rate_plan_id == rate_plan_id,
            RoomPrice.date == day
        ).first()

    def get_prices(
        self,
        room_type_ids: Iterable[int],
        rate_plan_ids: Iterable[int],
        start: date,
        end: date
    ) -> Dict[PriceKey, RoomPrice]:
        """Bulk read of all rows in an inclusive date range, indexed by key"""
        room_type_ids = list(set(room_type_ids))
        rate_plan_ids = list(set(rate_plan_ids))
        if not room_type_ids or not rate_plan_ids:
            return {}

        rows = self.db.query(RoomPrice).populate_existing().filter(
            RoomPrice.room_type_id.in_(room_type_ids),
            RoomPrice.rate_plan_id.in_(rate_plan_ids),
            RoomPrice.date >= start,
            RoomPrice.date <= end
        ).all()

        return {(r.room_type_id, r.rate_plan_id, r.date): r for r in rows}

    def insert_if_absent(self, data: PriceRowData) -> InsertResult:
        """
        Insert a row only if its key is free.

        Never overwrites. A losing concurrent writer gets inserted=False and
        the winning row.
        """
        now = datetime.utcnow()
        values = {
            "property_id": data.property_id,
            "room_type_id": data.room_type_id,
            "rate_plan_id": data.rate_plan_id,
            "date": data.date,
            "price": data.price,
            "created_at": now,
            "updated_at": now,
        }

        stmt = insert_do_nothing(self.db, RoomPrice, values, KEY_COLUMNS)
        if stmt is not None:
            result = self.db.execute(stmt)
            inserted = result.rowcount == 1
        else:
            inserted = self._insert_with_savepoint(values)

        row = self.get_price(data.room_type_id, data.rate_plan_id, data.date)
        if not inserted:
            logger.debug(f"insert_if_absent conflict on {data.key}")
        return InsertResult(inserted=inserted, row=row)

    def _insert_with_savepoint(self, values: dict) -> bool:
        try:
            with self.db.begin_nested():
                self.db.add(RoomPrice(**values))
            return True
        except IntegrityError:
            return False

    def upsert(self, data: PriceRowData) -> RoomPrice:
        """Create or overwrite the row for a key (partner path only)"""
        now = datetime.utcnow()
        values = {
            "property_id": data.property_id,
            "room_type_id": data.room_type_id,
            "rate_plan_id": data.rate_plan_id,
            "date": data.date,
            "price": data.price,
            "created_at": now,
            "updated_at": now,
        }

        stmt = insert_do_update(self.db, RoomPrice, values, KEY_COLUMNS, ("price", "updated_at"))
        if stmt is not None:
            self.db.execute(stmt)
        else:
            existing = self.get_price(data.room_type_id, data.rate_plan_id, data.date)
            if existing:
                existing.price = data.price
                existing.updated_at = now
            else:
                self.db.add(RoomPrice(**values))
            self.db.flush()

        return self.get_price(data.room_type_id, data.rate_plan_id, data.date)
