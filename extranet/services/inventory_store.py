"""
Inventory Store

Reads and partner writes of per-night RoomInventory rows, keyed by
(room_type_id, date). Saves overwrite (last writer wins), like partner
price saves.

Sellable flags for a night:
- open: rooms_open, or 0 when the night is closed or has no row
- closed: is_closed, or nothing open, or no row at all
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.orm import Session

from ..models.inventory import RoomInventory
from ..utils.db_helpers import insert_do_update

logger = logging.getLogger(__name__)

InventoryKey = Tuple[int, date]


@dataclass(frozen=True)
class InventoryFlags:
    """What the catalog shows for one room type and night"""
    rooms_open: int
    closed: bool
    min_stay: Optional[int]

    @classmethod
    def from_row(cls, row: Optional[RoomInventory]) -> "InventoryFlags":
        if row is None:
            return cls(rooms_open=0, closed=True, min_stay=None)
        rooms_open = 0 if row.is_closed else max(0, row.rooms_open or 0)
        return cls(
            rooms_open=rooms_open,
            closed=bool(row.is_closed) or rooms_open <= 0,
            min_stay=row.min_stay
        )


@dataclass(frozen=True)
class InventoryDayData:
    """Values for a RoomInventory row that is about to be written"""
    date: date
    rooms_open: int = 0
    min_stay: Optional[int] = None
    is_closed: bool = False


class InventoryStore:
    """Per-night availability on a SQLAlchemy session. Only save_days commits."""

    def __init__(self, db: Session):
        self.db = db

    def get_days(
        self,
        room_type_ids: Iterable[int],
        start: date,
        end: date
    ) -> Dict[InventoryKey, RoomInventory]:
        """Rows in an inclusive date range, indexed by (room_type_id, date)"""
        room_type_ids = list(set(room_type_ids))
        if not room_type_ids:
            return {}

        rows = self.db.query(RoomInventory).populate_existing().filter(
            RoomInventory.room_type_id.in_(room_type_ids),
            RoomInventory.date >= start,
            RoomInventory.date <= end
        ).all()
        return {(r.room_type_id, r.date): r for r in rows}

    def get_flags(
        self,
        room_type_ids: Iterable[int],
        start: date,
        end: date
    ) -> Dict[InventoryKey, InventoryFlags]:
        """Catalog flags for every stored night; missing nights are absent from the dict"""
        return {key: InventoryFlags.from_row(row) for key, row in self.get_days(room_type_ids, start, end).items()}

    def upsert(self, property_id: int, room_type_id: int, data: InventoryDayData) -> None:
        """Create or overwrite the row for (room_type_id, date)"""
        now = datetime.utcnow()
        values = {
            "property_id": property_id,
            "room_type_id": room_type_id,
            "date": data.date,
            "rooms_open": data.rooms_open,
            "min_stay": data.min_stay,
            "is_closed": data.is_closed,
            "created_at": now,
            "updated_at": now,
        }

        stmt = insert_do_update(
            self.db, RoomInventory, values, ("room_type_id", "date"),
            ("rooms_open", "min_stay", "is_closed", "updated_at")
        )
        if stmt is not None:
            self.db.execute(stmt)
            return

        existing = self.db.query(RoomInventory).filter(
            RoomInventory.room_type_id == room_type_id,
            RoomInventory.date == data.date
        ).first()
        if existing:
            existing.rooms_open = data.rooms_open
            existing.min_stay = data.min_stay
            existing.is_closed = data.is_closed
            existing.updated_at = now
        else:
            self.db.add(RoomInventory(**values))
        self.db.flush()

    def save_days(self, property_id: int, room_type_id: int, days: Iterable[InventoryDayData]) -> int:
        """Upsert every day and commit once; returns the number of rows written"""
        written = 0
        for day in days:
            self.upsert(property_id, room_type_id, day)
            written += 1
        self.db.commit()
        logger.info(f"[inventory] room_type={room_type_id} upserted={written}")
        return written
