"""
Room Inventory Model

Per-night availability of a room type: rooms open for sale, minimum stay
and a closed flag. Independent of pricing; a closed night keeps its prices.
"""

from datetime import datetime
from sqlalchemy import (
    Column, ForeignKey, DateTime, Date, Integer, Boolean,
    Index, UniqueConstraint, CheckConstraint
)
from ..database import Base


class RoomInventory(Base):
    """
    Partner-managed availability for one room type and night.

    A night without a row is treated as closed with nothing to sell.
    """
    __tablename__ = "room_inventory"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id", ondelete="CASCADE"), nullable=False)

    date = Column(Date, nullable=False)
    rooms_open = Column(Integer, nullable=False, default=0)
    min_stay = Column(Integer, nullable=True)
    is_closed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('room_type_id', 'date', name='uq_room_inventory_room_date'),
        CheckConstraint('rooms_open >= 0', name='ck_room_inventory_rooms_open'),
        Index('ix_room_inventory_property_date', 'property_id', 'date'),
    )

    def __repr__(self):
        return f"<RoomInventory room_type={self.room_type_id} {self.date} open={self.rooms_open} closed={self.is_closed}>"
