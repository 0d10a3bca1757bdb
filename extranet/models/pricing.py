"""
Rate Plan and Room Price Models

RatePlan stores the derivation rule of a plan (kind + signed value).
RoomPrice is the materialized nightly price, one row per
(room type, rate plan, date).

Pricing Formula (derived plans only):
- ABSOLUTE: price = std_price + value
- PERCENT:  price = std_price * (1 + value / 100)

The plan whose code is STD is the base plan of its room type. Its prices
are entered by the partner and are never derived.
"""

import enum
from decimal import Decimal
from datetime import datetime
from sqlalchemy import (
    Column, String, Numeric, ForeignKey, DateTime, Date, Integer, Boolean,
    Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship
from ..database import Base


STD_PLAN_CODE = "STD"

# Largest value a Numeric(10, 2) price column holds
MAX_PRICE = Decimal("99999999.99")


class RuleKind(str, enum.Enum):
    """How a derived plan is computed from STD"""
    ABSOLUTE = "ABSOLUTE"
    PERCENT = "PERCENT"


class RatePlan(Base):
    """
    Rate plan of a room type.

    Rules are not versioned: editing kind/value/active never touches rows
    already materialized in room_prices.
    """
    __tablename__ = "rate_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id", ondelete="CASCADE"), nullable=False)

    code = Column(String(20), nullable=False)  # STD, BB, NRF, ...
    name = Column(String(200), nullable=False)

    # Rule (NULL kind on the STD plan)
    kind = Column(String(20), nullable=True)
    value = Column(Numeric(10, 4), nullable=True)
    active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room_type = relationship("RoomType", back_populates="rate_plans")

    __table_args__ = (
        UniqueConstraint('room_type_id', 'code', name='uq_rate_plan_room_code'),
        Index('ix_rate_plans_property_room', 'property_id', 'room_type_id'),
    )

    @property
    def is_std(self) -> bool:
        return (self.code or "").upper() == STD_PLAN_CODE

    def __repr__(self):
        return f"<RatePlan {self.id} {self.code} kind={self.kind} value={self.value} active={self.active}>"


class RoomPrice(Base):
    """
    Authoritative nightly price.

    Written by partner saves (any plan, overwrite) and by catalog fills
    (derived plans only, insert-only). Never deleted by the pricing code.
    """
    __tablename__ = "room_prices"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    room_type_id = Column(Integer, ForeignKey("room_types.id", ondelete="CASCADE"), nullable=False)
    rate_plan_id = Column(Integer, ForeignKey("rate_plans.id", ondelete="CASCADE"), nullable=False)

    date = Column(Date, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        # One price per room type, plan and night. insert_if_absent relies on it.
        UniqueConstraint('room_type_id', 'rate_plan_id', 'date', name='uq_room_price_room_plan_date'),
        CheckConstraint('price >= 0', name='ck_room_price_non_negative'),
        Index('ix_room_prices_property_date', 'property_id', 'date'),
    )

    def __repr__(self):
        return f"<RoomPrice room_type={self.room_type_id} plan={self.rate_plan_id} {self.date} {self.price}>"
