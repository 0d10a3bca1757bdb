"""
Property and Room Type Models

A property is the partner's hotel; room types belong to exactly one property.
"""

from datetime import datetime
from sqlalchemy import Column, String, Numeric, ForeignKey, DateTime, Integer, Index
from sqlalchemy.orm import relationship
from ..database import Base


class Property(Base):
    """Partner property (hotel) managed through the extranet."""
    __tablename__ = "properties"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(200), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    room_types = relationship("RoomType", back_populates="partner_property", cascade="all, delete-orphan")

    def __repr__(self):
        return f"<Property {self.id} {self.name}>"


class RoomType(Base):
    """
    Sellable room type of a property.

    base_price is the partner's list price shown in the extranet. The
    catalog never prices from it; nightly prices live in room_prices.
    """
    __tablename__ = "room_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(Integer, ForeignKey("properties.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    base_price = Column(Numeric(10, 2), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    partner_property = relationship("Property", back_populates="room_types")
    rate_plans = relationship("RatePlan", back_populates="room_type", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_room_types_property', 'property_id'),
    )

    def __repr__(self):
        return f"<RoomType {self.id} property={self.property_id} {self.name}>"
