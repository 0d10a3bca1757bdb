"""
Room Type Schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field

from ..models.pricing import MAX_PRICE


class RoomTypeBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    base_price: Optional[Decimal] = Field(None, ge=0, le=MAX_PRICE, description="List price, informational only")


class RoomTypeCreate(RoomTypeBase):
    """New room type; its STD rate plan is created with it"""
    pass


class RoomTypeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    base_price: Optional[Decimal] = Field(None, ge=0, le=MAX_PRICE)


class RoomTypeResponse(BaseModel):
    id: int
    property_id: int
    name: str
    base_price: Optional[Decimal] = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
