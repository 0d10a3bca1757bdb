"""
Inventory Schemas

Per-night availability a partner manages next to prices.
"""

from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field, model_validator

from .pricing import StoredPriceDay


class InventoryItem(BaseModel):
    date: date
    rooms_open: int = Field(0, ge=0, le=10000)
    min_stay: Optional[int] = Field(None, ge=1, le=365)
    is_closed: bool = False


class BulkInventorySaveRequest(BaseModel):
    items: List[InventoryItem] = Field(..., min_length=1)

    @model_validator(mode='after')
    def unique_dates(self):
        dates = [i.date for i in self.items]
        if len(dates) != len(set(dates)):
            raise ValueError("duplicate dates in items")
        return self


class InventoryDay(BaseModel):
    """Stored inventory for a date; all fields null when no row exists"""
    date: date
    rooms_open: Optional[int] = None
    min_stay: Optional[int] = None
    is_closed: Optional[bool] = None


class InventorySaveResponse(BaseModel):
    ok: bool = True
    room_type_id: int
    upserted: int


class RoomSnapshotResponse(BaseModel):
    """Inventory and stored prices of one room type side by side"""
    room_type_id: int
    rate_plan_id: int
    inventory: List[InventoryDay]
    prices: List[StoredPriceDay]
