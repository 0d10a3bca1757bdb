"""
Pricing Schemas

Pydantic models for catalog reads, partner price saves and rate plan rules.
"""

from datetime import date, date as date_type, datetime
from decimal import Decimal
from typing import Optional, List, Dict
from pydantic import BaseModel, Field, field_validator, model_validator

from ..models.pricing import RuleKind, MAX_PRICE


# ==================
# Rate plans
# ==================

class RatePlanBase(BaseModel):
    """Base schema for a rate plan rule"""
    name: str = Field(..., min_length=1, max_length=200)
    kind: Optional[RuleKind] = Field(None, description="ABSOLUTE or PERCENT; empty for STD")
    value: Optional[Decimal] = Field(None, ge=-100000, le=100000, description="Signed rule value")
    active: bool = True


class RatePlanCreate(RatePlanBase):
    """Schema for creating a rate plan on a room type"""
    code: str = Field(..., min_length=1, max_length=20, description="STD, BB, NRF, ...")

    @field_validator('code')
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()

    @model_validator(mode='after')
    def derived_plans_need_rule(self):
        if self.code != "STD" and self.kind is None:
            raise ValueError("derived rate plans need a rule kind")
        if self.code == "STD" and self.kind is not None:
            raise ValueError("the STD plan cannot carry a rule")
        return self


class RatePlanUpdate(BaseModel):
    """Schema for editing a rule. Has no effect on prices already stored."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    kind: Optional[RuleKind] = None
    value: Optional[Decimal] = Field(None, ge=-100000, le=100000)
    active: Optional[bool] = None


class RatePlanResponse(BaseModel):
    id: int
    property_id: int
    room_type_id: int
    code: str
    name: str
    kind: Optional[str] = None
    value: Optional[Decimal] = None
    active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# ==================
# Stored prices
# ==================

class RoomPriceResponse(BaseModel):
    """A stored nightly price row"""
    room_type_id: int
    rate_plan_id: int
    date: date
    price: Decimal
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StoredPriceDay(BaseModel):
    """Raw stored price for a date (null when no row exists)"""
    date: date
    rate_plan_id: int
    price: Optional[Decimal] = None


# ==================
# Partner saves
# ==================

class PriceItem(BaseModel):
    date: date
    price: Decimal = Field(..., ge=0, le=MAX_PRICE)


class BulkPriceSaveRequest(BaseModel):
    """
    Partner price save.

    rate_plan_id defaults to the STD plan. apply_rules re-derives the
    active derived plans for the same dates once STD is saved.
    """
    items: List[PriceItem] = Field(..., min_length=1)
    rate_plan_id: Optional[int] = None
    apply_rules: bool = False

    @model_validator(mode='after')
    def apply_rules_only_on_std(self):
        if self.apply_rules and self.rate_plan_id is not None:
            raise ValueError("apply_rules is only available when saving STD prices")
        dates = [i.date for i in self.items]
        if len(dates) != len(set(dates)):
            raise ValueError("duplicate dates in items")
        return self


class ApplyRulesRequest(BaseModel):
    """Re-derive active derived plans from STD over [start, end]"""
    start: date
    end: date
    rate_plan_ids: Optional[List[int]] = None


class SkippedEntryResponse(BaseModel):
    date: Optional[date_type] = None
    rate_plan_id: Optional[int] = None
    reason: str
    detail: str = ""


class SaveReportResponse(BaseModel):
    ok: bool = True
    room_type_id: int
    upserted: int
    written: List[RoomPriceResponse]
    skipped: List[SkippedEntryResponse]


# ==================
# Catalog (traveler read)
# ==================

class CatalogPriceCell(BaseModel):
    """
    One night of one plan. price/available/reason describe pricing;
    rooms_open/closed/min_stay come from inventory and never affect price.
    """
    date: date
    price: Optional[Decimal] = None
    available: bool
    reason: Optional[str] = None
    rooms_open: int = 0
    closed: bool = True
    min_stay: Optional[int] = None


class CatalogRoomPrices(BaseModel):
    room_type_id: int
    room_name: str
    daily_by_plan: Dict[int, List[CatalogPriceCell]]


class CatalogPricesResponse(BaseModel):
    property_id: int
    start: date
    end: date
    rooms: List[CatalogRoomPrices]
