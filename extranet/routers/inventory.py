"""
Inventory API Router

Partner availability per night (rooms open, minimum stay, closed flag)
and a combined snapshot of inventory and stored prices. Inventory never
changes a price.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.property import RoomType
from ..services.inventory_store import InventoryStore, InventoryDayData
from ..services.materialization_engine import date_range, get_materialization_engine
from ..schemas.inventory import (
    BulkInventorySaveRequest,
    InventoryDay,
    InventorySaveResponse,
    RoomSnapshotResponse,
)
from ..schemas.pricing import StoredPriceDay
from ..utils.dependencies import require_write_token, validate_date_range, get_room_type_or_404
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/extranet", tags=["Inventory"])


def _inventory_days(db: Session, room_type_id: int, start: date, end: date) -> List[InventoryDay]:
    rows = InventoryStore(db).get_days([room_type_id], start, end)
    days = []
    for day in date_range(start, end):
        row = rows.get((room_type_id, day))
        if row is None:
            days.append(InventoryDay(date=day))
        else:
            days.append(InventoryDay(
                date=day,
                rooms_open=row.rooms_open,
                min_stay=row.min_stay,
                is_closed=row.is_closed
            ))
    return days


@router.get("/room-types/{room_type_id}/inventory", response_model=List[InventoryDay])
async def get_inventory(
    start: date = Query(...),
    end: date = Query(...),
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """Stored inventory, one entry per night (nulls for nights without a row)"""
    validate_date_range(start, end)
    return _inventory_days(db, room_type.id, start, end)


@router.post(
    "/room-types/{room_type_id}/inventory/bulk",
    response_model=InventorySaveResponse,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("inventory_save"))
async def save_inventory_bulk(
    request: Request,
    payload: BulkInventorySaveRequest,
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """Overwrite inventory for explicit dates. Prices are not touched."""
    logger.info(
        f"[inventory:bulk] room_type={room_type.id} property={room_type.property_id} "
        f"items={len(payload.items)}"
    )
    upserted = InventoryStore(db).save_days(
        room_type.property_id,
        room_type.id,
        [
            InventoryDayData(
                date=i.date,
                rooms_open=i.rooms_open,
                min_stay=i.min_stay,
                is_closed=i.is_closed
            )
            for i in payload.items
        ]
    )
    return InventorySaveResponse(room_type_id=room_type.id, upserted=upserted)


@router.get("/room-types/{room_type_id}/snapshot", response_model=RoomSnapshotResponse)
async def get_snapshot(
    start: date = Query(...),
    end: date = Query(...),
    plan_id: Optional[int] = Query(None, description="Rate plan, defaults to STD"),
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """
    Inventory and stored prices for a room type over [start, end].

    Read-only like the stored prices endpoint: nothing is derived.
    """
    validate_date_range(start, end)
    engine = get_materialization_engine(db)

    if plan_id is None:
        plan_id = engine.registry.get_std_plan_id(room_type.id)
        if plan_id is None:
            raise HTTPException(status_code=404, detail="Room type has no STD rate plan")

    rows = engine.store.get_prices([room_type.id], [plan_id], start, end)
    prices = []
    for day in date_range(start, end):
        row = rows.get((room_type.id, plan_id, day))
        prices.append(StoredPriceDay(
            date=day,
            rate_plan_id=plan_id,
            price=row.price if row is not None else None
        ))

    return RoomSnapshotResponse(
        room_type_id=room_type.id,
        rate_plan_id=plan_id,
        inventory=_inventory_days(db, room_type.id, start, end),
        prices=prices
    )
