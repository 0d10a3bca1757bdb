"""
Catalog API Router

Public, traveler-facing price reads. Runs the fill path of the
materialization engine, so a read may insert missing derived prices
(insert-only, inside the write window) but never changes an existing row.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.property import RoomType
from ..services.materialization_engine import PriceCell, get_materialization_engine
from ..services.inventory_store import InventoryStore, InventoryFlags
from ..schemas.pricing import CatalogPricesResponse, CatalogRoomPrices, CatalogPriceCell
from ..utils.dependencies import validate_date_range, get_property_or_404
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/catalog", tags=["Catalog"])


def _cell(cell: PriceCell, flags: InventoryFlags) -> CatalogPriceCell:
    return CatalogPriceCell(
        date=cell.date,
        price=cell.price,
        available=cell.available,
        reason=cell.reason.value if cell.reason else None,
        rooms_open=flags.rooms_open,
        closed=flags.closed,
        min_stay=flags.min_stay
    )


@router.get("/properties/{property_id}/prices", response_model=CatalogPricesResponse)
@limiter.limit(get_rate_limit("catalog"))
async def get_catalog_prices(
    request: Request,
    property_id: int,
    start: date = Query(..., description="First night (YYYY-MM-DD)"),
    end: date = Query(..., description="Last night, inclusive (YYYY-MM-DD)"),
    rate_plan_id: Optional[List[int]] = Query(None, description="Restrict to these rate plans"),
    db: Session = Depends(get_db)
):
    """
    Per-night price matrix for every room type of a property.

    Without rate_plan_id: STD plus every active derived plan.
    Cells with no price carry available=false and a reason. Inventory
    flags are attached per night; a night without inventory shows closed.
    """
    validate_date_range(start, end)
    get_property_or_404(db, property_id)

    engine = get_materialization_engine(db)

    room_types = db.query(RoomType).filter(
        RoomType.property_id == property_id
    ).order_by(RoomType.id.asc()).all()
    room_names = {rt.id: rt.name for rt in room_types}

    plans = engine.registry.list_plans(property_id, room_names.keys())

    if rate_plan_id:
        plans_by_id = {p.rate_plan_id: p for p in plans}
        missing = [pid for pid in rate_plan_id if pid not in plans_by_id]
        if missing:
            raise HTTPException(status_code=404, detail=f"Rate plan(s) not found: {missing}")
        pairs = [(plans_by_id[pid].room_type_id, pid) for pid in rate_plan_id]
    else:
        pairs = [(p.room_type_id, p.rate_plan_id) for p in plans if p.is_std or p.active]

    result = engine.fill(property_id, pairs, start, end)
    grouped = result.by_room_type()
    inventory = InventoryStore(db).get_flags(room_names.keys(), start, end)
    no_inventory = InventoryFlags.from_row(None)

    logger.info(
        f"[catalog] property={property_id} {start}..{end} cells={len(result.cells)} writes={result.writes}"
    )

    rooms = []
    for rt_id, name in room_names.items():
        daily_by_plan = {
            plan_id: [
                _cell(c, inventory.get((rt_id, c.date), no_inventory))
                for c in cells
            ]
            for plan_id, cells in grouped.get(rt_id, {}).items()
        }
        rooms.append(CatalogRoomPrices(room_type_id=rt_id, room_name=name, daily_by_plan=daily_by_plan))

    return CatalogPricesResponse(property_id=property_id, start=start, end=end, rooms=rooms)
