"""
Extranet Prices API Router

Partner-facing price management. Saves here are authoritative: they
overwrite whatever is stored for the dates sent, regardless of the
catalog write window.
"""

import logging
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.property import RoomType
from ..models.pricing import RatePlan
from ..services.materialization_engine import (
    SaveReport,
    date_range,
    get_materialization_engine,
)
from ..schemas.pricing import (
    ApplyRulesRequest,
    BulkPriceSaveRequest,
    RoomPriceResponse,
    SaveReportResponse,
    SkippedEntryResponse,
    StoredPriceDay,
)
from ..utils.dependencies import require_write_token, validate_date_range, get_room_type_or_404
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/extranet", tags=["Extranet Prices"])


def _report_response(report: SaveReport) -> SaveReportResponse:
    return SaveReportResponse(
        room_type_id=report.room_type_id,
        upserted=len(report.written),
        written=[RoomPriceResponse.model_validate(row) for row in report.written],
        skipped=[
            SkippedEntryResponse(
                date=s.date,
                rate_plan_id=s.rate_plan_id,
                reason=s.reason.value,
                detail=s.detail
            )
            for s in report.skipped
        ]
    )


@router.get("/room-types/{room_type_id}/prices", response_model=List[StoredPriceDay])
async def get_stored_prices(
    start: date = Query(...),
    end: date = Query(...),
    plan_id: Optional[int] = Query(None, description="Rate plan, defaults to STD"),
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """
    Stored prices for a room type, one entry per night (null for gaps).

    Read-only: never derives or writes.
    """
    validate_date_range(start, end)
    engine = get_materialization_engine(db)

    if plan_id is None:
        plan_id = engine.registry.get_std_plan_id(room_type.id)
        if plan_id is None:
            raise HTTPException(status_code=404, detail="Room type has no STD rate plan")

    rows = engine.store.get_prices([room_type.id], [plan_id], start, end)
    return [
        StoredPriceDay(
            date=day,
            rate_plan_id=plan_id,
            price=rows[(room_type.id, plan_id, day)].price if (room_type.id, plan_id, day) in rows else None
        )
        for day in date_range(start, end)
    ]


@router.post(
    "/room-types/{room_type_id}/prices/bulk",
    response_model=SaveReportResponse,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("price_save"))
async def save_prices_bulk(
    request: Request,
    payload: BulkPriceSaveRequest,
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """
    Save partner prices for explicit dates.

    Defaults to STD. With apply_rules=true, active derived plans are
    re-derived from the new STD for the same dates only.
    """
    engine = get_materialization_engine(db)

    if payload.rate_plan_id is not None:
        plan = db.query(RatePlan).filter(RatePlan.id == payload.rate_plan_id).first()
        if not plan or plan.room_type_id != room_type.id:
            raise HTTPException(status_code=404, detail="Rate plan not found for this room type")
    elif engine.registry.get_std_plan_id(room_type.id) is None:
        raise HTTPException(status_code=400, detail="Room type has no STD rate plan")

    items = [(i.date, i.price) for i in payload.items]
    logger.info(
        f"[prices:bulk] room_type={room_type.id} property={room_type.property_id} "
        f"items={len(items)} plan={payload.rate_plan_id or 'STD'} apply_rules={payload.apply_rules}"
    )

    if payload.apply_rules:
        report = engine.save_and_apply(room_type.property_id, room_type.id, items)
    else:
        report = engine.save_prices(
            room_type.property_id, room_type.id, items, rate_plan_id=payload.rate_plan_id
        )

    return _report_response(report)


@router.post(
    "/room-types/{room_type_id}/prices/apply-rules",
    response_model=SaveReportResponse,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("apply_rules"))
async def apply_rules(
    request: Request,
    payload: ApplyRulesRequest,
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """
    Re-derive active derived plans from STD over [start, end].

    Overwrites derived prices inside the range; nothing outside it changes.
    Dates without STD are reported as skipped.
    """
    validate_date_range(payload.start, payload.end)
    engine = get_materialization_engine(db)

    logger.info(
        f"[prices:apply-rules] room_type={room_type.id} {payload.start}..{payload.end} "
        f"plans={payload.rate_plan_ids or 'all active'}"
    )

    report = engine.rederive(
        room_type.property_id,
        room_type.id,
        payload.start,
        payload.end,
        rate_plan_ids=payload.rate_plan_ids
    )
    return _report_response(report)
