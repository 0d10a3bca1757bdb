"""
Rate Plans API Router

Partner editing of rate plan rules. Rules are not versioned and editing
one never reprices stored nights: already materialized derived prices keep
their value until the partner re-derives those dates explicitly.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.property import RoomType
from ..models.pricing import RatePlan, STD_PLAN_CODE
from ..schemas.pricing import RatePlanCreate, RatePlanUpdate, RatePlanResponse
from ..utils.dependencies import require_write_token, get_room_type_or_404
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/extranet", tags=["Rate Plans"])


@router.get("/room-types/{room_type_id}/rate-plans", response_model=List[RatePlanResponse])
async def list_rate_plans(
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """List the rate plans of a room type"""
    return db.query(RatePlan).filter(
        RatePlan.room_type_id == room_type.id
    ).order_by(RatePlan.id.asc()).all()


@router.post(
    "/room-types/{room_type_id}/rate-plans",
    response_model=RatePlanResponse,
    status_code=201,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("rate_plan_write"))
async def create_rate_plan(
    request: Request,
    payload: RatePlanCreate,
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """Create a rate plan (STD or derived) on a room type"""
    plan = RatePlan(
        property_id=room_type.property_id,
        room_type_id=room_type.id,
        code=payload.code,
        name=payload.name,
        kind=payload.kind.value if payload.kind else None,
        value=payload.value,
        active=payload.active
    )
    db.add(plan)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail=f"Rate plan {payload.code} already exists for this room type")

    db.refresh(plan)
    logger.info(f"Rate plan created: {plan.code} (id={plan.id}) on room_type={room_type.id}")
    return plan


@router.patch(
    "/rate-plans/{rate_plan_id}",
    response_model=RatePlanResponse,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("rate_plan_write"))
async def update_rate_plan(
    request: Request,
    rate_plan_id: int,
    payload: RatePlanUpdate,
    db: Session = Depends(get_db)
):
    """
    Edit a rule (kind/value/active/name).

    Stored prices are left as they are.
    """
    plan = db.query(RatePlan).filter(RatePlan.id == rate_plan_id).first()
    if not plan:
        raise HTTPException(status_code=404, detail="Rate plan not found")

    update_data = payload.model_dump(exclude_unset=True)
    if plan.code == STD_PLAN_CODE:
        if update_data.get("kind") is not None or update_data.get("value") is not None:
            raise HTTPException(status_code=400, detail="The STD plan cannot carry a rule")
        if update_data.get("active") is False:
            raise HTTPException(status_code=400, detail="The STD plan cannot be deactivated")
    elif "kind" in update_data and update_data["kind"] is None:
        raise HTTPException(status_code=400, detail="Derived rate plans need a rule kind")

    for key, value in update_data.items():
        if key == "kind" and value is not None:
            value = value.value
        setattr(plan, key, value)

    db.commit()
    db.refresh(plan)

    logger.info(
        f"Rate plan {plan.id} updated: kind={plan.kind} value={plan.value} active={plan.active} "
        f"(stored prices unchanged)"
    )
    return plan
