"""
Room Types API Router

Partner management of the room types a property sells. Creating a room
type also creates its STD rate plan, so prices can be saved right away.
"""

import logging
from typing import List
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.property import RoomType
from ..models.pricing import RatePlan, RoomPrice, STD_PLAN_CODE
from ..models.inventory import RoomInventory
from ..schemas.room_type import RoomTypeCreate, RoomTypeUpdate, RoomTypeResponse
from ..utils.dependencies import require_write_token, get_property_or_404, get_room_type_or_404
from ..utils.rate_limiter import limiter, get_rate_limit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/extranet", tags=["Room Types"])


@router.get("/properties/{property_id}/room-types", response_model=List[RoomTypeResponse])
async def list_room_types(property_id: int, db: Session = Depends(get_db)):
    """List a property's room types"""
    get_property_or_404(db, property_id)
    return db.query(RoomType).filter(
        RoomType.property_id == property_id
    ).order_by(RoomType.id.asc()).all()


@router.post(
    "/properties/{property_id}/room-types",
    response_model=RoomTypeResponse,
    status_code=201,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("room_type_write"))
async def create_room_type(
    request: Request,
    property_id: int,
    payload: RoomTypeCreate,
    db: Session = Depends(get_db)
):
    """Create a room type together with its STD rate plan"""
    get_property_or_404(db, property_id)

    room_type = RoomType(property_id=property_id, name=payload.name.strip(), base_price=payload.base_price)
    db.add(room_type)
    db.flush()

    db.add(RatePlan(
        property_id=property_id,
        room_type_id=room_type.id,
        code=STD_PLAN_CODE,
        name="Standard"
    ))
    db.commit()
    db.refresh(room_type)

    logger.info(f"Room type created: {room_type.name} (id={room_type.id}) on property={property_id}")
    return room_type


@router.put(
    "/room-types/{room_type_id}",
    response_model=RoomTypeResponse,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("room_type_write"))
async def update_room_type(
    request: Request,
    payload: RoomTypeUpdate,
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """Rename a room type or change its list price. Nightly prices are untouched."""
    update_data = payload.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        if key == "name" and value is not None:
            value = value.strip()
        setattr(room_type, key, value)

    db.commit()
    db.refresh(room_type)
    return room_type


@router.delete(
    "/room-types/{room_type_id}",
    status_code=204,
    dependencies=[Depends(require_write_token)]
)
@limiter.limit(get_rate_limit("room_type_write"))
async def delete_room_type(
    request: Request,
    room_type: RoomType = Depends(get_room_type_or_404),
    db: Session = Depends(get_db)
):
    """Delete a room type with its rate plans, prices and inventory"""
    room_type_id = room_type.id

    prices = db.query(RoomPrice).filter(
        RoomPrice.room_type_id == room_type_id
    ).delete(synchronize_session=False)
    db.query(RoomInventory).filter(
        RoomInventory.room_type_id == room_type_id
    ).delete(synchronize_session=False)
    db.delete(room_type)
    db.commit()

    logger.info(f"Room type {room_type_id} deleted ({prices} stored prices removed)")
    return Response(status_code=204)
