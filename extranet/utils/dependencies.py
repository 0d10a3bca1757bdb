"""
Shared FastAPI dependencies and request guards.
"""

import hmac
import logging
from datetime import date
from typing import Optional

from fastapi import Depends, Header, HTTPException, Path, status
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..models.property import Property, RoomType

logger = logging.getLogger(__name__)


def require_write_token(authorization: Optional[str] = Header(None)) -> None:
    """
    Write gate for partner endpoints.

    Requires Authorization: Bearer <EXTRANET_WRITE_TOKEN>. When the token is
    not configured every write is refused.
    """
    expected = settings.extranet_write_token
    token = ""
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer":
            token = value.strip()

    if not expected or not token or not hmac.compare_digest(token, expected):
        logger.warning("Rejected write without a valid bearer token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Write operations require a Bearer token."
        )


def validate_date_range(start: date, end: date) -> None:
    """Reject reversed or oversized ranges"""
    if start > end:
        raise HTTPException(status_code=400, detail="start must be on or before end")
    span = (end - start).days + 1
    if span > settings.max_range_days:
        raise HTTPException(
            status_code=400,
            detail=f"date range too large ({span} days, max {settings.max_range_days})"
        )


def get_property_or_404(db: Session, property_id: int) -> Property:
    prop = db.query(Property).filter(Property.id == property_id).first()
    if not prop:
        raise HTTPException(status_code=404, detail="Property not found")
    return prop


def get_room_type_or_404(
    room_type_id: int = Path(..., ge=1),
    db: Session = Depends(get_db)
) -> RoomType:
    room_type = db.query(RoomType).filter(RoomType.id == room_type_id).first()
    if not room_type:
        raise HTTPException(status_code=404, detail="Room type not found")
    return room_type
