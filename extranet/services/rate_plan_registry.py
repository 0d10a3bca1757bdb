"""
Rate Plan Registry

Lookup of derivation rules by rate plan id. Rules are returned as frozen
snapshots copied out of the ORM row, so a derivation works on the values
read at that moment and never on a live object that may be edited later.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from ..models.pricing import RatePlan, STD_PLAN_CODE


@dataclass(frozen=True)
class RuleSnapshot:
    """Point-in-time copy of a rate plan's rule"""
    rate_plan_id: int
    property_id: int
    room_type_id: int
    code: str
    kind: Optional[str]
    value: Optional[Decimal]
    active: bool

    @property
    def is_std(self) -> bool:
        return self.code == STD_PLAN_CODE

    @property
    def has_rule(self) -> bool:
        return bool(self.kind)

    @classmethod
    def from_plan(cls, plan: RatePlan) -> "RuleSnapshot":
        return cls(
            rate_plan_id=plan.id,
            property_id=plan.property_id,
            room_type_id=plan.room_type_id,
            code=(plan.code or "").upper(),
            kind=(plan.kind or "").upper() or None,
            value=Decimal(str(plan.value)) if plan.value is not None else None,
            active=bool(plan.active),
        )


class RatePlanRegistry:
    """Read access to rate plans and their rules"""

    def __init__(self, db: Session):
        self.db = db

    def get_rule(self, rate_plan_id: int) -> Optional[RuleSnapshot]:
        """Current rule of a plan, or None if the plan does not exist"""
        plan = self.db.query(RatePlan).populate_existing().filter(
            RatePlan.id == rate_plan_id
        ).first()
        if not plan:
            return None
        return RuleSnapshot.from_plan(plan)

    def get_std_plan_id(self, room_type_id: int) -> Optional[int]:
        """Id of the STD plan of a room type"""
        plan = self.db.query(RatePlan.id).filter(
            RatePlan.room_type_id == room_type_id,
            RatePlan.code == STD_PLAN_CODE
        ).first()
        return plan[0] if plan else None

    def list_plans(
        self,
        property_id: int,
        room_type_ids: Optional[Iterable[int]] = None,
        active_only: bool = False
    ) -> List[RuleSnapshot]:
        """Snapshots of the property's plans, ordered by room type then id"""
        query = self.db.query(RatePlan).populate_existing().filter(
            RatePlan.property_id == property_id
        )
        if room_type_ids is not None:
            query = query.filter(RatePlan.room_type_id.in_(list(room_type_ids)))
        if active_only:
            query = query.filter(RatePlan.active == True)  # noqa: E712

        plans = query.order_by(RatePlan.room_type_id.asc(), RatePlan.id.asc()).all()
        return [RuleSnapshot.from_plan(p) for p in plans]

    def list_active_derived(self, room_type_id: int) -> List[RuleSnapshot]:
        """Active non-STD plans of a room type that carry a rule"""
        plans = self.db.query(RatePlan).populate_existing().filter(
            RatePlan.room_type_id == room_type_id,
            RatePlan.active == True,  # noqa: E712
            RatePlan.code != STD_PLAN_CODE
        ).order_by(RatePlan.id.asc()).all()
        return [s for s in (RuleSnapshot.from_plan(p) for p in plans) if s.has_rule]
