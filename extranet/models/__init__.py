# Models package
from .property import Property, RoomType
from .pricing import RatePlan, RoomPrice, RuleKind, STD_PLAN_CODE, MAX_PRICE
from .inventory import RoomInventory

__all__ = [
    "Property", "RoomType",
    "RatePlan", "RoomPrice", "RuleKind", "STD_PLAN_CODE", "MAX_PRICE",
    "RoomInventory",
]
