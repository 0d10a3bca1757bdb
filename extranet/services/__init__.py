# Services package
from .derivation import derive_price, apply_rule
from .write_window import is_writable, write_window, today_in_zone
from .pricing_errors import InvalidDerivation, UnavailableReason
from .price_store import PriceStore, PriceRowData, InsertResult
from .rate_plan_registry import RatePlanRegistry, RuleSnapshot
from .inventory_store import InventoryStore, InventoryFlags, InventoryDayData
from .materialization_engine import (
    MaterializationEngine,
    get_materialization_engine,
    PriceIntent,
    PriceCell,
    FillResult,
    SaveReport,
    SkippedEntry,
)

__all__ = [
    "derive_price", "apply_rule",
    "is_writable", "write_window", "today_in_zone",
    "InvalidDerivation", "UnavailableReason",
    "PriceStore", "PriceRowData", "InsertResult",
    "RatePlanRegistry", "RuleSnapshot",
    "InventoryStore", "InventoryFlags", "InventoryDayData",
    "MaterializationEngine", "get_materialization_engine",
    "PriceIntent", "PriceCell", "FillResult", "SaveReport", "SkippedEntry",
]
