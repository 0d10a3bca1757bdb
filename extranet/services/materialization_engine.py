"""
Pricing Materialization Engine

Decides, per (room type, rate plan, night), which price is served and
whether anything gets written. Two intents:

1. FILL (catalog read): serve stored rows; for a missing derived row,
   derive from STD and insert it once, insert-only, inside the write window.
2. OVERWRITE (partner save): write STD prices as given, and/or re-derive
   active derived plans from the current STD and rules, overwriting rows
   for exactly the dates the partner acted on.

A derived row, once written, is never recomputed by a read. Rule edits and
STD edits only reach it through an explicit partner re-derive covering its
date.
"""

import enum
import logging
import time
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Sequence, Tuple, Union

from sqlalchemy.orm import Session

from ..config import settings
from ..models.pricing import RoomPrice, MAX_PRICE
from ..utils.logging_config import get_logger
from .derivation import apply_rule
from .price_store import PriceStore, PriceRowData
from .pricing_errors import InvalidDerivation, UnavailableReason
from .rate_plan_registry import RatePlanRegistry, RuleSnapshot
from .write_window import is_writable, today_in_zone

logger = get_logger(__name__)


class PriceIntent(str, enum.Enum):
    FILL = "FILL"
    OVERWRITE = "OVERWRITE"


@dataclass
class PriceCell:
    """Served price of one night for one plan; price None means unavailable"""
    room_type_id: int
    rate_plan_id: int
    date: date
    price: Optional[Decimal]
    reason: Optional[UnavailableReason] = None
    materialized: bool = False  # row inserted by this call

    @property
    def available(self) -> bool:
        return self.price is not None


@dataclass
class FillResult:
    """Complete price matrix for a fill request"""
    property_id: int
    start: date
    end: date
    cells: List[PriceCell] = field(default_factory=list)
    intent: PriceIntent = PriceIntent.FILL

    @property
    def writes(self) -> int:
        return sum(1 for c in self.cells if c.materialized)

    def by_room_type(self) -> Dict[int, Dict[int, List[PriceCell]]]:
        """room_type_id -> rate_plan_id -> cells ordered by date"""
        grouped: Dict[int, Dict[int, List[PriceCell]]] = {}
        for cell in self.cells:
            grouped.setdefault(cell.room_type_id, {}).setdefault(cell.rate_plan_id, []).append(cell)
        for plans in grouped.values():
            for cells in plans.values():
                cells.sort(key=lambda c: c.date)
        return grouped

    def get(self, room_type_id: int, rate_plan_id: int, day: date) -> Optional[PriceCell]:
        for cell in self.cells:
            if (cell.room_type_id, cell.rate_plan_id, cell.date) == (room_type_id, rate_plan_id, day):
                return cell
        return None


@dataclass
class SkippedEntry:
    """A date (or a whole plan when date is None) the partner save did not write"""
    date: Optional[date]
    rate_plan_id: Optional[int]
    reason: UnavailableReason
    detail: str = ""


@dataclass
class SaveReport:
    """Outcome of a partner save"""
    property_id: int
    room_type_id: int
    intent: PriceIntent = PriceIntent.OVERWRITE
    written: List[RoomPrice] = field(default_factory=list)
    skipped: List[SkippedEntry] = field(default_factory=list)

    def merge(self, other: "SaveReport") -> "SaveReport":
        self.written.extend(other.written)
        self.skipped.extend(other.skipped)
        return self


PriceInput = Union[Decimal, int, float, str, None]


def date_range(start: date, end: date) -> List[date]:
    """Dates from start to end, both inclusive"""
    days = []
    current = start
    while current <= end:
        days.append(current)
        current += timedelta(days=1)
    return days


class MaterializationEngine:
    """
    Orchestrates PriceStore and RatePlanRegistry for both intents.

    Stateless apart from the session; create one per request.
    """

    def __init__(
        self,
        db: Session,
        past_days: Optional[int] = None,
        future_days: Optional[int] = None,
        timezone: Optional[str] = None
    ):
        self.db = db
        self.store = PriceStore(db)
        self.registry = RatePlanRegistry(db)
        self.past_days = settings.write_window_past_days if past_days is None else past_days
        self.future_days = settings.write_window_future_days if future_days is None else future_days
        self.timezone = timezone or settings.pricing_timezone

    def _resolve_today(self, today: Optional[date]) -> date:
        return today if today is not None else today_in_zone(self.timezone)

    # ==================
    # FILL (traveler read)
    # ==================

    def fill(
        self,
        property_id: int,
        pairs: Iterable[Tuple[int, int]],
        start: date,
        end: date,
        today: Optional[date] = None
    ) -> FillResult:
        """
        Serve prices for every (room_type_id, rate_plan_id) x night in
        [start, end], materializing missing derived rows where allowed.

        Never raises for an individual cell; unresolvable cells come back
        with price None and a reason.
        """
        today = self._resolve_today(today)
        pairs = list(dict.fromkeys(pairs))
        days = date_range(start, end)
        result = FillResult(property_id=property_id, start=start, end=end)
        if not pairs or not days:
            return result

        room_type_ids = {rt for rt, _ in pairs}
        std_plan_ids = {rt: self.registry.get_std_plan_id(rt) for rt in room_type_ids}

        plan_ids = {plan_id for _, plan_id in pairs}
        plan_ids.update(pid for pid in std_plan_ids.values() if pid is not None)

        # Plain values only: commits below expire ORM instances
        known: Dict[Tuple[int, int, date], Decimal] = {
            key: row.price
            for key, row in self.store.get_prices(room_type_ids, plan_ids, start, end).items()
        }

        for room_type_id, rate_plan_id in pairs:
            for day in days:
                cell = self._fill_cell(
                    property_id, room_type_id, rate_plan_id, day,
                    std_plan_ids.get(room_type_id), known, today
                )
                result.cells.append(cell)

        if result.writes:
            logger.log_with_context(
                logging.INFO,
                f"Fill for property {property_id} materialized {result.writes} prices",
                entity_type="property",
                entity_id=str(property_id),
                start=start,
                end=end,
                cells=len(result.cells)
            )
        return result

    def _fill_cell(
        self,
        property_id: int,
        room_type_id: int,
        rate_plan_id: int,
        day: date,
        std_plan_id: Optional[int],
        known: Dict[Tuple[int, int, date], Decimal],
        today: date
    ) -> PriceCell:
        def unavailable(reason: UnavailableReason) -> PriceCell:
            return PriceCell(room_type_id, rate_plan_id, day, None, reason)

        # 1. STD is the base of everything; no STD, no price
        std_price = known.get((room_type_id, std_plan_id, day)) if std_plan_id is not None else None
        if std_price is None:
            return unavailable(UnavailableReason.MISSING_BASE_PRICE)

        # 2. STD itself is served as-is, never derived or written here
        if rate_plan_id == std_plan_id:
            return PriceCell(room_type_id, rate_plan_id, day, std_price)

        # 3. Materialized derived rows are frozen
        existing = known.get((room_type_id, rate_plan_id, day))
        if existing is not None:
            return PriceCell(room_type_id, rate_plan_id, day, existing)

        # 4. Missing derived row: read the rule now, derive, insert-only
        rule = self.registry.get_rule(rate_plan_id)
        if not self._belongs_to(rule, property_id, room_type_id):
            return unavailable(UnavailableReason.UNKNOWN_RATE_PLAN)
        if not rule.active:
            return unavailable(UnavailableReason.INACTIVE_RATE_PLAN)
        if not is_writable(day, today, self.past_days, self.future_days):
            return unavailable(UnavailableReason.OUT_OF_WRITE_WINDOW)

        try:
            derived = apply_rule(std_price, rule)
        except InvalidDerivation as e:
            logger.derivation_rejected(room_type_id, rate_plan_id, day, str(e))
            return unavailable(UnavailableReason.INVALID_DERIVATION)

        outcome = self.store.insert_if_absent(PriceRowData(
            property_id=property_id,
            room_type_id=room_type_id,
            rate_plan_id=rate_plan_id,
            date=day,
            price=derived
        ))
        served = outcome.row.price if outcome.row is not None else derived
        self.db.commit()

        known[(room_type_id, rate_plan_id, day)] = served
        if outcome.inserted:
            logger.price_materialized(room_type_id, rate_plan_id, day, served)
            return PriceCell(room_type_id, rate_plan_id, day, served, materialized=True)

        logger.fill_conflict(room_type_id, rate_plan_id, day)
        return PriceCell(room_type_id, rate_plan_id, day, served)

    @staticmethod
    def _belongs_to(rule: Optional[RuleSnapshot], property_id: int, room_type_id: int) -> bool:
        return (
            rule is not None
            and rule.property_id == property_id
            and rule.room_type_id == room_type_id
        )

    # ==================
    # OVERWRITE (partner save)
    # ==================

    def save_prices(
        self,
        property_id: int,
        room_type_id: int,
        items: Iterable[Tuple[date, PriceInput]],
        rate_plan_id: Optional[int] = None
    ) -> SaveReport:
        """
        Write partner prices unconditionally (write window not applied).

        rate_plan_id defaults to the room type's STD plan. Negative or
        non-numeric prices are skipped per date.
        """
        started = time.perf_counter()
        report = SaveReport(property_id=property_id, room_type_id=room_type_id)
        items = sorted(dict(items).items())

        plan_id = rate_plan_id if rate_plan_id is not None else self.registry.get_std_plan_id(room_type_id)
        rule = self.registry.get_rule(plan_id) if plan_id is not None else None
        if not self._belongs_to(rule, property_id, room_type_id):
            for day, _ in items:
                report.skipped.append(SkippedEntry(
                    day, plan_id, UnavailableReason.UNKNOWN_RATE_PLAN,
                    "rate plan does not belong to this room type"
                ))
            return report

        for day, raw_price in items:
            price = self._parse_price(raw_price)
            if price is None:
                report.skipped.append(SkippedEntry(
                    day, plan_id, UnavailableReason.INVALID_PRICE,
                    f"price must be a number between 0 and {MAX_PRICE}, got {raw_price!r}"
                ))
                continue

            row = self.store.upsert(PriceRowData(
                property_id=property_id,
                room_type_id=room_type_id,
                rate_plan_id=plan_id,
                date=day,
                price=price
            ))
            report.written.append(row)

        self.db.commit()
        logger.partner_prices_saved(
            room_type_id, len(report.written), len(report.skipped),
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        return report

    def rederive(
        self,
        property_id: int,
        room_type_id: int,
        start: date,
        end: date,
        rate_plan_ids: Optional[Sequence[int]] = None
    ) -> SaveReport:
        """
        Recompute active derived plans from the current STD and rules for
        every night in [start, end], overwriting existing rows.

        Nights outside the range are left untouched.
        """
        return self._rederive_dates(property_id, room_type_id, date_range(start, end), rate_plan_ids)

    def save_and_apply(
        self,
        property_id: int,
        room_type_id: int,
        items: Iterable[Tuple[date, PriceInput]],
        rate_plan_ids: Optional[Sequence[int]] = None
    ) -> SaveReport:
        """
        Save STD prices, then re-derive derived plans for the nights whose
        STD was actually written. Rejected nights keep their derived rows.
        """
        items = dict(items)
        report = self.save_prices(property_id, room_type_id, items.items())
        rejected = {s.date for s in report.skipped}
        saved = [day for day in sorted(items) if day not in rejected]
        return report.merge(
            self._rederive_dates(property_id, room_type_id, saved, rate_plan_ids)
        )

    def _rederive_dates(
        self,
        property_id: int,
        room_type_id: int,
        days: List[date],
        rate_plan_ids: Optional[Sequence[int]]
    ) -> SaveReport:
        started = time.perf_counter()
        report = SaveReport(property_id=property_id, room_type_id=room_type_id)
        if not days:
            return report

        plans = [
            p for p in self.registry.list_active_derived(room_type_id)
            if p.property_id == property_id
        ]
        if rate_plan_ids is not None:
            wanted = list(dict.fromkeys(rate_plan_ids))
            active_ids = {p.rate_plan_id for p in plans}
            for plan_id in wanted:
                if plan_id not in active_ids:
                    report.skipped.append(self._plan_skip(plan_id, property_id, room_type_id))
            plans = [p for p in plans if p.rate_plan_id in wanted]

        std_plan_id = self.registry.get_std_plan_id(room_type_id)
        std_prices: Dict[date, Decimal] = {}
        if std_plan_id is not None:
            rows = self.store.get_prices([room_type_id], [std_plan_id], min(days), max(days))
            std_prices = {key[2]: row.price for key, row in rows.items()}

        for day in days:
            std_price = std_prices.get(day)
            if std_price is None:
                report.skipped.append(SkippedEntry(
                    day, None, UnavailableReason.MISSING_BASE_PRICE, "no STD price for this date"
                ))
                continue

            for plan in plans:
                try:
                    derived = apply_rule(std_price, plan)
                except InvalidDerivation as e:
                    logger.derivation_rejected(room_type_id, plan.rate_plan_id, day, str(e))
                    report.skipped.append(SkippedEntry(
                        day, plan.rate_plan_id, UnavailableReason.INVALID_DERIVATION, str(e)
                    ))
                    continue

                row = self.store.upsert(PriceRowData(
                    property_id=property_id,
                    room_type_id=room_type_id,
                    rate_plan_id=plan.rate_plan_id,
                    date=day,
                    price=derived
                ))
                report.written.append(row)

        self.db.commit()
        logger.partner_prices_saved(
            room_type_id, len(report.written), len(report.skipped),
            duration_ms=round((time.perf_counter() - started) * 1000, 2)
        )
        return report

    def _plan_skip(self, plan_id: int, property_id: int, room_type_id: int) -> SkippedEntry:
        rule = self.registry.get_rule(plan_id)
        if not self._belongs_to(rule, property_id, room_type_id) or rule.is_std:
            return SkippedEntry(
                None, plan_id, UnavailableReason.UNKNOWN_RATE_PLAN,
                "not a derived plan of this room type"
            )
        if not rule.active:
            return SkippedEntry(None, plan_id, UnavailableReason.INACTIVE_RATE_PLAN, "rate plan is inactive")
        return SkippedEntry(None, plan_id, UnavailableReason.INVALID_DERIVATION, "rate plan has no rule")

    @staticmethod
    def _parse_price(raw: PriceInput) -> Optional[Decimal]:
        if raw is None:
            return None
        try:
            price = Decimal(str(raw))
        except (InvalidOperation, ValueError):
            return None
        if not price.is_finite() or price < 0:
            return None
        price = price.quantize(Decimal("0.01"))
        if price > MAX_PRICE:
            return None
        return price


def get_materialization_engine(db: Session) -> MaterializationEngine:
    """Factory function to get an engine instance"""
    return MaterializationEngine(db)
