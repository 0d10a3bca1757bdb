"""
Tests for the overwrite path (partner saves)

Tests cover:
- STD saves ignore the write window and overwrite
- Re-derive overwrites derived rows for the requested dates only
- save_and_apply re-derives exactly the saved dates
- Skips: missing STD, invalid derivation, invalid price, foreign plans
"""

from datetime import date
from decimal import Decimal

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from extranet.models import RatePlan, RoomPrice
from extranet.services.materialization_engine import date_range, PriceIntent
from extranet.services.price_store import PriceStore
from extranet.services.pricing_errors import UnavailableReason

TODAY = date(2025, 6, 1)


def _price(db, plan_id, day):
    row = PriceStore(db).get_price(7, plan_id, day)
    return row.price if row else None


class TestSavePrices:
    """Partner STD and explicit plan saves"""

    def test_std_save_ignores_write_window(self, db, hotel, engine):
        far_past, far_future = date(2020, 1, 1), date(2030, 1, 1)

        report = engine.save_prices(hotel.property_id, hotel.room_type_id,
                                    [(far_past, "80"), (far_future, "95.5")])

        assert len(report.written) == 2
        assert report.skipped == []
        assert report.intent == PriceIntent.OVERWRITE
        assert _price(db, hotel.std, far_past) == Decimal("80.00")
        assert _price(db, hotel.std, far_future) == Decimal("95.50")

    def test_last_writer_wins(self, db, hotel, engine):
        day = date(2025, 6, 10)
        engine.save_prices(hotel.property_id, hotel.room_type_id, [(day, "100")])
        engine.save_prices(hotel.property_id, hotel.room_type_id, [(day, "120")])

        assert _price(db, hotel.std, day) == Decimal("120.00")
        assert db.query(RoomPrice).count() == 1

    def test_zero_price_is_allowed(self, db, hotel, engine):
        day = date(2025, 6, 10)
        report = engine.save_prices(hotel.property_id, hotel.room_type_id, [(day, 0)])
        assert len(report.written) == 1
        assert _price(db, hotel.std, day) == Decimal("0.00")

    def test_invalid_prices_are_skipped(self, db, hotel, engine):
        good, negative, junk = date(2025, 6, 10), date(2025, 6, 11), date(2025, 6, 12)

        report = engine.save_prices(hotel.property_id, hotel.room_type_id,
                                    [(good, "100"), (negative, "-1"), (junk, "abc")])

        assert [r.date for r in report.written] == [good]
        assert {s.date for s in report.skipped} == {negative, junk}
        assert all(s.reason == UnavailableReason.INVALID_PRICE for s in report.skipped)
        assert _price(db, hotel.std, negative) is None

    def test_price_too_large_for_column_is_skipped(self, db, hotel, engine):
        day = date(2025, 6, 10)

        report = engine.save_prices(hotel.property_id, hotel.room_type_id, [(day, "100000000")])

        assert report.written == []
        assert [(s.date, s.reason) for s in report.skipped] == [(day, UnavailableReason.INVALID_PRICE)]
        assert _price(db, hotel.std, day) is None

    def test_explicit_derived_override(self, db, hotel, set_std, engine):
        """A partner may set a derived plan's price directly"""
        day = date(2025, 6, 10)
        set_std(day, "100.00")
        engine.fill(hotel.property_id, [(hotel.room_type_id, hotel.bb)], day, day, today=TODAY)

        engine.save_prices(hotel.property_id, hotel.room_type_id, [(day, "105")], rate_plan_id=hotel.bb)
        result = engine.fill(hotel.property_id, [(hotel.room_type_id, hotel.bb)], day, day, today=TODAY)

        assert result.cells[0].price == Decimal("105.00")

    def test_plan_of_other_room_type_is_rejected(self, db, hotel, engine):
        day = date(2025, 6, 10)
        report = engine.save_prices(hotel.property_id, 8, [(day, "100")], rate_plan_id=hotel.bb)

        assert report.written == []
        assert report.skipped[0].reason == UnavailableReason.UNKNOWN_RATE_PLAN
        assert db.query(RoomPrice).count() == 0


class TestRederive:
    """Explicit re-derive over a date range"""

    def test_overwrites_only_inside_range(self, db, hotel, set_std, engine):
        """Rule change then re-derive 1..5: the 10th keeps its old price"""
        days = date_range(date(2025, 6, 1), date(2025, 6, 10))
        set_std({d: "100.00" for d in days})
        engine.fill(hotel.property_id, [(hotel.room_type_id, hotel.bb)], days[0], days[-1], today=TODAY)

        plan = db.query(RatePlan).filter(RatePlan.id == hotel.bb).one()
        plan.value = Decimal("20")
        db.commit()

        report = engine.rederive(hotel.property_id, hotel.room_type_id,
                                 date(2025, 6, 1), date(2025, 6, 5))

        for day in date_range(date(2025, 6, 1), date(2025, 6, 5)):
            assert _price(db, hotel.bb, day) == Decimal("120.00")
        assert _price(db, hotel.bb, date(2025, 6, 10)) == Decimal("110.00")
        # BB and NRF for five nights
        assert len(report.written) == 10

    def test_skips_inactive_plans(self, db, hotel, set_std, engine):
        day = date(2025, 6, 10)
        set_std(day, "100.00")

        engine.rederive(hotel.property_id, hotel.room_type_id, day, day)

        assert _price(db, hotel.promo, day) is None
        assert _price(db, hotel.nrf, day) == Decimal("90.00")

    def test_missing_std_is_reported(self, db, hotel, set_std, engine):
        have, missing = date(2025, 6, 10), date(2025, 6, 11)
        set_std(have, "100.00")

        report = engine.rederive(hotel.property_id, hotel.room_type_id, have, missing)

        skipped = [s for s in report.skipped if s.reason == UnavailableReason.MISSING_BASE_PRICE]
        assert [s.date for s in skipped] == [missing]
        assert _price(db, hotel.bb, missing) is None

    def test_invalid_derivation_is_reported(self, db, hotel, set_std, engine):
        day = date(2025, 6, 10)
        set_std(day, "50.00")
        plan = db.query(RatePlan).filter(RatePlan.id == hotel.bb).one()
        plan.value = Decimal("-60")
        db.commit()

        report = engine.rederive(hotel.property_id, hotel.room_type_id, day, day)

        assert [(s.rate_plan_id, s.reason) for s in report.skipped] == [
            (hotel.bb, UnavailableReason.INVALID_DERIVATION)
        ]
        assert _price(db, hotel.bb, day) is None
        assert _price(db, hotel.nrf, day) == Decimal("45.00")

    def test_restricted_to_requested_plans(self, db, hotel, set_std, engine):
        day = date(2025, 6, 10)
        set_std(day, "100.00")

        report = engine.rederive(hotel.property_id, hotel.room_type_id, day, day,
                                 rate_plan_ids=[hotel.nrf, hotel.promo, hotel.std])

        assert [r.rate_plan_id for r in report.written] == [hotel.nrf]
        reasons = {s.rate_plan_id: s.reason for s in report.skipped}
        assert reasons[hotel.promo] == UnavailableReason.INACTIVE_RATE_PLAN
        assert reasons[hotel.std] == UnavailableReason.UNKNOWN_RATE_PLAN
        assert _price(db, hotel.bb, day) is None


class TestSaveAndApply:

    def test_rederives_saved_dates_only(self, db, hotel, set_std, engine):
        saved, untouched = date(2025, 6, 10), date(2025, 6, 11)
        set_std({saved: "100.00", untouched: "100.00"})
        engine.fill(hotel.property_id, [(hotel.room_type_id, hotel.bb)], saved, untouched, today=TODAY)

        report = engine.save_and_apply(hotel.property_id, hotel.room_type_id, [(saved, "200")])

        assert _price(db, hotel.std, saved) == Decimal("200.00")
        assert _price(db, hotel.bb, saved) == Decimal("210.00")
        assert _price(db, hotel.nrf, saved) == Decimal("180.00")
        assert _price(db, hotel.bb, untouched) == Decimal("110.00")
        # STD + BB + NRF
        assert len(report.written) == 3

    def test_rejected_price_keeps_derived_rows(self, db, hotel, set_std, engine):
        """A rejected STD leaves the night alone: no re-derive, no MISSING_BASE_PRICE"""
        good, bad = date(2025, 6, 10), date(2025, 6, 11)
        set_std(bad, "100.00")
        engine.fill(hotel.property_id, [(hotel.room_type_id, hotel.bb)], bad, bad, today=TODAY)
        set_std(bad, "300.00")

        report = engine.save_and_apply(hotel.property_id, hotel.room_type_id, [(good, "200"), (bad, "-1")])

        assert [(s.date, s.reason) for s in report.skipped] == [(bad, UnavailableReason.INVALID_PRICE)]
        assert _price(db, hotel.std, bad) == Decimal("300.00")
        assert _price(db, hotel.bb, bad) == Decimal("110.00")
        assert _price(db, hotel.nrf, bad) is None
        assert _price(db, hotel.bb, good) == Decimal("210.00")

    def test_applies_outside_write_window(self, db, hotel, engine):
        day = date(2030, 1, 1)
        engine.save_and_apply(hotel.property_id, hotel.room_type_id, [(day, "100")])

        assert _price(db, hotel.bb, day) == Decimal("110.00")
