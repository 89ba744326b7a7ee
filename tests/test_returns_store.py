"""Saved return store tests."""

import pytest
from datetime import date, datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError

from profitguard.models import SavedReturn
from profitguard.services.date_range import DateRange
from profitguard.services.return_calc import (
    ExpandedUnit,
    ReturnCalculationInput,
    ReturnCalculator,
)
from profitguard.services.returns_store import PersistenceError, ReturnStore


def _result(price="100", cost="40", resellable=True, reason="Wrong Size"):
    unit = ExpandedUnit(unit_id="li-0", title="Item", price=Decimal(price), cost=Decimal(cost))
    return ReturnCalculator.calculate(ReturnCalculationInput(
        selected_units=[unit],
        return_shipping_cost="5",
        handling_fee="2",
        is_resellable=resellable,
        return_reason=reason,
    ))


async def _save(store, name="#1001", **kwargs):
    return await store.save(f"gid://shopify/Order/{name.strip('#')}", name, _result(**kwargs))


async def _backdate(db, record, when):
    record.created_at = when
    await db.commit()


class TestSave:
    @pytest.mark.asyncio
    async def test_save_record(self, db):
        store = ReturnStore(db)
        rec = await _save(store, resellable=False)
        assert rec.id is not None
        assert rec.shopify_order_name == "#1001"
        assert rec.net_profit_change == Decimal("-47.00")
        assert rec.total_revenue_lost == Decimal("100.00")
        assert rec.inventory_value == Decimal("40.00")
        assert rec.product_condition == "Cannot be resold"
        assert rec.is_archived is False
        assert rec.created_at is not None

    @pytest.mark.asyncio
    async def test_save_failure_raises_persistence_error(self, db):
        store = ReturnStore(db)
        db.commit = AsyncMock(side_effect=OperationalError("INSERT", {}, Exception("disk full")))
        with pytest.raises(PersistenceError, match="error saving the return"):
            await _save(store)


class TestHistoryAndArchive:
    @pytest.mark.asyncio
    async def test_history_newest_first(self, db):
        store = ReturnStore(db)
        old = await _save(store, name="#1001")
        new = await _save(store, name="#1002")
        await _backdate(db, old, datetime(2026, 1, 1, tzinfo=timezone.utc))
        await _backdate(db, new, datetime(2026, 2, 1, tzinfo=timezone.utc))
        rows = await store.history()
        assert [r.shopify_order_name for r in rows] == ["#1002", "#1001"]

    @pytest.mark.asyncio
    async def test_history_date_range_inclusive_end(self, db):
        store = ReturnStore(db)
        inside = await _save(store, name="#1001")
        outside = await _save(store, name="#1002")
        await _backdate(db, inside, datetime(2026, 3, 31, 23, 30, tzinfo=timezone.utc))
        await _backdate(db, outside, datetime(2026, 4, 1, 0, 30, tzinfo=timezone.utc))
        rows = await store.history(DateRange(date(2026, 3, 1), date(2026, 3, 31)))
        assert [r.shopify_order_name for r in rows] == ["#1001"]

    @pytest.mark.asyncio
    async def test_archive_all(self, db):
        store = ReturnStore(db)
        await _save(store, name="#1001")
        await _save(store, name="#1002")
        assert await store.archive_all() == 2
        assert await store.history() == []
        assert len(await store.archived()) == 2
        # Already archived rows are not touched again
        assert await store.archive_all() == 0

    @pytest.mark.asyncio
    async def test_delete_archived_only(self, db):
        store = ReturnStore(db)
        await _save(store, name="#1001")
        await store.archive_all()
        await _save(store, name="#1002")
        assert await store.delete_archived() == 1
        assert await store.archived() == []
        assert [r.shopify_order_name for r in await store.history()] == ["#1002"]

    @pytest.mark.asyncio
    async def test_archive_failure_rolls_back(self, db):
        store = ReturnStore(db)
        await _save(store, name="#1001")
        db.commit = AsyncMock(side_effect=OperationalError("UPDATE", {}, Exception("database is locked")))
        with pytest.raises(PersistenceError, match="error updating the return archive"):
            await store.archive_all()
        del db.commit
        assert [r.shopify_order_name for r in await store.history()] == ["#1001"]
        assert await store.archived() == []

    @pytest.mark.asyncio
    async def test_delete_archived_failure(self, db):
        store = ReturnStore(db)
        db.execute = AsyncMock(side_effect=OperationalError("DELETE", {}, Exception("disk I/O error")))
        with pytest.raises(PersistenceError, match="error updating the return archive"):
            await store.delete_archived()


class TestAggregates:
    @pytest.mark.asyncio
    async def test_empty_analytics(self, db):
        stats = await ReturnStore(db).analytics()
        assert stats.total_returns == 0
        assert stats.total_net_profit_loss == Decimal("0.00")
        assert stats.most_frequent_reason == "N/A"
        assert stats.resellable_rate == Decimal("0")

    @pytest.mark.asyncio
    async def test_analytics(self, db):
        store = ReturnStore(db)
        await _save(store, resellable=True, reason="Damaged")
        await _save(store, resellable=False, reason="Damaged")
        await _save(store, resellable=False, reason="Other")
        stats = await store.analytics()
        assert stats.total_returns == 3
        assert stats.total_net_profit_loss == Decimal("-101.00")  # -7 -47 -47
        assert stats.most_frequent_reason == "Damaged"
        assert stats.resellable_rate == Decimal("33.3")

    @pytest.mark.asyncio
    async def test_analytics_includes_archived(self, db):
        store = ReturnStore(db)
        await _save(store)
        await store.archive_all()
        assert (await store.analytics()).total_returns == 1

    @pytest.mark.asyncio
    async def test_most_frequent_reason_tie_is_lexical(self, db):
        store = ReturnStore(db)
        await _save(store, reason="Wrong Size")
        await _save(store, reason="Damaged")
        assert await store.most_frequent_reason() == "Damaged"

    @pytest.mark.asyncio
    async def test_counts_within_range(self, db):
        store = ReturnStore(db)
        a = await _save(store, resellable=True)
        b = await _save(store, resellable=False)
        await _backdate(db, a, datetime(2026, 6, 10, tzinfo=timezone.utc))
        await _backdate(db, b, datetime(2026, 8, 10, tzinfo=timezone.utc))
        june = DateRange(date(2026, 6, 1), date(2026, 6, 30))
        assert await store.count(june) == 1
        assert await store.count(june, is_resellable=True) == 1
        assert await store.sum_net_impact(june) == Decimal("-7")
        stats = await store.analytics(june)
        assert stats.start_date == "2026-06-01"
        assert stats.resellable_rate == Decimal("100.0")
