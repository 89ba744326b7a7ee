"""Saved return history: persistence and aggregate queries."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from profitguard.models import SavedReturn
from profitguard.schemas import CalculationOut, ReturnAnalytics
from profitguard.services.date_range import DateRange
from profitguard.services.return_calc import ReturnCalculationResult, condition_label, to_money

logger = logging.getLogger(__name__)


class PersistenceError(RuntimeError):
    """The database rejected a write."""


class ReturnStore:
    """Saved returns backed by an injected async session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    @staticmethod
    def _in_range(stmt, date_range: Optional[DateRange]):
        bounds = date_range.bounds() if date_range else None
        if bounds:
            lower, upper = bounds
            stmt = stmt.where(SavedReturn.created_at >= lower, SavedReturn.created_at < upper)
        return stmt

    async def save(
        self,
        order_id: str,
        order_name: str,
        result: ReturnCalculationResult | CalculationOut,
    ) -> SavedReturn:
        """Append one calculation to the history."""
        if isinstance(result, ReturnCalculationResult):
            result = CalculationOut(**result.to_display())

        record = SavedReturn(
            shopify_order_id=order_id,
            shopify_order_name=order_name,
            net_profit_change=result.net_impact,
            total_revenue_lost=result.total_refund,
            inventory_value=result.total_cost_of_goods,
            is_resellable=result.is_resellable,
            suggestion=result.suggestion,
            return_reason=result.return_reason,
            product_condition=condition_label(result.is_resellable),
            return_shipping_cost=result.return_shipping_cost,
            handling_fee=result.handling_fee,
        )
        try:
            self.db.add(record)
            await self.db.commit()
            await self.db.refresh(record)
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Saving return for order {order_name} failed: {e}")
            raise PersistenceError("There was an error saving the return to the database.") from e

        logger.info(f"Saved return for order {order_name}: net impact {result.net_impact}")
        return record

    async def history(self, date_range: Optional[DateRange] = None) -> list[SavedReturn]:
        stmt = select(SavedReturn).where(SavedReturn.is_archived.is_(False))
        stmt = self._in_range(stmt, date_range).order_by(SavedReturn.created_at.desc())
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def archived(self) -> list[SavedReturn]:
        stmt = (
            select(SavedReturn)
            .where(SavedReturn.is_archived.is_(True))
            .order_by(SavedReturn.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count(
        self,
        date_range: Optional[DateRange] = None,
        is_resellable: Optional[bool] = None,
    ) -> int:
        stmt = self._in_range(select(func.count(SavedReturn.id)), date_range)
        if is_resellable is not None:
            stmt = stmt.where(SavedReturn.is_resellable.is_(is_resellable))
        return (await self.db.execute(stmt)).scalar() or 0

    async def sum_net_impact(self, date_range: Optional[DateRange] = None) -> Decimal:
        stmt = self._in_range(
            select(func.coalesce(func.sum(SavedReturn.net_profit_change), 0)),
            date_range,
        )
        total = (await self.db.execute(stmt)).scalar() or 0
        return Decimal(str(total))

    async def most_frequent_reason(self, date_range: Optional[DateRange] = None) -> Optional[str]:
        """Most common return reason; ties go to the alphabetically first reason."""
        n = func.count(SavedReturn.id)
        stmt = self._in_range(select(SavedReturn.return_reason, n), date_range)
        stmt = stmt.group_by(SavedReturn.return_reason).order_by(n.desc(), SavedReturn.return_reason.asc()).limit(1)
        row = (await self.db.execute(stmt)).first()
        return row[0] if row else None

    async def analytics(self, date_range: Optional[DateRange] = None) -> ReturnAnalytics:
        """At-a-glance figures over every saved return in the range."""
        total = await self.count(date_range)
        resellable = await self.count(date_range, is_resellable=True)
        reason = await self.most_frequent_reason(date_range) if total else None

        rate = Decimal(resellable) / Decimal(total) * 100 if total else Decimal("0")
        bounded = date_range is not None and date_range.is_bounded
        return ReturnAnalytics(
            total_returns=total,
            total_net_profit_loss=to_money(await self.sum_net_impact(date_range)),
            most_frequent_reason=reason or "N/A",
            resellable_rate=rate.quantize(Decimal("0.1")),
            start_date=date_range.start.isoformat() if bounded else None,
            end_date=date_range.end.isoformat() if bounded else None,
        )

    async def _bulk_write(self, stmt, action: str) -> int:
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"{action} saved returns failed: {e}")
            raise PersistenceError("There was an error updating the return archive.") from e
        return result.rowcount

    async def archive_all(self) -> int:
        """Move every active record into the archive."""
        stmt = update(SavedReturn).where(SavedReturn.is_archived.is_(False)).values(is_archived=True)
        affected = await self._bulk_write(stmt, "Archiving")
        logger.info(f"Archived {affected} saved return(s)")
        return affected

    async def delete_archived(self) -> int:
        """Permanently delete everything in the archive."""
        stmt = delete(SavedReturn).where(SavedReturn.is_archived.is_(True))
        affected = await self._bulk_write(stmt, "Deleting archived")
        logger.info(f"Deleted {affected} archived return(s)")
        return affected
