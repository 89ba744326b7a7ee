"""At-a-glance return analytics API."""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from profitguard.database import get_db
from profitguard.schemas import ReturnAnalytics
from profitguard.services.auth import get_current_merchant
from profitguard.services.date_range import DateRange
from profitguard.services.returns_store import ReturnStore

router = APIRouter(
    prefix="/dashboard",
    tags=["dashboard"],
    dependencies=[Depends(get_current_merchant)],
)


@router.get("/stats", response_model=ReturnAnalytics)
async def get_stats(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    preset: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    if preset:
        try:
            date_range = DateRange.preset(preset)
        except ValueError as e:
            raise HTTPException(400, str(e))
    else:
        date_range = DateRange(start_date, end_date)
    return await ReturnStore(db).analytics(date_range)
