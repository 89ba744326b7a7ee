"""Return calculator, history and archive API routes."""

from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from profitguard.database import get_db
from profitguard.schemas import (
    BulkActionResult,
    CalculateRequest,
    CalculateResponse,
    CalculationOut,
    ExpandedUnitOut,
    OrderLookupRequest,
    OrderLookupResponse,
    SavedReturnOut,
    SaveReturnRequest,
    ShopifyOrder,
)
from profitguard.services.auth import get_current_merchant
from profitguard.services.date_range import DateRange
from profitguard.services.return_calc import (
    ReturnCalculationInput,
    ReturnCalculator,
    expand_line_items,
    is_resellable_condition,
    select_units,
)
from profitguard.services.returns_store import PersistenceError, ReturnStore
from profitguard.services.shopify import (
    OrderNotFoundError,
    ShopifyAPIError,
    ShopifyOrderClient,
    get_order_source,
)

router = APIRouter(
    prefix="/returns",
    tags=["returns"],
    dependencies=[Depends(get_current_merchant)],
)


def get_store(db: AsyncSession = Depends(get_db)) -> ReturnStore:
    return ReturnStore(db)


def _lookup_response(order: ShopifyOrder) -> OrderLookupResponse:
    units = expand_line_items(order.line_items)
    return OrderLookupResponse(
        order=order,
        units=[ExpandedUnitOut.model_validate(u) for u in units],
    )


# --- Order lookup ---

@router.post("/lookup", response_model=OrderLookupResponse)
async def lookup_order(
    body: OrderLookupRequest,
    source: ShopifyOrderClient = Depends(get_order_source),
):
    try:
        order = await source.find_order_by_name(body.order_number)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ShopifyAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _lookup_response(order)


@router.get("/orders", response_model=OrderLookupResponse)
async def preload_order(
    order_id: str = Query(..., min_length=1),
    source: ShopifyOrderClient = Depends(get_order_source),
):
    try:
        order = await source.get_order(order_id)
    except OrderNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ShopifyAPIError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return _lookup_response(order)


# --- Calculation ---

@router.post("/calculate", response_model=CalculateResponse)
async def calculate_return(body: CalculateRequest):
    units = expand_line_items(body.line_items)
    data = ReturnCalculationInput(
        selected_units=select_units(units, body.returned_items),
        return_shipping_cost=body.return_shipping_cost,
        handling_fee=body.handling_fee,
        is_resellable=is_resellable_condition(body.product_condition),
        return_reason=body.return_reason,
    )
    result = ReturnCalculator.calculate(data)
    return CalculateResponse(
        order=body.order,
        calculation=CalculationOut(**result.to_display()),
    )


@router.post("/", response_model=SavedReturnOut, status_code=201)
async def save_return(body: SaveReturnRequest, store: ReturnStore = Depends(get_store)):
    try:
        return await store.save(body.order.id, body.order.name, body.calculation)
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


# --- History & archive ---

@router.get("/history", response_model=list[SavedReturnOut])
async def list_history(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    store: ReturnStore = Depends(get_store),
):
    return await store.history(DateRange(start_date, end_date))


@router.post("/history/archive", response_model=BulkActionResult)
async def archive_history(store: ReturnStore = Depends(get_store)):
    try:
        return BulkActionResult(affected=await store.archive_all())
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/archive", response_model=list[SavedReturnOut])
async def list_archive(store: ReturnStore = Depends(get_store)):
    return await store.archived()


@router.delete("/archive", response_model=BulkActionResult)
async def delete_archive(store: ReturnStore = Depends(get_store)):
    try:
        return BulkActionResult(affected=await store.delete_archived())
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=str(e))
