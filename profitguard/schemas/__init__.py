"""Pydantic schemas for the ProfitGuard API."""

from datetime import datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field

from profitguard.services.return_calc import CONDITION_RESELLABLE, DEFAULT_RETURN_REASON


# ── Orders ───────────────────────────────────────────────
class OrderLineItem(BaseModel):
    id: str
    title: str = ""
    quantity: int = 0
    unit_price: Decimal = Decimal("0")
    unit_cost: Optional[Decimal] = None


class OrderRef(BaseModel):
    id: str
    name: str


class ShopifyOrder(OrderRef):
    line_items: list[OrderLineItem] = Field(default_factory=list)


class ExpandedUnitOut(BaseModel):
    unit_id: str
    title: str
    price: Decimal
    cost: Decimal

    model_config = {"from_attributes": True}


class OrderLookupRequest(BaseModel):
    order_number: str = ""


class OrderLookupResponse(BaseModel):
    order: ShopifyOrder
    units: list[ExpandedUnitOut]


# ── Calculation ──────────────────────────────────────────
class CalculateRequest(BaseModel):
    order: OrderRef
    line_items: list[OrderLineItem] = Field(default_factory=list)
    returned_items: list[str] = Field(default_factory=list)
    # Raw form text; unparsable values count as zero
    return_shipping_cost: Optional[Union[str, float]] = None
    handling_fee: Optional[Union[str, float]] = None
    product_condition: str = CONDITION_RESELLABLE
    return_reason: str = DEFAULT_RETURN_REASON


class CalculationOut(BaseModel):
    total_refund: Decimal
    total_cost_of_goods: Decimal = Decimal("0")
    processing_costs: Decimal
    immediate_cash_outlay: Decimal
    inventory_value_lost: Decimal
    net_impact: Decimal
    return_shipping_cost: Decimal = Decimal("0")
    handling_fee: Decimal = Decimal("0")
    is_resellable: bool
    suggestion: str
    suggestion_tone: str
    return_reason: str = ""
    product_condition: str = ""


class CalculateResponse(BaseModel):
    order: OrderRef
    calculation: CalculationOut


# ── Saved returns ────────────────────────────────────────
class SaveReturnRequest(BaseModel):
    order: OrderRef
    calculation: CalculationOut


class SavedReturnOut(BaseModel):
    id: UUID
    shopify_order_id: str
    shopify_order_name: str
    net_profit_change: Decimal
    total_revenue_lost: Decimal
    inventory_value: Decimal
    is_resellable: bool
    suggestion: str
    return_reason: str
    product_condition: str
    return_shipping_cost: Decimal
    handling_fee: Decimal
    is_archived: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class BulkActionResult(BaseModel):
    affected: int


# ── Dashboard ────────────────────────────────────────────
class ReturnAnalytics(BaseModel):
    total_returns: int
    total_net_profit_loss: Decimal
    most_frequent_reason: str
    resellable_rate: Decimal
    start_date: Optional[str] = None
    end_date: Optional[str] = None
