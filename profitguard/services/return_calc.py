"""Return profit/loss calculation.

Expands an order's line items into physical units, resolves the merchant's
selection of returned units and estimates what accepting the return costs.
Everything here is pure: no I/O and no shared state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

CENT = Decimal("0.01")
ZERO = Decimal("0")

# Amounts at or above 10**15 cannot be summed and shown in cents within the
# default 28-digit decimal context
MAX_AMOUNT_DIGITS = 15

# Leading number, the way a browser's parseFloat reads form input
_NUMBER_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")

RESELLABLE_SUGGESTION = (
    "Although your immediate cash outlay is significant, the item(s) can be resold. "
    "This limits the true financial damage to the cost of processing the return. "
    "Accepting the return is likely the best path forward."
)
LOSS_SUGGESTION = (
    "This return represents a true loss, as you are refunding the customer AND losing "
    "the value of the unsellable goods. To mitigate this, consider offering store credit "
    "or a partial refund without requiring a return."
)

RETURN_REASONS = ("Wrong Size", "Damaged", "Did not Like", "Other")
DEFAULT_RETURN_REASON = RETURN_REASONS[0]

CONDITION_RESELLABLE = "Yes"
CONDITION_LABELS = {
    True: "Can be resold as new",
    False: "Cannot be resold",
}


class SuggestionTone(str, Enum):
    INFO = "info"
    CRITICAL = "critical"


def parse_amount(value: Any) -> Decimal:
    """Parse a monetary input, falling back to zero.

    Never raises. Text is read up to the first character that cannot belong
    to a number, so ``"12abc"`` is 12 and ``"abc"`` is 0. Non-finite values
    and amounts of 10**15 or more become 0. Negative amounts are kept as
    given.
    """
    if value is None or isinstance(value, bool):
        return ZERO
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(str(value))
    else:
        match = _NUMBER_PREFIX.match(str(value))
        if not match:
            return ZERO
        try:
            amount = Decimal(match.group(1))
        except InvalidOperation:
            return ZERO
    if not amount.is_finite() or amount.adjusted() >= MAX_AMOUNT_DIGITS:
        return ZERO
    return amount


def to_money(value: Decimal) -> Decimal:
    """Round to cents for display. Negative zero is normalised to 0.00."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP) + 0


def is_resellable_condition(product_condition: Optional[str]) -> bool:
    return product_condition == CONDITION_RESELLABLE


def condition_label(is_resellable: bool) -> str:
    return CONDITION_LABELS[bool(is_resellable)]


# ── Line items → units ──────────────────────────────────

@dataclass(frozen=True)
class OrderLineItem:
    id: str
    title: str
    quantity: int
    unit_price: Decimal = ZERO
    unit_cost: Optional[Decimal] = None


@dataclass(frozen=True)
class ExpandedUnit:
    """One physical unit of a line item."""
    unit_id: str
    title: str
    price: Decimal
    cost: Decimal = ZERO


def expand_line_items(line_items: Iterable[OrderLineItem]) -> list[ExpandedUnit]:
    """Produce one ``ExpandedUnit`` per unit of quantity, ids ``{item}-{index}``."""
    units = []
    for item in line_items:
        price = parse_amount(item.unit_price)
        cost = parse_amount(item.unit_cost)
        for index in range(max(0, item.quantity)):
            units.append(ExpandedUnit(
                unit_id=f"{item.id}-{index}",
                title=item.title,
                price=price,
                cost=cost,
            ))
    return units


# ── Selection ───────────────────────────────────────────

def toggle(selection: frozenset[str], unit_id: str) -> frozenset[str]:
    """Remove ``unit_id`` if selected, add it otherwise."""
    if unit_id in selection:
        return selection - {unit_id}
    return selection | {unit_id}


def reset() -> frozenset[str]:
    return frozenset()


def select_units(units: Sequence[ExpandedUnit], unit_ids: Iterable[str]) -> list[ExpandedUnit]:
    """Resolve selected ids against the order's units. Unknown ids are ignored."""
    wanted = frozenset(unit_ids)
    return [u for u in units if u.unit_id in wanted]


# ── Calculation ─────────────────────────────────────────

@dataclass
class ReturnCalculationInput:
    selected_units: Sequence[ExpandedUnit] = field(default_factory=list)
    return_shipping_cost: Any = ZERO
    handling_fee: Any = ZERO
    is_resellable: bool = False
    return_reason: str = DEFAULT_RETURN_REASON


@dataclass(frozen=True)
class ReturnCalculationResult:
    """Full-precision outcome of a return calculation."""
    total_refund: Decimal
    total_cost_of_goods: Decimal
    processing_costs: Decimal
    immediate_cash_outlay: Decimal
    inventory_value_lost: Decimal
    net_impact: Decimal
    is_resellable: bool
    suggestion: str
    suggestion_tone: SuggestionTone
    return_shipping_cost: Decimal = ZERO
    handling_fee: Decimal = ZERO
    return_reason: str = ""

    @property
    def product_condition(self) -> str:
        return condition_label(self.is_resellable)

    def to_display(self) -> dict:
        """Values rounded to cents, as shown to the merchant."""
        return {
            "total_refund": to_money(self.total_refund),
            "total_cost_of_goods": to_money(self.total_cost_of_goods),
            "processing_costs": to_money(self.processing_costs),
            "immediate_cash_outlay": to_money(self.immediate_cash_outlay),
            "inventory_value_lost": to_money(self.inventory_value_lost),
            "net_impact": to_money(self.net_impact),
            "return_shipping_cost": to_money(self.return_shipping_cost),
            "handling_fee": to_money(self.handling_fee),
            "is_resellable": self.is_resellable,
            "suggestion": self.suggestion,
            "suggestion_tone": self.suggestion_tone.value,
            "return_reason": self.return_reason,
            "product_condition": self.product_condition,
        }


def recommend(is_resellable: bool) -> tuple[str, SuggestionTone]:
    if is_resellable:
        return RESELLABLE_SUGGESTION, SuggestionTone.INFO
    return LOSS_SUGGESTION, SuggestionTone.CRITICAL


class ReturnCalculator:
    """Estimates the financial impact of accepting a return."""

    @staticmethod
    def calculate(data: ReturnCalculationInput) -> ReturnCalculationResult:
        shipping = parse_amount(data.return_shipping_cost)
        handling = parse_amount(data.handling_fee)

        total_refund = sum((parse_amount(u.price) for u in data.selected_units), ZERO)
        total_cogs = sum((parse_amount(u.cost) for u in data.selected_units), ZERO)

        processing_costs = shipping + handling
        immediate_cash_outlay = -(total_refund + processing_costs)

        # Resold stock keeps its value; otherwise the goods are written off
        inventory_value_lost = ZERO if data.is_resellable else total_cogs
        net_impact = -(processing_costs + inventory_value_lost)

        suggestion, tone = recommend(data.is_resellable)

        return ReturnCalculationResult(
            total_refund=total_refund,
            total_cost_of_goods=total_cogs,
            processing_costs=processing_costs,
            immediate_cash_outlay=immediate_cash_outlay,
            inventory_value_lost=inventory_value_lost,
            net_impact=net_impact,
            is_resellable=bool(data.is_resellable),
            suggestion=suggestion,
            suggestion_tone=tone,
            return_shipping_cost=shipping,
            handling_fee=handling,
            return_reason=data.return_reason or "",
        )
