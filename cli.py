"""ProfitGuard CLI.

Usage:
    python -m cli calc --unit 100:40 --unit 25 --shipping 5 --handling 2 --condition No
    python -m cli order lookup 1001
    python -m cli presets
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from decimal import Decimal

from profitguard.services.date_range import PRESETS, DateRange
from profitguard.services.return_calc import (
    DEFAULT_RETURN_REASON,
    ExpandedUnit,
    RETURN_REASONS,
    ReturnCalculationInput,
    ReturnCalculator,
    expand_line_items,
    is_resellable_condition,
    parse_amount,
)
from profitguard.services.shopify import OrderNotFoundError, ShopifyAPIError, ShopifyOrderClient


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="profitguard",
        description="ProfitGuard return profit/loss CLI",
    )
    sub = parser.add_subparsers(dest="command", help="Top-level command")

    # ── Calc ─────────────────────────────────────────────
    calc = sub.add_parser("calc", help="Estimate the impact of a return")
    calc.add_argument(
        "--unit", action="append", default=[], metavar="PRICE[:COST]",
        help="Returned unit, repeat once per unit",
    )
    calc.add_argument("--shipping", default="0", help="Return shipping cost")
    calc.add_argument("--handling", default="0", help="Internal handling fee")
    calc.add_argument("--condition", choices=["Yes", "No"], default="Yes",
                      help="Can the items be resold as new?")
    calc.add_argument("--reason", default=DEFAULT_RETURN_REASON,
                      help=f"Return reason ({', '.join(RETURN_REASONS)})")
    calc.add_argument("--json", action="store_true", help="Print JSON")

    # ── Order ────────────────────────────────────────────
    order = sub.add_parser("order", help="Shopify orders")
    order_sub = order.add_subparsers(dest="action")
    lookup = order_sub.add_parser("lookup", help="Look up an order by number")
    lookup.add_argument("number", help="Order number, e.g. 1001 or #1001")

    # ── Presets ──────────────────────────────────────────
    sub.add_parser("presets", help="Show the date range behind each preset")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return

    handlers = {
        "calc": handle_calc,
        "order": handle_order,
        "presets": handle_presets,
    }
    handlers[args.command](args)


# ── Command Handlers ────────────────────────────────────

def parse_unit(text: str, index: int) -> ExpandedUnit:
    price, _, cost = text.partition(":")
    return ExpandedUnit(
        unit_id=f"cli-{index}",
        title=f"Unit {index + 1}",
        price=parse_amount(price),
        cost=parse_amount(cost),
    )


def handle_calc(args):
    units = [parse_unit(text, i) for i, text in enumerate(args.unit)]
    result = ReturnCalculator.calculate(ReturnCalculationInput(
        selected_units=units,
        return_shipping_cost=args.shipping,
        handling_fee=args.handling,
        is_resellable=is_resellable_condition(args.condition),
        return_reason=args.reason,
    ))
    shown = result.to_display()

    if args.json:
        print(json.dumps(shown, indent=2, default=str))
        return

    print(f"Return Analysis ({len(units)} unit(s), {args.reason})")
    print(f"  Immediate Cash Outlay:   ${shown['immediate_cash_outlay']}")
    print(f"  True Cost of Return:     ${shown['net_impact']}")
    print(f"  Total Refund Issued:     -${shown['total_refund']}")
    print(f"  Processing Costs:        -${shown['processing_costs']}")
    if result.is_resellable:
        print("  Inventory Value:         Recovered (item can be resold)")
    else:
        print(f"  Cost of Lost Inventory:  -${shown['inventory_value_lost']}")
    print(f"\n[{shown['suggestion_tone']}] {result.suggestion}")


def handle_order(args):
    if args.action != "lookup":
        print("Usage: profitguard order lookup 1001")
        return

    client = ShopifyOrderClient.from_settings()
    try:
        order = asyncio.run(client.find_order_by_name(args.number))
    except (ValueError, OrderNotFoundError, ShopifyAPIError) as e:
        print(str(e))
        sys.exit(1)

    print(f"Order {order.name} ({order.id})")
    for unit in expand_line_items(order.line_items):
        price = unit.price.quantize(Decimal("0.01"))
        cost = unit.cost.quantize(Decimal("0.01"))
        print(f"  {unit.unit_id:<40} {unit.title} - Price: ${price}, Cost: ${cost}")


def handle_presets(args):
    print(f"{'Preset':<10} {'Start':<12} {'End'}")
    print("-" * 34)
    for name in PRESETS:
        rng = DateRange.preset(name)
        print(f"{name:<10} {rng.start.isoformat():<12} {rng.end.isoformat()}")


if __name__ == "__main__":
    main()
