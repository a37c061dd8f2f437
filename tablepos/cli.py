from __future__ import annotations

import argparse
import json
import re
from typing import Any

from tablepos.core.logging import configure_logging
from tablepos.domain.orders import order_amount_due
from tablepos.domain.pricing import LineInput, OrderTotals, TaxMode, aggregate, to_wire
from tablepos.store import OrderStoreError, build_order_store

_LINE_SPEC = re.compile(r"^(?P<price>\d+(?:\.\d{1,2})?)x(?P<qty>\d+)(?:@(?P<rate>\d+(?:\.\d+)?))?$")


def parse_line_spec(text: str) -> LineInput:
    """Parse PRICExQTY[@RATE], e.g. 90000x1@10."""
    match = _LINE_SPEC.match(text.strip())
    if match is None:
        raise argparse.ArgumentTypeError(f"invalid line {text!r}; expected PRICExQTY[@RATE]")
    quantity = int(match.group("qty"))
    if quantity < 1:
        raise argparse.ArgumentTypeError(f"invalid line {text!r}; quantity must be at least 1")
    return LineInput.build(match.group("price"), quantity, match.group("rate"), ref=text.strip())


def totals_to_dict(totals: OrderTotals) -> dict[str, Any]:
    return {
        "mode": totals.mode.value,
        **totals.wire_fields(),
        "amountDue": to_wire(totals.amount_due),
        "lines": [
            {
                "ref": item.line.ref,
                "subtotal": to_wire(item.subtotal),
                "tax": to_wire(item.tax),
                "discount": to_wire(item.discount),
                "existing": index < totals.existing_count,
            }
            for index, item in enumerate(totals.lines)
        ],
    }


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Table POS pricing CLI")
    top = parser.add_subparsers(dest="command", required=True)

    quote = top.add_parser("quote", help="Price an ad-hoc set of lines")
    quote.add_argument("--mode", choices=[mode.value for mode in TaxMode], default=TaxMode.EXCLUDES_TAX.value)
    quote.add_argument("--discount", default="0", help="Order discount in whole currency units")
    quote.add_argument("--existing", type=parse_line_spec, action="append", default=[], help="Persisted line")
    quote.add_argument("--line", type=parse_line_spec, action="append", default=[], help="Cart line")

    order = top.add_parser("order", help="Order store operations")
    order_sub = order.add_subparsers(dest="order_command", required=True)
    totals = order_sub.add_parser("totals", help="Price a stored order with the current store settings")
    totals.add_argument("order_id", type=int)
    totals.add_argument("--discount", default=None, help="Override the stored order discount")

    return parser


def _run_quote(args: argparse.Namespace) -> int:
    totals = aggregate(args.existing, args.line, TaxMode(args.mode), args.discount)
    print(json.dumps(totals_to_dict(totals), ensure_ascii=False, indent=2))
    return 0


def _run_order_totals(args: argparse.Namespace) -> int:
    store = build_order_store()
    try:
        order = next((row for row in store.get_orders() if row.id == args.order_id), None)
        if order is None:
            print(json.dumps({"error": f"order {args.order_id} not found"}))
            return 1
        products = {product.id: product for product in store.get_products()}
        lines = [row.to_line_input(products) for row in store.get_order_lines(order.id)]
        mode = store.get_store_settings().tax_mode
    except OrderStoreError as exc:
        print(json.dumps({"error": exc.user_message("order store request failed")}))
        return 1

    discount = args.discount if args.discount is not None else order.discount
    payload = totals_to_dict(aggregate(lines, [], mode, discount))
    payload["orderId"] = order.id
    payload["stored"] = {
        "subtotal": to_wire(order.subtotal),
        "tax": to_wire(order.tax),
        "discount": to_wire(order.discount),
        "total": to_wire(order.total),
        "amountDue": to_wire(order_amount_due(order)),
    }
    print(json.dumps(payload, ensure_ascii=False, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    configure_logging()
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command == "quote":
        return _run_quote(args)
    if args.command == "order" and args.order_command == "totals":
        return _run_order_totals(args)

    parser.error("unsupported command")
    return 2


if __name__ == "__main__":
    raise SystemExit(main())
