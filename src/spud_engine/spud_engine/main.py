"""CLI entry point for quoting and confirming Spud orders.

Usage:
    python -m spud_engine.main quote --cart cart.json --order-type pickup
    python -m spud_engine.main confirm --user alice@example.com --cart cart.json \\
        --order-type delivery --address "1 Tater Ln" --promo spud10 --redeem 200
    python -m spud_engine.main balance --user alice@example.com
    python -m spud_engine.main leaderboard --limit 5

The cart file is a JSON list of lines:
    [{"item_id": 1, "quantity": 2,
      "customizations": [{"title": "Dipping Sauce", "option": "Spicy Aioli"}]},
     {"daily_special": true, "quantity": 1}]
"""

import argparse
import json
import shelve
import sys
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from .cart import Cart
from .checkout import CheckoutRequest, CheckoutService
from .config import get_settings
from .enums import OrderType
from .errors import SpudEngineError, UnknownMenuItemError
from .logging import setup_logging
from .loyalty import leaderboard
from .models import CustomizationOption, Menu, OrderQuote, SelectedCustomization
from .money import format_amount
from .promos import PromoRegistry
from .storage import KeyValueStorage

GUEST_USER = "guest"


def load_cart(path: str | Path, menu: Menu) -> Cart:
    """Build a Cart from a JSON cart file."""
    with open(path, "r") as f:
        entries = json.load(f)

    cart = Cart()
    for entry in entries:
        quantity = entry.get("quantity", 1)
        if entry.get("daily_special"):
            if menu.daily_special is None:
                raise SpudEngineError("The menu has no daily special today")
            cart.add_daily_special(menu, menu.daily_special, quantity)
            continue

        item = menu.get_item(entry["item_id"])
        if item is None:
            raise UnknownMenuItemError(entry["item_id"])
        customizations = [
            SelectedCustomization(title=c["title"], option=CustomizationOption(name=c["option"]))
            for c in entry.get("customizations", [])
        ]
        cart.add(item, quantity, customizations)
    return cart


def _print_quote(cart: Cart, order_quote: OrderQuote) -> None:
    for line in cart.lines:
        extras = ", ".join(c.option.name for c in line.customizations)
        label = f"{line.quantity}x {line.name}" + (f" [{extras}]" if extras else "")
        print(f"  {label:<50} {format_amount(line.line_total):>10}")
    print("-" * 62)
    print(f"  {'Subtotal':<50} {format_amount(order_quote.subtotal):>10}")
    print(f"  {'Tax':<50} {format_amount(order_quote.tax):>10}")
    if order_quote.delivery_fee:
        print(f"  {'Delivery fee':<50} {format_amount(order_quote.delivery_fee):>10}")
    if order_quote.points_discount:
        label = f"Points redeemed ({order_quote.points_redeemed})"
        print(f"  {label:<50} -{format_amount(order_quote.points_discount):>9}")
    if order_quote.promo_discount:
        label = f"Promo code '{order_quote.promo_code}'"
        print(f"  {label:<50} -{format_amount(order_quote.promo_discount):>9}")
    print(f"  {'Total':<50} {format_amount(order_quote.final_total):>10}")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Spud order pricing and loyalty engine")
    parser.add_argument("--menu", help="Menu JSON path (defaults to settings)")
    parser.add_argument("--store", help="Shelve file for orders and loyalty state")
    sub = parser.add_subparsers(dest="command", required=True)

    for name in ("quote", "confirm"):
        p = sub.add_parser(name)
        p.add_argument("--cart", required=True, help="Cart JSON file")
        p.add_argument(
            "--order-type",
            choices=[t.value for t in OrderType],
            default=OrderType.PICKUP.value,
        )
        p.add_argument("--promo", default=None)
        p.add_argument("--redeem", type=int, default=0, help="Spud Points to redeem")
        p.add_argument("--user", default=GUEST_USER)
        p.add_argument("--address", default=None)
        p.add_argument("--pickup-time", default=None)

    p = sub.add_parser("balance")
    p.add_argument("--user", required=True)

    p = sub.add_parser("leaderboard")
    p.add_argument("--limit", type=int, default=10)
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the CLI and return a process exit code."""
    settings = get_settings()
    setup_logging(level=settings.log_level)
    args = _build_parser().parse_args(argv)

    menu_path = args.menu or settings.menu_json_path
    menu = Menu.from_json_file(menu_path)
    promos = PromoRegistry.from_json_file(menu_path)
    logger.info("Menu loaded: {} ({} items)", menu.menu_name, len(menu.items))

    store_path = Path(args.store or settings.store_path)
    store_path.parent.mkdir(parents=True, exist_ok=True)

    with shelve.open(str(store_path)) as backend:
        service = CheckoutService(KeyValueStorage(backend), menu, promos, settings)
        try:
            return _run(args, service, menu)
        except (SpudEngineError, ValidationError) as e:
            logger.warning("Command {} failed: {}", args.command, e)
            print(f"Error: {e}", file=sys.stderr)
            return 1


def _run(args: argparse.Namespace, service: CheckoutService, menu: Menu) -> int:
    if args.command == "balance":
        loyalty = service.load_loyalty(args.user)
        history = service.storage.load_order_history(args.user)
        print(f"{args.user}: {loyalty.points} Spud Points, {len(history)} orders")
        print(f"Badges: {', '.join(loyalty.badges) or 'none yet'}")
        return 0

    if args.command == "leaderboard":
        entries = leaderboard(service.storage, args.limit)
        if not entries:
            print("No Spud Points earned yet.")
        for entry in entries:
            print(f"{entry.rank:>3}. {entry.user_id:<40} {entry.points:>8}")
        return 0

    cart = load_cart(args.cart, menu)
    request = CheckoutRequest(
        order_type=OrderType(args.order_type),
        promo_code=args.promo,
        points_to_redeem=args.redeem,
        delivery_address=args.address,
        pickup_time=args.pickup_time,
    )
    loyalty = service.load_loyalty(args.user)
    order_quote = service.quote(cart, request, loyalty)
    _print_quote(cart, order_quote)

    if args.command == "quote":
        print(f"\nYou can redeem up to {service.max_redeemable_points(cart, loyalty)} points.")
        return 0

    result = service.confirm(args.user, cart, request, loyalty)
    print(f"\nOrder {result.order.id} placed.")
    print(f"Ready around {service.estimated_ready_at(result.order):%H:%M}.")
    print(f"+{result.order.points_earned} points, new balance {result.new_balance}.")
    for badge in result.newly_earned_badges:
        print(f"Badge unlocked: {badge}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
