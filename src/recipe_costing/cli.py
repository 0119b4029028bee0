"""
Recipe Costing CLI

Command-line interface for costing stored recipes.

Usage Examples:
    # Create the database tables
    recipe-costing init-db

    # Give business 1 the standard kg/g/lb/oz, l/ml/gal, dozen/unit conversions
    recipe-costing seed-conversions 1

    # Cost breakdown of recipe 12 (add --json for machine-readable output)
    recipe-costing breakdown 12

    # Suggested price at the business food cost target, or at 28%
    recipe-costing price 12
    recipe-costing price 12 --target 28

    # Record the current cost into the recipe's history, then show it
    recipe-costing record-history 12
    recipe-costing history 12
"""

import argparse
import json
import logging
import sys

from recipe_costing.services import recipe_costing_service, unit_conversion_service
from recipe_costing.services.database import close_connections, initialize_app_database
from recipe_costing.services.exceptions import ServiceError
from recipe_costing.utils.config import get_config


def _money(value) -> str:
    return "-" if value is None else f"{value:,.2f}"


def init_db(args) -> int:
    """Create all tables."""
    print("Initializing database...")
    initialize_app_database()
    print("Database ready")
    return 0


def show_breakdown(args) -> int:
    """Print the cost breakdown of a recipe."""
    breakdown = recipe_costing_service.calculate_recipe_cost_breakdown(args.recipe_id)

    if args.json:
        print(json.dumps(breakdown.to_dict(), indent=2))
        return 0

    print(f"Recipe {breakdown.recipe_id}")
    rows = [
        ("Raw material cost", breakdown.raw_material_cost),
        ("Adjusted for wastage", breakdown.adjusted_rmc),
        ("Labour", breakdown.labour_cost),
        ("Variable overhead", breakdown.variable_overhead_cost),
        ("Fixed overhead", breakdown.fixed_overhead_cost),
        ("Packaging", breakdown.packaging_cost),
        ("Total cost", breakdown.total_cost),
        ("Cost per serving", breakdown.cost_per_serving),
    ]
    for label, value in rows:
        print(f"  {label:<22}{_money(value):>14}")

    for diagnostic in breakdown.diagnostics:
        prefix = "ERROR" if diagnostic.is_structural else "WARNING"
        print(f"  {prefix}: {diagnostic.message}")
    return 0


def show_price(args) -> int:
    """Print the suggested sale price of a recipe."""
    price = recipe_costing_service.suggest_price_for_recipe(args.recipe_id, args.target)
    if price is None:
        print("No price suggestion: recipe has no positive cost or the target is invalid")
        return 0
    print(_money(price))
    return 0


def record_history(args) -> int:
    """Record the current cost of a recipe into its history."""
    result = recipe_costing_service.record_recipe_cost_history(args.recipe_id)
    print(
        f"Cost {_money(result['cost'])} {result['outcome']} "
        f"({result['history_length']} entries)"
    )
    return 0


def show_history(args) -> int:
    """Print the cost history of a recipe, oldest first."""
    history = recipe_costing_service.get_cost_history(args.recipe_id)
    if not history:
        print("No cost history recorded")
        return 0

    for entry in history:
        print(f"  {entry.date:%Y-%m-%d %H:%M}  {_money(entry.cost):>14}")

    trend = recipe_costing_service.get_cost_trend(args.recipe_id)
    if trend.percent_change is not None:
        print(f"  Change: {_money(trend.change)} ({trend.percent_change:+.1f}%)")
    return 0


def seed_conversions(args) -> int:
    """Store the standard conversions for a business."""
    created = unit_conversion_service.seed_standard_conversions(args.business_id)
    print(f"Created {created} conversion(s)")
    return 0


def build_parser() -> argparse.ArgumentParser:
    config = get_config()
    parser = argparse.ArgumentParser(
        prog="recipe-costing",
        description="Recipe cost calculation for food businesses",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", action="version", version=f"{config.app_name} {config.app_version}"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log service operations to stderr"
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(handler=init_db)

    breakdown_parser = subparsers.add_parser("breakdown", help="Show a recipe's cost breakdown")
    breakdown_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    breakdown_parser.add_argument("--json", action="store_true", help="Print JSON")
    breakdown_parser.set_defaults(handler=show_breakdown)

    price_parser = subparsers.add_parser("price", help="Suggest a sale price per serving")
    price_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    price_parser.add_argument(
        "--target",
        type=float,
        default=None,
        help="Target food cost percent (default: business setting)",
    )
    price_parser.set_defaults(handler=show_price)

    record_parser = subparsers.add_parser(
        "record-history", help="Record a recipe's current cost in its history"
    )
    record_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    record_parser.set_defaults(handler=record_history)

    history_parser = subparsers.add_parser("history", help="Show a recipe's cost history")
    history_parser.add_argument("recipe_id", type=int, help="Recipe ID")
    history_parser.set_defaults(handler=show_history)

    seed_parser = subparsers.add_parser(
        "seed-conversions", help="Store standard unit conversions for a business"
    )
    seed_parser.add_argument("business_id", type=int, help="Business ID")
    seed_parser.set_defaults(handler=seed_conversions)

    return parser


def main(argv=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        if args.command != "init-db":
            initialize_app_database()
        return args.handler(args)
    except ServiceError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        close_connections()


if __name__ == "__main__":
    sys.exit(main())
