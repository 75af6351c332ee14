#!/usr/bin/env python3
"""
Command-line interface for the marketplace engine.

Usage:
    uv run python cli.py [command] [options]

Commands:
    demo        Run demo scenarios
    search      Query the bundled catalog
    dashboard   Show a seller's dashboard
    test        Run the test suite
    serve       Start the API server

Examples:
    uv run python cli.py demo order-lifecycle
    uv run python cli.py search --text reels --sort price_low
    uv run python cli.py dashboard cr-001
    uv run python cli.py serve
"""

import argparse
import subprocess
import sys

from shared.models import ServiceCategory, SortOption


def run_demo(scenario: str) -> None:
    """Run a demo scenario."""
    if scenario == "listing":
        from fulfillment.demo import run_listing_demo
        run_listing_demo()
    elif scenario == "order-lifecycle":
        from fulfillment.demo import run_order_lifecycle_demo
        run_order_lifecycle_demo()
    elif scenario == "dashboard":
        from fulfillment.demo import run_dashboard_demo
        run_dashboard_demo()
    elif scenario == "all":
        from fulfillment.demo import (
            run_listing_demo,
            run_order_lifecycle_demo,
            run_dashboard_demo,
        )
        run_listing_demo()
        run_order_lifecycle_demo()
        run_dashboard_demo()
    else:
        print(f"Unknown scenario: {scenario}")
        sys.exit(1)


def run_search(args: argparse.Namespace) -> None:
    """Run a listing query and print the results."""
    from pydantic import ValidationError as PydanticValidationError

    from catalog.query import ListingQuery, query
    from shared.data_store import get_data_store
    from shared.errors import ValidationError
    from shared.templates import format_price

    try:
        params = ListingQuery(
            search=args.text,
            category=args.category,
            min_price=args.min_price,
            max_price=args.max_price,
            max_delivery_days=args.max_days,
            sort=args.sort,
        )
        results = query(get_data_store().snapshot_services(), params)
    except (ValidationError, PydanticValidationError) as e:
        print(f"Invalid query: {e}")
        sys.exit(2)

    if not results:
        print("No services match.")
        return
    for service in results:
        print(
            f"{service.id:<10} {service.title:<40} "
            f"{format_price(service.min_price):>14}  {service.min_delivery_days}d  "
            f"{service.creator.name}"
        )


def run_dashboard(seller_id: str) -> None:
    """Print dashboard statistics for a seller."""
    from fulfillment.aggregator import aggregate
    from shared.data_store import get_data_store

    data_store = get_data_store()
    services = data_store.get_services_by_creator(seller_id)
    rating = services[0].creator.rating if services else 0.0
    stats = aggregate(data_store.get_orders_by_seller(seller_id), seller_id, rating=rating)
    print(stats.model_dump_json(indent=2))


def run_tests(args: list[str]) -> None:
    """Run the test suite."""
    cmd = ["uv", "run", "pytest"] + args
    subprocess.run(cmd)


def run_server(host: str, port: int, reload: bool) -> None:
    """Start the API server."""
    cmd = ["uv", "run", "uvicorn", "api.main:app", f"--host={host}", f"--port={port}"]
    if reload:
        cmd.append("--reload")

    print(f"Starting server at http://{host}:{port}")
    print(f"API docs available at http://{host}:{port}/docs")
    subprocess.run(cmd)


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Marketplace Engine CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo order-lifecycle
  %(prog)s demo all
  %(prog)s search --text instagram --sort best_rated
  %(prog)s search --category reels_editing --max-price 20000
  %(prog)s dashboard cr-001
  %(prog)s test -v
  %(prog)s serve --reload
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Run demo scenarios")
    demo_parser.add_argument(
        "scenario",
        choices=["listing", "order-lifecycle", "dashboard", "all"],
        help="Which scenario to run",
    )

    # Search command
    search_parser = subparsers.add_parser("search", help="Query the catalog")
    search_parser.add_argument("--text", default=None, help="Free-text search")
    search_parser.add_argument(
        "--category",
        default=None,
        choices=[c.value for c in ServiceCategory] + ["all"],
        help="Restrict to one category",
    )
    search_parser.add_argument("--min-price", type=int, default=None, help="Minimum price (minor units)")
    search_parser.add_argument("--max-price", type=int, default=None, help="Maximum price (minor units)")
    search_parser.add_argument("--max-days", type=int, default=None, help="Delivery ceiling in days")
    search_parser.add_argument(
        "--sort",
        default=SortOption.RELEVANCE.value,
        choices=[s.value for s in SortOption],
        help="Sort order",
    )

    # Dashboard command
    dashboard_parser = subparsers.add_parser("dashboard", help="Show a seller's dashboard")
    dashboard_parser.add_argument("seller_id", help="Seller (creator) ID")

    # Test command
    test_parser = subparsers.add_parser("test", help="Run the test suite")
    test_parser.add_argument(
        "pytest_args",
        nargs="*",
        default=[],
        help="Arguments to pass to pytest",
    )

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args()

    if args.command == "demo":
        run_demo(args.scenario)
    elif args.command == "search":
        run_search(args)
    elif args.command == "dashboard":
        run_dashboard(args.seller_id)
    elif args.command == "test":
        run_tests(args.pytest_args)
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
