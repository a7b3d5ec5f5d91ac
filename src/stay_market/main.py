"""Entry point: CLI for property search and the host dashboard."""

import argparse
import asyncio
import sys
from datetime import datetime

from loguru import logger
from rich.console import Console

from stay_market.clients.marketplace import MarketplaceClient
from stay_market.display.tables import (
    build_reservations_table,
    render_dashboard,
    render_search_outcome,
)
from stay_market.host.dashboard import load_dashboard
from stay_market.host.reservations import (
    bookings_to_reservations,
    reservations_for_view,
    search_reservations,
    take,
)
from stay_market.log import setup_logging
from stay_market.models.outcome import OutcomeStatus
from stay_market.models.reservation import ReservationCategory
from stay_market.search.location import build_search_state
from stay_market.search.ranking import SortDirection, SortField, SortState, filter_properties, rank_properties
from stay_market.search.resolver import SearchResolver

console = Console()

_VIEWS = ["all"] + [c.value for c in ReservationCategory]


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Stay Market: accommodation search and host tools")
    parser.add_argument("--mock", action="store_true", help="Use canned backend data (no API calls)")
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser("search", help="Search properties, broadening the location if nothing matches")
    search.add_argument("location", nargs="?", default="", help='Free text, e.g. "Springfield, Illinois, USA"')
    search.add_argument("--city", default="")
    search.add_argument("--state", default="")
    search.add_argument("--country", default="")
    search.add_argument("--lat", default=None, help="Latitude")
    search.add_argument("--lng", default=None, help="Longitude")
    search.add_argument("--radius", default=None, help="Radius in km")
    search.add_argument("--start-date", default=None, help="YYYY-MM-DD")
    search.add_argument("--end-date", default=None, help="YYYY-MM-DD")
    search.add_argument("--guests", type=int, default=None)
    search.add_argument("--min-price", type=float, default=None)
    search.add_argument("--max-price", type=float, default=None)
    search.add_argument("--type", dest="property_type", default="")
    search.add_argument("--amenity", dest="amenities", action="append", default=[])
    search.add_argument("--sort", choices=[f.value for f in SortField], default=None)
    search.add_argument("--asc", action="store_true", help="Ascending order for --sort")
    search.add_argument("--min-rating", type=float, default=None)

    reservations = sub.add_parser("reservations", help="List host reservations by lifecycle bucket")
    reservations.add_argument("--view", choices=_VIEWS, default="all")
    reservations.add_argument("--find", default="", help="Filter by guest or property name")
    reservations.add_argument("--limit", type=int, default=None)

    sub.add_parser("dashboard", help="Show host summary metrics")
    return parser.parse_args(argv)


async def _run_search(client: MarketplaceClient, args: argparse.Namespace) -> int:
    state = build_search_state(
        args.location,
        city=args.city,
        state=args.state,
        country=args.country,
        latitude=args.lat,
        longitude=args.lng,
        radius_km=args.radius,
        start_date=args.start_date,
        end_date=args.end_date,
        guests=args.guests,
        min_price=args.min_price,
        max_price=args.max_price,
        property_type=args.property_type,
        amenities=args.amenities,
    )
    outcome = await SearchResolver(client.search_properties).resolve(state)

    sort = SortState()
    if args.sort:
        sort = sort.select(SortField(args.sort))
        if args.asc:
            sort = SortState(field=sort.field, direction=SortDirection.asc)
    properties = rank_properties(filter_properties(outcome.properties, min_rating=args.min_rating), sort)

    render_search_outcome(outcome, properties)
    return 1 if outcome.status is OutcomeStatus.error else 0


async def _run_reservations(client: MarketplaceClient, args: argparse.Namespace) -> int:
    now = datetime.now().astimezone()
    reservations = bookings_to_reservations(await client.get_host_reservations())
    view = args.view if args.view == "all" else ReservationCategory(args.view)
    rows = search_reservations(reservations_for_view(reservations, view, now), args.find)
    shown, has_more = take(rows, args.limit)

    console.print()
    console.print(build_reservations_table(shown, now, title=f"Reservations: {args.view}"))
    if has_more:
        console.print(f"[dim]… {len(rows) - len(shown)} more[/dim]")
    console.print()
    return 0


async def _run_dashboard(client: MarketplaceClient) -> int:
    now = datetime.now().astimezone()
    outcome = await load_dashboard(client.get_host_dashboard, now)
    if outcome.needs_onboarding:
        console.print("[yellow]Finish host setup to see your dashboard.[/yellow]")
    elif outcome.status is OutcomeStatus.error:
        console.print(f"[red]Could not load dashboard: {outcome.error}[/red]")
    render_dashboard(outcome.metrics, now)
    return 1 if outcome.status is OutcomeStatus.error else 0


async def _dispatch(args: argparse.Namespace) -> int:
    async with MarketplaceClient(mock=args.mock) as client:
        if args.command == "search":
            return await _run_search(client, args)
        if args.command == "reservations":
            return await _run_reservations(client, args)
        return await _run_dashboard(client)


def main(argv: list[str] | None = None) -> None:
    args = _parse_args(argv)
    setup_logging(debug=args.debug)
    try:
        code = asyncio.run(_dispatch(args))
    except KeyboardInterrupt:
        console.print("\n[yellow]Goodbye![/yellow]")
        code = 130
    except Exception:
        logger.exception(f"Unexpected failure running '{args.command}'")
        code = 2
    sys.exit(code)


if __name__ == "__main__":
    main()
