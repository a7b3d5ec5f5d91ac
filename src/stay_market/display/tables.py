"""Rich tables for search results, reservations and dashboard cards."""

from datetime import datetime

from rich.columns import Columns
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from stay_market.host.reservations import status_label
from stay_market.models.dashboard import DashboardMetrics
from stay_market.models.outcome import OutcomeStatus, SearchOutcome
from stay_market.models.property import PropertySummary
from stay_market.models.reservation import Reservation

console = Console()


def build_properties_table(properties: list[PropertySummary], title: str = "Properties") -> Table:
    table = Table(
        title=f"[bold cyan]{title}[/bold cyan]",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("#", style="bold", width=3, justify="center")
    table.add_column("Property", min_width=20)
    table.add_column("Location", min_width=18)
    table.add_column("Price / night", justify="right")
    table.add_column("Rating", justify="right")
    table.add_column("Reviews", justify="right")

    for i, prop in enumerate(properties, start=1):
        rating_color = "green" if prop.rating >= 4.5 else ("yellow" if prop.rating >= 3.5 else "red")
        table.add_row(
            str(i),
            prop.title,
            prop.location,
            f"{prop.price:,.2f} {prop.currency}",
            f"[{rating_color}]{prop.rating:.1f}★[/{rating_color}]",
            f"{prop.review_count:,}",
        )
    return table


def render_search_outcome(outcome: SearchOutcome, properties: list[PropertySummary]) -> None:
    console.print()
    if outcome.status is OutcomeStatus.error:
        hint = " (retry may succeed)" if outcome.retryable else ""
        console.print(f"[red]Search failed: {outcome.error}{hint}[/red]")
        return
    if outcome.status is OutcomeStatus.empty:
        console.print(
            f"[yellow]No properties found, even after {outcome.calls} broadened search(es).[/yellow]"
        )
        return

    tier = outcome.tier.value.replace("_", " ") if outcome.tier else "exact"
    console.print(build_properties_table(properties, title=f"{len(properties)} properties ({tier} match)"))
    console.print()


def build_reservations_table(reservations: list[Reservation], now: datetime, title: str = "Reservations") -> Table:
    table = Table(
        title=f"[bold cyan]{title}[/bold cyan]",
        show_header=True,
        header_style="bold magenta",
        border_style="dim",
    )
    table.add_column("Guest", min_width=16)
    table.add_column("Property", min_width=16)
    table.add_column("Dates")
    table.add_column("Nights", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Status")

    for r in reservations:
        label = status_label(r, now) or r.status.value
        paid = "" if r.is_paid else " [dim](unpaid)[/dim]"
        table.add_row(
            r.guest_name,
            r.property_name,
            f"{r.check_in:%b %d} → {r.check_out:%b %d}",
            str(r.nights),
            f"${r.total_amount:,.2f}{paid}",
            label,
        )
    return table


def render_dashboard(metrics: DashboardMetrics, now: datetime) -> None:
    earnings = metrics.earnings
    stats = metrics.stats
    cards = [
        Panel(
            f"This month: [bold]${earnings.this_month:,.2f}[/bold]\n"
            f"Last month: ${earnings.last_month:,.2f}\n"
            f"Year total: ${earnings.year_total:,.2f}\n"
            f"Pending payouts: ${earnings.pending_payouts:,.2f}",
            title="[bold]Earnings[/bold]",
            border_style="green",
        ),
        Panel(
            f"Active listings: [bold]{stats.active_listings}[/bold]\n"
            f"Occupancy: {stats.occupancy_rate:.0f}%\n"
            f"Reservations: {stats.total_reservations}\n"
            f"Rating: {stats.average_rating:.2f}★",
            title="[bold]Stats[/bold]",
            border_style="blue",
        ),
        Panel(
            f"Check-ins: [bold]{metrics.today.check_ins}[/bold]\n"
            f"Check-outs: {metrics.today.check_outs}\n"
            f"New bookings: {metrics.today.new_reservations}",
            title="[bold]Today[/bold]",
            border_style="cyan",
        ),
    ]
    console.print()
    console.print(Columns(cards))

    if earnings.monthly_series:
        peak = max(m.amount for m in earnings.monthly_series) or 1
        lines = [
            f"  {m.month:>4}  {'█' * int(20 * m.amount / peak):<20}  ${m.amount:,.0f}"
            for m in earnings.monthly_series
        ]
        console.print(Panel("\n".join(lines), title="[bold]Monthly earnings[/bold]", border_style="dim"))

    if metrics.recent_reservations:
        console.print(build_reservations_table(metrics.recent_reservations, now, title="Recent reservations"))
    console.print()
