"""CLI for the Danish spot price collector.

Commands:
    fetch      - Fetch today's and/or tomorrow's prices and store them
    scheduler  - Run the daily ingestion scheduler
    show       - Show stored prices and a summary for one day
    cleanup    - Delete prices older than the retention period

Usage:
    elpris fetch
    elpris fetch --when tomorrow --region DK2
    elpris fetch --date 2025-09-21
    elpris scheduler
    elpris show --region DK1 --date 2025-09-21
    elpris cleanup --days 30
"""

import asyncio
import logging
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

import click
from dotenv import load_dotenv

# Load environment variables before imports that need them
load_dotenv()

from elpris_collector.clients.elprisenligenu import ElprisenLigenuClient
from elpris_collector.config import Settings
from elpris_collector.ingestion import IngestionCoordinator
from elpris_collector.models.price import Region
from elpris_collector.models.report import IngestionReport
from elpris_collector.normalizer import PriceNormalizer
from elpris_collector.scheduler import Scheduler
from elpris_collector.storage import PersistenceError, PriceStore, create_store
from elpris_collector.summary import summarize_day
from elpris_collector.utils.time import get_market_now, get_market_today

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

REGION_CHOICE = click.Choice([r.value for r in Region], case_sensitive=False)


def parse_date(date_str: str) -> date:
    """Parse date string in YYYY-MM-DD format."""
    return datetime.strptime(date_str, "%Y-%m-%d").date()


def build_coordinator(
    settings: Settings,
    client: ElprisenLigenuClient,
    store: PriceStore,
) -> IngestionCoordinator:
    """Wire the ingestion pipeline from settings."""
    tz = ZoneInfo(settings.timezone)
    return IngestionCoordinator(
        client=client,
        normalizer=PriceNormalizer(settings.tariffs, tz),
        store=store,
        regions=settings.regions,
        tz=tz,
    )


def open_store(settings: Settings) -> PriceStore:
    """Create the configured store, turning missing credentials into a CLI error."""
    try:
        return create_store(settings.store)
    except ValueError as e:
        raise click.ClickException(f"Cannot open {settings.store} store: {e}") from e


def echo_report(report: IngestionReport) -> None:
    for result in report.regions.values():
        click.echo(f"  {report.target_date} {result.summary()}")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """Danish Spot Price Collector - hourly DK1/DK2 prices from elprisenligenu.dk."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    ctx.obj = Settings.from_env()


@main.command()
@click.option(
    "--when",
    "-w",
    type=click.Choice(["today", "tomorrow", "both"]),
    default="both",
    help="Which day to fetch",
)
@click.option("--date", "date_str", help="Specific date (YYYY-MM-DD), overrides --when")
@click.option("--region", "-r", "regions", multiple=True, type=REGION_CHOICE, help="Region(s) to fetch")
@click.pass_obj
def fetch(settings: Settings, when: str, date_str: str | None, regions: tuple[str, ...]) -> None:
    """Fetch prices from the API and store them."""
    tz = ZoneInfo(settings.timezone)
    today = get_market_today(tz)

    if date_str:
        dates = [parse_date(date_str)]
    else:
        dates = {
            "today": [today],
            "tomorrow": [today + timedelta(days=1)],
            "both": [today, today + timedelta(days=1)],
        }[when]

    selected = [Region(r.upper()) for r in regions] or list(settings.regions)
    click.echo(f"Fetching prices for {', '.join(r.value for r in selected)} on {', '.join(map(str, dates))}...")

    store = open_store(settings)

    async def run_fetch() -> list[IngestionReport]:
        async with ElprisenLigenuClient(settings.api_base_url, settings.request_timeout) as client:
            coordinator = build_coordinator(settings, client, store)
            return [await coordinator.ingest(d, selected) for d in dates]

    reports = asyncio.run(run_fetch())

    click.echo("\nResults:")
    for report in reports:
        echo_report(report)


@main.command()
@click.option("--no-startup-fetch", is_flag=True, help="Skip the immediate fetch on start")
@click.pass_obj
def scheduler(settings: Settings, no_startup_fetch: bool) -> None:
    """Run the daily ingestion scheduler.

    Fetches prices at fixed Danish local times every day.
    Press Ctrl+C to stop.
    """
    click.echo("Starting price collector scheduler...")
    click.echo("Press Ctrl+C to stop")
    click.echo()

    client = ElprisenLigenuClient(settings.api_base_url, settings.request_timeout)
    coordinator = build_coordinator(settings, client, open_store(settings))

    sched = Scheduler(coordinator, settings.schedule, ZoneInfo(settings.timezone))
    sched.start(startup_fetch=not no_startup_fetch)


@main.command()
@click.option("--region", "-r", type=REGION_CHOICE, default=Region.DK1.value, help="Region to show")
@click.option("--date", "date_str", help="Date (YYYY-MM-DD), defaults to today")
@click.pass_obj
def show(settings: Settings, region: str, date_str: str | None) -> None:
    """Show stored prices and a summary for one day."""
    tz = ZoneInfo(settings.timezone)
    target = parse_date(date_str) if date_str else get_market_today(tz)
    zone = Region(region.upper())
    store = open_store(settings)

    try:
        records = store.find_by_region_and_date(zone, target)
        summary = summarize_day(store, zone, target, now=get_market_now(tz))
    except PersistenceError as e:
        click.echo(f"\nError reading prices: {e}")
        return

    click.echo(f"Prices for {zone.value} ({zone.description}) on {target}")
    click.echo("=" * 60)

    if not records:
        click.echo("No data")
        return

    click.echo(f"{'Hour':<6} {'Spot':>10} {'Tariffs+tax':>12} {'Total':>10}  (DKK/kWh)")
    click.echo("-" * 60)
    for r in records:
        fees = r.transmission_tariff + r.system_tariff + r.electricity_tax
        click.echo(f"{r.hour:02d}:00  {r.spot_price:>10.4f} {fees:>12.4f} {r.total_price:>10.4f}")

    click.echo("-" * 60)
    click.echo(f"  Hours:    {summary.num_hours}/{summary.expected_hours}")
    click.echo(f"  Average:  {summary.average_total:.4f} DKK/kWh")
    if summary.lowest and summary.highest:
        click.echo(f"  Lowest:   {summary.lowest.total_price:.4f} DKK/kWh at {summary.lowest.hour:02d}:00")
        click.echo(f"  Highest:  {summary.highest.total_price:.4f} DKK/kWh at {summary.highest.hour:02d}:00")
    if summary.current:
        click.echo(f"  Now:      {summary.current.total_price:.4f} DKK/kWh ({summary.current.hour:02d}:00)")


@main.command()
@click.option("--days", "-d", type=int, help="Days to keep (defaults to ELPRIS_RETENTION_DAYS)")
@click.pass_obj
def cleanup(settings: Settings, days: int | None) -> None:
    """Delete prices older than the retention period."""
    days_to_keep = days if days is not None else settings.schedule.retention_days
    client = ElprisenLigenuClient(settings.api_base_url, settings.request_timeout)
    coordinator = build_coordinator(settings, client, open_store(settings))

    try:
        deleted = coordinator.cleanup_old_prices(days_to_keep)
    except PersistenceError as e:
        click.echo(f"Cleanup failed: {e}")
        return

    click.echo(f"Deleted {deleted} records older than {days_to_keep} days")


if __name__ == "__main__":
    main()
