from __future__ import annotations

import logging

import click
from pydantic import ValidationError

from .config import Settings, get_settings
from .deal_filter import filter_by_price
from .google_flights_fetcher import GoogleFlightsFetcher
from .notifier import format_date, format_price
from .runner import FareRunner, setup_logging
from .tasks import build_scheduler

logger = logging.getLogger(__name__)


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise click.ClickException(f"Invalid configuration:\n{exc}") from exc


@click.group()
def cli() -> None:
    """Command line interface."""


@cli.command()
@click.option("--once", is_flag=True, help="Run a single iteration and exit")
def run(once: bool) -> None:
    """Check fares and send Telegram alerts."""
    cfg = _load_settings()
    setup_logging(cfg)
    runner = FareRunner.from_settings(cfg)
    if once:
        report = runner.run_once()
        click.echo(
            f"{report.offers} offers, {report.sent} sent, "
            f"{report.failed_deliveries} failed deliveries"
        )
        return

    sched = build_scheduler(cfg, runner)
    logger.info("Scheduler started (%s %s)", cfg.schedule_cron, cfg.schedule_tz)
    try:
        sched.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")


@cli.command()
@click.argument("origin")
@click.argument("destination")
def fetch(origin: str, destination: str) -> None:
    """Print calendar days under the price threshold, without notifying."""
    cfg = _load_settings()
    setup_logging(cfg)
    fetcher = GoogleFlightsFetcher.from_settings(cfg)
    result = fetcher.calendar_picker(
        origin,
        destination,
        cfg.window_start.isoformat(),
        cfg.window_end.isoformat(),
        trip_days=cfg.trip_days,
    )
    if result.is_failed:
        raise click.ClickException(f"Calendar fetch failed: {result.error}")

    candidates = filter_by_price(result.items, cfg.price_threshold)
    if not candidates:
        click.echo("No candidates found")
        return
    for cand in candidates:
        click.echo(
            f"{format_date(cand.outbound_date)} – "
            f"{format_date(cand.return_date) if cand.return_date else 'OW'} "
            f"{format_price(cand.round_trip_price, cfg.currency_symbol)}"
        )


@cli.command()
def preview() -> None:
    """Run the whole check once and print the messages instead of sending."""
    cfg = _load_settings()
    setup_logging(cfg)
    report = FareRunner.from_settings(cfg).run_once(dry_run=True)
    if not report.messages:
        click.echo("No offers found")
    for msg in report.messages:
        click.echo(msg)


if __name__ == "__main__":
    cli()
