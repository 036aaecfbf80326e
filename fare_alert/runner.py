from __future__ import annotations

import logging
import threading
from datetime import timedelta
from dataclasses import dataclass, field
from typing import List, Optional

from .config import Settings
from .deal_filter import filter_by_price, pair_one_way_days, policy_from_name
from .google_flights_fetcher import GoogleFlightsFetcher
from .models import CalendarCandidate, MatchedOffer, Route
from .notifier import TelegramNotifier, build_batch_message, build_message
from .resolver import ItineraryResolver

logger = logging.getLogger(__name__)


# ────────────────────────────────────────────────────────────────
# Logging
# ────────────────────────────────────────────────────────────────


def setup_logging(settings: Optional[Settings] = None) -> None:
    log_file = settings.log_file if settings else "fare_alert.log"
    level = settings.log_level if settings else "INFO"
    logging.basicConfig(
        level=level.upper(),
        handlers=[logging.FileHandler(log_file), logging.StreamHandler()],
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@dataclass
class RunReport:
    routes: int = 0
    candidates: int = 0
    offers: int = 0
    sent: int = 0
    failed_deliveries: int = 0
    fetch_failures: int = 0
    skipped: bool = False
    messages: List[str] = field(default_factory=list)


# ────────────────────────────────────────────────────────────────
# Main logic
# ────────────────────────────────────────────────────────────────


class FareRunner:
    """Calendar → price filter → itinerary match → Telegram, route by route."""

    def __init__(
        self,
        settings: Settings,
        fetcher: GoogleFlightsFetcher,
        notifier: TelegramNotifier,
        resolver: Optional[ItineraryResolver] = None,
    ) -> None:
        self.cfg = settings
        self.fetcher = fetcher
        self.notifier = notifier
        self.resolver = resolver or ItineraryResolver(
            fetcher,
            policy_from_name(settings.routing_policy, settings.max_layover_min),
            follow_return_leg=settings.follow_return_leg,
        )
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Settings) -> "FareRunner":
        return cls(
            settings,
            GoogleFlightsFetcher.from_settings(settings),
            TelegramNotifier.from_settings(settings),
        )

    def run_once(self, *, dry_run: bool = False) -> RunReport:
        """Check every route once; skip if a previous run is still going."""
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous run still in progress, skipping this one")
            return RunReport(skipped=True)
        try:
            return self._run(dry_run)
        finally:
            self._lock.release()

    def _run(self, dry_run: bool) -> RunReport:
        logger.info("Checking fares...")
        report = RunReport()
        failures_before = self.resolver.fetch_failures
        batch: List[MatchedOffer] = []

        for route in self.cfg.routes:
            report.routes += 1
            logger.info(
                "Checking round trips %s (%s) ➔ %s (%s)",
                route.origin_name,
                route.origin_code,
                route.display_name,
                route.destination_code,
            )
            try:
                offers = self._process_route(route, report)
            except Exception:
                logger.exception(
                    "Route %s->%s failed", route.origin_code, route.destination_code
                )
                continue

            for offer in offers:
                text = self._render(offer)
                if text is None:
                    continue
                if self.cfg.batch_per_run:
                    batch.append(offer)
                else:
                    self._deliver(text, report, dry_run)

        if batch:
            self._deliver(build_batch_message(
                batch, currency_symbol=self.cfg.currency_symbol
            ), report, dry_run)

        report.fetch_failures += self.resolver.fetch_failures - failures_before
        logger.info(
            "Finished: %d candidates, %d offers, %d messages sent",
            report.candidates,
            report.offers,
            report.sent,
        )
        return report

    def _process_route(self, route: Route, report: RunReport) -> List[MatchedOffer]:
        if self.cfg.leg_strategy == "paired":
            candidates = self._paired_candidates(route, report)
            threshold = self.cfg.leg_price_threshold
            resolve = self.resolver.resolve_legs
        else:
            candidates = self._joint_candidates(route, report)
            threshold = self.cfg.price_threshold
            resolve = self.resolver.resolve

        if not candidates:
            logger.info(
                "No candidates for %s ➔ %s under %s %s",
                route.origin_name,
                route.display_name,
                self.cfg.currency_symbol,
                threshold,
            )
            return []

        report.candidates += len(candidates)
        offers: List[MatchedOffer] = []
        for cand in candidates:
            offer = resolve(route, cand)
            if offer:
                offers.append(offer)
        report.offers += len(offers)
        return offers

    def _joint_candidates(
        self, route: Route, report: RunReport
    ) -> List[CalendarCandidate]:
        result = self.fetcher.calendar_picker(
            route.origin_code,
            route.destination_code,
            self.cfg.window_start.isoformat(),
            self.cfg.window_end.isoformat(),
            trip_days=self.cfg.trip_days,
        )
        if result.is_failed:
            report.fetch_failures += 1
        return filter_by_price(result.items, self.cfg.price_threshold)

    def _paired_candidates(
        self, route: Route, report: RunReport
    ) -> List[CalendarCandidate]:
        start = self.cfg.window_start.isoformat()
        end = self.cfg.window_end.isoformat()
        outbound = self.fetcher.calendar_picker(
            route.origin_code, route.destination_code, start, end, one_way=True
        )
        if outbound.is_failed:
            report.fetch_failures += 1
        if not filter_by_price(outbound.items, self.cfg.leg_price_threshold):
            return []

        # return days sit pair_offset_days after the outbound window
        shift = timedelta(days=self.cfg.pair_offset_days)
        inbound = self.fetcher.calendar_picker(
            route.destination_code,
            route.origin_code,
            (self.cfg.window_start + shift).isoformat(),
            (self.cfg.window_end + shift).isoformat(),
            one_way=True,
        )
        if inbound.is_failed:
            report.fetch_failures += 1
        return pair_one_way_days(
            outbound.items,
            inbound.items,
            threshold=self.cfg.leg_price_threshold,
            offset_days=self.cfg.pair_offset_days,
        )

    def _render(self, offer: MatchedOffer) -> Optional[str]:
        try:
            return build_message(offer, currency_symbol=self.cfg.currency_symbol)
        except (ValueError, TypeError):
            logger.exception(
                "Cannot render offer %s->%s %s",
                offer.route.origin_code,
                offer.route.destination_code,
                offer.candidate.outbound_date,
            )
            return None

    def _deliver(self, text: str, report: RunReport, dry_run: bool) -> None:
        report.messages.append(text)
        if dry_run:
            return
        if self.notifier.send(text):
            report.sent += 1
        else:
            report.failed_deliveries += 1


__all__ = ["FareRunner", "RunReport", "setup_logging"]
