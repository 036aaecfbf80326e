# -*- coding: utf-8 -*-
"""
resolver – turn a cheap calendar day (pair) into concrete flights.

An option is kept when its price equals the calendar price exactly AND the
routing policy accepts its stops. A MatchedOffer needs at least one outbound
option; the return leg may come back empty.
"""

from __future__ import annotations

import logging
from typing import Optional

from .deal_filter import RoutingPolicy, match_options
from .google_flights_fetcher import GoogleFlightsFetcher
from .models import CalendarCandidate, FetchResult, MatchedOffer, Route

logger = logging.getLogger(__name__)


class ItineraryResolver:
    def __init__(
        self,
        fetcher: GoogleFlightsFetcher,
        policy: RoutingPolicy,
        *,
        follow_return_leg: bool = True,
    ) -> None:
        self.fetcher = fetcher
        self.policy = policy
        self.follow_return_leg = follow_return_leg
        self.fetch_failures = 0

    def _count(self, result: FetchResult) -> FetchResult:
        if result.is_failed:
            self.fetch_failures += 1
        return result

    def resolve(
        self, route: Route, candidate: CalendarCandidate
    ) -> Optional[MatchedOffer]:
        """Joint round trip: search the date pair, optionally follow the return leg."""
        found = self._count(
            self.fetcher.search_flights(
                route.origin_code,
                route.destination_code,
                candidate.outbound_date,
                candidate.return_date,
            )
        )
        outbound = match_options(found.items, candidate.round_trip_price, self.policy)
        if not outbound:
            logger.info(
                "No matching outbound flights %s→%s %s",
                route.origin_code,
                route.destination_code,
                candidate.outbound_date,
            )
            return None

        inbound = []
        if self.follow_return_leg:
            # token of the first top result, matched or not
            first = found.items[0] if found.items else None
            token = first.next_token if first and first.primary else None
            returned = self._count(self.fetcher.next_flights(token))
            inbound = match_options(
                returned.items, candidate.round_trip_price, self.policy
            )
            if not inbound:
                logger.info(
                    "No matching return flights %s→%s %s",
                    route.destination_code,
                    route.origin_code,
                    candidate.return_date,
                )

        return MatchedOffer(route, candidate, outbound, inbound)

    def resolve_legs(
        self, route: Route, candidate: CalendarCandidate
    ) -> Optional[MatchedOffer]:
        """Independent legs: one-way search each way, each against its own price."""
        found_out = self._count(
            self.fetcher.search_flights(
                route.origin_code, route.destination_code, candidate.outbound_date
            )
        )
        outbound = match_options(found_out.items, candidate.outbound_price, self.policy)
        if not outbound:
            logger.info(
                "No matching outbound flights %s→%s %s",
                route.origin_code,
                route.destination_code,
                candidate.outbound_date,
            )
            return None

        inbound = []
        if candidate.return_date:
            found_in = self._count(
                self.fetcher.search_flights(
                    route.destination_code, route.origin_code, candidate.return_date
                )
            )
            inbound = match_options(found_in.items, candidate.return_price, self.policy)
        if not inbound:
            logger.info(
                "No matching return flights %s→%s %s",
                route.destination_code,
                route.origin_code,
                candidate.return_date,
            )

        return MatchedOffer(route, candidate, outbound, inbound)


__all__ = ["ItineraryResolver"]
