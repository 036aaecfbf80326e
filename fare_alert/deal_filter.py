from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, List, Optional, Protocol

from .models import CalendarCandidate, ItineraryOption


# ────────────────────────────────────────────────────────────────
# 1.  Calendar price filters
# ────────────────────────────────────────────────────────────────


def filter_by_price(
    candidates: Iterable[CalendarCandidate], threshold: Decimal
) -> List[CalendarCandidate]:
    """Keep candidates strictly cheaper than *threshold*."""
    return [c for c in candidates if c.round_trip_price < threshold]


def return_day(outbound_date: str, offset_days: int) -> str:
    """Return the ISO date *offset_days* after *outbound_date*."""
    return (date.fromisoformat(outbound_date) + timedelta(days=offset_days)).isoformat()


def pair_one_way_days(
    outbound: Iterable[CalendarCandidate],
    inbound: Iterable[CalendarCandidate],
    *,
    threshold: Decimal,
    offset_days: int = 12,
) -> List[CalendarCandidate]:
    """
    Pair single-leg day prices into round trips of fixed length.

    Each outbound day under *threshold* is matched with the inbound day
    *offset_days* later; the pair survives only if that inbound price is
    under *threshold* too.
    """
    inbound_by_day = {c.outbound_date: c.round_trip_price for c in inbound}

    pairs: List[CalendarCandidate] = []
    for out in outbound:
        if out.round_trip_price >= threshold:
            continue
        ret_date = return_day(out.outbound_date, offset_days)
        ret_price = inbound_by_day.get(ret_date)
        if ret_price is None or ret_price >= threshold:
            continue
        pairs.append(
            CalendarCandidate(
                outbound_date=out.outbound_date,
                return_date=ret_date,
                round_trip_price=out.round_trip_price + ret_price,
                outbound_price=out.round_trip_price,
                return_price=ret_price,
            )
        )
    return pairs


# ────────────────────────────────────────────────────────────────
# 2.  Routing-quality policies
# ────────────────────────────────────────────────────────────────


class RoutingPolicy(Protocol):
    name: str

    def accepts(self, option: ItineraryOption) -> bool:
        ...


class DirectOnly:
    """Accept non-stop flights only."""

    name = "strict"

    def accepts(self, option: ItineraryOption) -> bool:
        return option.stop_count == 0


class ShortLayover:
    """Accept non-stop flights or a single stop of at most *max_layover_min*."""

    name = "lenient"

    def __init__(self, max_layover_min: int = 90) -> None:
        self.max_layover_min = max_layover_min

    def accepts(self, option: ItineraryOption) -> bool:
        if option.stop_count == 0:
            return True
        if option.stop_count != 1 or not option.stop_durations:
            return False
        layover = option.stop_durations[0]
        return layover is not None and layover <= self.max_layover_min


def policy_from_name(name: str, max_layover_min: int = 90) -> RoutingPolicy:
    if name == "strict":
        return DirectOnly()
    if name == "lenient":
        return ShortLayover(max_layover_min)
    raise ValueError(f"Unknown routing policy: {name!r}")


def match_options(
    options: Iterable[ItineraryOption],
    price: Optional[Decimal],
    policy: RoutingPolicy,
) -> List[ItineraryOption]:
    """Options priced exactly at *price* that the *policy* accepts."""
    if price is None:
        return []
    return [
        o
        for o in options
        if o.price is not None and o.price == price and policy.accepts(o)
    ]


__all__ = [
    "filter_by_price",
    "return_day",
    "pair_one_way_days",
    "RoutingPolicy",
    "DirectOnly",
    "ShortLayover",
    "policy_from_name",
    "match_options",
]
