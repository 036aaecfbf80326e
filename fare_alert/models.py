"""Data models used throughout the project."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass(slots=True)
class Route:
    origin_code: str
    destination_code: str
    display_name: str
    origin_name: str = "Rio de Janeiro"


@dataclass(slots=True)
class CalendarCandidate:
    outbound_date: str
    return_date: Optional[str]
    round_trip_price: Decimal
    # set only when both legs were priced separately
    outbound_price: Optional[Decimal] = None
    return_price: Optional[Decimal] = None


@dataclass(slots=True)
class ItineraryOption:
    carrier_name: str
    departure_timestamp: Optional[str]
    arrival_timestamp: Optional[str]
    duration_label: Optional[str]
    price: Optional[Decimal]
    stop_count: int = 0
    stop_durations: List[Optional[int]] = field(default_factory=list)
    stop_labels: List[str] = field(default_factory=list)
    next_token: Optional[str] = None
    # listed under the provider's top results
    primary: bool = True


@dataclass(slots=True)
class MatchedOffer:
    route: Route
    candidate: CalendarCandidate
    outbound: List[ItineraryOption]
    inbound: List[ItineraryOption] = field(default_factory=list)


class FetchStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(slots=True)
class FetchResult(Generic[T]):
    """Outcome of one external call.

    ``EMPTY`` means the provider answered with no data, ``FAILED`` means the
    call itself did not succeed. Both carry an empty ``items`` list so callers
    can iterate without branching.
    """

    status: FetchStatus
    items: List[T] = field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def ok(cls, items: List[T]) -> "FetchResult[T]":
        items = list(items)
        return cls(FetchStatus.OK if items else FetchStatus.EMPTY, items)

    @classmethod
    def failed(cls, error: str) -> "FetchResult[T]":
        return cls(FetchStatus.FAILED, [], error)

    @property
    def is_failed(self) -> bool:
        return self.status is FetchStatus.FAILED


__all__ = [
    "Route",
    "CalendarCandidate",
    "ItineraryOption",
    "MatchedOffer",
    "FetchStatus",
    "FetchResult",
]
