from __future__ import annotations

import decimal
import logging
from datetime import date
from decimal import Decimal
from typing import Any, Optional

import requests

from .models import CalendarCandidate, FetchResult, ItineraryOption

logger = logging.getLogger(__name__)


class FareAlertError(RuntimeError):
    """Base error of the fare alert pipeline."""


class GoogleFlightsFetcherError(FareAlertError):
    """Error while talking to the Google Flights API on RapidAPI."""


class GoogleFlightsFetcher:
    """
    Client of the Google Flights API published on RapidAPI.

    Every public method returns a :class:`FetchResult`; transport, HTTP and
    payload errors are logged and reported as ``FAILED`` instead of raised.
    """

    def __init__(
        self,
        api_key: str,
        *,
        session: Optional[requests.Session] = None,
        host: str = "google-flights2.p.rapidapi.com",
        base_url: str | None = None,
        timeout: float = 15.0,
        currency: str = "BRL",
        country_code: str = "BR",
        language_code: str = "pt-BR",
        travel_class: str = "ECONOMY",
        adults: int = 1,
    ) -> None:
        self.api_key = api_key
        self.host = host
        self.base_url = (base_url or f"https://{host}/api/v1").rstrip("/")
        self.timeout = timeout
        self.currency = currency
        self.country_code = country_code
        self.language_code = language_code
        self.travel_class = travel_class
        self.adults = adults
        self.session = session or requests.Session()
        self.session.headers.update(
            {"x-rapidapi-key": self.api_key, "x-rapidapi-host": self.host}
        )

    @classmethod
    def from_settings(cls, settings, session=None) -> "GoogleFlightsFetcher":
        return cls(
            settings.rapidapi_key,
            session=session,
            host=settings.rapidapi_host,
            timeout=settings.http_timeout_s,
            currency=settings.currency,
            country_code=settings.country_code,
            language_code=settings.language_code,
            travel_class=settings.travel_class,
            adults=settings.adults,
        )

    # ──────────────────────────────────────────────────────────

    def calendar_picker(
        self,
        origin: str,
        destination: str,
        start_date: str,
        end_date: str,
        *,
        trip_days: int = 11,
        one_way: bool = False,
    ) -> FetchResult[CalendarCandidate]:
        """Return day prices for *origin* → *destination* in the window."""
        params = {
            "departure_id": origin,
            "arrival_id": destination,
            "start_date": start_date,
            "end_date": end_date,
            "travel_class": self.travel_class,
            "trip_type": "ONE_WAY" if one_way else "ROUND",
            "adults": str(self.adults),
            "children": "0",
            "infant_on_lap": "0",
            "infant_in_seat": "0",
            "currency": self.currency,
            "country_code": self.country_code,
        }
        if not one_way:
            params["trip_days"] = str(trip_days)

        stage = f"calendar {origin}-{destination}"
        try:
            data = self._get("getCalendarPicker", params)
        except (requests.RequestException, ValueError, GoogleFlightsFetcherError) as exc:
            logger.warning("Failed to fetch %s: %s", stage, exc)
            return FetchResult.failed(str(exc))

        if not isinstance(data, list):
            logger.warning("Unexpected payload for %s: %r", stage, data)
            return FetchResult.failed("calendar payload is not a list")

        candidates = [self._to_candidate(item, one_way) for item in data]
        return FetchResult.ok([c for c in candidates if c])

    def search_flights(
        self,
        origin: str,
        destination: str,
        outbound_date: str,
        return_date: str | None = None,
    ) -> FetchResult[ItineraryOption]:
        """Return top and other itineraries for one date (pair)."""
        params = {
            "departure_id": origin,
            "arrival_id": destination,
            "outbound_date": outbound_date,
            "travel_class": self.travel_class,
            "adults": str(self.adults),
            "children": "0",
            "infant_on_lap": "0",
            "infant_in_seat": "0",
            "show_hidden": "1",
            "currency": self.currency,
            "language_code": self.language_code,
            "country_code": self.country_code,
        }
        if return_date:
            params["return_date"] = return_date

        stage = f"search {origin}-{destination} {outbound_date}/{return_date or 'OW'}"
        return self._itineraries("searchFlights", params, stage)

    def next_flights(self, next_token: str | None) -> FetchResult[ItineraryOption]:
        """Follow a continuation token to the paired leg's itineraries."""
        if not next_token:
            logger.info("No next_token, return leg not requested")
            return FetchResult.ok([])

        params = {
            "next_token": next_token,
            "show_hidden": "1",
            "currency": self.currency,
            "language_code": self.language_code,
            "country_code": self.country_code,
        }
        return self._itineraries("getNextFlights", params, "next_flights")

    # ──────────────────────────────────────────────────────────

    def _get(self, endpoint: str, params: dict[str, str]) -> Any:
        resp = self.session.get(
            f"{self.base_url}/{endpoint}", params=params, timeout=self.timeout
        )
        if resp.status_code != 200:
            raise GoogleFlightsFetcherError(
                f"HTTP {resp.status_code} – {resp.text[:120]}"
            )

        payload = resp.json()
        if not isinstance(payload, dict):
            raise GoogleFlightsFetcherError("payload is not an object")
        if payload.get("status") is False:
            raise GoogleFlightsFetcherError(f"API error: {payload.get('message')}")
        return payload.get("data")

    def _itineraries(
        self, endpoint: str, params: dict[str, str], stage: str
    ) -> FetchResult[ItineraryOption]:
        try:
            data = self._get(endpoint, params)
        except (requests.RequestException, ValueError, GoogleFlightsFetcherError) as exc:
            logger.warning("Failed to fetch %s: %s", stage, exc)
            return FetchResult.failed(str(exc))

        if data is None:
            return FetchResult.ok([])
        if not isinstance(data, dict):
            logger.warning("Unexpected payload for %s: %r", stage, data)
            return FetchResult.failed("itinerary payload is not an object")

        itineraries = data.get("itineraries") or {}
        top = list(itineraries.get("topFlights") or [])
        other = list(itineraries.get("otherFlights") or [])
        options = [self._to_option(item, True) for item in top]
        options += [self._to_option(item, False) for item in other]
        return FetchResult.ok([o for o in options if o])

    @staticmethod
    def _to_price(raw: Any) -> Decimal | None:
        if raw is None or isinstance(raw, bool):
            return None
        try:
            price = Decimal(str(raw))
        except decimal.InvalidOperation:
            return None
        return price if price.is_finite() else None

    def _to_candidate(self, item: Any, one_way: bool) -> CalendarCandidate | None:
        """Map a calendar record onto a CalendarCandidate."""
        if not isinstance(item, dict) or not item.get("departure"):
            return None
        price = self._to_price(item.get("price"))
        if price is None:
            return None

        ret = None if one_way else item.get("return")
        if not one_way and not ret:
            return None

        try:
            depart = date.fromisoformat(str(item["departure"])[:10])
            return_dt = date.fromisoformat(str(ret)[:10]) if ret else None
        except ValueError:
            return None

        return CalendarCandidate(
            outbound_date=depart.isoformat(),
            return_date=return_dt.isoformat() if return_dt else None,
            round_trip_price=price,
        )

    def _to_option(self, item: Any, primary: bool = True) -> ItineraryOption | None:
        """Map an itinerary record onto an ItineraryOption."""
        if not isinstance(item, dict):
            return None

        segments = item.get("flights") or []
        carrier = segments[0].get("airline", "") if segments else ""
        duration = item.get("duration") or {}
        layovers = item.get("layovers") or []

        stop_durations: list[Optional[int]] = []
        stop_labels: list[str] = []
        for layover in layovers:
            try:
                stop_durations.append(int(layover["duration"]))
            except (KeyError, TypeError, ValueError):
                stop_durations.append(None)
            stop_labels.append(
                layover.get("duration_label")
                or layover.get("airport_code")
                or ""
            )

        return ItineraryOption(
            carrier_name=carrier or "",
            departure_timestamp=item.get("departure_time"),
            arrival_timestamp=item.get("arrival_time"),
            duration_label=duration.get("text") if isinstance(duration, dict) else None,
            price=self._to_price(item.get("price")),
            stop_count=len(layovers),
            stop_durations=stop_durations,
            stop_labels=stop_labels,
            next_token=item.get("next_token"),
            primary=primary,
        )


__all__ = ["FareAlertError", "GoogleFlightsFetcher", "GoogleFlightsFetcherError"]
