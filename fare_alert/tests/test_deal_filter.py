from decimal import Decimal

import pytest

from fare_alert.deal_filter import (
    DirectOnly,
    ShortLayover,
    filter_by_price,
    match_options,
    pair_one_way_days,
    policy_from_name,
    return_day,
)
from fare_alert.models import CalendarCandidate, ItineraryOption


def cand(dep, ret, price):
    return CalendarCandidate(dep, ret, Decimal(str(price)))


def option(price, stops=0, layovers=None, carrier="GOL"):
    return ItineraryOption(
        carrier_name=carrier,
        departure_timestamp="2025-05-05 10:30 AM",
        arrival_timestamp="2025-05-05 12:40 PM",
        duration_label="2 h 10 min",
        price=Decimal(str(price)),
        stop_count=stops,
        stop_durations=list(layovers or []),
    )


def test_filter_example_calendar():
    calendar = [
        cand("2025-05-05", "2025-05-16", 650),
        cand("2025-05-06", "2025-05-17", 720),
    ]
    result = filter_by_price(calendar, Decimal("700"))
    assert result == [calendar[0]]


@pytest.mark.parametrize(
    "price, kept",
    [(699.99, True), (700, False), (700.01, False), (0, True)],
)
def test_filter_is_strict(price, kept):
    result = filter_by_price([cand("2025-05-05", "2025-05-16", price)], Decimal("700"))
    assert bool(result) is kept


def test_filter_empty():
    assert filter_by_price([], Decimal("700")) == []


def test_return_day_crosses_month():
    assert return_day("2025-05-25", 12) == "2025-06-06"


def test_pair_one_way_days():
    outbound = [
        cand("2025-05-01", None, 300),
        cand("2025-05-02", None, 400),  # leg too expensive
        cand("2025-05-03", None, 200),  # return leg too expensive
        cand("2025-05-04", None, 100),  # no return day priced
    ]
    inbound = [
        cand("2025-05-13", None, 250),
        cand("2025-05-14", None, 100),
        cand("2025-05-15", None, 360),
    ]
    pairs = pair_one_way_days(outbound, inbound, threshold=Decimal("360"), offset_days=12)

    assert len(pairs) == 1
    pair = pairs[0]
    assert pair.outbound_date == "2025-05-01"
    assert pair.return_date == "2025-05-13"
    assert pair.outbound_price == Decimal("300")
    assert pair.return_price == Decimal("250")
    assert pair.round_trip_price == Decimal("550")


def test_direct_only():
    policy = DirectOnly()
    assert policy.accepts(option(650))
    assert not policy.accepts(option(650, stops=1, layovers=[30]))


def test_short_layover():
    policy = ShortLayover(90)
    assert policy.accepts(option(650))
    assert policy.accepts(option(650, stops=1, layovers=[90]))
    assert not policy.accepts(option(650, stops=1, layovers=[91]))
    assert not policy.accepts(option(650, stops=1, layovers=[None]))
    assert not policy.accepts(option(650, stops=2, layovers=[30, 30]))


def test_policy_from_name():
    assert isinstance(policy_from_name("strict"), DirectOnly)
    lenient = policy_from_name("lenient", 45)
    assert isinstance(lenient, ShortLayover)
    assert lenient.max_layover_min == 45
    with pytest.raises(ValueError):
        policy_from_name("anything")


def test_match_options_price_and_routing():
    direct = option(650)
    long_stop = option(650, stops=1, layovers=[120])
    short_stop = option(650, stops=1, layovers=[60])
    cheaper = option(649.99)
    options = [direct, long_stop, short_stop, cheaper]

    assert match_options(options, Decimal("650"), DirectOnly()) == [direct]
    assert match_options(options, Decimal("650"), ShortLayover(90)) == [direct, short_stop]


def test_match_options_120_minute_layover_excluded():
    direct = option(650)
    long_stop = option(650, stops=1, layovers=[120])
    for policy in (DirectOnly(), ShortLayover(90)):
        assert match_options([direct, long_stop], Decimal("650"), policy) == [direct]


def test_match_options_no_price_match():
    assert match_options([option(651), option(649)], Decimal("650"), DirectOnly()) == []


def test_match_options_price_equality_ignores_representation():
    # the provider sends 650 or 650.0 for the same fare
    assert match_options([option("650.0")], Decimal("650"), DirectOnly())
    assert match_options([option(650)], None, DirectOnly()) == []
