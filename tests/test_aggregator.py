"""Aggregator: paging, hydration, de-duplication, merge ordering, failure propagation."""

import asyncio

import pytest

from conftest import FakeGammaClient, event_payload, make_aggregator, market_payload
from polyhub.aggregation.aggregator import is_duplicate_of_event
from polyhub.ingestion.errors import UpstreamError
from polyhub.models.raw import RawMarketRecord


def _aggregate(aggregator, target):
    return asyncio.run(aggregator.aggregate(target))


def test_merged_list_sorted_by_volume_desc():
    client = FakeGammaClient(
        events=[event_payload("1", "Event one", volume=300), event_payload("2", "Event two", volume=50)],
        markets=[market_payload("m1", "Market one", volume=1000), market_payload("m2", "Market two", volume=120)],
    )
    merged = _aggregate(make_aggregator(client), 10)
    volumes = [m.total_volume for m in merged]
    assert volumes == sorted(volumes, reverse=True)
    assert [m.id for m in merged] == ["m1", "event-1", "m2", "event-2"]


def test_equal_volumes_keep_encounter_order():
    client = FakeGammaClient(
        events=[event_payload("1", "E1", volume=100), event_payload("2", "E2", volume=100)],
        markets=[market_payload("a", "A", volume=100), market_payload("b", "B", volume=100)],
    )
    merged = _aggregate(make_aggregator(client), 10)
    assert [m.id for m in merged] == ["event-1", "event-2", "a", "b"]


def test_closed_and_inactive_records_are_dropped():
    client = FakeGammaClient(
        events=[
            event_payload("1", "Open"),
            event_payload("2", "Closed", closed=True),
            event_payload("3", "Inactive", active=False),
            {"id": "4", "title": "No flags"},
        ],
        markets=[
            market_payload("m1", "Open market"),
            market_payload("m2", "Closed market", closed=True),
            market_payload("m3", "Inactive market", active=False),
        ],
    )
    ids = {m.id for m in _aggregate(make_aggregator(client), 10)}
    assert ids == {"event-1", "event-4", "m1"}


def test_dedup_drops_market_restating_included_event():
    client = FakeGammaClient(
        events=[event_payload("10", "Will Trump win the 2028 election?", volume=5000)],
        markets=[
            # same parent, same question (modulo case/punctuation) -> duplicate
            market_payload("m1", "will trump win the 2028 election", events=[{"id": "10", "title": "x"}]),
            # same parent, different question -> distinct sub-market, kept
            market_payload("m2", "Will Vance win the 2028 election?", events=[{"id": "10"}]),
            # same question but parent not included -> kept
            market_payload("m3", "Will Trump win the 2028 election?", events=[{"id": "99"}]),
        ],
    )
    merged = _aggregate(make_aggregator(client), 10)
    assert {m.id for m in merged} == {"event-10", "m2", "m3"}


def test_dedup_invariant_holds_for_included_markets():
    events = [event_payload(str(i), f"Event {i}") for i in range(5)]
    markets = [
        market_payload(f"m{i}", f"Event {i % 7}", events=[{"id": str(i % 7)}]) for i in range(20)
    ]
    client = FakeGammaClient(events=events, markets=markets)
    merged = _aggregate(make_aggregator(client), 50)
    titles = {f"event-{i}": f"event {i}" for i in range(5)}
    market_ids = {m.id for m in merged if m.source == "market"}
    for raw in client.markets:
        if raw.id in market_ids:
            for ref in raw.events:
                if f"event-{ref.id}" in titles:
                    assert raw.question.lower() != titles[f"event-{ref.id}"]


def test_is_duplicate_of_event_requires_id_and_title():
    keys = {"1": "who wins"}
    dup = RawMarketRecord.model_validate(market_payload("a", "Who wins?", events=[{"id": "1"}]))
    sibling = RawMarketRecord.model_validate(market_payload("b", "Who loses?", events=[{"id": "1"}]))
    orphan = RawMarketRecord.model_validate(market_payload("c", "Who wins?"))
    assert is_duplicate_of_event(dup, keys)
    assert not is_duplicate_of_event(sibling, keys)
    assert not is_duplicate_of_event(orphan, keys)


def test_hydrates_only_first_n_events_and_falls_back_to_summary():
    events = [event_payload(str(i), f"E{i}", volume=10 * i) for i in range(1, 8)]
    details = {
        "1": event_payload(
            "1", "E1 detail", volume=10, markets=[market_payload("s", "S", prices=["0.9", "0.1"])]
        ),
        "2": None,
    }
    client = FakeGammaClient(events=events, details=details)
    merged = _aggregate(make_aggregator(client, event_detail_limit=3), 1)
    assert client.detail_calls == ["1", "2", "3"]
    by_id = {m.id: m for m in merged}
    assert by_id["event-1"].question == "E1 detail"
    assert by_id["event-1"].current_prices == {"yes": 0.9, "no": 0.1}
    assert by_id["event-2"].question == "E2"
    assert len(merged) == 7


def test_events_paging_stops_on_empty_page():
    client = FakeGammaClient(events=[event_payload(str(i), f"E{i}") for i in range(4)])
    _aggregate(make_aggregator(client, events_page_size=4, events_max_pages=5), 1)
    event_calls = [c for c in client.page_calls if c[0] == "events"]
    assert event_calls == [("events", 4, 0), ("events", 4, 4)]


def test_events_paging_respects_page_cap_and_skips_repeats():
    events = [event_payload(str(i % 3), f"E{i}") for i in range(30)]
    client = FakeGammaClient(events=events)
    merged = _aggregate(make_aggregator(client, events_page_size=10, events_max_pages=2), 1)
    assert len([c for c in client.page_calls if c[0] == "events"]) == 2
    assert sorted(m.id for m in merged) == ["event-0", "event-1", "event-2"]


def test_markets_paging_stops_when_target_reached():
    client = FakeGammaClient(
        events=[event_payload("1", "E")],
        markets=[market_payload(f"m{i}", f"M{i}") for i in range(100)],
    )
    merged = _aggregate(make_aggregator(client, markets_page_size=10), 25)
    market_calls = [c for c in client.page_calls if c[0] == "markets"]
    assert market_calls == [("markets", 10, 0), ("markets", 10, 10), ("markets", 10, 20)]
    assert len(merged) == 31


def test_markets_paging_has_safety_cutoff():
    client = FakeGammaClient(markets=[market_payload(f"m{i}", f"M{i}", closed=True) for i in range(100)])
    merged = _aggregate(make_aggregator(client, markets_page_size=10, markets_max_pages=3), 50)
    assert len([c for c in client.page_calls if c[0] == "markets"]) == 3
    assert merged == []


def test_no_market_pages_when_events_cover_target():
    client = FakeGammaClient(
        events=[event_payload(str(i), f"E{i}") for i in range(6)],
        markets=[market_payload("m", "M")],
    )
    _aggregate(make_aggregator(client), 5)
    assert not [c for c in client.page_calls if c[0] == "markets"]


def test_pauses_between_page_fetches():
    delays = []

    async def fake_sleep(d):
        delays.append(d)

    client = FakeGammaClient(
        events=[event_payload(str(i), f"E{i}") for i in range(12)],
        markets=[market_payload(f"m{i}", f"M{i}") for i in range(30)],
    )
    aggregator = make_aggregator(client, page_delay_sec=0.15, sleep=fake_sleep, events_max_pages=2)
    _aggregate(aggregator, 30)
    page_fetches = len(client.page_calls)
    assert delays == [0.15] * (page_fetches - 1)


def test_upstream_error_propagates():
    client = FakeGammaClient(events=[event_payload("1", "E")])
    client.error = UpstreamError("HTTP 500", status=500)
    with pytest.raises(UpstreamError):
        _aggregate(make_aggregator(client), 10)
