"""Tests for Polymarket extraction and the Polymarket fetch cycle."""

import pytest

from radar.core.errors import FeedParseError
from radar.models.contracts import ContentType
from radar.models.schema import ContentItem
from radar.scraping.polymarket import (
    PolymarketFetchCycle,
    current_yes_price,
    extract_prediction_item,
    format_odds,
    format_volume,
    safe_array,
)

EVENTS_URL = "https://gamma-api.polymarket.com/events"


def _event(event_id="501", title="Will the Fed cut rates in December?", yes="0.63", volume=1_234_567):
    no = f"{1 - float(yes):.2f}"
    return {
        "id": event_id,
        "slug": "fed-december-cut",
        "title": title,
        "description": "Resolves yes on a cut.",
        "image": "https://polymarket-upload.example/fed.png",
        "volume": volume,
        "volume24hr": 50_000,
        "liquidity": 20_000,
        "startDate": "2025-09-01T00:00:00Z",
        "endDate": "2025-12-31T00:00:00Z",
        "tags": [{"slug": "economy"}],
        "markets": [{"outcomes": '["Yes", "No"]', "outcomePrices": f'["{yes}", "{no}"]'}],
    }


def test_safe_array_accepts_json_strings():
    assert safe_array('["a", "b"]') == ["a", "b"]
    assert safe_array(["a"]) == ["a"]
    assert safe_array("not json") == []
    assert safe_array('{"a": 1}') == []
    assert safe_array(None) == []


def test_format_odds():
    assert format_odds(_event()) == "Yes: 63% | No: 37%"
    assert format_odds({"markets": []}) == ""


@pytest.mark.parametrize(
    "volume,expected",
    [
        (1_234_567, "$1.2M"),
        ("350000", "$350K"),
        (12.4, "$12"),
        (None, ""),
        ("n/a", ""),
    ],
)
def test_format_volume(volume, expected):
    assert format_volume(volume) == expected


def test_current_yes_price():
    assert current_yes_price(_event(yes="0.25")) == 0.25
    assert current_yes_price({"markets": [{"outcomes": '["Up", "Down"]'}]}) is None


def test_extract_prediction_item():
    item = extract_prediction_item(_event())

    assert item.external_id == "polymarket:501"
    assert item.type == ContentType.PREDICTION
    assert item.summary == "Yes: 63% | No: 37%"
    assert item.url == "https://polymarket.com/event/fed-december-cut"
    assert item.author == "$1.2M volume"
    assert item.published_at.year == 2025
    assert item.metadata["currentYesPrice"] == 0.63
    assert item.metadata["tags"] == [{"slug": "economy"}]


def test_event_without_id_is_rejected():
    with pytest.raises(FeedParseError):
        extract_prediction_item({"title": "No id"})


def test_cycle_filters_and_refreshes(fake_http, make_source, store, db_session):
    make_source("polymarket", "https://polymarket.com", name="Markets")
    sports = _event(event_id="900", title="NBA Finals Game 7 Prediction")
    fake_http.add(EVENTS_URL, json=[_event(yes="0.40"), sports])
    cycle = PolymarketFetchCycle(store=store, http=fake_http)

    first = cycle.run("acct-1")

    assert first.items_fetched == 2
    assert first.items_filtered_out == 1
    assert first.items_inserted == 1
    params = fake_http.calls[0][1]
    assert params["active"] == "true"
    assert params["closed"] == "false"
    assert params["order"] == "volume24hr"

    fake_http.add(EVENTS_URL, json=[_event(yes="0.55")])
    second = cycle.run("acct-1")

    assert second.items_updated == 1
    db_session.expire_all()
    row = db_session.query(ContentItem).one()
    assert row.item_metadata["currentYesPrice"] == 0.55
    assert row.item_metadata["previousYesPrice"] == 0.40
    assert row.summary == "Yes: 55% | No: 45%"


def test_sports_kept_when_source_opts_out(fake_http, make_source, store):
    make_source(
        "polymarket",
        "https://polymarket.com",
        name="Markets",
        metadata={"polymarketExcludeSports": False},
    )
    fake_http.add(EVENTS_URL, json=[_event(event_id="900", title="NBA Finals Game 7 Prediction")])

    result = PolymarketFetchCycle(store=store, http=fake_http).run("acct-1")

    assert result.items_filtered_out == 0
    assert result.items_inserted == 1


def test_non_list_payload_fails_the_source(fake_http, make_source, store):
    make_source("polymarket", "https://polymarket.com", name="Markets")
    fake_http.add(EVENTS_URL, json={"error": "maintenance"})

    result = PolymarketFetchCycle(store=store, http=fake_http).run("acct-1")

    assert result.sources_failed == 1
    assert result.per_source_errors[0].message.startswith("Markets: ")


def test_non_finite_prices_count_as_zero():
    event = {"markets": [{"outcomes": '["Yes", "No"]', "outcomePrices": '["Infinity", "NaN"]'}]}

    assert format_odds(event) == "Yes: 0% | No: 0%"
    assert current_yes_price(event) is None
    assert format_volume("inf") == ""


def test_event_with_infinite_price_does_not_fail_the_source(fake_http, make_source, store):
    make_source("polymarket", "https://polymarket.com", name="Markets")
    broken = _event(event_id="777", title="Will prices go to the moon?")
    broken["markets"] = [{"outcomes": '["Yes", "No"]', "outcomePrices": '["Infinity", "0"]'}]
    fake_http.add(EVENTS_URL, json=[broken, _event()])

    result = PolymarketFetchCycle(store=store, http=fake_http).run("acct-1")

    assert result.sources_failed == 0
    assert result.items_inserted == 2
