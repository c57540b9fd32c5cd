import pytest
import requests
from fakes_http import FakeResponse, FakeSession

from ride_sim.domain.geo import Coordinate
from ride_sim.services.places import (
    FALLBACK_SUGGESTIONS,
    GooglePlacesClient,
    PlacesUnavailable,
    StaticPlacesClient,
)


def test_autocomplete_maps_predictions():
    http = FakeSession(
        FakeResponse(
            {
                "status": "OK",
                "predictions": [
                    {
                        "place_id": "abc",
                        "description": "Ferry Building, San Francisco, CA",
                        "structured_formatting": {
                            "main_text": "Ferry Building",
                            "secondary_text": "San Francisco, CA",
                        },
                    },
                    {"place_id": "def", "description": "Pier 39"},
                ],
            }
        )
    )
    client = GooglePlacesClient("k", session=http)
    out = client.autocomplete("fer", near=Coordinate(37.77, -122.42))
    assert [(s.id, s.name, s.subtitle) for s in out] == [
        ("abc", "Ferry Building", "San Francisco, CA"),
        ("def", "Pier 39", ""),
    ]
    _, params = http.calls[0]
    assert params["location"] == "37.77,-122.42"
    assert params["radius"] == "20000"


def test_autocomplete_zero_results_is_empty():
    http = FakeSession(FakeResponse({"status": "ZERO_RESULTS", "predictions": []}))
    assert GooglePlacesClient("k", session=http).autocomplete("zzz") == []


@pytest.mark.parametrize(
    "http",
    [
        FakeSession(FakeResponse({"status": "REQUEST_DENIED"})),
        FakeSession(FakeResponse({}, status_code=503)),
        FakeSession(exc=requests.ConnectionError("down")),
    ],
)
def test_autocomplete_failures_raise(http):
    with pytest.raises(PlacesUnavailable):
        GooglePlacesClient("k", session=http).autocomplete("x")


def test_missing_key_raises():
    with pytest.raises(PlacesUnavailable):
        GooglePlacesClient("").autocomplete("x")


def test_details_returns_coordinate_or_none():
    http = FakeSession(
        FakeResponse({"status": "OK", "result": {"geometry": {"location": {"lat": 1.5, "lng": 2.5}}}}),
        FakeResponse({"status": "NOT_FOUND"}),
    )
    client = GooglePlacesClient("k", session=http)
    assert client.details("abc") == Coordinate(1.5, 2.5)
    assert client.details("missing") is None


def test_static_client_filters_by_text():
    client = StaticPlacesClient({s.id: s for s in FALLBACK_SUGGESTIONS})
    assert [s.name for s in client.autocomplete("sfo")] == ["Airport"]
    assert client.details("2") == Coordinate(37.7858, -122.401)


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "OK", "result": {"geometry": {"location": {"lat": 1.5}}}},
        {"status": "OK", "result": {"geometry": {"location": {"lat": 95.0, "lng": 2.5}}}},
        {"status": "OK", "result": {"geometry": {"location": {"lat": "north", "lng": 2.5}}}},
        {"status": "OK", "result": {"geometry": []}},
        {"status": "OK"},
    ],
)
def test_details_with_unusable_location_is_none(payload):
    client = GooglePlacesClient("k", session=FakeSession(FakeResponse(payload)))
    assert client.details("abc") is None


@pytest.mark.parametrize(
    "payload",
    [
        [{"place_id": "abc"}],  # body is a list
        {"status": "OK", "predictions": ["Ferry Building"]},
        {"status": "OK", "predictions": [{"place_id": "abc", "structured_formatting": "Ferry"}]},
    ],
)
def test_malformed_autocomplete_payload_raises_unavailable(payload):
    client = GooglePlacesClient("k", session=FakeSession(FakeResponse(payload)))
    with pytest.raises(PlacesUnavailable):
        client.autocomplete("fer")


def test_details_list_body_raises_unavailable():
    client = GooglePlacesClient("k", session=FakeSession(FakeResponse(["nope"])))
    with pytest.raises(PlacesUnavailable):
        client.details("abc")
