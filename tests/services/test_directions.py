import pytest
import requests
from fakes_http import FakeResponse, FakeSession

from ride_sim.domain.geo import Coordinate
from ride_sim.services.directions import (
    DirectionsUnavailable,
    GoogleDirectionsGateway,
    RawStep,
    RouteResult,
    StaticDirectionsGateway,
    parse_directions_payload,
    resolve_route,
    straight_line_estimate,
)

ORIGIN = Coordinate(38.5, -120.2)
DEST = Coordinate(43.252, -126.453)
FIXTURE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def ok_payload(**over):
    body = {
        "status": "OK",
        "routes": [
            {
                "overview_polyline": {"points": FIXTURE},
                "legs": [
                    {
                        "distance": {"value": 12_345},
                        "duration": {"value": 1_290},
                        "steps": [
                            {
                                "html_instructions": "Head <b>north</b> on <b>1st&nbsp;Ave</b>",
                                "distance": {"value": 400},
                                "duration": {"value": 60},
                            },
                            {
                                "html_instructions": "Turn <b>right</b> at A&amp;B",
                                "distance": {"value": 11_945},
                                "duration": {"value": 1_230},
                            },
                        ],
                    }
                ],
            }
        ],
    }
    body.update(over)
    return body


def test_parse_ok_payload():
    result = parse_directions_payload(ok_payload())
    assert result.encoded_polyline == FIXTURE
    assert result.distance_meters == 12_345
    assert result.duration_seconds == 1_290
    assert [s.instruction_markup for s in result.steps][0].startswith("Head <b>north</b>")


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "ZERO_RESULTS", "routes": []},
        {"status": "OK", "routes": [{"legs": [{}]}]},  # no polyline
        {"status": "OK", "routes": [{"overview_polyline": {"points": FIXTURE}, "legs": []}]},
    ],
)
def test_parse_absent_shapes(payload):
    assert parse_directions_payload(payload) is None


def test_parse_bad_status_raises():
    with pytest.raises(DirectionsUnavailable):
        parse_directions_payload({"status": "REQUEST_DENIED"})


def test_gateway_sends_driving_request():
    http = FakeSession(FakeResponse(ok_payload()))
    gw = GoogleDirectionsGateway("k", session=http)
    result = gw.fetch_route(ORIGIN, DEST)
    assert isinstance(result, RouteResult)
    _, params = http.calls[0]
    assert params["mode"] == "driving"
    assert params["origin"] == "38.5,-120.2"
    assert params["destination"] == "43.252,-126.453"
    assert params["key"] == "k"


@pytest.mark.parametrize(
    "http",
    [
        FakeSession(FakeResponse({}, status_code=500)),
        FakeSession(FakeResponse(bad_json=True)),
        FakeSession(FakeResponse({"status": "OVER_QUERY_LIMIT"})),
        FakeSession(exc=requests.Timeout("slow")),
        FakeSession(exc=requests.ConnectionError("down")),
    ],
)
def test_gateway_failures_are_absent(http):
    assert GoogleDirectionsGateway("k", session=http).fetch_route(ORIGIN, DEST) is None


def test_gateway_without_key_makes_no_request():
    http = FakeSession()
    assert GoogleDirectionsGateway("", session=http).fetch_route(ORIGIN, DEST) is None
    assert http.calls == []


def test_straight_line_estimate_has_five_minute_floor():
    near = straight_line_estimate(ORIGIN, Coordinate(38.501, -120.2))
    assert near.duration_minutes == 5
    assert near.source == "straight_line"
    far = straight_line_estimate(Coordinate(0, 0), Coordinate(0.1, 0))  # ~11.1 km
    assert far.distance_km == 11.1
    assert far.duration_minutes == 33


def test_resolve_route_uses_provider_data():
    gw = StaticDirectionsGateway(parse_directions_payload(ok_payload()))
    route = resolve_route(gw, ORIGIN, DEST)
    assert route.from_provider
    assert route.estimate.distance_km == 12.3
    assert route.estimate.duration_minutes == 22  # 21.5 rounds up
    assert route.path == [ORIGIN, Coordinate(40.7, -120.95), DEST]
    assert [s.instruction for s in route.steps] == [
        "Head north on 1st Ave",
        "Turn right at A&B",
    ]
    assert route.steps[1].distance_meters == 11_945


def test_resolve_route_short_trip_is_at_least_a_minute():
    gw = StaticDirectionsGateway(RouteResult(FIXTURE, 80, 10, [RawStep("Go", 80, 10)]))
    route = resolve_route(gw, ORIGIN, DEST)
    assert route.estimate.duration_minutes == 1
    assert route.estimate.distance_km == 0.1


class ExplodingGateway:
    def fetch_route(self, origin, destination):
        raise RuntimeError("boom")


@pytest.mark.parametrize("gw", [None, StaticDirectionsGateway(None), ExplodingGateway()])
def test_resolve_route_falls_back_to_straight_line(gw):
    route = resolve_route(gw, ORIGIN, DEST)
    assert not route.from_provider
    assert route.path == [ORIGIN, DEST]
    assert route.steps == []
    assert route.estimate == straight_line_estimate(ORIGIN, DEST)
