import pytest

from ride_sim.domain.geo import Coordinate
from ride_sim.domain.polyline_codec import decode, encode, strip_markup


def test_reference_fixture():
    assert decode("_p~iF~ps|U_ulLnnqC_mqNvxq`@") == [
        Coordinate(38.5, -120.2),
        Coordinate(40.7, -120.95),
        Coordinate(43.252, -126.453),
    ]


def test_empty_string_is_empty_path():
    assert decode("") == []


def test_encode_matches_reference():
    pts = [Coordinate(38.5, -120.2), Coordinate(40.7, -120.95), Coordinate(43.252, -126.453)]
    assert encode(pts) == "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


@pytest.mark.parametrize(
    "raw,clean",
    [
        ("Turn <b>left</b> onto <b>Market St</b>", "Turn left onto Market St"),
        ('Head <b>north</b><div style="font-size:0.9em">Toll road</div>', "Head northToll road"),
        ("Keep&nbsp;right at the fork", "Keep right at the fork"),
        ("Exit toward A&amp;B", "Exit toward A&B"),
        ("Merge &lt;carefully&gt; &eacute;", "Merge &lt;carefully&gt; &eacute;"),
        ("", ""),
    ],
)
def test_strip_markup(raw, clean):
    assert strip_markup(raw) == clean
