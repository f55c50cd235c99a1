import pytest

from companion_core.application.validate_reading import normalize_timestamp, parse_reading
from companion_core.domain.errors import ValidationError
from companion_core.domain.models import ReadingKind

NODE_PAYLOAD = {"node": "esp32-01", "pm25": 12, "pm10": 20, "lat": 45.46, "lon": 9.19}


def test_node_reading_keeps_every_field():
    reading = parse_reading({**NODE_PAYLOAD, "timestamp": 1_700_000_000_000})
    assert reading.kind == ReadingKind.NODE
    assert reading.node == "esp32-01"
    assert reading.pm25 == 12.0
    assert reading.pm10 == 20.0
    assert reading.timestamp == 1_700_000_000_000


@pytest.mark.parametrize("field", ["pm25", "pm10", "lat", "lon"])
def test_node_reading_missing_field_is_rejected(field):
    payload = {k: v for k, v in NODE_PAYLOAD.items() if k != field}
    with pytest.raises(ValidationError) as exc:
        parse_reading(payload)
    assert exc.value.reason == f"missing {field}"


def test_node_id_is_optional():
    payload = {k: v for k, v in NODE_PAYLOAD.items() if k != "node"}
    assert parse_reading(payload).node is None


def test_numeric_strings_are_coerced():
    reading = parse_reading({"pm25": "12.5", "pm10": " 20 ", "lat": "45.46", "lon": "9.19"})
    assert reading.pm25 == 12.5
    assert reading.pm10 == 20.0
    assert reading.lat == 45.46


@pytest.mark.parametrize(
    "override, reason",
    [
        ({"pm25": "dust"}, "invalid pm25: not a number"),
        ({"pm10": True}, "invalid pm10: not a number"),
        ({"pm25": float("nan")}, "invalid pm25: not finite"),
        ({"pm25": -1}, "invalid pm25: negative"),
        ({"lat": 91}, "invalid lat: out of range"),
        ({"lon": -180.5}, "invalid lon: out of range"),
    ],
)
def test_malformed_values_are_rejected(override, reason):
    with pytest.raises(ValidationError) as exc:
        parse_reading({**NODE_PAYLOAD, **override})
    assert exc.value.reason == reason


def test_mobile_reading_requires_pm25_and_position_only():
    reading = parse_reading(
        {"pm25": 8, "pm10": 30, "lat": 45.0, "lon": 9.0, "node": "phone"},
        kind=ReadingKind.MOBILE,
        received_at_ms=42_000,
    )
    assert reading.kind == ReadingKind.MOBILE
    assert reading.pm10 is None
    assert reading.node is None
    assert reading.timestamp == 42_000

    with pytest.raises(ValidationError) as exc:
        parse_reading({"lat": 45.0, "lon": 9.0}, kind=ReadingKind.MOBILE)
    assert exc.value.reason == "missing pm25"


def test_reading_without_position_is_rejected():
    with pytest.raises(ValidationError) as exc:
        parse_reading({"pm25": 3, "pm10": 4})
    assert exc.value.reason == "missing lat, lon"


def test_missing_timestamp_uses_receive_time():
    assert parse_reading(NODE_PAYLOAD, received_at_ms=1234).timestamp == 1234


@pytest.mark.parametrize("seconds", [0, 1, 1_700_000_000, 99_999_999_999])
def test_seconds_and_milliseconds_normalise_to_the_same_instant(seconds):
    assert normalize_timestamp(seconds) == normalize_timestamp(seconds * 1000)


def test_timestamp_accepts_numeric_and_iso_strings():
    assert normalize_timestamp("1700000000") == 1_700_000_000_000
    assert normalize_timestamp("2023-11-14T22:13:20Z") == 1_700_000_000_000


@pytest.mark.parametrize("value", ["yesterday", -5])
def test_bad_timestamps_are_rejected(value):
    with pytest.raises(ValidationError):
        normalize_timestamp(value)
