import math

EARTH_RADIUS_M = 6_371_000.0

# Milan, used when a reading has no usable coordinates
DEFAULT_POSITION = (45.4642, 9.19)


def haversine_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in metres between two WGS84 points."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(min(1.0, a)))


def position_or_default(lat, lon) -> tuple:
    """Map placement for a reading; falls back to DEFAULT_POSITION per missing axis."""
    return (
        lat if lat is not None else DEFAULT_POSITION[0],
        lon if lon is not None else DEFAULT_POSITION[1],
    )
