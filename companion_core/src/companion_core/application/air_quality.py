from companion_core.domain.models import AirQualityInfo

# (upper bound inclusive, info); the last entry catches everything above
_CATEGORIES = (
    (12.0, AirQualityInfo(category="excellent", label="Excellent", color="#22c55e")),
    (35.0, AirQualityInfo(category="moderate", label="Moderate", color="#eab308")),
    (55.0, AirQualityInfo(category="unhealthy", label="Unhealthy", color="#f97316")),
    (float("inf"), AirQualityInfo(category="dangerous", label="Dangerous", color="#ef4444")),
)


def air_quality_info(pm25: float) -> AirQualityInfo:
    """Badge and marker colour for a single PM2.5 concentration."""
    if pm25 < _CATEGORIES[0][0]:
        return _CATEGORIES[0][1]
    for upper, info in _CATEGORIES[1:]:
        if pm25 <= upper:
            return info
    return _CATEGORIES[-1][1]
