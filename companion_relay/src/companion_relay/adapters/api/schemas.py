from typing import Any, Optional, Union

from companion_core.domain.models import Reading
from pydantic import BaseModel, Field


class ReadingIn(BaseModel):
    """Body of ``POST /data``.

    Measurements are passed through untouched so that presence checks and
    number coercion happen in the validator shared with the live channel.
    """

    node: Optional[Union[str, int]] = None
    pm25: Optional[Any] = Field(None, description="PM2.5 in µg/m³")
    pm10: Optional[Any] = Field(None, description="PM10 in µg/m³")
    lat: Optional[Any] = None
    lon: Optional[Any] = None
    timestamp: Optional[Any] = Field(
        None, description="Epoch seconds or milliseconds, or ISO-8601; receive time if absent"
    )


class ReadingOut(BaseModel):
    kind: str
    node: Optional[str] = None
    pm25: float
    pm10: Optional[float] = None
    lat: float
    lon: float
    timestamp: int

    @classmethod
    def from_domain(cls, reading: Reading) -> "ReadingOut":
        return cls(
            kind=reading.kind.value,
            node=reading.node,
            pm25=reading.pm25,
            pm10=reading.pm10,
            lat=reading.lat,
            lon=reading.lon,
            timestamp=reading.timestamp,
        )


class StatusOut(BaseModel):
    status: str


class ErrorOut(BaseModel):
    error: str


class HelloOut(BaseModel):
    message: str
