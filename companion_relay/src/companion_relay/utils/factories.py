import factory
from companion_core.application.validate_reading import now_ms
from companion_core.domain.models import Reading, ReadingKind


class ReadingFactory(factory.Factory):
    class Meta:
        model = Reading

    kind = ReadingKind.NODE
    node = factory.Sequence(lambda n: f"esp32-{n}")
    pm25 = 12.0
    pm10 = 20.0
    lat = 45.4642
    lon = 9.19
    timestamp = factory.LazyFunction(now_ms)


class MobileReadingFactory(ReadingFactory):
    kind = ReadingKind.MOBILE
    node = None
    pm10 = None
    pm25 = 8.0
