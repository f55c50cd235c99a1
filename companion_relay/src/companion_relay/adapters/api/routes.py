from companion_core.domain.models import ReadingKind
from fastapi import APIRouter, Depends

from companion_relay.adapters.api.schemas import ErrorOut, HelloOut, ReadingIn, ReadingOut, StatusOut
from companion_relay.relay import Relay, get_relay

router = APIRouter()


@router.get("/api/hello", response_model=HelloOut)
def hello():
    return HelloOut(message="Hello from the relay!")


@router.post("/data", response_model=StatusOut, responses={400: {"model": ErrorOut}})
def submit_data(
    reading_in: ReadingIn,
    relay: Relay = Depends(get_relay),
):
    relay.submit(reading_in.model_dump(exclude_none=True), ReadingKind.NODE)
    return StatusOut(status="OK")


@router.get("/data", response_model=list[ReadingOut], response_model_exclude_none=True)
def history(relay: Relay = Depends(get_relay)):
    return [ReadingOut.from_domain(r) for r in relay.history.snapshot()]
