import time
from typing import Annotated, List

from fastapi import APIRouter, Depends

from dhansetu.features.sms.samples import TEST_SMS_SAMPLES
from dhansetu.features.sms.schemas import ParsedRecord, PendingSms, SmsParseRequest
from dhansetu.features.sms.service import SmsParserService, get_sms_parser_service

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.post("/parse", response_model=ParsedRecord)
async def parse_message(
    request: SmsParseRequest,
    service: Annotated[SmsParserService, Depends(get_sms_parser_service)]
):
    """Parse a single SMS. receivedAt defaults to the time of the request."""
    received_at = request.received_at if request.received_at is not None else _now_ms()
    return await service.parse_async(request.text, request.sender, received_at)


@router.post("/pending", response_model=List[ParsedRecord])
async def parse_pending_messages(
    messages: List[PendingSms],
    service: Annotated[SmsParserService, Depends(get_sms_parser_service)]
):
    """Parse SMS queued while the app was closed and return only financial ones."""
    return await service.parse_pending_async(messages)


@router.get("/samples", response_model=List[ParsedRecord])
async def parse_samples(
    service: Annotated[SmsParserService, Depends(get_sms_parser_service)]
):
    """Parse the built-in sample alerts, stamped with the current time."""
    now = _now_ms()
    return [await service.parse_async(s["sms"], s["sender"], now) for s in TEST_SMS_SAMPLES]
