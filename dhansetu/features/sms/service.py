import inspect
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from dhansetu.core.config import Settings, get_settings
from dhansetu.features.categories.service import (
    CategorySuggester,
    KeywordCategorySuggester,
    RemoteCategorySuggester,
)
from dhansetu.features.sms.extractor import (
    UNKNOWN_PROVIDER,
    ContentDateTime,
    RuleBasedSmsExtractor,
    get_sms_extractor,
)
from dhansetu.features.sms.schemas import (
    Balance,
    BalanceKind,
    Classification,
    DateSource,
    MessageCategory,
    ParsedRecord,
    ParseMetadata,
    PendingSms,
    TransactionDetails,
    TransactionType,
)
from dhansetu.features.sms.scoring import assess, find_missing_fields, score_confidence

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

ACCOUNT_TYPES = {
    MessageCategory.CREDIT_CARD: "credit_card",
    MessageCategory.BANK_ACCOUNT: "savings",
}


def to_receipt_datetime(received_at_ms: int, tz: tzinfo) -> datetime:
    """Epoch milliseconds -> aware datetime in ``tz``, clamped to the datetime range."""
    try:
        return (EPOCH + timedelta(milliseconds=received_at_ms)).astimezone(tz)
    except OverflowError:
        logger.warning(f"[SmsParser] Receipt timestamp {received_at_ms} out of range, clamping")
        bound = datetime.max if received_at_ms > 0 else datetime.min
        return bound.replace(tzinfo=tz)


def default_suggester(settings: Settings) -> CategorySuggester:
    """Remote category service when one is configured, offline keyword table otherwise."""
    if settings.CATEGORY_SERVICE_URL:
        logger.info(f"[SmsParser] Using remote category service at {settings.CATEGORY_SERVICE_URL}")
        return RemoteCategorySuggester(
            url=settings.CATEGORY_SERVICE_URL,
            token=settings.CATEGORY_SERVICE_TOKEN,
            timeout=settings.CATEGORY_SERVICE_TIMEOUT,
        )
    return KeywordCategorySuggester()


@dataclass(frozen=True)
class _Extraction:
    """Outputs of the gate, provider, extractor and classifier stages."""
    is_financial: bool
    provider: str
    amount: Optional[Decimal]
    content_datetime: Optional[ContentDateTime]
    account_suffix: Optional[str]
    balance: Optional[Decimal]
    merchant: Optional[str]
    transaction_type: TransactionType
    category: MessageCategory


class SmsParserService:
    """
    Turns (text, sender, receipt time) into a ParsedRecord.
    Holds no per-call state; one instance can serve concurrent callers.
    """

    def __init__(
        self,
        extractor: Optional[RuleBasedSmsExtractor] = None,
        suggester: Optional[CategorySuggester] = None,
        settings: Optional[Settings] = None
    ):
        self.extractor = extractor or get_sms_extractor()
        self.settings = settings or get_settings()
        self.suggester = suggester if suggester is not None else default_suggester(self.settings)
        self.tz = ZoneInfo(self.settings.TIMEZONE)

    def parse(self, raw_text: str, sender: str, received_at_ms: int) -> ParsedRecord:
        received_at = to_receipt_datetime(received_at_ms, self.tz)
        extraction = self._extract(raw_text, sender, received_at)
        suggestion = self._suggest(raw_text, extraction.merchant)
        return self._assemble(raw_text, sender, received_at_ms, received_at, extraction, suggestion)

    async def parse_async(self, raw_text: str, sender: str, received_at_ms: int) -> ParsedRecord:
        """Same as parse(), but awaits an async suggester before assembling."""
        received_at = to_receipt_datetime(received_at_ms, self.tz)
        extraction = self._extract(raw_text, sender, received_at)
        suggestion = await self._suggest_async(raw_text, extraction.merchant)
        return self._assemble(raw_text, sender, received_at_ms, received_at, extraction, suggestion)

    def parse_pending(self, messages: Iterable[PendingSms]) -> List[ParsedRecord]:
        """Parse SMS buffered while the app was closed; keep only the financial ones."""
        parsed = [(sms, self.parse(sms.message, sms.sender, sms.timestamp)) for sms in messages]
        return self._keep_financial(parsed)

    async def parse_pending_async(self, messages: Iterable[PendingSms]) -> List[ParsedRecord]:
        """parse_pending() for async suggesters; messages are parsed one after another, in order."""
        parsed = []
        for sms in messages:
            parsed.append((sms, await self.parse_async(sms.message, sms.sender, sms.timestamp)))
        return self._keep_financial(parsed)

    def _keep_financial(self, parsed: List[Tuple[PendingSms, ParsedRecord]]) -> List[ParsedRecord]:
        records = []
        for sms, record in parsed:
            if record.metadata.is_financial:
                records.append(record)
            else:
                logger.debug(f"[SmsParser] Dropping non-financial pending SMS from '{sms.sender}'")
        logger.info(f"[SmsParser] Pending batch: {len(records)} financial / {len(parsed)} processed")
        return records

    def should_auto_save(self, record: ParsedRecord) -> bool:
        """High-confidence, complete financial records can be saved without asking."""
        meta = record.metadata
        return (
            meta.is_financial
            and meta.confidence >= self.settings.AUTO_SAVE_CONFIDENCE
            and not meta.requires_user_input
        )

    def _extract(self, raw_text: str, sender: str, received_at: datetime) -> _Extraction:
        ex = self.extractor
        provider = ex.identify_provider(sender)
        return _Extraction(
            is_financial=ex.is_financial_sms(raw_text, sender),
            provider=provider,
            amount=ex.extract_amount(raw_text),
            content_datetime=ex.extract_date_time(raw_text, received_at),
            account_suffix=ex.extract_account_suffix(raw_text),
            balance=ex.extract_balance(raw_text),
            merchant=ex.extract_merchant(raw_text),
            transaction_type=ex.detect_transaction_type(raw_text),
            category=ex.detect_message_category(raw_text, provider),
        )

    def _suggest(self, raw_text: str, merchant: Optional[str]) -> Optional[str]:
        try:
            result = self.suggester.suggest(raw_text, merchant)
        except Exception as e:
            logger.warning(f"[SmsParser] Category suggester failed: {type(e).__name__}: {e}")
            return None

        if inspect.isawaitable(result):
            close = getattr(result, "close", None)
            if close is not None:
                close()
            logger.warning("[SmsParser] Async category suggester used from parse(); use parse_async(). Ignoring suggestion.")
            return None
        return result or None

    async def _suggest_async(self, raw_text: str, merchant: Optional[str]) -> Optional[str]:
        try:
            result = self.suggester.suggest(raw_text, merchant)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logger.warning(f"[SmsParser] Category suggester failed: {type(e).__name__}: {e}")
            return None
        return result or None

    def _assemble(
        self,
        raw_text: str,
        sender: str,
        received_at_ms: int,
        received_at: datetime,
        extraction: _Extraction,
        suggestion: Optional[str]
    ) -> ParsedRecord:
        content = extraction.content_datetime
        receipt_time = received_at.strftime("%H:%M:%S")
        if content is not None and content.date_from_content:
            txn_date, date_source = content.date, DateSource.CONTENT
            txn_time = content.time or receipt_time
        elif content is not None:
            # Time from the body, date from the receipt
            txn_date, txn_time, date_source = content.date, content.time, DateSource.RECEIPT
        else:
            txn_date, txn_time = received_at.date().isoformat(), receipt_time
            date_source = DateSource.RECEIPT

        amount_found = extraction.amount is not None
        type_resolved = extraction.transaction_type != TransactionType.UNKNOWN

        confidence = score_confidence(
            amount_found=amount_found,
            type_resolved=type_resolved,
            date_from_content=date_source == DateSource.CONTENT,
            account_found=extraction.account_suffix is not None,
            provider_resolved=extraction.provider != UNKNOWN_PROVIDER,
        )
        missing = find_missing_fields(extraction.category, extraction.merchant, suggestion)
        assessment = assess(confidence, missing, self.settings.REVIEW_THRESHOLD)

        balance = None
        if extraction.balance is not None:
            kind = (BalanceKind.AVAILABLE_CREDIT
                    if extraction.category == MessageCategory.CREDIT_CARD
                    else BalanceKind.CURRENT)
            balance = Balance(amount=extraction.balance, balance_kind=kind)

        record = ParsedRecord(
            id=f"{received_at_ms}-{uuid.uuid4().hex[:9]}",
            raw_text=raw_text,
            sender=sender,
            received_at=received_at,
            classification=Classification(
                message_category=extraction.category,
                provider=extraction.provider,
                account_suffix=extraction.account_suffix,
                account_type=ACCOUNT_TYPES.get(extraction.category),
            ),
            transaction=TransactionDetails(
                type=extraction.transaction_type,
                amount=extraction.amount if amount_found else Decimal("0"),
                currency=self.settings.HOME_CURRENCY,
                merchant=extraction.merchant,
                date=txn_date,
                time=txn_time,
                date_source=date_source,
            ),
            balance=balance,
            metadata=ParseMetadata(
                parse_success=amount_found and type_resolved,
                confidence=assessment.confidence,
                needs_review=assessment.needs_review,
                missing_fields=assessment.missing_fields,
                suggested_category=suggestion,
                requires_user_input=assessment.requires_user_input,
                is_financial=extraction.is_financial,
                amount_found=amount_found,
            ),
        )

        logger.debug(
            f"[SmsParser] Parsed: {record.transaction.amount} {record.transaction.currency} | "
            f"Type: {record.transaction.type.value} | Cat: {record.classification.message_category.value} | "
            f"Provider: {record.classification.provider} | Confidence: {record.metadata.confidence}"
        )
        return record


# Singleton
_service: Optional[SmsParserService] = None

def get_sms_parser_service() -> SmsParserService:
    global _service
    if _service is None:
        _service = SmsParserService()
    return _service


def parse_sms(
    raw_text: str,
    sender: str,
    received_at_ms: int,
    suggester: Optional[CategorySuggester] = None
) -> ParsedRecord:
    """
    Convenience entry point. Uses the shared service unless a suggester is given.
    """
    service = get_sms_parser_service() if suggester is None else SmsParserService(suggester=suggester)
    return service.parse(raw_text, sender, received_at_ms)
