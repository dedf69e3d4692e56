"""
Rule-Based SMS Extractor
------------------------
Deterministic, offline extractor for Indian bank / card / UPI / wallet SMS alerts.
Uses an exclusion-first gate (OTP and promotional language always lose), a sender
table to identify the provider, and independent regex extractors for amount,
date/time, account suffix, balance and merchant. Transaction type and message
category come from ordered rule chains so the priority order stays auditable.

Every extractor returns None when nothing matches; none of them raise.
"""
import re
import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Callable, List, NamedTuple, Optional, Tuple

from dhansetu.features.sms.schemas import MessageCategory, TransactionType

logger = logging.getLogger(__name__)

UNKNOWN_PROVIDER = "UNKNOWN"

# ---------------------------------------------------------------------------
# 1. PROVIDER IDENTIFIERS (order is the tie-break for ambiguous senders)
# ---------------------------------------------------------------------------
PROVIDER_IDENTIFIERS = {
    "HDFC": ["HDFCBK", "HD-HDFCBK", "HDFC"],
    "SBI": ["SBI", "SBMSMS", "SBIINB"],
    "ICICI": ["ICICIB", "ICICI", "IMOBILE"],
    "AXIS": ["AXIS", "AXISBK"],
    "KOTAK": ["KOTAK", "KMBL"],
    "PNB": ["PNBSMS", "PNB"],
    "BOB": ["BOBSMS", "BOB"],
    "PAYTM": ["PYTM", "PAYTM"],
    "GPAY": ["GPAY", "GOOGLE PAY"],
    "PHONEPE": ["PHONEPE"],
    "AMAZONPAY": ["AMAZON", "AZNPAY"],
}

UPI_PROVIDERS = {"GPAY", "PHONEPE"}
WALLET_PROVIDERS = {"PAYTM", "AMAZONPAY"}

# ---------------------------------------------------------------------------
# 2. FINANCIAL GATE
# ---------------------------------------------------------------------------
# Any of these and the message is not a transaction, whatever else it says
EXCLUSION_KEYWORDS = [
    "otp", "one time password", "verification code",
    "verify", "code is", "pin is",
    "do not share", "expires in",
    "promotional", "offer", "discount",
    "congratulations", "winner",
]

FINANCIAL_KEYWORDS = [
    "debited", "credited", "debit", "credit",
    "spent", "paid", "payment", "received", "sent",
    "account", "a/c", "card",
    "upi", "transaction", "txn",
    "balance", "avl bal", "available",
    "emi", "loan", "refund",
]

# ---------------------------------------------------------------------------
# 3. AMOUNT EXTRACTION (first pattern to match wins)
# ---------------------------------------------------------------------------
_NUMBER = r'(\d+(?:,\d+)*(?:\.\d{1,2})?)'

AMOUNT_PATTERNS = [
    # "Rs.500.00", "Rs 1,500", "INR 2000", "₹300"
    re.compile(r'(?:\bRs\.?|\bINR|₹)\s*' + _NUMBER, re.I),
    # "500.00 INR", "1,200 Rs"
    re.compile(r'(?<![\d,.])' + _NUMBER + r'\s*(?:Rs\.?|INR|₹)(?![A-Za-z])', re.I),
]

# ---------------------------------------------------------------------------
# 4. DATE / TIME EXTRACTION
# ---------------------------------------------------------------------------
MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# (pattern, month_is_named, has_year) in priority order
DATE_PATTERNS = [
    # 24-Nov-24 / 24-Nov-2024
    (re.compile(r'(?<!\d)(\d{1,2})-([A-Za-z]{3})-(\d{4}|\d{2})(?!\d)'), True, True),
    # 24/11/24 / 24/11/2024
    (re.compile(r'(?<!\d)(\d{1,2})/(\d{1,2})/(\d{4}|\d{2})(?!\d)'), False, True),
    # 24-11-24 / 24-11-2024
    (re.compile(r'(?<!\d)(\d{1,2})-(\d{1,2})-(\d{4}|\d{2})(?!\d)'), False, True),
    # on 24Nov
    (re.compile(r'\bon\s+(\d{1,2})([A-Za-z]{3})', re.I), True, False),
]

TIME_PATTERN = re.compile(r'(?<!\d)(\d{1,2}):(\d{2})(?::(\d{2}))?(?!\d)')

# ---------------------------------------------------------------------------
# 5. ACCOUNT / BALANCE / MERCHANT
# ---------------------------------------------------------------------------
ACCOUNT_PATTERNS = [
    # A/c XX1234, Card XX9012, a/c xx5678
    re.compile(r'(?:\bA/c|\bCard)\s*[xX*]*(\d{4,})', re.I),
    # account XX7890, Account No. 12345678
    re.compile(r'\baccount\s*(?:no\.?|number)?\s*[xX*]*(\d{4,})', re.I),
]

BALANCE_PATTERNS = [
    # Avl Bal: Rs.10000, Available balance: Rs.25000, Bal 5000
    re.compile(r'\b(?:Avl\.?\s*Bal|Balance|bal)[:.]?\s*(?:Rs\.?|INR|₹)?\s*' + _NUMBER, re.I),
]

_MERCHANT_NAME = r'([A-Z][A-Za-z0-9\s&]+?)'
_MERCHANT_END = r'(?=\s+on\b|\s+at\b|\.|$)'

MERCHANT_PATTERNS = [
    # "at Amazon on 24-Nov-24" - card swipes
    re.compile(r'\bat\s+' + _MERCHANT_NAME + _MERCHANT_END),
    # "on Swiggy." - some UPI alerts
    re.compile(r'\bon\s+' + _MERCHANT_NAME + _MERCHANT_END),
    # "paid to Swiggy via PhonePe", "Paid Rs.450.00 to Swiggy", "sent via Google Pay to John on ..."
    # The gap may cross "Rs." and decimal points but not a sentence end
    re.compile(
        r'\b(?i:paid|sent)\b(?:[^.]|(?i:Rs)\.|\d\.\d)*?\bto\s+' + _MERCHANT_NAME
        + r'(?=\s+via\b|\s+on\b|\s+at\b|\.|$)'
    ),
]

# ---------------------------------------------------------------------------
# 6. CLASSIFIER RULE CHAINS (first matching rule wins)
# ---------------------------------------------------------------------------
TRANSACTION_TYPE_RULES: List[Tuple[Tuple[str, ...], TransactionType]] = [
    (("debited", "debit"), TransactionType.DEBIT),
    (("credited", "credit"), TransactionType.CREDIT),
    (("spent",), TransactionType.SPENT),
    (("payment", "paid"), TransactionType.PAYMENT),
    (("refund",), TransactionType.REFUND),
    (("sent",), TransactionType.SENT),
    (("received",), TransactionType.RECEIVED),
]

# predicate(lower_text, provider) -> bool
CategoryRule = Tuple[Callable[[str, str], bool], MessageCategory]

MESSAGE_CATEGORY_RULES: List[CategoryRule] = [
    (lambda t, p: "card" in t and ("spent" in t or "payment" in t), MessageCategory.CREDIT_CARD),
    (lambda t, p: "upi" in t or p in UPI_PROVIDERS, MessageCategory.UPI),
    (lambda t, p: p in WALLET_PROVIDERS, MessageCategory.WALLET),
    (lambda t, p: "a/c" in t or "account" in t, MessageCategory.BANK_ACCOUNT),
]


class ContentDateTime(NamedTuple):
    """Date/time found in the message body.

    When only a clock time was found, ``date`` is the receipt date and
    ``date_from_content`` is False.
    """
    date: str
    time: Optional[str]
    date_from_content: bool


def _parse_amount(raw: str) -> Optional[Decimal]:
    try:
        return Decimal(raw.replace(",", ""))
    except InvalidOperation:
        logger.debug(f"[SmsExtractor] Unparseable amount '{raw}'")
        return None


def _expand_year(raw: str, reference: datetime) -> int:
    year = int(raw)
    if len(raw) == 2:
        year += (reference.year // 100) * 100
    return year


class RuleBasedSmsExtractor:
    """
    Stateless set of extractors and classifiers for one SMS at a time.
    Safe to share between threads; use get_sms_extractor() for the shared instance.
    """

    def check_financial(self, text: str, sender: str) -> Tuple[bool, str]:
        """
        Returns (is_financial, reason).
        reason is used for debug logging.
        """
        lower_text = text.lower()

        # Layer 1: exclusion phrases short-circuit everything
        for keyword in EXCLUSION_KEYWORDS:
            if keyword in lower_text:
                return False, f"EXCLUDED_KEYWORD:{keyword}"

        # Layer 2: known sender or financial vocabulary
        is_known_sender = self.identify_provider(sender) != UNKNOWN_PROVIDER
        has_keyword = any(keyword in lower_text for keyword in FINANCIAL_KEYWORDS)
        if not (is_known_sender or has_keyword):
            return False, "NO_FINANCIAL_SIGNAL"

        # Layer 3: must carry a monetary amount
        if self.extract_amount(text) is None:
            return False, "NO_AMOUNT"

        return True, "PASSED_ALL_LAYERS"

    def is_financial_sms(self, text: str, sender: str) -> bool:
        is_financial, reason = self.check_financial(text, sender)
        if not is_financial:
            logger.debug(f"[SmsExtractor] Not financial. Reason: {reason}. Sender: '{sender}'")
        return is_financial

    def identify_provider(self, sender: str) -> str:
        """Returns the canonical provider name, or UNKNOWN."""
        upper_sender = (sender or "").upper()
        for provider, aliases in PROVIDER_IDENTIFIERS.items():
            if any(alias in upper_sender for alias in aliases):
                return provider
        return UNKNOWN_PROVIDER

    def extract_amount(self, text: str) -> Optional[Decimal]:
        for pattern in AMOUNT_PATTERNS:
            match = pattern.search(text)
            if match:
                return _parse_amount(match.group(1))
        return None

    def extract_date_time(self, text: str, reference: datetime) -> Optional[ContentDateTime]:
        """
        Returns the first valid date in pattern priority order, normalized to
        YYYY-MM-DD, with any clock time found in the text.

        ``reference`` is the receipt time: it supplies the century for 2-digit
        years, the year for "on 24Nov" and the date when only a time is present.
        """
        content_time = self._extract_time(text)

        for pattern, month_is_named, has_year in DATE_PATTERNS:
            for match in pattern.finditer(text):
                found = self._build_date(match, month_is_named, has_year, reference)
                if found is not None:
                    return ContentDateTime(found.isoformat(), content_time, True)

        if content_time is not None:
            return ContentDateTime(reference.date().isoformat(), content_time, False)

        return None

    def _build_date(
        self,
        match: re.Match,
        month_is_named: bool,
        has_year: bool,
        reference: datetime
    ) -> Optional[date]:
        day = int(match.group(1))
        if month_is_named:
            month = MONTHS.get(match.group(2).lower())
            if month is None:
                return None
        else:
            month = int(match.group(2))
        year = _expand_year(match.group(3), reference) if has_year else reference.year

        try:
            return date(year, month, day)
        except ValueError:
            logger.debug(f"[SmsExtractor] Skipping impossible date '{match.group(0)}'")
            return None

    def _extract_time(self, text: str) -> Optional[str]:
        for match in TIME_PATTERN.finditer(text):
            hour, minute = int(match.group(1)), int(match.group(2))
            second = int(match.group(3)) if match.group(3) else 0
            if hour < 24 and minute < 60 and second < 60:
                return f"{hour:02d}:{minute:02d}:{second:02d}"
        return None

    def extract_account_suffix(self, text: str) -> Optional[str]:
        for pattern in ACCOUNT_PATTERNS:
            match = pattern.search(text)
            if match:
                return match.group(1)
        return None

    def extract_balance(self, text: str) -> Optional[Decimal]:
        for pattern in BALANCE_PATTERNS:
            match = pattern.search(text)
            if match:
                return _parse_amount(match.group(1))
        return None

    def extract_merchant(self, text: str) -> Optional[str]:
        for pattern in MERCHANT_PATTERNS:
            match = pattern.search(text)
            if match:
                merchant = re.sub(r'\s+', ' ', match.group(1)).strip()
                if merchant:
                    return merchant
        return None

    def detect_transaction_type(self, text: str) -> TransactionType:
        lower_text = text.lower()
        for keywords, txn_type in TRANSACTION_TYPE_RULES:
            if any(keyword in lower_text for keyword in keywords):
                return txn_type
        return TransactionType.UNKNOWN

    def detect_message_category(self, text: str, provider: str) -> MessageCategory:
        lower_text = text.lower()
        for predicate, category in MESSAGE_CATEGORY_RULES:
            if predicate(lower_text, provider):
                return category
        return MessageCategory.UNKNOWN


# Singleton
_extractor: Optional[RuleBasedSmsExtractor] = None

def get_sms_extractor() -> RuleBasedSmsExtractor:
    global _extractor
    if _extractor is None:
        _extractor = RuleBasedSmsExtractor()
    return _extractor
