from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class MessageCategory(str, Enum):
    BANK_ACCOUNT = "bank_account"
    CREDIT_CARD = "credit_card"
    UPI = "upi"
    WALLET = "wallet"
    UNKNOWN = "unknown"


class TransactionType(str, Enum):
    DEBIT = "debit"
    CREDIT = "credit"
    SPENT = "spent"
    PAYMENT = "payment"
    REFUND = "refund"
    SENT = "sent"
    RECEIVED = "received"
    UNKNOWN = "unknown"


class DateSource(str, Enum):
    CONTENT = "content"  # date read from the message body
    RECEIPT = "receipt"  # date taken from the receipt timestamp


class BalanceKind(str, Enum):
    CURRENT = "current"
    AVAILABLE_CREDIT = "available_credit"


class _Record(BaseModel):
    """Immutable, camelCase-on-the-wire base for parser output."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Classification(_Record):
    message_category: MessageCategory
    provider: str
    account_suffix: Optional[str] = None
    account_type: Optional[str] = None  # "credit_card" / "savings"
    user_category: Optional[str] = None


class TransactionDetails(_Record):
    type: TransactionType
    amount: Decimal = Field(ge=0)
    currency: str
    merchant: Optional[str] = None
    date: str  # YYYY-MM-DD
    time: Optional[str] = None  # HH:MM:SS
    date_source: DateSource
    notes: Optional[str] = None


class Balance(_Record):
    amount: Decimal
    balance_kind: BalanceKind


class ParseMetadata(_Record):
    parse_success: bool
    confidence: float = Field(ge=0, le=1)
    needs_review: bool
    missing_fields: List[str] = []
    suggested_category: Optional[str] = None
    requires_user_input: bool
    is_financial: bool
    amount_found: bool


class ParsedRecord(_Record):
    id: str
    raw_text: str
    sender: str
    received_at: datetime
    classification: Classification
    transaction: TransactionDetails
    balance: Optional[Balance] = None
    metadata: ParseMetadata


class SmsParseRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: str
    sender: str
    received_at: Optional[int] = None  # ms since epoch; defaults to now


class PendingSms(BaseModel):
    """An SMS buffered by the device while the app was closed."""
    message: str
    sender: str
    timestamp: int
