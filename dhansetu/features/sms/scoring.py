"""
Confidence & completeness evaluation for a parsed SMS.

Confidence is additive: each signal contributes a fixed weight and the weights
sum to exactly 1.0, so the score stays within [0, 1].
"""
from typing import List, NamedTuple, Optional

from dhansetu.features.sms.schemas import MessageCategory

CONFIDENCE_WEIGHTS = {
    "amount": 0.40,
    "transaction_type": 0.30,
    "content_date": 0.10,
    "account_suffix": 0.10,
    "provider": 0.10,
}

# Categories whose alerts are expected to name a merchant
MERCHANT_CATEGORIES = {MessageCategory.CREDIT_CARD, MessageCategory.UPI}


class Assessment(NamedTuple):
    confidence: float
    needs_review: bool
    missing_fields: List[str]
    requires_user_input: bool


def score_confidence(
    amount_found: bool,
    type_resolved: bool,
    date_from_content: bool,
    account_found: bool,
    provider_resolved: bool
) -> float:
    signals = {
        "amount": amount_found,
        "transaction_type": type_resolved,
        "content_date": date_from_content,
        "account_suffix": account_found,
        "provider": provider_resolved,
    }
    total = sum(CONFIDENCE_WEIGHTS[name] for name, present in signals.items() if present)
    return round(total, 2)


def find_missing_fields(
    category: MessageCategory,
    merchant: Optional[str],
    suggested_category: Optional[str]
) -> List[str]:
    """Only these two gaps are checked; this is not a full audit of the record."""
    missing: List[str] = []
    if not merchant and category in MERCHANT_CATEGORIES:
        missing.append("merchant")
    if not suggested_category:
        missing.append("category")
    return missing


def assess(confidence: float, missing_fields: List[str], review_threshold: float) -> Assessment:
    needs_review = confidence < review_threshold
    return Assessment(
        confidence=confidence,
        needs_review=needs_review,
        missing_fields=missing_fields,
        requires_user_input=needs_review or bool(missing_fields),
    )
