import logging
import httpx
from typing import Awaitable, List, Optional, Protocol, Union

from pydantic import ValidationError

from dhansetu.core.config import get_settings
from dhansetu.core.logging_config import scrub_pii
from dhansetu.features.categories.schemas import Category, CategorySuggestionResponse

logger = logging.getLogger(__name__)


class CategorySuggester(Protocol):
    """Anything that can map message text (+ merchant) to a category id."""

    def suggest(
        self, text: str, merchant: Optional[str] = None
    ) -> Union[Optional[str], Awaitable[Optional[str]]]:
        ...


TRANSACTION_CATEGORIES: List[Category] = [
    Category(id="food", name="Food & Dining", icon="🍔",
             keywords=["swiggy", "zomato", "dominos", "pizza", "restaurant", "food", "cafe", "starbucks", "mcdonald"]),
    Category(id="shopping", name="Shopping", icon="🛒",
             keywords=["amazon", "flipkart", "myntra", "ajio", "shopping", "mall", "store", "retail"]),
    Category(id="healthcare", name="Healthcare", icon="💊",
             keywords=["hospital", "doctor", "pharmacy", "medical", "health", "clinic", "apollo", "medicine"]),
    Category(id="transport", name="Transportation", icon="🚗",
             keywords=["uber", "ola", "rapido", "fuel", "petrol", "diesel", "taxi", "auto", "metro", "bus"]),
    Category(id="cash", name="Cash/ATM", icon="💵",
             keywords=["atm", "cash", "withdrawal"]),
    Category(id="bills", name="Bills & Utilities", icon="🏦",
             keywords=["electricity", "water", "gas", "bill", "utility", "broadband", "internet", "wifi"]),
    Category(id="entertainment", name="Entertainment", icon="🎬",
             keywords=["movie", "cinema", "netflix", "prime", "hotstar", "spotify", "game", "entertainment"]),
    Category(id="rent", name="Rent/EMI", icon="🏠",
             keywords=["rent", "emi", "loan", "mortgage", "housing"]),
    Category(id="education", name="Education", icon="📚",
             keywords=["school", "college", "university", "course", "education", "tuition", "fees"]),
    Category(id="travel", name="Travel", icon="✈️",
             keywords=["flight", "hotel", "booking", "travel", "vacation", "trip", "makemytrip", "goibibo"]),
    Category(id="business", name="Business", icon="💼",
             keywords=["business", "office", "work", "professional"]),
    Category(id="gifts", name="Gifts", icon="🎁",
             keywords=["gift", "present", "donation"]),
    Category(id="recharge", name="Recharge", icon="📱",
             keywords=["recharge", "mobile", "prepaid", "postpaid", "dth"]),
    Category(id="investment", name="Investment", icon="💰",
             keywords=["investment", "mutual fund", "stock", "sip", "trading", "zerodha", "groww"]),
    Category(id="transfer", name="Transfer", icon="🔄",
             keywords=["transfer", "sent", "received", "upi"]),
    Category(id="goal", name="Goal", icon="🎯",
             keywords=["goal", "saving", "savings"]),
    Category(id="other", name="Other", icon="📝", keywords=[]),
]


def get_category_by_id(category_id: str) -> Optional[Category]:
    return next((c for c in TRANSACTION_CATEGORIES if c.id == category_id), None)


def get_category_name(category_id: str) -> str:
    category = get_category_by_id(category_id)
    return category.name if category else "Other"


def get_category_icon(category_id: str) -> str:
    category = get_category_by_id(category_id)
    return category.icon if category else "📝"


class KeywordCategorySuggester:
    """Offline suggester: first category (table order) with a keyword in text or merchant."""

    def __init__(self, categories: Optional[List[Category]] = None):
        self.categories = categories if categories is not None else TRANSACTION_CATEGORIES

    def suggest(self, text: str, merchant: Optional[str] = None) -> Optional[str]:
        search_text = f"{text} {merchant or ''}".lower()
        for category in self.categories:
            for keyword in category.keywords:
                if keyword in search_text:
                    return category.id
        return None


class RemoteCategorySuggester:
    """
    Asks a remote category service for a suggestion.
    Message text is PII-scrubbed before it leaves the device. Any failure
    (timeout, non-200, bad payload) is logged and reported as no suggestion.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        settings = get_settings()
        self.url = url or settings.CATEGORY_SERVICE_URL
        self.token = token or settings.CATEGORY_SERVICE_TOKEN
        self.timeout = timeout if timeout is not None else settings.CATEGORY_SERVICE_TIMEOUT
        self._transport = transport

    @property
    def is_enabled(self) -> bool:
        return bool(self.url)

    async def suggest(self, text: str, merchant: Optional[str] = None) -> Optional[str]:
        if not self.is_enabled:
            logger.debug("Category service URL not configured. Skipping remote suggestion.")
            return None

        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        payload = {"text": scrub_pii(text), "merchant": merchant}

        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                resp = await client.post(self.url, headers=headers, json=payload, timeout=self.timeout)
                if resp.status_code != 200:
                    logger.error(f"Category service error ({resp.status_code}): {resp.text[:200]}")
                    return None
                return CategorySuggestionResponse.model_validate(resp.json()).category
        except httpx.TimeoutException:
            logger.error(f"Category service timed out after {self.timeout}s")
            return None
        except (httpx.HTTPError, ValueError, ValidationError) as e:
            logger.error(f"Category service call failed: {type(e).__name__}: {e}")
            return None
