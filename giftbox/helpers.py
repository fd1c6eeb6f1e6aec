import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from urllib.parse import urlparse, urljoin

from flask import request, jsonify

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_SEARCH_LEN = 100
MAX_PAGE_SIZE = 100
# fits the integer columns with room for quantity x price
MAX_AMOUNT_CENTS = 10**9
MAX_COUNT = 10**6
MAX_ID = 2**31 - 1


class ValidationError(Exception):
    """A request that cannot be served as sent.

    Routes turn it into ``{"error": message}`` with ``status`` (API) or a
    flash message (pages).
    """

    def __init__(self, message, status=400, details=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.details = details

    def response(self):
        body = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return jsonify(body), self.status


def format_money(cents: int, currency="AZN") -> str:
    if currency.upper() == "USD":
        return f"${cents/100:.2f}"
    return f"{cents/100:.2f} {currency}"


def to_cents(value) -> int:
    """Parse a decimal amount ("12.5", 12.5) into integer cents, rounding half-up."""
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        raise ValidationError("Valid price is required")
    if not amount.is_finite() or abs(amount) * 100 > MAX_AMOUNT_CENTS:
        raise ValidationError("Valid price is required")
    return int(amount.quantize(Decimal("0.01"), ROUND_HALF_UP) * 100)


def to_count(value, message, limit=MAX_COUNT) -> int:
    """Parse a whole number such as stock, a quantity or an id; callers check the lower bound."""
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationError(message)
    if isinstance(value, float) and value != n:
        raise ValidationError(message)
    if n > limit:
        raise ValidationError(f"{message}, at most {limit}")
    return n


def is_valid_email(value) -> bool:
    return isinstance(value, str) and bool(EMAIL_RE.match(value.strip()))


def is_safe_url(target):
    if not target:
        return False
    ref_url = urlparse(request.host_url)
    test_url = urlparse(urljoin(request.host_url, target))
    return test_url.scheme in ("http", "https") and ref_url.netloc == test_url.netloc


def parse_pagination(args, default_limit=20):
    page, limit = 1, default_limit
    raw_page, raw_limit = args.get("page"), args.get("limit")
    if raw_page:
        try:
            page = int(raw_page)
        except ValueError:
            page = 0
        if page < 1 or page > MAX_COUNT:
            raise ValidationError("Invalid page parameter. Must be a positive integer.")
    if raw_limit:
        try:
            limit = int(raw_limit)
        except ValueError:
            limit = 0
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"Invalid limit parameter. Must be between 1 and {MAX_PAGE_SIZE}.")
    return page, limit


def clean_search(raw):
    term = (raw or "").strip()
    if len(term) > MAX_SEARCH_LEN:
        raise ValidationError(f"Search term too long. Maximum {MAX_SEARCH_LEN} characters.")
    return term or None


def pagination_info(page, limit, total):
    return {"page": page, "limit": limit, "total": total,
            "total_pages": (total + limit - 1) // limit}
