"""
Major/minor currency unit conversion.

Paystack takes and reports amounts in the smallest unit of the currency.
The exponent table follows ISO 4217; anything not listed has two decimals.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from panavest.errors import ValidationError

DEFAULT_EXPONENT = 2

# amount_minor is a signed 64-bit column
MAX_MINOR_UNITS = 2 ** 63 - 1

CURRENCY_EXPONENTS = {
    # zero-decimal
    "BIF": 0, "CLP": 0, "DJF": 0, "GNF": 0, "JPY": 0, "KMF": 0, "KRW": 0,
    "PYG": 0, "RWF": 0, "UGX": 0, "VND": 0, "VUV": 0, "XAF": 0, "XOF": 0, "XPF": 0,
    # three-decimal
    "BHD": 3, "IQD": 3, "JOD": 3, "KWD": 3, "LYD": 3, "OMR": 3, "TND": 3,
}


def normalize_currency(currency):
    if not isinstance(currency, str) or len(currency.strip()) != 3 or not currency.strip().isalpha():
        raise ValidationError(f"Invalid currency code: {currency!r}")
    return currency.strip().upper()


def minor_unit_factor(currency):
    return 10 ** CURRENCY_EXPONENTS.get(currency.upper(), DEFAULT_EXPONENT)


def parse_amount(value):
    """Coerce a request amount into a finite, non-negative Decimal."""
    if isinstance(value, bool) or value is None:
        raise ValidationError("amount must be a number")
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError("amount must be a number") from None
    if not amount.is_finite():
        raise ValidationError("amount must be a finite number")
    if amount < 0:
        raise ValidationError("amount must not be negative")
    return amount


def to_minor_units(amount_major, currency):
    """
    >>> to_minor_units(300, "GHS")
    30000
    >>> to_minor_units("120.505", "GHS")
    12051
    >>> to_minor_units(1500, "XOF")
    1500
    """
    amount = parse_amount(amount_major)
    scaled = amount * minor_unit_factor(currency)
    if scaled > MAX_MINOR_UNITS:
        raise ValidationError("amount is too large")
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))
