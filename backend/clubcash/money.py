# Overview: Integer-cent money helpers. Amounts never pass through float.

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from .errors import ValidationError


# Maximum single amount: R$ 9.999.999,99 (999,999,999 cents)
MAX_AMOUNT_CENTS = 999_999_999


def to_cents(value, field: str = "amount") -> int:
    """
    Convert an int (already cents), Decimal or decimal string (reais) to cents.

    "12.34" and "12,34" are both 1234. Floats, scientific notation and
    sub-cent precision are rejected, never rounded.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be an amount")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        raise ValidationError(f"{field} must be an integer number of cents or a decimal string, not a float")

    if isinstance(value, str):
        stripped = value.strip().replace(",", ".")
        if not stripped:
            raise ValidationError(f"{field} must be an amount")
        if "e" in stripped.lower():
            raise ValidationError(f"{field} must be a plain amount (scientific notation not allowed)")
        try:
            value = Decimal(stripped)
        except InvalidOperation:
            raise ValidationError(f"{field} must be an amount")

    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValidationError(f"{field} must be an amount")
        cents = value * 100
        if cents != cents.to_integral_value():
            raise ValidationError(f"{field} has sub-cent precision")
        return int(cents)

    raise ValidationError(f"{field} must be an amount")


def require_positive_cents(value, field: str = "amount_cents") -> int:
    """Validate a strictly positive integer cent amount."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer number of cents")
    if value <= 0:
        raise ValidationError(f"{field} must be positive")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT_CENTS}")
    return value


def require_non_negative_cents(value, field: str = "amount_cents") -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer number of cents")
    if value < 0:
        raise ValidationError(f"{field} cannot be negative")
    if value > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{field} exceeds maximum of {MAX_AMOUNT_CENTS}")
    return value


def format_cents(cents: int) -> str:
    """Display as BRL, e.g. 123456 -> 'R$ 1.234,56'."""
    sign = "-" if cents < 0 else ""
    reais, centavos = divmod(abs(cents), 100)
    grouped = f"{reais:,}".replace(",", ".")
    return f"{sign}R$ {grouped},{centavos:02d}"
