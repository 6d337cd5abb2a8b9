# Overview: Fixed set of payment methods and where each one may be used.

from .errors import ValidationError

PIX = "pix"
CASH = "cash"
DEBIT = "debit"
CREDIT = "credit"
CREDIT_FIADO = "credit_fiado"
BONUS = "bonus"
FICHAS = "fichas"

VALID_PAYMENT_METHODS = [PIX, CASH, DEBIT, CREDIT, CREDIT_FIADO, BONUS, FICHAS]

# Methods that put money in the drawer right away
INSTANT_METHODS = [PIX, CASH, DEBIT, CREDIT]

# credit_fiado and bonus only make sense when chips go out on a buy-in
BUY_IN_METHODS = INSTANT_METHODS + [CREDIT_FIADO, BONUS]

# fichas: paid out in chip value rather than currency
PAYOUT_METHODS = INSTANT_METHODS + [FICHAS]

# Settling fiado debt; fichas when the debt is abated from a cash-out
DEBT_PAYMENT_METHODS = INSTANT_METHODS + [FICHAS]


def validate_method(method: str, allowed: list[str], context: str) -> str:
    if method not in allowed:
        raise ValidationError(f"Invalid payment method for {context}: {method}. Must be one of {allowed}")
    return method
