import random
from decimal import Decimal, ROUND_HALF_UP, getcontext

getcontext().prec = 28
CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# one cent, absorbs representation noise when netting balances
EPSILON = Decimal("0.01")

CODE_MIN = 100000
CODE_MAX = 999999


def qround(d: Decimal) -> Decimal:
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_money(value) -> Decimal:
    """Coerce a DB or request value into a 2-decimal Decimal."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return qround(value)


def to_cents(d: Decimal) -> int:
    return int(qround(d) * 100)


def from_cents(cents: int) -> Decimal:
    return qround(Decimal(cents) / 100)


def generate_code() -> int:
    """Random 6-digit code used for groups and transactions."""
    return random.randint(CODE_MIN, CODE_MAX)
