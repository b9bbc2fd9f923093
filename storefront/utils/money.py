# storefront/utils/money.py

from decimal import Decimal, ROUND_HALF_UP

Money = Decimal

ZERO = Decimal("0")
CENT = Decimal("0.01")


def D(x) -> Money:
    # str() first so JSON floats like 20.5 become Decimal("20.5"), not the binary expansion
    return x if isinstance(x, Decimal) else Decimal(str(x if x not in (None, "") else "0"))


def round_money(x: Money) -> Money:
    return D(x).quantize(CENT, rounding=ROUND_HALF_UP)


def to_string_money(x) -> str:
    return str(round_money(x))
