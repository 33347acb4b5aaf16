"""Historical currency units and their florin equivalents.

The rates below are configuration data: approximate exchange relations for
the monastery accounts, stated once and never recomputed at runtime.
"""

from __future__ import annotations

from typing import Dict, Tuple

BASE_CURRENCY: str = "f"

# Units of each code per florin are the reciprocals: 30 s, 240 d, 20 gr, ...
CURRENCY_RATES: Dict[str, float] = {
    "f": 1.0,
    "s": 1 / 30,
    "d": 1 / 240,
    "gr": 1 / 20,
    "t": 1 / 8,
    "l": 1 / 4,
    "p": 1 / 240,
}

CURRENCY_NAMES: Dict[str, str] = {
    "f": "Florin",
    "s": "Shilling",
    "d": "Denarius",
    "gr": "Groschen",
    "t": "Taler",
    "l": "Pound",
    "p": "Pfennig",
}

KNOWN_CURRENCIES: Tuple[str, ...] = tuple(CURRENCY_RATES)


def to_base_unit(amount: float, currency_code: str) -> float:
    """Convert ``amount`` of ``currency_code`` into florins.

    Unknown codes convert to ``0.0``; reporting them is the caller's job.
    """
    rate = CURRENCY_RATES.get(currency_code)
    if rate is None:
        return 0.0
    return amount * rate


def currency_name(code: str) -> str:
    return CURRENCY_NAMES.get(code, code.upper())
