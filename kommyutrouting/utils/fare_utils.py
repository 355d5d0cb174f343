import math
import re
from typing import Any, Optional

NOT_AVAILABLE = 'N/A'
CURRENCY_SYMBOL = '₱'

# Discounted tier (students, seniors, PWD) when a table only publishes one fare
DISCOUNT_RATE = 0.8

# Applied repeatedly, so "Doroteo Jose LRT Station" loses both suffixes
_STATION_SUFFIXES = (
    re.compile(r'\s+station\s*$'),
    re.compile(r'\s+(lrt|mrt|pnr)(\s*-?\s*\d)?\s*$'),
)
_NON_ALNUM = re.compile(r'[^a-z0-9]')


def fare_distance_km(distance_km: float) -> int:
    """Whole kilometers charged for a ride: ceiling, never below 1 km"""
    return max(1, math.ceil(distance_km))


def derive_discounted(regular: float) -> float:
    """Discounted fare for tables that only publish a regular fare"""
    return float(math.floor(regular * DISCOUNT_RATE))


def parse_fare(value: Any) -> Optional[float]:
    """Coerce a table cell to a fare amount; blanks and NaN become None"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.replace(CURRENCY_SYMBOL, '').strip()
        if not value or value.upper() == NOT_AVAILABLE:
            return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(amount) or amount < 0:
        return None
    return amount


def format_fare(amount: Optional[float]) -> str:
    if amount is None:
        return NOT_AVAILABLE
    if float(amount).is_integer():
        return f"{CURRENCY_SYMBOL}{int(amount)}"
    return f"{CURRENCY_SYMBOL}{amount:.2f}"


def format_distance(distance_km: float) -> str:
    return f"{distance_km:.2f} km"


def normalize_station_name(name: str) -> str:
    """Reduce a published stop name to a fare-table station key.

    Stop names carry cosmetic suffixes ("Central Station", "Baclaran LRT",
    "Taft Avenue MRT-3") that the fare tables do not. Suffixes are stripped
    until none is left, then everything but lowercase letters and digits is
    dropped: "Doroteo Jose LRT Station" -> "doroteojose".
    """
    key = (name or '').lower().strip()
    stripped = True
    while stripped:
        stripped = False
        for pattern in _STATION_SUFFIXES:
            reduced = pattern.sub('', key)
            if reduced != key:
                key = reduced
                stripped = True
    return _NON_ALNUM.sub('', key)
