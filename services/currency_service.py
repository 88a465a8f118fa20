import logging
from typing import Dict, Optional

logger = logging.getLogger(__name__)

REPORTING_CURRENCY = "INR"

# Static conversion factors into REPORTING_CURRENCY. Add entries to support more codes.
FX_RATES: Dict[str, float] = {
    "USD": 83.5,
    REPORTING_CURRENCY: 1.0,
}


def normalize_currency_code(code: Optional[str]) -> str:
    ccy = (code or "").strip().upper()
    return ccy or REPORTING_CURRENCY


def is_supported_currency(code: Optional[str]) -> bool:
    return normalize_currency_code(code) in FX_RATES


def rate_for(currency: Optional[str]) -> float:
    """
    Factor converting one unit of `currency` into the reporting currency.
    Unknown codes fail open with a factor of 1.0 (treated as already reporting).
    """
    ccy = normalize_currency_code(currency)
    rate = FX_RATES.get(ccy)
    if rate is None:
        logger.debug("Unknown currency %s, treating as %s", ccy, REPORTING_CURRENCY)
        return 1.0
    return rate


def convert_to_reporting(amount: float, currency: Optional[str]) -> float:
    return float(amount) * rate_for(currency)
