"""Currency constants.

Rates are expressed relative to BASE_CURRENCY (units of currency per 1 USD),
matching what openexchangerates.org returns on its free plan.
"""

import re
from typing import Tuple

BASE_CURRENCY = "USD"
CURRENCIES: Tuple[str, ...] = ("USD", "EUR", "JPY", "KRW", "GBP", "AUD")
CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")


def is_currency_code(token: str) -> bool:
    return bool(CURRENCY_CODE_RE.match(token))
