"""Numeric field parsing"""
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

# Leading decimal number; anything after it (units, a second separator) is ignored
_LEADING_NUMBER = re.compile(r'\s*[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


def parse_float(value: Any) -> float:
    """Parse a work amount that may be missing, numeric or locale formatted.

    Both "3.5" and "3,5" give 3.5. Only the first comma is taken as the
    decimal separator, and only the leading number is read, so "2 h" gives 2
    and "1.234,5" gives 1.234. Missing input, input without a leading number,
    NaN and infinities give 0.0 so arithmetic on work fields never produces NaN.
    """
    if isinstance(value, bool):
        value = None

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value or "").replace(",", ".", 1)
        match = _LEADING_NUMBER.match(text)
        if match is None:
            if text.strip():
                logger.debug(f"Unparseable numeric value {value!r}, using 0")
            return 0.0
        number = float(match.group(0))

    if not math.isfinite(number):
        logger.debug(f"Non-finite numeric value {value!r}, using 0")
        return 0.0

    return number
