"""Lenient conversion of raw cell text into ticket values."""

import logging
import math
import re
from typing import Optional

logger = logging.getLogger(__name__)

# Plain ASCII decimals with an optional exponent; no underscores or non-ASCII digits
_DECIMAL = re.compile(r"[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?\Z")


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def coerce_estimate(raw: Optional[str]) -> int:
    """
    Story points from a cell such as "3", "3,5" or " 2.4 ".

    A comma is read as a decimal separator. Only plain ASCII decimals are
    accepted; anything else counts as 0 and this never raises.
    """
    if raw is None:
        return 0
    text = raw.strip().replace(",", ".")
    if not text:
        return 0

    if not _DECIMAL.match(text):
        logger.debug(f"Estimate '{raw}' is not a number, using 0")
        return 0
    if text.lstrip("+-").isdigit():
        return int(text)

    value = float(text)
    if not math.isfinite(value):
        logger.debug(f"Estimate '{raw}' is out of range, using 0")
        return 0
    return round_half_away(value)
