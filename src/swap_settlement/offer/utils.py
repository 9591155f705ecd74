"""Fixed-point helpers for partial fills."""

from decimal import Decimal
from typing import Union

# 100% of an offer
SCALE = 10**18

MAX_UINT256 = 2**256 - 1

# Largest amount for which amount * SCALE stays inside uint256
MAX_SCALABLE_AMOUNT = MAX_UINT256 // SCALE

# Zero address, also the identity recovered from a malformed signature
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def fill_amount(amount: int, part: int) -> int:
    """Amount owed for executing ``part`` of an order of size ``amount``.

    Multiplies before dividing and truncates toward zero, so repeated tiny
    fills may leave dust unclaimed.

    Args:
        amount: Full order amount in base units
        part: Fraction to execute (SCALE = 100%)

    Returns:
        Amount in base units
    """
    return amount * part // SCALE


def clamp_part(filled: int, part: int) -> int:
    """Reduce ``part`` to whatever is left of an offer already ``filled``.

    Args:
        filled: Fraction already consumed or cancelled
        part: Requested fraction

    Returns:
        Executable fraction, 0 once the offer is exhausted
    """
    return max(0, min(part, SCALE - filled))


def parse_part(fraction: Union[int, float, str, Decimal]) -> int:
    """Parse a human readable fraction to a scaled part.

    Args:
        fraction: Fraction of the offer (e.g., 0.5 or "0.25")

    Returns:
        Scaled part (e.g., 500000000000000000)

    Raises:
        ValueError: If the fraction is outside [0, 1]
    """
    value = Decimal(str(fraction))
    if value < 0 or value > 1:
        raise ValueError(f"Invalid fraction: {fraction}. Must be between 0 and 1")
    return int(value * SCALE)


def format_part(part: int) -> str:
    """Format a scaled part as a percentage string.

    Args:
        part: Scaled part (e.g., 250000000000000000)

    Returns:
        Percentage string (e.g., "25%")
    """
    percent = Decimal(part) * 100 / SCALE
    text = f"{percent:.16f}".rstrip("0").rstrip(".")
    return f"{text}%"
