"""
Checked uint256 arithmetic.

Python integers never wrap, so range checks are explicit: every value that
enters or leaves the ledger must fit in ``[0, MAX_UINT256]``.
"""

from typing import Any

from ..constants import MAX_UINT256
from ..exceptions import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    InvalidAmountError,
)


def require_amount(value: Any) -> int:
    """Return *value* if it is a uint256, else raise InvalidAmountError."""
    # bool is an int subclass; True is not an amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidAmountError(value)
    if value < 0 or value > MAX_UINT256:
        raise InvalidAmountError(value)
    return value


def checked_add(a: int, b: int) -> int:
    result = a + b
    if result > MAX_UINT256:
        raise ArithmeticOverflowError(a, b)
    return result


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise ArithmeticUnderflowError(a, b)
    return a - b
