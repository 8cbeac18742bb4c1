"""
Allowance Table

Maps (owner, spender) to the amount *spender* may move on *owner*'s behalf.

``approve`` is an absolute set, matching ERC-20. Changing a non-zero
allowance to another non-zero value lets a spender who sees the change
coming use both the old and the new allowance; callers that care should
approve zero first, or use ``increase_allowance`` / ``decrease_allowance``.
See https://github.com/ethereum/EIPs/issues/20#issuecomment-263524729

An allowance of ``UNLIMITED_ALLOWANCE`` (max uint256) is never decremented.
"""

from typing import Dict, Tuple

from ..constants import SLOT_ALLOWANCE_PREFIX, UNLIMITED_ALLOWANCE
from ..address import is_zero_address
from ..exceptions import (
    InsufficientAllowanceError,
    InvalidApproverError,
    InvalidSpenderError,
)
from .uint256 import checked_add


class AllowanceTable:
    """Storage-backed (owner, spender) → limit table."""

    def __init__(self, storage):
        self._storage = storage

    @staticmethod
    def _key(owner: str, spender: str) -> str:
        return f"{SLOT_ALLOWANCE_PREFIX}{owner}:{spender}"

    def allowance(self, owner: str, spender: str) -> int:
        return self._storage.get(self._key(owner, spender), 0)

    def allowances(self) -> Dict[Tuple[str, str], int]:
        """All non-zero allowances keyed by (owner, spender)."""
        prefix_len = len(SLOT_ALLOWANCE_PREFIX)
        result = {}
        for key, value in self._storage.items(SLOT_ALLOWANCE_PREFIX):
            owner, spender = key[prefix_len:].split(":")
            result[(owner, spender)] = value
        return result

    def _write(self, owner: str, spender: str, value: int) -> None:
        if value == 0:
            self._storage.delete(self._key(owner, spender))
        else:
            self._storage.set(self._key(owner, spender), value)

    # ── Mutations ─────────────────────────────────────────────────────

    def approve(self, owner: str, spender: str, amount: int) -> int:
        if is_zero_address(owner):
            raise InvalidApproverError(owner)
        if is_zero_address(spender):
            raise InvalidSpenderError(spender)
        self._write(owner, spender, amount)
        return amount

    def increase_allowance(self, owner: str, spender: str, delta: int) -> int:
        new_value = checked_add(self.allowance(owner, spender), delta)
        return self.approve(owner, spender, new_value)

    def decrease_allowance(self, owner: str, spender: str, delta: int) -> int:
        current = self.allowance(owner, spender)
        if current < delta:
            raise InsufficientAllowanceError(spender, current, delta)
        return self.approve(owner, spender, current - delta)

    def check_spend(self, owner: str, spender: str, amount: int) -> None:
        """Validate a spend without consuming anything."""
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowanceError(spender, current, amount)

    def spend(self, owner: str, spender: str, amount: int) -> int:
        """
        Consume *amount* of the allowance.

        Returns:
            The remaining allowance
        """
        current = self.allowance(owner, spender)
        if current < amount:
            raise InsufficientAllowanceError(spender, current, amount)
        if current == UNLIMITED_ALLOWANCE:
            return current
        # No InvalidApprover/Spender re-check: a stored allowance implies both were valid
        self._write(owner, spender, current - amount)
        return current - amount
