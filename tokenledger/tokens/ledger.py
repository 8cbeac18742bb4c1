"""
Numeric Ledger

Balances per account plus the incrementally maintained total supply.

Invariants:
    - no balance is ever negative
    - sum of all balances == total supply
    - total supply changes only through ``mint_to`` / ``burn_from``

Every operation computes all new values before its first write, so a failing
check never leaves a half-applied mutation behind.
"""

from typing import Dict

from ..constants import SLOT_BALANCE_PREFIX, SLOT_TOTAL_SUPPLY
from ..exceptions import InsufficientBalanceError
from ..storage import Storage
from .uint256 import checked_add, checked_sub


class NumericLedger:
    """Storage-backed balance table."""

    def __init__(self, storage: Storage):
        self._storage = storage

    # ── Read-only views ───────────────────────────────────────────────

    @staticmethod
    def _key(account: str) -> str:
        return SLOT_BALANCE_PREFIX + account

    @property
    def total_supply(self) -> int:
        return self._storage.get(SLOT_TOTAL_SUPPLY, 0)

    def balance_of(self, account: str) -> int:
        return self._storage.get(self._key(account), 0)

    def balances(self) -> Dict[str, int]:
        """All non-zero balances keyed by account."""
        prefix_len = len(SLOT_BALANCE_PREFIX)
        return {
            key[prefix_len:]: value
            for key, value in self._storage.items(SLOT_BALANCE_PREFIX)
        }

    @property
    def holder_count(self) -> int:
        return len(self.balances())

    # ── Writes ────────────────────────────────────────────────────────

    def _write_balance(self, account: str, value: int) -> None:
        # A zero balance is equivalent to absence
        if value == 0:
            self._storage.delete(self._key(account))
        else:
            self._storage.set(self._key(account), value)

    def _debited(self, account: str, amount: int) -> int:
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalanceError(account, balance, amount)
        return balance - amount

    def credit(self, account: str, amount: int) -> int:
        """
        Add *amount* to *account*. Total supply is not touched; use
        ``mint_to`` on the mint path.

        Raises:
            ArithmeticOverflowError: if the balance would exceed uint256
        """
        new_balance = checked_add(self.balance_of(account), amount)
        self._write_balance(account, new_balance)
        return new_balance

    def debit(self, account: str, amount: int) -> int:
        """
        Subtract *amount* from *account*.

        Raises:
            InsufficientBalanceError: if the balance is lower than *amount*
        """
        new_balance = self._debited(account, amount)
        self._write_balance(account, new_balance)
        return new_balance

    def check_move(self, sender: str, amount: int) -> None:
        """Validate that *sender* can move *amount* without writing anything."""
        self._debited(sender, amount)

    def move(self, sender: str, recipient: str, amount: int) -> None:
        """
        Debit *sender* and credit *recipient* as one unit.

        A self-move writes nothing but still requires balance >= amount.
        """
        new_sender_balance = self._debited(sender, amount)
        if sender == recipient:
            return
        new_recipient_balance = checked_add(self.balance_of(recipient), amount)

        self._write_balance(sender, new_sender_balance)
        self._write_balance(recipient, new_recipient_balance)

    def mint_to(self, account: str, amount: int) -> int:
        """
        Create *amount* new units on *account*.

        Returns:
            The new total supply
        """
        new_supply = checked_add(self.total_supply, amount)
        new_balance = checked_add(self.balance_of(account), amount)

        self._storage.set(SLOT_TOTAL_SUPPLY, new_supply)
        self._write_balance(account, new_balance)
        return new_supply

    def burn_from(self, account: str, amount: int) -> int:
        """
        Destroy *amount* units held by *account*.

        Returns:
            The new total supply
        """
        new_balance = self._debited(account, amount)
        new_supply = checked_sub(self.total_supply, amount)

        self._storage.set(SLOT_TOTAL_SUPPLY, new_supply)
        self._write_balance(account, new_balance)
        return new_supply

    def __repr__(self) -> str:
        return f"<NumericLedger supply={self.total_supply} holders={self.holder_count}>"
