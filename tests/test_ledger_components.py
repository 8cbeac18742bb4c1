"""
Ledger Component Test Suite

Coverage:
  - uint256 helpers: amount validation, checked add/sub
  - InMemoryStorage: get/set/delete, prefix iteration, snapshot/revert, atomic()
  - NumericLedger: credit/debit/move/mint_to/burn_from, zero-slot cleanup
  - AllowanceTable: approve/increase/decrease/spend, unlimited allowance
  - Address normalization
"""

import os
import sys

import pytest
from eth_utils import to_checksum_address

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tokenledger.address import CHECKSUM_ZERO_ADDRESS, is_zero_address, normalize_address
from tokenledger.constants import MAX_UINT256, SLOT_TOTAL_SUPPLY, UNLIMITED_ALLOWANCE
from tokenledger.exceptions import (
    ArithmeticOverflowError,
    ArithmeticUnderflowError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidApproverError,
    InvalidSpenderError,
)
from tokenledger.storage import InMemoryStorage, atomic
from tokenledger.tokens.allowances import AllowanceTable
from tokenledger.tokens.ledger import NumericLedger
from tokenledger.tokens.uint256 import checked_add, checked_sub, require_amount


ALICE = to_checksum_address("0x" + "a1" * 20)
BOB = to_checksum_address("0x" + "b2" * 20)
CAROL = to_checksum_address("0x" + "c3" * 20)


# ══════════════════════════════════════════════════════════════════════
#  UINT256
# ══════════════════════════════════════════════════════════════════════

class TestUint256:

    @pytest.mark.parametrize("value", [0, 1, MAX_UINT256])
    def test_require_amount_accepts(self, value):
        assert require_amount(value) == value

    @pytest.mark.parametrize("value", [-1, MAX_UINT256 + 1, 1.0, "5", None, False])
    def test_require_amount_rejects(self, value):
        with pytest.raises(InvalidAmountError):
            require_amount(value)

    def test_checked_add(self):
        assert checked_add(MAX_UINT256 - 1, 1) == MAX_UINT256
        with pytest.raises(ArithmeticOverflowError) as exc:
            checked_add(MAX_UINT256, 1)
        assert exc.value.kind == "Overflow"
        assert exc.value.details["code"] == 0x11

    def test_checked_sub(self):
        assert checked_sub(5, 5) == 0
        with pytest.raises(ArithmeticUnderflowError) as exc:
            checked_sub(4, 5)
        assert exc.value.kind == "Underflow"


# ══════════════════════════════════════════════════════════════════════
#  STORAGE
# ══════════════════════════════════════════════════════════════════════

class TestInMemoryStorage:

    def test_get_default(self):
        storage = InMemoryStorage()
        assert storage.get("missing") is None
        assert storage.get("missing", 0) == 0

    def test_set_delete(self):
        storage = InMemoryStorage()
        storage.set("a", 1)
        assert "a" in storage
        storage.delete("a")
        storage.delete("a")
        assert "a" not in storage
        assert len(storage) == 0

    def test_items_prefix(self):
        storage = InMemoryStorage({"balance:x": 1, "balance:y": 2, "total_supply": 3})
        assert dict(storage.items("balance:")) == {"balance:x": 1, "balance:y": 2}
        assert len(list(storage.items())) == 3

    def test_snapshot_revert(self):
        storage = InMemoryStorage({"a": 1})
        snap = storage.snapshot()
        storage.set("a", 2)
        storage.set("b", 3)
        storage.revert(snap)
        assert storage.to_dict() == {"a": 1}
        assert storage.snapshot_depth == 0

    def test_revert_invalid_id(self):
        storage = InMemoryStorage()
        with pytest.raises(ValueError):
            storage.revert(0)

    def test_atomic_commits(self):
        storage = InMemoryStorage()
        with atomic(storage):
            storage.set("a", 1)
        assert storage.get("a") == 1
        assert storage.snapshot_depth == 0

    def test_atomic_reverts_on_error(self):
        storage = InMemoryStorage({"a": 1})
        with pytest.raises(RuntimeError):
            with atomic(storage):
                storage.set("a", 99)
                storage.set("b", 2)
                raise RuntimeError("boom")
        assert storage.to_dict() == {"a": 1}
        assert storage.snapshot_depth == 0

    def test_nested_atomic_inner_failure(self):
        storage = InMemoryStorage()
        with atomic(storage):
            storage.set("outer", 1)
            with pytest.raises(RuntimeError):
                with atomic(storage):
                    storage.set("inner", 2)
                    raise RuntimeError("inner")
            assert storage.get("inner") is None
        assert storage.to_dict() == {"outer": 1}


# ══════════════════════════════════════════════════════════════════════
#  NUMERIC LEDGER
# ══════════════════════════════════════════════════════════════════════

class TestNumericLedger:

    def test_empty(self):
        ledger = NumericLedger(InMemoryStorage())
        assert ledger.total_supply == 0
        assert ledger.balance_of(ALICE) == 0
        assert ledger.holder_count == 0

    def test_mint_and_burn(self):
        ledger = NumericLedger(InMemoryStorage())
        assert ledger.mint_to(ALICE, 100) == 100
        assert ledger.mint_to(BOB, 50) == 150
        assert ledger.burn_from(ALICE, 30) == 120
        assert ledger.balances() == {ALICE: 70, BOB: 50}

    def test_burn_insufficient(self):
        storage = InMemoryStorage()
        ledger = NumericLedger(storage)
        ledger.mint_to(ALICE, 10)
        before = storage.to_dict()
        with pytest.raises(InsufficientBalanceError) as exc:
            ledger.burn_from(ALICE, 11)
        assert exc.value.details == {"sender": ALICE, "balance": 10, "needed": 11}
        assert storage.to_dict() == before

    def test_move(self):
        ledger = NumericLedger(InMemoryStorage())
        ledger.mint_to(ALICE, 100)
        ledger.move(ALICE, BOB, 40)
        assert ledger.balance_of(ALICE) == 60
        assert ledger.balance_of(BOB) == 40
        assert ledger.total_supply == 100

    def test_move_to_self(self):
        ledger = NumericLedger(InMemoryStorage())
        ledger.mint_to(ALICE, 100)
        ledger.move(ALICE, ALICE, 100)
        assert ledger.balance_of(ALICE) == 100
        with pytest.raises(InsufficientBalanceError):
            ledger.move(ALICE, ALICE, 101)

    def test_move_full_balance_clears_slot(self):
        storage = InMemoryStorage()
        ledger = NumericLedger(storage)
        ledger.mint_to(ALICE, 5)
        ledger.move(ALICE, BOB, 5)
        assert "balance:" + ALICE not in storage
        assert ledger.holder_count == 1

    def test_move_overflow_writes_nothing(self):
        storage = InMemoryStorage({"balance:" + BOB: MAX_UINT256, "balance:" + ALICE: 1})
        ledger = NumericLedger(storage)
        with pytest.raises(ArithmeticOverflowError):
            ledger.move(ALICE, BOB, 1)
        assert ledger.balance_of(ALICE) == 1
        assert ledger.balance_of(BOB) == MAX_UINT256

    def test_mint_overflow(self):
        storage = InMemoryStorage({SLOT_TOTAL_SUPPLY: MAX_UINT256})
        ledger = NumericLedger(storage)
        with pytest.raises(ArithmeticOverflowError):
            ledger.mint_to(ALICE, 1)
        assert ledger.balance_of(ALICE) == 0

    def test_credit_debit(self):
        ledger = NumericLedger(InMemoryStorage())
        assert ledger.credit(ALICE, 7) == 7
        assert ledger.debit(ALICE, 7) == 0
        with pytest.raises(InsufficientBalanceError):
            ledger.debit(ALICE, 1)

    def test_check_move_does_not_write(self):
        storage = InMemoryStorage()
        ledger = NumericLedger(storage)
        ledger.mint_to(ALICE, 3)
        ledger.check_move(ALICE, 3)
        assert ledger.balance_of(ALICE) == 3
        with pytest.raises(InsufficientBalanceError):
            ledger.check_move(ALICE, 4)


# ══════════════════════════════════════════════════════════════════════
#  ALLOWANCE TABLE
# ══════════════════════════════════════════════════════════════════════

class TestAllowanceTable:

    def test_approve_overwrites(self):
        table = AllowanceTable(InMemoryStorage())
        table.approve(ALICE, BOB, 100)
        table.approve(ALICE, BOB, 7)
        assert table.allowance(ALICE, BOB) == 7

    def test_allowances_are_directional(self):
        table = AllowanceTable(InMemoryStorage())
        table.approve(ALICE, BOB, 100)
        assert table.allowance(BOB, ALICE) == 0
        assert table.allowances() == {(ALICE, BOB): 100}

    def test_approve_zero_parties(self):
        table = AllowanceTable(InMemoryStorage())
        with pytest.raises(InvalidApproverError):
            table.approve(CHECKSUM_ZERO_ADDRESS, BOB, 1)
        with pytest.raises(InvalidSpenderError):
            table.approve(ALICE, CHECKSUM_ZERO_ADDRESS, 1)

    def test_increase_decrease(self):
        table = AllowanceTable(InMemoryStorage())
        assert table.increase_allowance(ALICE, BOB, 10) == 10
        assert table.increase_allowance(ALICE, BOB, 5) == 15
        assert table.decrease_allowance(ALICE, BOB, 15) == 0
        with pytest.raises(InsufficientAllowanceError):
            table.decrease_allowance(ALICE, BOB, 1)

    def test_spend(self):
        table = AllowanceTable(InMemoryStorage())
        table.approve(ALICE, BOB, 10)
        assert table.spend(ALICE, BOB, 4) == 6
        with pytest.raises(InsufficientAllowanceError) as exc:
            table.spend(ALICE, BOB, 7)
        assert exc.value.details == {"spender": BOB, "allowance": 6, "needed": 7}
        assert table.allowance(ALICE, BOB) == 6

    def test_spend_unlimited(self):
        table = AllowanceTable(InMemoryStorage())
        table.approve(ALICE, BOB, UNLIMITED_ALLOWANCE)
        table.spend(ALICE, BOB, 10 ** 30)
        assert table.allowance(ALICE, BOB) == UNLIMITED_ALLOWANCE

    def test_spend_full_clears_slot(self):
        storage = InMemoryStorage()
        table = AllowanceTable(storage)
        table.approve(ALICE, CAROL, 3)
        table.spend(ALICE, CAROL, 3)
        assert len(storage) == 0


# ══════════════════════════════════════════════════════════════════════
#  ADDRESSES
# ══════════════════════════════════════════════════════════════════════

class TestAddress:

    def test_normalize_lowercase(self):
        assert normalize_address(ALICE.lower()) == ALICE

    def test_normalize_bytes(self):
        assert normalize_address(bytes.fromhex("a1" * 20)) == ALICE

    @pytest.mark.parametrize("value", ["0x1234", "not-an-address", 42, None, b"\x00" * 19])
    def test_normalize_rejects(self, value):
        with pytest.raises(InvalidAddressError):
            normalize_address(value)

    def test_zero_address(self):
        assert is_zero_address(CHECKSUM_ZERO_ADDRESS)
        assert not is_zero_address(ALICE)
