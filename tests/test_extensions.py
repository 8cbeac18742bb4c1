"""
Token Extension Test Suite

Coverage:
  - Burnable: burn, burnFrom, supply reduction, allowance consumption
  - Pausable: pause gating, approve while paused, idempotent-reject toggles
  - Capped:   cap enforcement at mint time, constructor cap validation
  - Composition: extensions enabled/disabled independently
"""

import os
import sys

import pytest
from eth_utils import to_checksum_address

# ── Path setup ────────────────────────────────────────────────────────
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from tokenledger.constants import UNLIMITED_ALLOWANCE, ZERO_ADDRESS
from tokenledger.exceptions import (
    AlreadyPausedError,
    AlreadyUnpausedError,
    CapExceededError,
    ContractPausedError,
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidCapError,
    InvalidSenderError,
    UnauthorizedError,
    UnsupportedOperationError,
)
from tokenledger.tokens import ERC20Token, PausedEvent, UnpausedEvent
from tokenledger.tokens.access import AccessControl, Capability


# ══════════════════════════════════════════════════════════════════════
#  HELPERS
# ══════════════════════════════════════════════════════════════════════

ADMIN = to_checksum_address("0x" + "ad" * 20)
GUARDIAN = to_checksum_address("0x" + "9a" * 20)
ALICE = to_checksum_address("0x" + "a1" * 20)
BOB = to_checksum_address("0x" + "b2" * 20)
CAROL = to_checksum_address("0x" + "c3" * 20)
ZERO = to_checksum_address(ZERO_ADDRESS)


def make_token(**kwargs) -> ERC20Token:
    kwargs.setdefault("authority", ADMIN)
    return ERC20Token("My test erc20 token", "MT", **kwargs)


def funded_token(amount=1000, **kwargs) -> ERC20Token:
    token = make_token(**kwargs)
    token.mint(ADMIN, ALICE, amount)
    token.event_sink.clear()
    return token


# ══════════════════════════════════════════════════════════════════════
#  BURNABLE
# ══════════════════════════════════════════════════════════════════════

class TestBurnable:

    def test_burn(self):
        token = funded_token()
        assert token.burn(ALICE, 300) is True
        assert token.balance_of(ALICE) == 700
        assert token.total_supply == 700

    def test_burn_emits_transfer_to_zero(self):
        token = funded_token()
        token.burn(ALICE, 300)
        event = token.events[0]
        assert (event.sender, event.recipient, event.amount) == (ALICE, ZERO, 300)

    def test_burn_insufficient_balance(self):
        token = funded_token()
        with pytest.raises(InsufficientBalanceError):
            token.burn(ALICE, 1001)
        assert token.total_supply == 1000
        assert token.events == []

    def test_burn_from_zero_address_raises(self):
        token = funded_token()
        with pytest.raises(InvalidSenderError):
            token.burn(ZERO_ADDRESS, 1)

    def test_burn_from(self):
        token = funded_token()
        token.approve(ALICE, BOB, 500)
        token.event_sink.clear()
        assert token.burn_from(BOB, ALICE, 200) is True
        assert token.balance_of(ALICE) == 800
        assert token.allowance(ALICE, BOB) == 300
        assert token.total_supply == 800
        assert len(token.events) == 1
        assert token.events[0].recipient == ZERO

    def test_burn_from_exceeds_allowance(self):
        token = funded_token()
        token.approve(ALICE, BOB, 100)
        with pytest.raises(InsufficientAllowanceError):
            token.burn_from(BOB, ALICE, 101)
        assert token.total_supply == 1000

    def test_burn_from_insufficient_balance_keeps_allowance(self):
        token = funded_token(amount=50)
        token.approve(ALICE, BOB, 100)
        with pytest.raises(InsufficientBalanceError):
            token.burn_from(BOB, ALICE, 60)
        assert token.allowance(ALICE, BOB) == 100
        assert token.total_supply == 50

    def test_burn_from_unlimited_allowance(self):
        token = funded_token()
        token.approve(ALICE, BOB, UNLIMITED_ALLOWANCE)
        token.burn_from(BOB, ALICE, 10)
        assert token.allowance(ALICE, BOB) == UNLIMITED_ALLOWANCE

    def test_burn_disabled(self):
        token = funded_token(burnable=False)
        with pytest.raises(UnsupportedOperationError):
            token.burn(ALICE, 1)
        with pytest.raises(UnsupportedOperationError):
            token.burn_from(BOB, ALICE, 1)
        assert token.total_supply == 1000


# ══════════════════════════════════════════════════════════════════════
#  PAUSABLE
# ══════════════════════════════════════════════════════════════════════

class TestPausable:

    def test_pause_and_unpause(self):
        token = make_token()
        assert token.pause(ADMIN) is True
        assert token.paused is True
        assert token.unpause(ADMIN) is True
        assert token.paused is False

    def test_pause_events(self):
        token = make_token()
        token.pause(ADMIN)
        token.unpause(ADMIN)
        paused, unpaused = token.events
        assert isinstance(paused, PausedEvent) and paused.account == ADMIN
        assert isinstance(unpaused, UnpausedEvent) and unpaused.account == ADMIN

    def test_pause_unauthorized(self):
        token = make_token()
        with pytest.raises(UnauthorizedError):
            token.pause(ALICE)
        assert token.paused is False

    def test_unpause_unauthorized(self):
        token = make_token()
        token.pause(ADMIN)
        with pytest.raises(UnauthorizedError):
            token.unpause(ALICE)
        assert token.paused is True

    def test_double_pause_rejected(self):
        token = make_token()
        token.pause(ADMIN)
        with pytest.raises(AlreadyPausedError):
            token.pause(ADMIN)
        assert token.paused is True
        assert len(token.events) == 1

    def test_pause_errors_have_distinct_selectors(self):
        selectors = {
            ContractPausedError("transfer").selector,
            AlreadyPausedError().selector,
            AlreadyUnpausedError().selector,
        }
        assert len(selectors) == 3

    def test_unpause_when_not_paused_rejected(self):
        token = make_token()
        with pytest.raises(AlreadyUnpausedError):
            token.unpause(ADMIN)
        assert token.paused is False
        assert token.events == []

    def test_paused_blocks_value_movement(self):
        token = funded_token()
        token.approve(ALICE, BOB, 100)
        token.pause(ADMIN)
        token.event_sink.clear()

        with pytest.raises(ContractPausedError):
            token.transfer(ALICE, BOB, 1)
        with pytest.raises(ContractPausedError):
            token.transfer_from(BOB, ALICE, CAROL, 1)
        with pytest.raises(ContractPausedError):
            token.mint(ADMIN, ALICE, 1)
        with pytest.raises(ContractPausedError):
            token.burn(ALICE, 1)
        with pytest.raises(ContractPausedError):
            token.burn_from(BOB, ALICE, 1)

        assert token.balance_of(ALICE) == 1000
        assert token.allowance(ALICE, BOB) == 100
        assert token.total_supply == 1000
        assert token.events == []

    def test_approve_allowed_while_paused(self):
        token = funded_token()
        token.pause(ADMIN)
        token.approve(ALICE, BOB, 100)
        token.increase_allowance(ALICE, BOB, 10)
        token.decrease_allowance(ALICE, BOB, 5)
        assert token.allowance(ALICE, BOB) == 105

    def test_transfers_resume_after_unpause(self):
        token = funded_token()
        token.pause(ADMIN)
        token.unpause(ADMIN)
        token.transfer(ALICE, BOB, 10)
        assert token.balance_of(BOB) == 10

    def test_separate_pause_authority(self):
        access = AccessControl({Capability.MINT: ADMIN, Capability.PAUSE: GUARDIAN})
        token = make_token(access=access)
        with pytest.raises(UnauthorizedError):
            token.pause(ADMIN)
        token.pause(GUARDIAN)
        assert token.paused is True
        with pytest.raises(UnauthorizedError):
            token.mint(GUARDIAN, ALICE, 1)

    def test_pause_disabled(self):
        token = funded_token(pausable=False)
        with pytest.raises(UnsupportedOperationError):
            token.pause(ADMIN)
        assert token.paused is False
        assert [g.name for g in token.policy.guards] == []


# ══════════════════════════════════════════════════════════════════════
#  CAPPED
# ══════════════════════════════════════════════════════════════════════

class TestCapped:

    def test_mint_up_to_cap_then_exceed(self):
        token = make_token(cap=1000)
        token.mint(ADMIN, ALICE, 1000)
        assert token.total_supply == 1000
        with pytest.raises(CapExceededError) as exc:
            token.mint(ADMIN, ALICE, 1)
        assert exc.value.details == {"increased_supply": 1001, "cap": 1000}
        assert token.total_supply == 1000
        assert token.balance_of(ALICE) == 1000

    def test_cap_selector(self):
        token = make_token(cap=10)
        with pytest.raises(CapExceededError) as exc:
            token.mint(ADMIN, ALICE, 11)
        assert exc.value.selector == "0x9e79f854"

    def test_burn_frees_room_under_cap(self):
        token = make_token(cap=100)
        token.mint(ADMIN, ALICE, 100)
        token.burn(ALICE, 40)
        token.mint(ADMIN, BOB, 40)
        assert token.total_supply == 100

    def test_supply_never_exceeds_cap(self):
        token = make_token(cap=250)
        for _ in range(10):
            try:
                token.mint(ADMIN, ALICE, 40)
            except CapExceededError:
                pass
            assert token.total_supply <= 250
        assert token.total_supply == 240

    def test_zero_cap_rejected(self):
        with pytest.raises(InvalidCapError) as exc:
            make_token(cap=0)
        assert exc.value.selector == "0x392e1e27"

    def test_negative_cap_rejected(self):
        with pytest.raises(InvalidCapError):
            make_token(cap=-5)

    def test_initial_supply_above_cap_rejected(self):
        with pytest.raises(CapExceededError):
            make_token(cap=100, initial_supply=101)

    def test_cap_checked_after_pause(self):
        token = make_token(cap=10)
        token.pause(ADMIN)
        with pytest.raises(ContractPausedError):
            token.mint(ADMIN, ALICE, 11)

    def test_unauthorized_checked_before_cap(self):
        token = make_token(cap=10)
        with pytest.raises(UnauthorizedError):
            token.mint(ALICE, ALICE, 11)


# ══════════════════════════════════════════════════════════════════════
#  COMPOSITION
# ══════════════════════════════════════════════════════════════════════

class TestComposition:

    def test_guard_order(self):
        token = make_token(cap=10)
        assert [g.name for g in token.policy.guards] == ["pause", "cap"]

    def test_uncapped_has_no_cap_guard(self):
        token = make_token()
        assert [g.name for g in token.policy.guards] == ["pause"]

    def test_plain_erc20(self):
        token = make_token(pausable=False, burnable=False)
        assert len(token.policy) == 0
        token.mint(ADMIN, ALICE, 5)
        token.transfer(ALICE, BOB, 5)
        assert token.balance_of(BOB) == 5
