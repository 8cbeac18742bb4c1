"""
ERC-20 Token with burnable, pausable and capped extensions.

Implements the public operation set of an ERC-20 token:
  - ERC-20 interface (transfer, approve, transferFrom, balanceOf, allowance)
  - allowance adjustments (increaseAllowance / decreaseAllowance)
  - mint (authority only, subject to the cap)
  - burn / burnFrom (burnable extension)
  - pause / unpause (pausable extension, authority only)

Every mutating operation runs the same sequence:
    resolve identities → access control → policy chain → atomic mutation → event

Extensions do not override base methods. Pausable and capped each register a
guard on the token's PolicyChain; burnable only enables its operations.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, Optional

from ..address import CHECKSUM_ZERO_ADDRESS, AddressLike, is_zero_address, normalize_address
from ..constants import DEFAULT_DECIMALS, MAX_DECIMALS, MAX_UINT256, SLOT_CAP, SLOT_PAUSED
from ..exceptions import (
    AlreadyPausedError,
    AlreadyUnpausedError,
    CapExceededError,
    ConfigurationError,
    InvalidCapError,
    InvalidRecipientError,
    InvalidSenderError,
    TokenError,
    UnsupportedOperationError,
)
from ..logger import get_logger
from ..storage import InMemoryStorage, Storage, atomic
from .abi import entrypoint
from .access import AccessControl, Capability
from .allowances import AllowanceTable
from .events import (
    ApprovalEvent,
    EventSink,
    PausedEvent,
    TransferEvent,
    UnpausedEvent,
)
from .ledger import NumericLedger
from .policy import CapGuard, Guard, GuardContext, OperationKind, PauseGuard, PolicyChain
from .uint256 import require_amount

logger = get_logger(__name__)

# Storage marker set once the constructor-time supply has been minted
SLOT_INITIALIZED = "initialized"


class ERC20Token:
    """
    Fungible token over host-provided storage.

    Construction is deployment: metadata, cap, authority and extensions are
    fixed for the lifetime of the instance. Balances, allowances, total supply
    and the pause flag live in ``storage`` and are read from it on every call,
    so a token re-created over the same storage resumes the same state. The
    cap is persisted at first deployment and must match on every later one.

    Failed operations raise a ``TokenError`` subclass, leave storage exactly
    as it was before the call and emit nothing.
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        decimals: int = DEFAULT_DECIMALS,
        *,
        authority: AddressLike,
        cap: Optional[int] = None,
        initial_supply: int = 0,
        pausable: bool = True,
        burnable: bool = True,
        storage: Optional[Storage] = None,
        event_sink: Optional[EventSink] = None,
        access: Optional[AccessControl] = None,
        extra_guards: Iterable[Guard] = (),
    ):
        """
        Args:
            name: Human-readable token name (display only)
            symbol: Short ticker (display only)
            decimals: Fractional digits (display only, 0-255)
            authority: Identity granted the mint and pause capabilities
            cap: Hard ceiling on total supply; None means uncapped
            initial_supply: Minted to *authority* on first deployment
            pausable: Register the pause guard and enable pause/unpause
            burnable: Enable burn/burnFrom
            storage: Host storage backend (in-memory if omitted)
            event_sink: Receiver of change notifications
            access: Explicit capability grants, overriding *authority*
            extra_guards: Additional guards appended after the built-in ones
        """
        if not name:
            raise ConfigurationError("Token name cannot be empty")
        if not symbol:
            raise ConfigurationError("Token symbol cannot be empty")
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= MAX_DECIMALS:
            raise ConfigurationError(f"Decimals must be 0-{MAX_DECIMALS}, got {decimals!r}")
        if cap is not None:
            if isinstance(cap, bool) or not isinstance(cap, int) or not 0 < cap <= MAX_UINT256:
                raise InvalidCapError(cap)

        self._name = name
        self._symbol = symbol
        self._decimals = decimals
        self._cap = cap
        self._pausable = pausable
        self._burnable = burnable

        self._storage = storage if storage is not None else InMemoryStorage()
        self._events = event_sink if event_sink is not None else EventSink()
        self._access = access if access is not None else AccessControl.single(authority)
        self._ledger = NumericLedger(self._storage)
        self._allowances = AllowanceTable(self._storage)

        self._policy = PolicyChain()
        if pausable:
            self._policy.register(PauseGuard())
        if cap is not None:
            self._policy.register(CapGuard(cap))
        for guard in extra_guards:
            self._policy.register(guard)

        if not self._storage.get(SLOT_INITIALIZED, False):
            self._deploy(require_amount(initial_supply))
        elif self._storage.get(SLOT_CAP) != cap:
            # The cap is fixed at first deployment; an absent slot means uncapped
            raise InvalidCapError(cap)

        logger.info(
            f"[{symbol}] deployed: {name}, supply={self.total_supply}, "
            f"cap={cap if cap is not None else 'none'}"
        )

    @classmethod
    def from_config(cls, config, **kwargs: Any) -> "ERC20Token":
        """Build a token from a validated ``TokenConfig``."""
        config.validate()
        return cls(
            config.name,
            config.symbol,
            config.decimals,
            authority=config.authority,
            cap=config.cap,
            initial_supply=config.initial_supply,
            pausable=config.pausable,
            burnable=config.burnable,
            **kwargs,
        )

    def _deploy(self, initial_supply: int) -> None:
        if self._cap is not None and initial_supply > self._cap:
            raise CapExceededError(initial_supply, self._cap)
        authority = self._access.authority_of(Capability.MINT)
        if initial_supply and authority is None:
            raise ConfigurationError("Initial supply requires a minting authority")
        with atomic(self._storage):
            if initial_supply:
                self._ledger.mint_to(authority, initial_supply)
            if self._cap is not None:
                self._storage.set(SLOT_CAP, self._cap)
            self._storage.set(SLOT_INITIALIZED, True)
        if initial_supply:
            self._emit(TransferEvent(self._symbol, CHECKSUM_ZERO_ADDRESS, authority, initial_supply))

    # ── Read-only views ───────────────────────────────────────────────

    @property
    @entrypoint("name", mutating=False)
    def name(self) -> str:
        return self._name

    @property
    @entrypoint("symbol", mutating=False)
    def symbol(self) -> str:
        return self._symbol

    @property
    @entrypoint("decimals", mutating=False)
    def decimals(self) -> int:
        return self._decimals

    @property
    @entrypoint("cap", mutating=False)
    def cap(self) -> Optional[int]:
        return self._cap

    @property
    @entrypoint("totalSupply", mutating=False)
    def total_supply(self) -> int:
        return self._ledger.total_supply

    @property
    @entrypoint("paused", mutating=False)
    def paused(self) -> bool:
        return bool(self._storage.get(SLOT_PAUSED, False))

    @entrypoint("balanceOf", mutating=False)
    def balance_of(self, account: AddressLike) -> int:
        return self._ledger.balance_of(normalize_address(account))

    @entrypoint("allowance", mutating=False)
    def allowance(self, owner: AddressLike, spender: AddressLike) -> int:
        return self._allowances.allowance(normalize_address(owner), normalize_address(spender))

    def authority_of(self, capability: Capability) -> Optional[str]:
        return self._access.authority_of(capability)

    @property
    def is_pausable(self) -> bool:
        return self._pausable

    @property
    def is_burnable(self) -> bool:
        return self._burnable

    @property
    def policy(self) -> PolicyChain:
        return self._policy

    @property
    def storage(self) -> Storage:
        return self._storage

    @property
    def event_sink(self) -> EventSink:
        return self._events

    @property
    def events(self):
        return self._events.events

    def holders(self) -> Dict[str, int]:
        return self._ledger.balances()

    # ── Call sequencing ───────────────────────────────────────────────

    @staticmethod
    def _sender(account: AddressLike) -> str:
        account = normalize_address(account)
        if is_zero_address(account):
            raise InvalidSenderError(account)
        return account

    @staticmethod
    def _recipient(account: AddressLike) -> str:
        account = normalize_address(account)
        if is_zero_address(account):
            raise InvalidRecipientError(account)
        return account

    def _require_extension(self, enabled: bool, operation: OperationKind) -> None:
        if not enabled:
            raise UnsupportedOperationError(operation.value)

    @contextmanager
    def _call(
        self,
        operation: OperationKind,
        caller: str,
        amount: int = 0,
        sender: Optional[str] = None,
        recipient: Optional[str] = None,
    ) -> Iterator[None]:
        """Run the policy chain, then the body as one atomic storage unit."""
        try:
            self._policy.enforce(GuardContext(
                operation=operation,
                caller=caller,
                amount=amount,
                sender=sender,
                recipient=recipient,
                total_supply=self._ledger.total_supply,
                paused=self.paused,
            ))
            with atomic(self._storage):
                yield
        except TokenError as e:
            logger.debug(f"[{self._symbol}] {operation.value} by {caller} rejected: {e.kind}")
            raise

    def _emit(self, event: Any) -> None:
        self._events.emit(event)

    # ── Core ERC-20 operations ────────────────────────────────────────

    @entrypoint("transfer")
    def transfer(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        """
        Move *amount* from the caller to *to*.

        Emits a Transfer event.
        """
        caller = self._sender(caller)
        to = self._recipient(to)
        amount = require_amount(amount)

        with self._call(OperationKind.TRANSFER, caller, amount, sender=caller, recipient=to):
            self._ledger.move(caller, to, amount)

        self._emit(TransferEvent(self._symbol, caller, to, amount))
        logger.debug(f"[{self._symbol}] Transfer: {caller} → {to} {amount}")
        return True

    @entrypoint("approve")
    def approve(self, caller: AddressLike, spender: AddressLike, amount: int) -> bool:
        """
        Set *spender*'s allowance over the caller's tokens to *amount*.

        This overwrites any previous allowance (ERC-20 semantics). Approving
        ``UNLIMITED_ALLOWANCE`` makes the allowance exempt from consumption.
        Permitted while paused.

        Emits an Approval event.
        """
        caller = normalize_address(caller)
        spender = normalize_address(spender)
        amount = require_amount(amount)

        with self._call(OperationKind.APPROVE, caller, amount, sender=caller, recipient=spender):
            self._allowances.approve(caller, spender, amount)

        self._emit(ApprovalEvent(self._symbol, caller, spender, amount))
        logger.debug(f"[{self._symbol}] Approval: {caller} → {spender} allowance={amount}")
        return True

    @entrypoint("increaseAllowance")
    def increase_allowance(self, caller: AddressLike, spender: AddressLike, delta: int) -> bool:
        caller = normalize_address(caller)
        spender = normalize_address(spender)
        delta = require_amount(delta)

        with self._call(OperationKind.APPROVE, caller, delta, sender=caller, recipient=spender):
            new_value = self._allowances.increase_allowance(caller, spender, delta)

        self._emit(ApprovalEvent(self._symbol, caller, spender, new_value))
        return True

    @entrypoint("decreaseAllowance")
    def decrease_allowance(self, caller: AddressLike, spender: AddressLike, delta: int) -> bool:
        caller = normalize_address(caller)
        spender = normalize_address(spender)
        delta = require_amount(delta)

        with self._call(OperationKind.APPROVE, caller, delta, sender=caller, recipient=spender):
            new_value = self._allowances.decrease_allowance(caller, spender, delta)

        self._emit(ApprovalEvent(self._symbol, caller, spender, new_value))
        return True

    @entrypoint("transferFrom")
    def transfer_from(
        self,
        caller: AddressLike,
        owner: AddressLike,
        to: AddressLike,
        amount: int,
    ) -> bool:
        """
        Move *amount* from *owner* to *to* using the caller's allowance.

        Allowance and balance are both checked before anything is written, so
        a failing balance leaves the allowance untouched.

        Emits a Transfer event. The allowance decrement emits nothing.
        """
        spender = normalize_address(caller)
        owner = self._sender(owner)
        to = self._recipient(to)
        amount = require_amount(amount)

        with self._call(OperationKind.TRANSFER_FROM, spender, amount, sender=owner, recipient=to):
            self._allowances.check_spend(owner, spender, amount)
            self._ledger.check_move(owner, amount)
            self._allowances.spend(owner, spender, amount)
            self._ledger.move(owner, to, amount)

        self._emit(TransferEvent(self._symbol, owner, to, amount))
        logger.debug(f"[{self._symbol}] transferFrom: spender={spender} {owner} → {to} {amount}")
        return True

    # ── Supply: mint ──────────────────────────────────────────────────

    @entrypoint("mint")
    def mint(self, caller: AddressLike, to: AddressLike, amount: int) -> bool:
        """
        Create *amount* tokens on *to*. Minting authority only; subject to the
        cap and the pause flag.

        Emits a Transfer event from the zero address.
        """
        caller = normalize_address(caller)
        self._access.authorize(caller, Capability.MINT)
        to = self._recipient(to)
        amount = require_amount(amount)

        with self._call(OperationKind.MINT, caller, amount, recipient=to):
            new_supply = self._ledger.mint_to(to, amount)

        self._emit(TransferEvent(self._symbol, CHECKSUM_ZERO_ADDRESS, to, amount))
        logger.info(f"[{self._symbol}] Mint: {amount} → {to}, supply={new_supply}")
        return True

    # ── Burnable extension ────────────────────────────────────────────

    @entrypoint("burn")
    def burn(self, caller: AddressLike, amount: int) -> bool:
        """
        Destroy *amount* of the caller's tokens.

        Emits a Transfer event to the zero address.
        """
        self._require_extension(self._burnable, OperationKind.BURN)
        caller = self._sender(caller)
        amount = require_amount(amount)

        with self._call(OperationKind.BURN, caller, amount, sender=caller):
            new_supply = self._ledger.burn_from(caller, amount)

        self._emit(TransferEvent(self._symbol, caller, CHECKSUM_ZERO_ADDRESS, amount))
        logger.info(f"[{self._symbol}] Burn: {caller} burned {amount}, supply={new_supply}")
        return True

    @entrypoint("burnFrom")
    def burn_from(self, caller: AddressLike, owner: AddressLike, amount: int) -> bool:
        """
        Destroy *amount* of *owner*'s tokens, consuming the caller's allowance.

        Emits a Transfer event to the zero address.
        """
        self._require_extension(self._burnable, OperationKind.BURN_FROM)
        spender = normalize_address(caller)
        owner = self._sender(owner)
        amount = require_amount(amount)

        with self._call(OperationKind.BURN_FROM, spender, amount, sender=owner):
            self._allowances.check_spend(owner, spender, amount)
            self._ledger.check_move(owner, amount)
            self._allowances.spend(owner, spender, amount)
            new_supply = self._ledger.burn_from(owner, amount)

        self._emit(TransferEvent(self._symbol, owner, CHECKSUM_ZERO_ADDRESS, amount))
        logger.info(
            f"[{self._symbol}] burnFrom: spender={spender} burned {amount} of {owner}, "
            f"supply={new_supply}"
        )
        return True

    # ── Pausable extension ────────────────────────────────────────────

    @entrypoint("pause")
    def pause(self, caller: AddressLike) -> bool:
        """
        Freeze all value movement. Pausing authority only.

        Raises:
            AlreadyPausedError: if the token is already paused
        """
        self._require_extension(self._pausable, OperationKind.PAUSE)
        caller = normalize_address(caller)
        self._access.authorize(caller, Capability.PAUSE)

        with self._call(OperationKind.PAUSE, caller):
            if self.paused:
                raise AlreadyPausedError()
            self._storage.set(SLOT_PAUSED, True)

        self._emit(PausedEvent(self._symbol, caller))
        logger.warning(f"[{self._symbol}] Paused by {caller}")
        return True

    @entrypoint("unpause")
    def unpause(self, caller: AddressLike) -> bool:
        """
        Lift the pause. Pausing authority only.

        Raises:
            AlreadyUnpausedError: if the token is not paused
        """
        self._require_extension(self._pausable, OperationKind.UNPAUSE)
        caller = normalize_address(caller)
        self._access.authorize(caller, Capability.PAUSE)

        with self._call(OperationKind.UNPAUSE, caller):
            if not self.paused:
                raise AlreadyUnpausedError()
            self._storage.delete(SLOT_PAUSED)

        self._emit(UnpausedEvent(self._symbol, caller))
        logger.info(f"[{self._symbol}] Unpaused by {caller}")
        return True

    # ── Serialization ─────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self._name,
            "symbol": self._symbol,
            "decimals": self._decimals,
            "totalSupply": str(self.total_supply),
            "cap": None if self._cap is None else str(self._cap),
            "paused": self.paused,
            "pausable": self._pausable,
            "burnable": self._burnable,
            "authorities": self._access.to_dict(),
            "guards": [g.name for g in self._policy.guards],
            "holders": self._ledger.holder_count,
        }

    def __repr__(self) -> str:
        return f"<ERC20Token {self._symbol} supply={self.total_supply}>"
