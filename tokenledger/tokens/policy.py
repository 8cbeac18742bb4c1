"""
Policy Chain: pre-operation guards for token extensions.

Extensions (pausable, capped, ...) do not override token methods. Each one
contributes an independent guard, and the token runs the whole chain before
every operation:
  - guards run in registration order
  - the first rejection wins; later guards are not consulted
  - a rejection aborts the operation before any state is written

Chains compose by concatenation (``PolicyChain(a) + PolicyChain(b)``), so
enabling an extension never depends on method resolution order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional, Protocol

from ..exceptions import CapExceededError, ContractPausedError, TokenError
from ..logger import get_logger

logger = get_logger(__name__)


class OperationKind(str, Enum):
    TRANSFER = "transfer"
    TRANSFER_FROM = "transferFrom"
    APPROVE = "approve"
    MINT = "mint"
    BURN = "burn"
    BURN_FROM = "burnFrom"
    PAUSE = "pause"
    UNPAUSE = "unpause"


# Operations that move value; blocked while paused
VALUE_MOVING = frozenset({
    OperationKind.TRANSFER,
    OperationKind.TRANSFER_FROM,
    OperationKind.MINT,
    OperationKind.BURN,
    OperationKind.BURN_FROM,
})


# ---------------------------------------------------------------------------
# Guard context / result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GuardContext:
    """State snapshot handed to every guard."""
    operation: OperationKind
    caller: str
    amount: int = 0
    sender: Optional[str] = None
    recipient: Optional[str] = None
    total_supply: int = 0
    paused: bool = False


@dataclass(frozen=True)
class GuardResult:
    allow: bool = True
    error: Optional[TokenError] = None
    guard: str = ""

    @classmethod
    def reject(cls, error: TokenError, guard: str = "") -> "GuardResult":
        return cls(allow=False, error=error, guard=guard)


ALLOW = GuardResult()


class Guard(Protocol):
    """Protocol that policy guards must implement."""

    @property
    def name(self) -> str: ...

    def evaluate(self, ctx: GuardContext) -> GuardResult: ...


# ---------------------------------------------------------------------------
# Chain
# ---------------------------------------------------------------------------

class PolicyChain:
    """Ordered list of guards evaluated before every token operation."""

    def __init__(self, guards: Iterable[Guard] = ()) -> None:
        self._guards: List[Guard] = list(guards)

    def register(self, guard: Guard) -> None:
        self._guards.append(guard)
        logger.info("Guard registered: %s", guard.name)

    def unregister(self, guard: Guard) -> None:
        self._guards = [g for g in self._guards if g is not guard]

    @property
    def guards(self) -> List[Guard]:
        return list(self._guards)

    def __len__(self) -> int:
        return len(self._guards)

    def __add__(self, other: "PolicyChain") -> "PolicyChain":
        return PolicyChain(self._guards + other.guards)

    def evaluate(self, ctx: GuardContext) -> GuardResult:
        for guard in self._guards:
            try:
                result = guard.evaluate(ctx)
            except TokenError as e:
                return GuardResult.reject(e, guard.name)
            except Exception as e:
                # A broken guard must never be read as approval
                logger.error("Guard %s failed on %s: %s", guard.name, ctx.operation.value, e)
                return GuardResult.reject(TokenError(f"Guard error: {e}"), guard.name)
            if not result.allow:
                return result
        return ALLOW

    def enforce(self, ctx: GuardContext) -> None:
        """Evaluate the chain and raise the rejecting guard's error."""
        result = self.evaluate(ctx)
        if not result.allow:
            logger.debug(
                "%s rejected by %s: %s",
                ctx.operation.value, result.guard, result.error.kind,
            )
            raise result.error

    def __repr__(self) -> str:
        return f"<PolicyChain {[g.name for g in self._guards]}>"


# ---------------------------------------------------------------------------
# Built-in guards
# ---------------------------------------------------------------------------

class PauseGuard:
    """Rejects value-moving operations while the token is paused."""

    name = "pause"

    def evaluate(self, ctx: GuardContext) -> GuardResult:
        if ctx.paused and ctx.operation in VALUE_MOVING:
            return GuardResult.reject(ContractPausedError(ctx.operation.value), self.name)
        return ALLOW


class CapGuard:
    """Rejects mints that would push total supply past ``cap``."""

    name = "cap"

    def __init__(self, cap: int) -> None:
        self.cap = cap

    def evaluate(self, ctx: GuardContext) -> GuardResult:
        if ctx.operation is OperationKind.MINT:
            increased_supply = ctx.total_supply + ctx.amount
            if increased_supply > self.cap:
                return GuardResult.reject(CapExceededError(increased_supply, self.cap), self.name)
        return ALLOW
