"""
tokenledger Token Standard

Provides:
  - ERC20Token     : ERC-20 facade with burnable / pausable / capped extensions
  - NumericLedger  : balances and total supply
  - AllowanceTable : delegated spending limits
  - PolicyChain    : ordered pre-operation guards (PauseGuard, CapGuard)
  - AccessControl  : capability → authority checks
"""

from .access import AccessControl, Capability
from .allowances import AllowanceTable
from .erc20 import ERC20Token
from .events import (
    ApprovalEvent,
    EventSink,
    PausedEvent,
    TransferEvent,
    UnpausedEvent,
)
from .ledger import NumericLedger
from .policy import (
    CapGuard,
    Guard,
    GuardContext,
    GuardResult,
    OperationKind,
    PauseGuard,
    PolicyChain,
)

__all__ = [
    # Facade
    "ERC20Token",
    # Components
    "NumericLedger",
    "AllowanceTable",
    "AccessControl",
    "Capability",
    # Policy chain
    "PolicyChain",
    "Guard",
    "GuardContext",
    "GuardResult",
    "OperationKind",
    "PauseGuard",
    "CapGuard",
    # Events
    "EventSink",
    "TransferEvent",
    "ApprovalEvent",
    "PausedEvent",
    "UnpausedEvent",
]
