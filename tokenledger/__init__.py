"""
tokenledger: ERC-20 ledger with burnable, pausable and capped extensions.
"""

__version__ = "0.1.0"

from .exceptions import TokenError, TokenLedgerException
from .host import CallResult, ContractHost
from .storage import InMemoryStorage
from .tokens import ERC20Token

__all__ = [
    "ERC20Token",
    "ContractHost",
    "CallResult",
    "InMemoryStorage",
    "TokenError",
    "TokenLedgerException",
]
