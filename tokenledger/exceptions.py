"""
tokenledger Exceptions

Error taxonomy for token operations. Every token error is caller-visible and
non-retryable, and carries a ``kind`` name, the 4-byte selector of the
equivalent Solidity custom error, and the structured values that caused it.
"""

from typing import Any, Dict, Optional

from eth_utils import function_signature_to_4byte_selector


class TokenLedgerException(Exception):
    """Base exception for tokenledger."""
    pass


class ConfigurationError(TokenLedgerException):
    """Configuration error."""
    pass


class TokenError(TokenLedgerException):
    """
    Base class for errors raised by token operations.

    Subclasses set ``kind`` (the taxonomy name reported to the host) and
    ``signature`` (the Solidity error signature the selector is derived from).
    """

    kind: str = "TokenError"
    signature: str = ""

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details: Dict[str, Any] = details

    @property
    def selector(self) -> Optional[str]:
        if not self.signature:
            return None
        return "0x" + function_signature_to_4byte_selector(self.signature).hex()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "selector": self.selector,
            "message": self.message,
            "args": {k: _jsonable(v) for k, v in self.details.items()},
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} kind={self.kind} {self.details}>"


def _jsonable(value: Any) -> Any:
    # uint256 values do not survive JSON number round-trips in most clients
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


# ── Arithmetic ────────────────────────────────────────────────────────

# Solidity 0.8 reports both directions as Panic(0x11)
PANIC_ARITHMETIC = 0x11


class ArithmeticOverflowError(TokenError):
    """Arithmetic would exceed the uint256 range."""
    kind = "Overflow"
    signature = "Panic(uint256)"

    def __init__(self, operand: int, delta: int):
        super().__init__(
            f"Overflow: {operand} + {delta} exceeds uint256",
            code=PANIC_ARITHMETIC, operand=operand, delta=delta,
        )


class ArithmeticUnderflowError(TokenError):
    """Arithmetic would go below zero."""
    kind = "Underflow"
    signature = "Panic(uint256)"

    def __init__(self, operand: int, delta: int):
        super().__init__(
            f"Underflow: {operand} - {delta} is negative",
            code=PANIC_ARITHMETIC, operand=operand, delta=delta,
        )


# ── Funds / permission ────────────────────────────────────────────────

class InsufficientBalanceError(TokenError):
    """Raised when sender balance is too low."""
    kind = "InsufficientBalance"
    signature = "ERC20InsufficientBalance(address,uint256,uint256)"

    def __init__(self, sender: str, balance: int, needed: int):
        super().__init__(
            f"{sender} balance {balance} < needed {needed}",
            sender=sender, balance=balance, needed=needed,
        )


class InsufficientAllowanceError(TokenError):
    """Raised when spender allowance is too low."""
    kind = "InsufficientAllowance"
    signature = "ERC20InsufficientAllowance(address,uint256,uint256)"

    def __init__(self, spender: str, allowance: int, needed: int):
        super().__init__(
            f"{spender} allowance {allowance} < needed {needed}",
            spender=spender, allowance=allowance, needed=needed,
        )


# ── Identities ────────────────────────────────────────────────────────

class InvalidSpenderError(TokenError):
    kind = "InvalidSpender"
    signature = "ERC20InvalidSpender(address)"

    def __init__(self, spender: str):
        super().__init__(f"Invalid spender: {spender}", spender=spender)


class InvalidRecipientError(TokenError):
    kind = "InvalidRecipient"
    signature = "ERC20InvalidReceiver(address)"

    def __init__(self, receiver: str):
        super().__init__(f"Invalid recipient: {receiver}", receiver=receiver)


class InvalidSenderError(TokenError):
    kind = "InvalidSender"
    signature = "ERC20InvalidSender(address)"

    def __init__(self, sender: str):
        super().__init__(f"Invalid sender: {sender}", sender=sender)


class InvalidApproverError(TokenError):
    kind = "InvalidApprover"
    signature = "ERC20InvalidApprover(address)"

    def __init__(self, approver: str):
        super().__init__(f"Invalid approver: {approver}", approver=approver)


class InvalidAddressError(TokenError):
    """Value is not a 20-byte account identifier."""
    kind = "InvalidAddress"
    signature = "InvalidAddress()"

    def __init__(self, value: Any):
        super().__init__(f"Not a valid address: {value!r}", value=repr(value))


class InvalidAmountError(TokenError):
    """Amount is not an integer in the uint256 range."""
    kind = "InvalidAmount"
    signature = "InvalidAmount()"

    def __init__(self, value: Any):
        super().__init__(f"Amount must be an integer in [0, 2**256 - 1], got {value!r}", value=repr(value))


# ── Extensions ────────────────────────────────────────────────────────

class ContractPausedError(TokenError):
    """Raised when a value-moving operation is attempted while paused."""
    kind = "ContractPaused"
    signature = "EnforcedPause()"

    def __init__(self, operation: str):
        super().__init__(f"Token is paused: {operation} rejected", operation=operation)


class AlreadyPausedError(TokenError):
    kind = "AlreadyPaused"
    signature = "AlreadyPaused()"

    def __init__(self):
        super().__init__("Token is already paused")


class AlreadyUnpausedError(TokenError):
    kind = "AlreadyUnpaused"
    signature = "ExpectedPause()"

    def __init__(self):
        super().__init__("Token is not paused")


class CapExceededError(TokenError):
    """Mint would push total supply past the cap."""
    kind = "CapExceeded"
    signature = "ERC20ExceededCap(uint256,uint256)"

    def __init__(self, increased_supply: int, cap: int):
        super().__init__(
            f"Supply {increased_supply} would exceed cap {cap}",
            increased_supply=increased_supply, cap=cap,
        )


class InvalidCapError(TokenError):
    kind = "InvalidCap"
    signature = "ERC20InvalidCap(uint256)"

    def __init__(self, cap: Any):
        super().__init__(f"Invalid cap: {cap!r}", cap=cap)


class UnauthorizedError(TokenError):
    """Caller lacks the capability required by a privileged operation."""
    kind = "Unauthorized"
    signature = "AccessControlUnauthorizedAccount(address,bytes32)"

    def __init__(self, account: str, capability: str):
        super().__init__(
            f"{account} is not authorized for {capability}",
            account=account, capability=capability,
        )


class UnsupportedOperationError(TokenError):
    """Operation is unknown or its extension is not enabled on this token."""
    kind = "UnsupportedOperation"
    signature = "UnsupportedOperation()"

    def __init__(self, operation: str):
        super().__init__(f"Unsupported operation: {operation}", operation=operation)
