"""
Token change notifications.

One event is emitted per successful mutating operation and none on a
rejected one. Each event exposes the keccak topic of its Solidity signature
so off-ledger indexers can match it against logs from any ERC-20.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List

from eth_utils import event_signature_to_log_topic

from ..logger import get_logger

logger = get_logger(__name__)


def _topic(signature: str) -> str:
    return "0x" + event_signature_to_log_topic(signature).hex()


TRANSFER_TOPIC = _topic("Transfer(address,address,uint256)")
APPROVAL_TOPIC = _topic("Approval(address,address,uint256)")
PAUSED_TOPIC = _topic("Paused(address)")
UNPAUSED_TOPIC = _topic("Unpaused(address)")


@dataclass(frozen=True)
class TransferEvent:
    """Emitted on transfer, transferFrom, mint (from zero) and burn (to zero)."""
    token_symbol: str
    sender: str
    recipient: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    kind = "Transfer"
    topic = TRANSFER_TOPIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind,
            "topic": self.topic,
            "token": self.token_symbol,
            "from": self.sender,
            "to": self.recipient,
            "value": str(self.amount),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ApprovalEvent:
    """Emitted on approve and allowance adjustments."""
    token_symbol: str
    owner: str
    spender: str
    amount: int
    timestamp: float = field(default_factory=time.time)

    kind = "Approval"
    topic = APPROVAL_TOPIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind,
            "topic": self.topic,
            "token": self.token_symbol,
            "owner": self.owner,
            "spender": self.spender,
            "value": str(self.amount),
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class PausedEvent:
    token_symbol: str
    account: str
    timestamp: float = field(default_factory=time.time)

    kind = "Paused"
    topic = PAUSED_TOPIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind,
            "topic": self.topic,
            "token": self.token_symbol,
            "account": self.account,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class UnpausedEvent:
    token_symbol: str
    account: str
    timestamp: float = field(default_factory=time.time)

    kind = "Unpaused"
    topic = UNPAUSED_TOPIC

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind,
            "topic": self.topic,
            "token": self.token_symbol,
            "account": self.account,
            "timestamp": self.timestamp,
        }


EventListener = Callable[[Any], None]


class EventSink:
    """
    Collects emitted events and fans them out to subscribers.

    Subscribers are host-side observers (indexers, UIs). A subscriber that
    raises is logged and skipped: delivery problems must not undo a ledger
    mutation that already succeeded.
    """

    def __init__(self) -> None:
        self._events: List[Any] = []
        self._listeners: List[EventListener] = []

    def subscribe(self, listener: EventListener) -> None:
        self._listeners.append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        self._listeners = [l for l in self._listeners if l is not listener]

    def emit(self, event: Any) -> None:
        self._events.append(event)
        for listener in self._listeners:
            try:
                listener(event)
            except Exception as e:
                logger.error("Event listener %r failed on %s: %s", listener, event.kind, e)

    @property
    def events(self) -> List[Any]:
        return list(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def clear(self) -> None:
        self._events.clear()
