"""
Reference Contract Host

In-process stand-in for the runtime that hosts a token:
- serializes calls against one token instance
- dispatches by ERC-20 ABI method name
- supplies the caller identity to mutating entry points
- reports token errors as structured values instead of raising

Network transport, signature checking and key management stay outside.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from .exceptions import TokenError, UnsupportedOperationError
from .logger import get_logger
from .tokens.abi import get_entrypoints, is_mutating
from .tokens.erc20 import ERC20Token

logger = get_logger(__name__)


@dataclass
class CallResult:
    """Outcome of one hosted call."""

    method: str
    ok: bool
    result: Optional[Any] = None
    error: Optional[Dict[str, Any]] = None
    events: List[Any] = field(default_factory=list)

    def to_dict(self) -> dict:
        response: Dict[str, Any] = {"method": self.method, "ok": self.ok}
        if self.ok:
            result = self.result
            if isinstance(result, int) and not isinstance(result, bool):
                result = str(result)
            response["result"] = result
            response["events"] = [e.to_dict() for e in self.events]
        else:
            response["error"] = self.error
        return response


class ContractHost:
    """
    Hosts one token instance.

    Usage:
        host = ContractHost(token)
        result = host.call(alice, "transfer", bob, 100)
        if not result.ok:
            print(result.error["kind"])
    """

    def __init__(self, token: ERC20Token):
        self.token = token
        self._methods: Dict[str, Callable] = get_entrypoints(token)
        self._lock = threading.Lock()
        logger.info(f"Hosting {token.symbol} ({len(self._methods)} entry points)")

    def get_methods(self) -> List[str]:
        """Get list of callable ABI method names."""
        return sorted(self._methods)

    def call(self, caller: Any, method: str, *args: Any, **kwargs: Any) -> CallResult:
        """
        Invoke *method* on the hosted token.

        Args:
            caller: Identity the host resolved for this call
            method: ABI method name (e.g. "transferFrom")
            *args, **kwargs: Method arguments, excluding the caller

        Returns:
            CallResult with the return value and emitted events, or the
            structured token error
        """
        handler = self._methods.get(method)
        if handler is None:
            error = UnsupportedOperationError(method)
            return CallResult(method=method, ok=False, error=error.to_dict())

        with self._lock:
            sink = self.token.event_sink
            emitted_before = len(sink)
            try:
                if is_mutating(handler):
                    result = handler(caller, *args, **kwargs)
                else:
                    result = handler(*args, **kwargs)
            except TokenError as e:
                return CallResult(method=method, ok=False, error=e.to_dict())
            events = sink.events[emitted_before:]

        return CallResult(method=method, ok=True, result=result, events=events)
