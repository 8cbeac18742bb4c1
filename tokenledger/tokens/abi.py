"""
ABI entry point registration.

Token methods callable by name from a host are marked with ``@entrypoint``,
which records the ERC-20 ABI name (camelCase) the host dispatches on.
"""

from typing import Any, Callable, Dict

ENTRYPOINT_ATTR = "__entrypoint__"
MUTATING_ATTR = "__mutating__"


def entrypoint(abi_name: str, mutating: bool = True) -> Callable:
    """
    Decorator to mark a token method as a host-callable entry point.

    Usage:
        @entrypoint("transferFrom")
        def transfer_from(self, caller, owner, to, amount) -> bool:
            ...

    View entry points are registered with ``mutating=False`` and receive no
    caller argument.
    """
    def decorator(func: Callable) -> Callable:
        setattr(func, ENTRYPOINT_ATTR, abi_name)
        setattr(func, MUTATING_ATTR, mutating)
        return func
    return decorator


def get_entrypoints(obj: Any) -> Dict[str, Callable]:
    """
    Get all entry points of *obj*.

    Returns:
        Dict mapping ABI names to bound methods
    """
    methods = {}
    for name in dir(type(obj)):
        if name.startswith("_"):
            continue
        attr = getattr(type(obj), name)
        # Views exposed as properties carry the marker on their getter
        func = attr.fget if isinstance(attr, property) else attr
        abi_name = getattr(func, ENTRYPOINT_ATTR, None)
        if abi_name is not None:
            methods[abi_name] = func.__get__(obj, type(obj))
    return methods


def is_mutating(method: Callable) -> bool:
    return getattr(method, MUTATING_ATTR, True)
