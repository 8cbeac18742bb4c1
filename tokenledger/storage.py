"""
Contract Storage

Key-value storage for one token instance's persisted state (balances,
allowances, total supply, pause flag). The host runtime owns the backing
store; the ledger only reads and writes slots through the ``Storage``
interface.

Absent slots read as the caller-supplied default, so a fresh store behaves as
all-zero / all-false state.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

from .logger import get_logger

logger = get_logger(__name__)


class Storage(Protocol):
    """Interface a host storage backend must implement."""

    def get(self, key: str, default: Any = None) -> Any: ...
    def set(self, key: str, value: Any) -> None: ...
    def delete(self, key: str) -> None: ...
    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]: ...
    def snapshot(self) -> int: ...
    def revert(self, snapshot_id: int) -> None: ...
    def commit(self) -> None: ...


class InMemoryStorage:
    """
    Dictionary-backed storage with snapshots and reverts.

    Snapshots are taken at the start of every token operation; a failure
    anywhere in the operation reverts to the snapshot so no partial write
    survives.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._slots: Dict[str, Any] = dict(initial or {})
        self._snapshots: List[Dict[str, Any]] = []

    def get(self, key: str, default: Any = None) -> Any:
        return self._slots.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._slots[key] = value

    def delete(self, key: str) -> None:
        self._slots.pop(key, None)

    def items(self, prefix: str = "") -> Iterator[Tuple[str, Any]]:
        for key, value in list(self._slots.items()):
            if key.startswith(prefix):
                yield key, value

    def __contains__(self, key: str) -> bool:
        return key in self._slots

    def __len__(self) -> int:
        return len(self._slots)

    # ── Snapshots ─────────────────────────────────────────────────────

    def snapshot(self) -> int:
        """
        Create state snapshot for revert.

        Returns:
            Snapshot ID
        """
        self._snapshots.append(dict(self._slots))
        return len(self._snapshots) - 1

    def revert(self, snapshot_id: int) -> None:
        """
        Revert state to snapshot.

        Args:
            snapshot_id: Snapshot ID from snapshot()
        """
        if snapshot_id < 0 or snapshot_id >= len(self._snapshots):
            raise ValueError(f"Invalid snapshot ID: {snapshot_id}")

        self._slots = self._snapshots[snapshot_id]

        # Remove this and newer snapshots
        self._snapshots = self._snapshots[:snapshot_id]

    def commit(self) -> None:
        """Discard all snapshots, making the current state final."""
        self._snapshots.clear()

    @property
    def snapshot_depth(self) -> int:
        return len(self._snapshots)

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._slots)

    def __repr__(self) -> str:
        return f"<InMemoryStorage slots={len(self._slots)} snapshots={len(self._snapshots)}>"


@contextmanager
def atomic(storage: Storage) -> Iterator[Storage]:
    """
    Run a block of storage writes as one unit.

    Any exception raised inside the block reverts every write made since the
    block began and is then re-raised.
    """
    snapshot_id = storage.snapshot()
    try:
        yield storage
    except BaseException:
        storage.revert(snapshot_id)
        logger.debug("Storage reverted to snapshot %d", snapshot_id)
        raise
    else:
        # Only the outermost scope finalises; nested scopes keep the parent's snapshot.
        if snapshot_id == 0:
            storage.commit()
