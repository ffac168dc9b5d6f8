from logging import getLogger
from typing import Generic, List, Optional, TypeVar

logger = getLogger(__name__)

T = TypeVar("T")

DEFAULT_HISTORY_LIMIT = 50


class SnapshotHistory(Generic[T]):
    """Linear undo/redo history of immutable document snapshots.

    ``push`` records a new current snapshot and drops everything that could
    have been redone. Only the newest ``limit`` snapshots are kept.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        self._snapshots: List[T] = []
        self._position = -1

    @property
    def current(self) -> Optional[T]:
        return self._snapshots[self._position] if self._snapshots else None

    def push(self, snapshot: T) -> None:
        del self._snapshots[self._position + 1:]
        self._snapshots.append(snapshot)
        overflow = len(self._snapshots) - self.limit
        if overflow > 0:
            del self._snapshots[:overflow]
        self._position = len(self._snapshots) - 1

    def reset(self, snapshot: T) -> None:
        """Start over with ``snapshot`` as the only entry"""
        self._snapshots = [snapshot]
        self._position = 0

    def can_undo(self) -> bool:
        return self._position > 0

    def can_redo(self) -> bool:
        return self._position < len(self._snapshots) - 1

    def undo(self) -> Optional[T]:
        """Step back; returns the now current snapshot, None if there is nothing to undo"""
        if not self.can_undo():
            logger.debug("Nothing to undo")
            return None
        self._position -= 1
        return self._snapshots[self._position]

    def redo(self) -> Optional[T]:
        if not self.can_redo():
            logger.debug("Nothing to redo")
            return None
        self._position += 1
        return self._snapshots[self._position]

    def __len__(self) -> int:
        return len(self._snapshots)
