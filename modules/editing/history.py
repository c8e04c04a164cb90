"""Bounded, linear undo/redo log for image adjustments."""

from __future__ import annotations

from typing import List, Tuple

from modules.editing.adjustments import DEFAULT_ADJUSTMENTS, AdjustmentVector, compose_filter_description

DEFAULT_CAPACITY = 25


class AdjustmentHistory:
    """Working adjustment vector plus the committed snapshots behind it.

    ``set_channel`` changes only the working vector (one call per slider
    tick); ``commit`` is called once the gesture ends. Committing after an
    undo drops the redo branch. The log never holds more than ``capacity``
    entries, evicting the oldest first.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY, initial: AdjustmentVector = DEFAULT_ADJUSTMENTS) -> None:
        if capacity < 1:
            raise ValueError("History capacity must be at least 1.")
        self.capacity = capacity
        self._entries: List[AdjustmentVector] = [initial]
        self._position = 0
        self.working = initial

    @property
    def entries(self) -> Tuple[AdjustmentVector, ...]:
        """Read-only view of the committed snapshots."""
        return tuple(self._entries)

    @property
    def position(self) -> int:
        return self._position

    @property
    def current(self) -> AdjustmentVector:
        """Snapshot at the current position."""
        return self._entries[self._position]

    @property
    def can_undo(self) -> bool:
        return self._position > 0

    @property
    def can_redo(self) -> bool:
        return self._position < len(self._entries) - 1

    @property
    def has_pending_edit(self) -> bool:
        """True while the working vector differs from the committed snapshot."""
        return self.working != self.current

    def set_channel(self, channel: str, value: float) -> AdjustmentVector:
        """Update one channel of the working vector without touching the log."""
        self.working = self.working.with_channel(channel, value)
        return self.working

    def _push(self, vector: AdjustmentVector) -> None:
        del self._entries[self._position + 1:]
        self._entries.append(vector)
        if len(self._entries) > self.capacity:
            del self._entries[: len(self._entries) - self.capacity]
        self._position = len(self._entries) - 1

    def commit(self) -> bool:
        """Record the working vector if it changed. Returns True when appended."""
        if self.working == self.current:
            return False
        self._push(self.working)
        return True

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self._position -= 1
        self.working = self._entries[self._position]
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self._position += 1
        self.working = self._entries[self._position]
        return True

    def reset(self) -> None:
        """Return to the defaults, always recording a new entry."""
        self.working = DEFAULT_ADJUSTMENTS
        self._push(DEFAULT_ADJUSTMENTS)

    def filter_description(self) -> str:
        """Filter string for the working vector."""
        return compose_filter_description(self.working)
