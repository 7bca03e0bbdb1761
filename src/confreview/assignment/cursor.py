"""Per-track round-robin cursor persistence."""

from __future__ import annotations

from dataclasses import dataclass

from ..io.store import ReviewStore


@dataclass(frozen=True)
class CursorReservation:
    """A window of the round-robin sequence reserved for one selection."""

    track: str
    start: int
    step: int

    @property
    def next_position(self) -> int:
        return self.start + self.step


class AssignmentCursorStore:
    """Typed per-track counter with atomic read-and-increment.

    ``reserve`` must run inside the same store transaction that records
    the resulting assignment so a failed assignment never advances the
    cursor.
    """

    def __init__(self, store: ReviewStore) -> None:
        self._store = store

    def position(self, track: str) -> int:
        return self._store.get_cursor(track)

    def reserve(self, track: str, step: int) -> CursorReservation:
        if step < 0:
            raise ValueError("cursor step must not be negative")
        start = self._store.advance_cursor(track, step)
        return CursorReservation(track=track, start=start, step=step)
