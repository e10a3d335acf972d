"""Mockup repository for MerchMagic.

Single owner of the in-memory mockup table. Every mutation goes through
replace_all() or update(), each of which completes without yielding to the
event loop, so concurrent workers never observe a half-applied change.
"""

import math
from typing import Callable, Optional

from pydantic import BaseModel

from merchmagic.models.mockup import Mockup, MockupStatus


class StudioStats(BaseModel):
    """Aggregate counts for the current mockup set."""

    total: int
    ready: int
    errors: int
    progress: int


def compute_progress(ready: int, errors: int, total: int) -> int:
    """Percentage of mockups that reached ready or error, rounded half up."""
    if total <= 0:
        return 0
    return math.floor(100 * (ready + errors) / total + 0.5)


class MockupRepository:
    """Repository for Mockup entities of the current batch.

    Callers receive copies; changes are applied only through update().
    """

    def __init__(self) -> None:
        self._mockups: dict[str, Mockup] = {}
        self.version = 0

    def replace_all(self, mockups: list[Mockup]) -> None:
        """Publish a new mockup set, discarding the previous one.

        Args:
            mockups: New records in catalog order
        """
        self._mockups = {mockup.id: mockup.model_copy() for mockup in mockups}
        self.version += 1

    def list_all(self) -> list[Mockup]:
        """Return copies of all mockups in catalog order."""
        return [mockup.model_copy() for mockup in self._mockups.values()]

    def get_by_id(self, mockup_id: str) -> Optional[Mockup]:
        """Retrieve a copy of a mockup by id.

        Returns:
            Mockup if found, None otherwise
        """
        mockup = self._mockups.get(mockup_id)
        return mockup.model_copy() if mockup is not None else None

    def update(self, mockup_id: str, change: Callable[[Mockup], None]) -> Optional[Mockup]:
        """Apply a change to one mockup and store the result.

        The change runs on a copy; if it raises, the stored record is untouched.

        Args:
            mockup_id: Mockup's unique identifier
            change: Function mutating the copy (typically a mark_* transition)

        Returns:
            Updated mockup, or None if the id is not in the current set
        """
        current = self._mockups.get(mockup_id)
        if current is None:
            return None

        updated = current.model_copy()
        change(updated)
        self._mockups[mockup_id] = updated
        self.version += 1
        return updated.model_copy()

    def get_ready(self) -> list[Mockup]:
        """Return copies of mockups with status ready, in catalog order."""
        return [m.model_copy() for m in self._mockups.values() if m.status == MockupStatus.READY]

    def count_by_status(self) -> dict[MockupStatus, int]:
        """Count mockups per status; every status is present in the result."""
        counts = {status: 0 for status in MockupStatus}
        for mockup in self._mockups.values():
            counts[mockup.status] += 1
        return counts

    def get_stats(self) -> StudioStats:
        """Summarize the current set (errors count toward progress)."""
        counts = self.count_by_status()
        total = len(self._mockups)
        ready = counts[MockupStatus.READY]
        errors = counts[MockupStatus.ERROR]
        return StudioStats(
            total=total,
            ready=ready,
            errors=errors,
            progress=compute_progress(ready, errors, total),
        )
