"""
Epochs identify one polling attempt (FetchEpoch) or one rendering pass.

Work belonging to an older epoch may still be suspended on a network call when
a newer epoch starts. Cancelling the epoch aborts its task; every continuation
also re-checks the epoch after each await so superseded work becomes a no-op.
"""

import asyncio
from typing import Optional


class EpochSuperseded(Exception):
    """Raised inside superseded work to unwind it without surfacing an error."""

    def __init__(self, epoch: int):
        super().__init__(f"Epoch #{epoch} was superseded")
        self.epoch = epoch


class FetchEpoch:
    """Cancellation token for one fetch cycle."""

    def __init__(self, number: int):
        self.number = number
        self.task: Optional[asyncio.Task] = None
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Flag the epoch and abort its in-flight requests."""
        if self._cancelled:
            return
        self._cancelled = True
        task = self.task
        # A task cannot usefully cancel itself mid-step; it unwinds at its next check.
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise EpochSuperseded(self.number)

    def __repr__(self):
        return f"<FetchEpoch(number={self.number}, cancelled={self._cancelled})>"
