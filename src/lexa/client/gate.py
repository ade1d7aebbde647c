"""Ownership of the single request that may update visible chat state."""

import asyncio
import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestTicket:
    """Identity of one outbound request, captured when it starts."""

    generation: int


class RequestGate:
    """Tracks which request currently owns the chat.

    Ownership is a monotonically increasing generation number. A request
    captures its ticket at start and checks it before each mutation; a
    newer request or an explicit cancel makes every older ticket stale.
    """

    def __init__(self) -> None:
        self._generation = 0
        self._task: asyncio.Task | None = None

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def busy(self) -> bool:
        """True while the owning request's task is still running."""
        return self._task is not None and not self._task.done()

    def begin(self) -> RequestTicket:
        """Start a new request, superseding any request still in flight."""
        self._abort_task()
        self._generation += 1
        return RequestTicket(self._generation)

    def attach(self, ticket: RequestTicket, task: asyncio.Task) -> None:
        """Register the task that runs the request for ticket."""
        if self.is_current(ticket):
            self._task = task

    def is_current(self, ticket: RequestTicket) -> bool:
        return ticket.generation == self._generation

    def release(self, ticket: RequestTicket) -> None:
        """Forget the task of a request that has finished on its own."""
        if self.is_current(ticket):
            self._task = None

    def cancel(self) -> bool:
        """Cancel the owning request.

        Returns:
            True if a running request was cancelled, False if there was
            nothing to cancel.
        """
        if not self.busy:
            self._task = None
            return False
        self._generation += 1
        self._abort_task()
        return True

    def _abort_task(self) -> None:
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling superseded request")
            self._task.cancel()
        self._task = None
