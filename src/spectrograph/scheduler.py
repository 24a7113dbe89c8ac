"""
Cooperative time-slice scheduling.

A client does one bounded unit of work per ``use_time_slice`` call and
returns how many milliseconds should pass before it is called again.
The scheduler here is single-threaded and round-robin; hosts with their own
event loop only need the client interface.
"""

import abc
import logging
import time

logger = logging.getLogger(__name__)


class TimeSliceClient(abc.ABC):
    """Capability implemented by anything that works in cooperative steps."""

    @abc.abstractmethod
    def use_time_slice(self) -> int:
        """Do one bounded unit of work; return a delay hint in milliseconds."""

    @abc.abstractmethod
    def is_complete(self) -> bool:
        """True once the client has no further work."""


class TimeSliceScheduler:
    """
    Round-robin driver for TimeSliceClients.

    Each pass gives one slice to every client whose delay hint has elapsed.
    Finished clients are dropped.
    """

    def __init__(self):
        self._clients: list[TimeSliceClient] = []
        self._due: dict[int, float] = {}

    @property
    def clients(self) -> list[TimeSliceClient]:
        return list(self._clients)

    def add_client(self, client: TimeSliceClient, delay_ms: int = 0):
        """Register a client, first run after ``delay_ms``."""
        if client not in self._clients:
            self._clients.append(client)
        self._due[id(client)] = time.monotonic() + delay_ms / 1000.0

    def remove_client(self, client: TimeSliceClient):
        if client in self._clients:
            self._clients.remove(client)
        self._due.pop(id(client), None)

    def run_once(self, limit: int | None = None) -> int:
        """
        Give one slice to each due client.

        Args:
            limit: Hand out at most this many slices.

        Returns:
            Number of slices handed out.
        """
        slices = 0
        for client in list(self._clients):
            if limit is not None and slices >= limit:
                break

            if client.is_complete():
                self.remove_client(client)
                continue

            if time.monotonic() < self._due.get(id(client), 0.0):
                continue

            delay_ms = client.use_time_slice()
            slices += 1

            if client.is_complete():
                logger.debug("Client %r finished", client)
                self.remove_client(client)
            else:
                self._due[id(client)] = time.monotonic() + max(delay_ms, 0) / 1000.0

        return slices

    def run_until_idle(self, max_slices: int | None = None) -> int:
        """
        Run passes until every client is complete.

        Args:
            max_slices: Stop after this many slices in total.

        Returns:
            Total slices handed out.
        """
        total = 0
        while self._clients:
            if max_slices is not None and total >= max_slices:
                break

            remaining = None if max_slices is None else max_slices - total
            handed_out = self.run_once(limit=remaining)
            total += handed_out

            if handed_out == 0 and self._clients:
                # Everyone is waiting on a delay hint
                next_due = min(self._due.get(id(c), 0.0) for c in self._clients)
                time.sleep(max(next_due - time.monotonic(), 0.0))

        return total
