"""Request generations for discarding stale responses.

Each new request on a channel (typically one per tenant and view) takes the
next generation number. A response is only delivered when its generation is
still the newest one on that channel when the awaited fetch completes, so a
slow request can no longer overwrite the results of a newer one.

A channel is forgotten once none of its requests are in flight, so numbering
restarts at 1 for the next request on an idle channel.
"""

from typing import Dict, Hashable


class RequestGenerations:
    """Monotonic counters, one per channel with requests in flight."""

    def __init__(self):
        self._latest: Dict[Hashable, int] = {}
        self._pending: Dict[Hashable, int] = {}

    def __len__(self) -> int:
        return len(self._latest)

    def begin(self, channel: Hashable) -> int:
        generation = self._latest.get(channel, 0) + 1
        self._latest[channel] = generation
        self._pending[channel] = self._pending.get(channel, 0) + 1
        return generation

    def finish(self, channel: Hashable) -> None:
        """Mark one request on ``channel`` as done; pair every ``begin`` with one call."""
        pending = self._pending.get(channel, 0) - 1
        if pending > 0:
            self._pending[channel] = pending
            return
        self._pending.pop(channel, None)
        self._latest.pop(channel, None)

    def is_current(self, channel: Hashable, generation: int) -> bool:
        return self._latest.get(channel) == generation

    def latest(self, channel: Hashable) -> int:
        return self._latest.get(channel, 0)
