"""
Channel Impairment Model

An in-process stand-in for the transport between clients and the server.
Each transmitted datagram is dropped, delayed, jittered, held back to
arrive out of order or duplicated. Delivery happens through an event
queue ordered by arrival time, so the receiver sees packets in delivery
order rather than send order.
"""

import heapq
import logging
import random
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

# Lower bound of the hold-back applied to reordered packets
MIN_REORDER_HOLD_MS = 20.0


def _clamp_rate(value: float) -> float:
    return max(0.0, min(1.0, value))


@dataclass(frozen=True)
class NetworkConditions:
    """Impairments applied by the channel."""

    delay_ms: float = 0.0
    jitter_ms: float = 0.0
    packet_loss: float = 0.0
    reorder_rate: float = 0.0
    duplicate_rate: float = 0.0

    @classmethod
    def from_config(cls, network: Dict[str, Any]) -> 'NetworkConditions':
        """Build conditions from the ``network`` configuration section."""
        return cls(
            delay_ms=max(0.0, network.get('delay_ms', 0.0)),
            jitter_ms=max(0.0, network.get('jitter_ms', 0.0)),
            packet_loss=_clamp_rate(network.get('packet_loss', 0.0)),
            reorder_rate=_clamp_rate(network.get('reorder_rate', 0.0)),
            duplicate_rate=_clamp_rate(network.get('duplicate_rate', 0.0)),
        )


class ChannelSimulator:
    """Seeded channel for packet loss, delay, jitter, reordering and duplication."""

    def __init__(self, conditions: Optional[NetworkConditions] = None,
                 seed: Optional[int] = None):
        """Initialize the channel.

        Args:
            conditions: Impairments to apply (defaults to a perfect channel)
            seed: Seed of the channel's random generator
        """
        self.conditions = conditions or NetworkConditions()
        self.random = random.Random(seed)

        self._queue: List[Tuple[float, int, bytes]] = []
        self._counter = 0

        self.sent = 0
        self.lost = 0
        self.duplicated = 0
        self.reordered = 0

    def _delay(self) -> float:
        conditions = self.conditions
        delay_ms = conditions.delay_ms

        # Uniform jitter between -jitter_ms and +jitter_ms
        if conditions.jitter_ms > 0:
            delay_ms += self.random.uniform(-conditions.jitter_ms, conditions.jitter_ms)

        if self.random.random() < conditions.reorder_rate:
            self.reordered += 1
            delay_ms += self.random.uniform(0, 2 * max(conditions.delay_ms, MIN_REORDER_HOLD_MS))

        return max(0.0, delay_ms) / 1000.0

    def _schedule(self, data: bytes, send_time: float) -> None:
        heapq.heappush(self._queue, (send_time + self._delay(), self._counter, data))
        self._counter += 1

    def transmit(self, data: bytes, send_time: float) -> None:
        """Hand a datagram to the channel at ``send_time``."""
        self.sent += 1

        if self.random.random() < self.conditions.packet_loss:
            self.lost += 1
            logger.debug(f"Channel dropped datagram sent at {send_time:.4f}s")
            return

        if self.random.random() < self.conditions.duplicate_rate:
            self.duplicated += 1
            self._schedule(data, send_time)

        self._schedule(data, send_time)

    @property
    def in_flight(self) -> int:
        return len(self._queue)

    def deliver_until(self, now: float) -> Iterator[Tuple[float, bytes]]:
        """Yield ``(arrival_time, data)`` for datagrams arriving by ``now``."""
        while self._queue and self._queue[0][0] <= now:
            arrival_time, _, data = heapq.heappop(self._queue)
            yield arrival_time, data

    def drain(self) -> Iterator[Tuple[float, bytes]]:
        """Yield every datagram still in flight in arrival order."""
        while self._queue:
            arrival_time, _, data = heapq.heappop(self._queue)
            yield arrival_time, data

    def get_stats(self) -> Dict[str, int]:
        return {
            'sent': self.sent,
            'lost': self.lost,
            'duplicated': self.duplicated,
            'reordered': self.reordered,
            'in_flight': self.in_flight,
        }
