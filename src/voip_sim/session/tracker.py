"""
Session Statistics Tracker

Per-user sequential loss detection on packet arrival, and the derived
call quality metrics (packet loss, jitter, end-to-end delay and
throughput) computed when the session is torn down.
"""

import enum
import logging
from dataclasses import dataclass, field, asdict
from typing import Dict, List, Optional, Tuple

from voip_sim.errors import AddressingError, ConfigurationError
from voip_sim.utils.statistics import (
    calculate_mos,
    calculate_packet_loss_percent,
    mean,
    mean_delay,
    mean_jitter,
)

logger = logging.getLogger(__name__)

LOSS_BASES = ('per_user', 'session')


class ArrivalOutcome(enum.Enum):
    """How the tracker accounted for one arriving packet."""

    IN_ORDER = 'in_order'
    GAP = 'gap'
    LATE = 'late'
    REJECTED = 'rejected'
    AFTER_TEARDOWN = 'after_teardown'


@dataclass
class UserStat:
    """Rolling counters of one sender."""

    next_expected_index: int = 0
    missed_packets: int = 0
    packet_times: List[Tuple[float, float]] = field(default_factory=list)

    @property
    def received(self) -> int:
        return len(self.packet_times)


@dataclass(frozen=True)
class UserMetrics:
    """Quality metrics of one user (or the mean across users)."""

    packet_loss_percent: float
    jitter: float
    delay: float
    throughput_kbps: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class SessionReport:
    """Metrics derived at session teardown."""

    per_user: Dict[int, UserMetrics]
    aggregate: UserMetrics
    total_received: int
    rejected_packets: int
    mos: float

    def to_dict(self) -> Dict:
        return {
            'per_user': {str(user): metrics.to_dict() for user, metrics in self.per_user.items()},
            'aggregate': self.aggregate.to_dict(),
            'total_received': self.total_received,
            'rejected_packets': self.rejected_packets,
            'mos': self.mos,
        }


class SessionStatistics:
    """Tracks packet arrivals of all users of one call.

    Receive events must be fed in delivery order; reordered and duplicate
    arrivals are recorded for delay and jitter but never counted as loss.
    """

    def __init__(self, num_users: int, packet_size: int,
                 loss_basis: str = 'per_user', codec_name: str = 'g711'):
        """Initialize the tracker.

        Args:
            num_users: Number of users taking part in the call
            packet_size: Wire size of one packet in bytes
            loss_basis: ``'per_user'`` to divide a user's missed count by its
                own arrivals, ``'session'`` to use the arrivals of all users
            codec_name: Codec in use, for the MOS estimate
        """
        if num_users < 0:
            raise ConfigurationError(f"num_users must not be negative, got {num_users}")
        if loss_basis not in LOSS_BASES:
            raise ConfigurationError(
                f"Unknown loss basis '{loss_basis}' (choose from: {', '.join(LOSS_BASES)})"
            )
        if loss_basis == 'session':
            logger.warning("Session-wide loss denominator selected; per-user loss "
                           "percentages are diluted by the other users' traffic")

        self.num_users = num_users
        self.packet_size = packet_size
        self.loss_basis = loss_basis
        self.codec_name = codec_name

        self.users = [UserStat() for _ in range(num_users)]
        self.total_received = 0
        self.rejected_packets = 0
        self.dropped_after_teardown = 0
        self._report: Optional[SessionReport] = None

    @property
    def finalized(self) -> bool:
        return self._report is not None

    def _user(self, sender_id: int) -> UserStat:
        if not 0 <= sender_id < self.num_users:
            raise AddressingError(sender_id, self.num_users)
        return self.users[sender_id]

    def on_packet_received(self, sender_id: int, index: int,
                           sent_time: float, received_time: float) -> ArrivalOutcome:
        """Account for one arriving packet.

        Args:
            sender_id: Id of the sending user
            index: Sender's sequence index of the packet
            sent_time: Send timestamp carried in the packet
            received_time: Arrival time at the receiver

        Returns:
            ArrivalOutcome describing how the packet was accounted
        """
        if self.finalized:
            self.dropped_after_teardown += 1
            logger.warning(f"Packet {index} from user {sender_id} arrived after teardown, dropped")
            return ArrivalOutcome.AFTER_TEARDOWN

        try:
            stat = self._user(sender_id)
        except AddressingError as e:
            self.rejected_packets += 1
            logger.error(f"Rejected packet {index}: {e}")
            return ArrivalOutcome.REJECTED

        if index == stat.next_expected_index:
            stat.next_expected_index += 1
            outcome = ArrivalOutcome.IN_ORDER
        elif index > stat.next_expected_index:
            gap = index - stat.next_expected_index
            stat.missed_packets += gap
            stat.next_expected_index = index + 1
            outcome = ArrivalOutcome.GAP
            logger.debug(f"User {sender_id}: {gap} packet(s) missing before index {index}")
        else:
            outcome = ArrivalOutcome.LATE
            logger.debug(f"User {sender_id}: late or duplicate packet {index}")

        stat.packet_times.append((sent_time, received_time))
        self.total_received += 1
        return outcome

    def _throughput_kbps(self, stat: UserStat, delay: float) -> float:
        if not stat.packet_times:
            return 0.0
        first_sent = min(sent for sent, _ in stat.packet_times)
        last_received = max(received for _, received in stat.packet_times)
        interval = last_received - first_sent
        if interval <= 0:
            interval = delay
        if interval <= 0:
            return 0.0
        return stat.received * self.packet_size * 8 / interval / 1000.0

    def _user_metrics(self, stat: UserStat) -> UserMetrics:
        received = self.total_received if self.loss_basis == 'session' else stat.received
        delay = mean_delay(stat.packet_times)
        return UserMetrics(
            packet_loss_percent=calculate_packet_loss_percent(stat.missed_packets, received),
            jitter=mean_jitter(stat.packet_times),
            delay=delay,
            throughput_kbps=self._throughput_kbps(stat, delay),
        )

    def finalize(self) -> SessionReport:
        """Tear the session down and derive its metrics.

        Calling this again returns the same report; packets arriving after
        the first call are dropped.

        Returns:
            SessionReport with per-user and aggregate metrics
        """
        if self._report is not None:
            return self._report

        per_user = {user_id: self._user_metrics(stat) for user_id, stat in enumerate(self.users)}
        metrics = list(per_user.values())
        aggregate = UserMetrics(
            packet_loss_percent=mean([m.packet_loss_percent for m in metrics]),
            jitter=mean([m.jitter for m in metrics]),
            delay=mean([m.delay for m in metrics]),
            throughput_kbps=mean([m.throughput_kbps for m in metrics]),
        )
        mos = calculate_mos(
            aggregate.packet_loss_percent / 100.0,
            aggregate.delay * 1000.0,
            aggregate.jitter * 1000.0,
            self.codec_name,
        )

        self._report = SessionReport(
            per_user=per_user,
            aggregate=aggregate,
            total_received=self.total_received,
            rejected_packets=self.rejected_packets,
            mos=mos,
        )
        logger.info(f"Session finalized: {self.total_received} packets from "
                    f"{self.num_users} users, mean loss {aggregate.packet_loss_percent:.2f}%")
        return self._report
