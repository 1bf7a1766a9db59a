"""
Voice Packet Model

A voice packet frames one encoded codec frame with the sender id, the
sender's sequence index and the send timestamp. On the wire the fields
are simply concatenated: a little-endian ``<IId`` header followed by
the payload. The codec in use is a session parameter and is not
carried in the packet.
"""

import struct
import time
from dataclasses import dataclass
from typing import Callable, Optional

from voip_sim.errors import SizeMismatchError

HEADER_FORMAT = '<IId'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)  # 16 bytes

MAX_UINT32 = 0xFFFFFFFF


def packet_size(payload_size: int) -> int:
    """Total wire size of a packet carrying ``payload_size`` payload bytes."""
    return HEADER_SIZE + payload_size


@dataclass(frozen=True)
class VoicePacket:
    """Immutable voice packet."""

    sender_id: int
    sequence_index: int
    sent_time: float
    payload: bytes = b''

    def __post_init__(self):
        if not 0 <= self.sender_id <= MAX_UINT32:
            raise ValueError(f"sender_id out of u32 range: {self.sender_id}")
        if not 0 <= self.sequence_index <= MAX_UINT32:
            raise ValueError(f"sequence_index out of u32 range: {self.sequence_index}")
        object.__setattr__(self, 'payload', bytes(self.payload))

    def header_length(self) -> int:
        return HEADER_SIZE

    def packet_length(self) -> int:
        return packet_size(len(self.payload))

    def to_bytes(self) -> bytes:
        """Serialize the packet to its wire representation."""
        header = struct.pack(HEADER_FORMAT, self.sender_id, self.sequence_index, self.sent_time)
        return header + self.payload

    @classmethod
    def from_bytes(cls, data: bytes, payload_size: int) -> 'VoicePacket':
        """Parse a packet from its wire representation.

        Args:
            data: Raw packet bytes
            payload_size: Frame size of the codec active in the session

        Returns:
            The parsed packet

        Raises:
            SizeMismatchError: If ``data`` is not exactly one packet long
        """
        expected = packet_size(payload_size)
        if len(data) != expected:
            raise SizeMismatchError(expected, len(data), 'packet')

        sender_id, sequence_index, sent_time = struct.unpack_from(HEADER_FORMAT, data)
        return cls(sender_id, sequence_index, sent_time, bytes(data[HEADER_SIZE:]))

    def __str__(self) -> str:
        return (f"Voice Packet [ID={self.sender_id}, SN={self.sequence_index}, "
                f"T={self.sent_time:.6f}, Payload size={len(self.payload)} bytes]")


def build_packet(sender_id: int, index: int, payload: bytes,
                 sent_time: Optional[float] = None,
                 clock: Callable[[], float] = time.time) -> VoicePacket:
    """Create a voice packet stamped with the current time.

    Args:
        sender_id: Id of the sending user
        index: Sender's sequence index for this packet
        payload: Encoded codec frame
        sent_time: Explicit send time in seconds (defaults to ``clock()``)
        clock: Time source used when ``sent_time`` is not given

    Returns:
        VoicePacket: Created packet
    """
    if sent_time is None:
        sent_time = clock()
    return VoicePacket(sender_id, index, float(sent_time), payload)
