"""
VoIP Client

The sending endpoint of a simulated call. A client samples a test tone,
encodes one frame per packet with its own codec instance and stamps each
packet with its sequence index and send time.
"""

import csv
import math
import os
import logging
from typing import Iterator, Optional

import numpy as np

from voip_sim.codecs import VoiceCodec, create_codec
from voip_sim.errors import ConfigurationError
from voip_sim.session.packet import VoicePacket, build_packet
from voip_sim.utils.audio import tone_samples, TONE_FREQUENCY, TONE_AMPLITUDE

logger = logging.getLogger(__name__)

DEFAULT_PACKET_RATE = 50  # packets per second


class VoIPClient:
    """Client endpoint sending one voice stream.

    A call starts at ``start`` and sends a packet every ``1 / packet_rate``
    seconds for ``duration`` seconds. A non-zero ``frequency`` repeats the
    call every ``frequency`` seconds; sequence indices keep increasing
    across repetitions.
    """

    def __init__(self, user_id: int, codec: VoiceCodec,
                 start: float = 0.0,
                 duration: float = 1.0,
                 frequency: float = 0.0,
                 packet_rate: float = DEFAULT_PACKET_RATE,
                 tone_frequency: float = TONE_FREQUENCY,
                 tone_amplitude: float = TONE_AMPLITUDE,
                 dump_path: Optional[str] = None):
        """Initialize the client.

        Args:
            user_id: Sender id carried in every packet
            codec: Encoder owned by this client
            start: Time of the first call in seconds
            duration: Length of one call in seconds
            frequency: Call repetition period in seconds (0 for a single call)
            packet_rate: Packets sent per second during a call
            tone_frequency: Frequency of the generated test tone in Hz
            tone_amplitude: Peak amplitude of the test tone
            dump_path: CSV file receiving the first frame of user 0
        """
        if duration <= 0:
            raise ConfigurationError(f"Call duration must be positive, got {duration}")
        if packet_rate <= 0:
            raise ConfigurationError(f"Packet rate must be positive, got {packet_rate}")
        if 0 < frequency < duration:
            raise ConfigurationError(
                f"Call repetition period {frequency}s is shorter than the call ({duration}s)"
            )

        self.user_id = user_id
        self.codec = codec
        self.start = start
        self.duration = duration
        self.frequency = frequency
        self.packet_interval = 1.0 / packet_rate
        self.tone_frequency = tone_frequency
        self.tone_amplitude = tone_amplitude
        self.dump_path = dump_path

        # Rounded first so that float noise in duration * rate does not add a packet
        self.packets_per_call = max(1, math.ceil(round(duration * packet_rate, 9)))

        self.next_index = 0
        self.sent = 0

    def schedule(self, until: float) -> Iterator[float]:
        """Yield the send times of this client before ``until``."""
        call_start = self.start
        while call_start < until:
            for k in range(self.packets_per_call):
                send_time = call_start + k * self.packet_interval
                if send_time >= until:
                    return
                yield send_time
            if self.frequency <= 0:
                return
            call_start += self.frequency

    def voice_frame(self, now: float) -> np.ndarray:
        """Sample one frame of the test tone starting at ``now``."""
        return tone_samples(now, self.codec.frame_samples, self.codec.sample_rate,
                            self.tone_frequency, self.tone_amplitude)

    def make_packet(self, now: float) -> VoicePacket:
        """Encode the frame due at ``now`` into the next packet.

        Args:
            now: Current (simulated or wall clock) time in seconds

        Returns:
            The packet, with the client's next sequence index
        """
        frame = self.voice_frame(now)
        payload = self.codec.encode_frame(frame)
        packet = build_packet(self.user_id, self.next_index, payload, sent_time=now)

        if self.dump_path and self.user_id == 0 and self.next_index == 0:
            self.dump_first_frame(frame, payload)

        self.next_index += 1
        self.sent += 1
        logger.debug(f"At time {now:.4f}s client {self.user_id} sent packet {packet.sequence_index}")
        return packet

    def send(self, now: float) -> bytes:
        """Wire bytes of the packet due at ``now``."""
        return self.make_packet(now).to_bytes()

    def dump_first_frame(self, frame: np.ndarray, payload: bytes) -> None:
        """Write the raw, encoded and decoded first frame as three CSV rows.

        The payload is decoded with a fresh codec so the client's own
        encoder state is left untouched.
        """
        decoder = create_codec(self.codec.name, rate=getattr(self.codec, 'rate', None),
                               frame_samples=self.codec.frame_samples,
                               sample_rate=self.codec.sample_rate)
        decoded = decoder.decode_frame(payload)

        directory = os.path.dirname(self.dump_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.dump_path, 'w', newline='') as f:
            writer = csv.writer(f)
            writer.writerow(int(sample) for sample in frame)
            writer.writerow(payload)
            writer.writerow(int(sample) for sample in decoded)
        logger.info(f"Dumped first {self.codec.name} frame to {self.dump_path}")

    def __str__(self) -> str:
        return (f"VoIPClient [ID={self.user_id}, codec={self.codec.name}, "
                f"sent={self.sent}, next index={self.next_index}]")
