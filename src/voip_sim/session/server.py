"""
VoIP Server

The receiving endpoint of a simulated call. The server checks every
datagram against the packet size of the session codec before reading it,
decodes the payload with a decoder owned per sender and feeds the
header fields to the session statistics tracker.
"""

import logging
from typing import Any, Dict, Optional, Union

import numpy as np

from voip_sim.codecs import CodecType, VoiceCodec, create_codec
from voip_sim.codecs.base import DEFAULT_FRAME_SAMPLES, DEFAULT_SAMPLE_RATE
from voip_sim.errors import SizeMismatchError
from voip_sim.session.packet import VoicePacket, packet_size
from voip_sim.session.tracker import ArrivalOutcome, SessionReport, SessionStatistics

logger = logging.getLogger(__name__)


class VoIPServer:
    """Server endpoint receiving the voice streams of all users."""

    def __init__(self, num_users: int,
                 codec: Union[str, CodecType] = CodecType.G711,
                 rate: Optional[int] = None,
                 frame_samples: int = DEFAULT_FRAME_SAMPLES,
                 sample_rate: int = DEFAULT_SAMPLE_RATE,
                 loss_basis: str = 'per_user'):
        """Initialize the server.

        Args:
            num_users: Number of users expected on the call
            codec: Codec used by the session
            rate: G.726 bit rate in kbit/s
            frame_samples: Samples per frame
            sample_rate: Audio sample rate in Hz
            loss_basis: Denominator used for packet loss percentages
        """
        self.codec_type = CodecType.parse(codec)
        self.rate = rate
        self.frame_samples = frame_samples
        self.sample_rate = sample_rate

        # Reference instance giving the payload size of the session
        self._reference = self._new_decoder()
        self.payload_size = self._reference.frame_size
        self.packet_size = packet_size(self.payload_size)

        self.statistics = SessionStatistics(num_users, self.packet_size,
                                            loss_basis=loss_basis,
                                            codec_name=self.codec_type.value)
        self.decoders: Dict[int, VoiceCodec] = {}
        self.last_frames: Dict[int, np.ndarray] = {}

        self.received = 0
        self.size_mismatches = 0
        self.frames_decoded = 0
        self._report: Optional[SessionReport] = None

        logger.info(f"Server ready for {num_users} users, codec {self._reference}, "
                    f"{self.packet_size}-byte packets")

    def _new_decoder(self) -> VoiceCodec:
        return create_codec(self.codec_type, rate=self.rate,
                            frame_samples=self.frame_samples,
                            sample_rate=self.sample_rate)

    def decoder_for(self, sender_id: int) -> VoiceCodec:
        """Decoder dedicated to one sender, created on first use."""
        decoder = self.decoders.get(sender_id)
        if decoder is None:
            decoder = self._new_decoder()
            self.decoders[sender_id] = decoder
        return decoder

    @property
    def codec_info(self) -> Dict[str, Any]:
        return self._reference.get_config()

    @property
    def stopped(self) -> bool:
        return self._report is not None

    def handle_datagram(self, data: bytes, received_time: float) -> ArrivalOutcome:
        """Process one received datagram.

        Args:
            data: Raw datagram bytes
            received_time: Arrival time in seconds

        Returns:
            ArrivalOutcome reported by the statistics tracker, or
            ``REJECTED`` for a datagram of the wrong size
        """
        if self.stopped:
            logger.warning(f"Datagram of {len(data)} bytes arrived after teardown, dropped")
            return ArrivalOutcome.AFTER_TEARDOWN

        self.received += 1
        try:
            packet = VoicePacket.from_bytes(data, self.payload_size)
        except SizeMismatchError as e:
            self.size_mismatches += 1
            logger.error(f"Rejected datagram: {e}")
            return ArrivalOutcome.REJECTED

        logger.debug(f"At time {received_time:.4f}s server received packet "
                     f"{packet.sequence_index} from client {packet.sender_id}")

        outcome = self.statistics.on_packet_received(
            packet.sender_id, packet.sequence_index, packet.sent_time, received_time
        )

        # Late frames missed their playout slot; decoding them would also
        # advance adaptive decoder state out of order
        if outcome in (ArrivalOutcome.IN_ORDER, ArrivalOutcome.GAP):
            self.last_frames[packet.sender_id] = self.decoder_for(packet.sender_id).decode_frame(packet.payload)
            self.frames_decoded += 1

        return outcome

    def stop(self) -> SessionReport:
        """Tear the session down and return its report."""
        if self._report is None:
            self._report = self.statistics.finalize()
            logger.info(f"Server stopped: {self.received} datagrams, "
                        f"{self.size_mismatches} size mismatches, {self.frames_decoded} frames decoded")
        return self._report
