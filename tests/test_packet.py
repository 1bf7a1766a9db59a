"""
Unit tests for the voice packet model
"""

import struct

import pytest

from voip_sim.errors import SizeMismatchError
from voip_sim.session.packet import (
    HEADER_SIZE, VoicePacket, build_packet, packet_size
)


class TestVoicePacket:
    """Test suite for the voice packet implementation"""

    def test_initialization(self):
        payload = b"\x01\x02\x03"
        packet = VoicePacket(3, 7, 1.5, payload)

        assert packet.sender_id == 3
        assert packet.sequence_index == 7
        assert packet.sent_time == 1.5
        assert packet.payload == payload

    def test_immutable(self):
        packet = VoicePacket(0, 0, 0.0, b"")
        with pytest.raises(AttributeError):
            packet.sequence_index = 1

    def test_header_length(self):
        """The header is 16 bytes: two u32 fields and an f64"""
        assert HEADER_SIZE == 16
        assert VoicePacket(0, 0, 0.0).header_length() == 16

    def test_packet_length(self):
        packet = VoicePacket(0, 0, 0.0, b"\x00" * 80)
        assert packet.packet_length() == 96
        assert packet_size(160) == 176

    def test_wire_layout(self):
        """Fields are concatenated little-endian without padding"""
        packet = VoicePacket(1, 2, 0.25, b"\xAA\xBB")
        data = packet.to_bytes()

        assert data[:4] == b"\x01\x00\x00\x00"
        assert data[4:8] == b"\x02\x00\x00\x00"
        assert data[8:16] == struct.pack('<d', 0.25)
        assert data[16:] == b"\xAA\xBB"

    def test_to_bytes_from_bytes(self):
        original = VoicePacket(5, 123456, 12.345678, bytes(range(40)))
        recreated = VoicePacket.from_bytes(original.to_bytes(), 40)
        assert recreated == original

    @pytest.mark.parametrize("length", [0, 15, 55, 57])
    def test_size_mismatch(self, length):
        with pytest.raises(SizeMismatchError) as excinfo:
            VoicePacket.from_bytes(b"\x00" * length, 40)
        assert excinfo.value.expected == 56
        assert excinfo.value.actual == length

    @pytest.mark.parametrize("sender_id,index", [(-1, 0), (0, -1), (2 ** 32, 0), (0, 2 ** 32)])
    def test_field_range(self, sender_id, index):
        with pytest.raises(ValueError):
            VoicePacket(sender_id, index, 0.0)

    def test_str(self):
        text = str(VoicePacket(1, 2, 0.5, b"\x00" * 4))
        assert "ID=1" in text
        assert "SN=2" in text
        assert "Payload size=4" in text


class TestBuildPacket:
    """Test suite for packet construction"""

    def test_stamps_clock(self):
        packet = build_packet(2, 9, b"\x01", clock=lambda: 42.0)
        assert packet.sent_time == 42.0
        assert packet.sender_id == 2
        assert packet.sequence_index == 9

    def test_explicit_time(self):
        packet = build_packet(0, 0, b"", sent_time=3, clock=lambda: 99.0)
        assert packet.sent_time == 3.0
        assert isinstance(packet.sent_time, float)

    def test_default_clock(self):
        import time
        before = time.time()
        packet = build_packet(0, 0, b"")
        assert before <= packet.sent_time <= time.time()
