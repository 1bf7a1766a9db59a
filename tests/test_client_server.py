"""
Tests for the client and server endpoints
"""

import csv

import numpy as np
import pytest

from voip_sim.codecs import G711Codec, G726Codec
from voip_sim.errors import ConfigurationError
from voip_sim.session import ArrivalOutcome, VoIPClient, VoIPServer, VoicePacket


class TestVoIPClient:
    """Test suite for the sending endpoint"""

    def test_single_call_schedule(self):
        client = VoIPClient(0, G711Codec(), start=1.0, duration=0.1)
        times = list(client.schedule(until=10.0))
        assert len(times) == 5
        assert times[0] == 1.0
        assert times[-1] == pytest.approx(1.08)

    def test_packets_per_call(self):
        assert VoIPClient(0, G711Codec(), duration=1.0).packets_per_call == 50
        assert VoIPClient(0, G711Codec(), duration=0.03).packets_per_call == 2

    def test_repeating_schedule(self):
        client = VoIPClient(0, G711Codec(), start=0.0, duration=0.04, frequency=1.0)
        times = list(client.schedule(until=2.5))
        assert times == pytest.approx([0.0, 0.02, 1.0, 1.02, 2.0, 2.02])

    def test_schedule_stops_at_horizon(self):
        client = VoIPClient(0, G711Codec(), duration=1.0)
        assert len(list(client.schedule(until=0.1))) == 5

    def test_invalid_frequency(self):
        with pytest.raises(ConfigurationError):
            VoIPClient(0, G711Codec(), duration=2.0, frequency=1.0)

    def test_send_builds_sequenced_packets(self):
        codec = G711Codec()
        client = VoIPClient(3, codec)
        first = VoicePacket.from_bytes(client.send(0.0), codec.frame_size)
        second = VoicePacket.from_bytes(client.send(0.02), codec.frame_size)

        assert (first.sender_id, first.sequence_index, first.sent_time) == (3, 0, 0.0)
        assert (second.sequence_index, second.sent_time) == (1, 0.02)
        assert client.sent == 2

    def test_voice_frame_is_tone(self):
        client = VoIPClient(0, G711Codec())
        frame = client.voice_frame(0.0)
        assert frame.dtype == np.int16
        assert len(frame) == 160
        assert frame[0] == 0
        assert np.max(np.abs(frame)) > 29000

    def test_dump_first_frame(self, tmp_path):
        dump = tmp_path / "dump" / "g711.csv"
        client = VoIPClient(0, G711Codec(), dump_path=str(dump))
        client.send(0.0)
        client.send(0.02)

        with open(dump, newline='') as f:
            rows = list(csv.reader(f))
        assert len(rows) == 3
        assert all(len(row) == 160 for row in rows)

        raw = np.array(rows[0], dtype=int)
        decoded = np.array(rows[2], dtype=int)
        assert np.max(np.abs(raw - decoded)) < 1100

    def test_dump_only_for_user_zero(self, tmp_path):
        dump = tmp_path / "g711.csv"
        VoIPClient(1, G711Codec(), dump_path=str(dump)).send(0.0)
        assert not dump.exists()

    def test_dump_leaves_encoder_state(self, tmp_path):
        dumping = VoIPClient(0, G726Codec(32), dump_path=str(tmp_path / "g726.csv"))
        plain = VoIPClient(0, G726Codec(32))
        assert dumping.send(0.0) == plain.send(0.0)
        assert dumping.codec.encoder_state == plain.codec.encoder_state


class TestVoIPServer:
    """Test suite for the receiving endpoint"""

    def test_packet_size(self):
        assert VoIPServer(1, 'g711').packet_size == 176
        assert VoIPServer(1, 'g726', rate=16).packet_size == 56
        assert VoIPServer(1, 'g726', rate=40).packet_size == 116

    def test_receive_in_order(self):
        server = VoIPServer(1, 'g711')
        client = VoIPClient(0, G711Codec())
        for k in range(3):
            outcome = server.handle_datagram(client.send(k * 0.02), k * 0.02 + 0.01)
            assert outcome is ArrivalOutcome.IN_ORDER

        assert server.frames_decoded == 3
        assert len(server.last_frames[0]) == 160
        report = server.stop()
        assert report.per_user[0].delay == pytest.approx(0.01)

    def test_size_mismatch_rejected(self):
        server = VoIPServer(2, 'g726', rate=32)
        outcome = server.handle_datagram(b"\x00" * 50, 0.0)
        assert outcome is ArrivalOutcome.REJECTED
        assert server.size_mismatches == 1
        assert server.statistics.total_received == 0

    def test_unknown_sender_rejected(self):
        server = VoIPServer(1, 'g711')
        client = VoIPClient(4, G711Codec())
        assert server.handle_datagram(client.send(0.0), 0.01) is ArrivalOutcome.REJECTED
        assert server.statistics.rejected_packets == 1
        assert 4 not in server.decoders

    def test_per_sender_decoders(self):
        server = VoIPServer(2, 'g726', rate=32)
        clients = [VoIPClient(user, G726Codec(32)) for user in range(2)]
        for k in range(4):
            for client in clients:
                server.handle_datagram(client.send(k * 0.02), k * 0.02 + 0.005)

        assert set(server.decoders) == {0, 1}
        for user, client in enumerate(clients):
            assert server.decoders[user].decoder_state == client.codec.encoder_state

    def test_late_packet_not_decoded(self):
        server = VoIPServer(1, 'g711')
        client = VoIPClient(0, G711Codec())
        packets = [client.send(k * 0.02) for k in range(3)]
        server.handle_datagram(packets[0], 0.01)
        server.handle_datagram(packets[2], 0.05)
        assert server.handle_datagram(packets[1], 0.06) is ArrivalOutcome.LATE
        assert server.frames_decoded == 2
        assert server.statistics.users[0].missed_packets == 1

    def test_after_stop(self):
        server = VoIPServer(1, 'g711')
        client = VoIPClient(0, G711Codec())
        server.handle_datagram(client.send(0.0), 0.01)
        report = server.stop()

        assert server.handle_datagram(client.send(0.02), 0.03) is ArrivalOutcome.AFTER_TEARDOWN
        assert server.stop() is report
        assert report.total_received == 1
