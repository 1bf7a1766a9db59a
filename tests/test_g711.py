"""
Unit tests for the G.711 mu-law codec
"""

import numpy as np
import pytest

from voip_sim.codecs.g711 import (
    G711Codec, linear_to_ulaw, ulaw_to_linear, encode_samples, decode_samples
)
from voip_sim.errors import SizeMismatchError


class TestG711Companding:
    """Test suite for the sample-wise companding functions"""

    @pytest.mark.parametrize("sample,code,decoded", [
        (0, 0xFF, 0),
        (1000, 0xCE, 988),
        (-1000, 0x4E, -988),
        (32767, 0x80, 32124),
        (-32768, 0x00, -32124),
    ])
    def test_reference_values(self, sample, code, decoded):
        assert linear_to_ulaw(sample) == code
        assert ulaw_to_linear(code) == decoded

    def test_bounded_error(self):
        """decode(encode(x)) stays within one segment step of x"""
        for sample in range(-32000, 32001, 97):
            error = abs(ulaw_to_linear(linear_to_ulaw(sample)) - sample)
            assert error <= abs(sample) / 16 + 16, sample

    def test_decode_is_odd_symmetric(self):
        for code in range(128):
            assert ulaw_to_linear(code) == -ulaw_to_linear(code | 0x80)

    def test_vectorised_matches_scalar(self):
        samples = np.arange(-32768, 32768, 13, dtype=np.int64).astype(np.int16)
        codes = encode_samples(samples)
        assert codes.tolist() == [linear_to_ulaw(int(s)) for s in samples]
        assert decode_samples(codes.tobytes()).tolist() == [ulaw_to_linear(int(c)) for c in codes]


class TestG711Codec:
    """Test suite for the G.711 frame codec"""

    def test_sizes(self, g711_codec):
        assert g711_codec.frame_size == 160
        assert g711_codec.bitrate == 64000
        assert g711_codec.get_compression_ratio() == 0.5

    def test_frame_round_trip(self, g711_codec, sine_frame):
        payload = g711_codec.encode_frame(sine_frame)
        assert isinstance(payload, bytes)
        assert len(payload) == 160

        decoded = g711_codec.decode_frame(payload)
        assert decoded.dtype == np.int16
        assert len(decoded) == 160
        assert np.max(np.abs(decoded.astype(int) - sine_frame.astype(int))) < 300

    def test_order_preserved(self, g711_codec):
        frame = np.zeros(160, dtype=np.int16)
        frame[5] = 1000
        decoded = g711_codec.decode_frame(g711_codec.encode_frame(frame))
        assert decoded[5] == 988
        assert np.count_nonzero(decoded) == 1

    def test_wrong_frame_length(self, g711_codec):
        with pytest.raises(ValueError):
            g711_codec.encode_frame(np.zeros(100, dtype=np.int16))

    def test_wrong_payload_length(self, g711_codec):
        with pytest.raises(SizeMismatchError):
            g711_codec.decode_frame(b'\x00' * 159)

    def test_custom_frame_size(self):
        codec = G711Codec(frame_samples=80)
        assert codec.frame_size == 80
        assert len(codec.encode_frame(np.zeros(80, dtype=np.int16))) == 80
