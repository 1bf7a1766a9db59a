"""
Unit tests for codeword bit packing
"""

import pytest

from voip_sim.codecs import bitpack


class TestBitPack:
    """Test suite for the bit packer"""

    @pytest.mark.parametrize("bits", [1, 2, 3, 4, 5, 6, 7])
    def test_unpack_inverts_pack(self, bits):
        """Packing then unpacking returns the original codewords"""
        words = [(i * 7 + 3) % (1 << bits) for i in range(37)]
        packed = bitpack.pack(words, bits)
        assert len(packed) == bitpack.packed_size(len(words), bits)
        assert bitpack.unpack(packed, len(words), bits) == words

    def test_lsb_first_layout(self):
        """Codewords fill each byte from the least significant bit"""
        assert bitpack.pack([0x1, 0x2], 4) == bytes([0x21])
        assert bitpack.pack([0b01, 0b10, 0b11, 0b00], 2) == bytes([0b00111001])

    def test_word_spanning_byte_boundary(self):
        """A 3-bit word crossing a byte keeps its low bits in the first byte"""
        # Words 0b000, 0b000, 0b111 occupy bits 0-2, 3-5 and 6-8
        packed = bitpack.pack([0, 0, 0b111], 3)
        assert packed == bytes([0b11000000, 0b00000001])
        assert bitpack.unpack(packed, 3, 3) == [0, 0, 0b111]

    def test_final_byte_zero_padded(self):
        packed = bitpack.pack([0b11111], 5)
        assert packed == bytes([0b00011111])

    def test_high_bits_ignored(self):
        assert bitpack.pack([0xFF], 4) == bytes([0x0F])

    def test_frame_sizes(self):
        """160 samples pack into 40/60/80/100 bytes at 2/3/4/5 bits"""
        assert [bitpack.packed_size(160, bits) for bits in (2, 3, 4, 5)] == [40, 60, 80, 100]

    def test_empty(self):
        assert bitpack.pack([], 4) == b''
        assert bitpack.unpack(b'', 0, 4) == []

    @pytest.mark.parametrize("bits", [0, 8, 9, -1])
    def test_invalid_width(self, bits):
        with pytest.raises(ValueError):
            bitpack.pack([1], bits)
        with pytest.raises(ValueError):
            bitpack.unpack(b'\x00', 1, bits)

    def test_short_buffer(self):
        with pytest.raises(ValueError):
            bitpack.unpack(b'\x00\x00', 10, 4)
