"""
Codeword Bit Packing

Packs fixed-width codewords into a byte stream and back. Codewords are
laid out least-significant bit first: a codeword that straddles a byte
boundary keeps its low bits in the current byte and continues with its
high bits in the next one. The final byte is zero padded.
"""

from typing import Iterable, List

import numpy as np


def _check_width(bits_per_word: int) -> None:
    if not 1 <= bits_per_word < 8:
        raise ValueError(f"bits_per_word must be in [1, 8), got {bits_per_word}")


def packed_size(count: int, bits_per_word: int) -> int:
    """Number of bytes needed to hold ``count`` codewords.

    Args:
        count: Number of codewords
        bits_per_word: Width of each codeword in bits

    Returns:
        Size in bytes, rounded up to a whole byte
    """
    return (count * bits_per_word + 7) // 8


def pack(codewords: Iterable[int], bits_per_word: int) -> bytes:
    """Pack codewords into bytes.

    Args:
        codewords: Unsigned codewords; bits above ``bits_per_word`` are ignored
        bits_per_word: Width of each codeword in bits (1 to 7)

    Returns:
        Packed byte string of ``packed_size(len(codewords), bits_per_word)`` bytes
    """
    _check_width(bits_per_word)
    words = np.asarray(list(codewords), dtype=np.int64)
    if words.size == 0:
        return b''

    shifts = np.arange(bits_per_word, dtype=np.int64)
    bits = ((words[:, np.newaxis] >> shifts) & 1).astype(np.uint8)
    return np.packbits(bits.ravel(), bitorder='little').tobytes()


def unpack(data: bytes, count: int, bits_per_word: int) -> List[int]:
    """Unpack ``count`` codewords from a packed byte string.

    Args:
        data: Packed bytes
        count: Number of codewords to extract
        bits_per_word: Width of each codeword in bits (1 to 7)

    Returns:
        List of codewords in their original order

    Raises:
        ValueError: If the width is invalid or ``data`` is too short
    """
    _check_width(bits_per_word)
    needed = packed_size(count, bits_per_word)
    if len(data) < needed:
        raise ValueError(
            f"Need {needed} bytes to unpack {count} codewords, got {len(data)}"
        )
    if count == 0:
        return []

    raw = np.frombuffer(bytes(data[:needed]), dtype=np.uint8)
    bits = np.unpackbits(raw, bitorder='little')[:count * bits_per_word]
    weights = 1 << np.arange(bits_per_word, dtype=np.int64)
    words = bits.reshape(count, bits_per_word).astype(np.int64) @ weights
    return words.tolist()
