"""
G.711 mu-law Codec

Stateless sample-wise companding of 16-bit linear PCM into 8-bit
mu-law codes, after the public domain Sun Microsystems reference.
"""

import numpy as np

from voip_sim.codecs.base import VoiceCodec, Samples, DEFAULT_FRAME_SAMPLES, DEFAULT_SAMPLE_RATE

BIAS = 0x84         # Bias for linear code
CLIP = 8159         # Magnitude ceiling after the 14-bit reduction
SIGN_BIT = 0x80     # Sign bit of a mu-law byte
QUANT_MASK = 0x0F   # Quantization field mask
SEG_SHIFT = 4       # Left shift for segment number
SEG_MASK = 0x70     # Segment field mask

# Upper end of each of the 8 segments in the 14-bit domain
SEG_UEND = (0x3F, 0x7F, 0xFF, 0x1FF, 0x3FF, 0x7FF, 0xFFF, 0x1FFF)

_SEG_UEND = np.array(SEG_UEND, dtype=np.int32)


def _search(value: int) -> int:
    """Index of the first segment whose upper end is >= value, or 8."""
    for segment, upper in enumerate(SEG_UEND):
        if value <= upper:
            return segment
    return len(SEG_UEND)


def linear_to_ulaw(sample: int) -> int:
    """Compand one 16-bit linear sample to a mu-law code.

    Args:
        sample: Signed 16-bit PCM value

    Returns:
        mu-law code (0-255)
    """
    pcm = sample >> 2
    if pcm < 0:
        pcm = -pcm
        mask = 0x7F
    else:
        mask = 0xFF
    if pcm > CLIP:
        pcm = CLIP
    pcm += BIAS >> 2

    segment = _search(pcm)
    if segment >= 8:
        return 0x7F ^ mask
    code = (segment << SEG_SHIFT) | ((pcm >> (segment + 1)) & QUANT_MASK)
    return code ^ mask


def ulaw_to_linear(code: int) -> int:
    """Expand a mu-law code to a 16-bit linear sample.

    Args:
        code: mu-law code (0-255)

    Returns:
        Signed 16-bit PCM value
    """
    code = ~code & 0xFF
    t = ((code & QUANT_MASK) << 3) + BIAS
    t <<= (code & SEG_MASK) >> SEG_SHIFT
    return BIAS - t if code & SIGN_BIT else t - BIAS


# 256-entry expansion table
_DECODE_TABLE = np.array([ulaw_to_linear(code) for code in range(256)], dtype=np.int16)


def encode_samples(samples: Samples) -> np.ndarray:
    """Vectorised ``linear_to_ulaw`` over an array of samples."""
    pcm = np.asarray(samples, dtype=np.int16).astype(np.int32) >> 2
    mask = np.where(pcm < 0, 0x7F, 0xFF)
    magnitude = np.minimum(np.abs(pcm), CLIP) + (BIAS >> 2)

    segment = np.searchsorted(_SEG_UEND, magnitude, side='left')
    mantissa = (magnitude >> np.minimum(segment + 1, 8)) & QUANT_MASK
    code = np.where(segment >= 8, 0x7F, (segment << SEG_SHIFT) | mantissa)
    return (code ^ mask).astype(np.uint8)


def decode_samples(codes: bytes) -> np.ndarray:
    """Vectorised ``ulaw_to_linear`` over a byte string of codes."""
    return _DECODE_TABLE[np.frombuffer(codes, dtype=np.uint8)]


class G711Codec(VoiceCodec):
    """G.711 mu-law frame codec.

    One byte per sample: a 160-sample frame becomes a 160-byte payload.
    """

    name = 'g711'

    def __init__(self, frame_samples: int = DEFAULT_FRAME_SAMPLES,
                 sample_rate: int = DEFAULT_SAMPLE_RATE):
        super().__init__(frame_samples, sample_rate)

    @property
    def frame_size(self) -> int:
        return self.frame_samples

    @property
    def bitrate(self) -> int:
        return 8 * self.sample_rate

    def encode_frame(self, samples: Samples) -> bytes:
        return encode_samples(self._as_frame(samples)).tobytes()

    def decode_frame(self, payload: bytes) -> np.ndarray:
        self._check_payload(payload)
        return decode_samples(payload).copy()
