"""
G.726 ADPCM Codec

Adaptive differential PCM at 16, 24, 32 and 40 kbit/s, following the
ITU-T G.726 reference algorithm (Sun Microsystems public implementation).
Each sample is predicted from a 2-pole/6-zero adaptive filter and the
prediction difference is quantized in the log domain against a
rate-specific table with an adaptive step size.

All arithmetic reproduces the fixed-point reference bit for bit, so the
tables and limiter bounds below are lookup data and must not be tuned.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from voip_sim.codecs.base import VoiceCodec, Samples, DEFAULT_FRAME_SAMPLES, DEFAULT_SAMPLE_RATE
from voip_sim.codecs import bitpack

logger = logging.getLogger(__name__)

POWER2 = (1, 2, 4, 8, 0x10, 0x20, 0x40, 0x80,
          0x100, 0x200, 0x400, 0x800, 0x1000, 0x2000, 0x4000)

# Step size multiplier limits (LIMB)
YU_MIN = 544
YU_MAX = 5120

# Internal floating point representation of zero and of -0
FLOAT_ZERO = 0x20
FLOAT_NEG_ZERO = 0x20 - 0x400


@dataclass(frozen=True)
class RateTables:
    """Quantizer and adaptation tables for one G.726 bit rate."""

    bits: int
    quant: Sequence[int]     # decision levels, log domain
    dqln: Sequence[int]      # reconstruction levels, log domain
    wi: Sequence[int]        # scale factor multipliers
    fi: Sequence[int]        # speed control transitions

    @property
    def sign_bit(self) -> int:
        return 1 << (self.bits - 1)

    @property
    def mask(self) -> int:
        return (1 << self.bits) - 1


RATES: Dict[int, RateTables] = {
    16: RateTables(
        bits=2,
        quant=(261,),
        dqln=(116, 365, 365, 116),
        wi=(-704, 14048, 14048, -704),
        fi=(0, 0xE00, 0xE00, 0),
    ),
    24: RateTables(
        bits=3,
        quant=(8, 218, 331),
        dqln=(-2048, 135, 273, 373, 373, 273, 135, -2048),
        wi=(-128, 960, 4384, 18624, 18624, 4384, 960, -128),
        fi=(0, 0x200, 0x400, 0xE00, 0xE00, 0x400, 0x200, 0),
    ),
    32: RateTables(
        bits=4,
        quant=(-124, 80, 178, 246, 300, 349, 400),
        dqln=(-2048, 4, 135, 213, 273, 323, 373, 425,
              425, 373, 323, 273, 213, 135, 4, -2048),
        wi=tuple(w << 5 for w in (-12, 18, 41, 64, 112, 198, 355, 1122,
                                  1122, 355, 198, 112, 64, 41, 18, -12)),
        fi=(0, 0, 0, 0x200, 0x200, 0x200, 0x600, 0xE00,
            0xE00, 0x600, 0x200, 0x200, 0x200, 0, 0, 0),
    ),
    40: RateTables(
        bits=5,
        quant=(-122, -16, 68, 139, 198, 250, 298, 339,
               378, 413, 445, 475, 502, 528, 553),
        dqln=(-2048, -66, 28, 104, 169, 224, 274, 318,
              358, 395, 429, 459, 488, 514, 539, 566,
              566, 539, 514, 488, 459, 429, 395, 358,
              318, 274, 224, 169, 104, 28, -66, -2048),
        wi=(448, 448, 768, 1248, 1280, 1312, 1856, 3200,
            4512, 5728, 7008, 8960, 11456, 14080, 16928, 22272,
            22272, 16928, 14080, 11456, 8960, 7008, 5728, 4512,
            3200, 1856, 1312, 1280, 1248, 768, 448, 448),
        fi=(0, 0, 0, 0, 0, 0x200, 0x200, 0x200,
            0x200, 0x200, 0x400, 0x600, 0x800, 0xA00, 0xC00, 0xC00,
            0xC00, 0xC00, 0xA00, 0x800, 0x600, 0x400, 0x200, 0x200,
            0x200, 0x200, 0x200, 0, 0, 0, 0, 0),
    ),
}

SUPPORTED_RATES = tuple(sorted(RATES))


def _s16(value: int) -> int:
    """Wrap to a signed 16-bit value."""
    return ((value + 0x8000) & 0xFFFF) - 0x8000


@dataclass
class AdpcmState:
    """Adaptive state of one G.726 encoder or decoder."""

    yl: int = 34816                 # locked (steady state) step size multiplier
    yu: int = YU_MIN                # unlocked (non-steady state) step size multiplier
    dms: int = 0                    # short term energy estimate
    dml: int = 0                    # long term energy estimate
    ap: int = 0                     # speed control between yl and yu
    a: List[int] = field(default_factory=lambda: [0, 0])           # pole coefficients
    b: List[int] = field(default_factory=lambda: [0] * 6)          # zero coefficients
    pk: List[int] = field(default_factory=lambda: [0, 0])          # signs of dqsez history
    dq: List[int] = field(default_factory=lambda: [FLOAT_ZERO] * 6)  # quantized difference history
    sr: List[int] = field(default_factory=lambda: [FLOAT_ZERO] * 2)  # reconstructed signal history
    td: int = 0                     # delayed tone detect


def quan(value: int, table: Sequence[int]) -> int:
    """Index of the first table entry greater than ``value``."""
    for i, level in enumerate(table):
        if value < level:
            return i
    return len(table)


def fmult(an: int, srn: int) -> int:
    """Multiply a predictor coefficient by a floating point history value."""
    anmag = an if an > 0 else (-an) & 0x1FFF
    anexp = quan(anmag, POWER2) - 6
    if anmag == 0:
        anmant = 32
    elif anexp >= 0:
        anmant = anmag >> anexp
    else:
        anmant = anmag << -anexp
    wanexp = anexp + ((srn >> 6) & 0xF) - 13

    wanmant = (anmant * (srn & 0o77) + 0x30) >> 4
    if wanexp >= 0:
        retval = (wanmant << wanexp) & 0x7FFF
    else:
        retval = wanmant >> -wanexp

    return -retval if (an ^ srn) < 0 else retval


def predictor_zero(state: AdpcmState) -> int:
    """Zero predictor estimate from the 6 quantized difference taps."""
    return sum(fmult(b >> 2, dq) for b, dq in zip(state.b, state.dq))


def predictor_pole(state: AdpcmState) -> int:
    """Pole predictor estimate from the 2 reconstructed signal taps."""
    return fmult(state.a[1] >> 2, state.sr[1]) + fmult(state.a[0] >> 2, state.sr[0])


def step_size(state: AdpcmState) -> int:
    """Quantizer scale factor, mixing yu and yl according to ap."""
    if state.ap >= 256:
        return state.yu

    y = state.yl >> 6
    dif = state.yu - y
    al = state.ap >> 2
    if dif > 0:
        y += (dif * al) >> 6
    elif dif < 0:
        y += (dif * al + 0x3F) >> 6
    return y


def quantize(d: int, y: int, table: Sequence[int]) -> int:
    """Quantize the prediction difference ``d`` to an ADPCM code."""
    size = len(table)

    # LOG
    dqm = abs(d)
    exp = quan(dqm >> 1, POWER2)
    mant = ((dqm << 7) >> exp) & 0x7F
    dl = (exp << 7) + mant

    # SUBTB
    dln = dl - (y >> 2)

    # QUAN
    i = quan(dln, table)
    if d < 0:
        return (size << 1) + 1 - i
    if i == 0:
        return (size << 1) + 1
    return i


def reconstruct(sign: int, dqln: int, y: int) -> int:
    """Reconstruct the quantized difference from its log magnitude.

    Negative values are returned offset by -0x8000, as in the reference.
    """
    dql = dqln + (y >> 2)
    if dql < 0:
        return -0x8000 if sign else 0

    dex = (dql >> 7) & 15
    dqt = 128 + (dql & 127)
    dq = (dqt << 7) >> (14 - dex)
    return dq - 0x8000 if sign else dq


def _to_float(magnitude: int, negative: bool) -> int:
    """4-bit exponent, 6-bit mantissa representation used by the history taps."""
    exp = quan(magnitude, POWER2)
    value = (exp << 6) + ((magnitude << 6) >> exp)
    return value - 0x400 if negative else value


def update(code_size: int, y: int, wi: int, fi: int, dq: int, sr: int,
           dqsez: int, state: AdpcmState) -> None:
    """Advance every adaptive quantity of ``state`` by one sample."""
    pk0 = 1 if dqsez < 0 else 0
    mag = dq & 0x7FFF

    # TRANS: tone/transition detector
    ylint = state.yl >> 15
    ylfrac = (state.yl >> 10) & 0x1F
    thr1 = (32 + ylfrac) << ylint
    thr2 = 31 << 10 if ylint > 9 else thr1
    dqthr = (thr2 + (thr2 >> 1)) >> 1
    if state.td == 0 or mag <= dqthr:
        tr = 0
    else:
        tr = 1

    # FUNCTW, FILTD, LIMB
    yu = y + ((wi - y) >> 5)
    state.yu = min(max(yu, YU_MIN), YU_MAX)

    # FILTE
    state.yl += state.yu + ((-state.yl) >> 6)

    a2p = 0
    if tr == 1:
        state.a = [0, 0]
        state.b = [0] * 6
    else:
        pks1 = pk0 ^ state.pk[0]

        # UPA2
        a2p = state.a[1] - (state.a[1] >> 7)
        if dqsez != 0:
            fa1 = state.a[0] if pks1 else -state.a[0]
            if fa1 < -8191:
                a2p -= 0x100
            elif fa1 > 8191:
                a2p += 0xFF
            else:
                a2p += fa1 >> 5

            # LIMC
            if pk0 ^ state.pk[1]:
                if a2p <= -12160:
                    a2p = -12288
                elif a2p >= 12416:
                    a2p = 12288
                else:
                    a2p -= 0x80
            elif a2p <= -12416:
                a2p = -12288
            elif a2p >= 12160:
                a2p = 12288
            else:
                a2p += 0x80

        state.a[1] = a2p

        # UPA1
        a1 = state.a[0] - (state.a[0] >> 8)
        if dqsez != 0:
            a1 += -192 if pks1 else 192

        # LIMD
        a1ul = 15360 - a2p
        state.a[0] = min(max(a1, -a1ul), a1ul)

        # UPB
        leak = 9 if code_size == 5 else 8
        for cnt in range(6):
            b = state.b[cnt] - (state.b[cnt] >> leak)
            if mag:
                b += 128 if (dq ^ state.dq[cnt]) >= 0 else -128
            state.b[cnt] = _s16(b)

    # FLOAT A
    if mag == 0:
        dq0 = FLOAT_ZERO if dq >= 0 else FLOAT_NEG_ZERO
    else:
        dq0 = _to_float(mag, dq < 0)
    state.dq = [dq0] + state.dq[:5]

    # FLOAT B
    if sr == 0:
        sr0 = FLOAT_ZERO
    elif sr > 0:
        sr0 = _to_float(sr, False)
    elif sr > -32768:
        sr0 = _to_float(-sr, True)
    else:
        sr0 = FLOAT_NEG_ZERO
    state.sr = [sr0, state.sr[0]]

    # DELAY A
    state.pk = [pk0, state.pk[0]]

    # TONE
    if tr == 1:
        state.td = 0
    elif a2p < -11776:
        state.td = 1
    else:
        state.td = 0

    # Adaptation speed control: FILTA, FILTB, SUBTC
    state.dms += (fi - state.dms) >> 5
    state.dml += ((fi << 2) - state.dml) >> 7

    if tr == 1:
        state.ap = 256
    elif (y < 1536 or state.td == 1
          or abs((state.dms << 2) - state.dml) >= (state.dml >> 3)):
        state.ap += (0x200 - state.ap) >> 4
    else:
        state.ap += (-state.ap) >> 4


def _estimate(state: AdpcmState):
    sezi = predictor_zero(state)
    sez = sezi >> 1
    se = (sezi + predictor_pole(state)) >> 1
    return se, sez


def encode_sample(sample: int, tables: RateTables, state: AdpcmState) -> int:
    """Encode one 16-bit linear sample, advancing ``state``.

    Returns:
        ADPCM codeword of ``tables.bits`` bits
    """
    sl = sample >> 2
    se, sez = _estimate(state)
    d = sl - se

    y = step_size(state)
    i = quantize(d, y, tables.quant)
    if tables.bits == 2 and i == 3 and d >= 0:
        # The 1-level table only yields codes 1-3; 3 for d >= 0 is the zero region
        i = 0

    dq = reconstruct(i & tables.sign_bit, tables.dqln[i], y)
    sr = se - (dq & 0x3FFF) if dq < 0 else se + dq
    dqsez = sr + sez - se

    update(tables.bits, y, tables.wi[i], tables.fi[i], dq, sr, dqsez, state)
    return i


def decode_sample(code: int, tables: RateTables, state: AdpcmState) -> int:
    """Decode one ADPCM codeword, advancing ``state``.

    Returns:
        Reconstructed 16-bit linear sample (saturated to int16)
    """
    i = code & tables.mask
    se, sez = _estimate(state)

    y = step_size(state)
    dq = reconstruct(i & tables.sign_bit, tables.dqln[i], y)
    sr = se - (dq & 0x3FFF) if dq < 0 else se + dq
    dqsez = sr - se + sez

    update(tables.bits, y, tables.wi[i], tables.fi[i], dq, sr, dqsez, state)
    return min(max(sr << 2, -32768), 32767)


class G726Codec(VoiceCodec):
    """G.726 ADPCM frame codec.

    Holds an independent encoder state and decoder state. An unsupported
    rate leaves the codec inert: it is logged once, ``frame_size`` is 0,
    encoding yields ``b''`` and decoding an empty array.
    """

    name = 'g726'

    def __init__(self, rate: int = 32, frame_samples: int = DEFAULT_FRAME_SAMPLES,
                 sample_rate: int = DEFAULT_SAMPLE_RATE):
        """Initialize the codec.

        Args:
            rate: Bit rate in kbit/s (16, 24, 32 or 40)
            frame_samples: Number of samples in one frame
            sample_rate: Audio sample rate in Hz
        """
        super().__init__(frame_samples, sample_rate)
        self.rate = rate
        self.tables: Optional[RateTables] = RATES.get(rate)
        if self.tables is None:
            logger.warning(
                f"Unsupported G.726 rate {rate} kbit/s (supported: {SUPPORTED_RATES}); "
                f"codec is inactive"
            )
        self.encoder_state = AdpcmState()
        self.decoder_state = AdpcmState()

    @property
    def active(self) -> bool:
        return self.tables is not None

    @property
    def bits_per_codeword(self) -> int:
        return self.tables.bits if self.tables else 0

    @property
    def frame_size(self) -> int:
        return bitpack.packed_size(self.frame_samples, self.bits_per_codeword)

    @property
    def bitrate(self) -> int:
        return self.bits_per_codeword * self.sample_rate

    def reset(self) -> None:
        self.encoder_state = AdpcmState()
        self.decoder_state = AdpcmState()

    def encode_codewords(self, samples: Samples) -> List[int]:
        """Encode a frame to its unpacked codewords."""
        frame = self._as_frame(samples)
        if not self.active:
            return []
        tables, state = self.tables, self.encoder_state
        return [encode_sample(int(s), tables, state) for s in frame]

    def decode_codewords(self, codewords: Sequence[int]) -> np.ndarray:
        """Decode unpacked codewords to samples."""
        if not self.active:
            return np.zeros(0, dtype=np.int16)
        tables, state = self.tables, self.decoder_state
        return np.array([decode_sample(c, tables, state) for c in codewords], dtype=np.int16)

    def encode_frame(self, samples: Samples) -> bytes:
        codewords = self.encode_codewords(samples)
        if not self.active:
            return b''
        return bitpack.pack(codewords, self.tables.bits)

    def decode_frame(self, payload: bytes) -> np.ndarray:
        if not self.active:
            return np.zeros(0, dtype=np.int16)
        self._check_payload(payload)
        codewords = bitpack.unpack(payload, self.frame_samples, self.tables.bits)
        return self.decode_codewords(codewords)

    def get_config(self):
        config = super().get_config()
        config['rate'] = self.rate
        config['bits_per_codeword'] = self.bits_per_codeword
        return config
