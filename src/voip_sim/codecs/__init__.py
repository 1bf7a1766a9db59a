"""
Voice Codec Implementations

This package contains the G.711 and G.726 frame codecs and the
factory used to select one of them for a call.
"""

import enum
from typing import Optional, Union

from voip_sim.codecs.base import VoiceCodec, DEFAULT_FRAME_SAMPLES, DEFAULT_SAMPLE_RATE
from voip_sim.codecs.g711 import G711Codec
from voip_sim.codecs.g726 import G726Codec, AdpcmState, SUPPORTED_RATES
from voip_sim.errors import ConfigurationError


class CodecType(enum.Enum):
    """Codec selected for a session."""

    G711 = 'g711'
    G726 = 'g726'

    @classmethod
    def parse(cls, value: Union[str, 'CodecType']) -> 'CodecType':
        """Parse a codec name such as ``'g711'`` or ``'G726'``.

        Raises:
            ConfigurationError: If the codec is not available
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            available = ', '.join(member.value for member in cls)
            raise ConfigurationError(
                f"Codec '{value}' not available (choose from: {available})"
            ) from None


# Dictionary of available codecs
AVAILABLE_CODECS = {
    CodecType.G711: G711Codec,
    CodecType.G726: G726Codec,
}


def get_codec(codec_name):
    """Get a codec class by name.

    Args:
        codec_name (str): Name of the codec to get

    Returns:
        The codec class

    Raises:
        ConfigurationError: If the codec is not available
    """
    return AVAILABLE_CODECS[CodecType.parse(codec_name)]


def create_codec(codec: Union[str, CodecType],
                 rate: Optional[int] = None,
                 frame_samples: int = DEFAULT_FRAME_SAMPLES,
                 sample_rate: int = DEFAULT_SAMPLE_RATE) -> VoiceCodec:
    """Create a codec instance for one call direction.

    Args:
        codec: Codec name or type
        rate: G.726 bit rate in kbit/s (ignored for G.711)
        frame_samples: Number of samples per frame
        sample_rate: Audio sample rate in Hz

    Returns:
        A fresh codec instance with its own state
    """
    codec_type = CodecType.parse(codec)
    if codec_type is CodecType.G726:
        return G726Codec(rate=32 if rate is None else rate,
                         frame_samples=frame_samples, sample_rate=sample_rate)
    return G711Codec(frame_samples=frame_samples, sample_rate=sample_rate)


__all__ = [
    'AVAILABLE_CODECS',
    'AdpcmState',
    'CodecType',
    'G711Codec',
    'G726Codec',
    'SUPPORTED_RATES',
    'VoiceCodec',
    'create_codec',
    'get_codec',
]
