"""
Base Codec Definitions

This module defines the frame-level interface shared by the voice
codecs used on a simulated call.
"""

import abc
from typing import Dict, Any, Sequence, Union

import numpy as np

from voip_sim.errors import SizeMismatchError

# One packet carries 20 ms of 8 kHz audio
DEFAULT_FRAME_SAMPLES = 160
DEFAULT_SAMPLE_RATE = 8000

Samples = Union[np.ndarray, Sequence[int]]


class VoiceCodec(abc.ABC):
    """Frame codec capability.

    A codec turns one frame of 16-bit linear PCM samples into a payload of
    exactly ``frame_size`` bytes and back. Implementations that keep
    adaptive state own it exclusively; one instance must serve a single
    call direction.
    """

    name = 'codec'

    def __init__(self, frame_samples: int = DEFAULT_FRAME_SAMPLES,
                 sample_rate: int = DEFAULT_SAMPLE_RATE):
        """Initialize the codec.

        Args:
            frame_samples: Number of samples in one frame
            sample_rate: Audio sample rate in Hz
        """
        if frame_samples <= 0:
            raise ValueError(f"frame_samples must be positive, got {frame_samples}")
        self.frame_samples = frame_samples
        self.sample_rate = sample_rate

    @property
    @abc.abstractmethod
    def frame_size(self) -> int:
        """Encoded payload size of one frame in bytes."""

    @property
    @abc.abstractmethod
    def bitrate(self) -> int:
        """Nominal bitrate in bits per second."""

    @abc.abstractmethod
    def encode_frame(self, samples: Samples) -> bytes:
        """Encode one frame of PCM samples.

        Args:
            samples: ``frame_samples`` signed 16-bit samples

        Returns:
            Encoded payload of ``frame_size`` bytes
        """

    @abc.abstractmethod
    def decode_frame(self, payload: bytes) -> np.ndarray:
        """Decode one payload back to PCM samples.

        Args:
            payload: Encoded payload of ``frame_size`` bytes

        Returns:
            ``frame_samples`` samples as an int16 array
        """

    def reset(self) -> None:
        """Return any adaptive state to its initial values."""

    def _as_frame(self, samples: Samples) -> np.ndarray:
        frame = np.asarray(samples, dtype=np.int16)
        if frame.ndim != 1 or frame.shape[0] != self.frame_samples:
            raise ValueError(
                f"{self.name} expects a frame of {self.frame_samples} samples, "
                f"got shape {frame.shape}"
            )
        return frame

    def _check_payload(self, payload: bytes) -> None:
        if len(payload) != self.frame_size:
            raise SizeMismatchError(self.frame_size, len(payload), f"{self.name} payload")

    def get_compression_ratio(self) -> float:
        """Encoded size over raw 16-bit PCM size for one frame."""
        return self.frame_size / (self.frame_samples * 2)

    def get_config(self) -> Dict[str, Any]:
        """Describe the codec configuration."""
        return {
            'name': self.name,
            'frame_samples': self.frame_samples,
            'sample_rate': self.sample_rate,
            'frame_size': self.frame_size,
            'bitrate': self.bitrate,
        }

    def __str__(self) -> str:
        return (f"{self.__class__.__name__}(frame_samples={self.frame_samples}, "
                f"frame_size={self.frame_size})")
