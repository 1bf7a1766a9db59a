"""
Audio Utilities

Tone generation, frame splitting and WAV file I/O for the codecs.
"""

import os
import logging
from typing import List, Tuple

import numpy as np
import soundfile as sf

logger = logging.getLogger(__name__)

TONE_FREQUENCY = 440.0
TONE_AMPLITUDE = 30000


def tone_samples(start_time: float, count: int,
                 sample_rate: int = 8000,
                 frequency: float = TONE_FREQUENCY,
                 amplitude: float = TONE_AMPLITUDE) -> np.ndarray:
    """Sample a sine tone starting at an absolute time.

    Args:
        start_time: Time of the first sample in seconds
        count: Number of samples
        sample_rate: Sample rate in Hz
        frequency: Tone frequency in Hz
        amplitude: Peak amplitude in PCM units

    Returns:
        int16 array of ``count`` samples (truncated toward zero)
    """
    t = start_time + np.arange(count, dtype=np.float64) / sample_rate
    tone = amplitude * np.sin(2 * np.pi * frequency * t)
    return np.clip(np.trunc(tone), -32768, 32767).astype(np.int16)


def generate_tone(duration: float, sample_rate: int = 8000,
                  frequency: float = TONE_FREQUENCY,
                  amplitude: float = TONE_AMPLITUDE) -> np.ndarray:
    """Generate ``duration`` seconds of a sine tone as int16 PCM."""
    return tone_samples(0.0, int(sample_rate * duration), sample_rate, frequency, amplitude)


def split_frames(samples: np.ndarray, frame_samples: int) -> List[np.ndarray]:
    """Split a signal into frames, zero-padding the last one.

    Args:
        samples: 1-D int16 signal
        frame_samples: Samples per frame

    Returns:
        List of int16 frames of exactly ``frame_samples`` samples
    """
    samples = np.asarray(samples, dtype=np.int16)
    if samples.size == 0:
        return []

    padding = (-samples.size) % frame_samples
    if padding:
        samples = np.concatenate([samples, np.zeros(padding, dtype=np.int16)])
    return list(samples.reshape(-1, frame_samples))


def read_wav(path: str) -> Tuple[np.ndarray, int]:
    """Read a WAV file as mono int16 PCM.

    Multi-channel files are mixed down by averaging the channels.

    Args:
        path: Path to the audio file

    Returns:
        Tuple of (samples, sample_rate)
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Audio file not found: {path}")

    data, sample_rate = sf.read(path, dtype='int16', always_2d=True)
    if data.shape[1] > 1:
        logger.debug(f"Mixing {data.shape[1]} channels of {path} down to mono")
        data = np.mean(data, axis=1).astype(np.int16)
    else:
        data = data[:, 0]
    return data, sample_rate


def write_wav(path: str, samples: np.ndarray, sample_rate: int) -> str:
    """Write int16 PCM samples to a 16-bit WAV file.

    Returns:
        Path of the written file
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    sf.write(path, np.asarray(samples, dtype=np.int16), sample_rate, subtype='PCM_16')
    return path
