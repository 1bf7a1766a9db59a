"""
Pytest configuration and fixtures for the VoIP call simulator tests.
"""

import os
import tempfile

import numpy as np
import pytest
import soundfile as sf

from voip_sim.codecs import G711Codec, G726Codec


@pytest.fixture
def sine_signal():
    """One second of a 440 Hz sine at 8 kHz with a moderate amplitude.

    Returns:
        int16 numpy array of 8000 samples
    """
    t = np.arange(8000) / 8000.0
    return (8000 * np.sin(2 * np.pi * 440 * t)).astype(np.int16)


@pytest.fixture
def sine_frame(sine_signal):
    """The first 160-sample frame of the sine signal."""
    return sine_signal[:160].copy()


@pytest.fixture
def g711_codec():
    return G711Codec()


@pytest.fixture(params=[16, 24, 32, 40])
def g726_codec(request):
    """A G.726 codec at each supported rate."""
    return G726Codec(rate=request.param)


@pytest.fixture
def test_wav_file(sine_signal):
    """Create a temporary 8 kHz WAV file for testing.

    Returns:
        Path to the temporary WAV file
    """
    with tempfile.NamedTemporaryFile(suffix='.wav', delete=False) as temp_file:
        temp_wav_path = temp_file.name

    sf.write(temp_wav_path, sine_signal, 8000, subtype='PCM_16')

    yield temp_wav_path

    # Clean up
    if os.path.exists(temp_wav_path):
        os.unlink(temp_wav_path)


@pytest.fixture
def small_call_config():
    """A short, impairment-free two-user call."""
    return {
        'codec': {'type': 'g711'},
        'call': {'num_users': 2, 'duration': 0.2, 'teardown_grace': 0.5},
        'network': {'delay_ms': 10.0, 'jitter_ms': 0.0, 'packet_loss': 0.0, 'seed': 1},
    }
