"""
Tests for the command-line interface
"""

import json

import numpy as np
import pytest

from voip_sim.__main__ import main
from voip_sim.codecs import CodecType, G711Codec, G726Codec, create_codec, get_codec
from voip_sim.errors import ConfigurationError
from voip_sim.utils.audio import read_wav


class TestCodecFactory:
    """Test suite for codec selection"""

    def test_parse(self):
        assert CodecType.parse('G711') is CodecType.G711
        assert CodecType.parse(CodecType.G726) is CodecType.G726
        with pytest.raises(ConfigurationError):
            CodecType.parse('opus')

    def test_create_codec(self):
        assert isinstance(create_codec('g711'), G711Codec)
        codec = create_codec('g726')
        assert isinstance(codec, G726Codec)
        assert codec.rate == 32
        assert create_codec(CodecType.G726, rate=16).frame_size == 40

    def test_get_codec(self):
        assert get_codec('g726') is G726Codec


class TestCommandLine:
    """Test suite for the voip-sim commands"""

    def test_no_command(self):
        with pytest.raises(SystemExit) as excinfo:
            main([])
        assert excinfo.value.code == 1

    def test_config_command(self, tmp_path):
        out = tmp_path / "default.yaml"
        main(['config', '-o', str(out), '--format', 'yaml'])
        assert out.exists()

    def test_simulate_command(self, tmp_path, capsys):
        out = tmp_path / "report.json"
        main(['--log-level', 'warning', 'simulate', '--users', '2', '--duration', '0.2',
              '--codec', 'g726', '--rate', '24', '--seed', '1', '-o', str(out)])

        printed = capsys.readouterr().out
        assert "g726@24k" in printed
        assert "aggregate" in printed
        with open(out) as f:
            result = json.load(f)
        assert result['packets_sent'] == 20

    def test_simulate_dump(self, tmp_path):
        dump = tmp_path / "first_frame.csv"
        main(['--log-level', 'warning', 'simulate', '--duration', '0.1', '--dump', str(dump)])
        assert len(dump.read_text().splitlines()) == 3

    def test_compare_command(self, tmp_path):
        out = tmp_path / "compare.json"
        main(['--log-level', 'warning', 'compare', '--duration', '0.1', '--rates', '16,32',
              '-o', str(out)])
        with open(out) as f:
            results = json.load(f)['results']
        assert [r['codec'].get('rate') for r in results] == [None, 16, 32]

    def test_transcode_command(self, test_wav_file, sine_signal, tmp_path, capsys):
        out = tmp_path / "decoded.wav"
        main(['--log-level', 'warning', 'transcode', '-i', test_wav_file, '-o', str(out),
              '--codec', 'g711'])

        decoded, sample_rate = read_wav(str(out))
        assert sample_rate == 8000
        assert len(decoded) == len(sine_signal)
        assert np.max(np.abs(decoded.astype(int) - sine_signal.astype(int))) < 300
        assert "SNR" in capsys.readouterr().out

    def test_transcode_missing_input(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(['--log-level', 'warning', 'transcode', '-i', str(tmp_path / "missing.wav"),
                  '-o', str(tmp_path / "out.wav")])
        assert excinfo.value.code == 1

    def test_invalid_option_value(self):
        with pytest.raises(SystemExit) as excinfo:
            main(['--log-level', 'warning', 'simulate', '--loss', '2.0'])
        assert excinfo.value.code == 1
