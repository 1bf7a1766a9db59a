"""
Tests for configuration utilities
"""

import argparse
import json

import pytest
import yaml

from voip_sim.errors import ConfigurationError
from voip_sim.utils.config import (
    add_common_arguments, get_config_value, get_default_config, load_config,
    load_config_file, load_config_from_args, merge_configs, save_config,
    set_config_value, validate_config
)


class TestConfig:
    """Test suite for configuration loading and validation"""

    def test_default_config_is_valid(self):
        assert validate_config(get_default_config()) == []

    def test_default_config_is_a_copy(self):
        config = get_default_config()
        config['codec']['type'] = 'g726'
        assert get_default_config()['codec']['type'] == 'g711'

    def test_merge_configs(self):
        base = {'a': {'b': 1, 'c': 2}, 'd': 3}
        merged = merge_configs(base, {'a': {'b': 10}, 'e': 4})
        assert merged == {'a': {'b': 10, 'c': 2}, 'd': 3, 'e': 4}
        assert base['a']['b'] == 1

    @pytest.mark.parametrize("fmt", ['json', 'yaml'])
    def test_save_and_load(self, tmp_path, fmt):
        path = tmp_path / f"config.{fmt}"
        save_config(get_default_config(), path, fmt)
        assert load_config_file(path) == get_default_config()

    def test_load_yaml_override(self, tmp_path):
        path = tmp_path / "call.yaml"
        path.write_text(yaml.safe_dump({'codec': {'type': 'g726', 'rate': 24}}))
        config = load_config(path)
        assert config['codec']['rate'] == 24
        assert config['call']['num_users'] == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_config_file(tmp_path / "missing.json")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.ini"
        path.write_text("[codec]\n")
        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text("{not json")
        with pytest.raises(ConfigurationError):
            load_config_file(path)

    def test_save_unsupported_format(self, tmp_path):
        with pytest.raises(ConfigurationError):
            save_config({}, tmp_path / "config.xml", 'xml')

    @pytest.mark.parametrize("path,value", [
        ('codec.type', 'opus'),
        ('call.num_users', 0),
        ('network.packet_loss', 1.5),
        ('statistics.loss_basis', 'global'),
    ])
    def test_validation_errors(self, path, value):
        config = get_default_config()
        set_config_value(config, path, value)
        errors = validate_config(config)
        assert errors
        assert errors[0].startswith(path)

    def test_unsupported_rate_passes_validation(self):
        config = get_default_config()
        config['codec']['rate'] = 48
        assert validate_config(config) == []

    def test_invalid_file_raises(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({'network': {'delay_ms': -1}}))
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_get_set_config_value(self):
        config = {}
        set_config_value(config, 'network.delay_ms', 30.0)
        assert config == {'network': {'delay_ms': 30.0}}
        assert get_config_value(config, 'network.delay_ms') == 30.0
        assert get_config_value(config, 'network.jitter_ms', 1.0) == 1.0

    def test_load_config_from_args(self):
        parser = add_common_arguments(argparse.ArgumentParser())
        parser.add_argument('--codec')
        parser.add_argument('--loss', type=float)
        args = parser.parse_args(['-v', '--codec', 'g726', '--loss', '0.1'])

        config = load_config_from_args(args)
        assert config['general']['log_level'] == 'debug'
        assert config['codec']['type'] == 'g726'
        assert config['network']['packet_loss'] == 0.1
