"""
Test suite for config validation with clear error messages.

Verifies that config errors are clear, show examples, and fall back to defaults.
"""

import pytest
import json
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import Config
from core.points import ConstructKind


class TestConfigValidation:
    """Test config validation error messages."""

    @pytest.fixture
    def temp_config_file(self, tmp_path):
        return tmp_path / 'config.json'

    def write(self, path, data):
        with open(path, 'w') as f:
            json.dump(data, f)

    def test_defaults_without_file(self):
        config = Config()
        assert config.source_extensions == ['.java']
        assert config.backup_suffix == '.contender'
        assert (config.lower_bound, config.upper_bound) == (0, 100)

    def test_valid_config_loads_successfully(self, temp_config_file):
        self.write(temp_config_file, {'sleep_probability': 80, 'delay_high': 2000})

        config = Config(temp_config_file)
        assert config.get('sleep_probability') == 80
        assert config.get('delay_high') == 2000
        assert config.get('delay_low') == 100

    def test_invalid_type_shows_clear_error(self, temp_config_file, capsys):
        self.write(temp_config_file, {'sleep_probability': "fifty"})

        config = Config(temp_config_file)
        assert config.get('sleep_probability') == 50

        captured = capsys.readouterr()
        assert 'sleep_probability' in captured.out
        assert 'Example: 50' in captured.out
        assert 'Using default configuration instead.' in captured.out

    def test_bool_is_not_a_number(self, temp_config_file):
        self.write(temp_config_file, {'latch_probability': True})
        assert Config(temp_config_file).get('latch_probability') == 50

    @pytest.mark.parametrize("field,value", [
        ('mutual_exclusion_probability', 101),
        ('semaphore_probability', -1),
        ('upper_bound', 150),
        ('max_log_files', 0),
    ])
    def test_out_of_range_rejected(self, temp_config_file, capsys, field, value):
        self.write(temp_config_file, {field: value})
        config = Config(temp_config_file)

        assert config.get(field) == Config.DEFAULT_CONFIG[field]
        assert 'Expected: number between' in capsys.readouterr().out

    def test_inverted_delays_rejected(self, temp_config_file, capsys):
        self.write(temp_config_file, {'delay_low': 500, 'delay_high': 100})
        config = Config(temp_config_file)

        assert (config.get('delay_low'), config.get('delay_high')) == (100, 1000)
        assert 'delay_low must not exceed delay_high' in capsys.readouterr().out

    def test_inverted_bounds_checked_against_defaults(self, temp_config_file):
        # upper_bound alone is valid, but falls below a lower_bound set with it
        self.write(temp_config_file, {'lower_bound': 60, 'upper_bound': 40})
        assert Config(temp_config_file).lower_bound == 0

    def test_extensions_need_dots(self, temp_config_file, capsys):
        self.write(temp_config_file, {'source_extensions': ['java']})
        config = Config(temp_config_file)

        assert config.source_extensions == ['.java']
        assert "note the dots" in capsys.readouterr().out

    def test_extensions_must_be_list(self, temp_config_file):
        self.write(temp_config_file, {'source_extensions': '.java'})
        assert Config(temp_config_file).source_extensions == ['.java']

    def test_bad_backup_suffix(self, temp_config_file):
        self.write(temp_config_file, {'backup_suffix': 'bak'})
        assert Config(temp_config_file).backup_suffix == '.contender'

    def test_invalid_json(self, temp_config_file, capsys):
        temp_config_file.write_text('{"sleep_probability": 10,,}')
        config = Config(temp_config_file)

        assert config.get('sleep_probability') == 50
        assert 'Invalid JSON' in capsys.readouterr().out

    def test_non_object_rejected(self, temp_config_file):
        self.write(temp_config_file, [1, 2, 3])
        assert Config(temp_config_file).config == Config.DEFAULT_CONFIG


class TestPolicy:
    """Tests for the automatic-mode policy built from config."""

    def test_policy_from_defaults(self):
        policy = Config().policy
        assert all(policy.probability_for(kind) == 50 for kind in ConstructKind)
        assert (policy.delay_low, policy.delay_high) == (100, 1000)

    def test_policy_follows_config(self, tmp_path):
        path = tmp_path / 'config.json'
        path.write_text(json.dumps({'barrier_probability': 5, 'sleep_probability': 0}))

        policy = Config(path).policy
        assert policy.probability_for(ConstructKind.BARRIER) == 5
        assert policy.probability_for(ConstructKind.LATCH) == 50
        assert policy.sleep_probability == 0

    def test_save_and_reload(self, tmp_path):
        path = tmp_path / 'config.json'
        config = Config()
        config.set('delay_low', 1)
        config.save_config(path)

        assert Config(path).get('delay_low') == 1
