import json
import os
from unittest.mock import patch

from derby_sim import config
from derby_sim.config import GameConfig, get_config, load_config, load_game_config, load_race_constants


def test_shipped_config_matches_defaults():
    assert get_config('game.race_distances') == [1200, 1400, 1600, 1800, 2000, 2200]
    assert get_config('race_constants.max_race_time_seconds') == 5
    assert get_config('validation.max_horse_count') == 50


def test_get_config_falls_back_to_defaults():
    with patch.object(config, 'BALANCE_CONFIG', {'game': {'race_delay_ms': 1234}}):
        assert get_config('game.race_delay_ms') == 1234
        assert get_config('game.min_race_duration_ms') == 2000


def test_get_config_missing_key_returns_default(capsys):
    assert get_config('game.no_such_key', default='fallback') == 'fallback'
    assert "Could not find config key: game.no_such_key" in capsys.readouterr().out


def test_load_config_missing_file(tmp_path, capsys):
    assert load_config(tmp_path / 'nope.json') is None
    assert "FATAL ERROR" in capsys.readouterr().out


def test_load_config_bad_json(tmp_path):
    path = tmp_path / 'broken.json'
    path.write_text('{"game": ', encoding='utf-8')
    assert load_config(path) is None


def test_load_config_reads_file(tmp_path):
    path = tmp_path / 'balance.json'
    path.write_text(json.dumps({'game': {'race_delay_ms': 10}}), encoding='utf-8')
    assert load_config(path) == {'game': {'race_delay_ms': 10}}


def test_env_overrides_apply_to_game_config():
    env = {
        'DERBY_RACE_DELAY_MS': '0',
        'DERBY_MIN_RACE_DURATION_MS': '250',
        'DERBY_DEFAULT_HORSES': '30',
    }
    with patch.dict(os.environ, env):
        settings = load_game_config()
    assert settings.race_delay_ms == 0
    assert settings.min_race_duration_ms == 250
    assert settings.default_horses_generated == 30
    assert settings.race_distances == (1200, 1400, 1600, 1800, 2000, 2200)


def test_non_integer_env_override_is_ignored(capsys):
    with patch.dict(os.environ, {'DERBY_RACE_DELAY_MS': 'soon'}):
        settings = load_game_config()
    assert settings.race_delay_ms == 5000
    assert "DERBY_RACE_DELAY_MS" in capsys.readouterr().out


def test_race_constants_are_floats():
    constants = load_race_constants()
    assert constants.max_race_time_seconds == 5.0
    assert isinstance(constants.base_condition_factor, float)


def test_game_config_defaults():
    settings = GameConfig()
    assert settings.min_horses_for_race == 10
    assert settings.max_horses_per_race == 10
    assert len(settings.race_distances) == 6


def test_shipped_config_has_only_known_sections():
    assert set(config.BALANCE_CONFIG) == set(config.DEFAULT_CONFIG)
