"""Tests for environment-driven configuration."""
import pytest

import src.config as config_module
from src.config import Config, DEFAULT_EXCLUDED_DIRS, get_config

ENV_VARS = ('TYPEMARK_IGNORE_PATTERN', 'TYPEMARK_REPORT_PARAMETERS',
            'TYPEMARK_EXCLUDED_DIRS', 'TYPEMARK_VERBOSE')


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config_module, '_config', None)
    return tmp_path / '.env'


def test_defaults(clean_env):
    config = Config(env_path=clean_env)

    assert config.ignore_pattern == '^_'
    assert config.report_parameters is False
    assert config.verbose is False
    assert config.excluded_dirs == DEFAULT_EXCLUDED_DIRS


def test_values_from_environment(clean_env, monkeypatch):
    monkeypatch.setenv('TYPEMARK_IGNORE_PATTERN', '^(_|unused)')
    monkeypatch.setenv('TYPEMARK_REPORT_PARAMETERS', 'yes')
    monkeypatch.setenv('TYPEMARK_EXCLUDED_DIRS', 'vendor, generated ,')
    monkeypatch.setenv('TYPEMARK_VERBOSE', '1')

    config = Config(env_path=clean_env)

    assert config.ignore_pattern == '^(_|unused)'
    assert config.report_parameters is True
    assert config.excluded_dirs == ['vendor', 'generated']
    assert config.verbose is True


def test_values_from_dotenv_file(clean_env, monkeypatch):
    clean_env.write_text("TYPEMARK_REPORT_PARAMETERS=true\nTYPEMARK_EXCLUDED_DIRS=lib\n")
    # load_dotenv writes into os.environ; let monkeypatch restore it afterwards
    for name in ENV_VARS:
        monkeypatch.setenv(name, '')
        monkeypatch.delenv(name)

    config = Config(env_path=clean_env)

    assert config.report_parameters is True
    assert config.excluded_dirs == ['lib']


def test_environment_wins_over_dotenv(clean_env, monkeypatch):
    clean_env.write_text("TYPEMARK_VERBOSE=true\n")
    monkeypatch.setenv('TYPEMARK_VERBOSE', 'false')

    assert Config(env_path=clean_env).verbose is False


def test_invalid_regex_fails_fast(clean_env, monkeypatch):
    monkeypatch.setenv('TYPEMARK_IGNORE_PATTERN', '[unclosed')

    with pytest.raises(ValueError, match="TYPEMARK_IGNORE_PATTERN"):
        Config(env_path=clean_env)


def test_invalid_boolean_fails_fast(clean_env, monkeypatch):
    monkeypatch.setenv('TYPEMARK_VERBOSE', 'maybe')

    with pytest.raises(ValueError, match="TYPEMARK_VERBOSE must be a boolean"):
        Config(env_path=clean_env)


def test_empty_ignore_pattern_disables_ignoring(clean_env, monkeypatch):
    monkeypatch.setenv('TYPEMARK_IGNORE_PATTERN', '')
    assert Config(env_path=clean_env).ignore_pattern == ''


def test_get_config_is_a_singleton(clean_env):
    assert get_config() is get_config()
