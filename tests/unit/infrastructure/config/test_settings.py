import logging
from pathlib import Path

import pytest

from lincli.infrastructure.config.settings import (
    ConfigurationError, coerce_env_value, find_dotenv_path, load_configuration
)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    return tmp_path / "lincli" / "config.yaml"


def write_yaml(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def load(config_file, environ=None, overrides=None, env_file=None):
    return load_configuration(overrides, config_file=config_file, env_file=env_file, environ=environ or {})


def test_defaults(config_file):
    config = load(config_file)
    assert config.profile == "default"
    assert config.api_key is None
    assert config.cache_dir == config_file.parent / "cache" / "default"
    assert config.cache_ttl_seconds == 3600
    assert config.retry.max_retries == 3
    assert config.concurrency == 10
    assert config.log_level_value == logging.WARNING


def test_yaml_profile_overrides_top_level(config_file):
    write_yaml(config_file, (
        "api_key: top-key\n"
        "cache_ttl: 120\n"
        "profiles:\n"
        "  work:\n"
        "    api_key: work-key\n"
        "    max_retries: 1\n"
    ))
    config = load(config_file, overrides={"profile": "work"})
    assert config.api_key == "work-key"
    assert config.cache_ttl_seconds == 120
    assert config.retry.max_retries == 1
    assert config.cache_dir == config_file.parent / "cache" / "work"


def test_environment_beats_yaml(config_file):
    write_yaml(config_file, "api_key: yaml-key\nmax_retries: 5\n")
    config = load(config_file, environ={"LINEAR_API_KEY": "env-key", "LINCLI_MAX_RETRIES": "2"})
    assert config.api_key == "env-key"
    assert config.retry.max_retries == 2


def test_prefixed_api_key_beats_linear_api_key(config_file):
    config = load(config_file, environ={"LINEAR_API_KEY": "plain", "LINCLI_API_KEY": "prefixed"})
    assert config.api_key == "prefixed"


def test_overrides_beat_everything(config_file):
    config = load(
        config_file,
        environ={"LINCLI_MAX_RETRIES": "2", "LINCLI_NO_CACHE": "false"},
        overrides={"max_retries": 0, "no_cache": True, "log_level": "debug"},
    )
    assert config.retry.max_retries == 0
    assert config.no_cache is True
    assert config.log_level == "DEBUG"
    assert config.log_level_value == logging.DEBUG


def test_none_overrides_are_ignored(config_file):
    config = load(config_file, environ={"LINCLI_CACHE_TTL": "30"}, overrides={"cache_ttl": None})
    assert config.cache_ttl_seconds == 30


def test_dotenv_fills_gaps_but_not_over_environment(config_file, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("LINEAR_API_KEY=dotenv-key\nLINCLI_TIMEOUT=5.5\n", encoding="utf-8")
    config = load(config_file, environ={"LINCLI_TIMEOUT": "9"}, env_file=env_file)
    assert config.api_key == "dotenv-key"
    assert config.timeout_seconds == 9.0


def test_invalid_values_raise(config_file):
    with pytest.raises(ConfigurationError):
        load(config_file, environ={"LINCLI_MAX_RETRIES": "-1"})
    with pytest.raises(ConfigurationError):
        load(config_file, environ={"LINCLI_CONCURRENCY": "lots"})


def test_non_mapping_yaml_raises(config_file):
    write_yaml(config_file, "- just\n- a list\n")
    with pytest.raises(ConfigurationError):
        load(config_file)


def test_explicit_cache_dir(config_file, tmp_path):
    config = load(config_file, environ={"LINCLI_CACHE_DIR": str(tmp_path / "elsewhere")})
    assert config.cache_dir == tmp_path / "elsewhere"


def test_config_file_from_environment(tmp_path):
    config_file = write_yaml(tmp_path / "custom.yaml", "concurrency: 4\n")
    config = load_configuration(environ={"LINCLI_CONFIG": str(config_file)}, env_file=tmp_path / "missing.env")
    assert config.concurrency == 4


def test_redacted_hides_api_key(config_file):
    assert load(config_file, environ={"LINEAR_API_KEY": "secret"}).redacted()["api_key"] == "***"


@pytest.mark.parametrize("raw, expected", [("true", True), ("False", False), ("3", 3), ("2.5", 2.5), ("INFO", "INFO")])
def test_coerce_env_value(raw, expected):
    assert coerce_env_value(raw) == expected


def test_find_dotenv_path_searches_upwards(tmp_path):
    (tmp_path / ".env").write_text("X=1\n", encoding="utf-8")
    nested = tmp_path / "a" / "b"
    nested.mkdir(parents=True)
    assert find_dotenv_path(nested) == tmp_path / ".env"
