"""Loads the application configuration into a single AppConfig.

Sources, highest priority first:
1. Explicit overrides (CLI flags)
2. Environment variables (LINCLI_<KEY>, plus LINEAR_API_KEY)
3. .env file (searched upwards from the current directory)
4. YAML configuration file (~/.config/lincli/config.yaml), where a
   `profiles.<name>` section overrides the top-level keys
5. Default values

The result is built once at startup and passed to constructors.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from dotenv import dotenv_values

from lincli.domain.models.cache import DEFAULT_TTL_SECONDS
from lincli.infrastructure.api.graphql_client import DEFAULT_API_URL, DEFAULT_TIMEOUT_SECONDS
from lincli.infrastructure.resilience.backoff import RetryConfig

logger = logging.getLogger(__name__)

# --- Configuration Constants ---
DEFAULT_CONFIG_ROOT = Path.home() / ".config" / "lincli"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_ROOT / "config.yaml"
ENV_FILE_NAME = ".env"
ENV_PREFIX = "LINCLI_"
API_KEY_ENV = "LINEAR_API_KEY"
CONFIG_FILE_ENV = "LINCLI_CONFIG"
DEFAULT_PROFILE = "default"
DEFAULT_CONCURRENCY = 10
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_DEFAULT_RETRY = RetryConfig()


class ConfigurationError(ValueError):
    """A configuration value is present but unusable."""


@dataclass
class AppConfig:
    """Resolved settings for one run of the CLI."""

    profile: str = DEFAULT_PROFILE
    api_url: str = DEFAULT_API_URL
    api_key: Optional[str] = None
    cache_dir: Path = DEFAULT_CONFIG_ROOT / "cache" / DEFAULT_PROFILE
    cache_ttl_seconds: int = DEFAULT_TTL_SECONDS
    no_cache: bool = False
    retry: RetryConfig = field(default_factory=RetryConfig)
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    concurrency: int = DEFAULT_CONCURRENCY
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Optional[str] = None
    log_format: str = DEFAULT_LOG_FORMAT

    @property
    def log_level_value(self) -> int:
        """Numeric logging level for `log_level` (WARNING if unknown)."""
        value = logging.getLevelName(self.log_level.upper())
        return value if isinstance(value, int) else logging.WARNING

    def redacted(self) -> Dict[str, Any]:
        """Settings as a dict with the API key masked, for diagnostics."""
        return {
            "profile": self.profile,
            "api_url": self.api_url,
            "api_key": "***" if self.api_key else None,
            "cache_dir": str(self.cache_dir),
            "cache_ttl_seconds": self.cache_ttl_seconds,
            "no_cache": self.no_cache,
            "max_retries": self.retry.max_retries,
            "timeout_seconds": self.timeout_seconds,
            "concurrency": self.concurrency,
            "log_level": self.log_level,
        }


def coerce_env_value(value: str) -> Any:
    """Converts common string forms from the environment to Python types."""
    lowered = value.strip().lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    try:
        if "." in value:
            return float(value)
        return int(value)
    except (ValueError, TypeError):
        return value


def find_dotenv_path(start: Optional[Path] = None) -> Optional[Path]:
    """Searches for the .env file upwards from `start` (default: cwd)."""
    cwd = start or Path.cwd()
    for path in [cwd] + list(cwd.parents):
        env_path = path / ENV_FILE_NAME
        if env_path.is_file():
            return env_path
    return None


def read_yaml_config(config_file: Path) -> Dict[str, Any]:
    """Reads the YAML file. Missing file gives an empty dict."""
    if not config_file.exists():
        logger.debug(f"YAML config file not found: {config_file}")
        return {}
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to load or parse YAML config {config_file}: {e}") from e

    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigurationError(f"YAML config file {config_file} did not contain a mapping.")
    logger.info(f"Loaded configuration from YAML: {config_file}")
    return loaded


def env_layer(environ: Mapping[str, Optional[str]]) -> Dict[str, Any]:
    """Extracts LINCLI_* settings (lower-cased, prefix stripped) from a mapping."""
    layer: Dict[str, Any] = {}
    for name, raw in environ.items():
        if raw is None:
            continue
        if name == API_KEY_ENV:
            layer.setdefault("api_key", raw)
        elif name.startswith(ENV_PREFIX):
            key = name[len(ENV_PREFIX):].lower()
            # Keys and paths stay strings
            layer[key] = raw if key in ("api_key", "api_url", "cache_dir", "log_file") else coerce_env_value(raw)
    return layer


def yaml_layer(yaml_config: Dict[str, Any], profile: str) -> Dict[str, Any]:
    """Top-level YAML settings merged with the selected profile's section."""
    layer = {key: value for key, value in yaml_config.items() if key != "profiles"}
    profiles = yaml_config.get("profiles") or {}
    if not isinstance(profiles, dict):
        raise ConfigurationError("'profiles' in the YAML config must be a mapping.")
    section = profiles.get(profile)
    if section is None:
        if profile != DEFAULT_PROFILE:
            logger.warning(f"Profile '{profile}' not found in YAML config; using top-level settings.")
    elif isinstance(section, dict):
        layer.update(section)
    else:
        raise ConfigurationError(f"Profile '{profile}' in the YAML config must be a mapping.")
    return layer


def _as_int(key: str, value: Any, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}")
    try:
        result = int(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{key}' must be an integer, got {value!r}") from e
    if result < minimum:
        raise ConfigurationError(f"'{key}' must be at least {minimum}, got {result}")
    return result


def _as_float(key: str, value: Any) -> float:
    try:
        result = float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"'{key}' must be a number, got {value!r}") from e
    if result <= 0:
        raise ConfigurationError(f"'{key}' must be positive, got {result}")
    return result


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("1", "yes", "on", "true"):
        return True
    if isinstance(value, str) and value.strip().lower() in ("0", "no", "off", "false", ""):
        return False
    if isinstance(value, int):
        return bool(value)
    raise ConfigurationError(f"'{key}' must be true or false, got {value!r}")


def load_configuration(
    overrides: Optional[Dict[str, Any]] = None,
    config_file: Optional[Path] = None,
    env_file: Optional[Path] = None,
    environ: Optional[Mapping[str, Optional[str]]] = None,
) -> AppConfig:
    """Builds the AppConfig from all layered sources.

    Args:
        overrides: Values given explicitly (CLI flags). None entries are ignored.
        config_file: Path to the YAML configuration file (default: $LINCLI_CONFIG,
            then ~/.config/lincli/config.yaml). The default cache directory
            sits next to it.
        env_file: Path to the .env file (searched upwards from cwd if None).
        environ: Environment mapping (defaults to os.environ).

    Returns:
        The resolved configuration.

    Raises:
        ConfigurationError: A source holds a value of the wrong type or range.
    """
    environ = os.environ if environ is None else environ
    if config_file is None:
        config_file = Path(environ.get(CONFIG_FILE_ENV) or DEFAULT_CONFIG_FILE).expanduser()
    explicit = {key: value for key, value in (overrides or {}).items() if value is not None}

    dotenv_path = env_file or find_dotenv_path()
    dotenv_settings: Dict[str, Any] = {}
    if dotenv_path and dotenv_path.is_file():
        # Real environment variables take precedence over .env entries
        dotenv_settings = env_layer(dotenv_values(dotenv_path))
        logger.info(f"Loaded environment variables from: {dotenv_path}")

    yaml_config = read_yaml_config(config_file)

    env_settings = env_layer(environ)
    profile = str(
        explicit.get("profile")
        or env_settings.get("profile")
        or dotenv_settings.get("profile")
        or yaml_config.get("default_profile")
        or DEFAULT_PROFILE
    )

    layers: List[Dict[str, Any]] = [explicit, env_settings, dotenv_settings, yaml_layer(yaml_config, profile)]

    def get_config(key: str, default: Any = None) -> Any:
        for layer in layers:
            if key in layer and layer[key] is not None:
                return layer[key]
        return default

    retry = RetryConfig(
        max_retries=_as_int("max_retries", get_config("max_retries", _DEFAULT_RETRY.max_retries)),
        initial_delay_ms=_as_int("initial_delay_ms", get_config("initial_delay_ms", _DEFAULT_RETRY.initial_delay_ms)),
        max_delay_ms=_as_int("max_delay_ms", get_config("max_delay_ms", _DEFAULT_RETRY.max_delay_ms)),
        exponential_base=_as_float("exponential_base", get_config("exponential_base", _DEFAULT_RETRY.exponential_base)),
    )

    cache_dir = get_config("cache_dir")
    api_key = get_config("api_key")

    config = AppConfig(
        profile=profile,
        api_url=str(get_config("api_url", DEFAULT_API_URL)),
        api_key=str(api_key) if api_key else None,
        cache_dir=Path(cache_dir).expanduser() if cache_dir else config_file.parent / "cache" / profile,
        cache_ttl_seconds=_as_int("cache_ttl", get_config("cache_ttl", DEFAULT_TTL_SECONDS)),
        no_cache=_as_bool("no_cache", get_config("no_cache", False)),
        retry=retry,
        timeout_seconds=_as_float("timeout", get_config("timeout", DEFAULT_TIMEOUT_SECONDS)),
        concurrency=_as_int("concurrency", get_config("concurrency", DEFAULT_CONCURRENCY), minimum=1),
        log_level=str(get_config("log_level", DEFAULT_LOG_LEVEL)).upper(),
        log_file=get_config("log_file"),
        log_format=str(get_config("log_format", DEFAULT_LOG_FORMAT)),
    )
    logger.debug(f"Configuration resolved: {config.redacted()}")
    return config
