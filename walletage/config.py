"""
Config loading for walletage.

Sources (in precedence order, highest first):
  1. Environment variables (WALLETAGE_*)
  2. ~/.walletage/config.toml
  3. Built-in defaults

Explorer API keys are resolved separately, per call, through a KeyProvider.
ETHERSCAN_API_KEY / BASESCAN_API_KEY in the environment win over the keys
stored in the config file.

Usage:
    from walletage.config import load_config
    config = load_config()
    print(config.render.template_path)
"""

from __future__ import annotations

import copy
import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping, Protocol, runtime_checkable

import toml

from walletage.exceptions import ConfigInvalidError

# Default config directory and file
DEFAULT_CONFIG_DIR = Path.home() / ".walletage"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"

# Environment variable → config key mapping
# Format: (env_var_name, dotted_config_path, type_converter)
_ENV_OVERRIDES: list[tuple[str, str, type]] = [
    ("WALLETAGE_DEFAULT_CHAIN", "network.default_chain", str),
    ("WALLETAGE_TEMPLATE_PATH", "render.template_path", str),
    ("WALLETAGE_FONT_PATH", "render.font_path", str),
    ("WALLETAGE_FONT_SIZE", "render.font_size", int),
    ("WALLETAGE_CACHE_MAX_AGE", "render.cache_max_age", int),
    ("WALLETAGE_OUTPUT_FORMAT", "output.default_format", str),
    ("WALLETAGE_LOG_LEVEL", "logging.level", str),
    ("WALLETAGE_LOG_FORMAT", "logging.format", str),
]

# Explorer key env var per chain
API_KEY_ENV_VARS: dict[str, str] = {
    "ethereum": "ETHERSCAN_API_KEY",
    "base": "BASESCAN_API_KEY",
}

VALID_FORMATS = {"json", "table"}
VALID_LOG_FORMATS = {"console", "json"}
VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
VALID_CHAINS = {"ethereum", "base"}


@dataclass
class APIConfig:
    """Explorer API keys (fallback when the environment has none)."""

    etherscan_api_key: str = ""
    basescan_api_key: str = ""


@dataclass
class NetworkConfigSection:
    """Which chain single-chain lookups use when none is given."""

    default_chain: str = "ethereum"


@dataclass
class RenderConfig:
    """Card rendering settings."""

    template_path: str = str(DEFAULT_CONFIG_DIR / "template.png")
    font_path: str = ""             # empty = Pillow's bundled font
    font_size: int = 100
    cache_max_age: int = 300        # seconds, for the Cache-Control directive


@dataclass
class OutputConfig:
    """Output formatting defaults."""

    default_format: str = "json"    # json | table
    color: bool = True


@dataclass
class LoggingConfig:
    """structlog settings."""

    level: str = "WARNING"
    format: str = "console"         # console | json


@dataclass
class WalletAgeConfig:
    """Full configuration object. Passed via Click context to all commands."""

    api: APIConfig = field(default_factory=APIConfig)
    network: NetworkConfigSection = field(default_factory=NetworkConfigSection)
    render: RenderConfig = field(default_factory=RenderConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# ──────────────────────────────────────────────────────────────
# API key providers
# ──────────────────────────────────────────────────────────────


@runtime_checkable
class KeyProvider(Protocol):
    """Source of explorer API keys, consulted every time a network is resolved."""

    def get_api_key(self, chain: str) -> str:
        """Return the API key for `chain`, or "" if none is configured."""
        ...


class EnvKeyProvider:
    """
    Reads ETHERSCAN_API_KEY / BASESCAN_API_KEY from the process environment.

    The environment is read on every call, never cached. Keys from the config
    file are used only when the variable is unset.
    """

    def __init__(self, fallback: APIConfig | None = None) -> None:
        self._fallback = fallback or APIConfig()

    def get_api_key(self, chain: str) -> str:
        env_var = API_KEY_ENV_VARS.get(chain)
        if env_var is None:
            return ""
        value = os.environ.get(env_var)
        if value is not None:
            return value
        if chain == "ethereum":
            return self._fallback.etherscan_api_key
        return self._fallback.basescan_api_key


class StaticKeyProvider:
    """Fixed chain → key mapping."""

    def __init__(self, keys: Mapping[str, str] | None = None) -> None:
        self._keys = dict(keys or {})

    def get_api_key(self, chain: str) -> str:
        return self._keys.get(chain, "")


# ──────────────────────────────────────────────────────────────
# Load / save
# ──────────────────────────────────────────────────────────────


def load_config(path: str | None = None) -> WalletAgeConfig:
    """
    Load configuration from TOML file + environment variable overrides.

    Args:
        path: Override config file path. If None, uses WALLETAGE_CONFIG_PATH
              env var or default (~/.walletage/config.toml).

    Returns:
        WalletAgeConfig with all values resolved.

    Raises:
        ConfigInvalidError: Config file exists but is invalid TOML or values.
    """
    config_path = _resolve_config_path(path)

    raw: dict = {}
    if config_path.exists():
        try:
            raw = toml.load(str(config_path))
        except toml.TomlDecodeError as e:
            raise ConfigInvalidError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        config = _dict_to_config(raw)
    except (ValueError, TypeError) as e:
        raise ConfigInvalidError(f"Invalid value in {config_path}: {e}") from e
    _apply_env_overrides(config)
    _validate_config(config)

    return config


def save_config(config: WalletAgeConfig, path: str | None = None) -> Path:
    """
    Serialize WalletAgeConfig to TOML and write to disk.

    Returns the path where config was written.
    """
    config_path = _resolve_config_path(path)
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "api": {
            "etherscan_api_key": config.api.etherscan_api_key,
            "basescan_api_key": config.api.basescan_api_key,
        },
        "network": {
            "default_chain": config.network.default_chain,
        },
        "render": {
            "template_path": config.render.template_path,
            "font_path": config.render.font_path,
            "font_size": config.render.font_size,
            "cache_max_age": config.render.cache_max_age,
        },
        "output": {
            "default_format": config.output.default_format,
            "color": config.output.color,
        },
        "logging": {
            "level": config.logging.level,
            "format": config.logging.format,
        },
    }

    with open(config_path, "w") as f:
        toml.dump(data, f)

    return config_path


def get_default_config_path() -> Path:
    """Return the default config file path."""
    return DEFAULT_CONFIG_PATH


def set_config_value(config: WalletAgeConfig, section_name: str, field_name: str, value: str) -> Any:
    """
    Coerce `value` to the field's type and store it on `config`.

    The result is validated before anything is written back, so a rejected
    value leaves `config` untouched. Returns the stored value.

    Raises:
        ConfigInvalidError: unknown key, uncoercible value or a value that
        fails validation.
    """
    key = f"{section_name}.{field_name}"
    section = getattr(config, section_name, None) if section_name in _field_names(config) else None
    if section is None or field_name not in _field_names(section):
        raise ConfigInvalidError(f"Unknown config key: {key!r}")

    current = getattr(section, field_name)
    if isinstance(current, bool):
        typed: Any = value.strip().lower() in ("1", "true", "yes")
    elif isinstance(current, int):
        try:
            typed = int(value)
        except ValueError as e:
            raise ConfigInvalidError(f"{key} must be an integer, got {value!r}") from e
    elif key == "network.default_chain":
        typed = value.strip().lower()
    elif key == "logging.level":
        typed = value.strip().upper()
    else:
        typed = value

    candidate = copy.deepcopy(config)
    setattr(getattr(candidate, section_name), field_name, typed)
    _validate_config(candidate)

    setattr(section, field_name, typed)
    return typed


# ──────────────────────────────────────────────────────────────
# Private helpers
# ──────────────────────────────────────────────────────────────


def _field_names(obj: Any) -> set[str]:
    return {f.name for f in fields(obj)}


def _resolve_config_path(path: str | None) -> Path:
    if path:
        return Path(path).expanduser()
    env_path = os.environ.get("WALLETAGE_CONFIG_PATH")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH


def _dict_to_config(raw: dict) -> WalletAgeConfig:
    """Build WalletAgeConfig from raw TOML dict, applying defaults for missing keys."""
    config = WalletAgeConfig()

    api = raw.get("api", {})
    config.api.etherscan_api_key = api.get("etherscan_api_key", "")
    config.api.basescan_api_key = api.get("basescan_api_key", "")

    network = raw.get("network", {})
    config.network.default_chain = str(network.get("default_chain", "ethereum")).lower()

    render = raw.get("render", {})
    config.render.template_path = render.get(
        "template_path", str(DEFAULT_CONFIG_DIR / "template.png")
    )
    config.render.font_path = render.get("font_path", "")
    config.render.font_size = int(render.get("font_size", 100))
    config.render.cache_max_age = int(render.get("cache_max_age", 300))

    output = raw.get("output", {})
    config.output.default_format = output.get("default_format", "json")
    config.output.color = bool(output.get("color", True))

    logging_section = raw.get("logging", {})
    config.logging.level = str(logging_section.get("level", "WARNING")).upper()
    config.logging.format = logging_section.get("format", "console")

    return config


def _apply_env_overrides(config: WalletAgeConfig) -> None:
    """Apply environment variable overrides to a loaded config."""
    if os.environ.get("WALLETAGE_NO_COLOR"):
        config.output.color = False

    for env_var, dotted_key, converter in _ENV_OVERRIDES:
        val = os.environ.get(env_var)
        if val is None:
            continue
        section, key = dotted_key.split(".", 1)
        section_obj = getattr(config, section)
        try:
            setattr(section_obj, key, converter(val))
        except (ValueError, TypeError) as e:
            raise ConfigInvalidError(
                f"Invalid value for {env_var}={val!r}: {e}"
            ) from e

    config.network.default_chain = config.network.default_chain.lower()
    config.logging.level = config.logging.level.upper()


def _validate_config(config: WalletAgeConfig) -> None:
    """Validate config values. Raises ConfigInvalidError on invalid values."""
    if config.network.default_chain not in VALID_CHAINS:
        raise ConfigInvalidError(
            f"network.default_chain must be one of {sorted(VALID_CHAINS)}, "
            f"got {config.network.default_chain!r}"
        )
    if config.output.default_format not in VALID_FORMATS:
        raise ConfigInvalidError(
            f"output.default_format must be one of {sorted(VALID_FORMATS)}, "
            f"got {config.output.default_format!r}"
        )
    if config.render.font_size <= 0:
        raise ConfigInvalidError(
            f"render.font_size must be positive, got {config.render.font_size}"
        )
    if config.render.cache_max_age < 0:
        raise ConfigInvalidError(
            f"render.cache_max_age must be non-negative, got {config.render.cache_max_age}"
        )
    if config.logging.level not in VALID_LOG_LEVELS:
        raise ConfigInvalidError(
            f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, "
            f"got {config.logging.level!r}"
        )
    if config.logging.format not in VALID_LOG_FORMATS:
        raise ConfigInvalidError(
            f"logging.format must be one of {sorted(VALID_LOG_FORMATS)}, "
            f"got {config.logging.format!r}"
        )
