"""Configuration Management Package"""

import json
import logging
import re
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path
from typing import Optional

from lazycommit import COMMIT_STYLES

logger = logging.getLogger(__name__)

# Valid configuration values
VALID_PROVIDERS = {"auto", "claude", "openrouter", "groq", "ollama"}
VALID_STYLES = set(COMMIT_STYLES)
SECRET_KEYS = {"anthropic_api_key", "openrouter_api_key", "groq_api_key"}

_LOCALE_RE = re.compile(r'^[a-z_-]+$', re.IGNORECASE)


class ConfigError(Exception):
    """Raised when a configuration value cannot be used."""
    pass


@dataclass
class Config:
    """User configuration with sensible defaults."""
    provider: str = "auto"
    model: Optional[str] = None
    locale: str = "en"
    generate: int = 1
    max_length: int = 100
    style: str = "conventional"
    timeout: float = 10.0
    proxy: Optional[str] = None
    chunk_size: int = 6000
    large_diff_threshold: int = 50_000
    digest_max_files: int = 20
    exclude: list[str] = field(default_factory=list)
    commit_context: bool = True
    max_file_display: int = 8  # Max files shown before collapsing list
    anthropic_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}

    def validate(self) -> list[str]:
        """Validate config values and return list of warnings.

        Invalid values are replaced with defaults after warning.
        """
        warnings = []
        defaults = Config()

        for name in ("provider", "locale", "generate", "max_length", "style", "timeout", "proxy",
                     "chunk_size", "large_diff_threshold", "digest_max_files", "max_file_display"):
            problem = _check(name, getattr(self, name))
            if problem:
                default = getattr(defaults, name)
                warnings.append(f"Invalid {name} '{getattr(self, name)}' ({problem}), using {default!r}")
                setattr(self, name, default)

        if not isinstance(self.exclude, list) or not all(isinstance(p, str) for p in self.exclude):
            warnings.append(f"Invalid exclude '{self.exclude}' (must be a list of patterns), using []")
            self.exclude = []

        return warnings

    @classmethod
    def from_dict(cls, data: dict) -> 'Config':
        valid_keys = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        config = cls(**filtered)
        for warning in config.validate():
            logger.warning("Config warning: %s", warning)
        return config

    def set_values(self, pairs: list[str]) -> None:
        """Apply 'key=value' strings, raising ConfigError on the first bad one."""
        valid_keys = {f.name for f in fields(self)}
        for pair in pairs:
            key, sep, raw = pair.partition('=')
            key = key.strip()
            if not sep or key not in valid_keys:
                raise ConfigError(f"Invalid config property: {key or pair}")
            value = _coerce(key, raw.strip(), getattr(Config(), key))
            problem = _check(key, value)
            if problem:
                raise ConfigError(f"Invalid config property {key}: {problem}")
            setattr(self, key, value)


def _coerce(key: str, raw: str, default):
    if raw == "" and key not in ("locale", "style", "provider"):
        return None if default is None else default
    try:
        if isinstance(default, bool):
            if raw.lower() not in ("true", "false", "1", "0", "yes", "no"):
                raise ValueError(raw)
            return raw.lower() in ("true", "1", "yes")
        if isinstance(default, int):
            return int(raw)
        if isinstance(default, float):
            return float(raw)
        if isinstance(default, list):
            return [p.strip() for p in raw.split(',') if p.strip()]
    except ValueError:
        raise ConfigError(f"Invalid config property {key}: '{raw}' is not a valid {type(default).__name__}")
    return raw


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _check(name: str, value) -> str:
    """Return a description of what is wrong with value, or '' when it is fine."""
    if name == "provider" and value not in VALID_PROVIDERS:
        return f"must be one of: {', '.join(sorted(VALID_PROVIDERS))}"
    if name == "style" and value not in VALID_STYLES:
        return f"must be one of: {', '.join(COMMIT_STYLES)}"
    if name == "locale" and not (isinstance(value, str) and _LOCALE_RE.match(value)):
        return "must be a language code such as 'en' or 'pt-br'"
    if name == "generate" and not (_is_int(value) and 1 <= value <= 5):
        return "must be an integer from 1 to 5"
    if name == "max_length" and not (_is_int(value) and 20 <= value <= 200):
        return "must be an integer from 20 to 200"
    if name == "timeout" and not (isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0.5):
        return "must be at least 0.5 seconds"
    if name == "proxy" and value is not None and not (isinstance(value, str) and re.match(r'^https?://', value)):
        return "must be an http:// or https:// URL"
    if name == "chunk_size" and not (_is_int(value) and value >= 500):
        return "must be an integer of at least 500 tokens"
    if name in ("large_diff_threshold", "digest_max_files", "max_file_display") and not (_is_int(value) and value > 0):
        return "must be a positive integer"
    return ""


class ConfigManager:
    """Manages loading and saving configuration."""

    CONFIG_FILENAME = ".lazycommitrc"

    def __init__(self):
        self._config: Optional[Config] = None
        self._config_path: Optional[Path] = None

    def load(self) -> Config:
        if self._config is not None:
            return self._config

        local_path = Path.cwd() / self.CONFIG_FILENAME
        if local_path.exists():
            self._config = self._load_from_file(local_path)
            self._config_path = local_path
            return self._config

        home_path = Path.home() / self.CONFIG_FILENAME
        if home_path.exists():
            self._config = self._load_from_file(home_path)
            self._config_path = home_path
            return self._config

        self._config = Config()
        return self._config

    def load_global(self) -> Config:
        """The home config alone, ignoring any project file in the working directory."""
        home_path = Path.home() / self.CONFIG_FILENAME
        return self._load_from_file(home_path) if home_path.exists() else Config()

    def _load_from_file(self, path: Path) -> Config:
        try:
            with open(path, 'r') as f:
                data = json.load(f)
            if not isinstance(data, dict):
                raise ValueError("top level must be an object")
            return Config.from_dict(data)
        except (json.JSONDecodeError, ValueError, IOError) as e:
            logger.warning("Could not load %s: %s", path, e)
            return Config()

    def save(self, config: Config, global_config: bool = True) -> Path:
        path = Path.home() / self.CONFIG_FILENAME if global_config else Path.cwd() / self.CONFIG_FILENAME
        with open(path, 'w') as f:
            json.dump(config.to_dict(), f, indent=2)
        self._config = config
        self._config_path = path
        return path

    def get_config_path(self) -> Optional[Path]:
        return self._config_path


_manager = ConfigManager()


def load_config() -> Config:
    return _manager.load()


def load_global_config() -> Config:
    return _manager.load_global()


def save_config(config: Config, global_config: bool = True) -> Path:
    return _manager.save(config, global_config)


def get_config_path() -> Optional[Path]:
    return _manager.get_config_path()


__all__ = [
    "Config",
    "ConfigError",
    "ConfigManager",
    "load_config",
    "load_global_config",
    "save_config",
    "get_config_path",
    "VALID_PROVIDERS",
    "VALID_STYLES",
    "SECRET_KEYS",
]
