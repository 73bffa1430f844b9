"""Secret Resolution - Look up API keys through an ordered list of backends."""

import logging
import os
from abc import ABC, abstractmethod
from typing import Mapping, Optional

from lazycommit.config import Config

logger = logging.getLogger(__name__)


class SecretBackend(ABC):
    """One place an API key can live."""

    name = ""

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        pass


class EnvBackend(SecretBackend):
    """Environment variables, e.g. ANTHROPIC_API_KEY."""

    name = "env"

    def __init__(self, environ: Mapping[str, str] | None = None):
        self.environ = os.environ if environ is None else environ

    def is_available(self) -> bool:
        return True

    def get(self, key: str) -> Optional[str]:
        return self.environ.get(key) or None


class ConfigBackend(SecretBackend):
    """Keys saved in .lazycommitrc, e.g. anthropic_api_key."""

    name = "config"

    def __init__(self, config: Config):
        self.config = config

    def is_available(self) -> bool:
        return True

    def get(self, key: str) -> Optional[str]:
        return getattr(self.config, key.lower(), None) or None


class SecretResolver:
    """Tries each available backend in order until one holds the key."""

    def __init__(self, backends: list[SecretBackend]):
        self.backends = backends

    def get(self, key: str) -> Optional[str]:
        for backend in self.backends:
            if not backend.is_available():
                continue
            value = backend.get(key)
            if value:
                logger.debug("Resolved %s from %s backend", key, backend.name)
                return value
        return None

    def source_of(self, key: str) -> Optional[str]:
        """Name of the backend that would supply key, for --display-config."""
        for backend in self.backends:
            if backend.is_available() and backend.get(key):
                return backend.name
        return None


def default_resolver(config: Config, environ: Mapping[str, str] | None = None) -> SecretResolver:
    return SecretResolver([EnvBackend(environ), ConfigBackend(config)])
