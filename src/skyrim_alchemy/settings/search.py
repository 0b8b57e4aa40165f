"""
Potion search settings for skyrim_alchemy.
"""

from .types import ConfigError, SettingsSection

DEFAULT_WORKERS = 4
DEFAULT_CHUNK_SIZE = 20_000
DEFAULT_CACHE_CAPACITY = 500_000
DEFAULT_LIMIT = 20
DEFAULT_LANGUAGE = "english"


class SearchSettings(SettingsSection):
    """Manages settings of the potion search and plugin loading."""

    def _set_positive(self, key: str, name: str, value: int) -> None:
        if value <= 0:
            raise ConfigError(f"{name} must be positive, got {value}")
        self.settings.setValue(key, value)
        self.settings.sync()

    def _get_positive(self, key: str, default: int) -> int:
        value = self._get_int(key, default)
        return value if value > 0 else default

    @property
    def workers(self) -> int:
        """Number of worker threads for plugin loading and the search."""
        return self._get_positive("search/workers", DEFAULT_WORKERS)

    @workers.setter
    def workers(self, value: int) -> None:
        self._set_positive("search/workers", "workers", value)

    @property
    def chunk_size(self) -> int:
        """Combinations handed to a worker at a time."""
        return self._get_positive("search/chunk_size", DEFAULT_CHUNK_SIZE)

    @chunk_size.setter
    def chunk_size(self, value: int) -> None:
        self._set_positive("search/chunk_size", "chunk_size", value)

    @property
    def use_shared_effects_cache(self) -> bool:
        return self._get_bool("search/use_shared_effects_cache", True)

    @use_shared_effects_cache.setter
    def use_shared_effects_cache(self, value: bool) -> None:
        self.settings.setValue("search/use_shared_effects_cache", value)
        self.settings.sync()

    @property
    def cache_capacity(self) -> int:
        return self._get_positive("search/cache_capacity", DEFAULT_CACHE_CAPACITY)

    @cache_capacity.setter
    def cache_capacity(self, value: int) -> None:
        self._set_positive("search/cache_capacity", "cache_capacity", value)

    @property
    def default_limit(self) -> int:
        """Number of potions printed when no limit is given."""
        return self._get_positive("search/default_limit", DEFAULT_LIMIT)

    @default_limit.setter
    def default_limit(self, value: int) -> None:
        self._set_positive("search/default_limit", "default_limit", value)

    @property
    def language(self) -> str:
        """Language suffix of the strings files to read."""
        return self._get_str("search/language", DEFAULT_LANGUAGE) or DEFAULT_LANGUAGE

    @language.setter
    def language(self, value: str) -> None:
        if not value.strip():
            raise ConfigError("language must not be empty")
        self.settings.setValue("search/language", value.strip().lower())
        self.settings.sync()
