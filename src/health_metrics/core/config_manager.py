# ============================================================================
# src/health_metrics/core/config_manager.py
# ============================================================================
"""
Provider Configuration Manager

Two explicit configuration layers:
- Static: nested dict built from environment / .env (core/config.py)
- Override: flat dotted-key store in SQLite, read through a TTL cache

resolve() merges the two as a pure function. Whether the override layer
may supersede static values is itself static configuration: it applies
only when runtime config is enabled and HEALTH_METRICS_ENV_OVERRIDE is off,
so a deploy-time value always wins otherwise.

Override keys:
    primary_provider, secondary_provider, fallback_enabled,
    stop_on_first_success       -> top-level values
    providers.<name>            -> dict merged key by key into that provider
    providers.<name>.<field>    -> single provider field
"""

import copy
import json
import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from ..utils.cache import TTLCache
from ..utils.exceptions import CacheError, ConfigurationError
from .config import RUNTIME_CONFIG_TABLE, get_static_config


OVERRIDABLE_KEYS = (
    'primary_provider',
    'secondary_provider',
    'fallback_enabled',
    'stop_on_first_success',
)

# Fields an operator may change at runtime; credentials stay in the environment
UPDATABLE_PROVIDER_FIELDS = ('enabled', 'model', 'base_url', 'timeout', 'max_retries', 'priority')

# (min, max) inclusive
PROVIDER_FIELD_LIMITS = {
    'timeout': (5, 300),
    'max_retries': (1, 10),
    'priority': (1, 10),
}

# Providers that cannot run without an explicit endpoint
_BASE_URL_REQUIRED = ('deepseek', 'claude')

_KNOWN_FIELDS = ('enabled', 'priority', 'api_key', 'base_url', 'model', 'timeout', 'max_retries')


@dataclass(frozen=True)
class ProviderConfig:
    name: str
    enabled: bool = False
    priority: int = 99
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: Optional[str] = None
    timeout: int = 30
    max_retries: int = 3
    extra: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "ProviderConfig":
        return cls(
            name=name,
            enabled=bool(data.get('enabled', False)),
            priority=int(data.get('priority') if data.get('priority') is not None else 99),
            api_key=data.get('api_key') or None,
            base_url=data.get('base_url') or None,
            model=data.get('model') or None,
            timeout=int(data.get('timeout') or 30),
            max_retries=int(data.get('max_retries') or 3),
            extra={k: v for k, v in data.items() if k not in _KNOWN_FIELDS},
        )

    def is_configured(self) -> bool:
        """Credentials and endpoint present (enabled flag not considered)."""
        if not self.api_key or not self.model:
            return False
        if self.name in _BASE_URL_REQUIRED and not self.base_url:
            return False
        return True

    def is_available(self) -> bool:
        return self.enabled and self.is_configured()

    def to_dict(self, include_secrets: bool = False) -> Dict[str, Any]:
        data = {
            'name': self.name,
            'enabled': self.enabled,
            'priority': self.priority,
            'base_url': self.base_url,
            'model': self.model,
            'timeout': self.timeout,
            'max_retries': self.max_retries,
            'has_api_key': bool(self.api_key),
        }
        if include_secrets:
            data['api_key'] = self.api_key
        data.update(self.extra)
        return data


def resolve(
    static: Mapping[str, Any],
    override: Mapping[str, Any],
    override_enabled: bool,
) -> Dict[str, Any]:
    """
    Merge the override layer over the static layer.

    Pure: neither input is mutated and no cache or database is touched.
    Override keys for unknown providers or non-overridable settings are
    ignored.
    """
    effective = copy.deepcopy(dict(static))
    if not override_enabled or not override:
        return effective

    providers = effective.setdefault('providers', {})

    # Whole-provider dicts first so single-field keys refine them
    for key in sorted(override, key=lambda k: k.count('.')):
        value = copy.deepcopy(override[key])
        parts = key.split('.')

        if parts[0] == 'providers':
            if len(parts) < 2 or parts[1] not in providers:
                continue
            target = providers[parts[1]]
            if len(parts) == 2 and isinstance(value, dict):
                target.update(value)
            elif len(parts) == 3:
                target[parts[2]] = value
        elif len(parts) == 1 and key in OVERRIDABLE_KEYS:
            effective[key] = value

    return effective


class OverrideStore:
    """
    Runtime configuration overrides persisted in SQLite.

    Rows are (key, JSON value, updated_at). Reads go through a TTL cache;
    writes upsert by key and invalidate the cache of this process.
    """

    CACHE_KEY = f"{RUNTIME_CONFIG_TABLE}:runtime_config"

    def __init__(
        self,
        db_path: Any = ":memory:",
        cache_ttl: int = 3600,
        table: str = RUNTIME_CONFIG_TABLE,
        cache: Optional[TTLCache] = None,
    ):
        self.db_path = str(db_path)
        self.cache_ttl = cache_ttl
        self.table = table
        self.cache = cache if cache is not None else TTLCache(max_size=16, default_ttl=cache_ttl)
        self.logger = logging.getLogger(self.__class__.__name__)

        self._lock = threading.Lock()
        self._conn = self._connect()
        self._init_database()

    def _connect(self) -> sqlite3.Connection:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(self.db_path, check_same_thread=False)

    def _init_database(self):
        """Create override table if not exists"""
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute(f"""
                CREATE TABLE IF NOT EXISTS {self.table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._conn.commit()

        self.logger.debug(f"Override store initialized: {self.db_path} ({self.table})")

    def load(self) -> Dict[str, Any]:
        """All overrides as a flat dict; a read failure yields no overrides."""
        cached = self.cache.get(self.CACHE_KEY)
        if cached is not None:
            return dict(cached)

        try:
            with self._lock:
                cursor = self._conn.cursor()
                cursor.execute(f"SELECT key, value FROM {self.table}")
                rows = cursor.fetchall()
        except sqlite3.Error as e:
            self.logger.warning(f"Failed to load runtime config from database: {e}")
            return {}

        overrides = {}
        for key, raw in rows:
            try:
                overrides[key] = json.loads(raw)
            except (TypeError, ValueError):
                overrides[key] = raw

        self.cache.set(self.CACHE_KEY, overrides, ttl=self.cache_ttl)
        return dict(overrides)

    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def set(self, key: str, value: Any) -> None:
        updated_at = datetime.now(timezone.utc).isoformat()
        try:
            with self._lock:
                cursor = self._conn.cursor()
                cursor.execute(
                    f"""
                    INSERT INTO {self.table} (key, value, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        updated_at = excluded.updated_at
                    """,
                    (key, json.dumps(value), updated_at),
                )
                self._conn.commit()
        except sqlite3.Error as e:
            self.logger.error(f"Failed to save runtime config key '{key}': {e}")
            raise CacheError(f"Failed to save runtime config key '{key}'") from e
        finally:
            self.cache.delete(self.CACHE_KEY)

    def clear(self) -> None:
        try:
            with self._lock:
                self._conn.execute(f"DELETE FROM {self.table}")
                self._conn.commit()
        except sqlite3.Error as e:
            self.logger.error(f"Failed to clear runtime config: {e}")
            raise CacheError("Failed to clear runtime config") from e
        finally:
            self.cache.delete(self.CACHE_KEY)

    def last_updated(self) -> Optional[str]:
        try:
            with self._lock:
                cursor = self._conn.cursor()
                cursor.execute(f"SELECT MAX(updated_at) FROM {self.table}")
                row = cursor.fetchone()
        except sqlite3.Error as e:
            self.logger.warning(f"Failed to read last config update: {e}")
            return None
        return row[0] if row else None

    def close(self):
        with self._lock:
            self._conn.close()


class ConfigManager:
    """
    Picks the active providers and their order.

    Construct with an explicit static dict and override store for tests;
    defaults come from the environment.
    """

    def __init__(
        self,
        static: Optional[Dict[str, Any]] = None,
        store: Optional[OverrideStore] = None,
    ):
        self.static = static if static is not None else get_static_config()
        self.logger = logging.getLogger(self.__class__.__name__)

        runtime = self.static.get('runtime_config', {})
        if store is None and runtime.get('enabled', True):
            store = OverrideStore(
                db_path=runtime.get('db_path', ':memory:'),
                cache_ttl=runtime.get('cache_ttl', 3600),
                table=runtime.get('table', RUNTIME_CONFIG_TABLE),
            )
        self.store = store

    # ------------------------------------------------------------------
    # Layer resolution
    # ------------------------------------------------------------------

    @property
    def runtime_config_enabled(self) -> bool:
        return bool(self.static.get('runtime_config', {}).get('enabled', True)) and self.store is not None

    @property
    def env_override(self) -> bool:
        return bool(self.static.get('runtime_config', {}).get('env_override', True))

    @property
    def override_enabled(self) -> bool:
        return self.runtime_config_enabled and not self.env_override

    def effective_config(self) -> Dict[str, Any]:
        overrides = self.store.load() if self.runtime_config_enabled else {}
        return resolve(self.static, overrides, self.override_enabled)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def provider_names(self) -> List[str]:
        return list(self.static.get('providers', {}))

    def validate_provider(self, name: str) -> str:
        if name not in self.static.get('providers', {}):
            raise ConfigurationError(f"Unknown provider: {name}")
        return name

    def primary_provider(self) -> str:
        value = self.effective_config().get('primary_provider') or 'deepseek'
        return str(value).strip().lower()

    def secondary_provider(self) -> Optional[str]:
        value = self.effective_config().get('secondary_provider')
        if not value or not str(value).strip():
            return None
        return str(value).strip().lower()

    def is_fallback_enabled(self) -> bool:
        return bool(self.effective_config().get('fallback_enabled', True))

    def stop_on_first_success(self) -> bool:
        return bool(self.effective_config().get('stop_on_first_success', True))

    def provider_config(self, name: str) -> ProviderConfig:
        self.validate_provider(name)
        providers = self.effective_config()['providers']
        return ProviderConfig.from_dict(name, providers[name])

    def provider_configs(self) -> Dict[str, ProviderConfig]:
        providers = self.effective_config().get('providers', {})
        return {name: ProviderConfig.from_dict(name, data) for name, data in providers.items()}

    def is_provider_configured(self, name: str) -> bool:
        return self.provider_config(name).is_configured()

    def available_providers(self) -> List[str]:
        """Enabled and configured providers by ascending priority, name breaks ties."""
        configs = [config for config in self.provider_configs().values() if config.is_available()]
        configs.sort(key=lambda config: (config.priority, config.name))
        return [config.name for config in configs]

    def ordered_providers(self) -> List[str]:
        """Primary first, secondary second if distinct, then the rest by priority."""
        remaining = self.available_providers()
        primary = self.primary_provider()
        secondary = self.secondary_provider()

        ordered = []
        if primary in remaining:
            ordered.append(primary)
            remaining.remove(primary)
        if secondary and secondary in remaining:
            ordered.append(secondary)
            remaining.remove(secondary)

        return ordered + remaining

    def performance_settings(self) -> Dict[str, Any]:
        return dict(self.static.get('performance', {}))

    def limits(self) -> Dict[str, Any]:
        return dict(self.static.get('limits', {}))

    def last_config_update(self) -> Optional[str]:
        if not self.runtime_config_enabled:
            return None
        return self.store.last_updated()

    def configuration_summary(self) -> Dict[str, Any]:
        configs = self.provider_configs()
        available = self.available_providers()

        return {
            'primary_provider': self.primary_provider(),
            'secondary_provider': self.secondary_provider(),
            'fallback_enabled': self.is_fallback_enabled(),
            'stop_on_first_success': self.stop_on_first_success(),
            'available_providers': available,
            'ordered_providers': self.ordered_providers(),
            'provider_count': len(available),
            'configuration_source': 'ENV File' if not self.override_enabled else 'Database',
            'env_override_enabled': self.env_override,
            'runtime_config_enabled': self.runtime_config_enabled,
            'provider_details': {
                name: {
                    'enabled': config.enabled,
                    'configured': config.is_configured(),
                    'priority': config.priority,
                    'model': config.model or 'unknown',
                    'has_api_key': bool(config.api_key),
                    'timeout': config.timeout,
                    'max_retries': config.max_retries,
                }
                for name, config in configs.items()
            },
            'last_updated': self.last_config_update(),
        }

    # ------------------------------------------------------------------
    # Admin operations (write to the override store)
    # ------------------------------------------------------------------

    def _write(self, key: str, value: Any) -> bool:
        if not self.runtime_config_enabled:
            self.logger.warning(f"Runtime config disabled, ignoring update of '{key}'")
            return False

        self.store.set(key, value)
        if not self.override_enabled:
            self.logger.info(
                f"Stored override '{key}'; environment values take precedence "
                f"while HEALTH_METRICS_ENV_OVERRIDE is on"
            )
        return True

    def set_primary_provider(self, name: str) -> bool:
        name = self.validate_provider(name.strip().lower())
        previous = self.primary_provider()
        written = self._write('primary_provider', name)
        self.logger.info(f"Primary provider changed: {previous} -> {name}")
        return written

    def set_secondary_provider(self, name: Optional[str]) -> bool:
        if name:
            name = self.validate_provider(name.strip().lower())
        written = self._write('secondary_provider', name or None)
        self.logger.info(f"Secondary provider set to: {name or 'none'}")
        return written

    def set_fallback_enabled(self, enabled: bool) -> bool:
        written = self._write('fallback_enabled', bool(enabled))
        self.logger.info(f"Fallback {'enabled' if enabled else 'disabled'}")
        return written

    def set_stop_on_first_success(self, enabled: bool) -> bool:
        written = self._write('stop_on_first_success', bool(enabled))
        self.logger.info(f"Stop on first success {'enabled' if enabled else 'disabled'}")
        return written

    def set_provider_enabled(self, name: str, enabled: bool) -> bool:
        return self.update_provider_config(name, {'enabled': bool(enabled)})

    def update_provider_config(self, name: str, updates: Mapping[str, Any]) -> bool:
        """
        Merge field updates into the provider's override entry.

        Raises:
            ConfigurationError: unknown provider, unknown field or value
                out of range
        """
        self.validate_provider(name)
        clean = self._validate_provider_updates(updates)

        key = f"providers.{name}"
        current = {}
        if self.runtime_config_enabled:
            current = self.store.get(key) or {}
        current.update(clean)

        written = self._write(key, current)
        self.logger.info(f"Provider {name} configuration updated: {sorted(clean)}")
        return written

    def _validate_provider_updates(self, updates: Mapping[str, Any]) -> Dict[str, Any]:
        unknown = [key for key in updates if key not in UPDATABLE_PROVIDER_FIELDS]
        if unknown:
            raise ConfigurationError(f"Unsupported provider fields: {', '.join(sorted(unknown))}")

        clean: Dict[str, Any] = {}
        for key, value in updates.items():
            if key == 'enabled':
                if not isinstance(value, bool):
                    raise ConfigurationError("'enabled' must be a boolean")
                clean[key] = value
            elif key in PROVIDER_FIELD_LIMITS:
                low, high = PROVIDER_FIELD_LIMITS[key]
                if isinstance(value, bool) or not isinstance(value, int) or not low <= value <= high:
                    raise ConfigurationError(f"'{key}' must be an integer between {low} and {high}")
                clean[key] = value
            else:
                if not isinstance(value, str) or not value.strip():
                    raise ConfigurationError(f"'{key}' must be a non-empty string")
                clean[key] = value.strip()
        return clean

    def reset_to_defaults(self) -> None:
        if self.runtime_config_enabled:
            self.store.clear()
        self.logger.warning("Health metrics configuration reset to defaults")
