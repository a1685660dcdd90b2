# ============================================================================
# FILE: tests/unit/test_config_manager.py
# ============================================================================
"""
Unit tests for static configuration, override store and ConfigManager
"""

import copy
from datetime import datetime, timedelta

import pytest

from src.health_metrics.config.extraction_config import ExtractionSettings
from src.health_metrics.config.providers_config import (
    ClaudeSettings,
    DeepSeekSettings,
    OpenAISettings,
)
from src.health_metrics.core.config import build_static_config
from src.health_metrics.core.config_manager import (
    ConfigManager,
    OverrideStore,
    ProviderConfig,
    resolve,
)
from src.health_metrics.utils.cache import TTLCache
from src.health_metrics.utils.exceptions import ConfigurationError


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 15, 10, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += timedelta(seconds=seconds)


# ============================================================================
# STATIC LAYER
# ============================================================================

class TestBuildStaticConfig:

    def _build(self, **extraction):
        return build_static_config(
            ExtractionSettings(**extraction),
            DeepSeekSettings(DEEPSEEK_API_KEY="", DEEPSEEK_PRIORITY=1),
            ClaudeSettings(CLAUDE_API_KEY="claude-key", CLAUDE_ANTHROPIC_VERSION="2023-06-01"),
            OpenAISettings(OPENAI_API_KEY="openai-key", OPENAI_BASE_URL="  "),
        )

    def test_provider_names_normalized(self):
        static = self._build(PRIMARY_AI_PROVIDER=" Claude ", SECONDARY_AI_PROVIDER="")

        assert static['primary_provider'] == 'claude'
        assert static['secondary_provider'] is None

    def test_blank_values_become_none(self):
        static = self._build(PRIMARY_AI_PROVIDER="deepseek", SECONDARY_AI_PROVIDER="OpenAI")

        assert static['secondary_provider'] == 'openai'
        assert static['providers']['deepseek']['api_key'] is None
        assert static['providers']['openai']['base_url'] is None
        assert static['providers']['claude']['anthropic_version'] == '2023-06-01'

    def test_runtime_and_limits_sections(self):
        static = self._build(
            HEALTH_METRICS_ENV_OVERRIDE=False,
            HEALTH_METRICS_CONFIG_CACHE_TTL=120,
            HEALTH_METRICS_MAX_TEXT_LENGTH=5000,
        )

        assert static['runtime_config']['env_override'] is False
        assert static['runtime_config']['cache_ttl'] == 120
        assert static['runtime_config']['table'] == 'health_metrics_config'
        assert static['limits']['max_text_length'] == 5000


class TestProviderConfig:

    def test_from_dict_keeps_unknown_keys_as_extra(self, static_config):
        config = ProviderConfig.from_dict('claude', static_config['providers']['claude'])

        assert config.extra == {'anthropic_version': '2023-06-01'}
        assert config.priority == 2

    def test_from_dict_defaults(self):
        config = ProviderConfig.from_dict('openai', {'priority': None, 'api_key': ''})

        assert config.enabled is False
        assert config.priority == 99
        assert config.api_key is None
        assert config.timeout == 30
        assert config.max_retries == 3

    @pytest.mark.parametrize("name,data,expected", [
        ('openai', {'api_key': 'k', 'model': 'gpt-4'}, True),
        ('deepseek', {'api_key': 'k', 'model': 'deepseek-chat'}, False),
        ('deepseek', {'api_key': 'k', 'model': 'deepseek-chat', 'base_url': 'https://x'}, True),
        ('claude', {'model': 'claude-3', 'base_url': 'https://x'}, False),
        ('claude', {'api_key': 'k', 'base_url': 'https://x'}, False),
    ])
    def test_is_configured(self, name, data, expected):
        assert ProviderConfig.from_dict(name, data).is_configured() is expected

    def test_available_requires_enabled(self):
        config = ProviderConfig.from_dict('openai', {'api_key': 'k', 'model': 'gpt-4', 'enabled': False})
        assert config.is_configured() is True
        assert config.is_available() is False

    def test_to_dict_hides_api_key(self, static_config):
        data = ProviderConfig.from_dict('claude', static_config['providers']['claude']).to_dict()

        assert 'api_key' not in data
        assert data['has_api_key'] is True
        assert data['anthropic_version'] == '2023-06-01'


# ============================================================================
# RESOLUTION
# ============================================================================

class TestResolve:

    def test_override_merge(self, static_config):
        before = copy.deepcopy(static_config)
        override = {
            'primary_provider': 'claude',
            'providers.claude.timeout': 60,
            'providers.claude': {'model': 'claude-3-opus', 'timeout': 45},
            'providers.gemini.model': 'gemini-pro',
            'bogus_setting': True,
        }

        effective = resolve(static_config, override, override_enabled=True)

        assert effective['primary_provider'] == 'claude'
        assert effective['providers']['claude']['model'] == 'claude-3-opus'
        # Single-field keys refine whole-provider dicts
        assert effective['providers']['claude']['timeout'] == 60
        assert 'gemini' not in effective['providers']
        assert 'bogus_setting' not in effective
        assert static_config == before

    def test_override_disabled(self, static_config):
        effective = resolve(static_config, {'primary_provider': 'openai'}, override_enabled=False)
        assert effective == static_config
        assert effective is not static_config

    def test_pure(self, static_config):
        override = {'providers.openai': {'timeout': 90}}
        first = resolve(static_config, override, True)
        second = resolve(static_config, override, True)

        assert first == second
        assert override == {'providers.openai': {'timeout': 90}}


# ============================================================================
# OVERRIDE STORE
# ============================================================================

class TestOverrideStore:

    def test_set_and_get(self, override_store):
        override_store.set('providers.claude', {'timeout': 60})
        override_store.set('fallback_enabled', False)

        assert override_store.get('providers.claude') == {'timeout': 60}
        assert override_store.get('fallback_enabled') is False
        assert override_store.get('missing', 'default') == 'default'
        assert override_store.last_updated() is not None

    def test_upsert(self, override_store):
        override_store.set('primary_provider', 'claude')
        override_store.set('primary_provider', 'openai')
        assert override_store.load() == {'primary_provider': 'openai'}

    def test_clear(self, override_store):
        override_store.set('primary_provider', 'claude')
        override_store.clear()

        assert override_store.load() == {}
        assert override_store.last_updated() is None

    def test_empty_injected_cache_is_used(self):
        cache = TTLCache(max_size=16, default_ttl=60)
        store = OverrideStore(db_path=":memory:", cache=cache)

        try:
            assert store.cache is cache
            store.set('primary_provider', 'claude')
            assert store.get('primary_provider') == 'claude'
            assert len(cache) == 1
        finally:
            store.close()

    def test_cached_snapshot_goes_stale_until_ttl(self, tmp_path):
        db_path = tmp_path / "config.db"
        clock = FakeClock()
        writer = OverrideStore(db_path=db_path, cache_ttl=60)
        reader = OverrideStore(
            db_path=db_path,
            cache_ttl=60,
            cache=TTLCache(max_size=16, default_ttl=60, clock=clock),
        )

        try:
            assert reader.get('primary_provider') is None
            writer.set('primary_provider', 'claude')

            # Other processes keep their cached snapshot until it expires
            assert reader.get('primary_provider') is None

            clock.advance(61)
            assert reader.get('primary_provider') == 'claude'
        finally:
            writer.close()
            reader.close()


# ============================================================================
# CONFIG MANAGER
# ============================================================================

class TestQueries:

    def test_defaults(self, config_manager):
        assert config_manager.primary_provider() == 'deepseek'
        assert config_manager.secondary_provider() == 'claude'
        assert config_manager.is_fallback_enabled() is True
        assert config_manager.stop_on_first_success() is True
        assert config_manager.override_enabled is True

    def test_ordered_providers(self, config_manager):
        assert config_manager.ordered_providers() == ['deepseek', 'claude', 'openai']

    def test_primary_and_secondary_reorder(self, config_manager):
        config_manager.set_primary_provider('openai')
        assert config_manager.ordered_providers() == ['openai', 'claude', 'deepseek']

        config_manager.set_secondary_provider('deepseek')
        assert config_manager.ordered_providers() == ['openai', 'deepseek', 'claude']

    def test_secondary_equal_to_primary(self, config_manager):
        config_manager.set_primary_provider('claude')
        config_manager.set_secondary_provider('claude')

        assert config_manager.ordered_providers() == ['claude', 'deepseek', 'openai']

    def test_unavailable_providers_excluded(self, static_config, override_store):
        static_config['providers']['claude']['api_key'] = None
        static_config['providers']['openai']['enabled'] = False
        manager = ConfigManager(static=static_config, store=override_store)

        assert manager.ordered_providers() == ['deepseek']
        assert manager.is_provider_configured('openai') is True
        assert manager.is_provider_configured('claude') is False

    def test_priority_tie_broken_by_name(self, static_config, override_store):
        static_config['primary_provider'] = 'gemini'
        static_config['secondary_provider'] = None
        for provider in static_config['providers'].values():
            provider['priority'] = 5
        manager = ConfigManager(static=static_config, store=override_store)

        assert manager.ordered_providers() == ['claude', 'deepseek', 'openai']

    def test_unknown_provider(self, config_manager):
        with pytest.raises(ConfigurationError) as exc_info:
            config_manager.provider_config('gemini')
        assert "Unknown provider: gemini" in str(exc_info.value)

        with pytest.raises(ConfigurationError):
            config_manager.set_primary_provider('gemini')

    def test_configuration_summary(self, config_manager):
        summary = config_manager.configuration_summary()

        assert summary['configuration_source'] == 'Database'
        assert summary['provider_count'] == 3
        assert summary['ordered_providers'] == ['deepseek', 'claude', 'openai']
        assert summary['provider_details']['openai']['has_api_key'] is True
        assert summary['provider_details']['claude']['priority'] == 2
        assert summary['last_updated'] is None


class TestSetters:

    def test_set_primary_normalizes_name(self, config_manager):
        assert config_manager.set_primary_provider('  Claude ') is True
        assert config_manager.primary_provider() == 'claude'
        assert config_manager.static['primary_provider'] == 'deepseek'
        assert config_manager.last_config_update() is not None

    def test_clear_secondary(self, config_manager):
        config_manager.set_secondary_provider(None)
        assert config_manager.secondary_provider() is None

    def test_toggles(self, config_manager):
        config_manager.set_fallback_enabled(False)
        config_manager.set_stop_on_first_success(False)

        assert config_manager.is_fallback_enabled() is False
        assert config_manager.stop_on_first_success() is False

    def test_disable_provider(self, config_manager):
        config_manager.set_provider_enabled('claude', False)

        assert config_manager.provider_config('claude').enabled is False
        assert config_manager.ordered_providers() == ['deepseek', 'openai']

    def test_update_provider_config_merges(self, config_manager):
        config_manager.update_provider_config('openai', {'timeout': 60})
        config_manager.update_provider_config('openai', {'max_retries': 5, 'model': ' gpt-4o '})

        config = config_manager.provider_config('openai')
        assert config.timeout == 60
        assert config.max_retries == 5
        assert config.model == 'gpt-4o'
        assert config.api_key == 'openai-key'

    @pytest.mark.parametrize("updates", [
        {'timeout': 4},
        {'timeout': 301},
        {'timeout': True},
        {'max_retries': 0},
        {'max_retries': 11},
        {'priority': 11},
        {'priority': '1'},
        {'enabled': 'yes'},
        {'model': ''},
        {'api_key': 'stolen'},
        {'temperature': 0.2},
    ])
    def test_update_validation(self, config_manager, updates):
        with pytest.raises(ConfigurationError):
            config_manager.update_provider_config('openai', updates)
        assert config_manager.store.load() == {}

    @pytest.mark.parametrize("field,value", [
        ('timeout', 5), ('timeout', 300), ('max_retries', 1), ('max_retries', 10), ('priority', 1), ('priority', 10),
    ])
    def test_update_bounds_inclusive(self, config_manager, field, value):
        assert config_manager.update_provider_config('claude', {field: value}) is True
        assert getattr(config_manager.provider_config('claude'), field) == value

    def test_reset_to_defaults(self, config_manager):
        config_manager.set_primary_provider('openai')
        config_manager.set_provider_enabled('deepseek', False)
        config_manager.reset_to_defaults()

        assert config_manager.primary_provider() == 'deepseek'
        assert config_manager.ordered_providers() == ['deepseek', 'claude', 'openai']


class TestOverridePrecedence:

    def test_environment_wins_when_env_override_on(self, static_config, override_store):
        static_config['runtime_config']['env_override'] = True
        manager = ConfigManager(static=static_config, store=override_store)

        # Stored, but not applied
        assert manager.set_primary_provider('openai') is True
        assert override_store.get('primary_provider') == 'openai'
        assert manager.primary_provider() == 'deepseek'
        assert manager.configuration_summary()['configuration_source'] == 'ENV File'

    def test_runtime_config_disabled(self, static_config):
        static_config['runtime_config']['enabled'] = False
        manager = ConfigManager(static=static_config)

        assert manager.store is None
        assert manager.set_primary_provider('openai') is False
        assert manager.update_provider_config('openai', {'timeout': 60}) is False
        assert manager.primary_provider() == 'deepseek'
        assert manager.last_config_update() is None
        manager.reset_to_defaults()
