# ============================================================================
# FILE: tests/conftest.py
# ============================================================================
"""
Pytest configuration and shared fixtures for testing.
"""

import json
import pytest

from src.health_metrics.core.config_manager import ConfigManager, OverrideStore, ProviderConfig
from src.health_metrics.providers.base import BaseExtractionProvider
from src.health_metrics.providers.factory import clear_provider_cache


class SleepRecorder:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)

    @property
    def total(self):
        return sum(self.delays)


class ScriptedProvider(BaseExtractionProvider):
    """
    Provider whose backend replays a script.

    Each call consumes the next item; the last item repeats. Exceptions
    are raised, strings are returned as the raw response text.
    """

    provider_name = "scripted"
    default_model = "scripted-model"

    def __init__(self, config, script, **kwargs):
        super().__init__(config, **kwargs)
        self.script = list(script)
        self.calls = 0
        self.prompts = []

    async def _call_backend(self, prompt, context=None):
        self.calls += 1
        self.prompts.append(prompt)
        item = self.script[min(self.calls - 1, len(self.script) - 1)]
        if isinstance(item, Exception):
            raise item
        return item


@pytest.fixture
def sample_lab_text():
    """Sample lab report text for testing"""
    return """
    City Diagnostics Laboratory Report

    Patient: John Doe
    Date: 2024-01-15

    LIPID PANEL
    Total Cholesterol      220 mg/dL     (125-200)   High
    HDL Cholesterol        45 mg/dL      (40-60)     Normal
    LDL Cholesterol        150 mg/dL     (0-100)     High

    Fasting Glucose        95 mg/dL      (70-99)     Normal
    Blood Pressure         120/80 mmHg
    """


@pytest.fixture
def ai_response():
    """Normalized-looking AI response with mixed finding shapes"""
    return {
        "patient_name": "John Doe",
        "patient_age": "45",
        "patient_gender": "Male",
        "diagnosis": "Borderline high cholesterol",
        "key_findings": [
            {
                "finding": "Total Cholesterol",
                "value": "220",
                "unit": "mg/dL",
                "reference": "125-200 mg/dL",
                "status": "high",
                "description": "Above recommended range",
            },
            {
                "finding": "HDL Cholesterol",
                "value": "45",
                "unit": "mg/dL",
                "reference": "40-60 mg/dL",
                "status": "normal",
            },
            {"finding": "N/A", "value": "N/A", "unit": "", "status": "unknown"},
            "Glucose: 95 mg/dL",
            {
                "finding": "Blood Pressure",
                "value": "120/80",
                "unit": "mmHg",
                "status": "normal",
            },
        ],
        "recommendations": ["Repeat lipid panel in 3 months"],
        "confidence_score": 0.9,
    }


@pytest.fixture
def ai_response_json(ai_response):
    return json.dumps(ai_response)


@pytest.fixture
def static_config():
    """Static configuration with all three providers available"""
    return {
        'primary_provider': 'deepseek',
        'secondary_provider': 'claude',
        'fallback_enabled': True,
        'stop_on_first_success': True,
        'providers': {
            'deepseek': {
                'enabled': True,
                'api_key': 'ds-key',
                'base_url': 'https://api.deepseek.test',
                'model': 'deepseek-chat',
                'timeout': 30,
                'max_retries': 3,
                'priority': 1,
            },
            'claude': {
                'enabled': True,
                'api_key': 'claude-key',
                'base_url': 'https://api.anthropic.test/v1',
                'model': 'claude-3-5-sonnet-20241022',
                'anthropic_version': '2023-06-01',
                'timeout': 30,
                'max_retries': 3,
                'priority': 2,
            },
            'openai': {
                'enabled': True,
                'api_key': 'openai-key',
                'base_url': None,
                'model': 'gpt-4',
                'timeout': 30,
                'max_retries': 3,
                'priority': 3,
            },
        },
        'runtime_config': {
            'enabled': True,
            'table': 'health_metrics_config',
            'cache_ttl': 3600,
            'env_override': False,
            'db_path': ':memory:',
        },
        'performance': {
            'log_provider_performance': True,
            'ttl': 3600,
        },
        'limits': {
            'min_input_length': 10,
            'max_input_length': 50000,
            'max_text_length': 10000,
        },
    }


@pytest.fixture
def override_store():
    store = OverrideStore(db_path=":memory:")
    yield store
    store.close()


@pytest.fixture
def config_manager(static_config, override_store):
    return ConfigManager(static=static_config, store=override_store)


@pytest.fixture
def sleep_recorder():
    return SleepRecorder()


@pytest.fixture
def make_provider(sleep_recorder):
    """Factory for scripted providers sharing one sleep recorder"""

    def _make(name, script, max_retries=3, limits=None, enabled=True):
        config = ProviderConfig(
            name=name,
            enabled=enabled,
            api_key=f"{name}-key",
            base_url=f"https://{name}.test",
            model=f"{name}-model",
            max_retries=max_retries,
        )
        return ScriptedProvider(config, script, limits=limits, sleep=sleep_recorder)

    return _make


@pytest.fixture(autouse=True)
def _reset_provider_cache():
    clear_provider_cache()
    yield
    clear_provider_cache()
