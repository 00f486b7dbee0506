"""Tests for configuration validation."""

import pytest

from pagelens.config.settings import (
    DEFAULT_TOGGLE_LABELS,
    APIConfig,
    ApplyConfig,
    ExtractionConfig,
    PagelensConfig,
    RefreshConfig,
)


def test_extraction_defaults():
    cfg = ExtractionConfig()
    assert (cfg.label_max_chars, cfg.heading_value_max_chars) == (32, 64)
    assert (cfg.key_max_words, cfg.value_max_words, cfg.heading_value_max_words) == (4, 8, 6)


@pytest.mark.parametrize("field", ["label_max_chars", "key_max_words", "value_max_words"])
def test_extraction_rejects_non_positive_thresholds(field):
    with pytest.raises(ValueError):
        ExtractionConfig(**{field: 0})


def test_extraction_rejects_empty_markers():
    with pytest.raises(ValueError):
        ExtractionConfig(active_class_markers=[])


def test_apply_config_has_all_toggles():
    assert len(ApplyConfig().toggle_labels) == len(DEFAULT_TOGGLE_LABELS) == 22


def test_apply_config_rejects_empty_leg_signature():
    with pytest.raises(ValueError):
        ApplyConfig(leg_group_classes=[])


def test_refresh_from_env(monkeypatch):
    monkeypatch.setenv("PAGELENS_DEBOUNCE_MS", "350")
    monkeypatch.delenv("PAGELENS_STATUS_TTL_MS", raising=False)
    cfg = RefreshConfig()
    assert cfg.debounce_ms == 350
    assert cfg.status_ttl_ms == 1500


def test_refresh_rejects_negative():
    with pytest.raises(ValueError):
        RefreshConfig(debounce_ms=-1)


def test_api_config_default_origins(monkeypatch):
    monkeypatch.delenv("PAGELENS_ALLOWED_ORIGINS", raising=False)
    assert APIConfig().allowed_origins


def test_api_config_rejects_wildcard_origin():
    with pytest.raises(ValueError):
        APIConfig(allowed_origins=["*"])


def test_api_config_rejects_wildcard_in_env(monkeypatch):
    monkeypatch.setenv("PAGELENS_ALLOWED_ORIGINS", "https://a.example.com,*")
    with pytest.raises(ValueError):
        APIConfig()


def test_api_config_rejects_invalid_origin_url():
    with pytest.raises(ValueError):
        APIConfig(allowed_origins=["localhost:3000"])


def test_log_level_from_env(monkeypatch):
    monkeypatch.setenv("PAGELENS_LOG_LEVEL", "DEBUG")
    assert PagelensConfig().log_level == "DEBUG"
