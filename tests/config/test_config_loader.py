"""Tests for the YAML config loader and RetrievalConfig."""

import pytest

from config import ConfigDict, load_config, load_yaml, reload_config
from retrieval.core.config import RetrievalConfig


# ============================================================================
# ConfigDict
# ============================================================================

def test_config_dict_dot_and_path_access():
    config = ConfigDict({"fusion": {"rrf_k": 60}, "name": "retrieval"})

    assert config.fusion.rrf_k == 60
    assert config["fusion"]["rrf_k"] == 60
    assert config.get("fusion.rrf_k") == 60
    assert config.get("fusion.missing", "default") == "default"
    assert config.get("name.nested") is None
    assert "fusion" in config
    assert config.to_dict() == {"fusion": {"rrf_k": 60}, "name": "retrieval"}


# ============================================================================
# load_yaml
# ============================================================================

def test_load_yaml_substitutes_env_vars(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_RRF_K", "30")
    monkeypatch.setenv("TEST_ENABLED", "false")
    monkeypatch.delenv("TEST_UNSET", raising=False)
    path = tmp_path / "sample.yaml"
    path.write_text(
        "k: ${TEST_RRF_K:60}\n"
        "ratio: ${TEST_RATIO:0.5}\n"
        "enabled: ${TEST_ENABLED}\n"
        "label: prefix-${TEST_RRF_K}\n"
        "raw: ${TEST_UNSET}\n"
        "plain: 7\n",
        encoding="utf-8",
    )

    data = load_yaml(path)

    assert data == {
        "k": 30,
        "ratio": 0.5,
        "enabled": False,
        "label": "prefix-30",
        "raw": "${TEST_UNSET}",
        "plain": 7,
    }


def test_load_yaml_empty_file(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("", encoding="utf-8")

    assert load_yaml(path) == {}


def test_load_config_missing_file():
    with pytest.raises(FileNotFoundError):
        load_config("does_not_exist")


# ============================================================================
# RetrievalConfig
# ============================================================================

def test_retrieval_config_from_bundled_yaml():
    config = RetrievalConfig.from_config()

    assert config == RetrievalConfig()


def test_retrieval_config_env_override(monkeypatch):
    monkeypatch.setenv("RETRIEVAL_RRF_K", "30")
    try:
        config = RetrievalConfig.from_dict(reload_config("retrieval").to_dict())
        assert config.rrf_k == 30
    finally:
        monkeypatch.delenv("RETRIEVAL_RRF_K")
        reload_config("retrieval")


def test_retrieval_config_from_partial_dict():
    config = RetrievalConfig.from_dict({"agentic": {"combined_total": 12}, "keyword": {"density_scale": 10}})

    assert config.combined_total == 12
    assert config.density_scale == 10
    assert config.rrf_k == 60
    assert RetrievalConfig.from_dict(None) == RetrievalConfig()
