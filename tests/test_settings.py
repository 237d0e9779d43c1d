"""Tests for environment-driven settings and the application container."""

from __future__ import annotations

import json

import pytest

from src.app import create_app
from src.config.settings import Settings, load_settings
from src.knowledge.base import KnowledgeBaseError

_ENV_KEYS = ("LOG_LEVEL", "SYNONYMS_PATH", "AVAILABLE_DIETS", "CONSTRAINT_ENGINE_ENABLED")


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run with no compiler variables set and no `.env` file in the working directory."""

    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return monkeypatch


def test_defaults(clean_env) -> None:
    settings = load_settings()
    assert settings.log_level == "INFO"
    assert settings.synonyms_path is None
    assert settings.available_diets == frozenset()
    assert settings.constraint_engine_enabled is True


def test_values_from_environment(clean_env) -> None:
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("AVAILABLE_DIETS", "Nightshade-Free, Low-FODMAP,,")
    clean_env.setenv("CONSTRAINT_ENGINE_ENABLED", "false")
    clean_env.setenv("SYNONYMS_PATH", "  ")

    settings = load_settings()
    assert settings.log_level == "DEBUG"
    assert settings.available_diets == {"Nightshade-Free", "Low-FODMAP"}
    assert settings.constraint_engine_enabled is False
    assert settings.synonyms_path is None


def test_invalid_environment_raises_runtime_error(clean_env) -> None:
    clean_env.setenv("LOG_LEVEL", "verbose")
    with pytest.raises(RuntimeError):
        load_settings()


def test_create_app_loads_synonyms(clean_env, tmp_path) -> None:
    path = tmp_path / "synonyms.json"
    path.write_text(json.dumps({"soda": "soft drink"}), encoding="utf-8")

    app = create_app(Settings(SYNONYMS_PATH=str(path)))
    assert app.knowledge_base.synonym("soda") == "soft drink"


def test_create_app_rejects_missing_synonyms_file(clean_env, tmp_path) -> None:
    with pytest.raises(KnowledgeBaseError):
        create_app(Settings(SYNONYMS_PATH=str(tmp_path / "missing.json")))


def test_app_compile_uses_configured_diets(clean_env) -> None:
    app = create_app(Settings(AVAILABLE_DIETS="Nightshade-Free"))
    assert app.compile("no nightshade").diets == {"Nightshade-Free"}
    assert app.compile("no nightshade", frozenset()).negative_tokens == {"nightshade"}
