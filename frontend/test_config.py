# frontend/test_config.py
# Backend URL resolution per environment

import pytest

from frontend import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("BACKEND_URL", raising=False)
    monkeypatch.delenv("API_BASE_URL", raising=False)


def test_local_default(monkeypatch):
    monkeypatch.setattr(config, "ENV", "local")
    assert config.get_api_base_url() == "http://127.0.0.1:4000"


def test_backend_url_wins_and_is_trimmed(monkeypatch):
    monkeypatch.setattr(config, "ENV", "local")
    monkeypatch.setenv("BACKEND_URL", "http://localhost:9000/")
    monkeypatch.setenv("API_BASE_URL", "http://other:1")
    assert config.get_api_base_url() == "http://localhost:9000"


def test_api_base_url_is_second_choice(monkeypatch):
    monkeypatch.setattr(config, "ENV", "production")
    monkeypatch.setenv("API_BASE_URL", "https://api.example.com")
    assert config.get_api_base_url() == "https://api.example.com"


def test_production_without_url_fails(monkeypatch):
    monkeypatch.setattr(config, "ENV", "production")
    with pytest.raises(RuntimeError):
        config.get_api_base_url()


@pytest.mark.parametrize("url", ["http://api.example.com", "https://localhost:4000"])
def test_production_rejects_insecure_urls(monkeypatch, url):
    monkeypatch.setattr(config, "ENV", "production")
    monkeypatch.setenv("BACKEND_URL", url)
    with pytest.raises(ValueError):
        config.get_api_base_url()
