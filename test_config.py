import pytest

from form_relay.config import RECAPTCHA_VERIFY_URL, Settings

ENV_VARS = [
    "MY_SITE_URL",
    "SCORE_THRESHOLD",
    "RECAPTCHA_SECRET_KEY",
    "ENDPOINT_URL",
    "REQUEST_TIMEOUT",
    "RECAPTCHA_VERIFY_URL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_when_environment_is_empty():
    settings = Settings.from_env()

    assert settings.allowed_origin == "*"
    assert settings.score_threshold == 0.5
    assert settings.recaptcha_secret is None
    assert settings.endpoint_url is None
    assert settings.request_timeout == 5.0
    assert settings.verify_url == RECAPTCHA_VERIFY_URL


def test_values_read_from_environment(monkeypatch):
    monkeypatch.setenv("MY_SITE_URL", "https://example.com")
    monkeypatch.setenv("SCORE_THRESHOLD", "0.7")
    monkeypatch.setenv("RECAPTCHA_SECRET_KEY", "shh")
    monkeypatch.setenv("ENDPOINT_URL", "https://forms.example.com/submit")
    monkeypatch.setenv("REQUEST_TIMEOUT", "2.5")

    settings = Settings.from_env()

    assert settings.allowed_origin == "https://example.com"
    assert settings.score_threshold == 0.7
    assert settings.recaptcha_secret == "shh"
    assert settings.endpoint_url == "https://forms.example.com/submit"
    assert settings.request_timeout == 2.5


@pytest.mark.parametrize("raw", ["", "high", "0.7abc", "1.5", "-0.1"])
def test_bad_threshold_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("SCORE_THRESHOLD", raw)

    assert Settings.from_env().score_threshold == 0.5


@pytest.mark.parametrize("raw", ["soon", "0", "-3"])
def test_bad_timeout_falls_back_to_default(monkeypatch, raw):
    monkeypatch.setenv("REQUEST_TIMEOUT", raw)

    assert Settings.from_env().request_timeout == 5.0


def test_explicit_zero_threshold_is_kept(monkeypatch):
    monkeypatch.setenv("SCORE_THRESHOLD", "0")

    assert Settings.from_env().score_threshold == 0.0
