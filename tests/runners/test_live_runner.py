from __future__ import annotations

import pytest

import runners.live_runner as live_runner
from core.application.bootstrap import StartupError


@pytest.fixture(autouse=True)
def _quiet(monkeypatch):
    monkeypatch.setattr(live_runner, "load_dotenv", lambda *_a, **_k: False)
    monkeypatch.setattr(live_runner, "setup_logging", lambda **_k: None)
    monkeypatch.setattr(live_runner.signal, "signal", lambda *_a: None)
    live_runner.load_settings.cache_clear()
    yield
    live_runner.load_settings.cache_clear()


def test_startup_error_exits_non_zero(monkeypatch):
    def _boom(settings, stop):
        raise StartupError("exchange info unavailable")

    monkeypatch.setattr(live_runner, "run", _boom)
    assert live_runner.main([]) == 1


def test_invalid_configuration_exits_non_zero(monkeypatch):
    def _bad(settings, stop):
        raise ValueError("SPEND_FRACTION_PER_TRADE must be within (0, 1]")

    monkeypatch.setattr(live_runner, "run", _bad)
    assert live_runner.main([]) == 2


def test_clean_stop_exits_zero(monkeypatch):
    calls = []
    monkeypatch.setattr(live_runner, "run", lambda settings, stop: calls.append(stop) or 0)
    assert live_runner.main(["--log-level", "DEBUG"]) == 0
    assert not calls[0].is_set()


def test_invalid_settings_exit_non_zero(monkeypatch):
    monkeypatch.setenv("MAX_ROUND_TRIPS", "lots")
    monkeypatch.setattr(live_runner, "run", lambda settings, stop: pytest.fail("run must not start"))
    assert live_runner.main([]) == 2
