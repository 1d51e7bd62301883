import logging

import pytest

from apienvelope import main
from apienvelope.core.config import Config


def test_run_rejects_bad_log_level_before_configuring_logging(monkeypatch):
    calls = []
    monkeypatch.setattr(Config, "LOG_LEVEL", "CHATTY")
    monkeypatch.setattr(Config, "PORT", "8080")
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(("logging", kwargs)))
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: calls.append(("uvicorn", kwargs)))

    with pytest.raises(ValueError, match="LOG_LEVEL 'CHATTY' is not a valid logging level"):
        main.run()

    assert calls == []


def test_run_configures_logging_then_serves(monkeypatch):
    calls = []
    monkeypatch.setattr(Config, "LOG_LEVEL", "DEBUG")
    monkeypatch.setattr(Config, "HOST", "127.0.0.1")
    monkeypatch.setattr(Config, "PORT", "9001")
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.append(("logging", kwargs["level"])))
    monkeypatch.setattr(main.uvicorn, "run", lambda app, host, port: calls.append(("uvicorn", host, port)))

    main.run()

    assert calls == [("logging", "DEBUG"), ("uvicorn", "127.0.0.1", 9001)]
