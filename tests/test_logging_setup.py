from __future__ import annotations

import logging

import pytest

import expense_migration.logging_setup as logging_setup
from expense_migration.logging_setup import configure_logging, get_logger, resolve_level


@pytest.fixture()
def pkg_logger(monkeypatch: pytest.MonkeyPatch) -> logging.Logger:
    """Restore the package logger after each test so caplog keeps working."""

    pkg = logging.getLogger(logging_setup.LOGGER_NAME)
    monkeypatch.setattr(logging_setup, "_handler", None)
    monkeypatch.setattr(pkg, "handlers", list(pkg.handlers))
    monkeypatch.setattr(pkg, "propagate", pkg.propagate)
    monkeypatch.setattr(pkg, "level", pkg.level)
    return pkg


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(raw, expected) -> None:
    assert resolve_level(raw) == expected


def test_resolve_level_reads_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(logging_setup.LEVEL_ENV, "error")
    assert resolve_level() == logging.ERROR
    assert resolve_level("debug") == logging.DEBUG


def test_configure_writes_to_stderr_once(
    pkg_logger: logging.Logger, capsys: pytest.CaptureFixture[str]
) -> None:
    configure_logging("info")
    configure_logging("debug")

    get_logger("expense_migration.merge").debug("hello from merge")

    err = capsys.readouterr().err
    assert err.count("hello from merge") == 1
    assert "expense_migration.merge DEBUG" in err
    assert not any(isinstance(h, logging.NullHandler) for h in pkg_logger.handlers)
    assert pkg_logger.propagate is False


def test_records_below_level_are_suppressed(
    pkg_logger: logging.Logger, capsys: pytest.CaptureFixture[str]
) -> None:
    configure_logging("warning")

    log = get_logger("expense_migration.api")
    log.info("quiet")
    log.warning("loud")

    err = capsys.readouterr().err
    assert "quiet" not in err
    assert "loud" in err
