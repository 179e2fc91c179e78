import logging

import pytest

from horizonsave.utils.logging import ENV_LOG_LEVEL, PACKAGE_LOGGER, configure_logging, resolve_level


@pytest.fixture(autouse=True)
def _restore_package_logger(monkeypatch):
    monkeypatch.delenv(ENV_LOG_LEVEL, raising=False)
    logger = logging.getLogger(PACKAGE_LOGGER)
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


@pytest.mark.parametrize(
    "value, expected",
    [
        (logging.WARNING, logging.WARNING),
        ("debug", logging.DEBUG),
        (" Error ", logging.ERROR),
        ("loud", logging.INFO),
    ],
)
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected


def test_logs_go_to_stderr_once(capsys):
    configure_logging("info")
    logger = configure_logging("info")
    assert len(logger.handlers) == 1

    logging.getLogger("horizonsave.mirror").info("copied")
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.count("horizonsave.mirror: copied") == 1


def test_env_level_wins(monkeypatch):
    monkeypatch.setenv(ENV_LOG_LEVEL, "warning")
    assert configure_logging(logging.DEBUG).level == logging.WARNING
