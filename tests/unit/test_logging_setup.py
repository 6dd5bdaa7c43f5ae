import json
import logging

import pytest

from repomigrator.logging import NOISY_LOGGERS, bind_context, clear_context, configure_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    noisy = {name: logging.getLogger(name).level for name in NOISY_LOGGERS}
    yield
    clear_context()
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, previous in noisy.items():
        logging.getLogger(name).setLevel(previous)


def test_stdlib_records_render_as_json_with_bound_repo(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO", app_env="prod")
    bind_context(repo="plugin-foo")
    logging.getLogger("repomigrator.test").info("cloned")
    line = capsys.readouterr().err.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "cloned"
    assert record["repo"] == "plugin-foo"
    assert record["level"] == "info"


def test_level_and_http_client_noise(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("debug", json_output=True)
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    configure_logging("nonsense", json_output=True)
    assert logging.getLogger().level == logging.INFO
