import io
import logging

import pytest

from ledger import logging_setup
from ledger.logging_setup import ROOT_LOGGER, configure_logging, get_logger, resolve_level


@pytest.mark.parametrize(
    "value, expected",
    [
        ("debug", logging.DEBUG),
        (" Warning ", logging.WARNING),
        ("10", 10),
        (logging.ERROR, logging.ERROR),
        (None, logging.INFO),
        ("", logging.INFO),
        ("bogus", logging.INFO),
    ],
)
def test_resolve_level(value, expected):
    assert resolve_level(value) == expected


@pytest.fixture
def fresh_logging(monkeypatch):
    root = logging.getLogger(ROOT_LOGGER)
    monkeypatch.setattr(logging_setup, "_handler", None)
    handlers, level, propagate = list(root.handlers), root.level, root.propagate
    root.handlers[:] = [h for h in handlers if isinstance(h, logging.NullHandler)]
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    root.propagate = propagate


def test_configure_logging_installs_one_handler(fresh_logging):
    stream = io.StringIO()
    root = configure_logging("debug", stream=stream)
    configure_logging("warning", stream=io.StringIO())

    assert root is fresh_logging
    streams = [h for h in root.handlers if not isinstance(h, logging.NullHandler)]
    assert len(streams) == 1
    assert root.level == logging.WARNING
    assert root.propagate is False

    get_logger("ledger.store").warning("Stored transactions could not be read")
    get_logger("ledger.store").info("hidden")
    output = stream.getvalue()
    assert "WARNING [ledger.store] Stored transactions could not be read" in output
    assert "hidden" not in output
