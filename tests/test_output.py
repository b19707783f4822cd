import logging

import pytest

from domcurl.errors import OutputError
from domcurl.output import (
    LOGGER_NAME,
    OutputSink,
    configure_diagnostics,
    release_diagnostics,
    resolve_log_level,
)


def test_sink_writes_lines(sink, buffer):
    sink.write_line("a")
    sink.write_lines(["b", "c"])
    sink.close()
    assert buffer.getvalue() == "a\nb\nc\n"


def test_file_sink_opens_lazily(tmp_path):
    path = tmp_path / "out.html"
    sink = OutputSink(path=str(path))
    assert not path.exists()
    sink.write_line("<html></html>")
    sink.close()
    assert path.read_text(encoding="utf-8") == "<html></html>\n"
    assert sink.target == str(path)


def test_file_sink_unwritable_location(tmp_path):
    sink = OutputSink(path=str(tmp_path / "missing" / "out.html"))
    with pytest.raises(OutputError):
        sink.write_line("x")


def test_resolve_log_level(monkeypatch):
    monkeypatch.delenv("DOMCURL_LOG_LEVEL", raising=False)
    assert resolve_log_level() == logging.WARNING
    assert resolve_log_level("debug") == logging.DEBUG
    assert resolve_log_level("nonsense") == logging.WARNING
    monkeypatch.setenv("DOMCURL_LOG_LEVEL", "INFO")
    assert resolve_log_level() == logging.INFO


def test_diagnostics_to_file(tmp_path):
    path = tmp_path / "err.log"
    handler = configure_diagnostics(str(path), level=logging.WARNING)
    try:
        logging.getLogger(LOGGER_NAME).error("broken: %s", "x")
        logging.getLogger(LOGGER_NAME + ".navigation").debug("hidden")
    finally:
        release_diagnostics(handler)
    assert path.read_text(encoding="utf-8") == "broken: x\n"
    assert logging.getLogger(LOGGER_NAME).propagate is True


def test_diagnostics_bad_path(tmp_path):
    with pytest.raises(OutputError):
        configure_diagnostics(str(tmp_path / "missing" / "err.log"))
