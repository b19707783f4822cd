"""Output and diagnostic sinks."""

from __future__ import annotations

import logging
import os
import sys
import threading
from pathlib import Path
from typing import IO, List, Optional

from .errors import OutputError

LOGGER_NAME = "domcurl"
LOG_LEVEL_ENV = "DOMCURL_LOG_LEVEL"
LOG_FORMAT = "%(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class OutputSink:
    """Line-oriented writer for normal output.

    Writes to ``stream`` or, when ``path`` is given, to a file opened on the
    first write so a run that fails early leaves no truncated file behind.
    """

    def __init__(self, path: Optional[str] = None, stream: Optional[IO[str]] = None):
        self.path = str(path) if path else None
        self._stream: Optional[IO[str]] = None if self.path else (stream or sys.stdout)
        self._owns_stream = False
        self._lock = threading.Lock()

    @property
    def target(self) -> str:
        return self.path or "<stdout>"

    def write_line(self, text: str) -> None:
        self.write_lines([text])

    def write_lines(self, lines: List[str]) -> None:
        with self._lock:
            stream = self._ensure_stream()
            try:
                for line in lines:
                    stream.write(f"{line}\n")
            except OSError as e:
                raise OutputError(f"Cannot write to {self.target}: {e}") from e

    def close(self) -> None:
        with self._lock:
            if self._stream is None:
                return
            try:
                if self._owns_stream:
                    self._stream.close()
                else:
                    self._stream.flush()
            except OSError as e:
                raise OutputError(f"Cannot flush {self.target}: {e}") from e
            finally:
                if self._owns_stream:
                    self._stream = None
                    self._owns_stream = False

    def _ensure_stream(self) -> IO[str]:
        if self._stream is not None:
            return self._stream
        try:
            self._stream = Path(str(self.path)).open("w", encoding="utf-8")
        except OSError as e:
            raise OutputError(f"Cannot open output file {self.path}: {e}") from e
        self._owns_stream = True
        return self._stream


def resolve_log_level(value: Optional[str] = None) -> int:
    raw = str(value if value is not None else os.environ.get(LOG_LEVEL_ENV, "") or "").strip().upper()
    if not raw:
        return logging.WARNING
    level = logging.getLevelName(raw)
    return level if isinstance(level, int) else logging.WARNING


def configure_diagnostics(
    target: Optional[str] = None,
    level: Optional[int] = None,
) -> logging.Handler:
    """Attach the diagnostic handler to the ``domcurl`` logger.

    ``target`` is None for standard error, ``-`` for standard output, or a
    file path.
    """
    if target == "-":
        handler: logging.Handler = logging.StreamHandler(sys.stdout)
    elif target:
        try:
            handler = logging.FileHandler(str(target), encoding="utf-8")
        except OSError as e:
            raise OutputError(f"Cannot open diagnostics file {target}: {e}") from e
    else:
        handler = logging.StreamHandler(sys.stderr)

    resolved = resolve_log_level() if level is None else int(level)
    handler.setFormatter(
        logging.Formatter(DEBUG_LOG_FORMAT if resolved <= logging.DEBUG else LOG_FORMAT)
    )
    logger = logging.getLogger(LOGGER_NAME)
    logger.addHandler(handler)
    logger.setLevel(resolved)
    logger.propagate = False
    return handler


def release_diagnostics(handler: Optional[logging.Handler]) -> None:
    if handler is None:
        return
    logger = logging.getLogger(LOGGER_NAME)
    logger.removeHandler(handler)
    if not logger.handlers:
        logger.propagate = True
    try:
        handler.flush()
        handler.close()
    except Exception:
        pass
