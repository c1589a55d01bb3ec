"""Levelled logging to standard output and a dated log file."""

from __future__ import annotations

import os
import sys
import threading
import time
from dataclasses import dataclass
from typing import IO, Optional

__all__ = ["Settings", "setup", "debug", "info", "warn", "error", "errorf", "fatal"]

_LEVEL_DEBUG = "DEBUG"
_LEVEL_INFO = "INFO"
_LEVEL_WARN = "WARN"
_LEVEL_ERROR = "ERROR"
_LEVEL_FATAL = "FATAL"

_lock = threading.Lock()
_log_file: Optional[IO[str]] = None


@dataclass
class Settings:
    """Where and under which name log files are written."""

    path: str = "logs"
    name: str = "godis"
    ext: str = "log"
    time_format: str = "%Y-%m-%d"


def _open_log_file(file_name: str, directory: str) -> IO[str]:
    try:
        os.stat(directory)
    except PermissionError as exc:
        raise PermissionError(f"permission denied dir: {directory}") from exc
    except FileNotFoundError:
        try:
            os.makedirs(directory, exist_ok=True)
        except OSError as exc:
            raise OSError(f"error during make dir {directory}, err: {exc}") from exc
    try:
        return open(os.path.join(directory, file_name), "a", encoding="utf-8")
    except OSError as exc:
        raise OSError(f"fail to open file, err: {exc}") from exc


def setup(settings: Settings) -> None:
    """Start writing log lines to a file in addition to standard output."""
    global _log_file
    file_name = f"{settings.name}-{time.strftime(settings.time_format)}.{settings.ext}"
    new_file = _open_log_file(file_name, settings.path)
    with _lock:
        if _log_file is not None:
            _log_file.close()
        _log_file = new_file


def _emit(level: str, message: str) -> None:
    # Frame 0 is _emit, frame 1 the level function, frame 2 its caller.
    try:
        frame = sys._getframe(2)
        prefix = f"[{level}][{os.path.basename(frame.f_code.co_filename)}:{frame.f_lineno}] "
    except ValueError:
        prefix = f"[{level}] "
    line = f"{prefix}{time.strftime('%Y/%m/%d %H:%M:%S')} {message}\n"
    with _lock:
        sys.stdout.write(line)
        sys.stdout.flush()
        if _log_file is not None:
            _log_file.write(line)
            _log_file.flush()


def _join(args: tuple) -> str:
    return " ".join(str(arg) for arg in args)


def debug(*args) -> None:
    """Log at debug level."""
    _emit(_LEVEL_DEBUG, _join(args))


def info(*args) -> None:
    """Log at info level."""
    _emit(_LEVEL_INFO, _join(args))


def warn(*args) -> None:
    """Log at warning level."""
    _emit(_LEVEL_WARN, _join(args))


def error(*args) -> None:
    """Log at error level."""
    _emit(_LEVEL_ERROR, _join(args))


def errorf(fmt: str, *args) -> None:
    """Log a %-formatted message at error level."""
    _emit(_LEVEL_ERROR, fmt % args if args else fmt)


def fatal(*args) -> None:
    """Log at fatal level and stop the program."""
    _emit(_LEVEL_FATAL, _join(args))
    raise SystemExit(1)