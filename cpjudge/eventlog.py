"""Event log for diagnosing problems: timestamped, aligned lines written to a file or stderr."""

from __future__ import annotations

import inspect
import os
import platform
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

NUMBER_OF_LOGS_TO_KEEP = 50
MAXIMUM_FUNCTION_NAME_SIZE = 30
MAXIMUM_FILE_NAME_SIZE = 30
LOG_DIR_NAME = "log"
LOG_FILE_NAME = "cpjudge"

INFO = "INFO "
WARN = "WARN "
ERROR = "ERROR"
WTF = " WTF "


def _default_cache_dir() -> Path:
    base = os.environ.get("XDG_CACHE_HOME")
    root = Path(base) if base else Path.home() / ".cache"
    return root / LOG_FILE_NAME


def _center(text: str, width: int) -> str:
    pad = width - len(text)
    if pad <= 0:
        return text
    left = pad // 2
    return " " * left + text + " " * (pad - left)


def _iso_with_ms(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}"


def format_header(priority, func_name, line, file_name, timestamp=None):
    """Build the prefix of a log line, with function and file names centred in fixed-width fields."""
    moment = timestamp if timestamp is not None else datetime.now()
    func = func_name[-MAXIMUM_FUNCTION_NAME_SIZE:] if len(func_name) > MAXIMUM_FUNCTION_NAME_SIZE else func_name
    name = Path(file_name).name
    if len(name) > MAXIMUM_FILE_NAME_SIZE:
        name = name[-MAXIMUM_FILE_NAME_SIZE:]
    return (
        f"[{_iso_with_ms(moment)}][{priority}]"
        f"[{_center(func, MAXIMUM_FUNCTION_NAME_SIZE)}]"
        f"[{_center(name, MAXIMUM_FILE_NAME_SIZE)}]"
        f"({line})::"
    )


class EventLog:
    """Writes diagnostic events to a rotating set of log files, or to stderr."""

    def __init__(self, log_dir=None):
        self._base = Path(log_dir) if log_dir is not None else _default_cache_dir()
        self._stream: TextIO | None = None
        self._owns_stream = False
        self.path: Path | None = None

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    @property
    def directory(self) -> Path:
        return self._base / LOG_DIR_NAME

    def open(self, instance=0, dump_to_stderr=False):
        """Start logging; keeps only the most recent log files when writing to a file."""
        self.close()
        if dump_to_stderr:
            self._stream = sys.stderr
        else:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
            except OSError:
                self.error(f"Failed to open directory {self.directory}")
            else:
                self._rotate()
                now = datetime.now()
                stamp = now.strftime("%Y-%m-%d-%H-%M-%S-") + f"{now.microsecond // 1000:03d}"
                self.path = self.directory / f"{LOG_FILE_NAME}-{stamp}-{instance}.log"
                try:
                    self._stream = open(self.path, "w", encoding="utf-8")
                    self._owns_stream = True
                except OSError:
                    self._stream = None
                    self.error(f"Failed to open file {self.path}")
        self.info("Event logger has been initialized successfully")
        self._platform_information()
        return self

    def _rotate(self) -> None:
        entries = sorted(
            self.directory.glob(f"{LOG_FILE_NAME}*.log"),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        for old in entries[NUMBER_OF_LOGS_TO_KEEP:]:
            old.unlink(missing_ok=True)

    def _platform_information(self) -> None:
        self.info("Gathering system information")
        self.info(f"<machine>: [{platform.machine()}], ")
        self.info(f"<system>: [{platform.system()}], ")
        self.info(f"<release>: [{platform.release()}], ")
        self.info(f"<platform>: [{platform.platform()}], ")
        self.info(f"<python>: [{platform.python_version()}], ")

    def log(self, priority, func_name, line, file_name, message):
        """Write one event; falls back to stderr when no log file is open."""
        stream = self._stream
        if stream is None or stream.closed:
            stream = self._stream = sys.stderr
            self._owns_stream = False
        stream.write(format_header(priority, func_name, line, file_name) + str(message) + "\n")
        stream.flush()

    def _from_caller(self, priority: str, message) -> None:
        frame = inspect.currentframe()
        caller = frame.f_back.f_back if frame is not None and frame.f_back is not None else None
        if caller is None:
            self.log(priority, "?", 0, "?", message)
        else:
            code = caller.f_code
            self.log(priority, code.co_name, caller.f_lineno, code.co_filename, message)

    def info(self, message):
        self._from_caller(INFO, message)

    def warn(self, message):
        self._from_caller(WARN, message)

    def error(self, message):
        self._from_caller(ERROR, message)

    def clear_old_logs(self):
        """Delete every log file in the log directory except the current one."""
        if not self.directory.is_dir():
            return
        for entry in self.directory.glob(f"{LOG_FILE_NAME}*.log"):
            if not entry.is_file() or (self.path is not None and entry.name == self.path.name):
                continue
            entry.unlink(missing_ok=True)
            self.info(f"Deleted log file: {entry.name}")

    def close(self):
        if self._stream is not None and self._owns_stream:
            self._stream.close()
        self._stream = None
        self._owns_stream = False