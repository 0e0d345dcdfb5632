"""Run a compiled program on an input, with time and output limits."""

from __future__ import annotations

import logging
import subprocess
import sys
import tempfile
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path

from cpjudge.compiler import CompilerSettings, output_file_path, output_path, split_command

_log = logging.getLogger(__name__)


@dataclass
class RunnerSettings:
    """Settings used when starting programs."""

    compiler: CompilerSettings = field(default_factory=CompilerSettings)
    output_length_limit: int = 1_000_000
    detached_run_terminal_program: str = "xterm"
    detached_run_terminal_arguments: str = "-e"


class RunFailed(Exception):
    """The program could not be started."""


@dataclass(frozen=True)
class RunResult:
    """The outcome of one execution."""

    index: int
    stdout: str
    stderr: str
    exit_code: int
    time_used: int
    tle: bool = False
    output_limit_exceeded: str | None = None
    killed: bool = False


def get_command(tmp_file_path, source_file_path, lang, run_command, args, settings=None):
    """Build the command line that runs the program; '' for an unknown language."""
    settings = settings if settings is not None else RunnerSettings()
    if lang == "C++":
        exe = output_path(tmp_file_path, source_file_path, "C++", settings.compiler)
        command = f'"{exe}" {args}'
    elif lang == "Java":
        class_path = output_path(tmp_file_path, source_file_path, "Java", settings.compiler)
        command = f'{run_command} -classpath "{class_path}" {settings.compiler.java_class_name} {args}'
    elif lang == "Python":
        command = f'{run_command} "{Path(tmp_file_path).resolve()}" {args}'
    else:
        command = ""
    _log.info("Returning runCommand as : %s", command)
    return command


class Runner:
    """Runs a program for one test case; kill() may be called from another thread."""

    def __init__(self, index, settings=None):
        self.index = index
        self.settings = settings if settings is not None else RunnerSettings()
        self._process: subprocess.Popen | None = None
        self._lock = threading.Lock()
        self._killed = False
        self._limit_kind: str | None = None

    @property
    def running(self) -> bool:
        with self._lock:
            return self._process is not None and self._process.poll() is None

    def _working_directory(self, tmp_file_path, source_file_path, lang) -> Path:
        target = output_file_path(tmp_file_path, source_file_path, lang, self.settings.compiler, False)
        return Path(target).parent

    def _pump(self, pipe, buffer: bytearray, kind: str) -> None:
        limit = self.settings.output_length_limit
        for chunk in iter(lambda: pipe.read1(65536), b""):
            buffer += chunk.replace(b"\0", b"")
            if len(buffer) > limit:
                with self._lock:
                    if self._limit_kind is None:
                        self._limit_kind = kind
                        _log.info("Process was running, and forcefully killed it because %s limit was reached", kind)
                        if self._process is not None and self._process.poll() is None:
                            self._process.kill()
        pipe.close()

    def run(self, tmp_file_path, source_file_path, lang, run_command, args, input_text, time_limit):
        """Run the program on input_text, waiting at most time_limit milliseconds."""
        _log.info(
            "<tmpFilePath>: [%s], <sourceFilePath>: [%s], <lang>: [%s], <runCommand>: [%s], <args>: [%s], "
            "<timeLimit>: [%s]",
            tmp_file_path, source_file_path, lang, run_command, args, time_limit,
        )
        if not tmp_file_path or not Path(tmp_file_path).exists():
            raise RunFailed(f"The source file {tmp_file_path} doesn't exist.")

        command = split_command(
            get_command(tmp_file_path, source_file_path, lang, run_command, args, self.settings)
        )
        if not command:
            raise RunFailed("Failed to get run command. It's probably a bug.")

        workdir = self._working_directory(tmp_file_path, source_file_path, lang)
        stdout, stderr = bytearray(), bytearray()
        tle = False

        try:
            stdin_file = tempfile.TemporaryFile()
        except OSError as exc:
            raise RunFailed("Failed to create temporary file.") from exc

        with stdin_file:
            stdin_file.write(str(input_text).encode("utf-8"))
            stdin_file.seek(0)
            try:
                process = subprocess.Popen(
                    command, cwd=workdir, stdin=stdin_file, stdout=subprocess.PIPE, stderr=subprocess.PIPE
                )
            except OSError as exc:
                raise RunFailed("Failed to start running. Please compile first.") from exc
            started = time.perf_counter()
            with self._lock:
                self._process = process
                self._killed = False
                self._limit_kind = None

            pumps = [
                threading.Thread(target=self._pump, args=(process.stdout, stdout, "stdout"), daemon=True),
                threading.Thread(target=self._pump, args=(process.stderr, stderr, "stderr"), daemon=True),
            ]
            for pump in pumps:
                pump.start()
            try:
                process.wait(timeout=time_limit / 1000)
            except subprocess.TimeoutExpired:
                with self._lock:
                    if process.poll() is None:
                        _log.info("Process was running, and forcefully killed it because time limit was reached")
                        tle = True
                        process.kill()
                process.wait()
            time_used = int((time.perf_counter() - started) * 1000)
            for pump in pumps:
                pump.join()

        with self._lock:
            self._process = None
            killed = self._killed
            limit_kind = self._limit_kind

        return RunResult(
            index=self.index,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode,
            time_used=time_used,
            tle=tle,
            output_limit_exceeded=limit_kind,
            killed=killed,
        )

    def run_detached(self, tmp_file_path, source_file_path, lang, run_command, args):
        """Start the program in a new terminal window and return without waiting."""
        workdir = self._working_directory(tmp_file_path, source_file_path, lang)
        command = get_command(tmp_file_path, source_file_path, lang, run_command, args, self.settings)
        try:
            if sys.platform == "darwin":
                script = 'tell app "Terminal" to do script "' + command.replace('"', "'") + '"'
                _log.info("Running apple script\n%s", script)
                process = subprocess.Popen(
                    ["osascript", "-l", "AppleScript"], cwd=workdir, stdin=subprocess.PIPE
                )
                process.communicate(script.encode("utf-8"))
            elif sys.platform.startswith("win"):
                cmd_args = split_command('/C "start cmd /C ' + command.replace('"', '^"') + ' ^& pause"')
                _log.info("CMD Arguments %s", " ".join(cmd_args))
                process = subprocess.Popen(["cmd", *cmd_args], cwd=workdir)
            else:
                terminal = self.settings.detached_run_terminal_program
                _log.info("Using: %s on UNIX", terminal)
                notice = "Program finished with exit code $?\nPress any key to exit"
                exec_args = split_command(self.settings.detached_run_terminal_arguments) + [
                    "/bin/bash",
                    "-c",
                    f'{command} ; echo "\n{notice}" ; read -n 1',
                ]
                process = subprocess.Popen([terminal, *exec_args], cwd=workdir)
        except OSError as exc:
            raise RunFailed(
                "Failed to start detached execution. Please check your terminal emulator settings in "
                "Detached Run Terminal Program."
            ) from exc
        return process

    def kill(self):
        """Kill a running program; returns whether there was one to kill."""
        with self._lock:
            if self._process is None or self._process.poll() is not None:
                return False
            _log.warning("Runner at index: %s was running and forcefully killed", self.index)
            self._killed = True
            self._process.kill()
            return True