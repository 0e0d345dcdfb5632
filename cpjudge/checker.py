"""Decide whether a program's output is accepted, with built-in or testlib-style checkers."""

from __future__ import annotations

import enum
import logging
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from cpjudge.compiler import CompilationFailed, Compiler
from cpjudge.runner import RunFailed, Runner, RunnerSettings

_log = logging.getLogger(__name__)

DEFAULT_COMPILE_COMMAND = "g++ -Wall"
DEFAULT_TIME_LIMIT = 5000
TITLE = "Checker"


class CheckerType(enum.Enum):
    """The kind of checker that judges an output."""

    IGNORE_TRAILING_SPACES = "ignore_trailing_spaces"
    STRICT = "strict"
    NCMP = "ncmp"
    RCMP4 = "rcmp4"
    RCMP6 = "rcmp6"
    RCMP9 = "rcmp9"
    WCMP = "wcmp"
    NYESNO = "nyesno"
    CUSTOM = "custom"

    @property
    def is_builtin(self) -> bool:
        return self in (CheckerType.IGNORE_TRAILING_SPACES, CheckerType.STRICT)


class Verdict(enum.Enum):
    """The result of checking one test case."""

    AC = "AC"
    WA = "WA"


class TResult(enum.IntEnum):
    """Exit codes of a testlib checker."""

    OK = 0
    WA = 1
    PE = 2
    FAIL = 3
    DIRT = 4
    POINTS = 5
    UNEXPECTED_EOF = 8
    PARTIALLY = 16


def _normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def check_ignore_trailing_spaces(output, expected):
    """Accept when lines match after dropping trailing spaces and trailing blank lines."""
    output_lines = _normalize_newlines(output).split("\n")
    answer_lines = _normalize_newlines(expected).split("\n")
    for lines in (output_lines, answer_lines):
        while lines and not lines[-1].strip():
            lines.pop()
    if len(output_lines) != len(answer_lines):
        return False
    return all(out.rstrip() == ans.rstrip() for out, ans in zip(output_lines, answer_lines))


def check_strict(output, expected):
    """Accept only identical text, treating \\r\\n, \\r and \\n as the same line break."""
    return _normalize_newlines(output) == _normalize_newlines(expected)


def verdict_for_exit_code(exit_code):
    """Map a testlib checker's exit code to a verdict, or None for an unknown code."""
    try:
        result = TResult(exit_code)
    except ValueError:
        return None
    return Verdict.AC if result is TResult.OK else Verdict.WA


@dataclass(frozen=True)
class _Task:
    index: int
    input_text: str
    output: str
    expected: str


def _head(index: int) -> str:
    return f"Checker[{index + 1}]"


class Checker:
    """Judges outputs; testlib and custom checkers are compiled before use.

    Results are returned by request_check and also passed to on_check_finished(index, verdict).
    Requests made before the checker is compiled are kept and judged once it is.
    """

    def __init__(self, checker_type, logger, settings=None, checker_path=None, testlib_dir=None):
        self.checker_type = CheckerType(checker_type)
        self.logger = logger
        self.settings = settings if settings is not None else RunnerSettings()
        self.compile_command = DEFAULT_COMPILE_COMMAND
        self.time_limit = DEFAULT_TIME_LIMIT
        self.on_check_finished: Callable[[int, Verdict], object] | None = None

        self._testlib_dir = Path(testlib_dir) if testlib_dir is not None else None
        self._original_path: Path | None = None
        if self.checker_type is CheckerType.CUSTOM:
            if not checker_path:
                raise ValueError("a custom checker needs the path to its source file")
            self._original_path = Path(checker_path)
        elif not self.checker_type.is_builtin:
            if self._testlib_dir is None:
                raise ValueError("testlib checkers need testlib_dir")
            self._original_path = self._testlib_dir / "checkers" / f"{self.checker_type.value}.cpp"

        self._code: str | None = None
        self._tmp_dir: tempfile.TemporaryDirectory | None = None
        self._checker_tmp_path: Path | None = None
        self._compiler: Compiler | None = None
        self._runners: list[Runner] = []
        self._pending: list[_Task] = []
        self._lock = threading.Lock()
        self.compiled = False
        _log.info("Checker of type %s created", self.checker_type.value)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def _read(self, path: Path, title: str) -> str | None:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            self.logger.error(title, f"Failed to read the file [{path}]")
            return None

    def _save(self, path: Path, text: str, title: str) -> bool:
        try:
            path.write_text(text, encoding="utf-8", newline="")
        except OSError:
            self.logger.error(title, f"Failed to save the file [{path}]")
            return False
        return True

    def _cleanup_tmp(self) -> None:
        if self._tmp_dir is not None:
            self._tmp_dir.cleanup()
            self._tmp_dir = None

    def prepare(self):
        """Get ready to check; compiles testlib and custom checkers."""
        if self.checker_type.is_builtin:
            self.compiled = True
            return

        self.compiled = False
        code = self._read(self._original_path, "Read Checker")
        if code is None:
            return
        self._code = code

        self._cleanup_tmp()
        try:
            self._tmp_dir = tempfile.TemporaryDirectory(prefix="cpjudge-checker-")
        except OSError:
            self.logger.error(TITLE, "Failed to create temporary directory")
            return
        tmp = Path(self._tmp_dir.name)
        self._checker_tmp_path = tmp / "checker.cpp"
        if not self._save(self._checker_tmp_path, code, TITLE):
            return

        if self._testlib_dir is not None:
            testlib_h = self._read(self._testlib_dir / "testlib.h", "Read testlib.h")
            if testlib_h is None:
                return
            if not self._save(tmp / "testlib.h", testlib_h, "Save testlib.h"):
                return

        compiler = Compiler(self.settings.compiler)
        self._compiler = compiler
        self.logger.info(TITLE, "Started compiling the checker")
        try:
            result = compiler.start(str(self._checker_tmp_path), "", self.compile_command, "C++")
        except CompilationFailed as exc:
            self.logger.error(TITLE, f"Failed to compile the checker: {exc}", False)
            return
        finally:
            self._compiler = None

        if result.killed:
            # a killed compilation is not reported as a failure
            return
        if not result.success:
            self.logger.error(TITLE, f"Error occurred while compiling the checker:\n{result.output}")
            return
        self._on_compiled()

    def _on_compiled(self) -> None:
        if self._recompile_if_changed():
            return
        self.compiled = True
        self.logger.info(TITLE, "The checker is compiled")
        tasks, self._pending = self._pending, []
        for task in tasks:
            self._check(task)

    def _recompile_if_changed(self) -> bool:
        if self._original_path is None:
            return False
        current = self._read(self._original_path, "Read Checker")
        if current is None or current == self._code:
            return False
        _log.info("Recompiling checker")
        self.logger.info(TITLE, "The source code of the checker has changed, recompiling...")
        self.prepare()
        return True

    def request_check(self, index, input_text, output, expected):
        """Check one test case; returns the verdict, or None when it is queued or undecided."""
        self._recompile_if_changed()
        task = _Task(index, input_text, output, expected)
        if self.compiled:
            return self._check(task)
        self._pending.append(task)
        return None

    def _finish(self, index: int, verdict: Verdict) -> Verdict:
        if self.on_check_finished is not None:
            self.on_check_finished(index, verdict)
        return verdict

    def _check(self, task: _Task) -> Verdict | None:
        _log.info("<index>: [%s]", task.index)
        if self.checker_type is CheckerType.IGNORE_TRAILING_SPACES:
            accepted = check_ignore_trailing_spaces(task.output, task.expected)
            return self._finish(task.index, Verdict.AC if accepted else Verdict.WA)
        if self.checker_type is CheckerType.STRICT:
            accepted = check_strict(task.output, task.expected)
            return self._finish(task.index, Verdict.AC if accepted else Verdict.WA)
        return self._run_checker(task)

    def _run_checker(self, task: _Task) -> Verdict | None:
        tmp = Path(self._tmp_dir.name)
        input_path = tmp / f"{task.index}.in"
        output_path = tmp / f"{task.index}.out"
        expected_path = tmp / f"{task.index}.ans"
        saved = all(
            self._save(path, text, TITLE)
            for path, text in (
                (input_path, task.input_text),
                (output_path, task.output),
                (expected_path, task.expected),
            )
        )
        if not saved:
            return None

        runner = Runner(task.index, self.settings)
        with self._lock:
            self._runners.append(runner)
        args = f'"{input_path}" "{output_path}" "{expected_path}"'
        try:
            result = runner.run(str(self._checker_tmp_path), "", "C++", "", args, "", self.time_limit)
        except RunFailed as exc:
            self.logger.error(_head(task.index), str(exc), False)
            return None
        finally:
            with self._lock:
                if runner in self._runners:
                    self._runners.remove(runner)

        head = _head(task.index)
        if result.output_limit_exceeded is not None:
            self.logger.warn(
                head,
                f"The {result.output_limit_exceeded} of the process running on the testcase #{task.index + 1} "
                f"contains more than {self.settings.output_length_limit} characters, which is longer than the "
                "output length limit, so the process is killed. You can change the output length limit in the "
                "preferences (Output Length Limit).",
                False,
            )
        if result.killed:
            self.logger.error(head, "The checker is killed")
            return None
        if result.tle:
            self.logger.warn(head, "Time Limit Exceeded")

        verdict = verdict_for_exit_code(result.exit_code)
        if verdict is Verdict.AC:
            if result.stderr:
                self.logger.message(head, result.stderr, "green")
            return self._finish(task.index, verdict)
        if verdict is Verdict.WA:
            if result.stderr:
                self.logger.error(head, result.stderr)
            else:
                self.logger.error(head, f"Checker exited with exit code {result.exit_code}")
            return self._finish(task.index, verdict)

        # not an exit code of a testlib checker, the checker probably crashed
        self.logger.error(head, f"Checker exited with unknown exit code {result.exit_code}")
        if result.stderr:
            self.logger.error(head, result.stderr)
        return None

    def clear_tasks(self):
        """Drop queued requests and kill the checks that are running."""
        self._pending.clear()
        with self._lock:
            runners, self._runners = self._runners, []
        for runner in runners:
            runner.kill()

    def close(self):
        """Stop all work and remove the temporary files."""
        self.clear_tasks()
        if self._compiler is not None:
            self._compiler.kill()
        self._cleanup_tmp()
        _log.info("Destroyed checker of type %s", self.checker_type.value)