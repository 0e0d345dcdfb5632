"""Compile a source file with an external compiler and report the outcome."""

from __future__ import annotations

import codecs
import logging
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path

_log = logging.getLogger(__name__)

SUPPORTED_LANGUAGES = ("C++", "Java", "Python")


def _default_output_paths() -> dict[str, str]:
    return {"C++": "${tmpdir}/${basename}", "Java": "${tmpdir}"}


@dataclass
class CompilerSettings:
    """Settings that decide where compiled files go and how compiler output is decoded."""

    output_paths: dict[str, str] = field(default_factory=_default_output_paths)
    java_class_name: str = "a"
    cpp_compiler_output_codec: str = "UTF-8"
    java_compiler_output_codec: str = "UTF-8"
    exe_suffix: str = ""

    def output_codec(self, lang: str) -> str:
        if lang == "C++":
            return self.cpp_compiler_output_codec
        if lang == "Java":
            return self.java_compiler_output_codec
        return "UTF-8"


class CompilationFailed(Exception):
    """The compilation could not be started."""


@dataclass(frozen=True)
class CompileResult:
    """The outcome of a compilation that did run."""

    output: str
    exit_code: int = 0
    killed: bool = False

    @property
    def success(self) -> bool:
        return self.exit_code == 0 and not self.killed


def split_command(command):
    """Split a command line into arguments; double quotes group, three quotes make a literal quote."""
    args: list[str] = []
    current: list[str] = []
    quote_count = 0
    in_quote = False
    for ch in command:
        if ch == '"':
            quote_count += 1
            if quote_count == 3:
                quote_count = 0
                current.append(ch)
            continue
        if quote_count:
            if quote_count == 1:
                in_quote = not in_quote
            quote_count = 0
        if not in_quote and ch.isspace():
            if current:
                args.append("".join(current))
                current.clear()
        else:
            current.append(ch)
    if current:
        args.append("".join(current))
    return args


def _exists(path: str) -> bool:
    return bool(path) and Path(path).exists()


def output_path(tmp_file_path, source_file_path, lang, settings=None, create_directory=True):
    """Return the executable path for C++, the class directory for Java, the file itself for Python."""
    if lang == "Python":
        return tmp_file_path
    settings = settings if settings is not None else CompilerSettings()
    info = Path(source_file_path if source_file_path else tmp_file_path)
    tmp_dir = str(Path(tmp_file_path).absolute().parent)
    template = (
        settings.output_paths.get(lang, "")
        .replace("${filename}", info.name)
        .replace("${basename}", info.stem)
        .replace("${tmpdir}", tmp_dir)
        .replace("${tempdir}", tmp_dir)
    )
    result = str(info.parent / template) if template else str(info.parent)
    if lang == "C++":
        result += settings.exe_suffix
    if create_directory:
        if lang == "C++":
            Path(result).absolute().parent.mkdir(parents=True, exist_ok=True)
        elif lang == "Java":
            Path(result).mkdir(parents=True, exist_ok=True)
    return result


def output_file_path(tmp_file_path, source_file_path, lang, settings=None, create_directory=True):
    """Like output_path, but names the file to run: the executable, or the Java class file."""
    settings = settings if settings is not None else CompilerSettings()
    path = output_path(tmp_file_path, source_file_path, lang, settings, create_directory)
    if lang == "Java":
        return str(Path(path) / f"{settings.java_class_name}.class")
    return path


def _decode(data: bytes, codec_name: str) -> str:
    try:
        codecs.lookup(codec_name)
    except LookupError:
        codec_name = "utf-8"
    return data.decode(codec_name, errors="replace")


class Compiler:
    """Runs one compilation at a time; kill() may be called from another thread."""

    def __init__(self, settings=None):
        self.settings = settings if settings is not None else CompilerSettings()
        self._process: subprocess.Popen | None = None
        self._killed = False
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._process is not None and self._process.poll() is None

    def start(self, tmp_file_path, source_file_path, compile_command, lang):
        """Compile and wait; raises CompilationFailed if the compiler cannot be started."""
        if not _exists(tmp_file_path):
            raise CompilationFailed(f"The source file [{tmp_file_path}] doesn't exist")
        if lang == "Python":
            return CompileResult("")

        args = split_command(compile_command)
        if not args:
            raise CompilationFailed(f"{lang}/Compile Command is empty")
        program, *args = args

        canonical = str(Path(tmp_file_path).resolve())
        if lang == "C++":
            args += [canonical, "-o", output_path(tmp_file_path, source_file_path, "C++", self.settings)]
            if _exists(source_file_path):
                args += ["-I", str(Path(source_file_path).resolve().parent)]
        elif lang == "Java":
            args += [canonical, "-d", output_path(tmp_file_path, source_file_path, "Java", self.settings)]
        else:
            raise CompilationFailed(f'Unsupported programming language "{lang}"')

        _log.info("<lang>: [%s], <program>: [%s], <args>: [%s]", lang, program, " ".join(args))
        workdir = Path(source_file_path if _exists(source_file_path) else tmp_file_path).resolve().parent

        try:
            process = subprocess.Popen(
                [program, *args],
                cwd=workdir,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as exc:
            raise CompilationFailed(
                f"Failed to start the compiler. Please check {lang}/Compile Command "
                "or add the compiler in the PATH environment variable."
            ) from exc

        with self._lock:
            self._process = process
            self._killed = False
        try:
            _, stderr = process.communicate()
        finally:
            with self._lock:
                self._process = None
                killed = self._killed
        output = _decode(stderr or b"", self.settings.output_codec(lang))
        return CompileResult(output, process.returncode, killed)

    def kill(self):
        """Kill a running compilation; returns whether there was one to kill."""
        with self._lock:
            if self._process is None or self._process.poll() is not None:
                return False
            _log.warning("Compiler process was running and is being forcefully killed")
            self._killed = True
            self._process.kill()
            return True