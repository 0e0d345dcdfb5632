import sys
import threading
import time
from pathlib import Path

import pytest

from cpjudge.compiler import CompilerSettings, output_path
from cpjudge.runner import RunFailed, Runner, RunnerSettings, get_command

PY = f'"{sys.executable}"'


def _script(tmp_path: Path, body: str) -> str:
    path = tmp_path / "prog.py"
    path.write_text(body, encoding="utf-8")
    return str(path)


def test_get_command_python(tmp_path):
    script = _script(tmp_path, "pass\n")
    command = get_command(script, "", "Python", "python3", "a b")
    assert command == f'python3 "{Path(script).resolve()}" a b'


def test_get_command_cpp_quotes_executable(tmp_path):
    src = tmp_path / "sol.cpp"
    src.write_text("", encoding="utf-8")
    settings = RunnerSettings()
    exe = output_path(str(src), "", "C++", settings.compiler)
    assert get_command(str(src), "", "C++", "", "x", settings) == f'"{exe}" x'


def test_get_command_java_uses_class_name(tmp_path):
    src = tmp_path / "Main.java"
    src.write_text("", encoding="utf-8")
    settings = RunnerSettings(compiler=CompilerSettings(java_class_name="Main"))
    class_path = output_path(str(src), "", "Java", settings.compiler)
    command = get_command(str(src), "", "Java", "java", "", settings)
    assert command == f'java -classpath "{class_path}" Main '


def test_get_command_unknown_language_is_empty(tmp_path):
    assert get_command(str(tmp_path / "a.rs"), "", "Rust", "run", "") == ""


def test_run_missing_file_raises(tmp_path):
    with pytest.raises(RunFailed):
        Runner(0).run(str(tmp_path / "missing.py"), "", "Python", PY, "", "", 1000)


def test_run_unknown_language_raises(tmp_path):
    script = _script(tmp_path, "pass\n")
    with pytest.raises(RunFailed):
        Runner(0).run(script, "", "Rust", PY, "", "", 1000)


def test_run_echoes_input(tmp_path):
    script = _script(tmp_path, "import sys\nsys.stdout.write(sys.stdin.read())\n")
    result = Runner(4).run(script, "", "Python", PY, "", "1 2 3\n", 10000)
    assert result.stdout.replace("\r\n", "\n") == "1 2 3\n"
    assert result.exit_code == 0
    assert result.index == 4
    assert result.tle is False
    assert result.time_used >= 0


def test_run_reports_exit_code_and_stderr(tmp_path):
    script = _script(tmp_path, "import sys\nsys.stderr.write('oops')\nsys.exit(3)\n")
    result = Runner(0).run(script, "", "Python", PY, "", "", 10000)
    assert result.exit_code == 3
    assert result.stderr == "oops"
    assert result.output_limit_exceeded is None


def test_run_passes_arguments(tmp_path):
    script = _script(tmp_path, "import sys\nprint(' '.join(sys.argv[1:]))\n")
    result = Runner(0).run(script, "", "Python", PY, "alpha beta", "", 10000)
    assert result.stdout.split() == ["alpha", "beta"]


def test_run_strips_nul_bytes(tmp_path):
    script = _script(tmp_path, "import sys\nsys.stdout.write('a\\0b')\n")
    result = Runner(0).run(script, "", "Python", PY, "", "", 10000)
    assert result.stdout == "ab"


def test_run_time_limit_exceeded(tmp_path):
    script = _script(tmp_path, "import time\ntime.sleep(30)\n")
    result = Runner(0).run(script, "", "Python", PY, "", "", 300)
    assert result.tle is True
    assert result.exit_code != 0


def test_run_output_limit_exceeded(tmp_path):
    script = _script(tmp_path, "import sys, time\nsys.stdout.write('x' * 5000)\nsys.stdout.flush()\ntime.sleep(30)\n")
    settings = RunnerSettings(output_length_limit=100)
    result = Runner(0, settings).run(script, "", "Python", PY, "", "", 20000)
    assert result.output_limit_exceeded == "stdout"
    assert result.tle is False
    assert len(result.stdout) > 100


def test_kill_from_another_thread(tmp_path):
    script = _script(tmp_path, "import time\ntime.sleep(30)\n")
    runner = Runner(0)
    killed = []

    def killer():
        deadline = time.monotonic() + 10
        while time.monotonic() < deadline and not runner.running:
            time.sleep(0.01)
        killed.append(runner.kill())

    thread = threading.Thread(target=killer)
    thread.start()
    result = runner.run(script, "", "Python", PY, "", "", 20000)
    thread.join()
    assert killed == [True]
    assert result.killed is True
    assert result.tle is False


def test_kill_without_process_returns_false():
    assert Runner(0).kill() is False