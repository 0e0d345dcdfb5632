# cpjudge

A library for the compile–run–check loop of competitive programming. It
compiles a C++ or Java solution, runs it on a test case with a time limit and
an output limit, and judges the output with a built-in checker or a compiled
testlib-style checker. It has no dependencies beyond the standard library.

## Installation

```
pip install .
```

For the test suite:

```
pip install ".[test]"
pytest
```

## Modules

### `cpjudge.compiler`

- `Compiler(settings=None)` compiles one file at a time.
  `start(tmp_file_path, source_file_path, compile_command, lang)` waits for the
  compiler and returns a `CompileResult` (`output` is the compiler's standard
  error, plus `exit_code`, `killed` and the `success` property). `lang` is
  `"C++"` or `"Java"`; `"Python"` is accepted and returns an empty result
  without compiling. It raises `CompilationFailed` when the file does not exist,
  the command is empty, the language is unsupported, or the compiler cannot be
  started. `kill()` stops a running compilation from another thread.
- `CompilerSettings` holds the output path templates per language (defaults
  `${tmpdir}/${basename}` for C++ and `${tmpdir}` for Java), the Java class
  name (`"a"`), the codecs used to decode compiler output, and an executable
  suffix.
- `output_path(...)` gives the executable for C++, the class directory for
  Java and the file itself for Python, filling in `${filename}`, `${basename}`,
  `${tmpdir}` and `${tempdir}`, and creates the directory unless told not to.
  `output_file_path(...)` names the file to run (the `.class` file for Java).
- `split_command(command)` splits a command line on whitespace; double quotes
  group words and three double quotes in a row give a literal quote.

### `cpjudge.runner`

- `Runner(index, settings=None)`. `run(tmp_file_path, source_file_path, lang,
  run_command, args, input_text, time_limit)` feeds `input_text` to standard
  input, kills the program after `time_limit` milliseconds or when stdout or
  stderr grows past `RunnerSettings.output_length_limit`, and returns a
  `RunResult` (`stdout`, `stderr`, `exit_code`, `time_used` in milliseconds,
  `tle`, `output_limit_exceeded`, `killed`). It raises `RunFailed` when the
  program cannot be started. `kill()` stops a running program.
- `run_detached(...)` opens the program in a terminal window (Terminal via
  AppleScript on macOS, `cmd` on Windows, otherwise the configured terminal
  program, `xterm -e` by default) and returns the started process.
- `get_command(...)` builds the command line for a language.

### `cpjudge.checker`

- `check_ignore_trailing_spaces(output, expected)` accepts when the lines match
  after removing trailing spaces and trailing blank lines.
- `check_strict(output, expected)` accepts only identical text, treating
  `\r\n`, `\r` and `\n` alike.
- `verdict_for_exit_code(code)` maps testlib exit codes (`TResult`) to
  `Verdict.AC` or `Verdict.WA`, and unknown codes to `None`.
- `Checker(checker_type, logger, settings=None, checker_path=None,
  testlib_dir=None)` with a `CheckerType`. The built-in types
  `IGNORE_TRAILING_SPACES` and `STRICT` judge in-process. The testlib types
  (`NCMP`, `RCMP4`, `RCMP6`, `RCMP9`, `WCMP`, `NYESNO`) read
  `<testlib_dir>/checkers/<name>.cpp` and `<testlib_dir>/testlib.h`; `CUSTOM`
  reads `checker_path`. `prepare()` compiles the checker (with
  `compile_command`, `"g++ -Wall"` by default). `request_check(index,
  input_text, output, expected)` returns the verdict, or `None` when the
  request is queued until the checker is compiled or no verdict could be
  reached; `on_check_finished(index, verdict)` is called for every verdict.
  The checker is recompiled when its source changes. `clear_tasks()` drops
  queued requests and kills running checks; `close()` also removes the
  temporary files. Messages go to `logger`, normally a `MessageLogger`.

### `cpjudge.messages`

`MessageLogger` renders messages as HTML lines (`info`, `warn`, `error`,
`message`), HTML-escaping them by default, cutting bodies over the length
limit, and keeps them in `entries`. `anchor_clicked(url)` passes the page of a
`#Preferences/<page>` link to `on_preferences_link`. `format_message` does the
formatting alone.

### `cpjudge.eventlog`

`EventLog(log_dir=None)` writes a timestamped diagnostic log to
`<log_dir>/log/` (by default under `$XDG_CACHE_HOME/cpjudge` or
`~/.cache/cpjudge`), keeping the newest 50 log files, or to standard error.
`clear_old_logs()` removes all but the current file. `format_header` builds
the line prefix.

### `cpjudge.translator`

`resolve_locale`, `lang_name`, `lang_suffix` and `lang_code` map a language
setting (or `"system"` with a system locale) to a locale and its suffixes.

### `cpjudge.copypaster`

`TestCasesCopyPaster` copies the checked test cases of one collection and
pastes them into another.

## Example

```python
from cpjudge.checker import check_ignore_trailing_spaces, check_strict

check_ignore_trailing_spaces("1 2  \n3\n\n", "1 2\n3")   # True
check_strict("1 2\r\n", "1 2\n")                         # True
check_strict("1 2 \n", "1 2\n")                          # False
```

## What it does not do

This is a library only: there is no command-line tool, no editor or window,
and no saving of sessions or settings. The testlib checker sources and
`testlib.h` are not included; pass a directory that holds them as
`testlib_dir`. Compilers and interpreters are not included either; they must
be installed and named in the compile and run commands.