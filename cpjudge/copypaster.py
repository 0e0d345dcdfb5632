"""Copy checked test cases from one collection and paste them into another."""

from __future__ import annotations

import logging
from typing import Protocol

_log = logging.getLogger(__name__)


class TestCaseCollection(Protocol):
    def __len__(self) -> int: ...

    def is_checked(self, index: int) -> bool: ...

    def input(self, index: int) -> str: ...

    def expected(self, index: int) -> str: ...

    def add_test_case(self, input_text: str, expected: str) -> object: ...


class TestCasesCopyPaster:
    """Clipboard for test cases: holds (input, expected) pairs between copy and paste."""

    __test__ = False

    def __init__(self):
        self._cases: list[tuple[str, str]] = []

    def copy(self, testcases):
        """Replace the clipboard with the checked test cases; returns how many were copied."""
        _log.info("Copy")
        self._cases = [
            (testcases.input(i), testcases.expected(i))
            for i in range(len(testcases))
            if testcases.is_checked(i)
        ]
        return len(self._cases)

    def paste(self, testcases):
        """Append the copied test cases to the collection; returns how many were added."""
        _log.info("Paste")
        for input_text, expected in self._cases:
            testcases.add_test_case(input_text, expected)
        return len(self._cases)