"""Compile, run and judge competitive programming solutions against test cases."""

__version__ = "7.1.0"