__all__ = [
    "TestSelection",
    "TestSelectionSpec",
    "execute_tests",
    "resolve",
    "run_tests",
    "select_tests",
]

from .resolver import TestSelection, TestSelectionSpec, resolve, select_tests
from .runner import execute_tests, run_tests
