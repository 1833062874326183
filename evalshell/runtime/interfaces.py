from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Sequence, runtime_checkable

from .model import Environment, Package, Test


@dataclass(frozen=True)
class Evaluation:
    errored: bool
    result: Optional[str] = None
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Problem:
    level: str  # "error" | "warning"
    code: str
    message: str = ""


@runtime_checkable
class Interpreter(Protocol):
    def interpret(self, source: str) -> Evaluation: ...

    def fork(self) -> "Interpreter": ...

    def run_test(self, test: Test) -> None: ...

    def diagram_snapshot(self) -> Mapping[str, Any]: ...


@runtime_checkable
class Runtime(Protocol):
    keywords: Sequence[str]

    def build_environment(self, project: Path) -> Environment: ...

    def validate_environment(self, environment: Environment) -> Sequence[Problem]: ...

    def create_interpreter(self, environment: Environment, repl_package: Optional[Package]) -> Interpreter: ...


__all__ = ["Evaluation", "Interpreter", "Problem", "Runtime"]
