from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence

from evalshell.errors import BuildError
from evalshell.runtime.interfaces import Evaluation, Problem
from evalshell.runtime.model import Describe, Environment, Package, Test, unquote


def sample_environment() -> Environment:
    return Environment(
        children=[
            Package(
                "tests.arithmetic",
                [
                    Describe(
                        '"arithmetic"',
                        [Test('"testSum"'), Test('"testSub"'), Test('"testSumNeg"')],
                    ),
                ],
                file_name="tests/arithmetic.wtest",
            ),
            Package(
                "tests.strings",
                [
                    Test('"concat"'),
                    Describe('"upper"', [Test('"upper works"')]),
                ],
                file_name="tests/strings.wtest",
            ),
            Package("app", file_name="app.wlk"),
        ]
    )


class FakeInterpreter:
    """Evaluates arithmetic with ``eval``; anything containing ``boom`` errors."""

    def __init__(
        self,
        environment: Environment,
        repl_package: Optional[Package] = None,
        *,
        failing_tests: Sequence[str] = (),
        ran_tests: Optional[List[str]] = None,
    ) -> None:
        self.environment = environment
        self.repl_package = repl_package
        self.failing_tests = set(failing_tests)
        self.executed: List[str] = []
        self.ran_tests = ran_tests if ran_tests is not None else []

    def interpret(self, source: str) -> Evaluation:
        self.executed.append(source)
        if "boom" in source:
            error = ValueError(f"cannot evaluate {source}")
            return Evaluation(errored=True, result=str(error), error=error)
        if "crash" in source:
            raise RuntimeError("interpreter crashed")
        try:
            value: Any = eval(source, {"__builtins__": {}}, {})
        except (SyntaxError, NameError):
            value = None
        return Evaluation(errored=False, result=None if value is None else str(value))

    def fork(self) -> "FakeInterpreter":
        return FakeInterpreter(
            self.environment,
            self.repl_package,
            failing_tests=tuple(self.failing_tests),
            ran_tests=self.ran_tests,
        )

    def run_test(self, test: Test) -> None:
        self.ran_tests.append(test.fully_qualified_name)
        if unquote(test.name) in self.failing_tests:
            raise AssertionError(f"{unquote(test.name)} failed")

    def diagram_snapshot(self) -> Dict[str, Any]:
        return {"executed": list(self.executed)}


class FakeRuntime:
    keywords = ("object", "class", "var", "const")

    def __init__(
        self,
        environment_factory: Callable[[], Environment] = sample_environment,
        *,
        problems: Sequence[Problem] = (),
        failing_tests: Sequence[str] = (),
        build_error: Optional[Exception] = None,
    ) -> None:
        self.environment_factory = environment_factory
        self.problems = list(problems)
        self.failing_tests = tuple(failing_tests)
        self.build_error = build_error
        self.builds: List[Path] = []
        self.interpreters: List[FakeInterpreter] = []

    def build_environment(self, project: Path) -> Environment:
        self.builds.append(project)
        if self.build_error is not None:
            raise self.build_error
        return self.environment_factory()

    def validate_environment(self, environment: Environment) -> Sequence[Problem]:
        return list(self.problems)

    def create_interpreter(self, environment: Environment, repl_package: Optional[Package]) -> FakeInterpreter:
        interpreter = FakeInterpreter(environment, repl_package, failing_tests=self.failing_tests)
        self.interpreters.append(interpreter)
        return interpreter


class BrokenBuildRuntime(FakeRuntime):
    def __init__(self) -> None:
        super().__init__(build_error=BuildError("syntax error in app.wlk"))


class RecordingTransport:
    url = "http://localhost:0"

    def __init__(self) -> None:
        self.start_error: Optional[BaseException] = None
        self.pushed: List[tuple] = []
        self.started_with: Optional[Callable[[], Any]] = None

    def start(self, current_snapshot: Callable[[], Any]) -> None:
        self.started_with = current_snapshot

    def push(self, topic: str, payload: Any) -> None:
        self.pushed.append((topic, payload))
