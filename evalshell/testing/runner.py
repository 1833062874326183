from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence, Tuple

from ..errors import EvalShellError
from ..logs.events import EventLogger
from ..runtime.interfaces import Interpreter, Runtime
from ..runtime.loader import build_environment
from ..runtime.model import Entity, Environment, Node, Test
from ..utils.console import (
    ENTER,
    failure_description,
    handle_error,
    sanitize_stack_trace,
    success_description,
    value_description,
)
from ..utils.timing import TimeMeasurer
from .resolver import TestSelectionSpec, select_tests

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_TESTS_FAILED = 2


@dataclass
class TestRunResult:
    successes: int = 0
    failures: List[Tuple[Test, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


def tabulation_for_node(node: Node) -> str:
    return "  " * (len(node.fully_qualified_name.split(".")) - 1)


def execute_tests(interpreter: Interpreter, environment: Environment, targets: Sequence[Test]) -> TestRunResult:
    """Run ``targets`` in declaration order, each on a forked interpreter.

    Prints the tree of entities that hold a target, then one line per test.
    A failing test never stops the remaining ones.
    """
    result = TestRunResult()
    selected = {id(test) for test in targets}
    for node in environment.descendants():
        tabulation = tabulation_for_node(node)
        if isinstance(node, Test):
            if id(node) not in selected:
                continue
            try:
                interpreter.fork().run_test(node)
            except Exception as exc:
                print(tabulation + failure_description(node.name))
                result.failures.append((node, exc))
            else:
                print(tabulation + success_description(node.name))
                result.successes += 1
        elif isinstance(node, Entity) and any(node.contains(test) for test in targets):
            print(tabulation + node.name)
    return result


def _summary(result: TestRunResult) -> str:
    failing = f"{len(result.failures)} failing"
    parts = [
        success_description(f"{result.successes} passing"),
        failure_description(failing) if result.failures else failing,
    ]
    return ENTER + " / ".join(parts) + ENTER


def run_tests(
    runtime: Runtime,
    spec: TestSelectionSpec,
    *,
    project: Path,
    skip_validations: bool = False,
    events: EventLogger,
) -> int:
    try:
        spec.validate()
        measurer = TimeMeasurer()

        match_log = spec.describe_match()
        print(f"Running all tests {match_log + ' ' if match_log else ''}on {value_description(project)}")
        print(f"Building environment for {value_description(project)}...{ENTER}")
        environment = build_environment(runtime, project, skip_validations=skip_validations)

        selection = select_tests(environment, spec)
        if selection.miss:
            print(failure_description(selection.miss))
        targets = selection.tests
        print(f"Running {len(targets)} tests...")

        run_timer = TimeMeasurer()
        interpreter = runtime.create_interpreter(environment, None)
        result = execute_tests(interpreter, environment, targets)
        print()
        logger.debug("Run finished in %d ms", run_timer.elapsed_ms())

        for test, error in result.failures:
            print()
            print(failure_description(test.fully_qualified_name, error))

        events.log(
            event_type="tests_executed",
            payload={
                "message": f"Test runner executed {spec.describe_match() + ' ' if spec.filter else ''}on {project}",
                "result": {"ok": result.successes, "failed": len(result.failures)},
                "failures": [
                    {"test": test.fully_qualified_name, "error": sanitize_stack_trace(error)}
                    for test, error in result.failures
                ],
                "time_elapsed": measurer.elapsed_ms(),
            },
        )
        print(_summary(result))
        return EXIT_OK if result.ok else EXIT_TESTS_FAILED
    except EvalShellError as exc:
        print(failure_description(str(exc)))
        return EXIT_ERROR
    except Exception as exc:
        handle_error(exc)
        return EXIT_ERROR


__all__ = [
    "EXIT_ERROR",
    "EXIT_OK",
    "EXIT_TESTS_FAILED",
    "TestRunResult",
    "execute_tests",
    "run_tests",
    "tabulation_for_node",
]
