from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Optional

from ..diagram.bridge import DiagramBridge
from ..logs.events import EventLogger
from ..runtime.interfaces import Evaluation, Interpreter, Runtime
from ..runtime.loader import build_environment
from ..runtime.model import Environment, Package
from ..utils.console import (
    failure_description,
    handle_error,
    sanitize_stack_trace,
    success_description,
    value_description,
)
from ..utils.paths import get_fqn
from ..utils.timing import TimeMeasurer
from .commands import CommandRouter, Evaluate, Meta, MetaCommand
from .history import SessionHistory
from .multiline import MultilineAccumulator

EXIT_QUIT = 0
EXIT_INVALID_AUTO_IMPORT = 11
EXIT_BUILD_FAILED = 12

PROMPT_NAME = "evalshell"


class Phase(Enum):
    READY = "ready"
    RELOADING = "reloading"


@dataclass(frozen=True)
class ExecutionContext:
    environment: Environment
    interpreter: Interpreter
    repl_package_name: Optional[str] = None


@dataclass
class SessionState:
    context: ExecutionContext
    history: SessionHistory = field(default_factory=SessionHistory)
    multiline: MultilineAccumulator = field(default_factory=MultilineAccumulator)
    phase: Phase = Phase.READY


@dataclass(frozen=True)
class ReplOptions:
    project: Path
    auto_import: Optional[str] = None
    skip_validations: bool = False
    sigil: str = ":"
    open_marker: str = "{"
    close_marker: str = "}"


class ContextBuilder:
    """Builds a fresh ExecutionContext; used at bootstrap and on every reload.

    Failures are fatal for the process: an auto-import target that is not a
    package exits with 11, anything else that prevents building exits with 12.
    """

    def __init__(self, runtime: Runtime, options: ReplOptions, *, events: EventLogger) -> None:
        self.runtime = runtime
        self.options = options
        self.events = events

    def _resolve_auto_import(self, environment: Environment) -> Optional[Package]:
        auto_import = self.options.auto_import
        if not auto_import:
            return None
        node = environment.get_node_by_fqn(get_fqn(self.options.project, auto_import))
        if isinstance(node, Package):
            return node
        print(
            failure_description(
                f"File {value_description(auto_import)} doesn't exist or is outside of project {self.options.project}!"
            )
        )
        raise SystemExit(EXIT_INVALID_AUTO_IMPORT)

    def __call__(self) -> ExecutionContext:
        measurer = TimeMeasurer()
        project = self.options.project
        try:
            environment = build_environment(self.runtime, project, skip_validations=self.options.skip_validations)
            repl_package = self._resolve_auto_import(environment)
            interpreter = self.runtime.create_interpreter(environment, repl_package)
        except Exception as exc:
            handle_error(exc)
            self.events.log(
                event_type="build_failed",
                payload={
                    "message": f"REPL execution - build failed for {project}",
                    "time_elapsed": measurer.elapsed_ms(),
                    "ok": False,
                    "error": sanitize_stack_trace(exc),
                },
            )
            raise SystemExit(EXIT_BUILD_FAILED) from exc
        return ExecutionContext(
            environment=environment,
            interpreter=interpreter,
            repl_package_name=repl_package.name if repl_package is not None else None,
        )


class SessionController:
    def __init__(
        self,
        build_context: Callable[[], ExecutionContext],
        *,
        bridge: DiagramBridge,
        router: Optional[CommandRouter] = None,
        events: Optional[EventLogger] = None,
        open_marker: str = "{",
        close_marker: str = "}",
    ) -> None:
        self._build_context = build_context
        self._markers = (open_marker, close_marker)
        self.bridge = bridge
        self.router = router or CommandRouter()
        self.events = events or EventLogger(path=None)
        self.state = self._new_state(build_context())
        self._handlers: Dict[MetaCommand, Callable[[], None]] = {
            MetaCommand.QUIT: self.quit,
            MetaCommand.RELOAD: self.reload,
            MetaCommand.RERUN: lambda: self.reload(rerun=True),
            MetaCommand.DIAGRAM: self.toggle_diagram,
            MetaCommand.HELP: self.show_help,
        }

    def _new_state(self, context: ExecutionContext) -> SessionState:
        return SessionState(context=context, multiline=MultilineAccumulator(*self._markers))

    @property
    def context(self) -> ExecutionContext:
        return self.state.context

    @property
    def history(self) -> SessionHistory:
        return self.state.history

    @property
    def prompt(self) -> str:
        if self.state.multiline.active:
            return self.state.multiline.continuation_prompt
        name = self.state.context.repl_package_name
        return f"{PROMPT_NAME}:{name}> " if name else f"{PROMPT_NAME}> "

    # ── Input ──

    def handle_line(self, raw_line: str) -> None:
        action = self.router.route(raw_line, self.state.multiline)
        if isinstance(action, Meta):
            self._handlers[action.command]()
        elif isinstance(action, Evaluate):
            if self.state.phase is not Phase.READY:
                # never run against a context that is being replaced
                print(failure_description(f"Environment is reloading, {value_description(action.unit)} was not evaluated"))
                return
            self.evaluate(action.unit)

    def run(self, read_line: Callable[[str], str]) -> int:
        while True:
            try:
                line = read_line(self.prompt)
            except KeyboardInterrupt:
                self.state.multiline.abort()
                continue
            except EOFError:
                print()
                return EXIT_QUIT
            self.handle_line(line)

    # ── Evaluation ──

    def evaluate(self, unit: str) -> Evaluation:
        state = self.state
        try:
            evaluation = state.context.interpreter.interpret(unit)
        except Exception as exc:
            evaluation = Evaluation(errored=True, result=str(exc), error=exc)
        state.history.append(unit)

        if evaluation.errored:
            print(failure_description(evaluation.result or "Evaluation failed", evaluation.error))
            self.events.log(
                event_type="evaluation_failed",
                payload={"unit": unit, "ok": False, "error": sanitize_stack_trace(evaluation.error)},
            )
        else:
            print(success_description(evaluation.result))

        self.bridge.notify(state.context)
        return evaluation

    # ── Meta-commands ──

    def quit(self) -> None:
        raise SystemExit(EXIT_QUIT)

    def reload(self, rerun: bool = False) -> None:
        print(success_description("Reloading environment"))
        previous = self.state
        previous.phase = Phase.RELOADING
        context = self._build_context()
        self.state = self._new_state(context)

        self.bridge.notify(context)
        if rerun:
            for unit in previous.history.snapshot():
                self.handle_line(unit)

    def toggle_diagram(self) -> None:
        self.bridge.toggle(self.state.context)

    def show_help(self) -> None:
        print(self.router.help_text())


__all__ = [
    "EXIT_BUILD_FAILED",
    "EXIT_INVALID_AUTO_IMPORT",
    "EXIT_QUIT",
    "ContextBuilder",
    "ExecutionContext",
    "Phase",
    "ReplOptions",
    "SessionController",
    "SessionState",
]
