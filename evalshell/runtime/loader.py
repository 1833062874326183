from __future__ import annotations

import importlib
from importlib.metadata import entry_points
from pathlib import Path
from typing import Any, Optional

from ..errors import BuildError, ConfigError
from ..utils.console import failure_description
from .interfaces import Runtime
from .model import Environment

ENTRY_POINT_GROUP = "evalshell.runtimes"


def _import_reference(reference: str) -> Any:
    module_name, _, attr_path = reference.partition(":")
    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"cannot import runtime module {module_name!r}: {exc}") from exc
    for attr in attr_path.split(".") if attr_path else []:
        try:
            target = getattr(target, attr)
        except AttributeError as exc:
            raise ConfigError(f"runtime reference {reference!r} has no attribute {attr!r}") from exc
    return target


def _load_entry_point(name: str) -> Any:
    for ep in entry_points(group=ENTRY_POINT_GROUP):
        if ep.name == name:
            return ep.load()
    available = sorted(ep.name for ep in entry_points(group=ENTRY_POINT_GROUP))
    hint = f" (available: {', '.join(available)})" if available else ""
    raise ConfigError(f"unknown runtime {name!r}{hint}")


def load_runtime(reference: Optional[str]) -> Runtime:
    """Resolve ``module:attribute`` or an ``evalshell.runtimes`` entry point name.

    The target may already be a runtime object, or a zero-argument factory
    (typically the runtime class) that returns one.
    """
    if not reference:
        raise ConfigError(
            "no runtime configured: set `runtime` in evalshell.yaml, EVALSHELL_RUNTIME, or pass --runtime"
        )
    target = _import_reference(reference) if ":" in reference else _load_entry_point(reference)
    is_instance = isinstance(target, Runtime) and not isinstance(target, type)
    runtime = target if is_instance else target()
    if not isinstance(runtime, Runtime):
        raise ConfigError(f"{reference!r} does not provide a runtime")
    return runtime


def build_environment(runtime: Runtime, project: Path, *, skip_validations: bool) -> Environment:
    try:
        environment = runtime.build_environment(project)
    except BuildError:
        raise
    except Exception as exc:
        raise BuildError(f"failed to build environment for {project}: {exc}") from exc
    validate_environment(runtime, environment, skip_validations=skip_validations)
    return environment


def validate_environment(runtime: Runtime, environment: Environment, *, skip_validations: bool) -> None:
    if skip_validations:
        return
    problems = list(runtime.validate_environment(environment))
    for problem in problems:
        print(failure_description(f"[{problem.level}] {problem.code}: {problem.message}".rstrip(": ")))
    errors = [p for p in problems if p.level == "error"]
    if errors:
        raise BuildError(f"found {len(errors)} validation error(s); fix them or use --skip-validations")


__all__ = ["ENTRY_POINT_GROUP", "build_environment", "load_runtime", "validate_environment"]
