from __future__ import annotations

from pathlib import Path
from typing import Any

from ...logs.events import event_logger_from_config
from ...runtime.loader import load_runtime
from ...testing.resolver import TestSelectionSpec
from ...testing.runner import run_tests
from ...utils.paths import resolve_relative


def run_tests_cmd(*, args: Any, config: dict[str, Any], project_root: Path) -> int:
    spec = TestSelectionSpec(
        filter=getattr(args, "filter", None),
        file=getattr(args, "file", None),
        describe=getattr(args, "describe", None),
        test=getattr(args, "test", None),
    )
    return run_tests(
        load_runtime(config.get("runtime")),
        spec,
        project=resolve_relative(project_root, config.get("project") or "."),
        skip_validations=bool(config.get("skip_validations", False)),
        events=event_logger_from_config(config, project_root),
    )


__all__ = ["run_tests_cmd"]
