from __future__ import annotations

import os
import traceback
from pathlib import Path
from typing import Any, Optional

SUCCESS_MARK = "✓"
FAILURE_MARK = "✗"
ENTER = "\n"

_PACKAGE_DIR = Path(__file__).resolve().parent.parent


def value_description(value: Any) -> str:
    return f"'{value}'"


def success_description(text: Any = "") -> str:
    return f"{SUCCESS_MARK} {'' if text is None else text}".rstrip()


def failure_description(text: Any = "", error: Optional[BaseException] = None) -> str:
    line = f"{FAILURE_MARK} {'' if text is None else text}".rstrip()
    if error is None:
        return line
    trace = sanitize_stack_trace(error)
    detail = "\n".join(f"    {entry}" for entry in trace) if trace else f"    {error}"
    return f"{line}\n{detail}"


def _is_internal_frame(filename: str) -> bool:
    try:
        Path(filename).resolve().relative_to(_PACKAGE_DIR)
    except (ValueError, OSError):
        return False
    return True


def sanitize_stack_trace(error: Optional[BaseException]) -> list[str]:
    """Render ``error`` as ``file:line in func`` entries plus the message.

    Frames that belong to evalshell itself are dropped and paths under the
    current working directory are made relative, so log entries point at the
    user's program rather than at the shell.
    """
    if error is None:
        return []
    cwd = os.getcwd()
    entries: list[str] = []
    for frame in traceback.extract_tb(error.__traceback__):
        if _is_internal_frame(frame.filename):
            continue
        filename = frame.filename
        if filename.startswith(cwd + os.sep):
            filename = os.path.relpath(filename, cwd)
        entries.append(f"{filename}:{frame.lineno} in {frame.name}")
    entries.append(f"{type(error).__name__}: {error}")
    return entries


def handle_error(error: BaseException) -> None:
    print(failure_description("Uh-oh... An error occurred during the process!", error))


__all__ = [
    "ENTER",
    "FAILURE_MARK",
    "SUCCESS_MARK",
    "failure_description",
    "handle_error",
    "sanitize_stack_trace",
    "success_description",
    "value_description",
]
