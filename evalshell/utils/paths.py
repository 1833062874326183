from __future__ import annotations

from pathlib import Path
from typing import Union

_CONFIG_FILENAMES = ("evalshell.yaml", "evalshell.yml", "evalshell.json")


def find_project_root(start_dir: Path) -> Path:
    start_dir = start_dir.resolve()
    for candidate in [start_dir, *start_dir.parents]:
        if any((candidate / name).is_file() for name in _CONFIG_FILENAMES):
            return candidate
    return start_dir


def find_project_config(root: Path) -> Path | None:
    for name in _CONFIG_FILENAMES:
        candidate = root / name
        if candidate.is_file():
            return candidate
    return None


def resolve_relative(root: Path, value: Union[str, Path]) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else (root / path)


def get_fqn(project: Union[str, Path], file_path: Union[str, Path]) -> str:
    """Map a source file to the fully-qualified name of its package.

    ``tests/arith.wtest`` inside ``project`` becomes ``tests.arith``. Absolute
    paths are made relative to the project first; paths outside the project
    keep their parts as given.
    """
    project_path = Path(project).expanduser().resolve()
    path = Path(file_path).expanduser()
    if path.is_absolute():
        try:
            path = path.resolve().relative_to(project_path)
        except ValueError:
            pass
    parts = [p for p in path.with_suffix("").parts if p not in ("", ".", path.anchor)]
    return ".".join(parts)


__all__ = ["find_project_config", "find_project_root", "get_fqn", "resolve_relative"]
