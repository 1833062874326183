from __future__ import annotations

import argparse
import logging
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from .. import __version__
from ..config.loaders import load_config
from ..errors import EvalShellError
from ..utils.console import failure_description
from ..utils.paths import find_project_root
from .commands.repl import repl_cmd
from .commands.test import run_tests_cmd

EXIT_CONFIG_ERROR = 1

# argparse dest -> dotted config key
_CONFIG_FLAGS = {
    "runtime": "runtime",
    "project": "project",
    "host": "diagram.host",
    "port": "diagram.port",
}


def _add_project_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-p", "--project", type=str, help="Path to the project (default: config `project` or cwd).")
    parser.add_argument(
        "--skip-validations",
        action="store_true",
        dest="skip_validations",
        help="Do not fail when the environment has validation errors.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="evalshell",
        description="Interactive evaluation shell and test runner.",
        argument_default=argparse.SUPPRESS,
    )
    parser.add_argument("--version", action="version", version=f"evalshell {__version__}")
    parser.add_argument("--config", type=str, help="Path to YAML/JSON config file.")
    parser.add_argument("--runtime", type=str, help="Runtime plugin: `module:attribute` or entry point name.")
    parser.add_argument("--cwd", type=str, help="Working directory to run from.")
    parser.add_argument("--verbose", action="store_true", help="Debug-level logging.")

    subparsers = parser.add_subparsers(dest="command", metavar="<command>")

    repl_parser = subparsers.add_parser(
        "repl",
        help="Start the interactive shell.",
        argument_default=argparse.SUPPRESS,
    )
    repl_parser.add_argument(
        "auto_import",
        nargs="?",
        help="Source file whose package is imported into the shell.",
    )
    _add_project_options(repl_parser)
    repl_parser.add_argument("--dark-mode", action="store_true", dest="dark_mode", help="Dark viewer theme.")
    repl_parser.add_argument("--host", type=str, help="Dynamic diagram host (default: localhost).")
    repl_parser.add_argument("--port", type=int, help="Dynamic diagram port (default: 3000).")
    repl_parser.add_argument(
        "--skip-diagram",
        action="store_true",
        dest="skip_diagram",
        help="Do not start the dynamic diagram (enable later with :diagram).",
    )
    repl_parser.set_defaults(handler=repl_cmd)

    test_parser = subparsers.add_parser(
        "test",
        help="Run the project's tests.",
        argument_default=argparse.SUPPRESS,
    )
    test_parser.add_argument(
        "filter",
        nargs="?",
        help="Run tests whose full name contains this text (exclusive with --file/--describe/--test).",
    )
    _add_project_options(test_parser)
    test_parser.add_argument("-f", "--file", type=str, help="Run tests of this file.")
    test_parser.add_argument("-d", "--describe", type=str, help="Run tests of this describe.")
    test_parser.add_argument("-t", "--test", type=str, help="Run the test with this name.")
    test_parser.set_defaults(handler=run_tests_cmd)

    return parser


def _config_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {
        dotted: getattr(args, dest, None) for dest, dotted in _CONFIG_FLAGS.items()
    }
    if getattr(args, "project", None):
        # relative to where the command was typed, not to the config file
        overrides["project"] = str(Path(args.project).expanduser().resolve())
    if getattr(args, "skip_validations", False):
        overrides["skip_validations"] = True
    if getattr(args, "dark_mode", False):
        overrides["diagram.dark_mode"] = True
    if getattr(args, "skip_diagram", False):
        overrides["diagram.enabled"] = False
    return overrides


def _configure_logging(config: dict[str, Any], verbose: bool) -> None:
    level = "DEBUG" if verbose else (config.get("logging") or {}).get("level", "WARNING")
    logging.basicConfig(level=getattr(logging, str(level)), format="%(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if getattr(args, "cwd", None):
        os.chdir(args.cwd)

    if not hasattr(args, "handler"):
        parser.print_help()
        return 2

    project_root = find_project_root(Path.cwd())
    try:
        config = load_config(
            project_root=project_root,
            config_path=getattr(args, "config", None),
            overrides=_config_overrides(args),
        )
        _configure_logging(config, bool(getattr(args, "verbose", False)))
        return int(args.handler(args=args, config=config, project_root=project_root))
    except EvalShellError as exc:
        print(failure_description(str(exc)))
        return EXIT_CONFIG_ERROR


__all__ = ["main"]
