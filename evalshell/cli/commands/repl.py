from __future__ import annotations

from pathlib import Path
from typing import Any

from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import FileHistory, InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout

from ...diagram.bridge import DiagramBridge
from ...diagram.server import diagram_server_factory
from ...logs.events import event_logger_from_config
from ...runtime.loader import load_runtime
from ...session.autocomplete import ReplCompleter
from ...session.commands import CommandRouter
from ...session.controller import ContextBuilder, ReplOptions, SessionController
from ...utils.paths import resolve_relative


def _history(repl_cfg: dict[str, Any], project_root: Path):
    history_file = repl_cfg.get("history_file")
    if not history_file:
        return InMemoryHistory()
    path = resolve_relative(project_root, history_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    return FileHistory(str(path))


def repl_cmd(*, args: Any, config: dict[str, Any], project_root: Path) -> int:
    runtime = load_runtime(config.get("runtime"))
    project = resolve_relative(project_root, config.get("project") or ".")
    repl_cfg = config.get("repl") or {}
    events = event_logger_from_config(config, project_root)

    options = ReplOptions(
        project=project,
        auto_import=getattr(args, "auto_import", None),
        skip_validations=bool(config.get("skip_validations", False)),
        sigil=repl_cfg.get("sigil", ":"),
        open_marker=repl_cfg.get("open_marker", "{"),
        close_marker=repl_cfg.get("close_marker", "}"),
    )
    target = f"for file '{options.auto_import}' " if options.auto_import else ""
    print(f"Initializing REPL {target}on '{project}'")

    router = CommandRouter(options.sigil)
    controller = SessionController(
        ContextBuilder(runtime, options, events=events),
        bridge=DiagramBridge(diagram_server_factory(config, str(project))),
        router=router,
        events=events,
        open_marker=options.open_marker,
        close_marker=options.close_marker,
    )
    events.log(
        event_type="repl_started",
        payload={"project": str(project), "auto_import": options.auto_import, "ok": True},
    )
    if (config.get("diagram") or {}).get("enabled", True):
        controller.toggle_diagram()

    session: PromptSession[str] = PromptSession(
        history=_history(repl_cfg, project_root),
        completer=ReplCompleter(getattr(runtime, "keywords", ()), router.completions(), events=events),
        complete_while_typing=False,
    )
    with patch_stdout():
        return controller.run(lambda prompt: session.prompt(FormattedText([("bold", prompt)])))


__all__ = ["repl_cmd"]
