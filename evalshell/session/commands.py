from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union

from .multiline import MultilineAccumulator


class MetaCommand(Enum):
    QUIT = ("quit", ("q", "exit"), "Quit the REPL")
    RELOAD = ("reload", ("r",), "Reload all currently imported packages and reset evaluation state")
    RERUN = ("rerun", ("rr",), 'Same as "reload" but also reruns every command written since the last reload')
    DIAGRAM = ("diagram", ("d",), "Open the dynamic diagram")
    HELP = ("help", ("h",), "Show REPL help")

    def __init__(self, command_name: str, aliases: Tuple[str, ...], description: str) -> None:
        self.command_name = command_name
        self.aliases = aliases
        self.description = description

    def names(self, sigil: str = ":") -> Tuple[str, ...]:
        return tuple(sigil + name for name in (self.command_name, *self.aliases))


@dataclass(frozen=True)
class Meta:
    command: MetaCommand
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class Evaluate:
    unit: str


@dataclass(frozen=True)
class Continue:
    pass


Action = Union[Meta, Evaluate, Continue]


class CommandRouter:
    def __init__(self, sigil: str = ":") -> None:
        self.sigil = sigil
        self._table: Dict[str, MetaCommand] = {
            name: command for command in MetaCommand for name in command.names(sigil)
        }

    def lookup(self, token: str) -> MetaCommand:
        return self._table.get(token, MetaCommand.HELP)

    def route(self, raw_line: str, multiline: MultilineAccumulator) -> Action:
        line = raw_line.strip()
        if not line:
            return Continue()

        if line.startswith(self.sigil):
            # unknown trailing flags travel along in args and are never rejected
            head, *args = line.split()
            return Meta(self.lookup(head), tuple(args))

        if multiline.active or multiline.opens_block(line):
            unit = multiline.feed(line)
            return Continue() if unit is None else Evaluate(unit)

        return Evaluate(line)

    def completions(self) -> Tuple[str, ...]:
        return tuple(self._table)

    def help_text(self) -> str:
        lines = ["Write a sentence to evaluate it, or one of these commands:", ""]
        rows = [(", ".join(command.names(self.sigil)), command.description) for command in MetaCommand]
        width = max(len(names) for names, _ in rows)
        for names, description in rows:
            lines.append(f"  {names.ljust(width)}  {description}")
        lines.append("")
        return "\n".join(lines)


__all__ = ["Action", "CommandRouter", "Continue", "Evaluate", "Meta", "MetaCommand"]
