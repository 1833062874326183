from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from prompt_toolkit.completion import Completer, Completion

from ..logs.events import EventLogger

CLASSES = ("new Date()", "new Dictionary()")
LAMBDAS = ("{ n => n > 0 }",)
LIBS = ("console.println",)


def complete(text: str, completions: Sequence[str]) -> List[str]:
    """Prefix matches for ``text``, or every completion when nothing matches."""
    hits = [c for c in completions if c.startswith(text)]
    return hits if hits else list(completions)


class ReplCompleter(Completer):
    def __init__(
        self,
        keywords: Iterable[str] = (),
        commands: Iterable[str] = (),
        events: Optional[EventLogger] = None,
    ) -> None:
        self.words: List[str] = [*keywords, *CLASSES, *LAMBDAS, *LIBS, *commands]
        self.events = events

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if self.events is not None:
            self.events.log(event_type="autocomplete", payload={"input": text, "ok": True})
        for word in complete(text, self.words):
            yield Completion(word, start_position=-len(text))


__all__ = ["ReplCompleter", "complete"]
