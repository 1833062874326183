from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, List, Mapping, Optional, Protocol

from ..utils.console import failure_description, success_description

if TYPE_CHECKING:
    from ..session.controller import ExecutionContext

logger = logging.getLogger(__name__)

INIT_TOPIC = "initDiagram"
UPDATE_TOPIC = "updateDiagram"


class DiagramSink(Protocol):
    def push(self, topic: str, payload: Mapping[str, Any]) -> None: ...


class DiagramTransport(DiagramSink, Protocol):
    url: str
    start_error: Optional[BaseException]

    def start(self, current_snapshot: Callable[[], Optional[Mapping[str, Any]]]) -> None: ...


class DiagramBridge:
    """Broadcasts a complete snapshot of the execution context to live viewers.

    Disabled bridges ignore notifications. Enabling starts the transport once
    and cannot be undone for the rest of the session. Pushes are best-effort:
    a failing sink is logged and skipped so evaluation never sees the error.
    """

    def __init__(self, transport_factory: Callable[[], DiagramTransport]) -> None:
        self._transport_factory = transport_factory
        self._transport: Optional[DiagramTransport] = None
        self._sinks: List[DiagramSink] = []
        self._snapshot: Optional[Mapping[str, Any]] = None

    @property
    def enabled(self) -> bool:
        return self._transport is not None

    @property
    def url(self) -> Optional[str]:
        return self._transport.url if self._transport is not None else None

    def add_sink(self, sink: DiagramSink) -> None:
        self._sinks.append(sink)

    def current_snapshot(self) -> Optional[Mapping[str, Any]]:
        return self._snapshot

    def enable(self, context: ExecutionContext) -> None:
        if self.enabled:
            return
        self._snapshot = self._take_snapshot(context)
        transport = self._transport_factory()
        self._transport = transport
        self._sinks.insert(0, transport)
        transport.start(self.current_snapshot)

    def notify(self, context: ExecutionContext) -> None:
        if not self.enabled:
            return
        snapshot = self._take_snapshot(context)
        if snapshot is None:
            return
        self._snapshot = snapshot
        for sink in list(self._sinks):
            try:
                sink.push(UPDATE_TOPIC, snapshot)
            except Exception:
                logger.warning("diagram push to %r failed", sink, exc_info=True)

    def toggle(self, context: ExecutionContext) -> None:
        if not self.enabled:
            self.enable(context)
            return
        if self._transport.start_error is not None:
            print(failure_description(f"Dynamic diagram is not available at {self.url}", self._transport.start_error))
            return
        self.notify(context)
        print(success_description(f"Dynamic diagram reloaded at {self.url}"))

    def _take_snapshot(self, context: ExecutionContext) -> Optional[Mapping[str, Any]]:
        try:
            return context.interpreter.diagram_snapshot()
        except Exception:
            logger.warning("could not compute diagram snapshot", exc_info=True)
            return None


__all__ = ["DiagramBridge", "DiagramSink", "DiagramTransport", "INIT_TOPIC", "UPDATE_TOPIC"]
