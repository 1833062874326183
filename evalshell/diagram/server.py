"""HTTP + SSE transport for the dynamic diagram.

Serves the viewer page and a Server-Sent Events stream. The aiohttp
application runs on its own event loop in a daemon thread so the REPL keeps
reading lines while viewers connect; pushes from the REPL thread are handed
to that loop with ``call_soon_threadsafe`` and never wait for delivery.
"""
from __future__ import annotations

import asyncio
import json
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

from aiohttp import web

from ..utils.console import failure_description, success_description
from .bridge import INIT_TOPIC, UPDATE_TOPIC

logger = logging.getLogger(__name__)

STATIC_DIR = Path(__file__).resolve().parent / "static"
KEEPALIVE_SECONDS = 30.0
STATIC_MAX_AGE = 60 * 60 * 24


def _sse_frame(topic: str, payload: Any) -> bytes:
    return f"event: {topic}\ndata: {json.dumps(payload, default=str)}\n\n".encode("utf-8")


class DiagramServer:
    def __init__(
        self,
        *,
        host: str,
        port: int,
        viewer_options: Optional[Mapping[str, Any]] = None,
        queue_size: int = 256,
    ) -> None:
        self.host = host
        self.port = port
        self.viewer_options = dict(viewer_options or {})
        self.start_error: Optional[BaseException] = None
        self._queue_size = queue_size
        self._queues: list[asyncio.Queue[dict[str, Any]]] = []
        self._current_snapshot: Callable[[], Optional[Mapping[str, Any]]] = lambda: None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._thread: Optional[threading.Thread] = None
        self._ready = threading.Event()
        self.app = self._build_app()

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    @property
    def viewer_count(self) -> int:
        return len(self._queues)

    # ── Application ──

    def _build_app(self) -> web.Application:
        app = web.Application(middlewares=[self._cors_middleware])
        r = app.router
        r.add_get("/", self._handle_index)
        r.add_get("/health", self._handle_health)
        r.add_get("/events", self._handle_events)
        return app

    @web.middleware
    async def _cors_middleware(self, request: web.Request, handler) -> web.StreamResponse:
        response = await handler(request)
        if not response.prepared:
            response.headers["Access-Control-Allow-Origin"] = "*"
        return response

    async def _handle_index(self, request: web.Request) -> web.StreamResponse:
        return web.FileResponse(
            STATIC_DIR / "index.html",
            headers={"Cache-Control": f"max-age={STATIC_MAX_AGE}"},
        )

    async def _handle_health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "viewers": self.viewer_count})

    async def _handle_events(self, request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse(
            status=200,
            headers={
                "Content-Type": "text/event-stream",
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "Access-Control-Allow-Origin": "*",
            },
        )
        await response.prepare(request)

        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._queue_size)
        self._queues.append(queue)
        logger.debug("Connected to dynamic diagram viewers=%d", self.viewer_count)

        try:
            await response.write(_sse_frame(INIT_TOPIC, self.viewer_options))
            snapshot = self._current_snapshot()
            if snapshot is not None:
                await response.write(_sse_frame(UPDATE_TOPIC, snapshot))
            while True:
                try:
                    msg = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                    await response.write(_sse_frame(msg["event"], msg["data"]))
                except asyncio.TimeoutError:
                    await response.write(b": keepalive\n\n")
        except (ConnectionResetError, asyncio.CancelledError):
            pass
        finally:
            self._queues.remove(queue)
            logger.debug("Dynamic diagram closed viewers=%d", self.viewer_count)
        return response

    # ── Fan-out ──

    def broadcast(self, topic: str, payload: Mapping[str, Any]) -> None:
        """Enqueue a message for every viewer; must run on the server loop."""
        msg = {"event": topic, "data": payload}
        for queue in list(self._queues):
            try:
                queue.put_nowait(msg)
            except asyncio.QueueFull:
                logger.warning("diagram viewer queue full, dropping %s", topic)

    def push(self, topic: str, payload: Mapping[str, Any]) -> None:
        loop = self._loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self.broadcast, topic, payload)

    # ── Lifecycle ──

    def start(self, current_snapshot: Callable[[], Optional[Mapping[str, Any]]]) -> None:
        self._current_snapshot = current_snapshot
        self._thread = threading.Thread(target=self._serve_forever, name="diagram-server", daemon=True)
        self._thread.start()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._ready.wait(timeout)

    def stop(self) -> None:
        loop = self._loop
        if loop is not None and not loop.is_closed():
            loop.call_soon_threadsafe(loop.stop)
        if self._thread is not None:
            self._thread.join(timeout=5)

    async def _start_site(self) -> web.AppRunner:
        runner = web.AppRunner(self.app)
        await runner.setup()
        site = web.TCPSite(runner, self.host, self.port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        if self.port == 0 and runner.addresses:
            self.port = int(runner.addresses[0][1])
        return runner

    def _serve_forever(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        try:
            runner = loop.run_until_complete(self._start_site())
        except OSError as exc:
            self.start_error = exc
            print(failure_description(f"Dynamic diagram could not listen on {self.url}", exc))
            self._ready.set()
            loop.close()
            return

        self._loop = loop
        logger.info("diagram server listening on %s", self.url)
        print(success_description(f"Dynamic diagram available at: {self.url}"))
        self._ready.set()
        try:
            loop.run_forever()
        finally:
            loop.run_until_complete(runner.cleanup())
            loop.close()


def diagram_server_factory(config: Mapping[str, Any], project: str) -> Callable[[], DiagramServer]:
    diagram_cfg = config.get("diagram") or {}
    host = str(diagram_cfg.get("host") or "localhost")
    port = int(diagram_cfg.get("port", 3000))
    viewer_options = {
        "project": project,
        "host": host,
        "port": port,
        "darkMode": bool(diagram_cfg.get("dark_mode", False)),
    }
    return lambda: DiagramServer(host=host, port=port, viewer_options=viewer_options)


__all__ = ["DiagramServer", "STATIC_DIR", "diagram_server_factory"]
