"""FastAPI application exposing documentation generation and progress streaming."""

from __future__ import annotations

import asyncio
import threading
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..config import DockWikiConfig, load_config
from ..logging import get_logger
from ..orchestrator import Orchestrator, build_pool
from ..progress import ProgressReporter

logger = get_logger("service")

SEND_TIMEOUT = 5.0


class GenerateRequest(BaseModel):
    owner: str
    repo: str


class GenerateResponse(BaseModel):
    documentation: List[Dict[str, Any]]
    wikiUrl: str


class HealthResponse(BaseModel):
    status: str


class ProgressHub:
    """Forwards progress events to the most recently connected WebSocket observer."""

    def __init__(self) -> None:
        self._socket: Optional[WebSocket] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    def attach(self, websocket: WebSocket, loop: asyncio.AbstractEventLoop) -> None:
        with self._lock:
            self._socket = websocket
            self._loop = loop

    def detach(self, websocket: WebSocket) -> None:
        with self._lock:
            if self._socket is websocket:
                self._socket = None
                self._loop = None

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def send(self, event: Dict[str, Any]) -> None:
        """Deliver ``event``; dropped silently when nobody is listening."""
        with self._lock:
            websocket, loop = self._socket, self._loop
        if websocket is None or loop is None or loop.is_closed():
            return
        future = asyncio.run_coroutine_threadsafe(websocket.send_json(event), loop)
        if _running_loop() is loop:
            return
        future.result(timeout=SEND_TIMEOUT)


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


def create_app(
    orchestrator_factory: Callable[[], Orchestrator] | None = None,
    *,
    config: DockWikiConfig | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    The credential pool is created once here and shared by every request's
    orchestrator so rate-limit state survives across requests. Browser
    clients on other origins are admitted per ``config.service.cors_origins``.
    """
    if config is None:
        config = load_config(Path.cwd()) if orchestrator_factory is None else DockWikiConfig()
    if orchestrator_factory is None:
        pool = build_pool(config)
        settings = config

        def orchestrator_factory() -> Orchestrator:
            return Orchestrator(settings, pool=pool)

    app = FastAPI(title="DockWiki Service", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(config.service.cors_origins),
        allow_methods=["*"],
        allow_headers=["*"],
    )
    hub = ProgressHub()
    app.state.progress_hub = hub

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/api/generate-docs", response_model=GenerateResponse)
    async def generate_docs(payload: GenerateRequest) -> Any:
        orchestrator = orchestrator_factory()
        reporter = ProgressReporter(hub.send)

        def _run() -> Dict[str, Any]:
            return orchestrator.generate(payload.owner, payload.repo, reporter=reporter).to_payload()

        loop = asyncio.get_running_loop()
        try:
            result = await loop.run_in_executor(None, _run)
        except Exception as exc:
            logger.error("Request for %s/%s failed: %s", payload.owner, payload.repo, exc)
            return JSONResponse(status_code=500, content={"error": str(exc)})
        return GenerateResponse(**result)

    @app.websocket("/ws/progress")
    async def progress_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        hub.attach(websocket, asyncio.get_running_loop())
        logger.info("Progress observer connected")
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.info("Progress observer disconnected")
        finally:
            hub.detach(websocket)

    return app


def run_service(
    host: str = "0.0.0.0",
    port: int = 5000,
    *,
    config: DockWikiConfig | None = None,
) -> None:  # pragma: no cover - integration path
    import uvicorn

    app = create_app(config=config)
    uvicorn.run(app, host=host, port=port)
