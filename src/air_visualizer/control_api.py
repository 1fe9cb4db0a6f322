from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Literal

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from .controller import VisualizationMode
from .worker import AnalysisWorker

logger = logging.getLogger(__name__)

CAPTURE_STATE = Literal["released", "capturing", "captured"]
MODE = Literal["laminar", "turbulent"]


class ControllerStatus(BaseModel):
    capture_state: CAPTURE_STATE
    mode: MODE
    active_mode: MODE | None = None
    history_size: int = Field(ge=0)
    has_background: bool
    frames_processed: int = Field(ge=0)
    frames_dropped: int = Field(ge=0)
    pending_commands: int = Field(ge=0)
    worker_running: bool


class CommandResponse(BaseModel):
    command: Literal["start", "stop", "reset_background"]
    queued: bool
    status: ControllerStatus


class ModeUpdate(BaseModel):
    mode: MODE


def _status(worker: AnalysisWorker) -> ControllerStatus:
    snapshot = worker.controller.snapshot()
    return ControllerStatus(
        capture_state=snapshot.capture_state.value,
        mode=worker.mode.value,
        active_mode=snapshot.mode.value if snapshot.mode is not None else None,
        history_size=snapshot.history_size,
        has_background=snapshot.has_background,
        frames_processed=snapshot.frames_processed,
        frames_dropped=worker.frames_dropped,
        pending_commands=snapshot.pending_commands,
        worker_running=worker.is_running,
    )


def create_control_app(worker: AnalysisWorker, api_key: str | None = None) -> FastAPI:
    """HTTP remote control for a running analysis worker."""
    app = FastAPI(
        title="Air Visualizer Control API",
        version="0.1.0",
        description="Start, stop and reset background capture of the flow analysis pipeline.",
    )
    app.state.worker = worker
    app.state.api_key = api_key

    @app.middleware("http")
    async def _auth_middleware(
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        required_api_key: str | None = app.state.api_key
        if required_api_key and request.url.path.startswith("/api/v1/"):
            if request.headers.get("x-api-key") != required_api_key:
                logger.warning("rejected %s %s: invalid API key", request.method, request.url.path)
                return JSONResponse(status_code=401, content={"detail": "invalid API key"})
        return await call_next(request)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/v1/state", response_model=ControllerStatus)
    def get_state() -> ControllerStatus:
        return _status(app.state.worker)

    @app.post("/api/v1/start", response_model=CommandResponse, status_code=202)
    def start() -> CommandResponse:
        app.state.worker.controller.start()
        return CommandResponse(command="start", queued=True, status=_status(app.state.worker))

    @app.post("/api/v1/stop", response_model=CommandResponse, status_code=202)
    def stop() -> CommandResponse:
        app.state.worker.controller.stop()
        return CommandResponse(command="stop", queued=True, status=_status(app.state.worker))

    @app.post("/api/v1/reset-background", response_model=CommandResponse, status_code=202)
    def reset_background() -> CommandResponse:
        app.state.worker.controller.reset_background()
        return CommandResponse(
            command="reset_background", queued=True, status=_status(app.state.worker)
        )

    @app.put("/api/v1/mode", response_model=ControllerStatus)
    def set_mode(payload: ModeUpdate) -> ControllerStatus:
        worker: AnalysisWorker = app.state.worker
        if not worker.set_mode_if_released(VisualizationMode(payload.mode)):
            raise HTTPException(
                status_code=409,
                detail="visualization mode can only change while capture is released",
            )
        return _status(worker)

    return app
