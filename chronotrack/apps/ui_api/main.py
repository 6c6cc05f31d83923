from __future__ import annotations
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel
from typing import Any, Dict, List, Optional
import asyncio

from chronotrack.core.timing.formatting import format_time
from chronotrack.sdk.config import AppConfig
from chronotrack.sdk.runtime import StopwatchEngine

WS_PUSH_INTERVAL_S = 0.25


class GoalBody(BaseModel):
    seconds: str


def create_app(engine: Optional[StopwatchEngine] = None, config: Optional[AppConfig] = None) -> FastAPI:
    """Build the API around ``engine``, or around one built from ``config`` at startup."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = engine is None
        eng = engine if engine is not None else StopwatchEngine.from_config(config)
        if owned:
            eng.load()
        app.state.engine = eng
        try:
            yield
        finally:
            if owned:
                eng.close()

    app = FastAPI(title="ChronoTrack API", lifespan=lifespan)

    def _engine(request: Request) -> StopwatchEngine:
        return request.app.state.engine

    def _state(request: Request) -> Dict[str, Any]:
        return _engine(request).snapshot().model_dump(by_alias=True)

    @app.get("/state")
    def get_state(request: Request):
        return _state(request)

    @app.post("/start-stop")
    def start_stop(request: Request):
        _engine(request).start_or_stop()
        return _state(request)

    @app.post("/laps")
    def record_lap(request: Request):
        lap = _engine(request).record_lap()
        return {"lap": lap.model_dump(by_alias=True) if lap else None, "state": _state(request)}

    @app.post("/reset")
    def reset(request: Request):
        session = _engine(request).reset_and_archive()
        return {"session": session.model_dump(by_alias=True) if session else None, "state": _state(request)}

    @app.put("/goal")
    def put_goal(body: GoalBody, request: Request):
        threshold_ms = _engine(request).set_goal(body.seconds)
        return {"goalMs": threshold_ms, "goalText": format_time(threshold_ms) if threshold_ms else None}

    @app.delete("/goal")
    def delete_goal(request: Request):
        _engine(request).clear_goal()
        return {"goalMs": None, "goalText": None}

    @app.get("/sessions")
    def list_sessions(request: Request, limit: int = 100):
        sessions: List[Dict[str, Any]] = [
            s.model_dump(by_alias=True) for s in _engine(request).sessions[:limit]
        ]
        return {"sessions": sessions}

    @app.delete("/sessions")
    def clear_sessions(request: Request):
        return {"removed": _engine(request).clear_history()}

    @app.get("/events")
    def recent_events(request: Request, limit: int = 20):
        events = list(_engine(request).recent_events)[-limit:]
        return {"events": [e.model_dump(mode="json", by_alias=True) for e in events]}

    @app.websocket("/ws/state")
    async def ws_state(ws: WebSocket):
        await ws.accept()
        eng: StopwatchEngine = ws.app.state.engine
        try:
            while True:
                # snapshot takes the engine lock, which tick threads also hold
                snap = await run_in_threadpool(eng.snapshot)
                await ws.send_json(snap.model_dump(by_alias=True))
                await asyncio.sleep(WS_PUSH_INTERVAL_S)
        except WebSocketDisconnect:
            return

    return app


app = create_app()
