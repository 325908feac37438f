"""HTTP surface of the replay service (control, scenarios, push transports)."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import APIRouter, FastAPI, HTTPException, Query, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response, StreamingResponse
from prometheus_client import CONTENT_TYPE_LATEST

from telemetry_replay.core.events.events import now_ms
from telemetry_replay.runtime.context import ReplayRuntime
from telemetry_replay.transport.stream import StreamConnection
from telemetry_replay.transport.topic import APP_PING, TOPIC_PONG, TopicSubscriber

LOGGER = logging.getLogger(__name__)

STATUS_MESSAGES = {
    "running": "Replaying data",
    "stopped": "Idle",
}


def create_app(runtime: ReplayRuntime) -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        runtime.start()
        LOGGER.info("Replay service started")
        try:
            yield
        finally:
            runtime.close()
            LOGGER.info("Replay service stopped")

    app = FastAPI(
        title="Telemetry Replay",
        description="Replays recorded page samples to a storage backend and live subscribers.",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(_control_router(runtime))
    app.include_router(_scenario_router(runtime))
    app.include_router(_stream_router(runtime))
    app.include_router(_topic_router(runtime))

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(content=runtime.metrics.render(), media_type=CONTENT_TYPE_LATEST)

    return app


# ---------------------------------------------------------------------------
# Replay control
# ---------------------------------------------------------------------------

def _control_router(runtime: ReplayRuntime) -> APIRouter:
    router = APIRouter(prefix="/scenario", tags=["control"])
    scheduler = runtime.scheduler

    @router.post("/start")
    def start() -> dict[str, Any]:
        scheduler.start()
        return {"status": "started", "message": "Real-time data replay started"}

    @router.post("/stop")
    def stop() -> dict[str, Any]:
        scheduler.stop()
        return {"status": "stopped", "message": "Real-time data replay stopped"}

    @router.post("/restart")
    def restart() -> dict[str, Any]:
        scheduler.restart()
        return {"status": "restarted", "message": "Real-time data replay restarted"}

    @router.get("/status")
    def status() -> dict[str, Any]:
        enabled = scheduler.is_enabled()
        state = "running" if enabled else "stopped"
        position, total = scheduler.cursor.progress()
        return {
            "enabled": enabled,
            "status": state,
            "message": STATUS_MESSAGES[state],
            "position": position,
            "total": total,
            "connections": runtime.broadcaster.count(),
        }

    return router


# ---------------------------------------------------------------------------
# Anomaly scenarios
# ---------------------------------------------------------------------------

def _scenario_router(runtime: ReplayRuntime) -> APIRouter:
    router = APIRouter(prefix="/scenario", tags=["scenarios"])
    scenarios = runtime.scenarios

    def _result(scenario: str, records: int, message: str) -> dict[str, Any]:
        return {"scenario": scenario, "records": records, "message": message}

    @router.post("/slow-country")
    def slow_country(country: str = "KR", count: int = Query(20, gt=0)) -> dict[str, Any]:
        samples = scenarios.slow_country(country=country, count=count)
        return _result("slow-country", len(samples), f"{country} slow country scenario sent")

    @router.post("/error-spike")
    def error_spike(count: int = Query(30, gt=0)) -> dict[str, Any]:
        samples = scenarios.error_spike(count=count)
        return _result("error-spike", len(samples), "5xx error spike scenario sent")

    @router.post("/tcp-error")
    def tcp_error(count: int = Query(25, gt=0)) -> dict[str, Any]:
        samples = scenarios.tcp_error(count=count)
        return _result("tcp-error", len(samples), "TCP error scenario sent")

    @router.post("/browser-issue")
    def browser_issue(browser: str = "Firefox", count: int = Query(15, gt=0)) -> dict[str, Any]:
        samples = scenarios.browser_issue(browser=browser, count=count)
        return _result("browser-issue", len(samples), f"{browser} browser issue scenario sent")

    @router.post("/recover")
    def recover(count: int = Query(50, gt=0)) -> dict[str, Any]:
        samples = scenarios.recover(count=count)
        return _result("recover", len(samples), "Recovery scenario sent")

    @router.post("/single")
    def single() -> dict[str, Any]:
        sample = scenarios.single()
        return {"scenario": "single", "records": 1, "rowKey": sample.row_key}

    return router


# ---------------------------------------------------------------------------
# Event stream
# ---------------------------------------------------------------------------

def _stream_router(runtime: ReplayRuntime) -> APIRouter:
    router = APIRouter(prefix="/api/sse", tags=["stream"])
    stream_config = runtime.config.stream

    @router.get("/connect")
    async def connect(request: Request) -> StreamingResponse:
        connection = StreamConnection(
            lifetime_seconds=stream_config.lifetime_seconds,
            max_pending_events=stream_config.max_pending_events,
        )
        if not runtime.broadcaster.register(connection):
            raise HTTPException(status_code=503, detail="Stream could not be opened")

        async def frames() -> AsyncIterator[str]:
            try:
                while True:
                    frame = await asyncio.to_thread(connection.next_frame, stream_config.poll_seconds)
                    if frame is not None:
                        yield frame
                        continue
                    if connection.closed or connection.expired():
                        break
                    if await request.is_disconnected():
                        break
            finally:
                runtime.broadcaster.unregister(connection)
                connection.close()
                LOGGER.info("Stream ended", extra={"connection_id": connection.connection_id})

        return StreamingResponse(
            frames(),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )

    @router.post("/status")
    def send_status(message: str = Query(..., min_length=1)) -> dict[str, Any]:
        report = runtime.broadcaster.publish_status("info", message)
        return {"delivered": report.delivered, "pruned": len(report.pruned)}

    return router


# ---------------------------------------------------------------------------
# Topic websocket
# ---------------------------------------------------------------------------

def _topic_router(runtime: ReplayRuntime) -> APIRouter:
    router = APIRouter(tags=["topic"])
    topic = runtime.topic
    poll_seconds = runtime.config.stream.poll_seconds

    async def _receive(websocket: WebSocket) -> None:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except json.JSONDecodeError:
                LOGGER.warning("Ignoring malformed topic message")
                continue
            if isinstance(message, dict) and message.get("destination") == APP_PING:
                topic.publish_raw(TOPIC_PONG, {"message": "pong", "timestamp": now_ms()})

    async def _forward(websocket: WebSocket, subscriber: TopicSubscriber) -> None:
        while subscriber.active:
            message = await asyncio.to_thread(subscriber.next_message, poll_seconds)
            if message is not None:
                await websocket.send_text(message)

    @router.websocket("/ws/topic")
    async def topic_socket(websocket: WebSocket) -> None:
        await websocket.accept()
        subscriber = topic.subscribe()

        receiver = asyncio.create_task(_receive(websocket))
        forwarder = asyncio.create_task(_forward(websocket, subscriber))
        try:
            done, _ = await asyncio.wait({receiver, forwarder}, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                exc = task.exception()
                if exc is not None and not isinstance(exc, WebSocketDisconnect):
                    LOGGER.error(
                        "Topic socket failed",
                        extra={"subscriber_id": subscriber.subscriber_id},
                        exc_info=exc,
                    )
        finally:
            receiver.cancel()
            forwarder.cancel()
            topic.unsubscribe(subscriber)

    return router
