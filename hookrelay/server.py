"""
Webhook Receiver Server — FastAPI.

Receives GitLab webhooks on any path, validates the token on the first body
chunk, answers the sender immediately and hands the body to the relay
service in a background task.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.responses import JSONResponse

from .handlers import list_handlers
from .models import ConnectionState, IngestState
from .service import RelayService, build_service

log = logging.getLogger("hookrelay.server")


def _request_target(request: Request) -> str:
    url = request.url.path
    if request.url.query:
        url += f"?{request.url.query}"
    return url


def create_app(service: Optional[RelayService] = None, manage_lifecycle: bool = True) -> FastAPI:
    """Build the app around ``service`` (or one wired from the environment).

    With ``manage_lifecycle`` the service is started and stopped with the
    application.
    """
    relay = service or build_service()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_lifecycle:
            await relay.start()
        log.info("Webhook server started")
        try:
            yield
        finally:
            if manage_lifecycle:
                await relay.stop()
            log.info("Webhook server shutdown")

    app = FastAPI(
        title="hookrelay",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.service = relay

    # ── Health / Status ───────────────────────────────────

    @app.get("/health")
    async def health():
        ready = relay.connection.status == ConnectionState.READY
        return {
            "status": "healthy" if ready else "degraded",
            "connection": relay.connection.status.value,
            "uptime_s": relay.snapshot()["uptime_s"],
        }

    @app.get("/status")
    async def status():
        return {**relay.snapshot(), "handlers": list_handlers()}

    # ── Main webhook endpoint ─────────────────────────────

    @app.post("/{path:path}")
    async def receive_webhook(path: str, request: Request, background: BackgroundTasks):
        ingestor = relay.new_ingestor(request.headers, request.method, _request_target(request))

        async for chunk in request.stream():
            if ingestor.feed(chunk) == IngestState.INVALID:
                relay.stats["rejected"] += 1
                # Stop reading; the server drops the connection after this response
                return JSONResponse(
                    ingestor.diagnostic(), status_code=400, headers={"Connection": "close"}
                )

        ingestor.finish()
        relay.stats["received"] += 1
        background.add_task(
            relay.process, ingestor.event_type, ingestor.body, ingestor.request.content_type
        )
        return JSONResponse(ingestor.diagnostic(), status_code=200)

    return app
