"""Transports for the dispatcher: line-delimited stdio and a FastAPI JSON-RPC route."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import time
import uuid
from contextlib import asynccontextmanager
from typing import Optional, TextIO

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from bitcoin_data_mcp.bitcoin_api import default_client
from bitcoin_data_mcp.config import BitcoinDataConfig, default_config
from bitcoin_data_mcp.errors import InvalidRequestError, ParseError
from bitcoin_data_mcp.mcp import Dispatcher
from bitcoin_data_mcp.metrics import default_metrics

logger = logging.getLogger(__name__)

HEALTH_STATUS = {"status": "ok"}


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "message": record.getMessage(),
            "name": record.name,
        }
        for key in ("tool", "request_id", "error"):
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload)


def configure_logging(config: BitcoinDataConfig = default_config) -> None:
    """Log to stderr; stdout is reserved for protocol messages."""
    level = getattr(logging, config.log_level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    if config.log_format.lower() == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logging.basicConfig(level=level, handlers=[handler], force=True)


async def serve_stdio(
    dispatcher: Dispatcher,
    *,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> None:
    """
    Serve one session over newline-delimited JSON until EOF.

    Requests are handled one at a time, in arrival order. Lines are read as
    bytes when the stream exposes a binary buffer, so invalid UTF-8 reaches the
    dispatcher as a parse error instead of ending the loop. The dispatcher is
    closed when the input stream ends.
    """
    reader = stdin or sys.stdin
    source = getattr(reader, "buffer", reader)
    writer = stdout or sys.stdout
    loop = asyncio.get_running_loop()
    logger.info("stdio transport started")
    try:
        while True:
            raw = await loop.run_in_executor(None, source.readline)
            if not raw:
                break
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="replace")
            line = raw.strip()
            if not line:
                continue
            response = await dispatcher.handle_line(line)
            if response is not None:
                writer.write(response + "\n")
                writer.flush()
    finally:
        dispatcher.close()
        logger.info("stdio transport stopped")


def create_app(dispatcher: Optional[Dispatcher] = None, config: BitcoinDataConfig = default_config) -> FastAPI:
    """Build the HTTP transport; all POST /mcp calls share one dispatcher session."""
    session = dispatcher or Dispatcher(client=default_client, config=config)

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        session.close()
        aclose = getattr(session.client, "aclose", None)
        if aclose is not None:
            await aclose()

    app = FastAPI(
        title="Bitcoin Data MCP Server",
        description="Read-only Bitcoin explorer tools for LLM agents.",
        version=config.server_version,
        lifespan=lifespan,
    )
    app.state.dispatcher = session

    @app.middleware("http")
    async def add_request_context(request: Request, call_next):
        request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        start = time.time()
        response = await call_next(request)
        duration_ms = (time.time() - start) * 1000
        logger.debug(
            "http %s %s status=%s duration_ms=%.2f",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            extra={"request_id": request_id},
        )
        response.headers["X-Request-ID"] = request_id
        return response

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health endpoint for monitoring."""
        return JSONResponse(content={**HEALTH_STATUS, "session": session.state.value})

    @app.get("/metrics")
    async def metrics() -> JSONResponse:
        """Return in-process metrics snapshot."""
        return JSONResponse(content=default_metrics.snapshot())

    @app.post("/mcp")
    async def mcp_gateway(request: Request) -> Response:
        """
        JSON-RPC endpoint for MCP clients.

        Supported methods:
          - initialize
          - notifications/initialized
          - ping
          - tools/list
          - tools/call
        """
        try:
            body = await request.json()
        except ValueError:
            error = ParseError("Parse error")
            default_metrics.record_failure(error.kind)
            return JSONResponse(status_code=400, content={"jsonrpc": "2.0", "id": None, "error": error.to_error()})

        if not isinstance(body, dict):
            error = InvalidRequestError("Invalid request")
            default_metrics.record_failure(error.kind)
            return JSONResponse(status_code=400, content={"jsonrpc": "2.0", "id": None, "error": error.to_error()})

        payload = await session.handle(body)
        if payload is None:
            # Notifications do not get a JSON-RPC response body.
            return Response(status_code=202)
        return JSONResponse(content=payload)

    return app


app = create_app()

# Run with: uvicorn bitcoin_data_mcp.server:app
