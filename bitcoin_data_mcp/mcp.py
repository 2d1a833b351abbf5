"""
JSON-RPC dispatcher implementing the MCP tool-server lifecycle.

One ``Dispatcher`` serves one logical session: ``initialize`` moves it from
UNINITIALIZED to READY, the ``notifications/initialized`` acknowledgement moves
it to SERVING, and only then are ``tools/list`` and ``tools/call`` accepted.
Every request yields exactly one response envelope; notifications yield none.
No exception escapes ``handle``.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from bitcoin_data_mcp.bitcoin_api import default_client
from bitcoin_data_mcp.config import BitcoinDataConfig, default_config
from bitcoin_data_mcp.errors import (
    DispatchError,
    InternalError,
    InvalidParametersError,
    InvalidRequestError,
    MethodNotFoundError,
    ParseError,
    ProtocolOrderingError,
)
from bitcoin_data_mcp.metrics import MetricsRecorder, default_metrics
from bitcoin_data_mcp.registry import ToolRegistry
from bitcoin_data_mcp.tools import build_registry

logger = logging.getLogger(__name__)

SUPPORTED_PROTOCOL_VERSIONS = ("2025-06-18", "2025-03-26", "2024-11-05")
LATEST_PROTOCOL_VERSION = SUPPORTED_PROTOCOL_VERSIONS[0]

INITIALIZED_NOTIFICATION = "notifications/initialized"


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    SERVING = "serving"
    CLOSED = "closed"


def _jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def _jsonrpc_error_payload(rpc_id: Any, error: DispatchError) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": error.to_error()}


def _wrap_tool_result(body: Any) -> Dict[str, Any]:
    """Shape a handler payload into a single text content item."""
    if isinstance(body, str):
        text = body
    elif isinstance(body, bytes):
        text = body.decode("utf-8", errors="replace")
    else:
        text = json.dumps(body, ensure_ascii=True)
    return {"content": [{"type": "text", "text": text}], "isError": False}


class Dispatcher:
    """Protocol state machine routing requests to the tool registry."""

    def __init__(
        self,
        registry: Optional[ToolRegistry] = None,
        *,
        client: Any = default_client,
        config: BitcoinDataConfig = default_config,
        metrics: MetricsRecorder = default_metrics,
    ) -> None:
        self.config = config
        self.registry = registry if registry is not None else build_registry(config)
        self.client = client
        self.metrics = metrics
        self.state = SessionState.UNINITIALIZED
        self.client_info: Optional[Dict[str, Any]] = None
        self.protocol_version: Optional[str] = None

    def close(self) -> None:
        if self.state is not SessionState.CLOSED:
            logger.debug("mcp session closed previous_state=%s", self.state.value)
        self.state = SessionState.CLOSED

    async def handle_line(self, line: str) -> Optional[str]:
        """Decode one wire line, dispatch it and encode the response (if any)."""
        try:
            message = json.loads(line)
        except (ValueError, RecursionError):
            # Deeply nested input exhausts the decoder's recursion limit.
            self.metrics.record_failure(ParseError.kind)
            payload: Optional[Dict[str, Any]] = _jsonrpc_error_payload(None, ParseError("Parse error"))
        else:
            try:
                payload = await self.handle(message)
            except Exception as exc:
                logger.exception("mcp failure outside request handling")
                self.metrics.record_failure(InternalError.kind)
                rpc_id = message.get("id") if isinstance(message, dict) else None
                payload = _jsonrpc_error_payload(rpc_id, InternalError(str(exc) or type(exc).__name__))
        if payload is None:
            return None
        return json.dumps(payload, ensure_ascii=True)

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        Dispatch one decoded JSON-RPC message.

        Returns:
            The response envelope, or None for notifications.
        """
        if not isinstance(message, dict):
            self.metrics.record_failure(InvalidRequestError.kind)
            return _jsonrpc_error_payload(None, InvalidRequestError("Invalid request"))

        method = message.get("method")
        rpc_id = message.get("id")
        is_notification = "id" not in message

        if not isinstance(method, str) or not method:
            self.metrics.record_failure(InvalidRequestError.kind)
            return _jsonrpc_error_payload(rpc_id, InvalidRequestError("Invalid request"))

        if is_notification:
            self._handle_notification(method)
            return None

        request_id = str(uuid.uuid4())
        start = time.monotonic()
        self.metrics.incr_request(method)
        try:
            result = await self._dispatch(method, message.get("params"), request_id)
        except DispatchError as exc:
            payload = self._failure(rpc_id, method, exc, request_id)
        except Exception as exc:
            logger.exception(
                "mcp unexpected failure method=%s request_id=%s",
                method,
                request_id,
                extra={"request_id": request_id},
            )
            payload = self._failure(rpc_id, method, InternalError(str(exc) or type(exc).__name__), request_id)
        else:
            payload = _jsonrpc_success_payload(rpc_id, result)
            logger.debug(
                "mcp outcome=success method=%s id=%s request_id=%s",
                method,
                rpc_id,
                request_id,
                extra={"request_id": request_id},
            )
        self.metrics.record_duration(request_id, (time.monotonic() - start) * 1000)
        return payload

    def _failure(self, rpc_id: Any, method: str, error: DispatchError, request_id: str) -> Dict[str, Any]:
        self.metrics.record_failure(error.kind)
        logger.debug(
            "mcp outcome=error method=%s kind=%s error=%s request_id=%s",
            method,
            error.kind,
            error.message,
            request_id,
            extra={"request_id": request_id, "error": error.kind},
        )
        return _jsonrpc_error_payload(rpc_id, error)

    def _handle_notification(self, method: str) -> None:
        if method == INITIALIZED_NOTIFICATION and self.state is SessionState.READY:
            self.state = SessionState.SERVING
            logger.info("mcp session ready protocol=%s", self.protocol_version)
            return
        logger.debug("mcp notification ignored method=%s state=%s", method, self.state.value)

    def _require_state(self, method: str, expected: SessionState) -> None:
        if self.state is expected:
            return
        if self.state is SessionState.CLOSED:
            raise ProtocolOrderingError(f"Session closed; cannot handle '{method}'")
        if self.state is SessionState.UNINITIALIZED:
            raise ProtocolOrderingError(f"Server not initialized; send 'initialize' before '{method}'")
        raise ProtocolOrderingError(
            f"Initialization not acknowledged; send '{INITIALIZED_NOTIFICATION}' before '{method}'"
        )

    async def _dispatch(self, method: str, raw_params: Any, request_id: str) -> Any:
        if method == "initialize":
            if self.state is SessionState.READY or self.state is SessionState.SERVING:
                raise ProtocolOrderingError("Server already initialized; 'initialize' may only be sent once")
            self._require_state(method, SessionState.UNINITIALIZED)
        elif self.state is SessionState.UNINITIALIZED or self.state is SessionState.CLOSED:
            # Before initialize (or after close) nothing but initialize is accepted.
            self._require_state(method, SessionState.SERVING)

        if raw_params is None:
            params: Dict[str, Any] = {}
        elif isinstance(raw_params, dict):
            params = raw_params
        else:
            raise InvalidParametersError("Invalid params: params must be an object")

        if method == "initialize":
            return self._initialize(params)

        if method == "ping":
            return {}
        if method == "tools/list":
            self._require_state(method, SessionState.SERVING)
            # Full catalog in one page; the cursor is accepted and ignored.
            return {"tools": self.registry.list()}
        if method == "tools/call":
            self._require_state(method, SessionState.SERVING)
            return await self._call_tool(params, request_id)
        raise MethodNotFoundError(method)

    def _initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        requested = params.get("protocolVersion")
        if not isinstance(requested, str) or not requested:
            raise InvalidParametersError("Invalid params: 'protocolVersion' must be a non-empty string")
        client_info = params.get("clientInfo")
        self.client_info = client_info if isinstance(client_info, dict) else None
        self.protocol_version = requested if requested in SUPPORTED_PROTOCOL_VERSIONS else LATEST_PROTOCOL_VERSION
        self.state = SessionState.READY
        logger.debug(
            "mcp initialize requested=%s negotiated=%s client=%s",
            requested,
            self.protocol_version,
            (self.client_info or {}).get("name"),
        )
        return {
            "protocolVersion": self.protocol_version,
            "serverInfo": {"name": self.config.server_name, "version": self.config.server_version},
            "capabilities": {"tools": {"listChanged": False}},
        }

    async def _call_tool(self, params: Dict[str, Any], request_id: str) -> Dict[str, Any]:
        tool_name = params.get("name")
        if not isinstance(tool_name, str) or not tool_name.strip():
            raise InvalidParametersError("Invalid params: 'name' must be a non-empty string", field="name")
        tool = self.registry.lookup(tool_name)

        try:
            typed_params = tool.decode(params.get("arguments"))
            try:
                body = await tool.handler(typed_params, client=self.client, config=self.config)
            except DispatchError:
                raise
            except Exception as exc:
                # Only the message crosses the boundary.
                raise InternalError(str(exc) or type(exc).__name__) from exc
        except DispatchError as exc:
            self.metrics.record_tool(tool_name, success=False)
            logger.warning(
                "tool=%s outcome=error error=%s request_id=%s",
                tool_name,
                exc.message,
                request_id,
                extra={"tool": tool_name, "request_id": request_id, "error": exc.kind},
            )
            raise

        self.metrics.record_tool(tool_name, success=True)
        logger.info(
            "tool=%s outcome=success request_id=%s",
            tool_name,
            request_id,
            extra={"tool": tool_name, "request_id": request_id},
        )
        return _wrap_tool_result(body)
