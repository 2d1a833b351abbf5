"""Failure taxonomy shared by the registry, the decoder and the dispatcher."""

from __future__ import annotations

from typing import Any, Dict, Optional

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_NOT_INITIALIZED = -32002


class DispatchError(Exception):
    """Base class for every failure that crosses the dispatcher boundary."""

    kind = "internal_error"
    code = INTERNAL_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_error(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "data": {"kind": self.kind}}


class ProtocolOrderingError(DispatchError):
    """Raised when a request arrives in the wrong lifecycle phase."""

    kind = "protocol_ordering"
    code = SERVER_NOT_INITIALIZED


class UnknownToolError(DispatchError):
    """Raised when a tool name is not in the registry."""

    kind = "unknown_tool"
    code = INVALID_PARAMS

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


class InvalidParametersError(DispatchError):
    """Raised when arguments do not match a tool's parameter shape."""

    kind = "invalid_parameters"
    code = INVALID_PARAMS

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class InternalError(DispatchError):
    """Raised when an invoked handler fails."""

    kind = "internal_error"
    code = INTERNAL_ERROR


class MethodNotFoundError(DispatchError):
    kind = "method_not_found"
    code = METHOD_NOT_FOUND

    def __init__(self, method: Any) -> None:
        super().__init__(f"Method not found: {method}")
        self.method = method


class InvalidRequestError(DispatchError):
    kind = "invalid_request"
    code = INVALID_REQUEST


class ParseError(DispatchError):
    kind = "parse_error"
    code = PARSE_ERROR
