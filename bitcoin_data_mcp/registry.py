"""Immutable catalog of tool definitions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Mapping, Optional, Tuple

from bitcoin_data_mcp.errors import UnknownToolError
from bitcoin_data_mcp.schema import ParamShape, decode_params, generate_schema

ToolHandler = Callable[..., Awaitable[str]]


class RegistryError(Exception):
    """Raised while building a registry from an invalid catalog."""


class DuplicateToolError(RegistryError):
    """Raised when two definitions share a name."""


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    name: str
    description: str
    shape: ParamShape
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return generate_schema(self.shape)

    def decode(self, arguments: Optional[Mapping[str, Any]]) -> Any:
        return decode_params(self.shape, arguments)

    def as_mcp_tool(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class ToolRegistry:
    """
    Read-only registry built once from a fixed list of definitions.

    Registration order is preserved for listing. Building fails on an empty or
    repeated name, a shape that is not a ``ParamShape``, or a handler that
    cannot be called.
    """

    def __init__(self, definitions: Iterable[ToolDefinition]) -> None:
        tools: Dict[str, ToolDefinition] = {}
        for definition in definitions:
            if not definition.name:
                raise RegistryError("Tool name must not be empty")
            if definition.name in tools:
                raise DuplicateToolError(f"Tool already registered: {definition.name}")
            if not isinstance(definition.shape, ParamShape):
                raise RegistryError(f"Tool has no parameter shape: {definition.name}")
            if not callable(definition.handler):
                raise RegistryError(f"Tool handler is not callable: {definition.name}")
            tools[definition.name] = definition
        self._tools = tools
        self._order: Tuple[str, ...] = tuple(tools)

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def names(self) -> Tuple[str, ...]:
        return self._order

    def list(self) -> List[Dict[str, Any]]:
        """Return name, description and inputSchema for every tool, in order."""
        return [self._tools[name].as_mcp_tool() for name in self._order]

    def lookup(self, name: str) -> ToolDefinition:
        tool = self._tools.get(name)
        if tool is None:
            raise UnknownToolError(name)
        return tool
