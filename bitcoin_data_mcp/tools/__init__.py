"""LLM-facing tool catalog."""

from __future__ import annotations

from typing import List

from bitcoin_data_mcp.config import BitcoinDataConfig, default_config
from bitcoin_data_mcp.registry import ToolDefinition, ToolRegistry

from . import esplora, mempool, validators


def tool_definitions(*, require_network: bool = False) -> List[ToolDefinition]:
    """The fixed, ordered catalog. Names and fields are a compatibility surface."""
    return [
        *mempool.definitions(require_network=require_network),
        *esplora.definitions(require_network=require_network),
    ]


def build_registry(config: BitcoinDataConfig = default_config) -> ToolRegistry:
    return ToolRegistry(tool_definitions(require_network=config.require_explicit_network))


__all__ = [
    "build_registry",
    "tool_definitions",
    "esplora",
    "mempool",
    "validators",
]
