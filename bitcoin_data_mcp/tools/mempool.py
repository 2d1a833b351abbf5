"""Tools backed by the mempool.space REST API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from bitcoin_data_mcp.bitcoin_api import default_client
from bitcoin_data_mcp.config import default_config
from bitcoin_data_mcp.networks import MempoolNetwork
from bitcoin_data_mcp.registry import ToolDefinition
from bitcoin_data_mcp.schema import Field, ParamShape
from bitcoin_data_mcp.tools.common import fetch_from, network_field
from bitcoin_data_mcp.tools.validators import ADDRESS_PATTERN, HASH_PATTERN


@dataclass(frozen=True, slots=True)
class MempoolParams:
    network: MempoolNetwork


@dataclass(frozen=True, slots=True)
class MempoolTxParams:
    txid: str
    network: MempoolNetwork


@dataclass(frozen=True, slots=True)
class MempoolAddressParams:
    address: str
    network: MempoolNetwork


@dataclass(frozen=True, slots=True)
class RecentBlocksParams:
    start_height: Optional[int]
    network: MempoolNetwork


async def get_fee_estimates(params: MempoolParams, *, client=default_client, config=default_config) -> str:
    """Recommended fee rates (sat/vB) for the next blocks."""
    return await fetch_from(params.network, "v1", "fees", "recommended", client=client, config=config)


async def get_mempool_summary(params: MempoolParams, *, client=default_client, config=default_config) -> str:
    """Current mempool backlog: count, vsize, total fee and fee histogram."""
    return await fetch_from(params.network, "mempool", client=client, config=config)


async def get_difficulty_adjustment(params: MempoolParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "v1", "difficulty-adjustment", client=client, config=config)


async def get_recent_blocks(params: RecentBlocksParams, *, client=default_client, config=default_config) -> str:
    """
    Latest blocks, or the blocks ending at ``start_height`` when given.

    mempool.space returns up to 15 block summaries per call.
    """
    if params.start_height is None:
        return await fetch_from(params.network, "v1", "blocks", client=client, config=config)
    return await fetch_from(params.network, "v1", "blocks", params.start_height, client=client, config=config)


async def get_transaction(params: MempoolTxParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "tx", params.txid, client=client, config=config)


async def get_address_summary(params: MempoolAddressParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "address", params.address, client=client, config=config)


def definitions(*, require_network: bool = False) -> List[ToolDefinition]:
    network = network_field(MempoolNetwork, required=require_network)
    network_only = ParamShape("mempool_network", (network,), MempoolParams)
    txid = Field("txid", "string", "Transaction id (64 hex characters)", pattern=HASH_PATTERN)
    address = Field("address", "string", "Bitcoin address (base58 or bech32)", pattern=ADDRESS_PATTERN)
    start_height = Field(
        "start_height",
        "integer",
        "Return blocks ending at this height; omit for the chain tip",
        default=None,
        minimum=0,
    )
    return [
        ToolDefinition(
            name="get_fee_estimates",
            description="Return recommended fee rates (sat/vB) from mempool.space.",
            shape=network_only,
            handler=get_fee_estimates,
        ),
        ToolDefinition(
            name="get_mempool_summary",
            description="Return the current mempool backlog statistics from mempool.space.",
            shape=network_only,
            handler=get_mempool_summary,
        ),
        ToolDefinition(
            name="get_recent_blocks",
            description="Return summaries of the most recent blocks from mempool.space.",
            shape=ParamShape("mempool_recent_blocks", (start_height, network), RecentBlocksParams),
            handler=get_recent_blocks,
        ),
        ToolDefinition(
            name="get_transaction",
            description="Return a transaction by txid from mempool.space.",
            shape=ParamShape("mempool_transaction", (txid, network), MempoolTxParams),
            handler=get_transaction,
        ),
        ToolDefinition(
            name="get_address_summary",
            description="Return chain and mempool statistics for an address from mempool.space.",
            shape=ParamShape("mempool_address", (address, network), MempoolAddressParams),
            handler=get_address_summary,
        ),
        ToolDefinition(
            name="get_difficulty_adjustment",
            description="Return progress and estimate for the next difficulty adjustment.",
            shape=network_only,
            handler=get_difficulty_adjustment,
        ),
    ]
