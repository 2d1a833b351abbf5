"""Tools backed by the Blockstream Esplora API."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from bitcoin_data_mcp.bitcoin_api import default_client
from bitcoin_data_mcp.config import default_config
from bitcoin_data_mcp.networks import EsploraNetwork
from bitcoin_data_mcp.registry import ToolDefinition
from bitcoin_data_mcp.schema import Field, ParamShape
from bitcoin_data_mcp.tools.common import fetch_from, network_field
from bitcoin_data_mcp.tools.validators import ADDRESS_PATTERN, HASH_PATTERN


@dataclass(frozen=True, slots=True)
class EsploraParams:
    network: EsploraNetwork


@dataclass(frozen=True, slots=True)
class BlockHashParams:
    block_hash: str
    network: EsploraNetwork


@dataclass(frozen=True, slots=True)
class BlockHeightParams:
    height: int
    network: EsploraNetwork


@dataclass(frozen=True, slots=True)
class EsploraTxParams:
    txid: str
    network: EsploraNetwork


@dataclass(frozen=True, slots=True)
class EsploraAddressParams:
    address: str
    network: EsploraNetwork


async def get_tip_height(params: EsploraParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "blocks", "tip", "height", client=client, config=config)


async def get_block(params: BlockHashParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "block", params.block_hash, client=client, config=config)


async def get_block_hash(params: BlockHeightParams, *, client=default_client, config=default_config) -> str:
    """Hash of the block at ``height`` on the best chain."""
    return await fetch_from(params.network, "block-height", params.height, client=client, config=config)


async def get_transaction_status(params: EsploraTxParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "tx", params.txid, "status", client=client, config=config)


async def get_address_utxos(params: EsploraAddressParams, *, client=default_client, config=default_config) -> str:
    return await fetch_from(params.network, "address", params.address, "utxo", client=client, config=config)


def definitions(*, require_network: bool = False) -> List[ToolDefinition]:
    network = network_field(EsploraNetwork, required=require_network)
    txid = Field("txid", "string", "Transaction id (64 hex characters)", pattern=HASH_PATTERN)
    address = Field("address", "string", "Bitcoin address (base58 or bech32)", pattern=ADDRESS_PATTERN)
    return [
        ToolDefinition(
            name="get_tip_height",
            description="Return the current best block height from Blockstream Esplora.",
            shape=ParamShape("esplora_network", (network,), EsploraParams),
            handler=get_tip_height,
        ),
        ToolDefinition(
            name="get_block",
            description="Return block header details by block hash from Blockstream Esplora.",
            shape=ParamShape(
                "esplora_block",
                (
                    Field("block_hash", "string", "Block hash (64 hex characters)", pattern=HASH_PATTERN),
                    network,
                ),
                BlockHashParams,
            ),
            handler=get_block,
        ),
        ToolDefinition(
            name="get_block_hash",
            description="Return the block hash at a given height from Blockstream Esplora.",
            shape=ParamShape(
                "esplora_block_height",
                (Field("height", "integer", "Block height", minimum=0), network),
                BlockHeightParams,
            ),
            handler=get_block_hash,
        ),
        ToolDefinition(
            name="get_transaction_status",
            description="Return confirmation status for a transaction from Blockstream Esplora.",
            shape=ParamShape("esplora_transaction", (txid, network), EsploraTxParams),
            handler=get_transaction_status,
        ),
        ToolDefinition(
            name="get_address_utxos",
            description="Return unspent outputs for an address from Blockstream Esplora.",
            shape=ParamShape("esplora_address", (address, network), EsploraAddressParams),
            handler=get_address_utxos,
        ),
    ]
