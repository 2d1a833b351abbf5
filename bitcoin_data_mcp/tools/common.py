"""Helpers shared by the tool handler modules."""

from __future__ import annotations

import logging
from typing import Any, Type
from urllib.parse import quote

from bitcoin_data_mcp.config import BitcoinDataConfig, default_config
from bitcoin_data_mcp.networks import NetworkVariant, resolve
from bitcoin_data_mcp.schema import REQUIRED, Field

logger = logging.getLogger(__name__)


def network_field(variants: Type[NetworkVariant], *, required: bool = False) -> Field:
    """Build the ``network`` field for a family, defaulting to its default variant."""
    tags = ", ".join(member.value for member in variants)
    description = f"{variants.family().value} network ({tags})"
    if not required:
        description += f"; defaults to {variants.default().value}"
    return Field(
        name="network",
        type="string",
        description=description,
        default=REQUIRED if required else variants.default(),
        enum=variants,
    )


def build_url(base_url: str, *segments: Any) -> str:
    encoded = "/".join(quote(str(segment), safe="") for segment in segments)
    return f"{base_url.rstrip('/')}/{encoded}" if encoded else base_url


async def fetch_from(
    network: NetworkVariant,
    *segments: Any,
    client: Any,
    config: BitcoinDataConfig = default_config,
) -> str:
    """Resolve the network's base URL under ``config``, append ``segments`` and fetch the raw body."""
    base_url = resolve(network.family(), network, config=config)
    url = build_url(base_url, *segments)
    logger.debug("backend fetch family=%s network=%s url=%s", network.family().value, network.value, url)
    return await client.fetch(url)
