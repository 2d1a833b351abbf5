"""
Service families, their network variants, and the endpoint table.

Each family owns a closed enum of legal networks. Parameter shapes declare the
enum of their own family, so a tag that is valid for one family (for example
"signet" for mempool.space) cannot decode into another family's type.
"""

from __future__ import annotations

from enum import Enum
from typing import Dict, Mapping, Optional, Tuple, Type

from bitcoin_data_mcp.config import BitcoinDataConfig, default_config
from bitcoin_data_mcp.errors import InvalidParametersError


class ServiceFamily(str, Enum):
    MEMPOOL = "mempool"
    ESPLORA = "esplora"


class UnsupportedNetworkError(InvalidParametersError):
    """Raised when a network tag is not legal for the requested service."""

    def __init__(self, family: ServiceFamily, tag: str, *, field: Optional[str] = "network") -> None:
        super().__init__(
            f"Invalid parameters: unsupported network '{tag}' for service '{family.value}'",
            field=field,
        )
        self.family = family
        self.tag = tag


class NetworkVariant(str, Enum):
    """Base for per-family network enums; subclasses set ``family`` and ``default``."""

    @classmethod
    def family(cls) -> ServiceFamily:
        raise NotImplementedError

    @classmethod
    def default(cls) -> "NetworkVariant":
        raise NotImplementedError

    @classmethod
    def rejection(cls, tag: str, *, field: Optional[str] = None) -> UnsupportedNetworkError:
        return UnsupportedNetworkError(cls.family(), tag, field=field)


class MempoolNetwork(NetworkVariant):
    MAINNET = "mainnet"
    TESTNET = "testnet"
    SIGNET = "signet"

    @classmethod
    def family(cls) -> ServiceFamily:
        return ServiceFamily.MEMPOOL

    @classmethod
    def default(cls) -> "MempoolNetwork":
        return cls.MAINNET


class EsploraNetwork(NetworkVariant):
    MAINNET = "mainnet"
    TESTNET = "testnet"

    @classmethod
    def family(cls) -> ServiceFamily:
        return ServiceFamily.ESPLORA

    @classmethod
    def default(cls) -> "EsploraNetwork":
        return cls.MAINNET


NETWORKS_BY_FAMILY: Dict[ServiceFamily, Type[NetworkVariant]] = {
    ServiceFamily.MEMPOOL: MempoolNetwork,
    ServiceFamily.ESPLORA: EsploraNetwork,
}

ENDPOINT_TABLE: Mapping[Tuple[ServiceFamily, str], str] = {
    (ServiceFamily.MEMPOOL, "mainnet"): "https://mempool.space/api",
    (ServiceFamily.MEMPOOL, "testnet"): "https://mempool.space/testnet/api",
    (ServiceFamily.MEMPOOL, "signet"): "https://mempool.space/signet/api",
    (ServiceFamily.ESPLORA, "mainnet"): "https://blockstream.info/api",
    (ServiceFamily.ESPLORA, "testnet"): "https://blockstream.info/testnet/api",
}


def verify_endpoint_table(table: Mapping[Tuple[ServiceFamily, str], str] = ENDPOINT_TABLE) -> None:
    """Ensure every (family, network) pair has exactly one non-empty address."""
    expected = {
        (family, member.value) for family, variants in NETWORKS_BY_FAMILY.items() for member in variants
    }
    missing = expected - set(table)
    if missing:
        raise RuntimeError(f"Endpoint table missing entries: {sorted((f.value, n) for f, n in missing)}")
    dangling = set(table) - expected
    if dangling:
        raise RuntimeError(f"Endpoint table has unknown entries: {sorted((f.value, n) for f, n in dangling)}")
    empty = [key for key in expected if not table[key]]
    if empty:
        raise RuntimeError(f"Endpoint table has empty addresses: {sorted((f.value, n) for f, n in empty)}")


verify_endpoint_table()


def parse_network(family: ServiceFamily, tag: Optional[str]) -> NetworkVariant:
    """Decode ``tag`` into the family's enum, falling back to its default when None."""
    variants = NETWORKS_BY_FAMILY[family]
    if tag is None:
        return variants.default()
    if not isinstance(tag, str):
        raise UnsupportedNetworkError(family, str(tag))
    try:
        return variants(tag)
    except ValueError:
        raise UnsupportedNetworkError(family, tag) from None


def resolve(
    family: ServiceFamily,
    network: NetworkVariant,
    *,
    config: BitcoinDataConfig = default_config,
) -> str:
    """
    Return the base URL for ``network`` on ``family``.

    ``network`` must belong to the family's enum; a variant from another family
    is rejected rather than mapped to a default address.
    """
    if not isinstance(network, NETWORKS_BY_FAMILY[family]):
        raise UnsupportedNetworkError(family, getattr(network, "value", str(network)))
    override = config.endpoint_overrides.get((family.value, network.value))
    if override:
        return override
    return ENDPOINT_TABLE[(family, network.value)]
