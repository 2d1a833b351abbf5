import pytest

from bitcoin_data_mcp.config import BitcoinDataConfig
from bitcoin_data_mcp.errors import InvalidParametersError
from bitcoin_data_mcp.networks import (
    ENDPOINT_TABLE,
    NETWORKS_BY_FAMILY,
    EsploraNetwork,
    MempoolNetwork,
    ServiceFamily,
    UnsupportedNetworkError,
    parse_network,
    resolve,
    verify_endpoint_table,
)


def _config():
    return BitcoinDataConfig(endpoint_overrides={})


def test_every_legal_pair_resolves_to_a_distinct_address():
    addresses = set()
    for family, variants in NETWORKS_BY_FAMILY.items():
        for network in variants:
            address = resolve(family, network, config=_config())
            assert address.startswith("https://")
            addresses.add(address)
    assert len(addresses) == len(ENDPOINT_TABLE)


def test_family_variant_sets_differ():
    assert [n.value for n in MempoolNetwork] == ["mainnet", "testnet", "signet"]
    assert [n.value for n in EsploraNetwork] == ["mainnet", "testnet"]
    assert MempoolNetwork.default() is MempoolNetwork.MAINNET
    assert EsploraNetwork.default() is EsploraNetwork.MAINNET


def test_parse_network_defaults_when_omitted():
    assert parse_network(ServiceFamily.ESPLORA, None) is EsploraNetwork.MAINNET
    assert parse_network(ServiceFamily.MEMPOOL, "signet") is MempoolNetwork.SIGNET


def test_parse_network_rejects_tag_outside_family():
    with pytest.raises(UnsupportedNetworkError) as excinfo:
        parse_network(ServiceFamily.ESPLORA, "signet")
    assert isinstance(excinfo.value, InvalidParametersError)
    assert excinfo.value.message == "Invalid parameters: unsupported network 'signet' for service 'esplora'"


@pytest.mark.parametrize("tag", ["regtest", "Mainnet", ""])
def test_parse_network_rejects_unknown_tags(tag):
    with pytest.raises(UnsupportedNetworkError):
        parse_network(ServiceFamily.MEMPOOL, tag)


def test_resolve_rejects_variant_from_another_family():
    with pytest.raises(UnsupportedNetworkError):
        resolve(ServiceFamily.ESPLORA, MempoolNetwork.SIGNET, config=_config())
    # Same tag, wrong family type: still rejected rather than coerced.
    with pytest.raises(UnsupportedNetworkError):
        resolve(ServiceFamily.ESPLORA, MempoolNetwork.TESTNET, config=_config())


def test_resolve_uses_configured_override():
    config = _config()
    config.endpoint_overrides[("esplora", "testnet")] = "http://localhost:3002/api"
    assert resolve(ServiceFamily.ESPLORA, EsploraNetwork.TESTNET, config=config) == "http://localhost:3002/api"
    assert resolve(ServiceFamily.ESPLORA, EsploraNetwork.MAINNET, config=config) == "https://blockstream.info/api"


def test_verify_endpoint_table_detects_missing_entry():
    table = dict(ENDPOINT_TABLE)
    del table[(ServiceFamily.MEMPOOL, "signet")]
    with pytest.raises(RuntimeError, match="missing"):
        verify_endpoint_table(table)


def test_verify_endpoint_table_detects_dangling_entry():
    table = dict(ENDPOINT_TABLE)
    table[(ServiceFamily.ESPLORA, "signet")] = "https://example.invalid/api"
    with pytest.raises(RuntimeError, match="unknown"):
        verify_endpoint_table(table)
