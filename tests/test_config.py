import logging

from bitcoin_data_mcp.config import (
    BitcoinDataConfig,
    _load_flag,
    _load_timeout,
    default_config,
    load_endpoint_overrides,
)
from bitcoin_data_mcp.server import JsonFormatter, configure_logging


def test_load_timeout_invalid_env(monkeypatch):
    monkeypatch.setenv("BITCOIN_MCP_HTTP_TIMEOUT", "not-a-number")
    assert _load_timeout() == 10.0  # falls back to default on parse error


def test_load_timeout_valid_env(monkeypatch):
    monkeypatch.setenv("BITCOIN_MCP_HTTP_TIMEOUT", "5.5")
    assert _load_timeout() == 5.5


def test_load_flag(monkeypatch):
    monkeypatch.setenv("BITCOIN_MCP_REQUIRE_NETWORK", "yes")
    assert _load_flag("BITCOIN_MCP_REQUIRE_NETWORK") is True
    monkeypatch.setenv("BITCOIN_MCP_REQUIRE_NETWORK", "off")
    assert _load_flag("BITCOIN_MCP_REQUIRE_NETWORK") is False
    monkeypatch.delenv("BITCOIN_MCP_REQUIRE_NETWORK")
    assert _load_flag("BITCOIN_MCP_REQUIRE_NETWORK", default=True) is True


def test_load_endpoint_overrides():
    env = {
        "BITCOIN_MCP_ESPLORA_TESTNET_URL": " http://localhost:3002/api/ ",
        "BITCOIN_MCP_MEMPOOL_SIGNET_URL": "",
        "BITCOIN_MCP_HTTP_TIMEOUT": "5",
        "BITCOIN_MCP_URL": "http://ignored",
        "OTHER_MEMPOOL_MAINNET_URL": "http://ignored",
    }
    assert load_endpoint_overrides(env) == {("esplora", "testnet"): "http://localhost:3002/api"}


def test_config_defaults():
    cfg = BitcoinDataConfig(endpoint_overrides={})
    assert cfg.server_name == "bitcoin-data-mcp"
    assert cfg.user_agent.startswith("bitcoin-data-mcp/")
    assert cfg.timeout > 0


def test_logging_level_config():
    level = getattr(logging, default_config.log_level.upper(), logging.INFO)
    assert level in (
        logging.DEBUG,
        logging.INFO,
        logging.WARNING,
        logging.ERROR,
        logging.CRITICAL,
    )


def test_json_formatter_includes_extras():
    record = logging.LogRecord("bitcoin_data_mcp.mcp", logging.INFO, __file__, 1, "tool=%s", ("x",), None)
    record.tool = "get_tip_height"
    record.request_id = "abc"
    formatted = JsonFormatter().format(record)
    assert '"tool": "get_tip_height"' in formatted
    assert '"request_id": "abc"' in formatted
    assert '"message": "tool=x"' in formatted


def test_configure_logging_plain_format():
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    try:
        configure_logging(BitcoinDataConfig(log_level="debug", log_format="plain", endpoint_overrides={}))
        assert root.level == logging.DEBUG
        assert not isinstance(root.handlers[0].formatter, JsonFormatter)
    finally:
        root.handlers[:] = saved_handlers
        root.setLevel(saved_level)
