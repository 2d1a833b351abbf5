"""
Configuration helpers for the Bitcoin data MCP server.

This module centralizes backend timeouts, logging settings, endpoint overrides,
and the network-selection policy. Everything is read from the environment with
safe fallbacks; nothing here requires a secret.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Dict, Tuple

SERVER_NAME = "bitcoin-data-mcp"
SERVER_VERSION = "0.1.0"

ENV_PREFIX = "BITCOIN_MCP_"


def _load_timeout() -> float:
    raw_timeout = os.getenv("BITCOIN_MCP_HTTP_TIMEOUT")
    if raw_timeout:
        try:
            return float(raw_timeout)
        except ValueError:
            return 10.0
    return 10.0


def _load_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def load_endpoint_overrides(environ: Dict[str, str] | None = None) -> Dict[Tuple[str, str], str]:
    """
    Collect base URL overrides of the form BITCOIN_MCP_<FAMILY>_<NETWORK>_URL.

    Returns:
        Mapping of (family, network) tags to base URLs, trailing slash removed.
        Keys are lower-cased; whether the pair is legal is checked by the
        endpoint resolver, not here.
    """
    env = os.environ if environ is None else environ
    overrides: Dict[Tuple[str, str], str] = {}
    for key, value in env.items():
        if not key.startswith(ENV_PREFIX) or not key.endswith("_URL"):
            continue
        middle = key[len(ENV_PREFIX) : -len("_URL")]
        family, sep, network = middle.partition("_")
        if not sep or not family or not network or not value.strip():
            continue
        overrides[(family.lower(), network.lower())] = value.strip().rstrip("/")
    return overrides


DEFAULT_TIMEOUT = _load_timeout()
DEFAULT_USER_AGENT = f"{SERVER_NAME}/{SERVER_VERSION}"
LOG_LEVEL = os.getenv("BITCOIN_MCP_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("BITCOIN_MCP_LOG_FORMAT", "json")  # json or plain
REQUIRE_EXPLICIT_NETWORK = _load_flag("BITCOIN_MCP_REQUIRE_NETWORK")
MAX_ERROR_BODY_CHARS = 200


@dataclass(slots=True)
class BitcoinDataConfig:
    """Runtime configuration for the server and its backend client."""

    server_name: str = SERVER_NAME
    server_version: str = SERVER_VERSION
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    require_explicit_network: bool = REQUIRE_EXPLICIT_NETWORK
    max_error_body_chars: int = MAX_ERROR_BODY_CHARS
    endpoint_overrides: Dict[Tuple[str, str], str] = field(default_factory=load_endpoint_overrides)


default_config = BitcoinDataConfig()
