"""Minimal live sanity checks for the Bitcoin data MCP tools."""

from __future__ import annotations

import asyncio
import os
import sys

REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from bitcoin_data_mcp.bitcoin_api import BitcoinApiClient  # noqa: E402
from bitcoin_data_mcp.mcp import Dispatcher  # noqa: E402

# Genesis coinbase transaction; override via env.
SAMPLE_TXID = os.getenv(
    "BITCOIN_MCP_SAMPLE_TXID", "4a5e1e4baab89f3a32518a88c31bc87f618f76673e2cc77ab2127b7afdeda33b"
)
SAMPLE_NETWORK = os.getenv("BITCOIN_MCP_SAMPLE_NETWORK", "mainnet")


async def main() -> None:
    client = BitcoinApiClient()
    dispatcher = Dispatcher(client=client)
    try:
        print("Initialize:", await dispatcher.handle_line(
            '{"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {"protocolVersion": "2024-11-05"}}'
        ))
        await dispatcher.handle_line('{"jsonrpc": "2.0", "method": "notifications/initialized"}')

        calls = [
            ("get_fee_estimates", {"network": SAMPLE_NETWORK}),
            ("get_tip_height", {}),
            ("get_transaction_status", {"txid": SAMPLE_TXID}),
        ]
        for index, (name, arguments) in enumerate(calls, start=2):
            response = await dispatcher.handle(
                {
                    "jsonrpc": "2.0",
                    "id": index,
                    "method": "tools/call",
                    "params": {"name": name, "arguments": arguments},
                }
            )
            print(f"{name}:", response)
    finally:
        await client.aclose()


if __name__ == "__main__":
    asyncio.run(main())
