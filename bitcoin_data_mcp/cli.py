"""Entry point: run the MCP server over stdio (default) or HTTP."""

from __future__ import annotations

import asyncio
import dataclasses

import click

from bitcoin_data_mcp.bitcoin_api import BitcoinApiClient
from bitcoin_data_mcp.config import default_config
from bitcoin_data_mcp.mcp import Dispatcher
from bitcoin_data_mcp.server import configure_logging, create_app, serve_stdio


async def _run_stdio(dispatcher: Dispatcher, client: BitcoinApiClient) -> None:
    try:
        await serve_stdio(dispatcher)
    finally:
        await client.aclose()


@click.command()
@click.option("--http", "use_http", is_flag=True, help="Serve JSON-RPC over HTTP instead of stdio.")
@click.option("--host", default="127.0.0.1", show_default=True, help="HTTP bind address.")
@click.option("--port", default=8000, show_default=True, type=int, help="HTTP port.")
@click.option("--log-level", default=None, help="Override BITCOIN_MCP_LOG_LEVEL.")
@click.option(
    "--require-network/--default-network",
    default=None,
    help="Make the 'network' argument mandatory instead of defaulting to mainnet.",
)
def main(use_http: bool, host: str, port: int, log_level: str | None, require_network: bool | None) -> None:
    """Bitcoin data tools for MCP clients."""
    config = default_config
    if log_level is not None:
        config = dataclasses.replace(config, log_level=log_level)
    if require_network is not None:
        config = dataclasses.replace(config, require_explicit_network=require_network)
    configure_logging(config)

    client = BitcoinApiClient(config)
    dispatcher = Dispatcher(client=client, config=config)

    if use_http:
        import uvicorn

        uvicorn.run(create_app(dispatcher, config=config), host=host, port=port, log_config=None)
        return

    asyncio.run(_run_stdio(dispatcher, client))


if __name__ == "__main__":
    main()
