"""
Read-only Bitcoin data MCP server package.

This package exposes LLM-friendly tools backed by public block explorer APIs
(mempool.space and Blockstream Esplora). See DESIGN.md for full details.
"""

__all__ = ["config"]
