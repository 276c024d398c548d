"""MCP server exposing the Bluum Finance investment API as agent tools."""

__version__ = "1.0.0"
