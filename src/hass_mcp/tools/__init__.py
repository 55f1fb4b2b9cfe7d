"""MCP tools for the Home Assistant MCP server."""

from .registry import ToolsRegistry

__all__ = ["ToolsRegistry"]
