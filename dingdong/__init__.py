"""DingDong: desktop notification MCP server with stdio and HTTP transports."""

__version__ = "1.0.0"
