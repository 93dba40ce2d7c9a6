"""QuickDesk: help-desk ticket lifecycle engine served over MCP."""

__version__ = "0.1.0"
