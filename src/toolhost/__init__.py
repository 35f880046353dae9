"""toolhost: host tools, resources and prompts behind an MCP-style dispatch surface."""

__version__ = "0.1.0"
