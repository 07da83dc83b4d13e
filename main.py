"""
JustLog MCP Server entry point.

The 'mcp' object is used by:
- Local development: `fastmcp dev main.py`
- Cloud deployment: FastMCP imports and serves this object via HTTP
- Running this file directly: streamable HTTP on $PORT (default 8088)
"""
from justlog.config import Settings
from justlog.server import create_app

settings = Settings.from_env()
mcp = create_app(settings)

if __name__ == "__main__":
    mcp.run(transport="http", host="0.0.0.0", port=settings.port)
