#!/usr/bin/env python3
"""
Debug wrapper for the MCP server.

Runs the server over stdio for local MCP clients. Set DEV_USER to act as a
fixed user without an API key, and DYNAMODB_ENDPOINT_URL to point at
DynamoDB Local.
"""
from justlog.config import Settings
from justlog.server import create_app

if __name__ == "__main__":
    settings = Settings.from_env()
    if not settings.dev_user:
        raise SystemExit("DEV_USER must be set for stdio mode; there is no Authorization header to read")

    mcp = create_app(settings)
    mcp.run(transport="stdio")
