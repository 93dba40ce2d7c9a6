"""
server.py — Low-level MCP Server for QuickDesk
==============================================
What this file does:
  1. Builds the LifecycleEngine from config in the server lifespan
  2. Registers two handlers: list_tools and call_tool
  3. Wraps the server in a StreamableHTTPSessionManager
  4. Mounts it on a Starlette app at /mcp
  5. Serves with uvicorn (port from QUICKDESK_PORT, 8001 by default)

The tools themselves live in tools/ and this file only wires them up.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import uvicorn
from mcp import types
from mcp.server.lowlevel import Server
from mcp.server.streamable_http_manager import StreamableHTTPSessionManager
from starlette.applications import Starlette
from starlette.routing import Mount

from quickdesk import config
from quickdesk.data import build_demo_gateway
from quickdesk.errors import HelpdeskError
from quickdesk.gateway import EntityGateway, HttpEntityGateway, InMemoryGateway
from quickdesk.lifecycle import LifecycleEngine
from quickdesk.logging_config import get_logger
from quickdesk.notifications import HttpEmailSender, InMemoryOutbox, NotificationSender
from quickdesk.tools import tools

logger = get_logger(__name__)


def build_engine() -> LifecycleEngine:
    """Pick the gateway and sender adapters from config."""
    gateway: EntityGateway
    if config.GATEWAY_URL:
        gateway = HttpEntityGateway(config.GATEWAY_URL, config.GATEWAY_TOKEN, config.CALL_TIMEOUT_S)
    elif config.SEED_DEMO_DATA:
        gateway = build_demo_gateway()
    else:
        gateway = InMemoryGateway()

    sender: NotificationSender
    if config.EMAIL_URL:
        sender = HttpEmailSender(config.EMAIL_URL, config.EMAIL_TOKEN, config.CALL_TIMEOUT_S)
    else:
        sender = InMemoryOutbox()

    logger.info("Using %s with %s", type(gateway).__name__, type(sender).__name__)
    return LifecycleEngine(gateway, sender)


# ── Lifespan ──────────────────────────────────────────────────────────────────
# Called once on startup and once on shutdown. The engine is the one shared
# resource; handle_call_tool reads it back from the lifespan context.

@asynccontextmanager
async def server_lifespan(server: Server) -> AsyncIterator[dict]:
    logger.info("%s MCP Server starting...", config.APP_NAME)
    try:
        yield {"engine": build_engine()}
    finally:
        logger.info("%s MCP Server shutting down.", config.APP_NAME)


# ── MCP Server ────────────────────────────────────────────────────────────────

server = Server("quickdesk-server", lifespan=server_lifespan)


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    """Return all tools from the registry to any connecting client."""
    return [entry["tool"] for entry in tools.values()]


@server.call_tool()
async def handle_call_tool(name: str, arguments: dict[str, Any]) -> list[types.TextContent]:
    """Dispatch an incoming tool call to the correct handler."""
    if name not in tools:
        raise ValueError(f"Unknown tool: {name}")
    engine = server.request_context.lifespan_context["engine"]
    handler = tools[name]["handler"]
    try:
        return await handler(engine, arguments or {})
    except HelpdeskError as e:
        # The SDK reports the exception text as an error result.
        logger.info("Tool %s failed: %s: %s", name, type(e).__name__, e.message)
        raise


# ── Streamable HTTP transport ─────────────────────────────────────────────────
# StreamableHTTPSessionManager wraps the MCP server and handles the HTTP/SSE
# session lifecycle. Each client connection gets its own session.

session_manager = StreamableHTTPSessionManager(server)


@asynccontextmanager
async def app_lifespan(app: Starlette):
    async with session_manager.run():
        logger.info("Server is running on %s", config.SERVER_URL)
        yield


# ── Starlette app ─────────────────────────────────────────────────────────────

app = Starlette(
    routes=[
        Mount("/mcp", app=session_manager.handle_request),
    ],
    lifespan=app_lifespan,
)


def main() -> None:
    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
