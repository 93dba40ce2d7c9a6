"""
client.py — Thin MCP client for the QuickDesk server
====================================================
Opens a Streamable HTTP session and calls tools directly, without any LLM
in between. Tool results come back as JSON text; call_tool decodes them
and turns an error result into a ToolCallError.

    async with open_session() as session:
        tickets = await call_tool(session, "search_tickets", {"actor_email": "bob@company.com"})
"""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from mcp import ClientSession
from mcp.client.streamable_http import streamable_http_client

from quickdesk.config import SERVER_URL


class ToolCallError(Exception):
    def __init__(self, tool: str, message: str) -> None:
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.message = message


@asynccontextmanager
async def open_session(url: str = SERVER_URL) -> AsyncIterator[ClientSession]:
    async with streamable_http_client(url) as (read, write, _):
        async with ClientSession(read, write) as session:
            await session.initialize()
            yield session


async def call_tool(session: ClientSession, name: str, arguments: dict) -> Any:
    result = await session.call_tool(name=name, arguments=arguments)
    text = result.content[0].text if result.content else ""
    if result.isError:
        raise ToolCallError(name, text or "Unknown error")
    return json.loads(text) if text else None
