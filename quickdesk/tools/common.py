"""Helpers shared by the tool modules."""

import json
from typing import Any

from mcp import types
from pydantic import BaseModel

from quickdesk.auth import resolve_actor
from quickdesk.lifecycle import LifecycleEngine
from quickdesk.schema import UserProfile

# Every tool call names the signed-in user explicitly.
actor_email_property = {
    "type": "string",
    "description": "Email of the signed-in user performing the action",
}


def to_jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {k: to_jsonable(v) for k, v in value.items()}
    return value


def as_text(result: Any) -> list[types.TextContent]:
    return [types.TextContent(type="text", text=json.dumps(to_jsonable(result), indent=2))]


async def actor_for(engine: LifecycleEngine, arguments: dict) -> UserProfile:
    return await resolve_actor(engine.gateway, arguments.get("actor_email"))
