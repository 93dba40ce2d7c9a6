"""
tools/categories.py — MCP tools for ticket categories
=====================================================
Categories are never deleted. Deactivating one hides it from new
tickets while old tickets keep pointing at it.
"""

from mcp import types

from quickdesk.lifecycle import LifecycleEngine
from quickdesk.schema import CATEGORY_COLORS
from quickdesk.tools.common import actor_email_property, actor_for, as_text

_category_properties = {
    "name": {"type": "string", "description": "Display name"},
    "description": {"type": "string"},
    "color": {"type": "string", "enum": list(CATEGORY_COLORS), "description": "Badge color"},
    "is_active": {"type": "boolean", "description": "Offered for new tickets"},
}


# ── list_categories ───────────────────────────────────────────────────────────

list_categories_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "query": {"type": "string", "description": "Text to match in name or description"},
    },
    "required": ["actor_email"],
}

list_categories_tool = types.Tool(
    name="list_categories",
    description=(
        "List ticket categories. Admins see every category with ticket counts; "
        "other users see only the active ones they can file tickets under."
    ),
    inputSchema=list_categories_input_schema,
)


async def list_categories(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    categories = await engine.list_categories(actor, arguments.get("query", ""))
    payload = {"count": len(categories), "categories": categories}
    if actor.is_admin:
        payload["overview"] = await engine.category_overview(actor)
    return as_text(payload)


# ── create_category ───────────────────────────────────────────────────────────

create_category_input_schema = {
    "type": "object",
    "properties": {"actor_email": actor_email_property, **_category_properties},
    "required": ["actor_email", "name"],
}

create_category_tool = types.Tool(
    name="create_category",
    description="Admin only. Create a ticket category (active by default).",
    inputSchema=create_category_input_schema,
)


async def create_category(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    return as_text(await engine.create_category(actor, arguments))


# ── update_category ───────────────────────────────────────────────────────────

update_category_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "category_id": {"type": "string"},
        **_category_properties,
    },
    "required": ["actor_email", "category_id"],
}

update_category_tool = types.Tool(
    name="update_category",
    description="Admin only. Change a category's name, description, color or active flag.",
    inputSchema=update_category_input_schema,
)


async def update_category(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    return as_text(await engine.update_category(actor, arguments.get("category_id", ""), arguments))


# ── toggle_category_active ────────────────────────────────────────────────────

toggle_category_active_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "category_id": {"type": "string"},
    },
    "required": ["actor_email", "category_id"],
}

toggle_category_active_tool = types.Tool(
    name="toggle_category_active",
    description="Admin only. Activate an inactive category or retire an active one.",
    inputSchema=toggle_category_active_input_schema,
)


async def toggle_category_active(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    return as_text(await engine.toggle_category_active(actor, arguments.get("category_id", "")))
