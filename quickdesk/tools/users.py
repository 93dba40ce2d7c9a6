"""
tools/users.py — MCP tools for users and invitations
====================================================
  - get_user_profile  : the caller's own profile and ticket counts
  - update_profile    : edit name, department, phone, email preferences
  - list_users        : admin user list with search and role filter
  - update_user_role  : admin promotes/demotes a user
  - invite_user       : admin invites someone by email (7-day expiry)
  - user_ticket_stats : admin view of one user's created/assigned counts
"""

from mcp import types

from quickdesk.lifecycle import LifecycleEngine
from quickdesk.schema import ROLES
from quickdesk.tools.common import actor_email_property, actor_for, as_text


# ── get_user_profile ──────────────────────────────────────────────────────────

get_user_profile_input_schema = {
    "type": "object",
    "properties": {"actor_email": actor_email_property},
    "required": ["actor_email"],
}

get_user_profile_tool = types.Tool(
    name="get_user_profile",
    description=(
        "Return the signed-in user's profile (name, role, department, preferences) "
        "with counts of the tickets they created, open and resolved."
    ),
    inputSchema=get_user_profile_input_schema,
)


async def get_user_profile(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    return as_text(await engine.profile(actor))


# ── update_profile ────────────────────────────────────────────────────────────

update_profile_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "full_name": {"type": "string"},
        "department": {"type": "string"},
        "phone": {"type": "string"},
        "notification_preferences": {
            "type": "object",
            "properties": {
                "email_notifications": {"type": "boolean"},
                "ticket_updates": {"type": "boolean"},
                "weekly_summary": {"type": "boolean"},
            },
        },
    },
    "required": ["actor_email"],
}

update_profile_tool = types.Tool(
    name="update_profile",
    description="Update the signed-in user's own profile. Role and email cannot be changed here.",
    inputSchema=update_profile_input_schema,
)


async def update_profile(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    fields = {k: v for k, v in arguments.items() if k != "actor_email"}
    return as_text(await engine.update_profile(actor, fields))


# ── list_users ────────────────────────────────────────────────────────────────

list_users_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "query": {"type": "string", "description": "Text to match in name, email or department"},
        "role": {"type": "string", "enum": ["all", *ROLES], "description": "Role filter"},
    },
    "required": ["actor_email"],
}

list_users_tool = types.Tool(
    name="list_users",
    description="Admin only. List users, newest first, with optional search and role filter, plus role and activity totals.",
    inputSchema=list_users_input_schema,
)


async def list_users(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    users = await engine.list_users(actor, arguments.get("query", ""), arguments.get("role") or "all")
    overview = await engine.user_overview(actor)
    return as_text({"count": len(users), "overview": overview, "users": users})


# ── update_user_role ──────────────────────────────────────────────────────────

update_user_role_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "user_id": {"type": "string", "description": "ID of the user to change"},
        "role": {"type": "string", "enum": list(ROLES)},
    },
    "required": ["actor_email", "user_id", "role"],
}

update_user_role_tool = types.Tool(
    name="update_user_role",
    description="Admin only. Change a user's role between user and admin.",
    inputSchema=update_user_role_input_schema,
)


async def update_user_role(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    user = await engine.update_user_role(actor, arguments.get("user_id", ""), arguments.get("role", ""))
    return as_text(user)


# ── invite_user ───────────────────────────────────────────────────────────────
# Saving the invitation and emailing it are separate steps. When the email
# fails the invitation still exists, and the error message says so.

invite_user_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "email": {"type": "string", "description": "Address to invite"},
        "role": {"type": "string", "enum": list(ROLES), "description": "Role on sign-up, defaults to user"},
        "message": {"type": "string", "description": "Optional personal note included in the email"},
    },
    "required": ["actor_email", "email"],
}

invite_user_tool = types.Tool(
    name="invite_user",
    description=(
        "Admin only. Record an invitation (valid for 7 days) and email it. "
        "If the email fails, the invitation record is kept and the error says so."
    ),
    inputSchema=invite_user_input_schema,
)


async def invite_user(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    invitation = await engine.invite_user(actor, arguments)
    return as_text(invitation)


# ── user_ticket_stats ─────────────────────────────────────────────────────────

user_ticket_stats_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "email": {"type": "string", "description": "The user whose tickets to count"},
    },
    "required": ["actor_email", "email"],
}

user_ticket_stats_tool = types.Tool(
    name="user_ticket_stats",
    description=(
        "Admin only. For one user: tickets created, tickets assigned, "
        "created tickets still open, assigned tickets resolved."
    ),
    inputSchema=user_ticket_stats_input_schema,
)


async def user_ticket_stats(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    email = arguments.get("email", "")
    stats = await engine.user_ticket_stats(actor, email)
    return as_text({"email": email, **stats})
