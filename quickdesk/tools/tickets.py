"""
tools/tickets.py — MCP tools for ticket operations
==================================================
Six tools live here:
  - search_tickets        : role-scoped ticket list with search + filters
  - create_ticket         : file a new ticket (any signed-in user)
  - assign_ticket         : hand a ticket to an admin, moves it to in_progress
  - update_ticket_status  : set status, optionally with resolution notes
  - ticket_stats          : counts per status over the caller's visible tickets
  - ticket_board          : admin view data (tickets, users, categories)

Each tool follows the same three-part pattern:
  1. A plain dict  → inputSchema  (JSON Schema for the arguments)
  2. A types.Tool  → the MCP tool descriptor
  3. An async def  → the handler; it gets the engine plus the arguments

Handlers raise on failure. The server turns the exception into an
error result carrying its message.
"""

from mcp import types
from pydantic import ValidationError as PydanticValidationError

from quickdesk.errors import ValidationError
from quickdesk.lifecycle import LifecycleEngine
from quickdesk.schema import PRIORITIES, TICKET_STATUSES, TicketFilters
from quickdesk.tools.common import actor_email_property, actor_for, as_text


def _transition_payload(result) -> dict:
    payload = {"ticket": result.ticket}
    if result.warning:
        payload["warning"] = result.warning
    return payload


# ── search_tickets ────────────────────────────────────────────────────────────
# Requesters only ever see their own tickets. Admins see everything and
# their search also matches the requester email.

search_tickets_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "query": {
            "type": "string",
            "description": "Case-insensitive text to look for in title and description",
        },
        "status": {
            "type": "string",
            "enum": ["all", *TICKET_STATUSES],
            "description": "Only tickets with this status, or 'all'",
        },
        "category": {
            "type": "string",
            "description": "Only tickets in this category ID, or 'all'",
        },
        "priority": {
            "type": "string",
            "enum": ["all", *PRIORITIES],
            "description": "Only tickets with this priority, or 'all'",
        },
        "assigned": {
            "type": "string",
            "enum": ["all", "assigned", "unassigned"],
            "description": "Filter on whether the ticket has an assignee",
        },
    },
    "required": ["actor_email"],
}

search_tickets_tool = types.Tool(
    name="search_tickets",
    description=(
        "List support tickets visible to the signed-in user, newest activity first. "
        "Supports a free-text query and status/category/priority/assigned filters; "
        "all filters default to 'all'."
    ),
    inputSchema=search_tickets_input_schema,
)


async def search_tickets(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    try:
        filters = TicketFilters(
            status=arguments.get("status") or "all",
            category=arguments.get("category") or "all",
            priority=arguments.get("priority") or "all",
            assigned=arguments.get("assigned") or "all",
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid ticket filters: {e}", operation="search_tickets")

    tickets = await engine.list_tickets(actor, filters, arguments.get("query", ""))
    return as_text({"match_count": len(tickets), "tickets": tickets})


# ── create_ticket ─────────────────────────────────────────────────────────────

create_ticket_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "title": {"type": "string", "description": "Short summary of the issue"},
        "description": {"type": "string", "description": "Full description of the problem"},
        "category_id": {"type": "string", "description": "ID of an active category"},
        "priority": {
            "type": "string",
            "enum": list(PRIORITIES),
            "description": "Ticket priority, defaults to medium",
        },
        "attachment_urls": {
            "type": "array",
            "items": {"type": "string"},
            "description": "References to files that were already uploaded",
        },
    },
    "required": ["actor_email", "title", "description", "category_id"],
}

create_ticket_tool = types.Tool(
    name="create_ticket",
    description=(
        "Create a new support ticket for the signed-in user. The ticket starts open "
        "and unassigned; a confirmation email is sent to the requester."
    ),
    inputSchema=create_ticket_input_schema,
)


async def create_ticket(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    ticket = await engine.create_ticket(actor, arguments)
    return as_text(ticket)


# ── assign_ticket ─────────────────────────────────────────────────────────────

assign_ticket_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "ticket_id": {"type": "string", "description": "The ticket ID to assign (e.g. T-AA1B2C)"},
        "assignee_email": {"type": "string", "description": "Email of the admin taking the ticket"},
    },
    "required": ["actor_email", "ticket_id", "assignee_email"],
}

assign_ticket_tool = types.Tool(
    name="assign_ticket",
    description=(
        "Admin only. Assign a ticket to an admin. The ticket moves to in_progress "
        "whatever its previous status, and the assignee is emailed."
    ),
    inputSchema=assign_ticket_input_schema,
)


async def assign_ticket(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    result = await engine.assign(actor, arguments.get("ticket_id", ""), arguments.get("assignee_email", ""))
    return as_text(_transition_payload(result))


# ── update_ticket_status ──────────────────────────────────────────────────────

update_ticket_status_input_schema = {
    "type": "object",
    "properties": {
        "actor_email": actor_email_property,
        "ticket_id": {"type": "string", "description": "The ticket ID to update (e.g. T-AA1B2C)"},
        "status": {
            "type": "string",
            "enum": list(TICKET_STATUSES),
            "description": "The new status for the ticket",
        },
        "notes": {
            "type": "string",
            "description": "Resolution notes; leave empty to keep the existing notes",
        },
    },
    "required": ["actor_email", "ticket_id", "status"],
}

update_ticket_status_tool = types.Tool(
    name="update_ticket_status",
    description=(
        "Admin only. Set a ticket's status to open, in_progress, resolved or closed. "
        "Any status may be set from any other. The requester is emailed the new status."
    ),
    inputSchema=update_ticket_status_input_schema,
)


async def update_ticket_status(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    result = await engine.update_status(
        actor,
        arguments.get("ticket_id", ""),
        arguments.get("status", ""),
        arguments.get("notes"),
    )
    return as_text(_transition_payload(result))


# ── ticket_stats ──────────────────────────────────────────────────────────────

ticket_stats_input_schema = {
    "type": "object",
    "properties": {"actor_email": actor_email_property},
    "required": ["actor_email"],
}

ticket_stats_tool = types.Tool(
    name="ticket_stats",
    description="Count the tickets visible to the signed-in user, per status.",
    inputSchema=ticket_stats_input_schema,
)


async def ticket_stats(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    return as_text(await engine.ticket_stats(actor))


# ── ticket_board ──────────────────────────────────────────────────────────────

ticket_board_input_schema = {
    "type": "object",
    "properties": {"actor_email": actor_email_property},
    "required": ["actor_email"],
}

ticket_board_tool = types.Tool(
    name="ticket_board",
    description="Admin only. Load all tickets, users and categories in one call.",
    inputSchema=ticket_board_input_schema,
)


async def ticket_board(engine: LifecycleEngine, arguments: dict) -> list[types.TextContent]:
    actor = await actor_for(engine, arguments)
    board = await engine.load_board(actor)
    return as_text({
        "tickets": board.tickets,
        "users": board.users,
        "categories": board.categories,
    })
