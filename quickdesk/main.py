"""
main.py — Demo run against a live QuickDesk server
==================================================
Start the server first (`quickdesk-server` or `python -m quickdesk.server`)
with the demo data seeded, then run `python -m quickdesk.main`.

Each scenario is a short list of tool calls. The output shows what the
server returned for each, or the error it reported.

  Scenario 1 — Bob searches his tickets: only his own come back,
               whatever filters he passes.
  Scenario 2 — Alice assigns the unassigned "Printer broken" ticket to
               herself; it moves to in_progress.
  Scenario 3 — Alice resolves it with notes; Bob is emailed the notes.
  Scenario 4 — Admin search for unassigned tickets.
  Scenario 5 — Bob tries to assign a ticket and is refused.
  Scenario 6 — Alice invites a new colleague.
"""

import asyncio
import json

from quickdesk.client import ToolCallError, call_tool, open_session
from quickdesk.config import SERVER_URL

ADMIN = "alice@company.com"
REQUESTER = "bob@company.com"
PRINTER_TICKET = "T-PR1NT0"

DEMO_SCENARIOS = [
    (
        "Scenario 1 — Requester sees only own tickets",
        [("search_tickets", {"actor_email": REQUESTER, "status": "all", "assigned": "all"})],
    ),
    (
        "Scenario 2 — Assign the printer ticket",
        [("assign_ticket", {"actor_email": ADMIN, "ticket_id": PRINTER_TICKET, "assignee_email": ADMIN})],
    ),
    (
        "Scenario 3 — Resolve with notes",
        [(
            "update_ticket_status",
            {"actor_email": ADMIN, "ticket_id": PRINTER_TICKET, "status": "resolved",
             "notes": "Replaced cartridge"},
        )],
    ),
    (
        "Scenario 4 — Unassigned tickets",
        [("search_tickets", {"actor_email": ADMIN, "status": "all", "assigned": "unassigned"})],
    ),
    (
        "Scenario 5 — Requester cannot assign",
        [("assign_ticket", {"actor_email": REQUESTER, "ticket_id": "T-AA1B2C", "assignee_email": ADMIN})],
    ),
    (
        "Scenario 6 — Invite a colleague",
        [
            ("invite_user", {"actor_email": ADMIN, "email": "erin@company.com",
                             "message": "Welcome to the team!"}),
            ("ticket_stats", {"actor_email": ADMIN}),
        ],
    ),
]


async def run_scenario(session, label: str, calls: list) -> None:
    print(f"\n{'═' * 65}")
    print(f"  {label}")
    print(f"{'═' * 65}")

    for name, arguments in calls:
        print(f"\n  → {name}({json.dumps(arguments)})")
        try:
            result = await call_tool(session, name, arguments)
        except ToolCallError as e:
            print(f"  ✗ {e.message}")
            continue
        print("  " + json.dumps(result, indent=2).replace("\n", "\n  "))


async def main() -> None:
    async with open_session(SERVER_URL) as session:
        print(f"Connected to MCP server at {SERVER_URL}")
        for label, calls in DEMO_SCENARIOS:
            await run_scenario(session, label, calls)

    print(f"\n{'═' * 65}")
    print("  Demo complete.")
    print(f"{'═' * 65}\n")


if __name__ == "__main__":
    asyncio.run(main())
