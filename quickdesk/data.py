"""
data.py — Demo records for the in-memory entity gateway
=======================================================
Used when no hosted entity service is configured. The seed gives the
demo scenarios something to work on: two admins, two requesters, four
categories (one retired) and a few tickets in different states.
"""

from quickdesk.gateway import InMemoryGateway
from quickdesk.schema import Category, Ticket, UserProfile

# ── Users ─────────────────────────────────────────────────────────────────────

user_profiles: list[UserProfile] = [
    UserProfile(
        id="U-ALICE1",
        email="alice@company.com",
        full_name="Alice Johnson",
        role="admin",
        department="IT",
        last_login="2026-02-19T08:55:00+00:00",
        created_date="2026-01-05T09:00:00+00:00",
    ),
    UserProfile(
        id="U-CAROL1",
        email="carol@company.com",
        full_name="Carol White",
        role="admin",
        department="IT",
        created_date="2026-01-06T09:00:00+00:00",
    ),
    UserProfile(
        id="U-BOB001",
        email="bob@company.com",
        full_name="Bob Smith",
        role="user",
        department="Marketing",
        last_login="2026-02-18T08:40:00+00:00",
        created_date="2026-01-10T09:00:00+00:00",
    ),
    UserProfile(
        id="U-DAVE01",
        email="dave@company.com",
        full_name="Dave Brown",
        role="user",
        department="Finance",
        created_date="2026-01-12T09:00:00+00:00",
    ),
]

# ── Categories ────────────────────────────────────────────────────────────────

categories: list[Category] = [
    Category(id="C-HW0001", name="Hardware", description="Laptops, printers and peripherals",
             color="blue", created_date="2026-01-02T09:00:00+00:00"),
    Category(id="C-NET001", name="Network", description="VPN, Wi-Fi and connectivity",
             color="green", created_date="2026-01-02T09:05:00+00:00"),
    Category(id="C-SW0001", name="Software", description="Email, office apps and licences",
             color="purple", created_date="2026-01-02T09:10:00+00:00"),
    Category(id="C-OLD001", name="Legacy Systems", description="Retired mainframe terminals",
             color="orange", is_active=False, created_date="2025-06-01T09:00:00+00:00"),
]

# ── Tickets ───────────────────────────────────────────────────────────────────

tickets: list[Ticket] = [
    Ticket(
        id="T-AA1B2C",
        title="VPN disconnects every 30 minutes",
        description="VPN drops connection repeatedly, affecting remote work.",
        category_id="C-NET001",
        requester_email="bob@company.com",
        priority="medium",
        status="open",
        created_date="2026-02-18T09:00:00+00:00",
        last_reply="2026-02-18T09:00:00+00:00",
    ),
    Ticket(
        id="T-DD3E4F",
        title="Outlook not syncing emails",
        description="Outlook inbox stuck, emails not arriving since Monday.",
        category_id="C-SW0001",
        requester_email="dave@company.com",
        priority="high",
        status="in_progress",
        assigned_to="alice@company.com",
        created_date="2026-02-19T14:30:00+00:00",
        last_reply="2026-02-20T10:00:00+00:00",
    ),
    Ticket(
        id="T-PR1NT0",
        title="Printer broken",
        description="Floor 3 printer shows a paper jam error that never clears.",
        category_id="C-HW0001",
        requester_email="bob@company.com",
        priority="low",
        status="open",
        created_date="2026-02-19T16:00:00+00:00",
        last_reply="2026-02-19T16:00:00+00:00",
    ),
]


def build_demo_gateway() -> InMemoryGateway:
    gateway = InMemoryGateway()
    gateway.seed("User", user_profiles)
    gateway.seed("Category", categories)
    gateway.seed("Ticket", tickets)
    return gateway
