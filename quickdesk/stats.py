"""
stats.py — Dashboard and profile counters
=========================================
Pure functions over lists the engine already fetched. Nothing here
reads the gateway or applies role scoping.
"""

from typing import Iterable

from quickdesk.schema import TICKET_STATUSES, Category, Ticket, UserProfile


def ticket_status_counts(tickets: Iterable[Ticket]) -> dict[str, int]:
    counts = {status: 0 for status in TICKET_STATUSES}
    for ticket in tickets:
        counts[ticket.status] += 1
    return counts


def user_ticket_stats(tickets: Iterable[Ticket], email: str) -> dict[str, int]:
    """Tickets a user created and tickets assigned to them, as admins see it."""
    tickets = list(tickets)
    created = [t for t in tickets if t.requester_email == email]
    assigned = [t for t in tickets if t.assigned_to == email]
    return {
        "created": len(created),
        "assigned": len(assigned),
        "open": sum(1 for t in created if t.status == "open"),
        "resolved": sum(1 for t in assigned if t.status == "resolved"),
    }


def profile_stats(tickets: Iterable[Ticket], email: str) -> dict[str, int]:
    own = [t for t in tickets if t.requester_email == email]
    return {
        "created": len(own),
        "open": sum(1 for t in own if t.status == "open"),
        "resolved": sum(1 for t in own if t.status == "resolved"),
    }


def user_overview(users: Iterable[UserProfile]) -> dict[str, int]:
    users = list(users)
    return {
        "total_users": len(users),
        "admin_users": sum(1 for u in users if u.role == "admin"),
        "regular_users": sum(1 for u in users if u.role == "user"),
        "active_users": sum(1 for u in users if u.last_login),
    }


def category_overview(categories: Iterable[Category], tickets: Iterable[Ticket]) -> dict:
    categories = list(categories)
    tickets = list(tickets)
    per_category = {c.id: 0 for c in categories}
    for ticket in tickets:
        if ticket.category_id in per_category:
            per_category[ticket.category_id] += 1
    return {
        "total_categories": len(categories),
        "active_categories": sum(1 for c in categories if c.is_active),
        "inactive_categories": sum(1 for c in categories if not c.is_active),
        "total_tickets": len(tickets),
        "tickets_per_category": per_category,
    }
