"""
filters.py — Search box and filter panel semantics
==================================================
All predicates are ANDed together. A categorical filter set to "all"
matches everything, and an empty search query matches everything.
Filtering never reorders: the output keeps the order the gateway
delivered, so filtering the same list twice gives the same result.

Role scoping is not done here. It happens when the list is fetched
(see LifecycleEngine.list_tickets) so a filter value can never widen it.
"""

from typing import Iterable, Optional

from quickdesk.schema import Category, Ticket, TicketFilters, UserProfile


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def matches_query(ticket: Ticket, query: str, include_requester: bool = False) -> bool:
    needle = (query or "").lower()
    if not needle:
        return True
    if _contains(ticket.title, needle) or _contains(ticket.description, needle):
        return True
    return include_requester and _contains(ticket.requester_email, needle)


def matches_filters(ticket: Ticket, filters: TicketFilters) -> bool:
    if filters.status != "all" and ticket.status != filters.status:
        return False
    if filters.category != "all" and ticket.category_id != filters.category:
        return False
    if filters.priority != "all" and ticket.priority != filters.priority:
        return False
    if filters.assigned == "assigned" and not ticket.assigned_to:
        return False
    if filters.assigned == "unassigned" and ticket.assigned_to:
        return False
    return True


def filter_tickets(
    tickets: Iterable[Ticket],
    filters: Optional[TicketFilters] = None,
    query: str = "",
    include_requester: bool = False,
) -> list[Ticket]:
    """
    include_requester widens the text match to requester_email; admin views
    use it, a requester's own dashboard does not.
    """
    filters = filters or TicketFilters()
    return [
        t for t in tickets
        if matches_query(t, query, include_requester) and matches_filters(t, filters)
    ]


def filter_users(users: Iterable[UserProfile], query: str = "", role: str = "all") -> list[UserProfile]:
    needle = (query or "").lower()
    result = []
    for user in users:
        matches_search = (
            not needle
            or _contains(user.full_name, needle)
            or _contains(user.email, needle)
            or _contains(user.department, needle)
        )
        if matches_search and (role == "all" or user.role == role):
            result.append(user)
    return result


def filter_categories(categories: Iterable[Category], query: str = "") -> list[Category]:
    needle = (query or "").lower()
    return [
        c for c in categories
        if not needle or _contains(c.name, needle) or _contains(c.description, needle)
    ]
