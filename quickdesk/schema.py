"""
schema.py — Pydantic models for the QuickDesk help desk
=======================================================
These are the records owned by the entity gateway. The lifecycle engine
never keeps them between calls; it reads fresh copies and expresses
every change as a gateway write.
"""

import uuid
from datetime import datetime, timezone
from typing import Literal, Optional, get_args

from pydantic import BaseModel, Field

TicketStatus = Literal["open", "in_progress", "resolved", "closed"]
Priority = Literal["low", "medium", "high", "urgent"]
Role = Literal["user", "admin"]
CategoryColor = Literal["blue", "green", "purple", "orange", "red", "yellow", "indigo", "pink"]
AssignedFilter = Literal["all", "assigned", "unassigned"]

TICKET_STATUSES: tuple[str, ...] = get_args(TicketStatus)
PRIORITIES: tuple[str, ...] = get_args(Priority)
ROLES: tuple[str, ...] = get_args(Role)
CATEGORY_COLORS: tuple[str, ...] = get_args(CategoryColor)


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _short_id(prefix: str) -> str:
    return f"{prefix}-{str(uuid.uuid4())[:6].upper()}"


class NotificationPreferences(BaseModel):
    email_notifications: bool = True
    ticket_updates: bool = True
    weekly_summary: bool = False


class UserProfile(BaseModel):
    id: str = Field(default_factory=lambda: _short_id("U"))
    email: str
    full_name: str = ""
    role: Role = "user"
    department: Optional[str] = None
    phone: Optional[str] = None
    last_login: Optional[str] = None
    notification_preferences: NotificationPreferences = Field(default_factory=NotificationPreferences)
    created_date: str = Field(default_factory=now_iso)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


class Category(BaseModel):
    id: str = Field(default_factory=lambda: _short_id("C"))
    name: str
    description: str = ""
    color: CategoryColor = "blue"
    is_active: bool = True
    created_date: str = Field(default_factory=now_iso)


class Ticket(BaseModel):
    id: str = Field(default_factory=lambda: _short_id("T"))
    title: str
    description: str
    status: TicketStatus = "open"
    priority: Priority = "medium"
    category_id: str
    requester_email: str
    assigned_to: Optional[str] = None
    resolution_notes: Optional[str] = None
    created_date: str = Field(default_factory=now_iso)
    last_reply: str = Field(default_factory=now_iso)
    upvotes: int = 0
    downvotes: int = 0
    attachment_urls: list[str] = Field(default_factory=list)


class Invitation(BaseModel):
    id: str = Field(default_factory=lambda: _short_id("I"))
    email: str
    role: Role = "user"
    invited_by: str
    message: str = ""
    expires_at: str
    created_date: str = Field(default_factory=now_iso)


class TicketFilters(BaseModel):
    """Categorical list filters; "all" disables a filter."""

    status: Literal["all", "open", "in_progress", "resolved", "closed"] = "all"
    category: str = "all"
    priority: Literal["all", "low", "medium", "high", "urgent"] = "all"
    assigned: AssignedFilter = "all"


# Entity names as the hosted service knows them.
ENTITY_MODELS: dict[str, type[BaseModel]] = {
    "Ticket": Ticket,
    "User": UserProfile,
    "Category": Category,
    "Invitation": Invitation,
}
