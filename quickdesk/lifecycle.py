"""
lifecycle.py — Ticket lifecycle and assignment workflow
=======================================================
The LifecycleEngine is the only place that decides what a help-desk
action does:

  - which status/assignment writes it issues to the entity gateway
  - who gets an email afterwards
  - which failures the caller sees, and how

Status moves freely between open, in_progress, resolved and closed;
there is no adjacency rule and a closed ticket can be reopened.

Every operation takes the signed-in user explicitly as `actor`. The
engine holds no entity state of its own: each call re-reads what it
needs from the gateway, then awaits its write before it notifies. A
failed email never undoes a write that already succeeded.

Failure policy per operation:

    assign / update_status   write fails  -> AssignmentError / StatusUpdateError
                             email fails  -> returned as a warning on the result
    create_ticket            email fails  -> logged only
    invite_user              save fails   -> InvitationPersistError, no email
                             email fails  -> InvitationEmailError, record kept
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Optional, Union

from quickdesk.auth import require_admin, require_user
from quickdesk.config import (
    APP_URL,
    CALL_TIMEOUT_S,
    CATEGORY_LIST_SORT,
    INVITATION_TTL_DAYS,
    TICKET_LIST_SORT,
    USER_LIST_SORT,
)
from quickdesk.errors import (
    AssignmentError,
    EntityNotFoundError,
    GatewayError,
    InvitationEmailError,
    InvitationPersistError,
    NotificationError,
    StatusUpdateError,
    ValidationError,
)
from quickdesk.filters import filter_categories, filter_tickets, filter_users
from quickdesk.gateway import EntityGateway
from quickdesk.logging_config import get_logger
from quickdesk.notifications import (
    NotificationSender,
    build_invitation,
    build_status_updated,
    build_ticket_assigned,
    build_ticket_created,
)
from quickdesk.schema import (
    CATEGORY_COLORS,
    PRIORITIES,
    ROLES,
    TICKET_STATUSES,
    Category,
    Invitation,
    Ticket,
    TicketFilters,
    UserProfile,
    now_iso,
)
from quickdesk.stats import (
    category_overview,
    profile_stats,
    ticket_status_counts,
    user_overview,
    user_ticket_stats,
)

logger = get_logger(__name__)

CATEGORY_FIELDS = ("name", "description", "color", "is_active")
PROFILE_FIELDS = ("full_name", "department", "phone", "notification_preferences")


@dataclass
class TransitionResult:
    """Outcome of assign/update_status: the written ticket plus any email failure."""

    ticket: Ticket
    notification_error: Optional[NotificationError] = None

    @property
    def warning(self) -> Optional[str]:
        if self.notification_error is None:
            return None
        return f"Ticket saved, but the notification email failed: {self.notification_error.message}"


@dataclass
class TicketBoard:
    tickets: list[Ticket] = field(default_factory=list)
    users: list[UserProfile] = field(default_factory=list)
    categories: list[Category] = field(default_factory=list)


def _ticket_id(ticket: Union[Ticket, str]) -> str:
    return ticket.id if isinstance(ticket, Ticket) else (ticket or "").strip()


def _required_text(fields: dict, name: str, operation: str) -> str:
    value = fields.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{name} is required", operation=operation, field=name)
    return value.strip()


class LifecycleEngine:
    def __init__(
        self,
        gateway: EntityGateway,
        sender: NotificationSender,
        call_timeout_s: float = CALL_TIMEOUT_S,
        app_url: str = APP_URL,
        invitation_ttl_days: int = INVITATION_TTL_DAYS,
    ) -> None:
        self.gateway = gateway
        self.sender = sender
        self.call_timeout_s = call_timeout_s
        self.app_url = app_url
        self.invitation_ttl_days = invitation_ttl_days

    # =========================================================================
    # Gateway and sender calls
    # =========================================================================

    async def _read(self, operation: str, entity_id: Optional[str], call: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(call, timeout=self.call_timeout_s)
        except asyncio.TimeoutError:
            logger.error("%s: gateway read timed out (entity=%s)", operation, entity_id)
            raise GatewayError(
                f"Entity service did not answer within {self.call_timeout_s}s",
                operation=operation,
                entity_id=entity_id,
            )
        except GatewayError as e:
            logger.error("%s: gateway read failed (entity=%s): %s", operation, entity_id, e.message)
            raise type(e)(e.message, operation=operation, entity_id=entity_id or e.entity_id) from e

    async def _write(self, operation: str, entity_id: Optional[str], call: Awaitable[Any],
                     error_cls: type[GatewayError] = GatewayError) -> Any:
        # A write that times out is reported as failed but left to finish.
        try:
            return await asyncio.wait_for(asyncio.shield(call), timeout=self.call_timeout_s)
        except asyncio.TimeoutError:
            logger.error("%s: gateway write timed out (entity=%s)", operation, entity_id)
            raise error_cls(
                f"Entity service did not answer within {self.call_timeout_s}s",
                operation=operation,
                entity_id=entity_id,
            )
        except GatewayError as e:
            logger.error("%s: gateway write failed (entity=%s): %s", operation, entity_id, e.message)
            raise error_cls(e.message, operation=operation, entity_id=entity_id) from e

    async def _notify(self, operation: str, entity_id: Optional[str],
                      to: str, subject: str, body: str) -> None:
        try:
            await asyncio.wait_for(self.sender.send(to, subject, body), timeout=self.call_timeout_s)
        except asyncio.TimeoutError:
            raise NotificationError(
                f"Email to {to} was not accepted within {self.call_timeout_s}s",
                operation=operation,
                entity_id=entity_id,
            )
        except NotificationError as e:
            raise NotificationError(e.message, operation=operation, entity_id=entity_id) from e

    async def _notify_or_warn(self, operation: str, entity_id: str,
                              to: str, subject: str, body: str) -> Optional[NotificationError]:
        try:
            await self._notify(operation, entity_id, to, subject, body)
        except NotificationError as e:
            logger.warning("%s: notification to %s failed for %s: %s", operation, to, entity_id, e.message)
            return e
        return None

    async def _get_ticket(self, operation: str, ticket_id: str) -> Ticket:
        if not ticket_id:
            raise ValidationError("ticket_id is required", operation=operation, field="ticket_id")
        return await self._read(operation, ticket_id, self.gateway.get("Ticket", ticket_id))

    async def _find_user(self, operation: str, email: str) -> Optional[UserProfile]:
        matches = await self._read(operation, email, self.gateway.filter("User", {"email": email}))
        return matches[0] if matches else None

    # =========================================================================
    # Ticket transitions
    # =========================================================================

    async def assign(self, actor: Optional[UserProfile], ticket: Union[Ticket, str],
                     assignee_email: str) -> TransitionResult:
        """
        Assign a ticket to an admin and move it to in_progress.

        The status is overwritten unconditionally, so a resolved or closed
        ticket goes back to in_progress when it is (re)assigned.
        """
        operation = "assign_ticket"
        actor = require_admin(actor, operation)
        ticket_id = _ticket_id(ticket)
        assignee_email = (assignee_email or "").strip().lower()
        if not assignee_email:
            raise ValidationError("assignee_email is required", operation=operation,
                                  entity_id=ticket_id, field="assignee_email")

        current = await self._get_ticket(operation, ticket_id)
        assignee = await self._find_user(operation, assignee_email)
        if assignee is None or not assignee.is_admin:
            raise ValidationError(
                f"{assignee_email} is not an admin and cannot be assigned tickets",
                operation=operation,
                entity_id=ticket_id,
                field="assignee_email",
            )

        updated = await self._write(
            operation,
            current.id,
            self.gateway.update("Ticket", current.id, {"assigned_to": assignee_email, "status": "in_progress"}),
            AssignmentError,
        )
        logger.info("%s: %s assigned to %s by %s", operation, updated.id, assignee_email, actor.email)

        subject, body = build_ticket_assigned(updated)
        warning = await self._notify_or_warn(operation, updated.id, assignee_email, subject, body)
        return TransitionResult(ticket=updated, notification_error=warning)

    async def update_status(self, actor: Optional[UserProfile], ticket: Union[Ticket, str],
                            new_status: str, notes: Optional[str] = None) -> TransitionResult:
        """
        Set a ticket's status. resolution_notes is written only when notes
        is non-empty; existing notes are never cleared by an empty value.
        """
        operation = "update_ticket_status"
        actor = require_admin(actor, operation)
        ticket_id = _ticket_id(ticket)
        if new_status not in TICKET_STATUSES:
            raise ValidationError(
                f"Invalid status '{new_status}'. Must be one of: {', '.join(TICKET_STATUSES)}",
                operation=operation,
                entity_id=ticket_id,
                field="status",
            )

        current = await self._get_ticket(operation, ticket_id)
        changes: dict[str, Any] = {"status": new_status}
        if notes:
            changes["resolution_notes"] = notes

        updated = await self._write(
            operation,
            current.id,
            self.gateway.update("Ticket", current.id, changes),
            StatusUpdateError,
        )
        logger.info("%s: %s %s -> %s by %s", operation, updated.id, current.status, new_status, actor.email)

        subject, body = build_status_updated(updated, new_status, notes)
        warning = await self._notify_or_warn(operation, updated.id, updated.requester_email, subject, body)
        return TransitionResult(ticket=updated, notification_error=warning)

    async def create_ticket(self, actor: Optional[UserProfile], fields: dict) -> Ticket:
        operation = "create_ticket"
        actor = require_user(actor, operation)
        title = _required_text(fields, "title", operation)
        description = _required_text(fields, "description", operation)
        category_id = _required_text(fields, "category_id", operation)
        priority = fields.get("priority") or "medium"
        if priority not in PRIORITIES:
            raise ValidationError(
                f"Invalid priority '{priority}'. Must be one of: {', '.join(PRIORITIES)}",
                operation=operation,
                field="priority",
            )
        attachment_urls = list(fields.get("attachment_urls") or [])

        try:
            category = await self._read(operation, category_id, self.gateway.get("Category", category_id))
        except EntityNotFoundError:
            category = None
        if category is None or not category.is_active:
            raise ValidationError(
                f"Category {category_id} is not available for new tickets",
                operation=operation,
                entity_id=category_id,
                field="category_id",
            )

        stamp = now_iso()
        ticket = await self._write(
            operation,
            None,
            self.gateway.create("Ticket", {
                "title": title,
                "description": description,
                "category_id": category_id,
                "priority": priority,
                "status": "open",
                "requester_email": actor.email,
                "assigned_to": None,
                "attachment_urls": attachment_urls,
                "created_date": stamp,
                "last_reply": stamp,
            }),
        )
        logger.info("%s: %s created by %s", operation, ticket.id, actor.email)

        # Confirmation email is best effort; the ticket exists either way.
        subject, body = build_ticket_created(ticket)
        try:
            await self._notify(operation, ticket.id, actor.email, subject, body)
        except NotificationError as e:
            logger.warning("%s: confirmation email for %s failed: %s", operation, ticket.id, e.message)
        return ticket

    # =========================================================================
    # Ticket lists
    # =========================================================================

    async def _scoped_tickets(self, actor: UserProfile, operation: str) -> list[Ticket]:
        if actor.is_admin:
            return await self._read(operation, None, self.gateway.list("Ticket", TICKET_LIST_SORT))
        tickets = await self._read(
            operation,
            actor.email,
            self.gateway.filter("Ticket", {"requester_email": actor.email}, TICKET_LIST_SORT),
        )
        return [t for t in tickets if t.requester_email == actor.email]

    async def list_tickets(self, actor: Optional[UserProfile], filters: Optional[TicketFilters] = None,
                           query: str = "") -> list[Ticket]:
        """
        Non-admins only ever see their own tickets; that scope is applied
        at fetch time, before any filter the caller supplies.
        """
        operation = "list_tickets"
        actor = require_user(actor, operation)
        tickets = await self._scoped_tickets(actor, operation)
        return filter_tickets(tickets, filters, query, include_requester=actor.is_admin)

    async def ticket_stats(self, actor: Optional[UserProfile]) -> dict[str, int]:
        operation = "ticket_stats"
        actor = require_user(actor, operation)
        return ticket_status_counts(await self._scoped_tickets(actor, operation))

    async def load_board(self, actor: Optional[UserProfile]) -> TicketBoard:
        """Admin view data. The three reads are independent and run concurrently."""
        operation = "load_board"
        require_admin(actor, operation)
        tickets, users, categories = await asyncio.gather(
            self._read(operation, None, self.gateway.list("Ticket", TICKET_LIST_SORT)),
            self._read(operation, None, self.gateway.list("User")),
            self._read(operation, None, self.gateway.list("Category")),
        )
        return TicketBoard(tickets=tickets, users=users, categories=categories)

    # =========================================================================
    # Categories
    # =========================================================================

    async def list_categories(self, actor: Optional[UserProfile], query: str = "") -> list[Category]:
        operation = "list_categories"
        actor = require_user(actor, operation)
        if actor.is_admin:
            categories = await self._read(operation, None, self.gateway.list("Category", CATEGORY_LIST_SORT))
        else:
            categories = await self.list_active_categories(actor)
        return filter_categories(categories, query)

    async def list_active_categories(self, actor: Optional[UserProfile]) -> list[Category]:
        """Categories offered when creating a ticket."""
        operation = "list_active_categories"
        require_user(actor, operation)
        return await self._read(operation, None, self.gateway.filter("Category", {"is_active": True}))

    async def category_overview(self, actor: Optional[UserProfile]) -> dict:
        operation = "category_overview"
        require_admin(actor, operation)
        categories, tickets = await asyncio.gather(
            self._read(operation, None, self.gateway.list("Category")),
            self._read(operation, None, self.gateway.list("Ticket")),
        )
        return category_overview(categories, tickets)

    def _category_changes(self, fields: dict, operation: str, entity_id: Optional[str]) -> dict:
        changes = {k: fields[k] for k in CATEGORY_FIELDS if k in fields}
        if "name" in changes:
            changes["name"] = _required_text(changes, "name", operation)
        if "color" in changes and changes["color"] not in CATEGORY_COLORS:
            raise ValidationError(
                f"Invalid color '{changes['color']}'. Must be one of: {', '.join(CATEGORY_COLORS)}",
                operation=operation,
                entity_id=entity_id,
                field="color",
            )
        if "is_active" in changes and not isinstance(changes["is_active"], bool):
            raise ValidationError("is_active must be true or false", operation=operation,
                                  entity_id=entity_id, field="is_active")
        return changes

    async def create_category(self, actor: Optional[UserProfile], fields: dict) -> Category:
        operation = "create_category"
        actor = require_admin(actor, operation)
        _required_text(fields, "name", operation)
        changes = self._category_changes(fields, operation, None)
        changes.setdefault("color", "blue")
        changes.setdefault("is_active", True)
        category = await self._write(operation, None, self.gateway.create("Category", changes))
        logger.info("%s: %s (%s) created by %s", operation, category.id, category.name, actor.email)
        return category

    async def update_category(self, actor: Optional[UserProfile], category_id: str, fields: dict) -> Category:
        operation = "update_category"
        actor = require_admin(actor, operation)
        changes = self._category_changes(fields, operation, category_id)
        if not changes:
            raise ValidationError("No category fields to update", operation=operation, entity_id=category_id)
        category = await self._write(operation, category_id,
                                     self.gateway.update("Category", category_id, changes))
        logger.info("%s: %s updated by %s", operation, category_id, actor.email)
        return category

    async def toggle_category_active(self, actor: Optional[UserProfile],
                                     category: Union[Category, str]) -> Category:
        """
        Flip is_active on the stored category. Tickets that already point
        at the category are left alone.
        """
        operation = "toggle_category_active"
        actor = require_admin(actor, operation)
        category_id = category.id if isinstance(category, Category) else category
        current = await self._read(operation, category_id, self.gateway.get("Category", category_id))
        updated = await self._write(operation, category_id,
                                    self.gateway.update("Category", category_id, {"is_active": not current.is_active}))
        logger.info("%s: %s is_active=%s by %s", operation, category_id, updated.is_active, actor.email)
        return updated

    # =========================================================================
    # Users and invitations
    # =========================================================================

    async def list_users(self, actor: Optional[UserProfile], query: str = "", role: str = "all") -> list[UserProfile]:
        operation = "list_users"
        require_admin(actor, operation)
        if role != "all" and role not in ROLES:
            raise ValidationError(f"Invalid role filter '{role}'", operation=operation, field="role")
        users = await self._read(operation, None, self.gateway.list("User", USER_LIST_SORT))
        return filter_users(users, query, role)

    async def user_overview(self, actor: Optional[UserProfile]) -> dict[str, int]:
        operation = "user_overview"
        require_admin(actor, operation)
        return user_overview(await self._read(operation, None, self.gateway.list("User")))

    async def user_ticket_stats(self, actor: Optional[UserProfile], email: str) -> dict[str, int]:
        operation = "user_ticket_stats"
        require_admin(actor, operation)
        tickets = await self._read(operation, None, self.gateway.list("Ticket"))
        return user_ticket_stats(tickets, (email or "").strip().lower())

    async def profile(self, actor: Optional[UserProfile]) -> dict:
        operation = "get_user_profile"
        actor = require_user(actor, operation)
        own = await self._read(operation, actor.email,
                               self.gateway.filter("Ticket", {"requester_email": actor.email}))
        return {"user": actor, "stats": profile_stats(own, actor.email)}

    async def update_profile(self, actor: Optional[UserProfile], fields: dict) -> UserProfile:
        """The caller edits their own profile; role and email are not editable here."""
        operation = "update_profile"
        actor = require_user(actor, operation)
        changes = {k: fields[k] for k in PROFILE_FIELDS if k in fields}
        if not changes:
            raise ValidationError("No profile fields to update", operation=operation, entity_id=actor.id)
        if "notification_preferences" in changes:
            prefs = changes["notification_preferences"]
            if not isinstance(prefs, dict):
                raise ValidationError("notification_preferences must be an object", operation=operation,
                                      entity_id=actor.id, field="notification_preferences")
            # Flags left out keep their stored values.
            current = await self._read(operation, actor.id, self.gateway.get("User", actor.id))
            changes["notification_preferences"] = {**current.notification_preferences.model_dump(), **prefs}
        updated = await self._write(operation, actor.id, self.gateway.update("User", actor.id, changes))
        logger.info("%s: %s updated their profile", operation, actor.email)
        return updated

    async def update_user_role(self, actor: Optional[UserProfile], user_id: str, role: str) -> UserProfile:
        operation = "update_user_role"
        actor = require_admin(actor, operation)
        if role not in ROLES:
            raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(ROLES)}",
                                  operation=operation, entity_id=user_id, field="role")
        updated = await self._write(operation, user_id, self.gateway.update("User", user_id, {"role": role}))
        logger.info("%s: %s is now %s (by %s)", operation, updated.email, role, actor.email)
        return updated

    async def invite_user(self, actor: Optional[UserProfile], data: dict) -> Invitation:
        """
        Two steps, not a transaction. If saving the invitation fails nothing
        is emailed. If the email fails the saved invitation stays, and the
        InvitationEmailError raised says so.
        """
        operation = "invite_user"
        actor = require_admin(actor, operation)
        email = _required_text(data, "email", operation).lower()
        if "@" not in email:
            raise ValidationError(f"Invalid email address '{email}'", operation=operation, field="email")
        role = data.get("role") or "user"
        if role not in ROLES:
            raise ValidationError(f"Invalid role '{role}'. Must be one of: {', '.join(ROLES)}",
                                  operation=operation, field="role")

        expires_at = datetime.now(timezone.utc) + timedelta(days=self.invitation_ttl_days)
        try:
            invitation = await self._write(
                operation,
                email,
                self.gateway.create("Invitation", {
                    "email": email,
                    "role": role,
                    "message": data.get("message") or "",
                    "invited_by": actor.email,
                    "expires_at": expires_at.isoformat(timespec="seconds"),
                }),
                InvitationPersistError,
            )
        except InvitationPersistError as e:
            raise InvitationPersistError(
                f"Could not save the invitation. Please check permissions and try again. ({e.message})",
                operation=operation,
                entity_id=email,
            ) from e

        subject, body = build_invitation(invitation, actor, self.app_url, self.invitation_ttl_days)
        try:
            await self._notify(operation, invitation.id, email, subject, body)
        except NotificationError as e:
            logger.error("%s: invitation %s saved but email to %s failed: %s",
                         operation, invitation.id, email, e.message)
            raise InvitationEmailError(
                "Invitation was created, but the email failed to send. "
                f"Please verify the email integration settings. ({e.message})",
                invitation,
                operation=operation,
            ) from e

        logger.info("%s: %s invited %s as %s", operation, actor.email, email, role)
        return invitation
