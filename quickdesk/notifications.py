"""
notifications.py — Email notifications for ticket transitions
=============================================================
A NotificationSender delivers one email: send(to, subject, body).
Two senders live here:

  - InMemoryOutbox  : keeps every message in a list (local runs, tests)
  - HttpEmailSender : posts the message to the hosted email integration

The build_* functions produce the (subject, body) pairs the lifecycle
engine sends on each transition.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

import requests

from quickdesk.config import APP_NAME, INVITATION_TTL_DAYS
from quickdesk.errors import NotificationError
from quickdesk.logging_config import get_logger
from quickdesk.schema import Invitation, Ticket, UserProfile

logger = get_logger(__name__)


@dataclass
class EmailMessage:
    to: str
    subject: str
    body: str
    sent_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat(timespec="seconds"))


class NotificationSender:
    async def send(self, to: str, subject: str, body: str) -> None:
        raise NotImplementedError


class InMemoryOutbox(NotificationSender):
    """Records sent messages. Set `fail_with` to make every send fail."""

    def __init__(self) -> None:
        self.sent: list[EmailMessage] = []
        self.attempts = 0
        self.fail_with: Optional[str] = None

    async def send(self, to: str, subject: str, body: str) -> None:
        self.attempts += 1
        if self.fail_with:
            raise NotificationError(self.fail_with, operation="send_email", entity_id=to)
        self.sent.append(EmailMessage(to=to, subject=subject, body=body))
        logger.debug("Queued email to %s: %s", to, subject)

    def sent_to(self, email: str) -> list[EmailMessage]:
        return [m for m in self.sent if m.to == email]


class HttpEmailSender(NotificationSender):
    def __init__(self, url: str, api_token: str = "", timeout_s: float = 15.0,
                 session: Optional[requests.Session] = None) -> None:
        self.url = url
        self.timeout_s = timeout_s
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if api_token:
            self.headers["Authorization"] = f"Bearer {api_token}"

    def _post(self, payload: dict) -> None:
        try:
            resp = self.session.post(self.url, headers=self.headers, json=payload, timeout=self.timeout_s)
            resp.raise_for_status()
        except requests.RequestException as e:
            raise NotificationError(
                f"Email integration failed: {e}",
                operation="send_email",
                entity_id=payload["to"],
            )

    async def send(self, to: str, subject: str, body: str) -> None:
        await asyncio.to_thread(self._post, {"to": to, "subject": subject, "body": body})


# ── Message builders ──────────────────────────────────────────────────────────

def build_ticket_created(ticket: Ticket) -> tuple[str, str]:
    subject = f"Ticket Created: {ticket.title}"
    body = (
        f'Your support ticket "{ticket.title}" has been created successfully. '
        f"We'll get back to you soon!\n\nTicket ID: {ticket.id}"
    )
    return subject, body


def build_ticket_assigned(ticket: Ticket) -> tuple[str, str]:
    subject = f"Ticket Assigned: {ticket.title}"
    body = (
        "You have been assigned a new support ticket.\n\n"
        f"Ticket: {ticket.title}\n"
        f"Requester: {ticket.requester_email}\n\n"
        "Please review and respond as soon as possible."
    )
    return subject, body


def build_status_updated(ticket: Ticket, new_status: str, notes: Optional[str] = None) -> tuple[str, str]:
    subject = f"Ticket Status Updated: {ticket.title}"
    body = f"Your support ticket status has been updated to: {new_status.replace('_', ' ')}\n\n"
    if notes:
        body += f"Resolution Notes: {notes}\n\n"
    body += f"Ticket: {ticket.title}"
    return subject, body


def build_invitation(invitation: Invitation, inviter: UserProfile, app_url: str,
                     ttl_days: int = INVITATION_TTL_DAYS) -> tuple[str, str]:
    role_label = "Administrator" if invitation.role == "admin" else "User"
    personal = ""
    if invitation.message:
        personal = f'Personal message from {inviter.display_name}:\n"{invitation.message}"\n\n'

    subject = f"You're invited to join {APP_NAME}"
    body = (
        "Hello!\n\n"
        f"You've been invited to join {APP_NAME} as a {role_label}.\n\n"
        f"{personal}"
        f"{APP_NAME} is a help desk system where you can create and manage support tickets. "
        "To get started:\n\n"
        f"1. Click the link below to access {APP_NAME}\n"
        f"2. Sign in using the email: {invitation.email}\n"
        "3. Start creating and managing tickets\n\n"
        f"Access {APP_NAME}: {app_url}\n\n"
        f"This invitation expires in {ttl_days} days.\n\n"
        "Welcome to the team!\n\n"
        "---\n"
        f"{APP_NAME} Support Team"
    )
    return subject, body
