import asyncio

import pytest

from quickdesk.auth import require_admin, require_user, resolve_actor
from quickdesk.errors import AuthError, AuthorizationError, GatewayError
from quickdesk.gateway import InMemoryGateway
from quickdesk.notifications import (
    build_invitation,
    build_status_updated,
    build_ticket_assigned,
    build_ticket_created,
)
from quickdesk.schema import Invitation, Ticket, UserProfile


class _BrokenGateway(InMemoryGateway):
    async def filter(self, entity, query, sort=None):
        raise GatewayError("service unavailable", operation=f"{entity}.filter")


def test_resolve_actor_normalizes_email(gateway):
    actor = asyncio.run(resolve_actor(gateway, "  Alice@Company.COM "))
    assert actor.id == "U-ALICE1"


@pytest.mark.parametrize("email", [None, "", "   ", "nobody@company.com"])
def test_resolve_actor_rejects_unknown(gateway, email):
    with pytest.raises(AuthError):
        asyncio.run(resolve_actor(gateway, email))


def test_resolve_actor_gateway_failure_is_auth_error():
    with pytest.raises(AuthError) as exc:
        asyncio.run(resolve_actor(_BrokenGateway(), "alice@company.com"))
    assert "service unavailable" in exc.value.message


def test_require_helpers(alice, bob):
    assert require_user(bob, "op") is bob
    assert require_admin(alice, "op") is alice
    with pytest.raises(AuthorizationError) as exc:
        require_admin(bob, "invite_user")
    assert exc.value.operation == "invite_user"
    with pytest.raises(AuthError):
        require_user(None, "op")


TICKET = Ticket(id="T-PR1NT0", title="Printer broken", description="Jam", category_id="C-HW0001",
                requester_email="bob@company.com")


def test_created_and_assigned_messages():
    subject, body = build_ticket_created(TICKET)
    assert subject == "Ticket Created: Printer broken"
    assert "Ticket ID: T-PR1NT0" in body

    subject, body = build_ticket_assigned(TICKET)
    assert subject == "Ticket Assigned: Printer broken"
    assert "Ticket: Printer broken" in body


def test_status_message_includes_notes_only_when_given():
    _, with_notes = build_status_updated(TICKET, "resolved", "Replaced cartridge")
    assert "Resolution Notes: Replaced cartridge" in with_notes
    _, without = build_status_updated(TICKET, "closed")
    assert "Resolution Notes" not in without


def test_invitation_message_uses_inviter_name():
    inviter = UserProfile(email="alice@company.com", full_name="Alice Johnson", role="admin")
    invitation = Invitation(email="erin@company.com", invited_by=inviter.email, message="Hi Erin",
                            expires_at="2026-03-01T00:00:00+00:00")
    subject, body = build_invitation(invitation, inviter, "https://desk.example.com")
    assert "QuickDesk" in subject
    assert "as a User" in body
    assert "Personal message from Alice Johnson" in body
    assert "Sign in using the email: erin@company.com" in body
    assert "expires in 7 days" in body
