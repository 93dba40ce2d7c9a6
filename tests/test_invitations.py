import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from quickdesk.errors import (
    AuthorizationError,
    InvitationEmailError,
    InvitationPersistError,
    NotificationError,
    ValidationError,
)


def test_invite_saves_record_and_emails_invitee(engine, gateway, outbox, alice):
    invitation = asyncio.run(engine.invite_user(alice, {
        "email": "Erin@Company.com",
        "role": "admin",
        "message": "Welcome aboard",
    }))

    assert invitation.email == "erin@company.com"
    assert invitation.invited_by == "alice@company.com"
    stored = asyncio.run(gateway.get("Invitation", invitation.id))
    assert stored.role == "admin"

    expires = datetime.fromisoformat(invitation.expires_at)
    expected = datetime.now(timezone.utc) + timedelta(days=7)
    assert abs((expires - expected).total_seconds()) < 60

    message = outbox.sent_to("erin@company.com")[0]
    assert message.subject == "You're invited to join QuickDesk"
    assert "as a Administrator" in message.body
    assert '"Welcome aboard"' in message.body
    assert "https://desk.example.com" in message.body


def test_invite_defaults_to_user_role(engine, outbox, alice):
    invitation = asyncio.run(engine.invite_user(alice, {"email": "frank@company.com"}))
    assert invitation.role == "user"
    assert "Personal message" not in outbox.sent[0].body


def test_persist_failure_never_sends_email(engine, gateway, outbox, alice):
    gateway.fail_writes.add(("create", "Invitation"))

    with pytest.raises(InvitationPersistError) as exc:
        asyncio.run(engine.invite_user(alice, {"email": "erin@company.com"}))

    assert exc.value.message.startswith("Could not save the invitation")
    assert exc.value.operation == "invite_user"
    assert outbox.attempts == 0
    assert asyncio.run(gateway.list("Invitation")) == []


def test_email_failure_keeps_invitation(engine, gateway, outbox, alice):
    outbox.fail_with = "integration disabled"

    with pytest.raises(InvitationEmailError) as exc:
        asyncio.run(engine.invite_user(alice, {"email": "erin@company.com"}))

    error = exc.value
    assert isinstance(error, NotificationError)
    assert error.message.startswith("Invitation was created, but the email failed to send")
    assert "integration disabled" in error.message
    stored = asyncio.run(gateway.get("Invitation", error.invitation.id))
    assert stored.email == "erin@company.com"
    assert error.entity_id == stored.id
    assert outbox.attempts == 1


@pytest.mark.parametrize("data", [{"email": ""}, {"email": "not-an-email"}, {"email": "x@y.com", "role": "root"}])
def test_invite_validation(engine, outbox, alice, data):
    with pytest.raises(ValidationError):
        asyncio.run(engine.invite_user(alice, data))
    assert outbox.attempts == 0


def test_invite_requires_admin(engine, bob):
    with pytest.raises(AuthorizationError):
        asyncio.run(engine.invite_user(bob, {"email": "erin@company.com"}))


def test_email_timeout_keeps_invitation(engine, gateway, outbox, alice):
    engine.call_timeout_s = 0.05
    outbox.delay_s = 0.5

    with pytest.raises(InvitationEmailError) as exc:
        asyncio.run(engine.invite_user(alice, {"email": "gina@company.com"}))

    assert "was not accepted within 0.05s" in exc.value.message
    stored = asyncio.run(gateway.get("Invitation", exc.value.invitation.id))
    assert stored.email == "gina@company.com"
    assert outbox.sent == []


def test_invitation_email_states_configured_ttl(engine, gateway, outbox, alice):
    engine.invitation_ttl_days = 3

    invitation = asyncio.run(engine.invite_user(alice, {"email": "hank@company.com"}))

    expires = datetime.fromisoformat(invitation.expires_at)
    expected = datetime.now(timezone.utc) + timedelta(days=3)
    assert abs((expires - expected).total_seconds()) < 60
    assert "expires in 3 days" in outbox.sent[0].body
