"""
auth.py — Who is calling
========================
The signed-in user is passed into every engine call as `actor`. It is
resolved here from the email the caller supplies, then checked with
require_user / require_admin.
"""

from typing import Optional

from quickdesk.errors import AuthError, AuthorizationError, GatewayError
from quickdesk.gateway import EntityGateway
from quickdesk.schema import UserProfile


async def resolve_actor(gateway: EntityGateway, email: Optional[str]) -> UserProfile:
    """Turn the caller's email into a fresh User record, or fail with AuthError."""
    email = (email or "").strip().lower()
    if not email:
        raise AuthError("Not signed in: actor_email is required", operation="resolve_actor")
    try:
        matches = await gateway.filter("User", {"email": email})
    except GatewayError as e:
        raise AuthError(f"Could not load the signed-in user: {e.message}",
                        operation="resolve_actor", entity_id=email)
    if not matches:
        raise AuthError(f"No user account for {email}", operation="resolve_actor", entity_id=email)
    return matches[0]


def require_user(actor: Optional[UserProfile], operation: str) -> UserProfile:
    if actor is None:
        raise AuthError("Not signed in", operation=operation)
    return actor


def require_admin(actor: Optional[UserProfile], operation: str) -> UserProfile:
    actor = require_user(actor, operation)
    if not actor.is_admin:
        raise AuthorizationError(
            f"{operation} requires the admin role",
            operation=operation,
            entity_id=actor.email,
        )
    return actor
