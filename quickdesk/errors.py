"""
errors.py — Typed failures raised by the ticket lifecycle engine
================================================================
Every error carries the operation name and the entity id it concerns so
a caller can render a message like "assign_ticket failed for T-AA1B2C".

    HelpdeskError
      ├─ ValidationError          bad input, raised before any write
      ├─ AuthError                no authenticated caller
      │    └─ AuthorizationError  caller is not an admin
      ├─ GatewayError             entity read/write failed or timed out
      │    ├─ EntityNotFoundError
      │    ├─ AssignmentError
      │    ├─ StatusUpdateError
      │    └─ InvitationPersistError
      └─ NotificationError        email delivery failed or timed out
           └─ InvitationEmailError
"""

from typing import Optional


class HelpdeskError(Exception):
    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.entity_id = entity_id


class ValidationError(HelpdeskError):
    def __init__(self, message: str, operation: Optional[str] = None,
                 entity_id: Optional[str] = None, field: Optional[str] = None) -> None:
        super().__init__(message, operation, entity_id)
        self.field = field


class AuthError(HelpdeskError):
    pass


class AuthorizationError(AuthError):
    pass


class GatewayError(HelpdeskError):
    pass


class EntityNotFoundError(GatewayError):
    pass


class AssignmentError(GatewayError):
    pass


class StatusUpdateError(GatewayError):
    pass


class InvitationPersistError(GatewayError):
    pass


class NotificationError(HelpdeskError):
    pass


class InvitationEmailError(NotificationError):
    """The invitation was saved but its email could not be delivered."""

    def __init__(self, message: str, invitation, operation: Optional[str] = None) -> None:
        super().__init__(message, operation, invitation.id)
        self.invitation = invitation
