"""
Hotel API - Domain Errors
=========================

Raised by the service layer, rendered to `{message, errors?}` JSON bodies by
the handlers in api/exception_handlers.py. Each error is scoped to a single
request.
"""

from typing import Dict, List, Optional


class HotelError(Exception):
    """Base class. `status_code` is the HTTP status the error maps to."""

    status_code = 400

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors

    def to_dict(self) -> dict:
        body = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class ValidationError(HotelError):
    """Malformed or missing input."""
    status_code = 422

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors={field: [message]})


class AuthError(HotelError):
    """Missing, invalid, expired or revoked credentials."""
    status_code = 401


class AuthorizationError(HotelError):
    """Role or ownership mismatch."""
    status_code = 403

    def __init__(self, message: str = "Unauthorized", errors=None):
        super().__init__(message, errors)


class NotFoundError(HotelError):
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id) -> "NotFoundError":
        return cls(f"{entity} {entity_id} not found")


class BusinessRuleViolation(HotelError):
    status_code = 400


class RoomUnavailable(BusinessRuleViolation):
    pass


class DateConflict(BusinessRuleViolation):
    pass


class ServiceInactive(BusinessRuleViolation):
    pass


class InvalidStatusTransition(BusinessRuleViolation):
    pass


class EntityInUse(BusinessRuleViolation):
    """The entity is still referenced and cannot be deleted."""
    pass
