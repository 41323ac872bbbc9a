"""Error taxonomy for planbox.

Store methods re-raise these after performing their rollback or resync;
UI-level callers decide how to notify the user. Nothing is retried.
"""

from typing import Optional


class PlanboxError(Exception):
    """Base class for all planbox errors."""


class NotFound(PlanboxError):
    """Entity is absent from the local collection before a mutation."""

    def __init__(self, kind: str, entity_id: str):
        super().__init__(f"{kind} {entity_id} not found")
        self.kind = kind
        self.entity_id = entity_id


class Unauthenticated(PlanboxError):
    """No credential available outside development mode, or the backend refused it."""


class NetworkFailure(PlanboxError):
    """Request rejected by the backend or transport error.

    ``status_code`` is None for transport errors (connection refused, DNS...).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ValidationRejected(NetworkFailure):
    """Backend rejected the payload (e.g. deadline before start date)."""
