"""External service clients for planbox."""

from planbox.integrations.backend import BackendClient

__all__ = ["BackendClient"]
