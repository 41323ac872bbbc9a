"""Bearer credential providers for planbox."""

from planbox.auth.tokens import TokenProvider, static_token, env_token_provider

__all__ = ["TokenProvider", "static_token", "env_token_provider"]
