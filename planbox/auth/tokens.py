"""Bearer token providers.

The identity service itself is external; the backend client only needs a
zero-argument callable returning the current token (or None when signed out).
"""

import os
from typing import Callable, Optional

from dotenv import load_dotenv

load_dotenv()

TokenProvider = Callable[[], Optional[str]]


def static_token(token: Optional[str]) -> TokenProvider:
    """Provider that always returns the same token."""
    def provider() -> Optional[str]:
        return token or None
    return provider


def env_token_provider(env_var: str = "PLANBOX_API_TOKEN") -> TokenProvider:
    """Provider that reads the token from the environment on every call."""
    def provider() -> Optional[str]:
        return os.getenv(env_var) or None
    return provider
