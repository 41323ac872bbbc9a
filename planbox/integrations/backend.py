"""HTTP/JSON client for the planner backend."""

import logging
import os
import re
from typing import Any, Dict, List, Optional

import requests
from dotenv import load_dotenv

from planbox.auth.tokens import TokenProvider, env_token_provider
from planbox.errors import NetworkFailure, Unauthenticated, ValidationRejected
from planbox.models.constants import DEFAULT_API_URL

load_dotenv()

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}


def normalize_api_base_url(raw: str) -> str:
    """Accept either the backend origin or the full ``/api`` base path.

    ``https://api.example.com`` and ``https://api.example.com/api/`` both
    become ``https://api.example.com/api``.
    """
    value = raw.strip()
    if not re.search(r"/api/?$", value):
        value = value.rstrip("/") + "/api"
    return value.rstrip("/")


def error_message(response: requests.Response) -> str:
    """Message for a non-2xx response: body ``error``/``message``, else the status text."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        message = body.get("error") or body.get("message")
        if message:
            return str(message)
    return response.reason or f"HTTP {response.status_code}"


class BackendClient:
    """Client for the planner REST API.

    All methods are synchronous; the store runs them in an executor.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        token_provider: Optional[TokenProvider] = None,
        dev_mode: Optional[bool] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the backend client.

        Args:
            base_url: API origin or base path. If None, reads PLANBOX_API_URL.
            token_provider: Callable returning the bearer token. If None, reads PLANBOX_API_TOKEN.
            dev_mode: Allow tokenless requests (backend substitutes a test user).
                      If None, reads PLANBOX_DEV_MODE.
            timeout: Request timeout in seconds. If None, reads PLANBOX_HTTP_TIMEOUT;
                     unset means requests wait indefinitely.
            session: requests.Session to reuse (mainly for tests).
        """
        self.base_url = normalize_api_base_url(base_url or os.getenv("PLANBOX_API_URL", DEFAULT_API_URL))
        self.token_provider = token_provider or env_token_provider()
        if dev_mode is None:
            dev_mode = os.getenv("PLANBOX_DEV_MODE", "").strip().lower() in _TRUTHY
        self.dev_mode = dev_mode
        if timeout is None and os.getenv("PLANBOX_HTTP_TIMEOUT"):
            timeout = float(os.getenv("PLANBOX_HTTP_TIMEOUT"))
        self.timeout = timeout
        self.session = session or requests.Session()

        self.tasks = TasksResource(self)
        self.time_segments = TimeSegmentsResource(self)
        self.projects = ProjectsResource(self)

    def _token(self) -> Optional[str]:
        try:
            return self.token_provider()
        except Exception as e:
            if not self.dev_mode:
                raise Unauthenticated(f"Could not get access token: {e}") from e
            logger.warning(f"Could not get access token, continuing without one in dev mode: {e}")
            return None

    def request(
        self,
        method: str,
        endpoint: str,
        payload: Any = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Any:
        """Send a request and decode the JSON response.

        Raises:
            Unauthenticated: No token outside dev mode, or HTTP 401/403
            ValidationRejected: HTTP 400/422
            NetworkFailure: Transport error or any other non-2xx response
        """
        headers = {"Content-Type": "application/json"}
        if authenticated:
            token = self._token()
            if not token and not self.dev_mode:
                raise Unauthenticated("User not authenticated. Please sign in.")
            if token:
                headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{endpoint}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"{method} {endpoint} failed: {type(e).__name__}: {str(e)}")
            raise NetworkFailure(f"{method} {endpoint} failed: {e}") from e

        if not response.ok:
            message = error_message(response)
            logger.error(f"{method} {endpoint} returned {response.status_code}: {message}")
            if response.status_code in (401, 403):
                raise Unauthenticated(message)
            if response.status_code in (400, 422):
                raise ValidationRejected(message, status_code=response.status_code)
            raise NetworkFailure(message, status_code=response.status_code)

        logger.debug(f"{method} {endpoint} -> {response.status_code}")
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkFailure(f"{method} {endpoint} returned invalid JSON", status_code=response.status_code) from e

    def health(self) -> Dict[str, Any]:
        """GET /health (no auth)."""
        return self.request("GET", "/health", authenticated=False)


class _Resource:
    """CRUD endpoints under one collection path."""

    path = ""

    def __init__(self, client: BackendClient):
        self.client = client

    def get_all(self) -> List[Dict[str, Any]]:
        return self.client.request("GET", self.path) or []

    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.request("POST", self.path, payload=payload)

    def update(self, entity_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        return self.client.request("PUT", f"{self.path}/{entity_id}", payload=updates)

    def delete(self, entity_id: str) -> Any:
        return self.client.request("DELETE", f"{self.path}/{entity_id}")


class TasksResource(_Resource):
    """/tasks endpoints."""

    path = "/tasks"

    def get_by_date(self, day: str) -> List[Dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/by-date", params={"date": day}) or []

    def get_by_id(self, task_id: str) -> Dict[str, Any]:
        return self.client.request("GET", f"{self.path}/{task_id}")

    def get_subtasks(self, parent_id: str) -> List[Dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/{parent_id}/subtasks") or []


class TimeSegmentsResource(_Resource):
    """/time-segments endpoints, including the bulk variants."""

    path = "/time-segments"

    def get_all(self, day: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"date": day} if day else None
        return self.client.request("GET", self.path, params=params) or []

    def get_by_date(self, day: str) -> List[Dict[str, Any]]:
        return self.client.request("GET", f"{self.path}/by-date/{day}") or []

    def bulk_delete(self, ids: List[str]) -> Any:
        return self.client.request("POST", f"{self.path}/bulk-delete", payload={"ids": list(ids)})

    def bulk_update(self, updates: List[Dict[str, Any]]) -> Any:
        """Each entry is a patch carrying the segment ``id``."""
        return self.client.request("POST", f"{self.path}/bulk-update", payload={"updates": list(updates)})


class ProjectsResource(_Resource):
    """/projects endpoints."""

    path = "/projects"
