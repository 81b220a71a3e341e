"""
StudentHub Portal - REST API Client
===================================

One pooled httpx.AsyncClient per portal session, one base URL for every
resource. Non-2xx answers become APIError subclasses carrying the backend's
`error` / `message` / `detail` text verbatim.

Usage:
    async with PortalAPIClient(config, token=session.token) as api:
        courses = await api.courses.get_all()
        await api.requests.update_status(request_id, "approved", "ok")
"""

import time
from typing import Any, Dict, Optional

import httpx

from studenthub.config import PortalConfig
from studenthub.exceptions import (
    ConnectionFailedError,
    InvalidResponseError,
    RequestTimeoutError,
    error_from_status,
)
from studenthub.logging_config import get_logger

logger = get_logger(__name__)


def _extract_error(response: httpx.Response) -> str:
    """Pull the human-readable message out of an error body, if any"""
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return ""


class PortalAPIClient:
    """Async client for the StudentHub backend"""

    def __init__(
        self,
        config: PortalConfig,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        # Imported here to avoid a cycle: resources type-hint this class
        from studenthub.api import resources

        self.config = config
        self.base_url = config.api_base_url
        self.token = token
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.timeout,
            transport=transport,
            headers={"Content-Type": "application/json"},
        )

        self.auth = resources.AuthClient(self)
        self.appointments = resources.AppointmentsClient(self)
        self.services = resources.ServicesClient(self)
        self.announcements = resources.AnnouncementsClient(self)
        self.courses = resources.CoursesClient(self)
        self.enrollments = resources.EnrollmentsClient(self)
        self.hostels = resources.HostelsClient(self)
        self.rooms = resources.RoomsClient(self)
        self.books = resources.BooksClient(self)
        self.borrowings = resources.BorrowingsClient(self)
        self.students = resources.StudentsClient(self)
        self.requests = resources.RequestsClient(self)
        self.users = resources.UsersClient(self)
        self.notifications = resources.NotificationsClient(self)

    async def __aenter__(self) -> "PortalAPIClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def set_token(self, token: Optional[str]) -> None:
        self.token = token

    def _get_headers(self) -> Dict[str, str]:
        if self.token:
            return {"Authorization": f"Bearer {self.token}"}
        return {}

    async def request(
        self,
        method: str,
        endpoint: str,
        json: Optional[Any] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Issue a request and return the decoded JSON body"""
        if params:
            params = {k: v for k, v in params.items() if v is not None and v != ""}

        started = time.perf_counter()
        try:
            response = await self._client.request(
                method,
                endpoint,
                json=json,
                params=params or None,
                headers=self._get_headers(),
            )
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {endpoint} timed out")
            raise RequestTimeoutError(self.config.timeout) from e
        except httpx.HTTPError as e:
            logger.warning(f"{method} {endpoint} failed: {e}")
            raise ConnectionFailedError(f"Cannot connect to server: {e}") from e

        duration_ms = (time.perf_counter() - started) * 1000
        logger.log_request(method, endpoint, response.status_code, duration_ms)

        if not response.is_success:
            raise error_from_status(response.status_code, _extract_error(response))

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise InvalidResponseError(f"{method} {endpoint} returned a non-JSON body") from e

    async def get(self, endpoint: str, **params: Any) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: Optional[Any] = None) -> Any:
        return await self.request("POST", endpoint, json=json)

    async def put(self, endpoint: str, json: Optional[Any] = None) -> Any:
        return await self.request("PUT", endpoint, json=json)

    async def patch(self, endpoint: str, json: Optional[Any] = None) -> Any:
        return await self.request("PATCH", endpoint, json=json)

    async def delete(self, endpoint: str, json: Optional[Any] = None) -> Any:
        return await self.request("DELETE", endpoint, json=json)

    async def health_check(self) -> Dict[str, Any]:
        return await self.get("/health")
