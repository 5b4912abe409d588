"""HTTP client for the clinic REST API (appointments, staff, auth)."""

from __future__ import annotations

import logging
from typing import Any, Mapping

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from clinic_console.calendar.types import CalendarError

logger = logging.getLogger(__name__)


class ClinicApiError(CalendarError):
    """The clinic API could not be reached or answered with an error."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def create_http_session(max_retries: int = 2, backoff_factor: float = 0.5) -> requests.Session:
    """Session with connection pooling and retries on transient failures."""
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[429, 500, 502, 503, 504],
        allowed_methods=["GET"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=10)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Accept": "application/json"})
    return session


class ClinicApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or create_http_session()

    def get_json(
        self,
        path: str,
        params: Mapping[str, Any] | None = None,
        token: str | None = None,
    ) -> Any:
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {"Authorization": f"Bearer {token}"} if token else None
        try:
            response = self.session.get(url, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.warning("GET %s failed: %s", url, exc)
            raise ClinicApiError(f"Could not reach clinic API: {exc}") from exc

        if response.status_code >= 400:
            logger.warning("GET %s returned HTTP %s", url, response.status_code)
            raise ClinicApiError(
                f"Clinic API answered HTTP {response.status_code} for {path}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise ClinicApiError(f"Clinic API returned invalid JSON for {path}") from exc

    def current_user(self, token: str) -> Mapping[str, Any] | None:
        """Resolve a bearer token via ``/auth/me``; None when it is rejected."""
        try:
            payload = self.get_json("/auth/me", token=token)
        except ClinicApiError as exc:
            if exc.status_code in (401, 403):
                return None
            raise
        return payload if isinstance(payload, Mapping) else None
