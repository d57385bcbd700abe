"""
HTTP client for the remote source of truth.
"""

from dataclasses import dataclass
from typing import Any, Optional

import requests

from util.logging import logger
from . import config
from .errors import EndpointUnavailable, NetworkFailure, ServerRejected


@dataclass
class ApiResponse:
    status_code: int
    body: Any = None
    path: str = ""

    @property
    def ok(self) -> bool:
        """Success as state-changing commands define it."""
        return self.status_code in (200, 201)

    @property
    def not_found(self) -> bool:
        return self.status_code == 404

    def require_body(self) -> Any:
        """Body of a successful read, or the matching DashboardError."""
        if self.not_found:
            raise EndpointUnavailable(path=self.path)
        if not 200 <= self.status_code < 300:
            raise ServerRejected(f"{self.path} returned {self.status_code}", path=self.path, status_code=self.status_code)
        return self.body

    def raise_for_command(self) -> None:
        if self.ok:
            return
        if self.not_found:
            raise EndpointUnavailable(path=self.path)
        raise ServerRejected(f"{self.path} returned {self.status_code}", path=self.path, status_code=self.status_code)


class RestClient:
    """Thin wrapper over requests.Session.

    Every HTTP status comes back as an ApiResponse; a 404 carries no body so it
    can be used as the not-found sentinel. Only transport failures raise.
    """

    def __init__(self, base_url: Optional[str] = None, token: Optional[str] = None,
                 timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.base_url = (base_url or config.API_BASE_URL).rstrip("/")
        self.token = token if token is not None else config.API_AUTH_TOKEN
        self.timeout = timeout or config.API_TIMEOUT_SEC
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def request(self, method: str, path: str, json: Any = None) -> ApiResponse:
        headers = {}
        if self.token:
            headers["Authorization"] = self.token

        try:
            response = self.session.request(
                method.upper(),
                self.url_for(path),
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.log_fetch(path, "failed", {"method": method.upper(), "error": str(e)})
            raise NetworkFailure(str(e), path=path) from e

        if response.status_code == 404:
            logger.log_fetch(path, "unavailable", {"method": method.upper()})
            return ApiResponse(status_code=404, body=None, path=path)

        try:
            body = response.json()
        except ValueError:
            body = None

        return ApiResponse(status_code=response.status_code, body=body, path=path)

    def get(self, path: str) -> ApiResponse:
        return self.request("GET", path)

    def put(self, path: str, json: Any = None) -> ApiResponse:
        return self.request("PUT", path, json=json)

    def post(self, path: str, json: Any = None) -> ApiResponse:
        return self.request("POST", path, json=json)

    def close(self) -> None:
        self.session.close()
