"""
RemoteStore over HTTP (httpx).

Every call carries the bearer token and a fixed deadline. HTTP failures are
mapped onto the transport error taxonomy so callers never see httpx types.
"""

import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from records import SecretRecord, parse_timestamp
from vaultsync import (
    AccessDenied,
    NetworkError,
    NotFound,
    ServerError,
    Unauthorized,
)

from .config import INSECURE_SKIP_VERIFY, REQUEST_TIMEOUT_SECONDS, SERVER_URL

logger = logging.getLogger(__name__)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("detail") or body.get("error") or body)
    return str(body)


def _raise_for_status(response: httpx.Response) -> None:
    if response.status_code < 400:
        return
    message = f"{response.status_code}: {_error_message(response)}"
    if response.status_code == 401:
        raise Unauthorized(message)
    if response.status_code == 403:
        raise AccessDenied(message)
    if response.status_code == 404:
        raise NotFound(message)
    raise ServerError(message)


class HttpRemoteStore:
    """Client side of the /api namespace."""

    def __init__(
        self,
        base_url: str = SERVER_URL,
        token: Optional[str] = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        verify: bool = not INSECURE_SKIP_VERIFY,
        transport: Optional[httpx.BaseTransport] = None,
        http: Optional[httpx.Client] = None,
    ):
        self._token = token
        self._http = http or httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            verify=verify,
            transport=transport,
        )

    @property
    def token(self) -> Optional[str]:
        return self._token

    def set_token(self, token: Optional[str]) -> None:
        self._token = token

    def _request(self, method: str, path: str, json: Any = None, auth: bool = True) -> httpx.Response:
        headers = {}
        if auth:
            if not self._token:
                raise Unauthorized("Not authenticated")
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            response = self._http.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            raise NetworkError(f"{method} {path} timed out") from e
        except httpx.TransportError as e:
            raise NetworkError(f"{method} {path} failed: {e!s}") from e
        logger.debug("%s %s -> %d", method, path, response.status_code)
        _raise_for_status(response)
        return response

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise ServerError("Invalid response from server") from e

    # --- auth ---

    def register(self, username: str, password: str) -> Tuple[int, str]:
        data = self._json(self._request("POST", "/api/auth/register", {"username": username, "password": password}, auth=False))
        self._token = data.get("token") or self._token
        return int(data["user_id"]), data.get("token", "")

    def login(self, username: str, password: str) -> Tuple[int, str]:
        data = self._json(self._request("POST", "/api/auth/login", {"username": username, "password": password}, auth=False))
        self._token = data["token"]
        return int(data["user_id"]), data["token"]

    # --- RemoteStore ---

    def create(self, record: SecretRecord) -> int:
        body = record.to_wire()
        body.pop("id")
        data = self._json(self._request("POST", "/api/data/", body))
        self._stamp(record, data)
        return int(data["id"])

    def get_all(self, owner_id: int) -> List[SecretRecord]:
        data = self._json(self._request("GET", "/api/data/"))
        return [self._parse(item, owner_id) for item in data]

    def get_by_id(self, record_id: int) -> SecretRecord:
        data = self._json(self._request("GET", f"/api/data/{record_id}/encrypted"))
        return self._parse(data)

    def get_metadata(self, record_id: int) -> Dict[str, Any]:
        """Record fields without ciphertext."""
        return self._json(self._request("GET", f"/api/data/{record_id}"))

    def update(self, record: SecretRecord) -> None:
        data = self._json(self._request("PUT", f"/api/data/{record.id}", record.to_wire()))
        self._stamp(record, data)

    def delete(self, record_id: int) -> None:
        self._request("DELETE", f"/api/data/{record_id}")

    def sync(self, batch: List[SecretRecord], owner_id: int = 0) -> Tuple[List[SecretRecord], List[Dict[str, Any]]]:
        """Server-side reconciliation: returns (merged records, per-record results)."""
        data = self._json(self._request("POST", "/api/sync/", [r.to_wire() for r in batch]))
        return [self._parse(item, owner_id) for item in data.get("data", [])], data.get("results", [])

    @staticmethod
    def _parse(item: Any, owner_id: int = 0) -> SecretRecord:
        try:
            return SecretRecord.from_wire(item, owner_id=owner_id)
        except ValueError as e:
            raise ServerError(f"Invalid record from server: {e!s}") from e

    @staticmethod
    def _stamp(record: SecretRecord, data: Dict[str, Any]) -> None:
        """Adopt the timestamps the server wrote."""
        try:
            if data.get("created_at"):
                record.created_at = parse_timestamp(data["created_at"])
            if data.get("updated_at"):
                record.updated_at = parse_timestamp(data["updated_at"])
        except ValueError as e:
            raise ServerError(f"Invalid timestamp from server: {e!s}") from e

    def close(self) -> None:
        self._http.close()

