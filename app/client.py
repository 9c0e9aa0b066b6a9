"""Async HTTP client for the user records API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import httpx

from .models import User, UserDraft

logger = logging.getLogger("usercrud.client")


class UserAPIError(Exception):
    """Raised when a call to the user records API fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class UserRequestError(UserAPIError):
    """The API rejected the request (missing fields, duplicate email)."""


class UserNotFoundError(UserAPIError):
    """The requested record does not exist."""


class UserServiceError(UserAPIError):
    """The API failed while handling the request."""


class NetworkError(UserAPIError):
    """The API could not be reached."""


def _normalize_base_url(base_url: str) -> str:
    cleaned = (base_url or "").strip()
    if not cleaned:
        raise ValueError("API base URL must not be empty")
    return cleaned.rstrip("/")


def _extract_error_message(payload: object, default: str) -> str:
    if isinstance(payload, dict):
        for key in ("error", "message", "detail"):
            value = payload.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return default


def _parse_timestamp(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11 onwards
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def user_from_payload(payload: object) -> User:
    """Decode a record returned by the API."""

    if not isinstance(payload, dict):
        raise UserAPIError("User API returned an unexpected response payload")
    try:
        return User(
            id=int(payload["id"]),
            name=str(payload["name"]),
            email=str(payload["email"]),
            age=int(payload["age"]),
            created_at=_parse_timestamp(str(payload["createdAt"])),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise UserAPIError("User API response was missing required fields") from exc


class UserAPIClient:
    """One coroutine per API route.

    Every call issues a single request. Failures surface as
    :class:`UserAPIError`, carrying the server's message when it sent one.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._base_url = _normalize_base_url(base_url)
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def __aenter__(self) -> "UserAPIClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        failure_message: str,
        json_body: Optional[dict[str, object]] = None,
    ) -> Any:
        try:
            response = await self._client.request(method, path, json=json_body)
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(f"{failure_message}: could not reach the API") from exc

        if response.status_code >= 400:
            try:
                parsed = response.json()
            except ValueError:
                parsed = None
            message = _extract_error_message(parsed, failure_message)
            status_code = response.status_code
            if status_code == 404:
                raise UserNotFoundError(message, status_code=status_code)
            if status_code >= 500:
                raise UserServiceError(message, status_code=status_code)
            raise UserRequestError(message, status_code=status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise UserAPIError("User API returned an invalid response") from exc

    async def health(self) -> bool:
        try:
            await self._request("GET", "/health", failure_message="Health check failed")
        except UserAPIError:
            return False
        return True

    async def list_users(self) -> List[User]:
        data = await self._request("GET", "/users", failure_message="Failed to fetch users")
        if not isinstance(data, list):
            raise UserAPIError("User API returned an unexpected response payload")
        return [user_from_payload(item) for item in data]

    async def get_user(self, user_id: int) -> User:
        data = await self._request("GET", f"/users/{user_id}", failure_message="Failed to fetch user")
        return user_from_payload(data)

    async def create_user(self, draft: UserDraft) -> User:
        data = await self._request(
            "POST",
            "/users",
            failure_message="Failed to create user",
            json_body=draft.to_payload(),
        )
        return user_from_payload(data)

    async def update_user(self, user_id: int, draft: UserDraft) -> int:
        data = await self._request(
            "PUT",
            f"/users/{user_id}",
            failure_message="Failed to update user",
            json_body=draft.to_payload(),
        )
        try:
            return int(data["id"])
        except (KeyError, TypeError, ValueError) as exc:
            raise UserAPIError("User API response was missing required fields") from exc

    async def delete_user(self, user_id: int) -> None:
        await self._request("DELETE", f"/users/{user_id}", failure_message="Failed to delete user")


__all__ = [
    "NetworkError",
    "UserAPIClient",
    "UserAPIError",
    "UserNotFoundError",
    "UserRequestError",
    "UserServiceError",
    "user_from_payload",
]
