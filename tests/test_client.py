from __future__ import annotations

import httpx
import pytest

from app.application import create_application
from app.client import (
    NetworkError,
    UserAPIClient,
    UserAPIError,
    UserNotFoundError,
    UserRequestError,
    UserServiceError,
    user_from_payload,
)
from app.models import UserDraft


def _asgi_client(database, settings) -> UserAPIClient:
    app = create_application(database=database, settings=settings)
    return UserAPIClient("http://testserver/api", transport=httpx.ASGITransport(app=app))


@pytest.mark.anyio
async def test_round_trip_against_application(database, settings) -> None:
    async with _asgi_client(database, settings) as client:
        assert await client.health() is True
        assert await client.list_users() == []

        created = await client.create_user(UserDraft(name="Ana", email="ana@x.com", age=30))
        assert created.id == 1
        assert created.created_at.tzinfo is not None

        fetched = await client.get_user(created.id)
        assert fetched == created

        assert await client.update_user(created.id, UserDraft(name="Ana B", email="ana@x.com", age=31)) == 1
        assert (await client.get_user(created.id)).age == 31

        await client.delete_user(created.id)
        with pytest.raises(UserNotFoundError) as excinfo:
            await client.get_user(created.id)
        assert excinfo.value.message == "User not found"
        assert excinfo.value.status_code == 404


@pytest.mark.anyio
async def test_server_message_is_carried(database, settings) -> None:
    async with _asgi_client(database, settings) as client:
        await client.create_user(UserDraft(name="Ana", email="ana@x.com", age=30))

        with pytest.raises(UserRequestError) as excinfo:
            await client.create_user(UserDraft(name="Ana 2", email="ana@x.com", age=31))
        assert str(excinfo.value) == "Email already registered"

        with pytest.raises(UserNotFoundError):
            await client.delete_user(999)


@pytest.mark.anyio
async def test_generic_message_when_server_sends_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="upstream unavailable")

    async with UserAPIClient("http://example.test/api", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UserServiceError) as excinfo:
            await client.list_users()
        assert excinfo.value.message == "Failed to fetch users"

        with pytest.raises(UserServiceError) as excinfo:
            await client.update_user(1, UserDraft(name="Ana", email="ana@x.com", age=30))
        assert excinfo.value.message == "Failed to update user"

        assert await client.health() is False


@pytest.mark.anyio
async def test_transport_failure_becomes_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with UserAPIClient("http://example.test/api", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(NetworkError) as excinfo:
            await client.list_users()
    assert isinstance(excinfo.value, UserAPIError)
    assert "Failed to fetch users" in excinfo.value.message


@pytest.mark.anyio
async def test_requests_target_the_expected_routes() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append((request.method, request.url.path))
        if request.method == "DELETE":
            return httpx.Response(200, json={"message": "User deleted successfully"})
        return httpx.Response(200, json={"message": "User updated successfully", "id": 7})

    async with UserAPIClient("http://example.test/api/", transport=httpx.MockTransport(handler)) as client:
        assert await client.update_user(7, UserDraft(name="Ana", email="ana@x.com", age=30)) == 7
        await client.delete_user(7)

    assert seen == [("PUT", "/api/users/7"), ("DELETE", "/api/users/7")]


@pytest.mark.anyio
async def test_unexpected_payload_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"users": []})

    async with UserAPIClient("http://example.test/api", transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(UserAPIError):
            await client.list_users()


def test_user_from_payload_accepts_zulu_timestamps() -> None:
    user = user_from_payload(
        {"id": 3, "name": "Ana", "email": "ana@x.com", "age": 30, "createdAt": "2024-05-01T10:00:00Z"}
    )
    assert user.id == 3
    assert user.created_at.utcoffset().total_seconds() == 0

    with pytest.raises(UserAPIError):
        user_from_payload({"id": 3, "name": "Ana"})


def test_empty_base_url_is_rejected() -> None:
    with pytest.raises(ValueError):
        UserAPIClient("   ")
