"""FastAPI application that exposes the user record endpoints."""
from __future__ import annotations

import logging
import os
from datetime import datetime
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from .database import ConstraintViolation, Database, StoreError, resolve_database_path
from .models import User

logger = logging.getLogger("usercrud.api")

MISSING_FIELDS_MESSAGE = "Name, email and age are required"
DUPLICATE_EMAIL_MESSAGE = "Email already registered"
USER_NOT_FOUND_MESSAGE = "User not found"

# SQLite stores INTEGER columns as signed 64-bit values.
SQLITE_INT_MIN = -(2**63)
SQLITE_INT_MAX = 2**63 - 1


class UserPayload(BaseModel):
    """Request body for creating or updating a user.

    Fields are optional at the schema level so that absent values reach the
    presence check and produce a single, uniform error message.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = Field(None, ge=SQLITE_INT_MIN, le=SQLITE_INT_MAX)

    def is_complete(self) -> bool:
        return bool(self.name) and bool(self.email) and bool(self.age)


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    age: int
    created_at: datetime = Field(..., alias="createdAt")


class UpdateUserResponse(BaseModel):
    message: str
    id: int


class MessageResponse(BaseModel):
    message: str


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        age=user.age,
        created_at=user.created_at,
    )


def _require_complete(payload: UserPayload) -> None:
    if not payload.is_complete():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=MISSING_FIELDS_MESSAGE)


def parse_user_id(user_id: str) -> int:
    """Path dependency: an id that is not an integer can never name a record."""

    try:
        value = int(user_id)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE) from exc
    if not SQLITE_INT_MIN <= value <= SQLITE_INT_MAX:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE)
    return value


def create_app(
    *,
    database: Database | None = None,
    initialize_database: bool = False,
) -> FastAPI:
    if database is None:
        db_path = resolve_database_path(os.getenv("USERCRUD_DB_PATH"))
        database = Database(db_path)
        database.initialize()
    elif initialize_database:
        database.initialize()

    app = FastAPI(
        title="User Records API",
        description="CRUD endpoints for user records",
        version="1.0.0",
    )
    app.state.database = database

    def get_db() -> Database:
        return database

    @app.get("/health")
    async def healthcheck() -> Dict[str, str]:
        return {"status": "ok"}

    @app.get("/users", response_model=List[UserResponse])
    async def list_users(db: Database = Depends(get_db)) -> List[UserResponse]:
        try:
            users = db.list_users()
        except StoreError as exc:
            logger.exception("Listing users failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch users",
            ) from exc
        return [user_to_response(user) for user in users]

    @app.get("/users/{user_id}", response_model=UserResponse)
    async def read_user(
        user_id: int = Depends(parse_user_id),
        db: Database = Depends(get_db),
    ) -> UserResponse:
        try:
            user = db.get_user(user_id)
        except StoreError as exc:
            logger.exception("Loading user %s failed", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to fetch user",
            ) from exc
        if user is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE)
        return user_to_response(user)

    @app.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
    async def create_user(payload: UserPayload, db: Database = Depends(get_db)) -> UserResponse:
        _require_complete(payload)
        try:
            user = db.create_user(payload.name, payload.email, payload.age)
        except ConstraintViolation as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_EMAIL_MESSAGE) from exc
        except StoreError as exc:
            logger.exception("Creating user failed")
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to create user",
            ) from exc
        logger.info("Created user #%s", user.id)
        return user_to_response(user)

    @app.put("/users/{user_id}", response_model=UpdateUserResponse)
    async def update_user(
        payload: UserPayload,
        user_id: int = Depends(parse_user_id),
        db: Database = Depends(get_db),
    ) -> UpdateUserResponse:
        _require_complete(payload)
        try:
            updated = db.update_user(user_id, payload.name, payload.email, payload.age)
        except ConstraintViolation as exc:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=DUPLICATE_EMAIL_MESSAGE) from exc
        except StoreError as exc:
            logger.exception("Updating user %s failed", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update user",
            ) from exc
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE)
        logger.info("Updated user #%s", user_id)
        return UpdateUserResponse(message="User updated successfully", id=user_id)

    @app.delete("/users/{user_id}", response_model=MessageResponse)
    async def delete_user(
        user_id: int = Depends(parse_user_id),
        db: Database = Depends(get_db),
    ) -> MessageResponse:
        try:
            deleted = db.delete_user(user_id)
        except StoreError as exc:
            logger.exception("Deleting user %s failed", user_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to delete user",
            ) from exc
        if not deleted:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_MESSAGE)
        logger.info("Deleted user #%s", user_id)
        return MessageResponse(message="User deleted successfully")

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(_: Request, exc: StarletteHTTPException):
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)})

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(_: Request, exc: RequestValidationError):
        logger.debug("Rejected malformed request: %s", exc.errors())
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request payload"},
        )

    return app


__all__ = ["UserPayload", "UserResponse", "create_app", "parse_user_id", "user_to_response"]
