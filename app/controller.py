"""Client-side state for the user list and its edit form.

The controller owns the last known copy of the record list together with the
transient form state. Its one rule: after every successful create, update or
delete the list is replaced by a fresh fetch from the API, never patched in
place. A failed call keeps the previous list on display and records the error
message.

Gateway calls are serialized through a single lock. Two overlapping intents
therefore run one after the other, and the refresh issued last is also the one
applied last. A submit keeps the edit target that was current when it was
issued.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass, field, replace
from typing import Awaitable, Callable, Optional, Protocol, Sequence, Tuple, Union

import anyio

from .client import UserAPIError
from .models import User, UserDraft

logger = logging.getLogger("usercrud.controller")

ConfirmCallback = Callable[[User], Union[bool, Awaitable[bool]]]


class UserGateway(Protocol):
    async def list_users(self) -> Sequence[User]: ...

    async def create_user(self, draft: UserDraft) -> User: ...

    async def update_user(self, user_id: int, draft: UserDraft) -> int: ...

    async def delete_user(self, user_id: int) -> None: ...


@dataclass(frozen=True)
class ViewState:
    """Snapshot handed to the presentation layer."""

    records: Tuple[User, ...] = field(default_factory=tuple)
    editing: Optional[User] = None
    form_visible: bool = False
    loading: bool = False
    error_message: Optional[str] = None


class UserListController:
    """Coordinates user intents with the API and keeps :class:`ViewState`."""

    def __init__(self, gateway: UserGateway) -> None:
        self._gateway = gateway
        self._state = ViewState()
        self._lock = anyio.Lock()
        self._listeners: list[Callable[[ViewState], None]] = []

    @property
    def state(self) -> ViewState:
        return self._state

    def subscribe(self, listener: Callable[[ViewState], None]) -> None:
        """Call ``listener`` with every new state snapshot."""

        self._listeners.append(listener)

    def _set(self, **changes: object) -> None:
        self._state = replace(self._state, **changes)
        for listener in self._listeners:
            listener(self._state)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    async def mount(self) -> None:
        await self.refresh()

    async def refresh(self) -> None:
        async with self._lock:
            self._set(loading=True, error_message=None)
            try:
                await self._reload()
            finally:
                self._set(loading=False)

    async def _reload(self) -> None:
        try:
            records = await self._gateway.list_users()
        except UserAPIError as exc:
            logger.warning("Refreshing users failed: %s", exc)
            self._set(error_message=exc.message)
            return
        self._set(records=tuple(records))

    # ------------------------------------------------------------------
    # Form transitions
    # ------------------------------------------------------------------
    def new_user(self) -> None:
        self._set(editing=None, form_visible=True)

    def edit(self, user: User) -> None:
        self._set(editing=user, form_visible=True)

    def cancel(self) -> None:
        self._set(editing=None, form_visible=False)

    async def submit(self, draft: UserDraft) -> bool:
        """Create or update depending on the edit target.

        Returns ``True`` when the mutation succeeded. The form is hidden and the
        list refreshed only in that case.
        """

        # The edit target is fixed when the intent is issued, not when it runs.
        editing = self._state.editing
        async with self._lock:
            self._set(loading=True, error_message=None)
            try:
                try:
                    if editing is not None:
                        await self._gateway.update_user(editing.id, draft)
                    else:
                        await self._gateway.create_user(draft)
                except UserAPIError as exc:
                    logger.warning("Saving user failed: %s", exc)
                    self._set(error_message=exc.message)
                    return False

                self._set(editing=None, form_visible=False)
                await self._reload()
                return True
            finally:
                self._set(loading=False)

    # ------------------------------------------------------------------
    # Deletion
    # ------------------------------------------------------------------
    async def delete(self, user: User, confirm: ConfirmCallback) -> bool:
        """Delete ``user`` once ``confirm`` approves it.

        Declining leaves the state untouched and sends no request.
        """

        answer = confirm(user)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            return False

        async with self._lock:
            self._set(loading=True, error_message=None)
            try:
                try:
                    await self._gateway.delete_user(user.id)
                except UserAPIError as exc:
                    logger.warning("Deleting user #%s failed: %s", user.id, exc)
                    self._set(error_message=exc.message)
                    return False
                await self._reload()
                return True
            finally:
                self._set(loading=False)


__all__ = ["ConfirmCallback", "UserGateway", "UserListController", "ViewState"]
