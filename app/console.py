"""Interactive console front end for the user records API."""

from __future__ import annotations

import sys
from datetime import timezone
from typing import Callable, Optional, Sequence, TextIO

import anyio

from .controller import UserListController, ViewState
from .models import User, UserDraft

Prompt = Callable[[str], str]

MIN_AGE = 1
MAX_AGE = 120


def render_user_list(records: Sequence[User]) -> str:
    if not records:
        return (
            "No users registered yet.\n"
            "Choose \"Add a new user\" to get started."
        )

    lines = [f"User list ({len(records)})", "-" * 60]
    for user in records:
        created = user.created_at.astimezone(timezone.utc).strftime("%d/%m/%Y")
        lines.append(f"#{user.id:<4} {user.name}")
        lines.append(f"      email: {user.email}")
        lines.append(f"      age:   {user.age}")
        lines.append(f"      added: {created}")
    return "\n".join(lines)


def render_status(state: ViewState) -> str:
    lines = []
    if state.error_message:
        lines.append(f"Error: {state.error_message}")
    if state.loading:
        lines.append("Loading...")
    return "\n".join(lines)


class UserForm:
    """Prompt-driven form for creating or editing a record.

    Pressing enter on a prefilled field keeps the current value. Leaving the
    name blank on a new record cancels the form.
    """

    def __init__(self, prompt: Prompt, output: TextIO, *, attempts: int = 3) -> None:
        self._prompt = prompt
        self._output = output
        self._attempts = attempts

    def _write(self, message: str) -> None:
        print(message, file=self._output)

    def _ask(self, label: str, current: Optional[str]) -> str:
        suffix = f" [{current}]" if current else ""
        answer = self._prompt(f"{label}{suffix}: ").strip()
        return answer or (current or "")

    def _ask_text(self, label: str, current: Optional[str]) -> Optional[str]:
        for _ in range(self._attempts):
            value = self._ask(label, current)
            if value:
                return value
            self._write(f"{label} is required.")
        return None

    def _ask_age(self, current: Optional[int]) -> Optional[int]:
        for _ in range(self._attempts):
            raw = self._ask("Age", str(current) if current is not None else None)
            try:
                age = int(raw)
            except ValueError:
                self._write("Age must be a whole number.")
                continue
            if not MIN_AGE <= age <= MAX_AGE:
                self._write(f"Age must be between {MIN_AGE} and {MAX_AGE}.")
                continue
            return age
        return None

    def collect(self, editing: Optional[User]) -> Optional[UserDraft]:
        """Return the filled-in draft, or ``None`` when the user cancels."""

        initial = UserDraft.from_user(editing) if editing is not None else None
        if editing is None:
            self._write("\nNew user (leave the name blank to cancel).")
            name = self._prompt("Name: ").strip()
            if not name:
                return None
        else:
            self._write(f"\nEditing user #{editing.id} (press enter to keep a value).")
            name = self._ask("Name", initial.name)

        email = self._ask_text("Email", initial.email if initial else None)
        if email is None:
            return None
        age = self._ask_age(initial.age if initial else None)
        if age is None:
            return None
        return UserDraft(name=name, email=email, age=age)


def _select_user(records: Sequence[User], prompt: Prompt, output: TextIO) -> Optional[User]:
    raw = prompt("User id: ").strip()
    try:
        user_id = int(raw)
    except ValueError:
        print("Please enter a numeric id.", file=output)
        return None
    for user in records:
        if user.id == user_id:
            return user
    print(f"No user #{user_id} in the current list.", file=output)
    return None


async def run_console(
    controller: UserListController,
    *,
    prompt: Prompt = input,
    output: TextIO | None = None,
) -> None:
    """Menu loop that turns console choices into controller intents."""

    out = output or sys.stdout

    async def ask(message: str) -> str:
        return await anyio.to_thread.run_sync(prompt, message)

    def show_status() -> None:
        status = render_status(controller.state)
        if status:
            print(status, file=out)

    async def fill_form() -> None:
        form = UserForm(prompt, out)
        while controller.state.form_visible:
            draft = await anyio.to_thread.run_sync(form.collect, controller.state.editing)
            if draft is None:
                controller.cancel()
                print("Cancelled.", file=out)
                return
            if await controller.submit(draft):
                print("Saved.", file=out)
                print(render_user_list(controller.state.records), file=out)
                return
            show_status()
            retry = await ask("Try again? [Y/n]: ")
            if retry.strip().lower() in {"n", "no"}:
                controller.cancel()
                return

    print("User Records Console", file=out)
    print("Press Ctrl+C at any time to exit.\n", file=out)

    await controller.mount()
    print(render_user_list(controller.state.records), file=out)

    while True:
        show_status()
        print("Select an option:", file=out)
        print("  1) List users", file=out)
        print("  2) Add a new user", file=out)
        print("  3) Edit a user", file=out)
        print("  4) Delete a user", file=out)
        print("  5) Refresh from server", file=out)
        print("  6) Exit", file=out)

        try:
            choice = (await ask("Enter choice [1-6]: ")).strip()
        except EOFError:
            return

        if choice == "1":
            print(render_user_list(controller.state.records), file=out)
        elif choice == "2":
            controller.new_user()
            await fill_form()
        elif choice == "3":
            user = await anyio.to_thread.run_sync(
                _select_user, controller.state.records, prompt, out
            )
            if user is not None:
                controller.edit(user)
                await fill_form()
        elif choice == "4":
            user = await anyio.to_thread.run_sync(
                _select_user, controller.state.records, prompt, out
            )
            if user is not None:

                async def confirm(target: User) -> bool:
                    answer = await ask(f"Delete {target.name} <{target.email}>? [y/N]: ")
                    return answer.strip().lower() in {"y", "yes"}

                if await controller.delete(user, confirm):
                    print("Deleted.", file=out)
                    print(render_user_list(controller.state.records), file=out)
        elif choice == "5":
            await controller.refresh()
            print(render_user_list(controller.state.records), file=out)
        elif choice == "6":
            print("Goodbye!", file=out)
            return
        else:
            print("Invalid selection. Please choose a number from the menu.", file=out)

        print(file=out)


__all__ = ["UserForm", "render_status", "render_user_list", "run_console"]
