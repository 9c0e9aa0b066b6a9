"""Command-line interface for the user records service."""

from __future__ import annotations
import argparse
import logging
import sys
from typing import Sequence

from app.config import Settings, load_settings
from app.database import Database

logger = logging.getLogger("usercrud.main")


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="User records service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", help="Initialise the user database")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP API")
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: 3001)",
    )

    console_parser = subparsers.add_parser(
        "console", help="Launch the interactive user management console"
    )
    console_parser.add_argument(
        "--api-url",
        default=None,
        help="Base URL of a running API (default: http://localhost:3001/api)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "console", "init-db"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            if any(flag in args_list for flag in ("-h", "--help")):
                return parser.parse_args(args_list)
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, settings: Settings, host: str | None, port: int | None) -> None:
    from app.application import create_application
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    logger.info("Starting user API on http://%s:%s", bind_host, bind_port)

    app = create_application(database=_initialise_database(settings), settings=settings)
    uvicorn.run(app, host=bind_host, port=bind_port, log_level=settings.log_level.lower())


def _run_console(*, settings: Settings, api_url: str | None) -> None:
    import anyio

    from app.client import UserAPIClient
    from app.console import run_console
    from app.controller import UserListController

    async def _main() -> None:
        async with UserAPIClient(api_url or settings.api_base_url) as client:
            if not await client.health():
                logger.warning("API at %s is not answering health checks", client.base_url)
            await run_console(UserListController(client))

    try:
        anyio.run(_main)
    except (KeyboardInterrupt, EOFError):
        print("\nExiting console.")


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point for CLI usage."""

    args = _parse_args(argv)
    settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if args.command == "serve":
        _serve(settings=settings, host=args.host, port=args.port)
    elif args.command == "console":
        _run_console(settings=settings, api_url=args.api_url)
    elif args.command == "init-db":
        _initialise_database(settings)
        print("Database initialisation complete.")


if __name__ == "__main__":
    main()
