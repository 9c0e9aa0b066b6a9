from main import _parse_args


def test_default_command_invokes_serve() -> None:
    args = _parse_args([])
    assert args.command == "serve"


def test_default_command_accepts_options_without_subcommand() -> None:
    args = _parse_args(["--host", "127.0.0.1", "--port", "8080"])
    assert args.command == "serve"
    assert args.host == "127.0.0.1"
    assert args.port == 8080


def test_console_subcommand_accepts_api_url() -> None:
    args = _parse_args(["console", "--api-url", "http://localhost:9000/api"])
    assert args.command == "console"
    assert args.api_url == "http://localhost:9000/api"


def test_init_db_subcommand_available() -> None:
    args = _parse_args(["init-db"])
    assert args.command == "init-db"
