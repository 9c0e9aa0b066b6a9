from __future__ import annotations

from pathlib import Path

from app.database import Database
from scripts.create_user import main


def test_script_inserts_record(tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"

    assert main(["Ana", "ana@x.com", "30", "--db", str(db_path)]) == 0
    assert "Created user #1: Ana <ana@x.com>, age 30" in capsys.readouterr().out

    users = Database(db_path).list_users()
    assert [(user.name, user.email, user.age) for user in users] == [("Ana", "ana@x.com", 30)]


def test_script_reports_duplicate_email(tmp_path: Path, capsys) -> None:
    db_path = tmp_path / "users.sqlite3"
    assert main(["Ana", "ana@x.com", "30", "--db", str(db_path)]) == 0
    capsys.readouterr()

    assert main(["Other", "ana@x.com", "41", "--db", str(db_path)]) == 1
    assert "already exists" in capsys.readouterr().err


def test_script_requires_fields(tmp_path: Path, capsys) -> None:
    assert main(["  ", "ana@x.com", "30", "--db", str(tmp_path / "users.sqlite3")]) == 1
    assert "required" in capsys.readouterr().err
