import argparse
import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.database import ConstraintViolation, Database, StoreError, resolve_database_path


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Insert a user record directly into the database")
    parser.add_argument("name", help="Display name for the user")
    parser.add_argument("email", help="Unique email address")
    parser.add_argument("age", type=int, help="Age in years")
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERCRUD_DB_PATH or data/users.sqlite3)",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)

    name = args.name.strip()
    email = args.email.strip()
    if not name or not email or not args.age:
        print("Error: name, email and age are required.", file=sys.stderr)
        return 1

    db_env = args.db_path or os.getenv("USERCRUD_DB_PATH")
    db_path = resolve_database_path(db_env)

    database = Database(db_path)
    database.initialize()

    try:
        user = database.create_user(name, email, args.age)
    except (ConstraintViolation, StoreError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.name} <{user.email}>, age {user.age}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
