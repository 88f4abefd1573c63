"""
Create an account (e.g. the first admin). Run from project root:
  python -m qms.scripts.create_user EMAIL PASSWORD NAME [role] [--client-id N]
Example:
  python -m qms.scripts.create_user admin@example.com your-secure-password "System Admin" ADMIN
"""
import argparse
import sys

from qms.core.database import SessionLocal
from qms.core.errors import AppError
from qms.core.roles import Role
from qms.core.security import PASSWORD_MAX_LEN, PASSWORD_MIN_LEN
from qms.services.users import create_user


def main() -> int:
    parser = argparse.ArgumentParser(description="Create a QMS account (no registration UI).")
    parser.add_argument("email", help="Email address (login name)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("name", help="Display name")
    parser.add_argument(
        "role", nargs="?", default=Role.ADMIN.value, choices=[r.value for r in Role]
    )
    parser.add_argument(
        "--client-id", type=int, default=None, help="Client (tenant) id; required for CLIENT"
    )
    args = parser.parse_args()

    email = args.email.strip().lower()
    if "@" not in email or len(email) > 255:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN:
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1
    if len(args.name.strip()) < 2:
        print("Name must be at least 2 characters.", file=sys.stderr)
        return 1

    db = SessionLocal()
    try:
        user = create_user(
            db,
            email=email,
            password=args.password,
            name=args.name,
            role=Role(args.role),
            client_id=args.client_id,
        )
        db.commit()
        print(f"Created user '{email}' (id {user.id}) with role '{args.role}'.")
        return 0
    except AppError as e:
        db.rollback()
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
