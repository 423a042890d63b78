"""
Create a user (e.g. the first superadmin). Run from project root:
  python -m livo.scripts.create_user USERNAME EMAIL PASSWORD [role] [--name NAME]
Example:
  python -m livo.scripts.create_user superadmin superadmin@example.com your-secure-password superadmin
"""
import argparse
import logging
import sys

from livo.core.config import get_settings
from livo.core.database import SessionLocal
from livo.core.roles import ROLE_DESCRIPTIONS, ROLE_LEVELS
from livo.core.security import hash_password
from livo.models import Role, User, UserRole
from livo.schemas.user import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)

logger = logging.getLogger(__name__)


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.LOG_LEVEL, format="%(levelname)s %(name)s %(message)s")

    parser = argparse.ArgumentParser(description="Create a Livo user with one role.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("email", help="Email address")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default="superadmin", choices=list(ROLE_LEVELS))
    parser.add_argument("--name", default=None, help="Display name (defaults to username)")
    args = parser.parse_args()

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    db = SessionLocal()
    try:
        existing = (
            db.query(User)
            .filter((User.username == username) | (User.email == args.email))
            .first()
        )
        if existing:
            print(f"User '{username}' or email '{args.email}' already exists.", file=sys.stderr)
            return 1

        role = db.query(Role).filter(Role.name == args.role).first()
        if role is None:
            # Migrations seed roles; create it here so bootstrap works on a bare schema.
            role = Role(name=args.role, description=ROLE_DESCRIPTIONS.get(args.role, ""))
            db.add(role)
            logger.info("Role %s was missing; created it", args.role)

        user = User(
            username=username,
            email=args.email,
            password_hash=hash_password(args.password, settings.BCRYPT_ROUNDS),
            name=args.name or username,
            is_active=True,
        )
        db.add(user)
        db.flush()
        # The bootstrap user is recorded as granting its own role.
        db.add(UserRole(user_id=user.id, role_id=role.id, assigned_by=user.id))
        db.commit()
        print(f"Created user '{username}' with role '{args.role}'.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
