"""Seed an administrator account, creating it or promoting an existing one."""

import os

from app import create_app
from models import db
from models.user import User
from services.user_service import find_by_email, promote_to_admin

ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@example.com")
ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "AdminPass123")


def seed_admin() -> str:
    """Ensure the admin account exists, is verified and has the admin flag."""

    admin = find_by_email(ADMIN_EMAIL)
    if admin is None:
        admin = User(email=ADMIN_EMAIL, username=ADMIN_USERNAME, verified=True)
        admin.set_password(ADMIN_PASSWORD)
        db.session.add(admin)
        db.session.commit()
        action = "created"
    else:
        admin.mark_verified()
        action = "updated"
    promote_to_admin(ADMIN_EMAIL)
    return action


def main() -> None:
    app = create_app()
    with app.app_context():
        action = seed_admin()
        print(f"Admin user {action}: {ADMIN_EMAIL}")


if __name__ == "__main__":
    main()
