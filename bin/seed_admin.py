# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261019v1
# ---------------------------------------------------------------------------
"""
Bootstrap script – creates the first admin user.

Run once after the initial migration:
    alembic upgrade head
    python bin/seed_admin.py

Reads FIRST_ADMIN_EMAIL, FIRST_ADMIN_PASSWORD and FIRST_ADMIN_NAME from
etc/app.conf (or the environment).  Self-registration can only ever create
``demandeur`` accounts, so this is the way in for the first administrator.
"""

import os
import sys

# bin/seed_admin.py  →  ../backend
_BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "backend"))
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

from auth.directory import provision_user     # noqa: E402
from core.config import settings              # noqa: E402
from core.errors import DuplicateEmailError   # noqa: E402
from core.permissions import Role             # noqa: E402
from database import SessionLocal             # noqa: E402


def seed() -> int:
    if not settings.first_admin_email or not settings.first_admin_password:
        print("[seed_admin] FIRST_ADMIN_EMAIL or FIRST_ADMIN_PASSWORD not set in etc/app.conf – nothing to do.")
        return 0

    db = SessionLocal()
    try:
        provision_user(
            db,
            settings.first_admin_name,
            settings.first_admin_email,
            settings.first_admin_password,
            Role.ADMIN,
        )
    except DuplicateEmailError:
        print(f"[seed_admin] '{settings.first_admin_email}' already exists – skipping.")
        return 0
    finally:
        db.close()

    print(f"[seed_admin] Admin '{settings.first_admin_email}' created successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(seed())
