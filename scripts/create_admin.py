"""Promote an existing account to company admin.

Sign-up only creates students, so admins are made here:

    python scripts/create_admin.py someone@example.com
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.internship_portal.internship_portal.container import build_container
from src.internship_portal.internship_portal.core.exceptions import DomainError


def main() -> int:
    if len(sys.argv) != 2:
        print("usage: create_admin.py EMAIL", file=sys.stderr)
        return 2

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        db_config=settings.DB_CONFIG,
        minio_config=settings.MINIO_CONFIG,
        secret_key=settings.SECRET_KEY,
    )
    try:
        profile = container.auth_service.promote_to_admin(sys.argv[1])
    except DomainError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"OK: {profile.email} is now an admin")
    return 0


if __name__ == "__main__":
    sys.exit(main())
