import os
import sys

# Ensure clinic package import
sys.path.append(os.path.dirname(os.path.abspath(__file__)))

from clinic.config import get_settings
from clinic.database import SessionLocal, create_tables
from clinic.seed import ensure_initial_admin


def main():
    settings = get_settings()
    if not settings.admin_default_password:
        raise RuntimeError("Missing required env var: ADMIN_DEFAULT_PASSWORD")

    create_tables()
    db = SessionLocal()
    try:
        admin = ensure_initial_admin(db, settings)
    finally:
        db.close()
    print(f"Admin ready: username='{admin.username}', email='{admin.email}'")

if __name__ == "__main__":
    main()
