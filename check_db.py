#!/usr/bin/env python3
"""
Database Connection Diagnostic Tool
Checks DATABASE_URL and that the session and principal tables are reachable.
"""
import sys
import os
from urllib.parse import urlparse

# Add project to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import OperationalError

EXPECTED_TABLES = ("patients", "doctors", "admins", "staff", "login_sessions")


def check_database_connection() -> bool:
    print("=" * 60)
    print("Database Connection Diagnostic Tool")
    print("=" * 60)

    database_url = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")
    parsed = urlparse(database_url)
    print(f"\n[INFO] Scheme: {parsed.scheme}")
    if parsed.scheme.startswith("postgresql"):
        print(f"  Hostname: {parsed.hostname or 'localhost'}")
        print(f"  Port: {parsed.port or 5432}")
        print(f"  Database: {parsed.path.lstrip('/') or '(not set)'}")
        print(f"  Username: {parsed.username or '(not set)'}")

    if not database_url.startswith(("postgresql://", "postgresql+psycopg2://", "sqlite://")):
        print("\n[ERROR] Invalid DATABASE_URL format")
        print("Must start with: postgresql://, postgresql+psycopg2://, or sqlite://")
        return False

    print("\n[INFO] Testing database connection...")
    engine = create_engine(database_url, pool_pre_ping=True)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        print("\n[SUCCESS] Connection successful!")

        existing = set(inspect(engine).get_table_names())
        missing = [t for t in EXPECTED_TABLES if t not in existing]
        if missing:
            print(f"\n[WARNING] Tables not created yet: {', '.join(missing)}")
            print("  They are created when the API starts (or run seed_admin.py).")
        else:
            print("  All clinic tables present.")
        return True
    except OperationalError as e:
        error_str = str(e)
        print("\n[ERROR] Connection failed!")
        if "password authentication failed" in error_str:
            print(f"\n  Issue: Password authentication failed for '{parsed.username}'")
            print("  Check for characters that need URL encoding:")
            print("       @ = %40, # = %23, $ = %24, % = %25, & = %26, + = %2B, = = %3D")
        elif "could not connect" in error_str.lower() or "connection refused" in error_str.lower():
            print(f"\n  Issue: Cannot connect to {parsed.hostname or 'localhost'}:{parsed.port or 5432}")
        elif "does not exist" in error_str.lower():
            print(f"\n  Issue: {error_str.splitlines()[0]}")
        print(f"\n  Full error details:\n    {error_str}")
        return False
    finally:
        engine.dispose()

if __name__ == "__main__":
    success = check_database_connection()
    sys.exit(0 if success else 1)
