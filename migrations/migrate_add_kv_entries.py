#!/usr/bin/env python3
"""
Migration script to create the kv_entries table backing the contact service.

This script:
1. Creates kv_entries table
2. Creates the index used to find expired entries

Rate limit counters expire after one window (1 hour by default).
Contact submissions never expire.
"""

import os
import sys
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from dotenv import load_dotenv

from src.shared.kv.database import normalize_database_url


def create_kv_entries_table(engine):
    """Create kv_entries table and its index. Returns True if the table was created."""
    with engine.begin() as connection:
        if inspect(connection).has_table("kv_entries"):
            print("✓ Table 'kv_entries' already exists.")
            return False

        print("Creating 'kv_entries' table...")
        connection.execute(text("""
            CREATE TABLE kv_entries (
                key VARCHAR PRIMARY KEY,
                value TEXT NOT NULL,
                created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
                expires_at TIMESTAMP NULL
            )
        """))
        connection.execute(text("""
            CREATE INDEX idx_kv_entries_expires_at
            ON kv_entries(expires_at)
        """))
        print("✓ Successfully created 'kv_entries' table and index.")
        return True


if __name__ == "__main__":
    load_dotenv()
    database_url = os.environ.get("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable is required.")
        sys.exit(1)
    database_url = normalize_database_url(database_url)

    print("Running migration to create kv_entries table...")
    print(f"Database: {database_url.split('@')[-1] if '@' in database_url else 'local'}")
    print()

    try:
        create_kv_entries_table(create_engine(database_url))
    except SQLAlchemyError as e:
        print(f"ERROR: Database error: {str(e)}")
        sys.exit(1)

    print()
    print("=" * 60)
    print("Migration completed successfully!")
    print("=" * 60)
