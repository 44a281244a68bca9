#!/usr/bin/env python3
"""
Script: run_migrations.py
Purpose: Apply the SQL files in backend/migrations in filename order

Applied files are recorded in a schema_migrations table, so running the
script again only applies new files.

Usage:
    cd backend
    python scripts/migrations/run_migrations.py [--dry-run]

Options:
    --dry-run    List pending migrations without applying them
"""

import os
import sys
import argparse
import psycopg2
from pathlib import Path

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).parent.parent.parent
MIGRATIONS_DIR = BACKEND_DIR / 'migrations'

# Load environment
env_path = BACKEND_DIR / '.env.development'
if env_path.exists():
    load_dotenv(env_path)
else:
    load_dotenv(BACKEND_DIR / '.env')

DATABASE_URL = os.getenv("DATABASE_URL")


def print_header(title: str):
    print(f"\n{'='*60}")
    print(f"  {title}")
    print(f"{'='*60}\n")


def ensure_migrations_table(cursor):
    cursor.execute("""
        CREATE TABLE IF NOT EXISTS schema_migrations (
            filename VARCHAR(255) PRIMARY KEY,
            applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)


def applied_migrations(cursor) -> set:
    cursor.execute("SELECT filename FROM schema_migrations")
    return {row[0] for row in cursor.fetchall()}


def pending_migrations(applied: set) -> list:
    return [path for path in sorted(MIGRATIONS_DIR.glob('*.sql')) if path.name not in applied]


def apply_migration(conn, path: Path):
    """Run one file in its own transaction"""
    cursor = conn.cursor()
    try:
        cursor.execute(path.read_text(encoding='utf-8'))
        cursor.execute("INSERT INTO schema_migrations (filename) VALUES (%s)", (path.name,))
        conn.commit()
    except psycopg2.Error:
        conn.rollback()
        raise
    finally:
        cursor.close()


def main():
    parser = argparse.ArgumentParser(description='Apply pending SQL migrations')
    parser.add_argument('--dry-run', action='store_true', help='List pending migrations only')
    args = parser.parse_args()

    if not DATABASE_URL:
        print("❌ DATABASE_URL not configured")
        return 1

    print_header("Online Store migrations")

    conn = psycopg2.connect(DATABASE_URL)
    try:
        cursor = conn.cursor()
        ensure_migrations_table(cursor)
        conn.commit()
        pending = pending_migrations(applied_migrations(cursor))
        cursor.close()

        if not pending:
            print("✅ Database is up to date")
            return 0

        for path in pending:
            if args.dry_run:
                print(f"  • pending: {path.name}")
                continue
            print(f"  → applying {path.name}")
            try:
                apply_migration(conn, path)
            except psycopg2.Error as e:
                print(f"❌ {path.name} failed: {e}")
                return 1
            print(f"  ✅ {path.name}")
    finally:
        conn.close()

    return 0


if __name__ == '__main__':
    sys.exit(main())
