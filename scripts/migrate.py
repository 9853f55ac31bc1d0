#!/usr/bin/env python3
"""
Apply backend/migrations/*.sql to the Supabase Postgres database.

Files run in name order, each in its own transaction, and are recorded in
schema_migrations so reruns only pick up new files.

    python scripts/migrate.py            # apply pending files
    python scripts/migrate.py --dry-run  # list pending files
    python scripts/migrate.py --status   # list applied files
"""
import os
import sys
import argparse
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parent.parent / "backend"
MIGRATIONS_DIR = BACKEND_DIR / "migrations"

load_dotenv(BACKEND_DIR / ".env")

BOOKKEEPING_SQL = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    filename TEXT PRIMARY KEY,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def connect():
    url = os.getenv("DATABASE_URL")
    if not url:
        sys.exit("[MIGRATE] DATABASE_URL is not set (Supabase > Project Settings > Database)")
    # libpq wants postgresql:// and no pooler query string
    url = url.split("?", 1)[0]
    if url.startswith("postgres://"):
        url = "postgresql://" + url[len("postgres://"):]
    return psycopg2.connect(url)


def applied_files(conn):
    with conn.cursor() as cur:
        cur.execute(BOOKKEEPING_SQL)
        cur.execute("SELECT filename, applied_at FROM schema_migrations ORDER BY filename")
        rows = cur.fetchall()
    conn.commit()
    return dict(rows)


def apply_file(conn, sql_file: Path):
    with conn.cursor() as cur:
        cur.execute(sql_file.read_text())
        cur.execute("INSERT INTO schema_migrations (filename) VALUES (%s)", (sql_file.name,))
    conn.commit()


def main(argv=None):
    parser = argparse.ArgumentParser(description="Apply SQL migrations in backend/migrations")
    parser.add_argument("--dry-run", action="store_true", help="list pending files without running them")
    parser.add_argument("--status", action="store_true", help="list files already applied")
    args = parser.parse_args(argv)

    conn = connect()
    try:
        applied = applied_files(conn)
        if args.status:
            for name, applied_at in applied.items():
                print(f"[MIGRATE] {name} applied {applied_at:%Y-%m-%d %H:%M}")
            return 0

        pending = [f for f in sorted(MIGRATIONS_DIR.glob("*.sql")) if f.name not in applied]
        if not pending:
            print("[MIGRATE] Nothing to apply")
            return 0

        for sql_file in pending:
            if args.dry_run:
                print(f"[MIGRATE] Pending: {sql_file.name}")
                continue
            print(f"[MIGRATE] Applying {sql_file.name}")
            try:
                apply_file(conn, sql_file)
            except psycopg2.Error as e:
                conn.rollback()
                print(f"[MIGRATE] {sql_file.name} failed and was rolled back: {e}")
                return 1
        return 0
    finally:
        conn.close()


if __name__ == "__main__":
    sys.exit(main())
