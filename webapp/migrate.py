#!/usr/bin/env python3
"""
Database Migration Runner for MyShop Admin

Applies migrations/*.sql in filename order and records each one, with its
checksum, in schema_migrations.

Usage:
    python migrate.py              # Apply all pending migrations
    python migrate.py --status     # Show migration status
    python migrate.py --dry-run    # Show what would be applied
"""

import os
import sys
import glob
import hashlib
import time
import argparse

import mysql.connector
from mysql.connector import Error as MySQLError
from dotenv import load_dotenv

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'migrations')
TRACKING_MIGRATION = '000_migrations_tracking.sql'

# Duplicate column/key/entry: tolerated so migrations can be re-run
IGNORABLE_ERRNOS = (1060, 1061, 1062, 1068)


def get_db_connection():
    """Get a database connection using environment variables"""
    return mysql.connector.connect(
        host=os.getenv('DB_HOST', 'localhost'),
        user=os.getenv('DB_USER', 'myshop_app'),
        password=os.getenv('DB_PASSWORD'),
        database=os.getenv('DB_NAME', 'myshop_db'),
        autocommit=False
    )


def calculate_checksum(filepath):
    """SHA256 of a migration file"""
    with open(filepath, 'rb') as f:
        return hashlib.sha256(f.read()).hexdigest()


def split_statements(sql):
    """Split a migration into statements on line-terminating semicolons"""
    statements = []
    current = []

    for line in sql.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('--'):
            continue
        current.append(line)
        if stripped.endswith(';'):
            statements.append('\n'.join(current).strip().rstrip(';'))
            current = []

    if current:
        statements.append('\n'.join(current).strip().rstrip(';'))
    return [s for s in statements if s]


def tracking_table_exists(cursor):
    cursor.execute("""
        SELECT COUNT(*) FROM information_schema.tables
        WHERE table_schema = DATABASE() AND table_name = 'schema_migrations'
    """)
    return cursor.fetchone()[0] > 0


def ensure_migrations_table(conn, cursor):
    """Create schema_migrations from the tracking migration if needed"""
    if tracking_table_exists(cursor):
        return

    tracking_path = os.path.join(MIGRATIONS_DIR, TRACKING_MIGRATION)
    if not os.path.exists(tracking_path):
        raise FileNotFoundError(f"Migration tracking file not found: {tracking_path}")

    print("Creating schema_migrations table...")
    with open(tracking_path) as f:
        for statement in split_statements(f.read()):
            cursor.execute(statement)
    conn.commit()


def get_pending_migrations(cursor):
    """Migration files not yet recorded; warns about edited ones"""
    cursor.execute("SELECT filename, checksum FROM schema_migrations")
    applied = {row[0]: row[1] for row in cursor.fetchall()}

    pending = []
    for filepath in sorted(glob.glob(os.path.join(MIGRATIONS_DIR, '*.sql'))):
        filename = os.path.basename(filepath)
        if filename == TRACKING_MIGRATION:
            continue
        if filename not in applied:
            pending.append(filepath)
        elif applied[filename] != calculate_checksum(filepath):
            print(f"WARNING: Migration {filename} has been modified since it was applied!")

    return pending


def apply_migration(cursor, filepath):
    """Apply a single migration file and record it"""
    filename = os.path.basename(filepath)
    print(f"Applying migration: {filename}")

    with open(filepath) as f:
        statements = split_statements(f.read())

    start_time = time.time()
    for statement in statements:
        try:
            cursor.execute(statement)
            if cursor.with_rows:
                cursor.fetchall()
        except MySQLError as e:
            if e.errno in IGNORABLE_ERRNOS:
                print(f"  Note: {e.msg} (continuing)")
            else:
                raise

    execution_time_ms = int((time.time() - start_time) * 1000)
    cursor.execute("""
        INSERT INTO schema_migrations (filename, checksum, applied_by, execution_time_ms)
        VALUES (%s, %s, %s, %s)
    """, (filename, calculate_checksum(filepath), os.getenv('USER', 'migrate.py'), execution_time_ms))

    print(f"  Applied in {execution_time_ms}ms")


def run_migrations(dry_run=False):
    """Run all pending migrations, stopping at the first failure"""
    conn = None
    try:
        conn = get_db_connection()
        cursor = conn.cursor()
        ensure_migrations_table(conn, cursor)

        pending = get_pending_migrations(cursor)
        if not pending:
            print("No pending migrations.")
            return True

        print(f"Found {len(pending)} pending migration(s):")
        for filepath in pending:
            print(f"  - {os.path.basename(filepath)}")

        if dry_run:
            print("\nDry run mode - no changes applied.")
            return True

        for filepath in pending:
            try:
                apply_migration(cursor, filepath)
                conn.commit()
            except MySQLError as e:
                conn.rollback()
                print(f"ERROR applying {os.path.basename(filepath)}: {e}")
                print("Rolling back and stopping.")
                return False

        print(f"\nSuccessfully applied {len(pending)} migration(s).")
        return True

    except MySQLError as e:
        print(f"Database error: {e}")
        return False
    finally:
        if conn:
            conn.close()


def show_status():
    """Print applied and pending migrations"""
    conn = None
    try:
        conn = get_db_connection()
        cursor = conn.cursor()

        if not tracking_table_exists(cursor):
            print("Migration tracking table does not exist yet.")
            print("Run 'python migrate.py' to initialize.")
            return

        cursor.execute("""
            SELECT filename, applied_at, execution_time_ms
            FROM schema_migrations ORDER BY filename
        """)
        applied = cursor.fetchall()

        on_disk = {os.path.basename(f) for f in glob.glob(os.path.join(MIGRATIONS_DIR, '*.sql'))}
        applied_names = {row[0] for row in applied}

        print("Migration Status:")
        print("=" * 60)
        for filename, applied_at, exec_time in applied:
            missing = '' if filename in on_disk else '  (MISSING FILE)'
            print(f"  [x] {filename} - {applied_at}, {exec_time}ms{missing}")

        for filename in sorted(on_disk - applied_names - {TRACKING_MIGRATION}):
            print(f"  [ ] {filename}")

    except MySQLError as e:
        print(f"Database error: {e}")
    finally:
        if conn:
            conn.close()


def main():
    parser = argparse.ArgumentParser(description='Database Migration Runner')
    parser.add_argument('--status', action='store_true', help='Show migration status')
    parser.add_argument('--dry-run', action='store_true', help='Show what would be applied without applying')
    args = parser.parse_args()

    load_dotenv(os.getenv('MYSHOP_ENV_FILE', '.env'))
    if not os.getenv('DB_PASSWORD'):
        print("ERROR: DB_PASSWORD environment variable is required.")
        sys.exit(1)

    if args.status:
        show_status()
    else:
        sys.exit(0 if run_migrations(dry_run=args.dry_run) else 1)


if __name__ == '__main__':
    main()
