"""
Migration: Create core tables
Version: 001
Description: Creates users, auth_tokens, invoices and invoice_items tables.
"""

import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.database import DATABASE_PATH, DROP_STATEMENTS, connect, init_db

MIGRATION_NAME = "001_create_core_tables"


def _ensure_migrations_table(conn):
    conn.execute("""
        CREATE TABLE IF NOT EXISTS _migrations (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL UNIQUE,
            applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)


def upgrade(path=DATABASE_PATH):
    """Apply the migration."""
    conn = connect(path)
    _ensure_migrations_table(conn)

    if conn.execute("SELECT 1 FROM _migrations WHERE name = ?", (MIGRATION_NAME,)).fetchone():
        print(f"Migration {MIGRATION_NAME} already applied. Skipping.")
        conn.close()
        return

    init_db(conn)
    conn.execute("INSERT INTO _migrations (name) VALUES (?)", (MIGRATION_NAME,))

    conn.commit()
    conn.close()
    print(f"Migration {MIGRATION_NAME} applied successfully.")


def downgrade(path=DATABASE_PATH):
    """Revert the migration."""
    conn = connect(path)
    _ensure_migrations_table(conn)

    for statement in DROP_STATEMENTS:
        conn.execute(statement)
    conn.execute("DELETE FROM _migrations WHERE name = ?", (MIGRATION_NAME,))

    conn.commit()
    conn.close()
    print(f"Migration {MIGRATION_NAME} reverted successfully.")


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser()
    parser.add_argument("action", choices=["upgrade", "downgrade"])
    args = parser.parse_args()
    if args.action == "upgrade":
        upgrade()
    elif args.action == "downgrade":
        downgrade()
