import sqlite3

from app import config

DATABASE_PATH = config.DATABASE_PATH

# Money columns are TEXT so Decimal values round-trip exactly.
SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS users (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        username TEXT NOT NULL UNIQUE,
        password_hash TEXT NOT NULL,
        name TEXT NOT NULL,
        email TEXT NOT NULL,
        role TEXT NOT NULL DEFAULT 'user',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS auth_tokens (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        token_hash TEXT NOT NULL UNIQUE,
        user_id INTEGER NOT NULL,
        expires_at TEXT NOT NULL,
        created_at TEXT NOT NULL,
        FOREIGN KEY (user_id) REFERENCES users (id) ON DELETE CASCADE
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS invoices (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        invoice_number TEXT NOT NULL UNIQUE,
        issue_date TEXT NOT NULL,
        due_date TEXT NOT NULL,
        customer_name TEXT NOT NULL,
        customer_email TEXT,
        customer_address TEXT,
        customer_phone TEXT,
        payment_status TEXT NOT NULL DEFAULT 'pending',
        subtotal TEXT NOT NULL,
        service_charge_kind TEXT NOT NULL DEFAULT 'fixed',
        service_charge_value TEXT NOT NULL DEFAULT '0',
        service_charge_amount TEXT NOT NULL DEFAULT '0',
        vat_kind TEXT NOT NULL DEFAULT 'fixed',
        vat_value TEXT NOT NULL DEFAULT '0',
        vat_amount TEXT NOT NULL DEFAULT '0',
        special_discount TEXT NOT NULL DEFAULT '0',
        grand_total TEXT NOT NULL,
        net_total TEXT NOT NULL,
        notes TEXT,
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS invoice_items (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        invoice_id INTEGER NOT NULL,
        position INTEGER NOT NULL,
        sequence_number INTEGER NOT NULL,
        product_name TEXT NOT NULL,
        unit TEXT NOT NULL DEFAULT 'PCS',
        quantity TEXT NOT NULL,
        unit_price TEXT NOT NULL,
        line_total TEXT NOT NULL,
        FOREIGN KEY (invoice_id) REFERENCES invoices (id) ON DELETE CASCADE
    )
    """,
    "CREATE INDEX IF NOT EXISTS ix_invoices_issue_date ON invoices (issue_date)",
    "CREATE INDEX IF NOT EXISTS ix_invoice_items_invoice_id ON invoice_items (invoice_id)",
]

DROP_STATEMENTS = [
    "DROP TABLE IF EXISTS invoice_items",
    "DROP TABLE IF EXISTS invoices",
    "DROP TABLE IF EXISTS auth_tokens",
    "DROP TABLE IF EXISTS users",
]


def connect(path: str = None) -> sqlite3.Connection:
    conn = sqlite3.connect(path or DATABASE_PATH, timeout=5.0, check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON")
    conn.row_factory = sqlite3.Row
    return conn


def init_db(conn: sqlite3.Connection) -> None:
    """Create any missing tables."""
    for statement in SCHEMA_STATEMENTS:
        conn.execute(statement)
    conn.commit()


def get_db():
    conn = connect()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
