import sqlite3
from typing import Iterable, List

try:
    import psycopg2
    import psycopg2.extras
except ImportError:  # pragma: no cover - optional dependency for postgres
    psycopg2 = None

from flask import current_app, g


STORAGE_ERRORS = (sqlite3.Error,) if psycopg2 is None else (sqlite3.Error, psycopg2.Error)


class Database:
    def __init__(self, backend: str, connection):
        self.backend = backend
        self._conn = connection

    def execute(self, sql: str, params: Iterable | None = None):
        if self.backend == "postgres":
            cursor = self._conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
            if params:
                sql = _convert_qmark_to_pg(sql)
                cursor.execute(sql, list(params))
            else:
                cursor.execute(sql)
            return cursor
        return self._conn.execute(sql, params or ())

    def commit(self):
        self._conn.commit()

    def rollback(self):
        self._conn.rollback()

    def close(self):
        self._conn.close()


def _convert_qmark_to_pg(sql: str) -> str:
    return sql.replace("?", "%s")


def _connect_database(db_path: str) -> Database:
    if db_path.lower().startswith("postgres"):
        if psycopg2 is None:
            raise RuntimeError("psycopg2 is not installed.")
        conn = psycopg2.connect(db_path)
        conn.autocommit = True
        return Database("postgres", conn)

    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return Database("sqlite", conn)


def get_db():
    if "db" not in g:
        db_path = current_app.config["DB_PATH"]
        g.db = _connect_database(db_path)
    return g.db


def close_db(_error=None):
    db = g.pop("db", None)
    if db is not None:
        db.close()


def init_db():
    db = get_db()
    if db.backend == "postgres":
        _init_db_postgres(db)
    else:
        _init_db_sqlite(db)
    db.commit()


TABLES: List[str] = [
    "notification_states",
    "rfq_participants",
    "quotes",
    "rfqs",
    "user_roles",
    "profiles",
    "auth_users",
]


def _schema_statements(timestamp_type: str, amount_type: str) -> List[str]:
    return [
        f"""
        CREATE TABLE IF NOT EXISTS auth_users (
            id TEXT PRIMARY KEY,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            created_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS profiles (
            id TEXT PRIMARY KEY REFERENCES auth_users (id) ON DELETE CASCADE,
            full_name TEXT,
            company_name TEXT,
            created_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS user_roles (
            user_id TEXT PRIMARY KEY REFERENCES auth_users (id) ON DELETE CASCADE,
            role TEXT NOT NULL CHECK (role IN ('client','vendor')),
            created_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS rfqs (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            description TEXT,
            status TEXT NOT NULL DEFAULT 'draft' CHECK (
                status IN ('draft','open','closed','awarded','cancelled')
            ),
            due_date {timestamp_type},
            created_by TEXT NOT NULL,
            created_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS quotes (
            id TEXT PRIMARY KEY,
            rfq_id TEXT NOT NULL REFERENCES rfqs (id) ON DELETE CASCADE,
            vendor_id TEXT NOT NULL,
            amount {amount_type} NOT NULL,
            currency TEXT NOT NULL DEFAULT 'USD',
            message TEXT,
            status TEXT NOT NULL DEFAULT 'draft' CHECK (
                status IN ('draft','submitted','accepted','rejected')
            ),
            submitted_at {timestamp_type},
            created_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (rfq_id, vendor_id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS rfq_participants (
            id TEXT PRIMARY KEY,
            rfq_id TEXT NOT NULL REFERENCES rfqs (id) ON DELETE CASCADE,
            vendor_id TEXT NOT NULL,
            status TEXT NOT NULL DEFAULT 'invited' CHECK (
                status IN ('invited','accepted','declined','submitted')
            ),
            invited_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at {timestamp_type} NOT NULL DEFAULT CURRENT_TIMESTAMP,
            UNIQUE (rfq_id, vendor_id)
        )
        """,
        f"""
        CREATE TABLE IF NOT EXISTS notification_states (
            user_id TEXT NOT NULL,
            notification_id TEXT NOT NULL,
            read_at {timestamp_type},
            dismissed_at {timestamp_type},
            PRIMARY KEY (user_id, notification_id)
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_rfqs_created_by ON rfqs (created_by, created_at)",
        "CREATE INDEX IF NOT EXISTS idx_rfqs_status ON rfqs (status)",
        "CREATE INDEX IF NOT EXISTS idx_quotes_vendor ON quotes (vendor_id)",
        "CREATE INDEX IF NOT EXISTS idx_participants_vendor ON rfq_participants (vendor_id)",
        "CREATE INDEX IF NOT EXISTS idx_user_roles_role ON user_roles (role)",
    ]


def _init_db_sqlite(db) -> None:
    for statement in _schema_statements("TEXT", "REAL"):
        db.execute(statement)


def _init_db_postgres(db) -> None:
    for statement in _schema_statements("TEXT", "DOUBLE PRECISION"):
        db.execute(statement)
