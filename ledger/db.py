import sqlite3
from pathlib import Path

from .settings import Settings


def connect(db_path: str | Path):
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    return conn


def init_db(settings: Settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    with connect(settings.db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
              namespace TEXT NOT NULL,
              key TEXT NOT NULL,
              value TEXT NOT NULL,
              created_at TEXT NOT NULL DEFAULT (datetime('now')),
              updated_at TEXT NOT NULL DEFAULT (datetime('now')),
              PRIMARY KEY (namespace, key)
            );
            """
        )
        conn.execute(
            """
            CREATE TRIGGER IF NOT EXISTS kv_store_updated_at
            AFTER UPDATE OF value ON kv_store
            FOR EACH ROW
            BEGIN
              UPDATE kv_store SET updated_at = datetime('now')
              WHERE namespace = OLD.namespace AND key = OLD.key;
            END;
            """
        )
