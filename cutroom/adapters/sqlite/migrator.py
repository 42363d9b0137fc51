import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

UP_MARKER = "-- Up"
DOWN_MARKER = "-- Down"


class SQLiteMigrator:
    """
    Applies `NNN_name.sql` files in filename order, each at most once.

    A file holds an optional "-- Up" header, the forward DDL, then an optional
    "-- Down" section that is never executed here.
    """

    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = migrations_dir

    def _get_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _ensure_migration_table(self, conn: sqlite3.Connection) -> None:
        conn.execute("""
            CREATE TABLE IF NOT EXISTS _migrations (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                filename TEXT UNIQUE NOT NULL,
                applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
            );
        """)

    def _available(self) -> list[str]:
        return sorted(f for f in os.listdir(self.migrations_dir) if f.endswith(".sql"))

    def _applied(self, conn: sqlite3.Connection) -> set[str]:
        return {row[0] for row in conn.execute("SELECT filename FROM _migrations")}

    def pending_migrations(self) -> list[str]:
        conn = self._get_connection()
        try:
            self._ensure_migration_table(conn)
            applied = self._applied(conn)
            return [f for f in self._available() if f not in applied]
        finally:
            conn.close()

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations. Returns the filenames applied."""
        applied_now: list[str] = []
        for filename in self.pending_migrations():
            conn = self._get_connection()
            try:
                logger.info("Applying migration: %s", filename)
                conn.executescript(self._read_up_script(filename))
                conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
                conn.commit()
            except sqlite3.Error as e:
                conn.rollback()
                raise RuntimeError(f"Migration {filename} failed: {e}") from e
            finally:
                conn.close()
            applied_now.append(filename)
        return applied_now

    def _read_up_script(self, filename: str) -> str:
        with open(os.path.join(self.migrations_dir, filename)) as f:
            content = f.read()
        up, _, _ = content.partition(DOWN_MARKER)
        return up.replace(UP_MARKER, "", 1)
