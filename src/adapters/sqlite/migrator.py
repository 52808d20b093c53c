import logging
import os
import sqlite3

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(os.path.dirname(__file__)))),
    "migrations",
)


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str = DEFAULT_MIGRATIONS_DIR):
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

    def _get_applied_migrations(self, conn: sqlite3.Connection) -> set[str]:
        cursor = conn.execute("SELECT filename FROM _migrations")
        return {row[0] for row in cursor.fetchall()}

    def pending(self) -> list[str]:
        """Migration files not yet applied, in apply order."""
        conn = self._get_connection()
        try:
            self._ensure_migration_table(conn)
            applied = self._get_applied_migrations(conn)
        finally:
            conn.close()
        files = sorted(f for f in os.listdir(self.migrations_dir) if f.endswith(".sql"))
        return [f for f in files if f not in applied]

    def run_migrations(self) -> list[str]:
        """Apply all pending migrations. Returns the filenames applied."""
        to_apply = self.pending()
        conn = self._get_connection()
        try:
            for filename in to_apply:
                logger.info("Applying migration: %s", filename)
                self._apply_migration(conn, filename)
        finally:
            conn.close()

        if to_apply:
            logger.info("Applied %d migration(s) to %s", len(to_apply), self.db_path)
        return to_apply

    def _read_up_script(self, filename: str) -> str:
        path = os.path.join(self.migrations_dir, filename)
        with open(path) as f:
            content = f.read()
        # Files start with the Up part; anything after "-- Down" is the rollback.
        return content.split("-- Down")[0]

    def _apply_migration(self, conn: sqlite3.Connection, filename: str) -> None:
        script = self._read_up_script(filename)
        try:
            conn.executescript(script)
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {filename} failed: {e}") from e
