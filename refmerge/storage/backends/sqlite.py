"""SQLite record store."""

import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from refmerge.core.fields import SCALAR_FIELDS
from refmerge.core.models import Record

from ..exceptions import StoreWriteError
from .base import RecordStore

ITEM_COLUMNS = ("id",) + SCALAR_FIELDS + ("pdf_path", "extra")


class SQLiteStore(RecordStore):
    """SQLite-based record store.

    One ``items`` row per record, with the attachment list kept
    semicolon-joined in ``pdf_path`` and the extra-fields blob as compact
    JSON in ``extra``. Collection membership lives in a join table.
    """

    def __init__(self, db_path: Path | str):
        self.db_path = db_path if db_path == ":memory:" else Path(db_path)
        self._lock = threading.RLock()
        self.conn: sqlite3.Connection | None = sqlite3.connect(
            str(self.db_path), check_same_thread=False
        )
        self.connection.row_factory = sqlite3.Row
        self.initialize()

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the connection, ensuring it exists."""
        if self.conn is None:
            raise RuntimeError("Database connection not initialized")
        return self.conn

    def initialize(self) -> None:
        """Create database schema."""
        columns = ", ".join(
            f"{name} TEXT NOT NULL DEFAULT ''" for name in ITEM_COLUMNS[1:]
        )
        self.connection.executescript(f"""
            CREATE TABLE IF NOT EXISTS items (
                id TEXT PRIMARY KEY,
                {columns}
            );

            CREATE INDEX IF NOT EXISTS idx_items_doi ON items(doi);
            CREATE INDEX IF NOT EXISTS idx_items_isbn ON items(isbn);
            CREATE INDEX IF NOT EXISTS idx_items_title ON items(title);

            CREATE TABLE IF NOT EXISTS collections (
                name TEXT PRIMARY KEY
            );

            CREATE TABLE IF NOT EXISTS item_collections (
                item_id TEXT NOT NULL,
                collection TEXT NOT NULL,
                PRIMARY KEY (item_id, collection)
            );
        """)
        self.connection.commit()

    def find_by_doi(self, doi: str) -> Record | None:
        return self._find_one("doi = ?", (doi,))

    def find_by_isbn(self, isbn: str) -> Record | None:
        return self._find_one("isbn = ?", (isbn,))

    def find_by_title_and_authors(self, title: str, authors: str) -> Record | None:
        return self._find_one("title = ? AND authors = ?", (title, authors))

    def get(self, record_id: str) -> Record | None:
        return self._find_one("id = ?", (record_id,))

    def insert(self, record: Record) -> str:
        """Insert a new row and its memberships in one transaction."""
        if not record.id:
            raise StoreWriteError("Cannot insert a record without an identifier")

        row = record.to_row()
        placeholders = ", ".join("?" for _ in ITEM_COLUMNS)
        with self._write(f"insert {record.id}"):
            self.connection.execute(
                f"INSERT INTO items ({', '.join(ITEM_COLUMNS)}) VALUES ({placeholders})",
                [row[name] for name in ITEM_COLUMNS],
            )
            self._add_memberships(record.id, record.collections)
        return record.id

    def update(self, record: Record) -> None:
        """Overwrite a row; memberships on the record are added."""
        row = record.to_row()
        assignments = ", ".join(f"{name} = ?" for name in ITEM_COLUMNS[1:])
        with self._write(f"update {record.id}"):
            cursor = self.connection.execute(
                f"UPDATE items SET {assignments} WHERE id = ?",
                [row[name] for name in ITEM_COLUMNS[1:]] + [record.id],
            )
            if cursor.rowcount == 0:
                raise StoreWriteError(f"Cannot update unknown record: {record.id}")
            self._add_memberships(record.id, record.collections)

    def add_to_collection(self, record_id: str, path: str) -> None:
        if not path:
            return
        with self._write(f"add {record_id} to {path}"):
            cursor = self.connection.execute(
                "SELECT 1 FROM items WHERE id = ? LIMIT 1", (record_id,)
            )
            if cursor.fetchone() is None:
                raise StoreWriteError(
                    f"Cannot add unknown record to {path}: {record_id}"
                )
            self._add_memberships(record_id, (path,))

    def add_collection(self, path: str) -> None:
        if not path:
            return
        with self._write(f"add collection {path}"):
            self.connection.execute(
                "INSERT OR IGNORE INTO collections (name) VALUES (?)", (path,)
            )

    def list_collections(self) -> list[str]:
        with self._lock:
            cursor = self.connection.execute(
                "SELECT name FROM collections ORDER BY name"
            )
            return [row["name"] for row in cursor]

    def collections_for(self, record_id: str) -> list[str]:
        with self._lock:
            cursor = self.connection.execute(
                "SELECT collection FROM item_collections WHERE item_id = ? "
                "ORDER BY collection",
                (record_id,),
            )
            return [row["collection"] for row in cursor]

    def list_records(self, collection: str | None = None) -> list[Record]:
        with self._lock:
            if collection is None:
                cursor = self.connection.execute("SELECT * FROM items ORDER BY rowid")
            else:
                cursor = self.connection.execute(
                    "SELECT i.* FROM items i "
                    "JOIN item_collections ic ON i.id = ic.item_id "
                    "WHERE ic.collection = ? ORDER BY i.rowid",
                    (collection,),
                )
            rows = cursor.fetchall()
        return [self._to_record(row) for row in rows]

    def count(self) -> int:
        with self._lock:
            cursor = self.connection.execute("SELECT COUNT(*) AS count FROM items")
            return cursor.fetchone()["count"]

    def close(self) -> None:
        """Close database connection."""
        if self.conn:
            self.connection.close()
            self.conn = None

    def _find_one(self, where: str, params: tuple[Any, ...]) -> Record | None:
        with self._lock:
            cursor = self.connection.execute(
                f"SELECT * FROM items WHERE {where} ORDER BY rowid LIMIT 1", params
            )
            row = cursor.fetchone()
        return self._to_record(row) if row else None

    def _to_record(self, row: sqlite3.Row) -> Record:
        data = {key: row[key] for key in row.keys()}
        return Record.from_row(data, self.collections_for(data["id"]))

    def _add_memberships(self, record_id: str, collections: tuple[str, ...]) -> None:
        for path in collections:
            if not path:
                continue
            self.connection.execute(
                "INSERT OR IGNORE INTO collections (name) VALUES (?)", (path,)
            )
            self.connection.execute(
                "INSERT OR IGNORE INTO item_collections (item_id, collection) "
                "VALUES (?, ?)",
                (record_id, path),
            )

    @contextmanager
    def _write(self, action: str) -> Iterator[None]:
        """Run statements as one committed unit, rolling back on failure."""
        with self._lock:
            try:
                yield
                self.connection.commit()
            except sqlite3.Error as e:
                self.connection.rollback()
                raise StoreWriteError(f"Failed to {action}: {e}") from e
            except Exception:
                self.connection.rollback()
                raise
