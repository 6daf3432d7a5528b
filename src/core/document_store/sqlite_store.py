"""
SQLite document registry using aiosqlite.

Holds the ``documents`` and ``chunks`` tables. Chunk embeddings live in the
vector index; the registry owns IDs, ordering and uniqueness.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from src.models.document import ChunkRow, Document
from src.utils.exceptions import DocumentStoreError
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SQLiteDocumentStore:
    """
    Registry of ingested documents and their chunks.

    Write methods do not commit on their own; wrap them in ``transaction()``
    so a failed ingest leaves no rows behind.
    """

    def __init__(self, db_path: str = "data/memorag.db"):
        """
        Initialize SQLite document store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self.connection: aiosqlite.Connection | None = None

        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    async def connect(self) -> None:
        """Establish connection to SQLite."""
        if self.connection is None:
            try:
                self.connection = await aiosqlite.connect(self.db_path)
                self.connection.row_factory = aiosqlite.Row
                await self.connection.execute("PRAGMA foreign_keys = ON")
                await self.connection.commit()
            except Exception as e:
                logger.error(
                    "Failed to open document registry",
                    extra={"db_path": self.db_path, "error": str(e)},
                )
                raise DocumentStoreError(f"Failed to open document registry: {e}") from e

    async def initialize(self) -> None:
        """Create tables if missing."""
        await self.connect()

        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id INTEGER PRIMARY KEY,
                title TEXT NOT NULL,
                filepath TEXT NOT NULL UNIQUE
            )
        """
        )
        await self.connection.execute(
            """
            CREATE TABLE IF NOT EXISTS chunks (
                id INTEGER PRIMARY KEY,
                document_id INTEGER NOT NULL,
                chunk_index INTEGER NOT NULL,
                content TEXT NOT NULL,
                UNIQUE (document_id, chunk_index),
                FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
            )
        """
        )
        await self.connection.execute(
            "CREATE INDEX IF NOT EXISTS idx_chunks_document ON chunks(document_id)"
        )

        await self.connection.commit()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit on success, roll back and re-raise on any error."""
        await self.connect()
        try:
            yield
        except BaseException:
            await self.connection.rollback()
            raise
        else:
            await self.connection.commit()

    async def get_document_by_filepath(self, filepath: str) -> Document | None:
        await self.connect()

        cursor = await self.connection.execute(
            "SELECT id, title, filepath FROM documents WHERE filepath = ?", (filepath,)
        )
        row = await cursor.fetchone()
        await cursor.close()

        if not row:
            return None

        return Document(id=row["id"], title=row["title"], filepath=row["filepath"])

    async def insert_document(self, title: str, filepath: str) -> Document:
        await self.connect()

        try:
            cursor = await self.connection.execute(
                "INSERT INTO documents (title, filepath) VALUES (?, ?)", (title, filepath)
            )
        except aiosqlite.IntegrityError as e:
            raise DocumentStoreError(
                "Document already registered", context={"filepath": filepath}
            ) from e

        document_id = cursor.lastrowid
        await cursor.close()
        return Document(id=document_id, title=title, filepath=filepath)

    async def insert_chunks(self, document_id: int, contents: list[str]) -> list[ChunkRow]:
        """
        Register chunks in order; chunk_index is the list position.

        Existing ``(document_id, chunk_index)`` pairs are left untouched and
        not returned.
        """
        await self.connect()

        rows = []
        for index, content in enumerate(contents):
            cursor = await self.connection.execute(
                """
                INSERT OR IGNORE INTO chunks (document_id, chunk_index, content)
                VALUES (?, ?, ?)
                """,
                (document_id, index, content),
            )
            if cursor.rowcount:
                rows.append(
                    ChunkRow(
                        id=cursor.lastrowid,
                        document_id=document_id,
                        chunk_index=index,
                        content=content,
                    )
                )
            await cursor.close()

        return rows

    async def get_chunks(self, document_id: int) -> list[ChunkRow]:
        await self.connect()

        cursor = await self.connection.execute(
            """
            SELECT id, document_id, chunk_index, content
            FROM chunks WHERE document_id = ? ORDER BY chunk_index
            """,
            (document_id,),
        )
        rows = await cursor.fetchall()
        await cursor.close()

        return [
            ChunkRow(
                id=row["id"],
                document_id=row["document_id"],
                chunk_index=row["chunk_index"],
                content=row["content"],
            )
            for row in rows
        ]

    async def close(self) -> None:
        """Close connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None
