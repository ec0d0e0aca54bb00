"""
rag_retrieval/store.py
----------------------
SQLite-backed corpus: persists documents and their embedded chunks, and
serves them to the retrieval engine as a `CorpusAccessor`.

Schema:
    documents(id, source, title, filetype, created_at)
    chunks(id, document_id → documents.id, text, chunk_index,
           chunk_strategy, embedding BLOB, created_at)

Embeddings are written as little-endian float32 blobs. Rows written by older
tooling may hold a JSON text array in the same column; both are tagged at
read time through `codec.tag_stored_value()`.

Each `SqliteCorpus` owns one connection to an explicit database path, so
several instances (e.g. one per test) never share state.
"""

import sqlite3
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence, Union

from rag_retrieval.codec import (
    BinaryEmbedding,
    JsonEmbedding,
    StoredEmbedding,
    encode_embedding,
    tag_stored_value,
)
from rag_retrieval.config import DEFAULT_DB_PATH
from rag_retrieval.errors import DecodeError
from rag_retrieval.logging_config import get_logger
from rag_retrieval.types import ChunkRecord, DocumentChunk, DocumentSummary

log = get_logger(__name__)

EmbeddingInput = Union[None, StoredEmbedding, Sequence[float]]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source TEXT,
    title TEXT,
    filetype TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS chunks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    document_id INTEGER,
    text TEXT NOT NULL,
    chunk_index INTEGER,
    chunk_strategy TEXT,
    embedding BLOB,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (document_id) REFERENCES documents(id)
);

CREATE INDEX IF NOT EXISTS idx_chunks_document_id ON chunks(document_id);
"""


def _column_value(embedding: EmbeddingInput) -> Union[None, str, bytes]:
    """Maps an embedding argument to the value stored in `chunks.embedding`."""
    if embedding is None:
        return None
    if isinstance(embedding, JsonEmbedding):
        return embedding.text
    if isinstance(embedding, BinaryEmbedding):
        return embedding.data
    return encode_embedding(embedding).data


class SqliteCorpus:
    """
    Document/chunk store over a single SQLite database file.

    Parameters
    ----------
    db_path
        Database file, or ``":memory:"``. Defaults to ``DEFAULT_DB_PATH``;
        the parent directory is created if missing.
    """

    def __init__(self, db_path: Union[str, Path] = DEFAULT_DB_PATH):
        self._db_path = str(db_path)
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)

        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            self._db_path, check_same_thread=False
        )
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        if self._db_path != ":memory:":
            self._conn.execute("PRAGMA journal_mode = WAL")
        self._conn.executescript(_SCHEMA)
        log.info("Opened corpus database %s", self._db_path)

    # ── Connection handling ────────────────────────────────────────────────

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Corpus database is closed.")
        return self._conn

    def close(self) -> None:
        """Closes the connection; further calls raise RuntimeError."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            log.info("Closed corpus database %s", self._db_path)

    def __enter__(self) -> "SqliteCorpus":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ── Writes ─────────────────────────────────────────────────────────────

    def _insert_document(self, source: Optional[str], title: Optional[str], filetype: Optional[str]) -> int:
        cursor = self.conn.execute(
            "INSERT INTO documents (source, title, filetype) VALUES (?, ?, ?)",
            (source, title, filetype),
        )
        return cursor.lastrowid

    def _insert_chunk(
        self,
        document_id: int,
        text: str,
        chunk_index: int,
        embedding: EmbeddingInput,
        chunk_strategy: str,
    ) -> int:
        cursor = self.conn.execute(
            "INSERT INTO chunks (document_id, text, chunk_index, chunk_strategy, embedding) "
            "VALUES (?, ?, ?, ?, ?)",
            (document_id, text, chunk_index, chunk_strategy, _column_value(embedding)),
        )
        return cursor.lastrowid

    def store_document(self, source: Optional[str], title: Optional[str] = "", filetype: Optional[str] = "") -> int:
        """Inserts a document row and returns its id."""
        with self.conn:
            return self._insert_document(source, title, filetype)

    def store_chunk(
        self,
        document_id: int,
        text: str,
        chunk_index: int,
        embedding: EmbeddingInput = None,
        chunk_strategy: str = "unknown",
    ) -> int:
        """
        Inserts one chunk and returns its id.

        `embedding` may be None, a float sequence (packed as float32), or an
        already-encoded JsonEmbedding / BinaryEmbedding stored verbatim.
        """
        with self.conn:
            return self._insert_chunk(document_id, text, chunk_index, embedding, chunk_strategy)

    def store_document_with_chunks(
        self,
        document: Dict[str, Any],
        chunks: List[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Stores a document and all its chunks in one transaction.

        Args:
            document: {"source": str, "title": str?, "filetype": str?}
            chunks:   [{"text": str, "embedding": ..., "chunk_strategy": str?}, ...]
                      Chunk indexes follow list order.

        Returns:
            {"document_id": int, "chunk_ids": List[int]}

        Raises:
            sqlite3.Error: On any write failure; nothing is persisted.
            ValueError:    If a chunk embedding is not a non-empty 1-D vector.
        """
        with self.conn:
            document_id = self._insert_document(
                document.get("source", ""),
                document.get("title", ""),
                document.get("filetype", ""),
            )
            chunk_ids = [
                self._insert_chunk(
                    document_id,
                    chunk["text"],
                    index,
                    chunk.get("embedding"),
                    chunk.get("chunk_strategy", "unknown"),
                )
                for index, chunk in enumerate(chunks)
            ]

        log.info("Stored document %d with %d chunk(s)", document_id, len(chunk_ids))
        return {"document_id": document_id, "chunk_ids": chunk_ids}

    # ── Reads ──────────────────────────────────────────────────────────────

    def fetch_all_chunks(self) -> Iterator[ChunkRecord]:
        """Yields every stored chunk with its parent document's title and source."""
        rows = self.conn.execute(
            """
            SELECT c.id, c.document_id, c.text, c.embedding, d.title, d.source
            FROM chunks c
            LEFT JOIN documents d ON c.document_id = d.id
            ORDER BY c.id
            """
        ).fetchall()

        for row in rows:
            try:
                embedding = tag_stored_value(row["embedding"], chunk_id=row["id"])
            except DecodeError as exc:
                log.warning("Chunk %d has an unreadable embedding column: %s", row["id"], exc.reason)
                embedding = None

            yield ChunkRecord(
                id              = row["id"],
                document_id     = row["document_id"],
                text            = row["text"],
                embedding       = embedding,
                document_title  = row["title"],
                document_source = row["source"],
            )

    def list_documents(self) -> List[DocumentSummary]:
        """Returns all documents, newest first, with their chunk counts."""
        rows = self.conn.execute(
            """
            SELECT id, source, title, filetype, created_at,
                   (SELECT COUNT(*) FROM chunks WHERE document_id = documents.id) AS chunk_count
            FROM documents
            ORDER BY created_at DESC, id DESC
            """
        ).fetchall()
        return [DocumentSummary(**dict(row)) for row in rows]

    def get_document_chunks(self, document_id: int) -> List[DocumentChunk]:
        """Returns a document's chunks in chunk_index order (empty if unknown)."""
        rows = self.conn.execute(
            """
            SELECT id, text, chunk_index, chunk_strategy, created_at
            FROM chunks
            WHERE document_id = ?
            ORDER BY chunk_index
            """,
            (document_id,),
        ).fetchall()
        return [DocumentChunk(**dict(row)) for row in rows]

    def count(self) -> int:
        """Returns the total number of stored chunks."""
        return self.conn.execute("SELECT COUNT(*) FROM chunks").fetchone()[0]

    def __repr__(self) -> str:
        return f"SqliteCorpus(db='{self._db_path}')"
