"""
rag_retrieval/types.py
----------------------
Record and result shapes shared by the retrieval engine and its
collaborators.

`ChunkRecord` is what a corpus accessor yields: immutable, read-only for the
engine. `ScoredCandidate` is the canonical output contract of `retrieve()`.
"""

from dataclasses import dataclass
from typing import Optional

from typing_extensions import TypedDict

from rag_retrieval.codec import StoredEmbedding


@dataclass(frozen=True)
class ChunkRecord:
    """A stored chunk with its (possibly absent) embedding and parent document."""

    id:              int
    document_id:     int
    text:            str
    embedding:       Optional[StoredEmbedding]
    document_title:  Optional[str] = None
    document_source: Optional[str] = None


class ScoredCandidate(TypedDict):
    """A single retrieved chunk with its similarity to the query."""
    id:              int
    document_id:     int
    text:            str
    document_title:  Optional[str]
    document_source: Optional[str]
    similarity:      float          # cosine similarity in [-1, 1]


class DocumentSummary(TypedDict):
    """One row of `SqliteCorpus.list_documents()`."""
    id:          int
    source:      Optional[str]
    title:       Optional[str]
    filetype:    Optional[str]
    created_at:  str
    chunk_count: int


class DocumentChunk(TypedDict):
    """One row of `SqliteCorpus.get_document_chunks()`."""
    id:             int
    text:           str
    chunk_index:    Optional[int]
    chunk_strategy: Optional[str]
    created_at:     str
