"""
rag_retrieval/corpus.py
-----------------------
Corpus accessor contract and an in-memory implementation.

The retrieval engine reads candidates through any object exposing
`fetch_all_chunks()`; it never writes. `InMemoryCorpus` holds records in a
list and suits small fixed corpora and tests. `SqliteCorpus` (store.py) is
the persistent implementation.
"""

from typing import Iterable, Iterator, List, Protocol, runtime_checkable

from rag_retrieval.types import ChunkRecord


@runtime_checkable
class CorpusAccessor(Protocol):
    """Structural type for a read-only source of candidate chunks."""

    def fetch_all_chunks(self) -> Iterable[ChunkRecord]: ...


class InMemoryCorpus:
    """A corpus held in a Python list, enumerated in insertion order."""

    def __init__(self, records: Iterable[ChunkRecord] = ()):
        self._records: List[ChunkRecord] = list(records)

    def add(self, record: ChunkRecord) -> None:
        """Appends a record; it is visible to the next `fetch_all_chunks()`."""
        self._records.append(record)

    def fetch_all_chunks(self) -> Iterator[ChunkRecord]:
        # snapshot, so concurrent add() never changes an in-flight scan
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)
