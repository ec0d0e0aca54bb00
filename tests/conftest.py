import logging

import pytest

from rag_retrieval.codec import encode_embedding, encode_embedding_json
from rag_retrieval.types import ChunkRecord


@pytest.fixture
def propagate_logs(monkeypatch):
    """Lets caplog see records from the non-propagating rag_retrieval logger."""
    monkeypatch.setattr(logging.getLogger("rag_retrieval"), "propagate", True)


def make_chunk(chunk_id, vector, text=None, document_id=1, as_json=False):
    """Builds a ChunkRecord whose embedding is encoded from `vector`."""
    if vector is None:
        embedding = None
    elif as_json:
        embedding = encode_embedding_json(vector)
    else:
        embedding = encode_embedding(vector)
    return ChunkRecord(
        id              = chunk_id,
        document_id     = document_id,
        text            = text if text is not None else f"chunk {chunk_id}",
        embedding       = embedding,
        document_title  = "Guide",
        document_source = "guide.md",
    )


@pytest.fixture
def chunk():
    return make_chunk
