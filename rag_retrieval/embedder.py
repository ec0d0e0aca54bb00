"""
rag_retrieval/embedder.py
-------------------------
Embedding provider: turns text into the query vectors the engine consumes.

The engine only depends on the `EmbeddingProvider` protocol. `OllamaEmbedder`
is the local implementation over Ollama's /api/embeddings endpoint.

Prerequisite:
    ollama pull nomic-embed-text
    ollama serve
"""

from typing import List, Protocol, Sequence, runtime_checkable

import numpy as np

from rag_retrieval._http import fetch_embedding
from rag_retrieval.config import DEFAULT_EMBED_MODEL, EMBED_URL
from rag_retrieval.logging_config import get_logger

log = get_logger(__name__)


@runtime_checkable
class EmbeddingProvider(Protocol):
    """Structural type for anything that can embed a query string."""

    def embed_query(self, text: str) -> Sequence[float]: ...


def embed_texts(
    texts: List[str],
    model: str = DEFAULT_EMBED_MODEL,
    url: str = EMBED_URL,
) -> np.ndarray:
    """
    Embeds a list of strings into a 2-D float32 numpy array, one request each.

    Raises:
        ValueError:      If `texts` is empty.
        ConnectionError: If the server is unreachable.
        RuntimeError:    If a reply is malformed, or dimensions disagree
                         between texts.
    """
    if not texts:
        raise ValueError("texts must not be empty.")

    vectors: List[List[float]] = []
    for text in texts:
        embedding = fetch_embedding(url, model, text)
        if vectors and len(embedding) != len(vectors[0]):
            raise RuntimeError(
                f"Model '{model}' returned a {len(embedding)}-dim embedding after "
                f"{len(vectors[0])}-dim ones."
            )
        vectors.append(embedding)

    log.debug("Embedded %d text(s) with '%s' (dim=%d)", len(texts), model, len(vectors[0]))
    return np.array(vectors, dtype=np.float32)


class OllamaEmbedder:
    """EmbeddingProvider backed by a local Ollama server."""

    def __init__(self, model: str = DEFAULT_EMBED_MODEL, url: str = EMBED_URL):
        self.model = model
        self.url   = url

    def embed_query(self, text: str) -> np.ndarray:
        return embed_texts([text], model=self.model, url=self.url)[0]

    def embed_documents(self, texts: List[str]) -> np.ndarray:
        return embed_texts(texts, model=self.model, url=self.url)

    def __repr__(self) -> str:
        return f"OllamaEmbedder(model='{self.model}', url='{self.url}')"
