"""
rag_retrieval/engine.py
-----------------------
Public entry point of the retrieval subsystem.

`RetrievalEngine` composes a corpus accessor with the top-K selector:

    validate query → corpus.fetch_all_chunks() → rank_candidates() → validate_result()

Every call re-reads the whole corpus, so chunks stored a moment ago are
immediately retrievable. The engine keeps no per-call state and never
writes to the corpus; concurrent `retrieve()` calls need no coordination.

The corpus (and, optionally, an embedding provider for text queries) is
passed in explicitly. There is no process-wide connection.
"""

from typing import List, Optional, Sequence

from rag_retrieval.config import DEFAULT_TOP_K
from rag_retrieval.corpus import CorpusAccessor
from rag_retrieval.embedder import EmbeddingProvider
from rag_retrieval.logging_config import get_logger
from rag_retrieval.selector import rank_candidates
from rag_retrieval.types import ScoredCandidate
from validator.vector_validator import (
    ValidationError,
    validate_options,
    validate_query_vector,
    validate_result,
)

log = get_logger(__name__)


class RetrievalEngine:
    """
    Exact cosine-similarity retrieval over an injected corpus.

    Parameters
    ----------
    corpus
        Any object exposing ``fetch_all_chunks()``.
    embedder
        Optional embedding provider, required only by ``retrieve_text()``.
    default_k
        Result count used when a call does not pass ``k``.
    """

    def __init__(
        self,
        corpus: CorpusAccessor,
        embedder: Optional[EmbeddingProvider] = None,
        default_k: int = DEFAULT_TOP_K,
    ):
        self.corpus    = corpus
        self.embedder  = embedder
        self.default_k = validate_options(k=default_k).k

    def retrieve(
        self,
        query_vector: Sequence[float],
        k: Optional[int] = None,
        min_similarity: Optional[float] = None,
    ) -> List[ScoredCandidate]:
        """
        Returns the k stored chunks most similar to `query_vector`.

        Args:
            query_vector:   Query embedding with the corpus' dimensionality.
            k:              Maximum number of results (default: `default_k`).
            min_similarity: Optional lower bound on similarity (inclusive).

        Returns:
            List of ScoredCandidate dicts sorted by similarity descending.
            An empty list means nothing qualified; it is not an error.

        Raises:
            ValidationError:     If the query vector or options are invalid.
            ResultContractError: If ranking broke its ordering or size guarantees.
        """
        k = self.default_k if k is None else k
        query   = validate_query_vector(query_vector)
        options = validate_options(k, min_similarity)

        results = rank_candidates(query, self.corpus.fetch_all_chunks(), options)
        log.info(
            "Retrieved %d chunk(s) (k=%d, min_similarity=%s)",
            len(results), k, min_similarity,
        )
        return validate_result(results, k)

    def find_similar_chunks(
        self,
        query_vector: Sequence[float],
        limit: Optional[int] = None,
        min_similarity: Optional[float] = None,
    ) -> List[ScoredCandidate]:
        """Alias of `retrieve()` taking `limit` in place of `k`."""
        return self.retrieve(query_vector, k=limit, min_similarity=min_similarity)

    def retrieve_text(
        self,
        query: str,
        k: Optional[int] = None,
        min_similarity: Optional[float] = None,
    ) -> List[ScoredCandidate]:
        """
        Embeds `query` with the injected provider, then calls `retrieve()`.

        Raises:
            ValidationError: If `query` is blank.
            RuntimeError:    If the engine was built without an embedder.
            ConnectionError: If the embedding provider is unreachable.
        """
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("query must be a non-empty string.")
        if self.embedder is None:
            raise RuntimeError("retrieve_text() needs an embedding provider; none was configured.")

        log.info("Embedding query '%.80s'", query)
        query_vector = self.embedder.embed_query(query)
        return self.retrieve(query_vector, k=k, min_similarity=min_similarity)

    def __repr__(self) -> str:
        return f"RetrievalEngine(corpus={self.corpus!r}, default_k={self.default_k})"
