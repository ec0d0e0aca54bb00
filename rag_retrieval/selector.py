"""
rag_retrieval/selector.py
-------------------------
Top-K selection over a candidate set.

Decodes every candidate's stored embedding, scores the decodable ones
against the query with cosine similarity, applies the optional minimum
similarity threshold, and returns the K best in descending order. Equal
scores keep the candidate set's enumeration order (stable sort), so a given
query against an unchanged corpus always yields the same ranking.

A single corrupt candidate (missing or undecodable embedding, wrong
dimensionality, non-finite score) is logged and dropped; it never fails the
call. Only an invalid query vector or invalid options are fatal, and those
are rejected before the candidate set is read.

This is an exact linear scan, O(N·D) per query. An approximate index
(FAISS, HNSW) can replace the scan here without changing the signature.
"""

from typing import Iterable, List, Optional, Sequence

import numpy as np

from rag_retrieval.codec import decode_embedding
from rag_retrieval.config import DEFAULT_TOP_K, RetrievalOptions
from rag_retrieval.errors import DecodeError, DimensionMismatchError, UnscorableCandidateError
from rag_retrieval.logging_config import DropTally, get_logger
from rag_retrieval.similarity import cosine_similarities
from rag_retrieval.types import ChunkRecord, ScoredCandidate
from validator.vector_validator import validate_options, validate_query_vector

log = get_logger(__name__)


# ── Internal helpers ───────────────────────────────────────────────────────────

def _scored(record: ChunkRecord, similarity: float) -> ScoredCandidate:
    return ScoredCandidate(
        id              = record.id,
        document_id     = record.document_id,
        text            = record.text,
        document_title  = record.document_title,
        document_source = record.document_source,
        similarity      = similarity,
    )


def _decode_candidates(query: np.ndarray, candidates: Iterable[ChunkRecord], tally: DropTally):
    """
    Decodes candidates, dropping any that cannot be compared with `query`.

    Returns:
        (records, matrix): the surviving records in enumeration order and a
        2-D array with one embedding row per surviving record.
    """
    records: List[ChunkRecord] = []
    vectors: List[np.ndarray]  = []

    for record in candidates:
        try:
            vector = decode_embedding(record.embedding, chunk_id=record.id)
            if vector.shape != query.shape:
                raise DimensionMismatchError(query.size, vector.size, chunk_id=record.id)
        except (DecodeError, DimensionMismatchError) as exc:
            tally.drop(record.id, exc)
            continue

        records.append(record)
        vectors.append(vector)

    matrix = np.vstack(vectors) if vectors else np.empty((0, query.size), dtype=np.float64)
    return records, matrix


# ── Public API ─────────────────────────────────────────────────────────────────

def rank_candidates(
    query: np.ndarray,
    candidates: Iterable[ChunkRecord],
    options: RetrievalOptions,
) -> List[ScoredCandidate]:
    """
    Ranks candidates against an already-validated query.

    Args:
        query:      1-D float64 array from `validate_query_vector()`.
        candidates: Chunk records to rank; consumed once, never mutated.
        options:    Validated `k` and `min_similarity`.

    Returns:
        At most `options.k` ScoredCandidate dicts, similarity descending,
        ties in candidate order.
    """
    tally = DropTally(log)
    records, matrix = _decode_candidates(query, candidates, tally)

    scores = cosine_similarities(query, matrix)
    finite = np.isfinite(scores)
    for i in np.flatnonzero(~finite):
        tally.drop(records[i].id, UnscorableCandidateError(records[i].id, float(scores[i])))

    tally.summarize(kept=int(finite.sum()))
    if not finite.any():
        log.debug("No scorable candidates")
        return []

    order = np.argsort(-scores, kind="stable")
    order = order[finite[order]]
    if options.min_similarity is not None:
        order = order[scores[order] >= options.min_similarity]

    top = order[: options.k]
    log.debug(
        "Scored %d candidate(s); returning %d (best=%.4f)",
        len(records), len(top), float(scores[top[0]]) if len(top) else float("nan"),
    )
    return [_scored(records[i], float(scores[i])) for i in top]


def select_top_k(
    query_vector: Sequence[float],
    candidates: Iterable[ChunkRecord],
    k: int = DEFAULT_TOP_K,
    min_similarity: Optional[float] = None,
) -> List[ScoredCandidate]:
    """
    Returns the k candidates most similar to the query.

    Args:
        query_vector:   Query embedding (list, tuple or 1-D numpy array).
        candidates:     Chunk records to rank; consumed once, never mutated.
        k:              Maximum number of results (positive integer).
        min_similarity: If set, candidates scoring strictly below it are dropped.

    Returns:
        List of ScoredCandidate dicts, at most k long, sorted by similarity
        descending with ties in candidate order. Empty when nothing qualifies.

    Raises:
        ValidationError: If the query vector, k or min_similarity is invalid.
    """
    query   = validate_query_vector(query_vector)
    options = validate_options(k, min_similarity)
    return rank_candidates(query, candidates, options)
