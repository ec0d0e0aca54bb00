"""
rag_retrieval/errors.py
-----------------------
Per-record error taxonomy for the retrieval engine.

These exceptions describe a problem with ONE candidate chunk. The selector
catches them, logs the chunk id, and drops the candidate; they never fail a
whole retrieval call. Call-fatal problems (a bad query vector, a bad `k`)
are raised as `validator.vector_validator.ValidationError` instead.

`ResultContractError` is the exception to that rule: it signals an internal
fault in ranking, not bad input, and propagates.
"""

from typing import Optional


class RetrievalError(Exception):
    """Base class for per-candidate retrieval failures."""


class DecodeError(RetrievalError):
    """Raised when a stored embedding cannot be decoded into a vector."""

    def __init__(self, chunk_id: Optional[int], reason: str):
        self.chunk_id = chunk_id
        self.reason   = reason
        super().__init__(f"Cannot decode embedding for chunk {chunk_id}: {reason}")


class MissingEmbeddingError(DecodeError):
    """Raised when a chunk has no stored embedding at all."""

    def __init__(self, chunk_id: Optional[int]):
        super().__init__(chunk_id, "embedding is missing")


class DimensionMismatchError(RetrievalError):
    """Raised when two vectors of different length are compared."""

    def __init__(self, expected: int, actual: int, chunk_id: Optional[int] = None):
        self.expected = expected
        self.actual   = actual
        self.chunk_id = chunk_id
        where = f" (chunk {chunk_id})" if chunk_id is not None else ""
        super().__init__(
            f"Vector length mismatch{where}: {expected} vs {actual}"
        )


class UnscorableCandidateError(RetrievalError):
    """Raised when a candidate's similarity comes out NaN or infinite."""

    def __init__(self, chunk_id: Optional[int], score: float):
        self.chunk_id = chunk_id
        self.score    = score
        super().__init__(f"Similarity for chunk {chunk_id} is not finite ({score})")


class ResultContractError(RuntimeError):
    """Raised when a ranked result breaks its own ordering or size guarantees."""
