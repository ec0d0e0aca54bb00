"""
validator/vector_validator.py
-----------------------------
Input and output contract enforcement for the retrieval engine.

Validates the query vector and per-call options before any candidate is
scored, and checks the ranked result before it is returned.

Bad input raises ValidationError and is fatal to the call, unlike
per-candidate problems which are only logged and dropped. A ranked result
that breaks its guarantees raises ResultContractError: that is an internal
fault, never reported as an invalid query.
"""

from typing import List, Optional, Sequence

import numpy as np
from pydantic import ValidationError as PydanticValidationError

from rag_retrieval.config import DEFAULT_TOP_K, RetrievalOptions
from rag_retrieval.errors import ResultContractError
from rag_retrieval.logging_config import get_logger
from rag_retrieval.types import ScoredCandidate

log = get_logger(__name__)


# ── Custom exception ───────────────────────────────────────────────────────────

class ValidationError(ValueError):
    """Raised when a query vector, retrieval option or result is invalid."""


# ── Validators ─────────────────────────────────────────────────────────────────

def validate_query_vector(query_vector: Optional[Sequence[float]]) -> np.ndarray:
    """
    Checks that the query is a non-empty, 1-D sequence of finite numbers.

    Args:
        query_vector: Query embedding as a list, tuple or numpy array.

    Returns:
        The query as a 1-D float64 numpy array.

    Raises:
        ValidationError: If the query is None, not numeric, empty, not 1-D,
                         or contains NaN / infinite values.
    """
    if query_vector is None:
        raise ValidationError("Query vector must not be None.")
    if isinstance(query_vector, (str, bytes, bytearray, dict)) or not hasattr(query_vector, "__len__"):
        raise ValidationError(
            f"Query vector must be a sequence of numbers, got {type(query_vector).__name__}."
        )
    if any(isinstance(v, (bool, np.bool_)) for v in query_vector):
        raise ValidationError("Query vector must not contain booleans.")

    try:
        array = np.asarray(query_vector, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Query vector must contain only numbers: {exc}") from exc

    if array.ndim != 1:
        raise ValidationError(f"Query vector must be 1-D, got shape {array.shape}.")
    if array.size == 0:
        raise ValidationError("Query vector must not be empty.")
    if not np.all(np.isfinite(array)):
        raise ValidationError("Query vector contains NaN or infinite values.")

    return array


def validate_options(k: int = DEFAULT_TOP_K, min_similarity: Optional[float] = None) -> RetrievalOptions:
    """
    Validates per-call ranking options.

    Raises:
        ValidationError: If `k` is not a positive integer or `min_similarity`
                         lies outside [-1, 1].
    """
    try:
        return RetrievalOptions(k=k, min_similarity=min_similarity)
    except PydanticValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
        )
        raise ValidationError(f"Invalid retrieval options — {problems}") from exc


def validate_result(results: List[ScoredCandidate], k: int) -> List[ScoredCandidate]:
    """
    Checks the ranked result against the retrieval contract.

    Checks:
      - at most `k` entries
      - every similarity lies in [-1, 1]
      - similarities are in non-increasing order

    Raises:
        ResultContractError: If any check fails. This is a ranking fault,
                             not a problem with the caller's input.
    """
    if len(results) > k:
        log.error("Result validation failed — %d results for k=%d", len(results), k)
        raise ResultContractError(f"Retrieval returned {len(results)} results for k={k}.")

    for i, entry in enumerate(results):
        if not -1.0 <= entry["similarity"] <= 1.0:
            log.error("Result validation failed — results[%d] similarity out of range", i)
            raise ResultContractError(
                f"results[{i}] similarity {entry['similarity']} is outside [-1, 1]."
            )
        if i and entry["similarity"] > results[i - 1]["similarity"]:
            log.error("Result validation failed — results[%d] breaks descending order", i)
            raise ResultContractError(
                f"results[{i}] similarity {entry['similarity']} exceeds "
                f"results[{i - 1}] similarity {results[i - 1]['similarity']}."
            )

    return results
