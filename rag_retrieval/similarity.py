"""
rag_retrieval/similarity.py
---------------------------
Cosine similarity over dense float64 vectors.

    similarity(a, b) = dot(a, b) / (||a|| * ||b||)

A zero vector has no direction, so its similarity to anything is 0.0.
Vectors of different length are never truncated or padded: comparing them
raises `DimensionMismatchError`.

Each vector is divided by its largest absolute component before norms and
dot products are taken. Cosine similarity is unchanged by positive scaling,
and the scaled components lie in [-1, 1], so neither magnitudes near 1e308
nor subnormal-only vectors overflow or underflow the intermediate sums.
"""

from typing import Sequence, Union

import numpy as np

from rag_retrieval.errors import DimensionMismatchError

VectorLike = Union[np.ndarray, Sequence[float]]


# ── Internal helpers ───────────────────────────────────────────────────────────

def _unit_scaled(vector: np.ndarray) -> np.ndarray:
    """Returns `vector` divided by its max-abs component (unchanged if all zero)."""
    peak = np.max(np.abs(vector)) if vector.size else 0.0
    return vector / peak if peak > 0.0 else vector


def _rows_unit_scaled(matrix: np.ndarray) -> np.ndarray:
    peaks  = np.max(np.abs(matrix), axis=1, keepdims=True)
    scaled = np.zeros_like(matrix)
    with np.errstate(invalid="ignore"):
        np.divide(matrix, peaks, out=scaled, where=peaks > 0.0)
    return scaled


# ── Public API ─────────────────────────────────────────────────────────────────

def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """
    Computes cosine similarity between two equal-length vectors.

    Args:
        a: 1-D vector of finite values.
        b: 1-D vector of the same length as `a`.

    Returns:
        Similarity in [-1, 1]; 0.0 if either vector is all zeros.

    Raises:
        DimensionMismatchError: If len(a) != len(b).
        ValueError:             If either vector holds NaN or infinite values.
    """
    a = np.asarray(a, dtype=np.float64)
    b = np.asarray(b, dtype=np.float64)
    if a.shape != b.shape:
        raise DimensionMismatchError(a.size, b.size)
    if not (np.all(np.isfinite(a)) and np.all(np.isfinite(b))):
        raise ValueError("cosine_similarity needs finite vectors.")

    a = _unit_scaled(a)
    b = _unit_scaled(b)
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0.0 or norm_b == 0.0:
        return 0.0

    return float(np.clip(np.dot(a, b) / (norm_a * norm_b), -1.0, 1.0))


def cosine_similarities(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """
    Computes cosine similarity between a query vector and every row in matrix.

    Args:
        query:  1-D array of shape (dim,).
        matrix: 2-D array of shape (n, dim).

    Returns:
        1-D float64 scores of shape (n,). All-zero rows (and every row, if
        the query is all zeros) score 0.0. A row holding NaN or infinite
        values scores NaN; callers decide what to do with it.

    Raises:
        DimensionMismatchError: If the matrix width differs from the query length.
    """
    query  = np.asarray(query,  dtype=np.float64)
    matrix = np.asarray(matrix, dtype=np.float64)
    if matrix.size == 0:
        return np.zeros(matrix.shape[0] if matrix.ndim == 2 else 0, dtype=np.float64)
    if matrix.ndim != 2 or matrix.shape[1] != query.shape[0]:
        raise DimensionMismatchError(query.shape[0], matrix.shape[-1])

    finite_rows = np.all(np.isfinite(matrix), axis=1)
    query  = _unit_scaled(query)
    matrix = _rows_unit_scaled(matrix)

    query_norm = np.linalg.norm(query)
    if query_norm == 0.0:
        return np.zeros(matrix.shape[0], dtype=np.float64)

    with np.errstate(invalid="ignore"):
        denominators = np.linalg.norm(matrix, axis=1) * query_norm
        dots   = matrix @ query
        scores = np.zeros(matrix.shape[0], dtype=np.float64)
        np.divide(dots, denominators, out=scores, where=denominators != 0.0)
        scores[~finite_rows] = np.nan
        # clip keeps NaN, so non-finite rows stay detectable
        return np.clip(scores, -1.0, 1.0)
