"""
rag_retrieval/codec.py
----------------------
Conversion between persisted embeddings and in-memory float vectors.

A stored embedding is one of two tagged encodings:

    JsonEmbedding(text)    — a JSON array of numbers, e.g. "[0.12, -0.4, ...]"
    BinaryEmbedding(data)  — packed little-endian IEEE-754 float32 values

Raw column values are tagged exactly once, at the storage boundary, by
`tag_stored_value()`. Everything downstream dispatches on the tag and never
inspects raw values again.

Decoding is pure and reports failures per record: `DecodeError` for a value
that cannot be parsed, `MissingEmbeddingError` for an absent one.
"""

import json
from dataclasses import dataclass
from typing import Optional, Sequence, Union

import numpy as np

from rag_retrieval.errors import DecodeError, MissingEmbeddingError

_FLOAT32_LE = np.dtype("<f4")


# ── Tagged encodings ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class JsonEmbedding:
    """Embedding persisted as a JSON text array."""
    text: str


@dataclass(frozen=True)
class BinaryEmbedding:
    """Embedding persisted as a little-endian float32 blob."""
    data: bytes


StoredEmbedding = Union[JsonEmbedding, BinaryEmbedding]


def tag_stored_value(raw: object, chunk_id: Optional[int] = None) -> Optional[StoredEmbedding]:
    """
    Tags a raw storage value with its encoding.

    Args:
        raw:      Column value as returned by the storage driver.
        chunk_id: Owning chunk id, for error reporting.

    Returns:
        A JsonEmbedding for text, a BinaryEmbedding for bytes-like values,
        or None when the value is absent (None, blank text, zero bytes).

    Raises:
        DecodeError: If the value is of a type no encoding accepts.
    """
    if raw is None:
        return None
    if isinstance(raw, str):
        return JsonEmbedding(raw) if raw.strip() else None
    if isinstance(raw, (bytes, bytearray, memoryview)):
        data = bytes(raw)
        return BinaryEmbedding(data) if data else None
    raise DecodeError(chunk_id, f"unsupported storage type {type(raw).__name__}")


# ── Decoding ───────────────────────────────────────────────────────────────────

def _decode_json(text: str, chunk_id: Optional[int]) -> np.ndarray:
    try:
        values = json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError(chunk_id, f"invalid JSON ({exc.msg})") from exc

    if not isinstance(values, list):
        raise DecodeError(chunk_id, f"JSON value is a {type(values).__name__}, not an array")
    if not values:
        raise DecodeError(chunk_id, "JSON array is empty")
    # bool is an int subclass; true/false are not vector components
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in values):
        raise DecodeError(chunk_id, "JSON array contains non-numeric values")

    try:
        return np.asarray(values, dtype=np.float64)
    except (OverflowError, ValueError, TypeError) as exc:
        raise DecodeError(chunk_id, f"JSON array is not representable as float64 ({exc})") from exc


def _decode_binary(data: bytes, chunk_id: Optional[int]) -> np.ndarray:
    if not data:
        raise DecodeError(chunk_id, "binary embedding is empty")
    if len(data) % _FLOAT32_LE.itemsize:
        raise DecodeError(
            chunk_id,
            f"byte length {len(data)} is not a multiple of {_FLOAT32_LE.itemsize}",
        )
    return np.frombuffer(data, dtype=_FLOAT32_LE).astype(np.float64)


def decode_embedding(stored: Optional[StoredEmbedding], chunk_id: Optional[int] = None) -> np.ndarray:
    """
    Decodes a stored embedding into a 1-D float64 vector.

    Args:
        stored:   Tagged stored embedding, or None if the chunk has none.
        chunk_id: Owning chunk id, carried on any raised error.

    Returns:
        np.ndarray of shape (dim,), dtype float64, all values finite.

    Raises:
        MissingEmbeddingError: If `stored` is None.
        DecodeError:           If the value cannot be parsed into finite floats.
    """
    if stored is None:
        raise MissingEmbeddingError(chunk_id)

    if isinstance(stored, JsonEmbedding):
        vector = _decode_json(stored.text, chunk_id)
    elif isinstance(stored, BinaryEmbedding):
        vector = _decode_binary(stored.data, chunk_id)
    else:
        raise DecodeError(chunk_id, f"unknown embedding encoding {type(stored).__name__}")

    if not np.all(np.isfinite(vector)):
        raise DecodeError(chunk_id, "embedding contains NaN or infinite values")
    return vector


# ── Encoding ───────────────────────────────────────────────────────────────────

def _as_vector(vector: Sequence[float]) -> np.ndarray:
    array = np.asarray(vector, dtype=np.float64)
    if array.ndim != 1 or array.size == 0:
        raise ValueError(f"embedding must be a non-empty 1-D sequence, got shape {array.shape}.")
    return array


def encode_embedding(vector: Sequence[float]) -> BinaryEmbedding:
    """Packs a vector as little-endian float32 bytes."""
    return BinaryEmbedding(_as_vector(vector).astype(_FLOAT32_LE).tobytes())


def encode_embedding_json(vector: Sequence[float]) -> JsonEmbedding:
    """Serialises a vector as a JSON text array."""
    return JsonEmbedding(json.dumps([float(v) for v in _as_vector(vector)]))
