"""
Tests for stored-embedding tagging, decoding and encoding.
"""

import struct

import numpy as np
import pytest

from rag_retrieval.codec import (
    BinaryEmbedding,
    JsonEmbedding,
    decode_embedding,
    encode_embedding,
    encode_embedding_json,
    tag_stored_value,
)
from rag_retrieval.errors import DecodeError, MissingEmbeddingError


# ── Tagging ────────────────────────────────────────────────────────────────────

def test_text_is_tagged_as_json():
    assert tag_stored_value("[1, 2]") == JsonEmbedding("[1, 2]")


@pytest.mark.parametrize("raw", [b"\x00\x00\x80?", bytearray(b"\x00\x00\x80?"), memoryview(b"\x00\x00\x80?")])
def test_bytes_like_values_are_tagged_as_binary(raw):
    assert tag_stored_value(raw) == BinaryEmbedding(b"\x00\x00\x80?")


@pytest.mark.parametrize("raw", [None, "", "   ", b""])
def test_absent_values_tag_to_none(raw):
    assert tag_stored_value(raw) is None


def test_unsupported_type_is_a_decode_error():
    with pytest.raises(DecodeError) as excinfo:
        tag_stored_value(42, chunk_id=9)
    assert excinfo.value.chunk_id == 9


# ── JSON decoding ──────────────────────────────────────────────────────────────

def test_decode_json_array():
    vector = decode_embedding(JsonEmbedding("[0.5, -1, 2.25]"))
    assert vector.dtype == np.float64
    assert vector.tolist() == [0.5, -1.0, 2.25]


@pytest.mark.parametrize("text", [
    "not json",
    "[1, 2",
    '{"a": 1}',
    "[]",
    '[1, "2"]',
    "[1, true]",
    "[[1, 2]]",
    "[1, NaN]",
    "[Infinity]",
])
def test_decode_bad_json_raises_decode_error(text):
    with pytest.raises(DecodeError) as excinfo:
        decode_embedding(JsonEmbedding(text), chunk_id=3)
    assert excinfo.value.chunk_id == 3
    assert not isinstance(excinfo.value, MissingEmbeddingError)


# ── Binary decoding ────────────────────────────────────────────────────────────

def test_decode_little_endian_float32_blob():
    blob = struct.pack("<3f", 1.0, -2.5, 0.125)
    assert decode_embedding(BinaryEmbedding(blob)).tolist() == [1.0, -2.5, 0.125]


def test_decode_blob_with_bad_length():
    with pytest.raises(DecodeError) as excinfo:
        decode_embedding(BinaryEmbedding(b"\x00" * 7), chunk_id=11)
    assert "multiple of 4" in str(excinfo.value)
    assert excinfo.value.chunk_id == 11


def test_decode_empty_blob():
    with pytest.raises(DecodeError):
        decode_embedding(BinaryEmbedding(b""))


def test_decode_blob_with_nan():
    with pytest.raises(DecodeError):
        decode_embedding(BinaryEmbedding(struct.pack("<2f", 1.0, float("nan"))))


# ── Missing / unknown ──────────────────────────────────────────────────────────

def test_missing_embedding_is_distinct_error():
    with pytest.raises(MissingEmbeddingError) as excinfo:
        decode_embedding(None, chunk_id=5)
    assert excinfo.value.chunk_id == 5
    assert isinstance(excinfo.value, DecodeError)


def test_untagged_value_is_rejected():
    with pytest.raises(DecodeError):
        decode_embedding("[1, 2]")


# ── Encoding ───────────────────────────────────────────────────────────────────

def test_encode_packs_float32_little_endian():
    encoded = encode_embedding([1.0, -2.5])
    assert encoded == BinaryEmbedding(struct.pack("<2f", 1.0, -2.5))


def test_encode_json_is_parseable_by_decoder():
    encoded = encode_embedding_json(np.array([0.25, 3]))
    assert encoded.text == "[0.25, 3.0]"
    assert decode_embedding(encoded).tolist() == [0.25, 3.0]


@pytest.mark.parametrize("bad", [[], [[1.0, 2.0]]])
def test_encode_rejects_non_vectors(bad):
    with pytest.raises(ValueError):
        encode_embedding(bad)


# ── Numeric extremes ───────────────────────────────────────────────────────────

def test_decode_integer_too_large_for_float64():
    huge = "1" + "0" * 400
    with pytest.raises(DecodeError) as excinfo:
        decode_embedding(JsonEmbedding(f"[{huge}, 0]"), chunk_id=21)
    assert excinfo.value.chunk_id == 21
    assert isinstance(excinfo.value.__cause__, OverflowError)


def test_decode_largest_finite_values():
    vector = decode_embedding(JsonEmbedding("[1.7976931348623157e308, -1e308]"))
    assert np.all(np.isfinite(vector))


def test_decode_subnormal_values():
    assert decode_embedding(JsonEmbedding("[5e-324, 1e-320]")).tolist() == [5e-324, 1e-320]
