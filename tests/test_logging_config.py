"""
Tests for the package logger factory and dropped-candidate reporting.
"""

import logging

import pytest

from rag_retrieval.errors import (
    DecodeError,
    DimensionMismatchError,
    MissingEmbeddingError,
    UnscorableCandidateError,
)
from rag_retrieval.logging_config import (
    LEVEL_ENV_VAR,
    DropTally,
    configure_logging,
    drop_cause,
    get_logger,
    resolve_level,
)


def test_single_handler_after_repeated_configuration():
    configure_logging()
    configure_logging()
    get_logger("rag_retrieval.selector")
    assert len(logging.getLogger("rag_retrieval").handlers) == 1


def test_explicit_level_is_applied():
    root = logging.getLogger("rag_retrieval")
    previous = root.level
    try:
        configure_logging(logging.ERROR)
        assert root.level == logging.ERROR
    finally:
        root.setLevel(previous)


def test_package_loggers_keep_their_names():
    assert get_logger("rag_retrieval.engine").name == "rag_retrieval.engine"


def test_foreign_names_are_nested_under_package():
    assert get_logger("validator.vector_validator").name == "rag_retrieval.validator.vector_validator"


@pytest.mark.parametrize("value, level", [
    ("debug", logging.DEBUG),
    (" WARNING ", logging.WARNING),
    ("nonsense", logging.INFO),
])
def test_resolve_level_names(value, level):
    assert resolve_level(value) == level


def test_resolve_level_reads_environment(monkeypatch):
    monkeypatch.setenv(LEVEL_ENV_VAR, "error")
    assert resolve_level() == logging.ERROR


def test_drop_causes():
    assert drop_cause(MissingEmbeddingError(1)) == "missing"
    assert drop_cause(DecodeError(1, "bad")) == "undecodable"
    assert drop_cause(DimensionMismatchError(2, 3, chunk_id=1)) == "dimension"
    assert drop_cause(UnscorableCandidateError(1, float("nan"))) == "unscorable"


def test_drop_tally_logs_each_drop_and_a_summary(caplog, propagate_logs):
    tally = DropTally(get_logger("rag_retrieval.selector"))
    with caplog.at_level(logging.INFO, logger="rag_retrieval"):
        tally.drop(4, MissingEmbeddingError(4))
        tally.drop(9, DecodeError(9, "invalid JSON"))
        tally.drop(12, MissingEmbeddingError(12))
        tally.summarize(kept=5)

    assert tally.total == 3
    assert "Skipping chunk 9 — undecodable" in caplog.text
    assert "Dropped 3 unusable candidate(s) (missing=2, undecodable=1); 5 remain" in caplog.text


def test_empty_tally_logs_nothing(caplog, propagate_logs):
    with caplog.at_level(logging.INFO, logger="rag_retrieval"):
        DropTally(get_logger("rag_retrieval.selector")).summarize(kept=3)
    assert caplog.text == ""
