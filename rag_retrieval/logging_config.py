"""
rag_retrieval/logging_config.py
-------------------------------
Logging for the retrieval engine.

All modules log through `get_logger(__name__)` under the `rag_retrieval`
namespace. The namespace level comes from the RAG_RETRIEVAL_LOG_LEVEL
environment variable (DEBUG, INFO, WARNING, ERROR; default INFO).

Candidates dropped during a scan are reported through `DropTally`: one
WARNING per dropped chunk naming its id and the cause, and a single INFO
summary per scan with the count per cause.
"""

import logging
import os
import sys
from collections import Counter
from typing import Optional

from rag_retrieval.errors import (
    DecodeError,
    DimensionMismatchError,
    MissingEmbeddingError,
    RetrievalError,
)

_LOG_FORMAT   = "%(asctime)s [%(levelname)-8s] %(name)s — %(message)s"
_DATE_FORMAT  = "%Y-%m-%d %H:%M:%S"
_ROOT_NAME    = "rag_retrieval"
LEVEL_ENV_VAR = "RAG_RETRIEVAL_LOG_LEVEL"

_LEVELS = {
    "DEBUG":   logging.DEBUG,
    "INFO":    logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR":   logging.ERROR,
}


def resolve_level(value: Optional[str] = None) -> int:
    """Maps a level name (or the environment setting) to a logging level."""
    if value is None:
        value = os.environ.get(LEVEL_ENV_VAR, "INFO")
    return _LEVELS.get(value.strip().upper(), logging.INFO)


def configure_logging(level: Optional[int] = None) -> logging.Logger:
    """
    Installs the stdout handler on the `rag_retrieval` logger once.

    A later call with an explicit `level` only changes the level.
    """
    root = logging.getLogger(_ROOT_NAME)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
        root.addHandler(handler)
        root.propagate = False
        root.setLevel(resolve_level() if level is None else level)
    elif level is not None:
        root.setLevel(level)

    return root


def get_logger(name: str) -> logging.Logger:
    """Returns a logger nested under the `rag_retrieval` namespace."""
    configure_logging()
    if name != _ROOT_NAME and not name.startswith(_ROOT_NAME + "."):
        name = f"{_ROOT_NAME}.{name}"
    return logging.getLogger(name)


# ── Dropped-candidate reporting ────────────────────────────────────────────────

def drop_cause(exc: RetrievalError) -> str:
    """Short category name for a per-candidate failure."""
    if isinstance(exc, MissingEmbeddingError):
        return "missing"
    if isinstance(exc, DecodeError):
        return "undecodable"
    if isinstance(exc, DimensionMismatchError):
        return "dimension"
    return "unscorable"


class DropTally:
    """Counts and logs candidates dropped during one corpus scan."""

    def __init__(self, log: logging.Logger):
        self.log    = log
        self.counts = Counter()

    def drop(self, chunk_id: Optional[int], exc: RetrievalError) -> None:
        cause = drop_cause(exc)
        self.counts[cause] += 1
        self.log.warning("Skipping chunk %s — %s: %s", chunk_id, cause, exc)

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def summarize(self, kept: int) -> None:
        if not self.total:
            return
        causes = ", ".join(f"{cause}={n}" for cause, n in sorted(self.counts.items()))
        self.log.info("Dropped %d unusable candidate(s) (%s); %d remain", self.total, causes, kept)
