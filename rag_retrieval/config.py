"""
rag_retrieval/config.py
-----------------------
Configuration for the retrieval engine and its collaborators.

Process-wide defaults live in the constants block below. Per-call options
(`k`, `min_similarity`) are validated through the `RetrievalOptions` model
so that bad values are rejected before any candidate is scored.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

# ── Constants ──────────────────────────────────────────────────────────────────

DEFAULT_TOP_K          = 3
DEFAULT_MIN_SIMILARITY = None          # no threshold filtering unless asked for
DEFAULT_DB_PATH        = Path(__file__).resolve().parent.parent / "data" / "vectordb.sqlite"
EMBED_URL              = "http://localhost:11434/api/embeddings"
DEFAULT_EMBED_MODEL    = "nomic-embed-text"
HTTP_TIMEOUT           = 60
# ──────────────────────────────────────────────────────────────────────────────


class RetrievalOptions(BaseModel):
    """Per-call ranking options for `select_top_k` / `RetrievalEngine.retrieve`."""

    model_config = ConfigDict(frozen=True)

    k:              StrictInt       = Field(default=DEFAULT_TOP_K, gt=0)
    min_similarity: Optional[float] = Field(default=DEFAULT_MIN_SIMILARITY, ge=-1.0, le=1.0)
