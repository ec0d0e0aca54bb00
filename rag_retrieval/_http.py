"""
rag_retrieval/_http.py
----------------------
Client for Ollama's /api/embeddings endpoint.

`fetch_embedding()` is the only function the rest of the package calls. It
posts one prompt, checks that the reply carries a non-empty list of finite
numbers, and hands back plain floats. Transport failures surface as
ConnectionError; malformed replies as RuntimeError.
"""

import json
import math
import urllib.error
import urllib.request
from typing import Any, Dict, List

from rag_retrieval.config import HTTP_TIMEOUT


def _post_json(url: str, payload: Dict[str, Any], timeout: int) -> Any:
    request = urllib.request.Request(
        url,
        data=json.dumps(payload).encode("utf-8"),
        headers={"Content-Type": "application/json"},
        method="POST",
    )
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            return json.loads(response.read().decode("utf-8"))
    except urllib.error.URLError as exc:
        raise ConnectionError(
            f"Embedding server is not reachable at {url} ({exc.reason}). "
            "Start it with `ollama serve`."
        ) from exc
    except json.JSONDecodeError as exc:
        raise RuntimeError(f"Embedding server at {url} replied with non-JSON: {exc}") from exc


def fetch_embedding(
    url: str,
    model: str,
    text: str,
    timeout: int = HTTP_TIMEOUT,
) -> List[float]:
    """
    Embeds one string through an Ollama embeddings endpoint.

    Args:
        url:     Full /api/embeddings URL.
        model:   Embedding model name, e.g. "nomic-embed-text".
        text:    Prompt to embed.
        timeout: Socket timeout in seconds.

    Returns:
        The embedding as a list of floats.

    Raises:
        ConnectionError: If the server is unreachable.
        RuntimeError:    If the reply is not JSON, reports an error, or has no
                         usable 'embedding' array.
    """
    reply = _post_json(url, {"model": model, "prompt": text}, timeout)

    if not isinstance(reply, dict):
        raise RuntimeError(f"Expected a JSON object from {url}, got {type(reply).__name__}.")
    if "error" in reply:
        raise RuntimeError(f"Embedding model '{model}' failed: {reply['error']}")

    embedding = reply.get("embedding")
    if not isinstance(embedding, list) or not embedding:
        raise RuntimeError(f"Reply from {url} has no 'embedding' array: {reply}")
    if any(isinstance(v, bool) or not isinstance(v, (int, float)) for v in embedding):
        raise RuntimeError(f"'embedding' from {url} contains non-numeric values.")

    values = [float(v) for v in embedding]
    if not all(math.isfinite(v) for v in values):
        raise RuntimeError(f"'embedding' from {url} contains NaN or infinite values.")
    return values
