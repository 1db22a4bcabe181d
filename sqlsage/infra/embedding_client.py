# infra/embedding_client.py
import hashlib
import logging
import math
import re
from typing import Dict, List, Protocol

import requests

from sqlsage.config.settings import Settings, settings as default_settings
from sqlsage.domain.errors import ProviderError
from sqlsage.domain.models import EmbeddingResult, TokenUsage

logger = logging.getLogger(__name__)

TOKEN_RE = re.compile(r"\w+")

class Embedder(Protocol):
    dimension: int

    def embed(self, text: str) -> EmbeddingResult: ...

def _estimate_usage(text: str) -> TokenUsage:
    tokens = math.ceil(len(text) / 4)
    return TokenUsage(prompt_tokens=tokens, total_tokens=tokens)

class EmbeddingClient:
    """Remote embeddings over an OpenAI-compatible ``/embeddings`` endpoint."""

    def __init__(self, cfg: Settings | None = None, session: requests.Session | None = None):
        cfg = cfg or default_settings
        if not cfg.EMBEDDING_MODEL:
            raise ValueError("EMBEDDING_MODEL must be set to use the remote embedding client")
        self.url = f"{cfg.LLM_API_BASE.rstrip('/')}{cfg.EMBEDDINGS_PATH}"
        self.api_key = cfg.LLM_API_KEY
        self.model = cfg.EMBEDDING_MODEL
        self.dimension = cfg.EMBEDDING_DIM
        self.timeout = cfg.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def embed(self, text: str) -> EmbeddingResult:
        payload = {"model": self.model, "input": [text]}
        try:
            resp = self.session.post(self.url, headers=self._headers(), json=payload, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
            vector = data["data"][0]["embedding"]
        except requests.RequestException as e:
            raise ProviderError(f"Embedding request failed: {e}") from e
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise ProviderError(f"Embedding endpoint returned an unexpected payload: {e}") from e

        usage = data.get("usage")
        if usage and "prompt_tokens" in usage:
            token_usage = TokenUsage(
                prompt_tokens=usage["prompt_tokens"],
                total_tokens=usage.get("total_tokens", usage["prompt_tokens"]),
            )
        else:
            token_usage = _estimate_usage(text)
        return EmbeddingResult(vector=vector, usage=token_usage)

class HashEmbeddingClient:
    """Deterministic local embeddings via signed feature hashing of word tokens.

    Used when no embedding model is configured. Texts sharing words get
    similar vectors, which is enough for the in-memory store to rank sensibly.
    """

    def __init__(self, dimension: int = 384):
        self.dimension = dimension

    def _bucket(self, token: str) -> tuple[int, float]:
        digest = hashlib.md5(token.encode("utf-8"), usedforsecurity=False).digest()
        index = int.from_bytes(digest[:4], "big") % self.dimension
        sign = 1.0 if digest[4] & 1 else -1.0
        return index, sign

    def embed(self, text: str) -> EmbeddingResult:
        vector: List[float] = [0.0] * self.dimension
        for token in TOKEN_RE.findall(text.lower()):
            index, sign = self._bucket(token)
            vector[index] += sign
        norm = math.sqrt(sum(v * v for v in vector))
        if norm:
            vector = [v / norm for v in vector]
        return EmbeddingResult(vector=vector, usage=_estimate_usage(text))

def build_embedder(cfg: Settings | None = None) -> Embedder:
    cfg = cfg or default_settings
    if cfg.EMBEDDING_MODEL:
        return EmbeddingClient(cfg)
    logger.warning("No EMBEDDING_MODEL configured, falling back to local hash embeddings")
    return HashEmbeddingClient(cfg.EMBEDDING_DIM)
