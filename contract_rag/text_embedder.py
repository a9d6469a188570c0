from __future__ import annotations

import logging
from typing import Any

import requests

from .cache import EmbeddingCache
from .config import StackConfig
from .errors import MalformedResponseError, ProviderError

logger = logging.getLogger(__name__)

PROVIDER = "Jina"


def _parse_embeddings(payload: Any, expected: int) -> list[list[float]]:
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        raise MalformedResponseError(PROVIDER, "missing 'data' list")
    if len(data) != expected:
        raise MalformedResponseError(PROVIDER, f"expected {expected} embeddings, got {len(data)}")

    out: list[list[float]] = []
    for item in data:
        embedding = item.get("embedding") if isinstance(item, dict) else None
        if not isinstance(embedding, list) or not embedding:
            raise MalformedResponseError(PROVIDER, "item without 'embedding' vector")
        try:
            out.append([float(x) for x in embedding])
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(PROVIDER, "non-numeric embedding value") from exc
    return out


class EmbeddingClient:
    """
    Embeds text through the provider's HTTP API.

    Query embeddings go through the injected cache; passage embeddings
    (used for indexing) are never cached. Failures are raised to the caller
    without retry.
    """

    def __init__(
        self,
        cfg: StackConfig | None = None,
        *,
        cache: EmbeddingCache | None = None,
        session: requests.Session | None = None,
    ):
        self.cfg = cfg or StackConfig()
        self.cache = cache if cache is not None else EmbeddingCache(
            capacity=self.cfg.cache_capacity,
            ttl_minutes=self.cfg.cache_ttl_minutes,
        )
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "EmbeddingClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _post(self, task: str, texts: list[str]) -> list[list[float]]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.cfg.jina_api_key}",
        }
        body = {"model": self.cfg.embedding_model, "task": task, "input": texts}
        try:
            response = self.session.post(
                self.cfg.embedding_url,
                json=body,
                headers=headers,
                timeout=self.cfg.request_timeout_s,
            )
        except requests.RequestException as exc:
            logger.error(f"Embedding request failed: {exc}")
            raise ProviderError(PROVIDER, None, str(exc)) from exc

        if not response.ok:
            logger.error(f"Embedding API returned {response.status_code}")
            raise ProviderError(PROVIDER, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(PROVIDER, "response body is not JSON") from exc
        return _parse_embeddings(payload, expected=len(texts))

    def embed_query(self, text: str) -> list[float]:
        if not (text or "").strip():
            raise ValueError("Query text is empty")

        vec = self.cache.get(text)
        if vec is not None:
            logger.debug(f"Query embedding cache hit: {text[:50]!r}")
            return vec

        vec = self._post(self.cfg.query_task, [text])[0]
        self.cache.set(text, vec)
        return vec

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []
        return self._post(self.cfg.passage_task, list(texts))
