from __future__ import annotations

import logging
from typing import Any

import requests

from .config import StackConfig
from .errors import MalformedResponseError, ProviderError
from .search_types import RerankResult

logger = logging.getLogger(__name__)

PROVIDER = "Cohere"


def _parse_results(payload: Any, n_documents: int) -> list[RerankResult]:
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        raise MalformedResponseError(PROVIDER, "missing 'results' list")

    out: list[RerankResult] = []
    for item in results:
        if not isinstance(item, dict) or "index" not in item or "relevance_score" not in item:
            raise MalformedResponseError(PROVIDER, "result without index/relevance_score")
        try:
            index = int(item["index"])
            score = float(item["relevance_score"])
        except (TypeError, ValueError) as exc:
            raise MalformedResponseError(PROVIDER, "non-numeric index/relevance_score") from exc
        if not 0 <= index < n_documents:
            raise MalformedResponseError(PROVIDER, f"result index {index} out of range")
        out.append(RerankResult(index=index, relevance_score=score))
    return out


class CohereReranker:
    """Cross-encoder rerank pass over vector-search candidates."""

    def __init__(self, cfg: StackConfig | None = None, *, session: requests.Session | None = None):
        self.cfg = cfg or StackConfig()
        self.session = session or requests.Session()

    def close(self) -> None:
        self.session.close()

    def rerank(self, query: str, documents: list[str], top_n: int) -> list[RerankResult]:
        if not documents:
            return []
        body = {
            "model": self.cfg.rerank_model,
            "query": query,
            "documents": documents,
            "top_n": max(1, min(int(top_n), len(documents))),
        }
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.cfg.cohere_api_key}",
        }
        try:
            response = self.session.post(
                self.cfg.rerank_url,
                json=body,
                headers=headers,
                timeout=self.cfg.request_timeout_s,
            )
        except requests.RequestException as exc:
            logger.error(f"Rerank request failed: {exc}")
            raise ProviderError(PROVIDER, None, str(exc)) from exc

        if not response.ok:
            logger.error(f"Rerank API returned {response.status_code}")
            raise ProviderError(PROVIDER, response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponseError(PROVIDER, "response body is not JSON") from exc
        return _parse_results(payload, len(documents))
