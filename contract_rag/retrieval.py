from __future__ import annotations

import json
import logging
import time
from typing import Any

from .config import EMPTY_RESULT_MESSAGE, RESULT_SEPARATOR, StackConfig
from .lancedb_store import LanceStore
from .reranker import CohereReranker
from .search_types import RerankResult, RetrievedDocument
from .text_embedder import EmbeddingClient

logger = logging.getLogger(__name__)

TOOL_NAME = "retrieve"
TOOL_DESCRIPTION = (
    "Retrieve relevant contract/choreography chunks using vector search "
    "and Cohere cross-encoder reranking."
)


def tool_definition() -> dict[str, Any]:
    """Function-calling schema for registering ``retrieve`` with an agent."""
    return {
        "name": TOOL_NAME,
        "description": TOOL_DESCRIPTION,
        "parameters": {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query to retrieve relevant chunks",
                },
            },
            "required": ["query"],
        },
    }


def format_results(documents: list[RetrievedDocument], ranked: list[RerankResult]) -> str:
    chunks: list[str] = []
    for result in ranked:
        doc = documents[result.index]
        metadata_str = ""
        if doc.metadata:
            metadata_str = f"\n[Metadata: {json.dumps(doc.metadata, indent=2, ensure_ascii=False, default=str)}]"
        chunks.append(f"[Relevancy Score: {result.relevance_score:.4f}]{metadata_str}\n{doc.text}")
    return RESULT_SEPARATOR.join(chunks)


class RetrievalTool:
    def __init__(
        self,
        cfg: StackConfig | None = None,
        *,
        embedder: EmbeddingClient | None = None,
        store: LanceStore | None = None,
        reranker: CohereReranker | None = None,
    ):
        self.cfg = cfg or StackConfig()
        self.embedder = embedder or EmbeddingClient(self.cfg)
        self.store = store or LanceStore(self.cfg)
        self.reranker = reranker or CohereReranker(self.cfg)

    def close(self) -> None:
        self.embedder.close()
        self.reranker.close()

    def __enter__(self) -> "RetrievalTool":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def search(self, query: str) -> list[RetrievedDocument]:
        vec = self.embedder.embed_query(query)
        docs = self.store.search(vec, self.cfg.search_limit)
        return [d for d in docs if d.text and d.text.strip()]

    def retrieve(self, query: str) -> str:
        start = time.perf_counter()
        documents = self.search(query)
        if not documents:
            return EMPTY_RESULT_MESSAGE

        texts = [d.text for d in documents]
        ranked = self.reranker.rerank(query, texts, top_n=min(self.cfg.rerank_top_n, len(texts)))
        latency_ms = int((time.perf_counter() - start) * 1000)
        logger.info(f"retrieve: {len(documents)} candidates, {len(ranked)} reranked in {latency_ms}ms")
        return format_results(documents, ranked)

    def __call__(self, query: str) -> str:
        return self.retrieve(query)
