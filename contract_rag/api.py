from __future__ import annotations

from typing import Any

from .cache import EmbeddingCache
from .config import StackConfig
from .retrieval import RetrievalTool
from .text_embedder import EmbeddingClient


def create_embedding_client(cfg: StackConfig | None = None) -> EmbeddingClient:
    cfg = cfg or StackConfig()
    cache = EmbeddingCache(capacity=cfg.cache_capacity, ttl_minutes=cfg.cache_ttl_minutes)
    return EmbeddingClient(cfg, cache=cache)


def create_retrieval_tool(cfg: StackConfig | None = None, client: EmbeddingClient | None = None) -> RetrievalTool:
    cfg = cfg or StackConfig()
    return RetrievalTool(cfg, embedder=client or create_embedding_client(cfg))


def embed_queries(queries: list[str], client: EmbeddingClient) -> dict[str, Any]:
    out = []
    for query in queries:
        hits_before = client.cache.stats().hits
        vec = client.embed_query(query)
        cached = client.cache.stats().hits > hits_before
        out.append({"query": query, "dimension": len(vec), "cached": cached})
    return {"embeddings": out, "cache": client.cache.stats().to_dict()}


def retrieve(query: str, tool: RetrievalTool) -> str:
    return tool.retrieve(query)
