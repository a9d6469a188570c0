from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class StackConfig:
    lancedb_path: Path = Path(os.getenv("CONTRACT_RAG_LANCEDB", "vectors.lance"))
    collection_name: str = os.getenv("CONTRACT_RAG_COLLECTION", "MyCollection")
    vector_column: str = "vector"
    search_limit: int = 15

    jina_api_key: str = os.getenv("JINA_API_KEY", "")
    embedding_url: str = os.getenv("CONTRACT_RAG_EMBED_URL", "https://api.jina.ai/v1/embeddings")
    embedding_model: str = os.getenv("CONTRACT_RAG_EMBED_MODEL", "jina-embeddings-v4")
    query_task: str = "retrieval.query"
    passage_task: str = "retrieval.passage"
    request_timeout_s: float = float(os.getenv("CONTRACT_RAG_TIMEOUT_S", "30"))

    cache_capacity: int = int(os.getenv("CONTRACT_RAG_CACHE_CAPACITY", "100"))
    cache_ttl_minutes: float = float(os.getenv("CONTRACT_RAG_CACHE_TTL_MINUTES", "60"))

    cohere_api_key: str = os.getenv("COHERE_API_KEY", "")
    rerank_url: str = os.getenv("CONTRACT_RAG_RERANK_URL", "https://api.cohere.com/v2/rerank")
    rerank_model: str = os.getenv("CONTRACT_RAG_RERANK_MODEL", "rerank-v4.0-fast")
    rerank_top_n: int = 5


EMPTY_RESULT_MESSAGE = "No relevant documents found for the query."
RESULT_SEPARATOR = "\n\n-----\n\n"
