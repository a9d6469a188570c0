from __future__ import annotations

import logging
from typing import Any

import lancedb

from .config import StackConfig
from .search_types import RetrievedDocument

logger = logging.getLogger(__name__)

_INTERNAL_COLUMNS = {"_distance", "_relevance_score", "_score"}


def distance_to_similarity(distance: Any) -> float:
    try:
        d = float(distance)
    except (TypeError, ValueError):
        return 0.0
    return max(-1.0, min(1.0, 1.0 - d))


class LanceStore:
    def __init__(self, cfg: StackConfig):
        self.cfg = cfg
        self.db = lancedb.connect(str(cfg.lancedb_path))

    def _table_names(self) -> set[str]:
        raw = self.db.list_tables() if hasattr(self.db, "list_tables") else self.db.table_names()
        if isinstance(raw, dict):
            tables = raw.get("tables", [])
        elif hasattr(raw, "tables"):
            tables = list(getattr(raw, "tables"))
        else:
            tables = list(raw)
        return {str(x) for x in tables}

    def _to_document(self, row: dict[str, Any]) -> RetrievedDocument:
        text = row.get("text")
        metadata = {
            k: v
            for k, v in row.items()
            if k != "text" and k != self.cfg.vector_column and k not in _INTERNAL_COLUMNS
        }
        return RetrievedDocument(
            text=text if isinstance(text, str) else "",
            metadata=metadata,
            score=distance_to_similarity(row.get("_distance")),
        )

    def search(self, vector: list[float], limit: int) -> list[RetrievedDocument]:
        if self.cfg.collection_name not in self._table_names():
            logger.warning(f"Collection {self.cfg.collection_name!r} not found in {self.cfg.lancedb_path}")
            return []
        table = self.db.open_table(self.cfg.collection_name)
        search = table.search(vector, vector_column_name=self.cfg.vector_column).distance_type("cosine")
        rows = search.limit(max(1, int(limit))).to_list()
        return [self._to_document(dict(r)) for r in rows]
