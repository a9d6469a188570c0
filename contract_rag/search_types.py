from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class RetrievedDocument:
    text: str
    metadata: dict[str, Any] = field(default_factory=dict)
    score: float = 0.0


@dataclass(frozen=True)
class RerankResult:
    index: int
    relevance_score: float
