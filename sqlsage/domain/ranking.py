# domain/ranking.py
import math
from typing import Callable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    # unequal lengths and zero vectors are "not similar" rather than an error
    if len(a) != len(b):
        return 0.0
    dot = norm_a = norm_b = 0.0
    for x, y in zip(a, b):
        dot += x * y
        norm_a += x * x
        norm_b += y * y
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (math.sqrt(norm_a) * math.sqrt(norm_b))

def rank_by_similarity(
    items: Sequence[T],
    query: Sequence[float],
    embedding_of: Callable[[T], Optional[Sequence[float]]],
    limit: int,
) -> List[T]:
    """Order items by cosine similarity to ``query``, best first.

    Items without an embedding are dropped. Python's sort is stable, so items
    with equal scores keep their insertion order.
    """
    scored = []
    for item in items:
        emb = embedding_of(item)
        if emb:
            scored.append((cosine_similarity(query, emb), item))
    scored.sort(key=lambda s: s[0], reverse=True)
    return [item for _, item in scored[:limit]]
