"""
Deterministic top-N ranking.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union


@dataclass(frozen=True)
class RankedEntry:
    key: str
    value: float


RankInput = Union[RankedEntry, Tuple[str, float]]


def top_n(entries: Iterable[RankInput], n: int) -> List[RankedEntry]:
    """
    Sort entries by value descending and keep the first ``n``.

    Equal values keep their input order, so identical input always ranks
    identically.
    """
    if n <= 0:
        return []
    ranked = [
        entry if isinstance(entry, RankedEntry) else RankedEntry(entry[0], entry[1])
        for entry in entries
    ]
    # sorted() is stable
    ranked = sorted(ranked, key=lambda entry: entry.value, reverse=True)
    return ranked[:n]


class RankingTopN:
    """Ranks (key, value) pairs with a fixed default limit."""

    def __init__(self, default_n: int = 10):
        self.default_n = default_n

    def rank(self, entries: Iterable[RankInput], n: Optional[int] = None) -> List[RankedEntry]:
        return top_n(entries, self.default_n if n is None else n)
