"""
Histogram bucketing with a first-match-wins policy.
"""

from dataclasses import dataclass, replace
from typing import Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class Bucket:
    """A labeled half-open range ``[lower_inclusive, upper_exclusive)``."""

    label: str
    lower_inclusive: float
    upper_exclusive: float
    count: int = 0

    def contains(self, value: float) -> bool:
        return self.lower_inclusive <= value < self.upper_exclusive


def buckets_from_edges(edges: Iterable[Tuple[str, float, float]]) -> List[Bucket]:
    """Build empty bucket templates from ``(label, lower, upper)`` tuples."""
    return [Bucket(label, float(lower), float(upper)) for label, lower, upper in edges]


def is_contiguous(templates: Sequence[Bucket]) -> bool:
    """True if the templates are ascending, non-empty and gap-free."""
    for bucket in templates:
        if not bucket.lower_inclusive < bucket.upper_exclusive:
            return False
    return all(
        templates[i].upper_exclusive == templates[i + 1].lower_inclusive
        for i in range(len(templates) - 1)
    )


class HistogramBucketer:
    """Counts values into caller-supplied bucket templates.

    Each value goes to the first bucket containing it; values that fit no
    bucket are dropped rather than collected into an outlier bucket.
    """

    def bucket(self, values: Iterable[float], templates: Sequence[Bucket]) -> List[Bucket]:
        assert is_contiguous(templates), "bucket templates must be ascending and gap-free"

        counts = [0] * len(templates)
        for value in values:
            for i, template in enumerate(templates):
                if template.contains(value):
                    counts[i] += 1
                    break

        return [replace(template, count=count) for template, count in zip(templates, counts)]


def bucket_values(values: Iterable[float], templates: Sequence[Bucket]) -> List[Bucket]:
    return HistogramBucketer().bucket(values, templates)
