"""
Rolling event counts over nested trailing windows.
"""

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple


@dataclass(frozen=True)
class Window:
    """A trailing duration measured back from "now"."""

    label: str
    duration_ms: int


def windows_from_table(table: Iterable[Tuple[str, int]]) -> List[Window]:
    """Build windows from ``(label, duration_ms)`` tuples."""
    return [Window(label, int(duration)) for label, duration in table]


class RateWindowAggregator:
    """Counts timestamped events inside each of several trailing windows.

    Windows are cumulative: an event is counted in every window that is long
    enough to reach it, so counts never decrease as windows grow.
    """

    def aggregate(self, events: Iterable, windows: Sequence[Window], now_ms: int) -> List[int]:
        """
        Count events per window.

        Args:
            events: Objects with a ``timestamp`` attribute in epoch ms.
            windows: Windows in ascending duration order.
            now_ms: Reference time.

        Returns:
            One count per window, aligned with ``windows``.
        """
        assert all(
            windows[i].duration_ms <= windows[i + 1].duration_ms for i in range(len(windows) - 1)
        ), "windows must be ordered by ascending duration"

        counts = [0] * len(windows)
        for event in events:
            age = now_ms - event.timestamp
            for i, window in enumerate(windows):
                if age <= window.duration_ms:
                    counts[i] += 1
        return counts
