from __future__ import annotations


class LineBuffer:
    """Ordered tap lines waiting for the next flush.

    Lines are only ever removed through drain(), which swaps in a fresh
    list, so a line lands in exactly one batch.
    """

    def __init__(self, threshold: int) -> None:
        if threshold < 1:
            raise ValueError(f"flush threshold must be >= 1, got {threshold}")
        self.threshold = threshold
        self._lines: list[str] = []

    def __len__(self) -> int:
        return len(self._lines)

    @property
    def lines(self) -> tuple[str, ...]:
        return tuple(self._lines)

    def append(self, line: str) -> bool:
        """Add a line; True when the buffer has reached the threshold."""
        self._lines.append(line)
        return len(self._lines) >= self.threshold

    def drain(self) -> list[str]:
        """Snapshot and clear in one step."""
        batch, self._lines = self._lines, []
        return batch
