"""Result and statistics types for batch conversion."""

from dataclasses import dataclass
from typing import Optional

from ..errors import MarkdownError
from .types import Markdown


@dataclass
class BatchResult:
    """
    Outcome of converting one URL in a batch.

    Exactly one of ``markdown`` and ``error`` is set.

    Example:
        async for result in coordinator.run(urls):
            if result.ok:
                print(result.markdown)
            else:
                print(f"{result.url}: {result.error}")
    """

    url: str
    index: int
    markdown: Optional[Markdown] = None
    error: Optional[MarkdownError] = None
    duration: float = 0.0

    @property
    def ok(self) -> bool:
        """Check if the conversion succeeded."""
        return self.error is None and self.markdown is not None


@dataclass
class BatchStats:
    """
    Cumulative statistics for a batch run.

    Collected during the run and available on completion.
    """

    succeeded: int = 0
    failed: int = 0
    duration_seconds: float = 0.0

    @property
    def total(self) -> int:
        """Number of URLs that finished, successfully or not."""
        return self.succeeded + self.failed

    @property
    def success_rate(self) -> float:
        """Calculate success rate as a percentage."""
        if self.total == 0:
            return 0.0
        return (self.succeeded / self.total) * 100

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "total": self.total,
            "duration_seconds": round(self.duration_seconds, 2),
            "success_rate": round(self.success_rate, 1),
        }
