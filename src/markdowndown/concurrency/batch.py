"""Bounded-concurrency batch conversion."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterable
from pathlib import Path

from ..converters.base import Converter
from ..errors import (
    ConverterError,
    ConverterErrorKind,
    ErrorContext,
    MarkdownError,
    NetworkError,
    NetworkErrorKind,
    ValidationError,
    ValidationErrorKind,
)
from ..models.events import BatchResult, BatchStats
from ..models.types import Markdown

logger = logging.getLogger(__name__)

COMPONENT = "BatchCoordinator"


class BatchCoordinator:
    """
    Converts many URLs with at most ``concurrency`` conversions in flight.

    Each conversion holds a semaphore permit for its whole duration and is
    bounded by ``task_timeout``; a timeout or error fails only that URL.
    Results are yielded in completion order.

    Example:
        coordinator = BatchCoordinator(md, concurrency=5)
        async for result in coordinator.run(urls):
            print(result.url, "ok" if result.ok else result.error)
        print(coordinator.stats.to_dict())
    """

    def __init__(self, converter: Converter, concurrency: int = 5, task_timeout: float = 60.0) -> None:
        """
        Args:
            converter: Anything with ``async convert(url) -> Markdown``
            concurrency: Maximum number of conversions in flight (>= 1)
            task_timeout: Safety timeout per URL, in seconds (> 0)
        """
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        if task_timeout <= 0:
            raise ValueError(f"task_timeout must be > 0, got {task_timeout}")

        self._converter = converter
        self._concurrency = concurrency
        self._task_timeout = task_timeout
        self._semaphore = asyncio.Semaphore(concurrency)
        self._in_flight = 0
        self._stats = BatchStats()

    @property
    def concurrency(self) -> int:
        return self._concurrency

    @property
    def in_flight(self) -> int:
        """Number of permits currently held."""
        return self._in_flight

    @property
    def stats(self) -> BatchStats:
        """Statistics for the current or most recent run."""
        return self._stats

    async def _convert_one(self, index: int, url: str) -> BatchResult:
        async with self._semaphore:
            self._in_flight += 1
            started = time.monotonic()
            error: MarkdownError
            try:
                markdown = await asyncio.wait_for(self._converter.convert(url), self._task_timeout)
                return BatchResult(url=url, index=index, markdown=markdown, duration=time.monotonic() - started)
            except asyncio.TimeoutError:
                context = ErrorContext(url, "Batch conversion", COMPONENT).with_info(
                    f"Timed out after {self._task_timeout}s"
                )
                error = NetworkError(NetworkErrorKind.TIMEOUT, context)
            except MarkdownError as e:
                error = e
            except Exception as e:
                logger.exception(f"Unexpected error converting {url}")
                context = ErrorContext(url, "Batch conversion", COMPONENT).with_info(f"{type(e).__name__}: {e}")
                error = ConverterError(ConverterErrorKind.PROCESSING_ERROR, context)
            finally:
                self._in_flight -= 1

        return BatchResult(url=url, index=index, error=error, duration=time.monotonic() - started)

    async def run(self, urls: Iterable[str]) -> AsyncIterator[BatchResult]:
        """
        Convert every URL, yielding a BatchResult as each one finishes.

        Failures are reported as results and never stop the batch. Stats are
        reset at the start of each run.
        """
        url_list = list(urls)
        self._stats = BatchStats()
        start_time = time.monotonic()
        logger.info(f"Converting {len(url_list)} URLs with concurrency {self._concurrency}")

        tasks = [asyncio.create_task(self._convert_one(i, url)) for i, url in enumerate(url_list)]
        try:
            for next_done in asyncio.as_completed(tasks):
                result = await next_done
                if result.ok:
                    self._stats.succeeded += 1
                else:
                    self._stats.failed += 1
                    logger.warning(f"Failed to convert {result.url}: {result.error}")
                yield result
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._stats.duration_seconds = time.monotonic() - start_time

    async def run_all(self, urls: Iterable[str]) -> list[BatchResult]:
        """Run a batch and return all results in input order."""
        results = [result async for result in self.run(urls)]
        return sorted(results, key=lambda r: r.index)


def read_url_file(path: Path) -> list[str]:
    """
    Read URLs from a text file, one per line.

    Blank lines and lines starting with '#' are skipped.

    Raises:
        ValidationError: MISSING_PARAMETER if the file cannot be read
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        context = ErrorContext(str(path), "Read URL file", COMPONENT).with_info(str(e))
        raise ValidationError(ValidationErrorKind.MISSING_PARAMETER, context) from e

    urls = []
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            urls.append(line)
    return urls


def output_filename(index: int) -> str:
    """File name for the result at a 0-based batch index ('001.md', ...)."""
    return f"{index + 1:03d}.md"


async def write_markdown(output_dir: Path, index: int, markdown: Markdown) -> Path:
    """Write one batch result to ``output_dir``; returns the file path."""
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / output_filename(index)
    await asyncio.to_thread(output_path.write_text, str(markdown), encoding="utf-8")
    logger.debug(f"Saved: {output_path}")
    return output_path
