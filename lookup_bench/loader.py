"""
Resilient bulk loader.

Splits a target record count into fixed-size batches and submits each batch to
a `BulkWriter` with one bulk call. A failed submission is retried with the
identical batch after a fixed backoff and a reconnect; after `max_retries`
consecutive failures the load stops and reports how far it got.

Per batch:

    Generate -> Submit -> ok:     advance cursor, reset failure counter, maybe report
                       -> failed: wait backoff -> reconnect -> Submit (same batch)
                       -> failed `max_retries` times: abort load

Batches are submitted one at a time; nothing runs in parallel.
"""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple, Type

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from lookup_bench.config import get_settings
from lookup_bench.corpus import generate_batch
from lookup_bench.domain.models import LoadProgress, LoadReport, SeedRecord
from lookup_bench.utils.logging import get_logger

log = get_logger(__name__)

BatchFactory = Callable[[int], List[SeedRecord]]
ProgressCallback = Callable[[LoadProgress], None]
Sleep = Callable[[float], Awaitable[None]]


class BulkWriter(Protocol):
    """
    Storage backend seen by the loader.

    Attributes
    ----------
    name : str
        Short label used in logs and reports.
    transient_errors : tuple[type[BaseException], ...]
        Exceptions worth a reconnect and a retry. Anything else propagates.
    """

    name: str
    transient_errors: Tuple[Type[BaseException], ...]

    async def connect(self) -> None: ...

    async def close(self) -> None: ...

    async def reconnect(self) -> None: ...

    async def prepare(self) -> None:
        """Drop and recreate the target table/index so the load starts empty."""
        ...

    async def write_batch(self, records: Sequence[SeedRecord]) -> None: ...

    async def finalize(self) -> None:
        """Make the loaded data queryable with normal settings."""
        ...


def _log_progress(progress: LoadProgress) -> None:
    log.info(
        f"[LOAD] {progress.percent:.2f}% | {progress.inserted:,} records | "
        f"{progress.elapsed_seconds / 60:.1f} min | {progress.rate:,.0f} records/s",
        extra={
            "inserted": progress.inserted,
            "target": progress.target,
            "elapsed_seconds": progress.elapsed_seconds,
            "rate": progress.rate,
        },
    )


class BatchLoader:
    """
    Insert a synthetic corpus through a `BulkWriter` in bounded batches.

    Parameters
    ----------
    writer : BulkWriter
        Connected backend writer. The loader never closes it.
    max_retries : int | None
        Consecutive failed attempts allowed per batch before aborting.
    backoff_seconds : float | None
        Fixed wait before reconnecting and resubmitting.
    progress_every : int | None
        Report progress each time the inserted count crosses a multiple of this.
    batch_factory : Callable[[int], list[SeedRecord]]
        Builds a batch of the requested size.
    on_progress : Callable[[LoadProgress], None] | None
        Progress sink; logs by default.
    sleep : Callable[[float], Awaitable[None]]
        Backoff sleep, replaceable in tests.
    """

    def __init__(
        self,
        writer: BulkWriter,
        max_retries: Optional[int] = None,
        backoff_seconds: Optional[float] = None,
        progress_every: Optional[int] = None,
        batch_factory: BatchFactory = generate_batch,
        on_progress: Optional[ProgressCallback] = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        settings = get_settings()
        self.writer = writer
        self.max_retries = max_retries if max_retries is not None else settings.seed_max_retries
        self.backoff_seconds = (
            backoff_seconds if backoff_seconds is not None else settings.seed_retry_backoff_seconds
        )
        self.progress_every = progress_every or settings.seed_progress_every
        self.batch_factory = batch_factory
        self.on_progress = on_progress or _log_progress
        self._sleep = sleep
        self.consecutive_failures = 0
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")

    async def _submit(self, records: Sequence[SeedRecord], inserted: int) -> int:
        """
        Submit one batch, retrying the same records until it lands or retries run out.

        Returns the number of failed attempts that preceded the success.
        """
        failures = 0
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception_type(self.writer.transient_errors),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                try:
                    if failures:
                        await self.writer.reconnect()
                    await self.writer.write_batch(records)
                except self.writer.transient_errors as exc:
                    failures += 1
                    self.consecutive_failures = failures
                    log.warning(
                        f"[RETRY] {self.writer.name} batch failed "
                        f"({failures}/{self.max_retries}) at {inserted:,} records: {exc}",
                        extra={
                            "writer": self.writer.name,
                            "attempt": failures,
                            "max_retries": self.max_retries,
                            "inserted": inserted,
                        },
                    )
                    raise
        self.consecutive_failures = 0
        return failures

    async def load(self, target_count: int, batch_size: int) -> LoadReport:
        """
        Recreate the target structure and insert `target_count` records.

        Parameters
        ----------
        target_count : int
            Total records to insert.
        batch_size : int
            Records per bulk call; the last batch carries the remainder.

        Returns
        -------
        LoadReport
            Inserted count, retries, timing, and whether the load aborted.
        """
        if target_count < 0:
            raise ValueError(f"target_count must be >= 0, got {target_count}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        report = LoadReport(writer=self.writer.name, target=target_count)
        log.info(
            f"[LOAD START] {self.writer.name}: {target_count:,} records in batches of {batch_size:,}",
            extra={"writer": self.writer.name, "target": target_count, "batch_size": batch_size},
        )

        await self.writer.prepare()

        start = time.perf_counter()
        inserted = 0
        while inserted < target_count:
            size = min(batch_size, target_count - inserted)
            records = self.batch_factory(size)
            try:
                report.retries += await self._submit(records, inserted)
            except self.writer.transient_errors as exc:
                report.retries += self.consecutive_failures
                report.aborted = True
                report.error = f"{type(exc).__name__}: {exc}"
                log.error(
                    f"[LOAD ABORTED] {self.writer.name}: giving up after "
                    f"{self.consecutive_failures} attempts at {inserted:,} records",
                    extra={
                        "writer": self.writer.name,
                        "inserted": inserted,
                        "attempts": self.consecutive_failures,
                        "error": report.error,
                    },
                )
                break

            previous = inserted
            inserted += size
            report.batches += 1
            if inserted // self.progress_every > previous // self.progress_every or (
                inserted == target_count
            ):
                self.on_progress(
                    LoadProgress(
                        inserted=inserted,
                        target=target_count,
                        elapsed_seconds=time.perf_counter() - start,
                    )
                )

        report.inserted = inserted
        report.elapsed_seconds = time.perf_counter() - start

        if report.aborted:
            log.warning(
                f"[LOAD] Skipping finalize for {self.writer.name}; load did not complete",
                extra={"writer": self.writer.name},
            )
        else:
            await self.writer.finalize()

        log.info(
            f"[LOAD COMPLETE] {self.writer.name}: {report.inserted:,} records in "
            f"{report.elapsed_seconds / 60:.1f} min ({report.rate:,.0f} records/s, "
            f"{report.retries} retries)",
            extra={
                "writer": self.writer.name,
                "inserted": report.inserted,
                "retries": report.retries,
                "aborted": report.aborted,
            },
        )
        return report


__all__ = ["BulkWriter", "BatchLoader"]
