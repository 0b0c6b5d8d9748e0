"""Bulk generation of many records against one template."""

from __future__ import annotations

import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple

from .generator import OptionsInput, PDFGenerator
from .options import BatchOptions
from .results import BatchItemResult, BatchResult, ProcessingResult
from .utils import get_logger

LOGGER = get_logger("pdf_generator.batch")

ProgressCallback = Callable[[int, int, int], None]

CANCELLED_MESSAGE = "Cancelled after an earlier record failed"


class BatchGenerator:
    """Runs independent generation calls on a bounded worker pool.

    Every call builds its own document and font cache, so workers share
    nothing but the (read-only) stores of the wrapped generator.
    """

    def __init__(self, generator: PDFGenerator) -> None:
        self.generator = generator

    def generate_many(
        self,
        template_id: str,
        records: Sequence[Mapping[str, Any]],
        options: OptionsInput = None,
        batch_options: Optional[BatchOptions] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> BatchResult:
        batch_options = batch_options or BatchOptions(
            concurrent=self.generator.config.batch_concurrency
        )
        started = time.perf_counter()
        total = len(records)
        results: Dict[int, BatchItemResult] = {}
        pending: Dict[Future, int] = {}
        queue: Iterator[Tuple[int, Mapping[str, Any]]] = iter(enumerate(records))
        stopped = False

        LOGGER.info(
            "Starting batch of %d record(s) for %s with %d worker(s)",
            total,
            template_id,
            batch_options.concurrent,
        )

        with ThreadPoolExecutor(max_workers=batch_options.concurrent) as pool:

            def submit_next() -> bool:
                try:
                    index, record = next(queue)
                except StopIteration:
                    return False
                future = pool.submit(self.generator.generate, template_id, record, options)
                pending[future] = index
                return True

            while len(pending) < batch_options.concurrent and submit_next():
                pass

            while pending:
                done, _ = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    index = pending.pop(future)
                    item = self._collect(index, future)
                    results[index] = item
                    if progress_callback:
                        progress_callback(index, len(results), total)
                    if not item.success and batch_options.fail_fast and not stopped:
                        LOGGER.warning("Record %d failed, cancelling remaining records", index)
                        stopped = True
                if not stopped:
                    while len(pending) < batch_options.concurrent and submit_next():
                        pass

        for index, _record in queue:
            results[index] = BatchItemResult(index=index, success=False, error=CANCELLED_MESSAGE)

        ordered: List[BatchItemResult] = [results[index] for index in sorted(results)]
        successful = sum(1 for item in ordered if item.success)
        batch = BatchResult(
            success=successful == total,
            total_requests=total,
            successful_requests=successful,
            failed_requests=total - successful,
            results=ordered,
            processing_time=round((time.perf_counter() - started) * 1000, 3),
            include_index=batch_options.include_index,
        )
        LOGGER.info("Finished batch for %s: %s", template_id, batch)
        return batch

    @staticmethod
    def _collect(index: int, future: Future) -> BatchItemResult:
        try:
            result: ProcessingResult = future.result()
        except Exception as exc:
            LOGGER.error("Record %d raised: %s", index, exc)
            return BatchItemResult(index=index, success=False, error=str(exc))
        if result.success:
            return BatchItemResult(index=index, success=True, result=result)
        message = result.errors[0].message if result.errors else "PDF generation failed"
        return BatchItemResult(index=index, success=False, result=result, error=message)


__all__ = ["BatchGenerator", "CANCELLED_MESSAGE"]
