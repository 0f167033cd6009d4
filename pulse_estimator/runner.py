"""
Bounded worker pool for running estimates off the calling thread.

The pipeline is CPU bound and stateless, so each request is shipped to a
worker process.  The pool refuses new work once ``max_workers`` jobs are in
flight and gives up waiting on a job after ``timeout`` seconds.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ProcessPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Callable, Optional, Sequence

from pulse_estimator.config import DEFAULT_CONFIG, PipelineConfig
from pulse_estimator.errors import ProcessingQueueFullError, ProcessingTimeoutError
from pulse_estimator.processor import ProcessingResult, process
from pulse_estimator.samples import SampleLike, validate_request

logger = logging.getLogger(__name__)

Worker = Callable[..., ProcessingResult]


class ProcessingPool:
    """
    Run :func:`~pulse_estimator.processor.process` on a worker pool.

    Parameters
    ----------
    max_workers:
        Maximum number of jobs in flight.  Defaults to
        ``config.max_concurrent_workers``.
    timeout:
        Seconds :meth:`run` waits for a result.  Defaults to
        ``config.processing_timeout``.
    config:
        Pipeline thresholds passed to every job.
    executor:
        Executor to submit to.  A ``ProcessPoolExecutor`` sized to
        *max_workers* is created (and owned) when omitted.
    worker:
        Callable invoked as ``worker(samples, fps, config)``.  Must be
        picklable when the executor is process based.
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
        config: PipelineConfig = DEFAULT_CONFIG,
        executor: Optional[Executor] = None,
        worker: Worker = process,
    ) -> None:
        self.config = config
        self.max_workers = max_workers or config.max_concurrent_workers
        self.timeout = timeout if timeout is not None else config.processing_timeout
        self._worker = worker
        self._owns_executor = executor is None
        self._executor: Executor = executor or ProcessPoolExecutor(max_workers=self.max_workers)
        self._lock = threading.Lock()
        self._active = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        """Shut down the executor if this pool created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "ProcessingPool":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @property
    def active_jobs(self) -> int:
        with self._lock:
            return self._active

    def submit(
        self,
        samples: Sequence[SampleLike],
        fps: Optional[float] = None,
    ) -> "Future[ProcessingResult]":
        """
        Validate the request and dispatch it to a worker.

        Raises
        ------
        InvalidRequestError
            Request outside the configured limits.
        ProcessingQueueFullError
            ``max_workers`` jobs already in flight.
        """
        checked = validate_request(samples, fps, self.config)

        with self._lock:
            if self._active >= self.max_workers:
                logger.warning("Processing queue full (%d active jobs)", self._active)
                raise ProcessingQueueFullError(
                    "Processing queue full, please try again shortly"
                )
            self._active += 1

        try:
            future = self._executor.submit(self._worker, checked, fps, self.config)
        except Exception:
            self._release()
            raise
        future.add_done_callback(lambda _: self._release())
        return future

    def run(
        self,
        samples: Sequence[SampleLike],
        fps: Optional[float] = None,
    ) -> ProcessingResult:
        """
        Submit and wait up to ``timeout`` seconds for the result.

        Pipeline errors such as
        :class:`~pulse_estimator.errors.InsufficientSamplesError` are
        re-raised unchanged.
        """
        future = self.submit(samples, fps)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as e:
            future.cancel()
            logger.warning("Processing timed out after %.1f s", self.timeout)
            raise ProcessingTimeoutError(
                "Processing took too long, please try again"
            ) from e

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _release(self) -> None:
        with self._lock:
            self._active -= 1
