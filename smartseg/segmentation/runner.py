"""
Background runner for segmentations.

Interactive callers submit segmentations here so the CPU-bound pipeline
runs on a worker thread instead of the caller's thread.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Dict, Optional, Sequence

import numpy as np
import pandas as pd

from smartseg.components.config import Config, ConfigManager
from smartseg.segmentation.segmentation import Segmentation, SegmentationResult

# Logging configuration
logger = logging.getLogger(__name__)


class SegmentationRunner:
    """
    Runs segmentations on a thread pool.

    Every submission gets its own random generator, so concurrent runs
    share no mutable state.
    """

    def __init__(self, config: Optional[Config] = None, max_workers: Optional[int] = None):
        """
        Initialize a runner.

        Args:
            config: Configuration (defaults to the shared configuration)
            max_workers: Worker thread count (defaults to runner.max-workers)
        """
        self.config = config or ConfigManager.get_config()
        self.max_workers = max_workers or self.config.get('runner.max-workers')
        self.lock = threading.RLock()
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers,
                                            thread_name_prefix='smartseg')
        self._pending: Dict[int, Future] = {}
        self._next_id = 0
        self._seeds = np.random.SeedSequence(self.config.get('random.seed'))

    def _child_rng(self, seed: Optional[int]) -> np.random.Generator:
        """Generator for one submission: from the given seed, else spawned from the runner's seed sequence."""
        if seed is not None:
            return np.random.default_rng(seed)
        with self.lock:
            return np.random.default_rng(self._seeds.spawn(1)[0])

    def submit(self,
               table: pd.DataFrame,
               features: Optional[Sequence[str]] = None,
               k: Optional[int] = None,
               seed: Optional[int] = None,
               id_column: Optional[str] = None) -> Future:
        """
        Submit a segmentation.

        Args:
            table: Customer table
            features: Feature columns
            k: Number of segments
            seed: Random seed for this run
            id_column: Column holding customer ids

        Returns:
            Future resolving to a SegmentationResult; errors such as
            InvalidConfiguration are raised from Future.result()
        """
        segmentation = Segmentation(table, features, k, self.config, id_column)
        rng = self._child_rng(seed)

        with self.lock:
            run_id = self._next_id
            self._next_id += 1
            future = self._executor.submit(self._run, run_id, segmentation, rng)
            self._pending[run_id] = future

        future.add_done_callback(lambda _: self._forget(run_id))
        return future

    def _run(self, run_id: int, segmentation: Segmentation, rng: np.random.Generator) -> SegmentationResult:
        logger.info(f"Starting segmentation run {run_id}")
        try:
            return segmentation.run(rng)
        except Exception as e:
            logger.error(f"Segmentation run {run_id} failed: {e}")
            raise

    def _forget(self, run_id: int) -> None:
        with self.lock:
            self._pending.pop(run_id, None)

    def pending_count(self) -> int:
        """
        Number of submitted runs that have not finished.

        Returns:
            Count of pending runs
        """
        with self.lock:
            return len(self._pending)

    def shutdown(self, wait: bool = True) -> None:
        """
        Stop accepting work and release the worker threads.

        Args:
            wait: Block until running segmentations finish
        """
        logger.info("Shutting down segmentation runner")
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> 'SegmentationRunner':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()
