"""
Parallel execution infrastructure for block-based candidate evaluation.

Provides ParallelExecutor for distributing blocks of the candidate index space
across multiple CPU cores using multiprocessing.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from multiprocessing import Pool, cpu_count
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CandidateBlock:
    """Half-open range ``[start, stop)`` of reference beacon indices."""

    index: int
    start: int
    stop: int

    @property
    def size(self) -> int:
        return self.stop - self.start


def split_candidate_blocks(n_reference: int, n_blocks: int) -> List[CandidateBlock]:
    """
    Split the reference-beacon axis into at most ``n_blocks`` contiguous blocks.

    Block sizes differ by at most one and blocks are returned in index order.
    """
    if n_reference <= 0:
        return []
    n_blocks = max(1, min(int(n_blocks), n_reference))
    base, extra = divmod(n_reference, n_blocks)

    blocks = []
    start = 0
    for i in range(n_blocks):
        stop = start + base + (1 if i < extra else 0)
        blocks.append(CandidateBlock(index=i, start=start, stop=stop))
        start = stop
    return blocks


def _worker_wrapper(
    args: Tuple[int, Any, Callable, Dict[str, Any]]
) -> Tuple[int, Any, Optional[str], Optional[str]]:
    """
    Worker wrapper function for parallel block processing.

    Must be at module level for pickling on Windows.

    Args:
        args: Tuple of (block_index, block, worker_fn, worker_kwargs)

    Returns:
        Tuple of (block_index, result, error_message, error_type)
    """
    idx, block, worker_fn, worker_kwargs = args
    try:
        result = worker_fn(block, **worker_kwargs)
        return (idx, result, None, None)
    except Exception as e:
        error_msg = f"{type(e).__name__}: {str(e)}"
        logger.error(f"Worker error on block {idx}: {error_msg}")
        return (idx, None, error_msg, type(e).__name__)


class ParallelExecutor:
    """
    Parallel executor for block-based processing.

    Manages worker pool, distributes blocks to workers, and collects results
    while maintaining order. The pool is started on first use and reused by
    later calls until close(); use the executor as a context manager to scope it.

    Example:
        executor = ParallelExecutor(n_workers=4)
        results = executor.map_blocks(
            blocks=split_candidate_blocks(len(reference), executor.n_workers),
            worker_fn=evaluate_candidate_block,
            worker_kwargs={'reference': reference, 'rotated': rotated},
        )
    """

    def __init__(self, n_workers: Optional[int] = None):
        """
        Initialize parallel executor.

        Args:
            n_workers: Number of worker processes. If None, uses cpu_count - 1
                to leave one core for system/coordination. Minimum is 1.
        """
        if n_workers is None:
            n_workers = max(1, cpu_count() - 1)
        else:
            n_workers = max(1, int(n_workers))

        self.n_workers = n_workers
        self._pool = None

        logger.debug(
            f"Initialized ParallelExecutor with {self.n_workers} workers "
            f"(total CPUs: {cpu_count()})"
        )

    def __enter__(self) -> "ParallelExecutor":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @property
    def is_running(self) -> bool:
        return self._pool is not None

    def close(self) -> None:
        """Shut down the worker pool, if one was started."""
        if self._pool is None:
            return
        self._pool.close()
        self._pool.join()
        self._pool = None
        logger.debug("Worker pool closed")

    def _get_pool(self):
        if self._pool is None:
            self._pool = Pool(processes=self.n_workers)
            logger.debug(f"Started worker pool with {self.n_workers} processes")
        return self._pool

    def map_blocks(
        self,
        blocks: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> List[Any]:
        """
        Map worker function over blocks in parallel.

        Results are returned in the same order as the input blocks.

        Args:
            blocks: List of blocks to process (typically CandidateBlock objects)
            worker_fn: Function to apply to each block. Must be picklable and
                have signature: worker_fn(block, **worker_kwargs) -> result
            worker_kwargs: Fixed keyword arguments passed to each worker call
            progress_callback: Optional callback function called after each block
                completes. Signature: callback(completed_count, total_count)

        Returns:
            List of results in same order as input blocks

        Raises:
            MemoryError: If a worker runs out of memory
            RuntimeError: If any other worker failure occurs
        """
        n_blocks = len(blocks)

        if n_blocks == 0:
            logger.debug("No blocks to process")
            return []

        start_time = time.time()

        # If only 1 worker or 1 block, use sequential processing (no pool overhead)
        if self.n_workers == 1 or n_blocks == 1:
            results = []
            for i, block in enumerate(blocks):
                try:
                    results.append(worker_fn(block, **worker_kwargs))
                except MemoryError:
                    logger.error(f"Out of memory processing block {i}")
                    raise
                except Exception as e:
                    logger.error(f"Error processing block {i}: {e}", exc_info=True)
                    raise RuntimeError(f"Block processing failed: {e}") from e
                if progress_callback:
                    progress_callback(i + 1, n_blocks)

            logger.debug(
                f"Sequential processing complete: {n_blocks} blocks in {time.time() - start_time:.2f}s"
            )
            return results

        try:
            results = self._parallel_map(blocks, worker_fn, worker_kwargs, progress_callback)
        except (RuntimeError, MemoryError):
            raise
        except Exception as e:
            logger.error(f"Parallel processing failed: {e}", exc_info=True)
            raise RuntimeError(f"Parallel block processing failed: {e}") from e

        logger.debug(
            f"Parallel processing complete: {n_blocks} blocks on {self.n_workers} workers "
            f"in {time.time() - start_time:.2f}s"
        )
        return results

    def _parallel_map(
        self,
        blocks: List[Any],
        worker_fn: Callable,
        worker_kwargs: Dict[str, Any],
        progress_callback: Optional[Callable],
    ) -> List[Any]:
        """
        Execute parallel mapping using multiprocessing.Pool.

        Uses imap_unordered for responsiveness, then reorders results to match
        input block order. Worker MemoryErrors are re-raised as MemoryError.
        """
        n_blocks = len(blocks)
        worker_args = [(i, block, worker_fn, worker_kwargs) for i, block in enumerate(blocks)]

        results_dict = {}
        errors = []
        pool = self._get_pool()
        try:
            for completed, (idx, result, error, error_type) in enumerate(
                pool.imap_unordered(_worker_wrapper, worker_args), start=1
            ):
                if error:
                    errors.append((idx, error, error_type))
                else:
                    results_dict[idx] = result

                if progress_callback:
                    progress_callback(completed, n_blocks)
        except BaseException:
            # The pool may hold unfinished tasks; do not reuse it
            self._pool = None
            pool.terminate()
            pool.join()
            raise

        if errors:
            error_msg = f"{len(errors)} blocks failed out of {n_blocks}"
            logger.error(error_msg)
            for idx, error, _ in errors[:5]:
                logger.error(f"  Block {idx}: {error}")
            if len(errors) > 5:
                logger.error(f"  ... and {len(errors) - 5} more errors")
            if any(error_type == "MemoryError" for _, _, error_type in errors):
                raise MemoryError(error_msg)
            raise RuntimeError(error_msg)

        return [results_dict[i] for i in range(n_blocks)]
