"""
Acceleration Module

This module provides the execution substrate for the registration search:
- JIT-compiled kernels for transform application and candidate evaluation
- A process pool that maps blocks of the candidate index space over workers
"""

from .parallel_executor import CandidateBlock, ParallelExecutor, split_candidate_blocks
from .jit_kernels import (
    apply_transform_jit,
    rotate_under_orientations_jit,
    evaluate_candidate_jit,
    evaluate_candidates_jit,
    evaluate_candidate_block_jit,
    find_first_candidate_jit,
)

__all__ = [
    # Parallel processing
    "CandidateBlock",
    "ParallelExecutor",
    "split_candidate_blocks",
    # JIT kernels
    "apply_transform_jit",
    "rotate_under_orientations_jit",
    "evaluate_candidate_jit",
    "evaluate_candidates_jit",
    "evaluate_candidate_block_jit",
    "find_first_candidate_jit",
]
