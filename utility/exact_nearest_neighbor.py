from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

import numpy as np

from utility.distance_matrix import (
    as_points,
    check_dims,
    check_finite,
    distance_block,
    map_blocks,
    resolve_num_threads,
    thread_blocks,
)
from utility.errors import ShapeMismatch
from utility.metrics import Metric, get_metric
from utility.top_k import NeighborResult, check_k, select_top_k


@dataclass(frozen=True)
class SearchOptions:
    metric: Metric
    chunk_size: Optional[int] = None
    num_threads: int = 1
    exclude_self: Optional[bool] = None
    check_finite: bool = True

    @classmethod
    def from_options(cls, **options: Any) -> "SearchOptions":
        metric = get_metric(options.pop("metric", "sqeuclidean"))
        chunk_size = options.pop("chunk_size", None)
        num_threads = resolve_num_threads(options.pop("num_threads", 1))
        exclude_self = options.pop("exclude_self", None)
        check = bool(options.pop("check_finite", True))
        if options:
            unknown = ", ".join(sorted(options.keys()))
            raise TypeError(f"Unknown option(s) for kneighbors: {unknown}")
        if chunk_size is not None:
            chunk_size = int(chunk_size)
            if chunk_size <= 0:
                raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
        return cls(metric, chunk_size, num_threads, exclude_self, check)


def kneighbors(
    source: np.ndarray,
    target: Optional[np.ndarray] = None,
    k: int = 1,
    **options: Any,
) -> NeighborResult:
    """
    Exact brute-force kNN of every source row among the target rows.

    Args:
      source: (N, D) query points
      target: (M, D) candidate points; None searches source against itself
      k:      neighbors per source row
      options:
        metric       "sqeuclidean" (default), "euclidean", "manhattan", "chebyshev"
        chunk_size   source rows per block; each block is reduced to top-k
                     before the next, so the full (N, M) matrix never exists
        num_threads  worker threads over blocks (-1 = all cores)
        exclude_self drop the [i, i] pair (default: True for self-search,
                     False otherwise; needs N == M)
        check_finite raise NonFiniteInput on NaN/Inf (default True); when
                     False NaN distances rank last

    Returns:
      NeighborResult with (N, min(k, M)) arrays, or (N, min(k, M - 1))
      when self matches are excluded.
    """
    opts = SearchOptions.from_options(**options)
    k = check_k(k)

    self_search = target is None
    source = as_points(source, "source")
    target = source if self_search else as_points(target, "target")
    check_dims(source, target)
    if opts.check_finite:
        check_finite(source, "source")
        if not self_search:
            check_finite(target, "target")

    exclude = self_search if opts.exclude_self is None else bool(opts.exclude_self)
    n, m = source.shape[0], target.shape[0]
    if exclude and n != m:
        raise ShapeMismatch(f"exclude_self needs source and target of equal size; got N={n}, M={m}")

    def search_block(block: tuple[int, int]) -> NeighborResult:
        start, stop = block
        d = distance_block(source[start:stop], target, opts.metric)  # (B, M)
        return select_top_k(d, k, exclude_diagonal=exclude, row_offset=start)

    blocks = thread_blocks(n, opts.chunk_size, opts.num_threads)
    if not blocks:
        # N == 0: still report the dtype and width a non-empty call would have
        return search_block((0, 0))
    return NeighborResult.concat(map_blocks(search_block, blocks, opts.num_threads))


def brute_force_knn_l2(
    base: np.ndarray,
    query: np.ndarray,
    k: int,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Exact brute-force kNN under squared L2 distance.

    Args:
      base:  (N, D)
      query: (Q, D)
      k:     number of neighbors (k > N returns all N)

    Returns:
      idx:   (Q, k) int64 indices into base
      dist:  (Q, k) squared L2 distances
    """
    return kneighbors(query, base, k, metric="sqeuclidean").astuple()


def solve(
    size: int,
    dimensions: int,
    k: int,
    *,
    seed: Optional[int] = None,
    metric: str | Metric = "euclidean",
    **options: Any,
) -> Tuple[np.ndarray, NeighborResult]:
    """
    Draw `size` uniform points in [0, 1)^dimensions and find, for each, its
    k nearest other points. Returns (points, result).
    """
    if size < 0 or dimensions <= 0:
        raise ValueError(f"invalid problem size (size={size}, dimensions={dimensions})")
    rng = np.random.default_rng(seed)
    points = rng.random((size, dimensions))
    return points, kneighbors(points, None, k, metric=metric, **options)
