from __future__ import annotations

import math
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

import numpy as np

from utility.errors import NonFiniteInput, ShapeMismatch
from utility.metrics import Metric, get_metric

T = TypeVar("T")


def as_points(x: np.ndarray, name: str = "points") -> np.ndarray:
    """
    View x as a 2D (N, D) numeric array without copying float data.
    Integer and bool inputs are widened to int64 so differences and squares
    of narrow types cannot wrap.
    """
    x = np.asarray(x)
    if x.ndim != 2:
        raise ValueError(f"{name} must be 2D (N,D); got shape {x.shape}")
    if x.dtype.kind in "biu":
        return x.astype(np.int64, copy=False)
    if x.dtype.kind not in "if":
        raise ValueError(f"{name} must be real-valued; got dtype {x.dtype}")
    return x


def check_finite(x: np.ndarray, name: str = "points") -> None:
    if x.dtype.kind == "f" and not np.all(np.isfinite(x)):
        bad = int(np.count_nonzero(~np.isfinite(x)))
        raise NonFiniteInput(f"{name} contains {bad} non-finite value(s)")


def check_dims(source: np.ndarray, target: np.ndarray) -> None:
    if source.shape[1] != target.shape[1]:
        raise ShapeMismatch(f"dim mismatch: source {source.shape[1]} vs target {target.shape[1]}")


def resolve_num_threads(num_threads: int) -> int:
    num_threads = int(num_threads)
    if num_threads == -1:
        return os.cpu_count() or 1
    if num_threads <= 0:
        raise ValueError(f"num_threads must be -1 or >= 1, got {num_threads}")
    return num_threads


def row_blocks(n: int, chunk_size: Optional[int]) -> list[tuple[int, int]]:
    """Split range(n) into consecutive (start, stop) blocks of at most chunk_size rows."""
    if chunk_size is None:
        return [(0, n)] if n > 0 else []
    chunk_size = int(chunk_size)
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    return [(start, min(start + chunk_size, n)) for start in range(0, n, chunk_size)]


def thread_blocks(n: int, chunk_size: Optional[int], num_threads: int = 1) -> list[tuple[int, int]]:
    """
    Row blocks for map_blocks. Without an explicit chunk_size the rows are
    split evenly over the worker threads.
    """
    num_threads = resolve_num_threads(num_threads)
    if chunk_size is None and num_threads > 1 and n > 0:
        chunk_size = math.ceil(n / num_threads)
    return row_blocks(n, chunk_size)


def map_blocks(fn: Callable[[tuple[int, int]], T], blocks: list[tuple[int, int]], num_threads: int = 1) -> list[T]:
    """Apply fn to every block, on worker threads if asked. Output keeps block order."""
    workers = min(resolve_num_threads(num_threads), len(blocks))
    if workers <= 1:
        return [fn(b) for b in blocks]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(fn, blocks))


def distance_block(source: np.ndarray, target: np.ndarray, metric: Metric) -> np.ndarray:
    """
    Distances between every row of source (B, D) and target (M, D).
    Materializes the (B, M, D) broadcast difference, so keep B bounded.
    """
    diff = source[:, np.newaxis, :] - target[np.newaxis, :, :]  # (B, M, D)
    d = metric.reduce.reduce(metric.transform(diff), axis=2, initial=0)  # (B, M)
    if metric.close is not None:
        d = metric.close(d)
    return d


def pairwise_distances(
    source: np.ndarray,
    target: np.ndarray,
    metric: str | Metric = "sqeuclidean",
    *,
    chunk_size: Optional[int] = None,
    num_threads: int = 1,
    check_finite_input: bool = True,
) -> np.ndarray:
    """
    Dense distance matrix dist[i, j] = metric(source[i] - target[j]).

    Args:
      source: (N, D)
      target: (M, D)
      metric: "sqeuclidean" (default, squared L2, no sqrt), "euclidean"
              (true L2), "manhattan" or "chebyshev"
      chunk_size: source rows per broadcast block (None = one block per thread)
      num_threads: worker threads over blocks (-1 = all cores)
      check_finite_input: raise NonFiniteInput on NaN/Inf instead of
              letting them propagate into the matrix

    Returns:
      dist: (N, M). N == 0 or M == 0 gives a zero-size matrix.
    """
    metric = get_metric(metric)
    source = as_points(source, "source")
    target = as_points(target, "target")
    check_dims(source, target)
    if check_finite_input:
        check_finite(source, "source")
        check_finite(target, "target")

    n, m = source.shape[0], target.shape[0]
    dtype = distance_block(source[:0], target[:0], metric).dtype
    out = np.empty((n, m), dtype=dtype)
    if n == 0 or m == 0:
        return out

    def fill(block: tuple[int, int]) -> None:
        start, stop = block
        out[start:stop] = distance_block(source[start:stop], target, metric)

    map_blocks(fill, thread_blocks(n, chunk_size, num_threads), num_threads)
    return out
