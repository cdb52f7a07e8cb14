from __future__ import annotations

import numbers
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from utility.errors import InvalidK, ShapeMismatch


@dataclass(frozen=True)
class NeighborResult:
    """
    Per-source-row neighbors, nearest first.

      indices:   (N, k_eff) int64 indices into the target set
      distances: (N, k_eff) distances, same dtype as the distance matrix
    """

    indices: np.ndarray
    distances: np.ndarray

    def __len__(self) -> int:
        return self.indices.shape[0]

    @property
    def k(self) -> int:
        return self.indices.shape[1]

    def row(self, i: int) -> list[tuple[int, float]]:
        return [(int(j), float(d)) for j, d in zip(self.indices[i], self.distances[i])]

    def __iter__(self) -> Iterator[list[tuple[int, float]]]:
        for i in range(len(self)):
            yield self.row(i)

    def astuple(self) -> tuple[np.ndarray, np.ndarray]:
        return self.indices, self.distances

    @classmethod
    def concat(cls, parts: list["NeighborResult"]) -> "NeighborResult":
        if len(parts) == 1:
            return parts[0]
        return cls(
            np.concatenate([p.indices for p in parts], axis=0),
            np.concatenate([p.distances for p in parts], axis=0),
        )


def check_k(k) -> int:
    if isinstance(k, bool) or not isinstance(k, numbers.Integral):
        raise InvalidK(f"k must be an integer, got {k!r}")
    k = int(k)
    if k < 0:
        raise InvalidK(f"k must be >= 0, got k={k}")
    return k


def _select_row(values: np.ndarray, idx: np.ndarray, k: int) -> tuple[np.ndarray, np.ndarray]:
    """
    k smallest of values, ascending, ties to the lower idx. idx must be ascending.
    NaN sorts after everything (numpy's sort/partition order).
    """
    if k < len(values):
        kth = np.partition(values, k - 1)[k - 1]
        if np.isnan(kth):
            keep = np.ones(len(values), dtype=bool)
        else:
            keep = values <= kth
        values = values[keep]
        idx = idx[keep]
    order = np.argsort(values, kind="stable")[:k]
    return idx[order], values[order]


def select_top_k(
    dist: np.ndarray,
    k: int,
    *,
    exclude_diagonal: bool = False,
    row_offset: int = 0,
) -> NeighborResult:
    """
    Row-wise k smallest entries of a distance matrix.

    Args:
      dist: (N, M) distances; never written to
      k:    neighbors per row (k=0 -> empty rows, k>=M -> whole row sorted)
      exclude_diagonal: drop dist[i, row_offset + i] from row i (self match)
      row_offset: global row index of dist[0] when dist is a block of a
                  larger self-distance matrix

    Returns:
      NeighborResult with (N, k_eff) arrays, k_eff = min(k, candidates per row)
    """
    k = check_k(k)
    dist = np.asarray(dist)
    if dist.ndim != 2:
        raise ValueError(f"dist must be 2D (N,M); got shape {dist.shape}")
    n, m = dist.shape

    if exclude_diagonal and row_offset + n > m:
        raise ShapeMismatch(
            f"exclude_diagonal needs a square matrix: rows {row_offset}..{row_offset + n - 1} vs {m} columns"
        )

    width = m - 1 if exclude_diagonal else m
    k_eff = min(k, max(width, 0))
    indices = np.empty((n, k_eff), dtype=np.int64)
    distances = np.empty((n, k_eff), dtype=dist.dtype)
    if k_eff == 0:
        return NeighborResult(indices, distances)

    all_idx = np.arange(m, dtype=np.int64)
    for i in range(n):
        values = dist[i]
        idx = all_idx
        if exclude_diagonal:
            keep = all_idx != row_offset + i
            values = values[keep]
            idx = idx[keep]
        indices[i], distances[i] = _select_row(values, idx, k_eff)

    return NeighborResult(indices, distances)
