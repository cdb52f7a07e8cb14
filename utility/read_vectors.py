from __future__ import annotations

from pathlib import Path
from typing import Tuple

import numpy as np

from utility.errors import EmptyInput, ShapeMismatch

FBIN_HEADER_BYTES = 8


def write_fbin(path: str | Path, x: np.ndarray) -> None:
    """Write (n, dim) vectors as int32 n, int32 dim, then n*dim float32 row-major."""
    x = np.asarray(x, dtype=np.float32, order="C")
    if x.ndim != 2:
        raise ValueError(f"vectors must be 2D (N,D); got shape {x.shape}")
    n, d = x.shape
    with Path(path).open("wb") as f:
        np.asarray([n, d], dtype=np.int32).tofile(f)
        x.tofile(f)


def read_fbin(path: str | Path) -> np.ndarray:
    """
    Read vectors from a .fbin file with layout:
      int32 n, int32 dim, then n*dim float32 row-major.

    Returns:
      np.ndarray of shape (n, dim), dtype float32
    """
    path = Path(path)

    file_size = path.stat().st_size
    if file_size < FBIN_HEADER_BYTES:
        raise ValueError(f"{path}: file too small ({file_size} bytes) to contain fbin header")

    with path.open("rb") as f:
        hdr = np.fromfile(f, dtype=np.int32, count=2)
        if hdr.size != 2:
            raise ValueError(f"{path}: failed to read 2 int32 header values")

        n = int(hdr[0])
        d = int(hdr[1])

        if n < 0 or d <= 0:
            raise ValueError(f"{path}: invalid header n={n}, d={d}")
        if n == 0:
            raise EmptyInput(f"{path}: header declares zero vectors (d={d})")
        if d > 1_000_000 or n > 1_000_000_000:
            raise ValueError(f"{path}: suspicious header n={n}, d={d} (wrong file/format/endian?)")

        expected_size = FBIN_HEADER_BYTES + (n * d * 4)
        if file_size != expected_size:
            raise ValueError(
                f"{path}: size mismatch. header says n={n}, d={d} => expected {expected_size} bytes, got {file_size} bytes"
            )

        x = np.fromfile(f, dtype=np.float32, count=n * d)
        if x.size != n * d:
            raise ValueError(f"{path}: truncated payload (expected {n*d} floats, got {x.size})")

    return x.reshape(n, d)


def load_vectors(path: str | Path) -> np.ndarray:
    """Load an (n, dim) point set from .fbin or .npy."""
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".fbin":
        return read_fbin(path)
    if suffix == ".npy":
        x = np.load(path, allow_pickle=False)
        if x.ndim != 2:
            raise ValueError(f"{path}: expected a 2D array (N,D); got shape {x.shape}")
        if x.shape[0] == 0:
            raise EmptyInput(f"{path}: array holds zero vectors")
        return x
    raise ValueError(f"{path}: unsupported vector format {suffix!r} (expected .fbin or .npy)")


def load_base_and_query(base_path: str | Path, query_path: str | Path) -> Tuple[np.ndarray, np.ndarray]:
    base = load_vectors(base_path)
    query = load_vectors(query_path)

    if base.shape[1] != query.shape[1]:
        raise ShapeMismatch(f"Dim mismatch: base dim={base.shape[1]} vs query dim={query.shape[1]}")

    return base, query
