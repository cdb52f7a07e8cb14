#!/usr/bin/env python3
import argparse
import json
from pathlib import Path

import numpy as np

from utility.read_vectors import write_fbin

DISTRIBUTIONS = ("standard_normal", "uniform")

# file names
METADATA = "base_vectors_metadata.json"
OUTPUT = "base_vectors"


def random_vectors(n: int, dim: int, seed: int = 42, distribution: str = "standard_normal") -> np.ndarray:
    """(n, dim) float32 points, standard normal or uniform in [0, 1)."""
    if n < 0 or dim <= 0:
        raise ValueError(f"invalid shape (N={n}, D={dim})")
    rng = np.random.default_rng(seed)
    if distribution == "standard_normal":
        return rng.standard_normal((n, dim), dtype=np.float32)
    if distribution == "uniform":
        return rng.random((n, dim), dtype=np.float32)
    raise ValueError(f"Unsupported distribution: {distribution!r}")


def main(argv=None):
    ap = argparse.ArgumentParser(description="Generate N random point vectors for kNN runs.")
    ap.add_argument("--out_dir", type=str, required=True, help="Output directory (required)")
    ap.add_argument("--seed", type=int, default=42, help="RNG seed")
    ap.add_argument("--dim", type=int, default=128, help="Vector dimension")
    ap.add_argument("--n", type=int, default=50_000, help="Number of vectors (N)")
    ap.add_argument("--distribution", type=str, default="standard_normal", choices=DISTRIBUTIONS)
    ap.add_argument("--format", type=str, default="fbin", choices=["fbin", "npy"], help="Output format")
    args = ap.parse_args(argv)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    x = random_vectors(args.n, args.dim, args.seed, args.distribution)

    if args.format == "fbin":
        vec_path = out_dir / f"{OUTPUT}.fbin"
        write_fbin(vec_path, x)
    else:
        vec_path = out_dir / f"{OUTPUT}.npy"
        np.save(vec_path, x)

    meta = {
        "seed": args.seed,
        "dim": args.dim,
        "n": args.n,
        "dtype": "float32",
        "distribution": args.distribution,
        "file": vec_path.name,
        "formats": {
            "fbin": "int32 n, int32 dim, n*dim float32 row-major"
        }
    }
    with (out_dir / METADATA).open("w") as f:
        json.dump(meta, f, indent=2)

    print(f"Wrote {args.n} vectors (dim={args.dim}) to: {vec_path}")
    print(f"Wrote metadata to: {out_dir / METADATA}")
    return vec_path


if __name__ == "__main__":
    main()
