#!/usr/bin/env python3
import argparse
import json
from pathlib import Path

import numpy as np

from utility.read_vectors import write_fbin

# ========= Output filenames (edit these in one place) =========
OUTPUT_VECTORS_FBIN = "query_vectors.fbin"
OUTPUT_META_JSON = "query_vectors_metadata.json"
# =============================================================


def similar_vectors(
    n: int,
    dim: int,
    num_anchors: int = 200,
    noise_sigma: float = 0.05,
    seed: int = 42,
) -> tuple[np.ndarray, np.ndarray]:
    """
    Mixture of Gaussians: each of the n points is a standard-normal anchor
    plus Normal(0, noise_sigma^2) noise per dimension.

    Returns:
      x:          (n, dim) float32 points
      anchor_idx: (n,) int64 anchor each point was drawn around
    """
    if num_anchors <= 0:
        raise ValueError(f"num_anchors must be >= 1, got {num_anchors}")
    if noise_sigma < 0:
        raise ValueError(f"noise_sigma must be >= 0, got {noise_sigma}")

    rng = np.random.default_rng(seed)
    anchors = rng.standard_normal((num_anchors, dim), dtype=np.float32)
    anchor_idx = rng.integers(0, num_anchors, size=n, dtype=np.int64)
    noise = rng.normal(0.0, noise_sigma, size=(n, dim)).astype(np.float32)
    return anchors[anchor_idx] + noise, anchor_idx


def main(argv=None):
    ap = argparse.ArgumentParser(
        description="Generate N similar vectors by sampling around K anchor vectors."
    )
    ap.add_argument("--out_dir", required=True, help="Output directory (required)")
    ap.add_argument("--seed", type=int, default=42, help="RNG seed")
    ap.add_argument("--dim", type=int, default=128, help="Vector dimension")
    ap.add_argument("--n", type=int, default=10_000, help="Total vectors to generate")
    ap.add_argument(
        "--num_anchors",
        type=int,
        default=200,
        help="Number of anchor vectors (clusters). Smaller => more repetition/similarity.",
    )
    ap.add_argument(
        "--noise_sigma",
        type=float,
        default=0.05,
        help="Stddev of noise around anchor vectors. Smaller => vectors more similar.",
    )
    args = ap.parse_args(argv)

    out_dir = Path(args.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)

    x, _ = similar_vectors(args.n, args.dim, args.num_anchors, args.noise_sigma, args.seed)

    vec_path = out_dir / OUTPUT_VECTORS_FBIN
    write_fbin(vec_path, x)

    meta = {
        "seed": int(args.seed),
        "dim": int(args.dim),
        "n": int(args.n),
        "dtype": "float32",
        "distribution": {
            "type": "mixture_of_gaussians",
            "num_anchors": int(args.num_anchors),
            "anchors": "standard_normal",
            "noise": f"Normal(0, {args.noise_sigma}^2) per-dimension",
        },
        "files": {"vectors": OUTPUT_VECTORS_FBIN},
        "formats": {"fbin": "int32 n, int32 dim, then n*dim float32 row-major"},
    }
    with (out_dir / OUTPUT_META_JSON).open("w") as f:
        json.dump(meta, f, indent=2)

    print(f"Wrote {args.n} vectors (dim={args.dim}) to: {vec_path}")
    print(f"Wrote metadata to: {out_dir / OUTPUT_META_JSON}")
    return vec_path


if __name__ == "__main__":
    main()
