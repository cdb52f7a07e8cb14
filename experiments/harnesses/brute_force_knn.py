import argparse
import time
from pathlib import Path

import numpy as np

from utility.errors import EmptyInput
from utility.exact_nearest_neighbor import kneighbors
from utility.metrics import METRIC_CHOICES, get_metric
from utility.read_vectors import load_base_and_query, load_vectors
from testcases.generate_random import random_vectors


def parse_args(folder, argv=None):
    parser = argparse.ArgumentParser(
        description="Run exact brute-force kNN over a base set and write the neighbors."
    )

    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--base", type=str, help="Path to base .fbin/.npy file")
    src.add_argument("--random", type=int, metavar="N", help="Generate N uniform random base points instead")

    parser.add_argument(
        "--query",
        type=str,
        default=None,
        help="Path to queries .fbin/.npy file (default: search the base set against itself)",
    )
    parser.add_argument("--dim", type=int, default=3, help="Dimension for --random")
    parser.add_argument("--seed", type=int, default=42, help="RNG seed for --random")

    # required k
    parser.add_argument("--k", required=True, type=int, help="Top-k neighbors to retrieve")

    # output file
    script_dir = Path(folder)
    parser.add_argument(
        "--output",
        type=str,
        default=str(script_dir / "output.log"),
        help="Path to output log file (default: ./output.log next to this script)",
    )
    parser.add_argument(
        "--csv",
        type=str,
        default=str(script_dir / "output.csv"),
        help="Path to CSV output (default: ./output.csv next to this script)",
    )

    # search options (forwarded into kneighbors)
    parser.add_argument("--metric", type=str, default="sqeuclidean", choices=METRIC_CHOICES)
    parser.add_argument("--chunk_size", type=int, default=None, help="Source rows per block (bounds memory)")
    parser.add_argument("--num_threads", type=int, default=1, help="Worker threads (-1 = all cores)")
    parser.add_argument(
        "--include_self",
        action="store_true",
        help="In self-search, allow a point to be its own nearest neighbor",
    )
    parser.add_argument(
        "--allow_nonfinite",
        action="store_true",
        help="Let NaN/Inf through (NaN distances rank last) instead of rejecting them",
    )
    parser.add_argument("--show", type=int, default=3, help="Print neighbors of the first N queries")

    return parser.parse_args(argv)


def load_points(args):
    """Returns (base, query); query is None for self-search."""
    if args.random is not None:
        if args.query is not None:
            raise ValueError("--query cannot be combined with --random")
        if args.random <= 0:
            raise EmptyInput(f"--random must be > 0; got {args.random}")
        return random_vectors(args.random, args.dim, args.seed, distribution="uniform"), None
    if args.query is None:
        return load_vectors(args.base), None
    return load_base_and_query(args.base, args.query)


def format_row(result, i):
    return " ".join(f"{j}:{d:.6g}" for j, d in result.row(i))


def run(folder, argv=None):
    args = parse_args(folder, argv)
    out_path = Path(args.output)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    csv_path = Path(args.csv)
    csv_path.parent.mkdir(parents=True, exist_ok=True)

    base, query = load_points(args)
    self_search = query is None
    Q = base.shape[0] if self_search else query.shape[0]
    N, D = base.shape
    k = int(args.k)

    print("Base vectors:", base.shape, "Query vectors:", (Q, D) if self_search else query.shape)

    t0 = time.perf_counter()
    result = kneighbors(
        base if self_search else query,
        None if self_search else base,
        k,
        metric=args.metric,
        chunk_size=args.chunk_size,
        num_threads=args.num_threads,
        exclude_self=False if args.include_self else None,
        check_finite=not args.allow_nonfinite,
    )
    search_secs = time.perf_counter() - t0
    qps = Q / search_secs if search_secs > 0 else float("inf")

    log_lines = []
    log_lines.append("=== Brute-force kNN ===")
    log_lines.append(f"base_path:  {args.base if args.random is None else f'random(n={args.random}, seed={args.seed})'}")
    log_lines.append(f"query_path: {args.query if not self_search else '(self)'}")
    log_lines.append(f"output:     {str(out_path)}")
    log_lines.append("")
    log_lines.append(f"N: {N}, Q: {Q}, D: {D}, k: {k}, k_returned: {result.k}")
    log_lines.append("")
    log_lines.append("=== Search ===")
    metric = get_metric(args.metric)
    log_lines.append(f"metric:          {metric.name}")
    log_lines.append(f"squared:         {metric.is_squared}")
    log_lines.append(f"chunk_size:      {args.chunk_size if args.chunk_size is not None else 'all'}")
    log_lines.append(f"num_threads:     {args.num_threads}")
    log_lines.append(f"exclude_self:    {self_search and not args.include_self}")
    log_lines.append(f"check_finite:    {not args.allow_nonfinite}")
    log_lines.append(f"search_seconds:  {search_secs:.6f}")
    log_lines.append(f"QPS:             {qps:.2f}")
    log_lines.append("")

    csv_rows = ["query_i,rank,index,distance"]  # header
    for i in range(len(result)):
        for rank, (j, d) in enumerate(result.row(i)):
            csv_rows.append(f"{i},{rank},{j},{d:.6f}")

    if result.k > 0 and len(result) > 0:
        nearest = result.distances[:, 0].astype(np.float64)
        log_lines.append("=== Summary ===")
        log_lines.append(f"mean_nearest_distance: {float(np.nanmean(nearest)):.6f}")
        log_lines.append(f"max_nearest_distance:  {float(np.nanmax(nearest)):.6f}")
        log_lines.append("")

    shown = min(max(args.show, 0), len(result))
    if shown:
        log_lines.append(f"=== First {shown} queries (index:distance) ===")
        for i in range(shown):
            log_lines.append(f"[q{i:>6}] {format_row(result, i)}")
        log_lines.append("")

    out_path.write_text("\n".join(log_lines), encoding="utf-8")
    csv_path.write_text("\n".join(csv_rows) + "\n", encoding="utf-8")

    print(f"Search: {search_secs:.3f}s  ({qps:.2f} QPS, metric={args.metric}, k={result.k})")
    for i in range(shown):
        print(f"q{i}: {format_row(result, i)}")
    print(f"Wrote log to: {out_path}")
    print(f"Wrote CSV to: {csv_path}")
    return result
