import numpy as np
import pytest

from experiments.harnesses.brute_force_knn import run
from utility.errors import ShapeMismatch
from utility.read_vectors import write_fbin


def _write_points(tmp_path):
    base = np.array([[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [5.0, 5.0]])
    query = np.array([[0.1, 0.0], [4.0, 4.0]])
    write_fbin(tmp_path / "base.fbin", base)
    write_fbin(tmp_path / "query.fbin", query)
    return tmp_path / "base.fbin", tmp_path / "query.fbin"


def test_self_search_writes_log_and_csv(tmp_path, capsys):
    base_path, _ = _write_points(tmp_path)
    res = run(tmp_path, ["--base", str(base_path), "--k", "1"])

    assert res.indices.ravel().tolist() == [1, 0, 0, 1]
    rows = (tmp_path / "output.csv").read_text().splitlines()
    assert rows[0] == "query_i,rank,index,distance"
    assert rows[1] == "0,0,1,1.000000"
    assert len(rows) == 1 + 4

    log = (tmp_path / "output.log").read_text()
    assert "query_path: (self)" in log
    assert "exclude_self:    True" in log
    assert "Wrote CSV to" in capsys.readouterr().out


def test_query_file_and_options(tmp_path):
    base_path, query_path = _write_points(tmp_path)
    out = tmp_path / "out" / "run.log"
    csv = tmp_path / "out" / "run.csv"
    res = run(
        tmp_path,
        [
            "--base", str(base_path),
            "--query", str(query_path),
            "--k", "2",
            "--metric", "euclidean",
            "--chunk_size", "1",
            "--num_threads", "2",
            "--output", str(out),
            "--csv", str(csv),
            "--show", "0",
        ],
    )
    assert res.indices.tolist() == [[0, 1], [3, 1]]
    assert out.exists()
    assert len(csv.read_text().splitlines()) == 1 + 2 * 2
    assert "metric:          euclidean" in out.read_text()


def test_random_points_include_self(tmp_path):
    res = run(tmp_path, ["--random", "10", "--dim", "2", "--k", "1", "--include_self"])
    assert res.indices.ravel().tolist() == list(range(10))


def test_dimension_mismatch_surfaces(tmp_path):
    base_path, _ = _write_points(tmp_path)
    write_fbin(tmp_path / "q3.fbin", np.zeros((2, 3)))
    with pytest.raises(ShapeMismatch):
        run(tmp_path, ["--base", str(base_path), "--query", str(tmp_path / "q3.fbin"), "--k", "1"])


def test_base_or_random_required(tmp_path):
    with pytest.raises(SystemExit):
        run(tmp_path, ["--k", "1"])


def test_metric_aliases_accepted(tmp_path):
    base_path, _ = _write_points(tmp_path)
    res = run(tmp_path, ["--base", str(base_path), "--k", "1", "--metric", "l2", "--num_threads", "2"])
    assert res.indices.ravel().tolist() == [1, 0, 0, 1]
    log = (tmp_path / "output.log").read_text()
    assert "metric:          sqeuclidean" in log
    assert "squared:         True" in log

    run(tmp_path, ["--base", str(base_path), "--k", "1", "--metric", "linf"])
    log = (tmp_path / "output.log").read_text()
    assert "metric:          chebyshev" in log
    assert "squared:         False" in log
