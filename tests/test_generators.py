import json

import numpy as np
import pytest

from testcases import generate_random, generate_similar
from utility.read_vectors import read_fbin


def test_random_vectors():
    x = generate_random.random_vectors(10, 4, seed=1)
    assert x.shape == (10, 4)
    assert x.dtype == np.float32
    assert np.array_equal(x, generate_random.random_vectors(10, 4, seed=1))

    u = generate_random.random_vectors(100, 2, seed=1, distribution="uniform")
    assert np.all((u >= 0) & (u < 1))

    with pytest.raises(ValueError, match="Unsupported distribution"):
        generate_random.random_vectors(3, 2, distribution="cauchy")


def test_generate_random_cli(tmp_path, capsys):
    path = generate_random.main(["--out_dir", str(tmp_path), "--n", "7", "--dim", "5"])
    assert path == tmp_path / "base_vectors.fbin"
    assert read_fbin(path).shape == (7, 5)
    meta = json.loads((tmp_path / generate_random.METADATA).read_text())
    assert meta["n"] == 7
    assert meta["distribution"] == "standard_normal"
    assert "Wrote 7 vectors" in capsys.readouterr().out


def test_generate_random_cli_npy(tmp_path):
    path = generate_random.main(["--out_dir", str(tmp_path), "--n", "3", "--dim", "2", "--format", "npy"])
    assert np.load(path).shape == (3, 2)


def test_similar_vectors_cluster_around_anchors():
    x, anchor_idx = generate_similar.similar_vectors(200, 8, num_anchors=5, noise_sigma=0.01, seed=3)
    assert x.shape == (200, 8)
    assert anchor_idx.shape == (200,)
    # points sharing an anchor are far closer to each other than to other clusters
    same = x[anchor_idx == anchor_idx[0]]
    assert np.max(np.abs(same - same[0])) < 0.2

    with pytest.raises(ValueError, match="num_anchors"):
        generate_similar.similar_vectors(3, 2, num_anchors=0)


def test_generate_similar_cli(tmp_path):
    path = generate_similar.main(["--out_dir", str(tmp_path), "--n", "12", "--dim", "3", "--num_anchors", "2"])
    assert read_fbin(path).shape == (12, 3)
    meta = json.loads((tmp_path / generate_similar.OUTPUT_META_JSON).read_text())
    assert meta["distribution"]["num_anchors"] == 2
