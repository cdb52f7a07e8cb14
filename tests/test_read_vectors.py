import numpy as np
import pytest

from utility.errors import EmptyInput, ShapeMismatch
from utility.read_vectors import load_base_and_query, load_vectors, read_fbin, write_fbin


def test_write_then_read_fbin(tmp_path):
    x = np.arange(12, dtype=np.float64).reshape(4, 3)
    path = tmp_path / "v.fbin"
    write_fbin(path, x)
    assert path.stat().st_size == 8 + 12 * 4
    y = read_fbin(path)
    assert y.dtype == np.float32
    assert np.array_equal(y, x.astype(np.float32))


def test_read_fbin_too_small(tmp_path):
    path = tmp_path / "bad.fbin"
    path.write_bytes(b"\x01\x00")
    with pytest.raises(ValueError, match="too small"):
        read_fbin(path)


def test_read_fbin_size_mismatch(tmp_path):
    path = tmp_path / "bad.fbin"
    write_fbin(path, np.ones((2, 2)))
    with path.open("ab") as f:
        f.write(b"\x00" * 4)
    with pytest.raises(ValueError, match="size mismatch"):
        read_fbin(path)


def test_read_fbin_zero_rows(tmp_path):
    path = tmp_path / "empty.fbin"
    np.asarray([0, 3], dtype=np.int32).tofile(str(path))
    with pytest.raises(EmptyInput, match="zero vectors"):
        read_fbin(path)


def test_read_fbin_bad_header(tmp_path):
    path = tmp_path / "neg.fbin"
    np.asarray([-1, 3], dtype=np.int32).tofile(str(path))
    with pytest.raises(ValueError, match="invalid header"):
        read_fbin(path)


def test_load_vectors_npy(tmp_path):
    path = tmp_path / "v.npy"
    np.save(path, np.ones((3, 2)))
    assert load_vectors(path).shape == (3, 2)

    np.save(tmp_path / "flat.npy", np.ones(3))
    with pytest.raises(ValueError, match="2D"):
        load_vectors(tmp_path / "flat.npy")

    with pytest.raises(ValueError, match="unsupported"):
        load_vectors(tmp_path / "v.csv")


def test_load_base_and_query(tmp_path):
    write_fbin(tmp_path / "base.fbin", np.ones((5, 3)))
    np.save(tmp_path / "query.npy", np.zeros((2, 3)))
    base, query = load_base_and_query(tmp_path / "base.fbin", tmp_path / "query.npy")
    assert base.shape == (5, 3)
    assert query.shape == (2, 3)

    write_fbin(tmp_path / "q4.fbin", np.zeros((2, 4)))
    with pytest.raises(ShapeMismatch, match="Dim mismatch"):
        load_base_and_query(tmp_path / "base.fbin", tmp_path / "q4.fbin")
