import pytest
import torch

from gradcore import DenseVector, DimensionMismatchError, SparseVector, Vectors, append_bias, axpy, scal

from conftest import tensor


def test_sparse_reads_and_dense_conversion():
    v = Vectors.sparse(5, [1, 3], [2.0, -1.0])
    assert v.size == 5
    assert len(v) == 5
    assert v[0] == 0.0
    assert v[1] == 2.0
    assert v[3] == -1.0
    assert v[-2] == -1.0
    torch.testing.assert_close(v.to_tensor(), tensor([0.0, 2.0, 0.0, -1.0, 0.0]))


def test_sparse_index_validation():
    with pytest.raises(ValueError):
        Vectors.sparse(3, [2, 1], [1.0, 1.0])
    with pytest.raises(ValueError):
        Vectors.sparse(3, [0, 3], [1.0, 1.0])
    with pytest.raises(ValueError):
        Vectors.sparse(3, [0, 1], [1.0])
    with pytest.raises(IndexError):
        Vectors.sparse(3, [0], [1.0])[3]


def test_active_skips_explicit_zeros():
    sparse = Vectors.sparse(4, [0, 2, 3], [0.0, 5.0, 0.0])
    dense = Vectors.dense([0.0, 1.5, 0.0, -2.0])
    assert list(sparse.iter_active()) == [(2, 5.0)]
    assert list(dense.iter_active()) == [(1, 1.5), (3, -2.0)]


def test_dot_mixed_backings():
    dense = Vectors.dense([1.0, 2.0, 3.0, 4.0])
    sparse = Vectors.sparse(4, [1, 3], [0.5, -1.0])
    assert dense.dot(sparse) == pytest.approx(-3.0)
    assert sparse.dot(dense) == pytest.approx(-3.0)
    assert sparse.dot(sparse) == pytest.approx(1.25)
    assert dense.dot(dense) == pytest.approx(30.0)


def test_dot_size_mismatch():
    with pytest.raises(DimensionMismatchError):
        Vectors.dense([1.0, 2.0]).dot(Vectors.dense([1.0, 2.0, 3.0]))
    with pytest.raises(DimensionMismatchError):
        Vectors.sparse(3, [0], [1.0]).dot(Vectors.dense([1.0, 2.0]))


def test_axpy_sparse_only_touches_active_positions():
    y = Vectors.dense([10.0, 20.0, 30.0, 40.0])
    axpy(2.0, Vectors.sparse(4, [1, 2], [1.0, 0.0]), y)
    torch.testing.assert_close(y.values, tensor([10.0, 22.0, 30.0, 40.0]))

    axpy(-1.0, Vectors.dense([1.0, 1.0, 1.0, 1.0]), y)
    torch.testing.assert_close(y.values, tensor([9.0, 21.0, 29.0, 39.0]))


def test_axpy_requires_dense_target_of_same_size():
    with pytest.raises(TypeError):
        axpy(1.0, Vectors.dense([1.0]), Vectors.sparse(1, [0], [1.0]))
    with pytest.raises(DimensionMismatchError):
        axpy(1.0, Vectors.dense([1.0]), Vectors.zeros(2))


def test_scal_and_norms():
    x = Vectors.dense([3.0, -4.0])
    scal(2.0, x)
    torch.testing.assert_close(x.values, tensor([6.0, -8.0]))
    assert x.norm() == pytest.approx(10.0)
    assert x.norm(1.0) == pytest.approx(14.0)


def test_to_dense_is_a_copy():
    original = Vectors.dense([1.0, 2.0])
    copy = original.to_dense()
    copy.values[0] = 100.0
    assert original[0] == 1.0


def test_append_bias():
    dense = append_bias(Vectors.dense([1.0, 2.0]))
    assert isinstance(dense, DenseVector)
    torch.testing.assert_close(dense.values, tensor([1.0, 2.0, 1.0]))

    sparse = append_bias(Vectors.sparse(3, [1], [4.0]))
    assert isinstance(sparse, SparseVector)
    assert sparse.size == 4
    assert list(sparse.iter_active()) == [(1, 4.0), (3, 1.0)]


def test_dense_vector_rejects_matrices():
    with pytest.raises(ValueError):
        DenseVector(torch.zeros(2, 2))
