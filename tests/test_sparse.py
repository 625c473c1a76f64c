import numpy as np
import pytest

from momentsdp.sparse import (
    LowerTriangularMatrix,
    extract_lower_triangular,
    pack_lower_triangular,
    packed_length,
    unpack_lower_triangular,
)


def _random_symmetric(n: int, seed: int) -> np.ndarray:
    rng = np.random.default_rng(seed)
    M = rng.standard_normal((n, n))
    return 0.5 * (M + M.T)


def test_pack_unpack_roundtrip_random_symmetric():
    seed = 0
    for n in [1, 2, 3, 6, 11]:
        M = _random_symmetric(n, seed)
        seed += 1
        packed = pack_lower_triangular(M)
        assert packed.shape[0] == packed_length(n)
        assert np.array_equal(unpack_lower_triangular(n, packed), M)


def test_packed_layout_is_column_stacked():
    # Column c holds rows c..d-1.
    packed = np.arange(1.0, 7.0)
    X = unpack_lower_triangular(3, packed)
    expected = np.array(
        [
            [1.0, 2.0, 3.0],
            [2.0, 4.0, 5.0],
            [3.0, 5.0, 6.0],
        ]
    )
    assert np.array_equal(X, expected)
    assert np.array_equal(pack_lower_triangular(expected), packed)


def test_unpack_rejects_wrong_length():
    with pytest.raises(ValueError):
        unpack_lower_triangular(3, np.zeros(5))


def test_extract_visits_only_lower_triangle():
    tags = np.array(
        [
            [0, 1, 2],
            [1, 0, 1],
            [2, 1, 0],
        ]
    )
    phases = np.ones((3, 3))
    mat = extract_lower_triangular(tags, phases, 1)
    assert sorted(mat.triples()) == [(1, 0, 1.0), (2, 1, 1.0)]
    assert np.all(mat.rows >= mat.cols)

    ident = extract_lower_triangular(tags, phases, 0, scale=-2.0)
    assert sorted(ident.triples()) == [(0, 0, -2.0), (1, 1, -2.0), (2, 2, -2.0)]


def test_extract_applies_phase_and_scale():
    tags = np.array([[0, 1], [1, 0]])
    phases = np.array([[1.0, -1.0], [-1.0, 1.0]])
    mat = extract_lower_triangular(tags, phases, 1, scale=-1.0)
    assert mat.triples() == [(1, 0, 1.0)]


def test_extract_missing_monomial_is_empty():
    tags = np.array([[0, 1], [1, 0]])
    mat = extract_lower_triangular(tags, np.ones((2, 2)), 5)
    assert mat.nnz == 0
    assert mat.dim == 2


def test_lower_triangular_matrix_validation():
    with pytest.raises(ValueError):
        LowerTriangularMatrix(2, [0], [1], [1.0])
    with pytest.raises(ValueError):
        LowerTriangularMatrix(2, [1, 1], [0, 0], [1.0, 2.0])
    with pytest.raises(ValueError):
        LowerTriangularMatrix(2, [2], [0], [1.0])
    with pytest.raises(ValueError):
        LowerTriangularMatrix(2, [1, 0], [0], [1.0])


def test_to_dense_mirrors_off_diagonal():
    mat = LowerTriangularMatrix(3, [0, 2], [0, 1], [4.0, -1.5])
    dense = mat.to_dense()
    assert np.array_equal(dense, dense.T)
    assert dense[0, 0] == 4.0
    assert dense[2, 1] == dense[1, 2] == -1.5
    assert dense.sum() == pytest.approx(1.0)


def test_inner_matches_dense_trace():
    mat = LowerTriangularMatrix(3, [1, 2, 2], [0, 0, 2], [1.0, 2.0, 3.0])
    X = _random_symmetric(3, seed=7)
    assert mat.inner(X) == pytest.approx(float(np.trace(mat.to_dense() @ X)))
