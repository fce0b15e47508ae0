import numpy
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal, \
    assert_equal

import kryeig
from kryeig.schur import eigsort, hschur, permuteschur, schur2eigvals, \
    schur2eigvecs, sortperm


def get_matrix_real(n=8, seed=0):
    # random real matrices have complex conjugate pairs of eigenvalues
    return numpy.random.RandomState(seed).randn(n, n)


def get_matrix_comp(n=8, seed=0):
    rng = numpy.random.RandomState(seed)
    return rng.randn(n, n) + 1j*rng.randn(n, n)


def get_matrix_symm(n=8, seed=0):
    A = get_matrix_real(n, seed)
    return A + A.T


def get_matrices():
    return [get_matrix_real(), get_matrix_real(seed=1), get_matrix_comp(),
            get_matrix_symm()]


def assert_schur(A, T, U):
    n = A.shape[0]
    An = numpy.linalg.norm(A, 2)
    assert numpy.linalg.norm(U.dot(T).dot(U.T.conj()) - A, 2) <= 1e-13*An
    assert numpy.linalg.norm(U.T.conj().dot(U) - numpy.eye(n), 2) <= 1e-13
    if numpy.iscomplexobj(T):
        assert_array_equal(numpy.tril(T, -1), 0)
    else:
        # quasi upper triangular without adjacent 2x2 blocks
        assert_array_equal(numpy.tril(T, -2), 0)
        sub = numpy.diag(T, -1)
        assert not numpy.any((sub[:-1] != 0) & (sub[1:] != 0))


def assert_sorted(T, which):
    # a 2x2 block is placed according to its better eigenvalue
    key, reverse = eigsort(which)
    best = max if reverse else min
    values = schur2eigvals(T)
    keys = []
    i = 0
    while i < T.shape[0]:
        size = 2 if numpy.isrealobj(T) and i+1 < T.shape[0] \
            and T[i+1, i] != 0 else 1
        keys.append(best(key(values[i:i+size])))
        i += size
    diffs = numpy.diff(keys)
    if reverse:
        assert numpy.all(diffs <= 1e-10)
    else:
        assert numpy.all(diffs >= -1e-10)


@pytest.mark.parametrize('which', ['LM', 'SM', 'LR', 'SR', 'LI', 'SI'])
def test_eigsort(which):
    key, reverse = eigsort(which)
    assert reverse == (which[0] == 'L')
    assert key(-3+4j) == {'M': 5, 'R': -3, 'I': 4}[which[1]]


@pytest.mark.parametrize('which', ['lm', 'XX', None])
def test_eigsort_invalid(which):
    with pytest.raises(kryeig.utils.ArgumentError):
        eigsort(which)


def test_sortperm():
    values = numpy.array([1., -3., 3., 2.])
    assert_equal(sortperm(values, 'LM'), [1, 2, 3, 0])
    assert_equal(sortperm(values, 'SM'), [0, 3, 1, 2])
    assert_equal(sortperm(values, 'LR'), [2, 3, 0, 1])

    # ties keep their order
    values = numpy.array([1+1j, 1-1j, 2, 1-1j])
    assert_equal(sortperm(values, 'SR'), [0, 1, 3, 2])
    assert_equal(sortperm(values, 'LI'), [0, 2, 1, 3])


@pytest.mark.parametrize('A', get_matrices())
def test_hschur(A):
    T, U, values = hschur(A)
    assert_schur(A, T, U)
    assert T.dtype == A.dtype
    assert_array_almost_equal(numpy.sort_complex(values),
                              numpy.sort_complex(numpy.linalg.eigvals(A)))
    assert_array_almost_equal(values, schur2eigvals(T))


@pytest.mark.parametrize('A', get_matrices())
@pytest.mark.parametrize('which', ['LM', 'SM', 'LR', 'SR', 'LI', 'SI'])
def test_permuteschur(A, which):
    T, U, values = hschur(A)
    T, U = numpy.array(T), numpy.array(U)
    Tp, Up = permuteschur(T, U, sortperm(values, which))
    # in place
    assert Tp is T
    assert Up is U

    assert_schur(A, T, U)
    newvalues = schur2eigvals(T)
    assert_array_almost_equal(numpy.sort_complex(newvalues),
                              numpy.sort_complex(values))
    assert_sorted(T, which)


def test_permuteschur_identity():
    T, U, values = hschur(get_matrix_real())
    T0, U0 = numpy.array(T), numpy.array(U)
    permuteschur(T, U, range(T.shape[0]))
    assert_array_equal(T, T0)
    assert_array_equal(U, U0)


def get_schur_real():
    # 2x2 block with eigenvalues 1 +- i sqrt(6)
    return numpy.array([[1., -2., .5],
                        [3., 1., .2],
                        [0., 0., 5.]])


def test_schur2eigvals_real():
    T = get_schur_real()
    values = schur2eigvals(T)
    assert numpy.iscomplexobj(values)
    assert_array_almost_equal(values,
                              [1+1j*numpy.sqrt(6), 1-1j*numpy.sqrt(6), 5])
    assert_array_almost_equal(schur2eigvals(T, 2), values[:2])

    with pytest.raises(kryeig.utils.ArgumentError):
        schur2eigvals(T, 1)

    # only real eigenvalues yield a real array
    values = schur2eigvals(numpy.triu(get_matrix_real(5)))
    assert not numpy.iscomplexobj(values)


def test_schur2eigvecs_split():
    with pytest.raises(kryeig.utils.ArgumentError):
        schur2eigvecs(get_schur_real(), 1)


def get_leading_dims(T):
    n = T.shape[0]
    if numpy.iscomplexobj(T):
        return list(range(1, n+1))
    return [k for k in range(1, n+1) if k == n or T[k, k-1] == 0]


@pytest.mark.parametrize('A', get_matrices() + [get_schur_real()])
def test_schur2eigvecs(A):
    T, _, _ = hschur(A)
    n = T.shape[0]
    for k in get_leading_dims(T):
        values = schur2eigvals(T, k)
        R = schur2eigvecs(T, k)
        assert R.shape == (n, k)
        assert_array_equal(R[k:, :], 0)
        assert_array_almost_equal(numpy.linalg.norm(R, axis=0), numpy.ones(k))
        assert numpy.linalg.norm(T.dot(R) - R*values, 2) \
            <= 1e-12*numpy.linalg.norm(T, 2)


def test_schur2eigvecs_defective():
    # a Jordan block still yields unit norm vectors
    T = numpy.array([[2., 1.], [0., 2.]])
    R = schur2eigvecs(T)
    assert_array_almost_equal(numpy.linalg.norm(R, axis=0), [1., 1.])
    assert numpy.linalg.norm(T.dot(R[:, [0]]) - 2*R[:, [0]]) <= 1e-14
