# -*- coding: utf8 -*-
'''
Elementary Householder reflections.

A :py:class:`Reflector` represents the unitary map
:math:`I - \\beta vv^*` that acts on an index range ``r`` only. Reflectors
are constructed with :py:meth:`householder`, :py:meth:`householder_col` or
:py:meth:`householder_row` and are applied in place as rank-one updates, so
the dense reflection matrix is never formed.
'''

import numpy

from .utils import ArgumentError

__all__ = ['Reflector', 'householder', 'householder_col', 'householder_row']


def _check_range(r, k):
    if not isinstance(r, range) or r.step != 1:
        raise ArgumentError('r = {0} has to be a range with step 1'.format(r))
    if len(r) == 0:
        raise ArgumentError('r = {0} is empty'.format(r))
    if k not in r:
        raise ArgumentError('k = {0} should be in the range r = {1}'
                            .format(k, r))


def _index(idx):
    '''Turn ``None`` or a range into something numpy can index with.'''
    if idx is None:
        return slice(None)
    if isinstance(idx, range) and idx.step == 1:
        return slice(idx.start, idx.stop)
    return numpy.asarray(list(idx), dtype=int)


def _inexact_copy(x):
    if numpy.issubdtype(x.dtype, numpy.inexact):
        return numpy.array(x)
    return numpy.array(x, dtype=numpy.float64)


def _householder(v, i):
    '''Turn ``v`` into a Householder vector in place.

    Applying the resulting reflection to the original ``v`` yields a vector
    whose only non-zero entry is the real and non-negative value ``nu`` at
    position ``i``.

    :return: ``beta, v, nu``.
    '''
    vi = v[i]
    sigma = numpy.sum(numpy.abs(v[:i])**2) + numpy.sum(numpy.abs(v[i+1:])**2)
    nu = numpy.sqrt(numpy.abs(vi)**2 + sigma)

    if sigma == 0 and vi == nu:
        beta = v.dtype.type(0)
    else:
        # both branches compute vi - nu, the second one without cancellation
        if vi.real < 0:
            vi = vi - nu
        else:
            vi = ((vi - numpy.conj(vi))*nu - sigma)/(numpy.conj(vi) + nu)
        v /= vi
        v[i] = 1
        beta = -numpy.conj(vi)/nu
    return beta, v, nu


def householder(x, r=None, k=None):
    '''Householder reflector for a vector.

    :param x: a vector with ``shape==(N,)``.
    :param r: (optional) the index range the reflector acts on. Defaults to
      ``range(N)``.
    :param k: (optional) the pivot index in ``r``. Defaults to ``r.start``.

    :return: ``(h, nu)`` where ``h.apply(x)`` zeros ``x[r]`` except for
      ``x[k]`` which becomes ``nu``, the norm of ``x[r]``.
    '''
    x = numpy.ravel(x)
    if r is None:
        r = range(x.shape[0])
    k = r.start if k is None else k
    _check_range(r, k)
    beta, v, nu = _householder(_inexact_copy(x[_index(r)]), r.index(k))
    return Reflector(beta, v, r), nu


def householder_col(A, r, col, k=None):
    '''Householder reflector that zeros the elements ``A[r, col]`` (except
    for ``A[k, col]``) upon ``h.apply(A)``.'''
    k = r.start if k is None else k
    _check_range(r, k)
    beta, v, nu = _householder(_inexact_copy(A[_index(r), col]), r.index(k))
    return Reflector(beta, v, r), nu


def householder_row(A, row, r, k=None):
    '''Householder reflector that zeros the elements ``A[row, r]`` (except
    for ``A[row, k]``) upon ``h.apply_right_adj(A)``.

    The row is conjugated before the reflector is computed such that the
    reflection can be applied from the right.
    '''
    k = r.start if k is None else k
    _check_range(r, k)
    beta, v, nu = _householder(_inexact_copy(numpy.conj(A[row, _index(r)])),
                               r.index(k))
    return Reflector(beta, v, r), nu


class Reflector(object):
    def __init__(self, beta, v, r):
        '''Elementary reflection :math:`I - \\beta vv^*` on the range ``r``.

        Use :py:meth:`householder` and friends instead of instantiating
        this class directly.

        :param beta: the scalar :math:`\\beta`. The reflector is the identity
          if ``beta == 0``.
        :param v: the Householder vector with ``v.shape==(len(r),)``.
        :param r: the index range (a ``range`` with step 1).
        '''
        self.beta = beta
        self.v = v
        self.r = r
        self._slice = slice(r.start, r.stop)

    def _apply(self, beta, x, cols):
        if beta == 0:
            return x
        s = self._slice
        v = self.v
        if x.ndim == 1:
            mu = beta * numpy.dot(v.conj(), x[s])
            x[s] -= mu * v
            return x
        cols = _index(cols)
        mu = beta * numpy.dot(v.conj(), x[s, cols])
        x[s, cols] -= numpy.outer(v, mu)
        return x

    def apply(self, x, cols=None):
        '''Apply the reflection from the left in place.

        Computes :math:`x \\leftarrow x - \\beta v (v^* x)` on the rows
        ``r`` of ``x``.

        :param x: a vector with ``shape==(N,)`` or a matrix with
          ``shape==(N,n)``. Its dtype has to be able to hold the result.
        :param cols: (optional) for matrices, the columns to transform.
          Defaults to all columns.
        :return: ``x``.
        '''
        return self._apply(self.beta, x, cols)

    def apply_adj(self, x, cols=None):
        '''Apply the adjoint (and thus the inverse) reflection from the left
        in place. See :py:meth:`apply`.'''
        return self._apply(numpy.conj(self.beta), x, cols)

    def apply_right_adj(self, A, rows=None):
        '''Apply the adjoint reflection from the right in place.

        Computes :math:`A \\leftarrow A (I - \\beta vv^*)^*` on the columns
        ``r`` and the rows ``rows`` of ``A``. The update is carried out with
        the accumulator :math:`w = A v` such that only a rank-one update of
        ``A`` is needed.

        :param A: a matrix with ``shape==(n,N)``.
        :param rows: (optional) the rows to transform. Defaults to all rows.
        :return: ``A``.
        '''
        if self.beta == 0:
            return A
        s = self._slice
        rows = _index(rows)
        w = numpy.dot(A[rows, s], self.v)
        A[rows, s] -= numpy.conj(self.beta) * numpy.outer(w, self.v.conj())
        return A

    def apply_basis(self, V):
        '''Apply the adjoint reflection to the vectors of a basis in place.

        The basis vectors are the columns ``V[:, k]``; the vectors at the
        positions ``k`` in ``r`` are recombined, all others stay untouched.

        :param V: array with ``shape==(N,n)`` and ``n>=r.stop``.
        :return: ``V``.
        '''
        if self.beta == 0:
            return V
        w = numpy.zeros(V.shape[0],
                        dtype=numpy.result_type(V.dtype, self.v.dtype))
        for l, k in enumerate(self.r):
            w += V[:, k] * self.v[l]
        for l, k in enumerate(self.r):
            V[:, k] -= numpy.conj(self.beta) * w * numpy.conj(self.v[l])
        return V

    def matrix(self, n=None):
        """Build matrix representation of the reflection.

        **Use with care!** This routine may be helpful for testing purposes but
        should not be used in production codes for high dimensions since
        the resulting matrix is dense.

        :param n: (optional) dimension of the matrix. Defaults to ``r.stop``.
        """
        n = self.r.stop if n is None else n
        M = numpy.eye(n, dtype=self.v.dtype)
        s = self._slice
        M[s, s] -= self.beta * numpy.outer(self.v, self.v.conj())
        return M

    def __repr__(self):
        return 'Reflector(beta={0}, r={1})'.format(self.beta, self.r)
