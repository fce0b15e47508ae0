# -*- coding: utf8 -*-
'''
Dense Schur forms of small Hessenberg matrices.

Provides the Schur decomposition, the ordering of eigenvalues according to a
selection criterion, the reordering of a Schur form and the extraction of
eigenvalues and eigenvectors from a (quasi-)upper triangular Schur form. For
real matrices, the real Schur form is used where a complex conjugate pair of
eigenvalues occupies a 2x2 block on the diagonal. Such blocks are never split.
'''

import warnings

import numpy
import scipy.linalg
from scipy.linalg.lapack import get_lapack_funcs

from .utils import ArgumentError, has_paired_blocks

__all__ = ['eigsort', 'hschur', 'permuteschur', 'schur2eigvals',
           'schur2eigvecs', 'sortperm']

_criteria = {
    'LM': (numpy.abs, True),    # largest magnitude
    'SM': (numpy.abs, False),   # smallest magnitude
    'LR': (numpy.real, True),   # largest real part
    'SR': (numpy.real, False),  # smallest real part
    'LI': (numpy.imag, True),   # largest imaginary part
    'SI': (numpy.imag, False),  # smallest imaginary part
    }


def eigsort(which):
    '''Sort key and direction for a selection criterion.

    :param which: one of ``'LM'``, ``'SM'``, ``'LR'``, ``'SR'``, ``'LI'``
      and ``'SI'``.
    :return: ``(key, reverse)`` to be used with ``sorted``.
    '''
    try:
        return _criteria[which]
    except (KeyError, TypeError):
        raise ArgumentError(
            'Invalid value \'{0}\' for argument \'which\'. '.format(which)
            + 'Valid are {0}.'.format(', '.join(sorted(_criteria))))


def sortperm(values, which):
    '''Stable permutation that orders ``values`` according to ``which``.

    Eigenvalues with equal sort keys keep their original order.'''
    key, reverse = eigsort(which)
    return sorted(range(len(values)), key=lambda i: key(values[i]),
                  reverse=reverse)


def _blocks(T, k=None):
    '''Diagonal blocks ``(start, size)`` of a Schur form that start before
    ``k``.'''
    n = T.shape[0]
    k = n if k is None else k
    paired = has_paired_blocks(T.dtype)
    blocks = []
    i = 0
    while i < k:
        if paired and i+1 < n and T[i+1, i] != 0:
            blocks.append((i, 2))
            i += 2
        else:
            blocks.append((i, 1))
            i += 1
    return blocks


def _eig2x2(B):
    '''Eigenvalues of a 2x2 block, the one with positive imaginary part
    first.'''
    a, b = B[0, 0], B[0, 1]
    c, d = B[1, 0], B[1, 1]
    p = 0.5*(a + d)
    disc = (0.5*(a - d))**2 + b*c
    if disc < 0:
        s = 1j*numpy.sqrt(-disc)
    else:
        s = numpy.sqrt(disc)
    return p + s, p - s


def hschur(H):
    '''Schur decomposition of a (Hessenberg) matrix.

    Computes :math:`H = U T U^*` where :math:`U` is unitary and :math:`T` is
    upper triangular. If ``H`` is real, the real Schur form is computed, i.e.,
    :math:`U` is orthogonal and :math:`T` is quasi upper triangular with 2x2
    blocks for complex conjugate pairs of eigenvalues.

    :return: ``T, U, values`` where ``values`` are the eigenvalues in the
      order in which they appear on the diagonal of ``T``.
    '''
    output = 'real' if has_paired_blocks(H.dtype) else 'complex'
    T, U = scipy.linalg.schur(H, output=output)
    return T, U, schur2eigvals(T)


def permuteschur(T, U, p):
    '''Reorder a Schur form in place.

    Reorders ``T`` and ``U`` such that the eigenvalue that was at position
    ``p[0]`` comes first, the one at ``p[1]`` second and so on while
    :math:`UTU^*` is preserved. 2x2 blocks are moved as a whole, i.e., the
    position of the second eigenvalue of a complex conjugate pair in ``p``
    is irrelevant.

    :param T: Schur form with ``shape==(n,n)``.
    :param U: Schur vectors with ``shape==(n,n)``.
    :param p: a permutation of ``range(n)``.
    :return: ``T, U``.
    '''
    trexc, = get_lapack_funcs(('trexc',), (T, U))

    # eigenvalue positions held by each block in the current order
    blocks = [list(range(start, start+size)) for start, size in _blocks(T)]
    placed = 0
    here = 0
    done = set()
    for i in p:
        if i in done:
            continue
        j = next(j for j in range(placed, len(blocks)) if i in blocks[j])
        pos = sum(len(block) for block in blocks[:j])
        if pos != here:
            # LAPACK positions are one-based, Schur vectors are updated too
            Tnew, Unew, info = trexc(T, U, pos+1, here+1)
            if info < 0:
                raise ValueError('illegal value in %d-th argument of '
                                 'internal trexc (permuteschur)' % -info)
            T[...] = Tnew
            U[...] = Unew
            if info > 0:
                warnings.warn('Reordering of the Schur form stopped: '
                              'adjacent blocks are too close to swap.')
                return T, U
        block = blocks.pop(j)
        blocks.insert(placed, block)
        done.update(block)
        placed += 1
        here += len(block)
    return T, U


def schur2eigvals(T, k=None):
    '''Eigenvalues of the leading ``k`` by ``k`` block of a Schur form.

    For a real Schur form, the eigenvalues of a 2x2 block are returned with
    positive imaginary part first. The result is real if all returned
    eigenvalues are real.

    :param T: (quasi) upper triangular matrix with ``shape==(n,n)``.
    :param k: (optional) number of eigenvalues. Defaults to ``n``. The
      leading block must not split a 2x2 block.
    '''
    n = T.shape[0]
    k = n if k is None else k
    blocks = _blocks(T, k)
    if blocks and sum(blocks[-1]) > k:
        raise ArgumentError('k = {0} splits a 2x2 block.'.format(k))
    dtype = T.dtype
    if any(size == 2 for _, size in blocks):
        dtype = numpy.result_type(dtype, numpy.complex64)
    values = numpy.zeros(k, dtype=dtype)
    for start, size in blocks:
        if size == 1:
            values[start] = T[start, start]
        else:
            values[start:start+2] = _eig2x2(T[start:start+2, start:start+2])
    return values


def _solve_small(M, rhs, smin):
    '''Solve a 1x1 or 2x2 system, perturbing it if it is (nearly) singular.'''
    if M.shape[0] == 1:
        d = M[0, 0]
        if numpy.abs(d) < smin:
            d = smin
        return rhs / d
    if numpy.abs(numpy.linalg.det(M)) < smin**2:
        M = M + smin*numpy.eye(2)
    return numpy.linalg.solve(M, rhs)


def schur2eigvecs(T, k=None):
    '''Eigenvectors of the leading ``k`` by ``k`` block of a Schur form.

    The eigenvectors are computed by back substitution and are ordered and
    normalized consistently with :py:meth:`schur2eigvals`, i.e., with
    ``R = schur2eigvecs(T, k)`` and ``values = schur2eigvals(T, k)`` it
    holds that :math:`T R = R \\operatorname{diag}(\\text{values})`.

    :return: array ``R`` with ``R.shape==(n,k)``, ``R[k:, :]==0`` and
      columns of unit norm.
    '''
    n = T.shape[0]
    k = n if k is None else k
    values = schur2eigvals(T, k)
    blocks = _blocks(T, k)
    dtype = numpy.result_type(T.dtype, values.dtype)
    R = numpy.zeros((n, k), dtype=dtype)
    eps = numpy.finfo(T.dtype).eps
    smin = max(eps*numpy.linalg.norm(T[:k, :k], 1), numpy.finfo(T.dtype).tiny)

    for b, (start, size) in enumerate(blocks):
        end = start + size
        for i in range(start, end):
            lam = values[i]
            x = numpy.zeros(k, dtype=dtype)
            if size == 1:
                x[i] = 1
            else:
                a, c = T[start, start], T[start+1, start]
                bb, d = T[start, start+1], T[start+1, start+1]
                if numpy.abs(bb) >= numpy.abs(c):
                    x[start], x[start+1] = bb, lam - a
                else:
                    x[start], x[start+1] = lam - d, c
            for start2, size2 in reversed(blocks[:b]):
                end2 = start2 + size2
                rhs = -numpy.dot(T[start2:end2, end2:end], x[end2:end])
                M = T[start2:end2, start2:end2] - lam*numpy.eye(size2)
                x[start2:end2] = _solve_small(M, rhs, smin)
            R[:k, i] = x / numpy.linalg.norm(x)
    return R
