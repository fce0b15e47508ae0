# -*- coding: utf8 -*-
import collections
import logging
import warnings

import numpy

from . import utils
from .reflector import householder_col, householder_row
from .schur import eigsort, hschur, permuteschur, schur2eigvals, \
    schur2eigvecs, sortperm

__all__ = ['ConvergenceInfo', 'KrylovSchur', 'krylov_schur_restart']

logger = logging.getLogger(__name__)


class ConvergenceInfo(collections.namedtuple(
        'ConvergenceInfo',
        ['converged', 'resnorms', 'residuals', 'numiter', 'numops'])):
    '''Convergence information of an eigenvalue computation.

    * ``converged``: number of converged eigenpairs.
    * ``resnorms``: residual norms of the returned eigenpairs.
    * ``residuals``: residual vectors of the returned eigenpairs with
      ``shape==(N,k)``.
    * ``numiter``: number of outer iterations (restarts plus one).
    * ``numops``: number of applications of the operator.

    For real operators, a complex conjugate pair only counts as converged
    once both of its Schur vectors have converged.
    '''
    __slots__ = ()


def krylov_schur_restart(arnoldi, T, U, f, keep):
    r'''Shrink an Arnoldi factorization to ``keep`` sorted Schur vectors.

    Let :math:`AV_m = V_mH_m + \beta v_{m+1}e_m^T` be the factorization held
    by ``arnoldi`` and :math:`H_m = UTU^*` a sorted Schur decomposition with
    :math:`f = \beta U^Te_m`. The basis is replaced by :math:`[V_mU, v_{m+1}]`
    (by applying the Householder reflections that triangularize ``U``),
    truncated to the first ``keep`` Schur vectors and
    :math:`\begin{bmatrix}T_{keep}\\ f_{keep}^T\end{bmatrix}` is reduced to
    Hessenberg form with reflections from the bottom up. Afterwards, ``arnoldi``
    holds an Arnoldi factorization of length ``keep`` whose Krylov subspace
    contains the wanted Schur vectors.

    ``T`` is overwritten with the new Hessenberg matrix and ``U`` is
    destroyed.

    :param arnoldi: a :py:class:`~kryeig.utils.Arnoldi` instance of length
      ``m`` that is not invariant.
    :param T: the sorted Schur form with ``shape==(m,m)``.
    :param U: the Schur vectors with ``shape==(m,m)``.
    :param f: the residual row with ``shape==(m,)``.
    :param keep: the new length, ``T[keep, keep-1]`` has to be zero.
    '''
    m = arnoldi.iter
    V = arnoldi.V
    if not 0 < keep < m:
        raise utils.ArgumentError('keep = {0} has to satisfy 0 < keep < {1}'
                                  .format(keep, m))

    # V[:, :m] <- V[:, :m] U without forming U's action densely
    for j in range(m):
        h, _ = householder_col(U, range(j, m), j)
        h.apply(U, cols=range(j+1, m))
        h.apply_basis(V)

    # truncate: the last basis vector becomes the residual direction
    V[:, keep] = V[:, m]
    H = T
    H[keep, :keep] = f[:keep]

    # restore Hessenberg form in the first keep columns
    for j in range(keep-1, -1, -1):
        h, nu = householder_row(H, j+1, range(0, j+1), j)
        H[j+1, j] = nu
        H[j+1, :j] = 0
        h.apply(H)
        h.apply_right_adj(H, rows=range(0, j+1))
        h.apply_basis(V)

    arnoldi.shrink(keep, H[:keep+1, :keep])


class KrylovSchur(object):
    def __init__(self, A, x0, howmany,
                 which='LM',
                 krylovdim=30,
                 maxiter=100,
                 tol=1e-12,
                 ortho='dmgs',
                 ip_B=None,
                 dtype=None
                 ):
        r'''Restarted Arnoldi method for eigenvalue problems (Krylov-Schur).

        Computes ``howmany`` eigenpairs :math:`Az=\lambda z` of the linear
        operator :math:`A` that are selected by ``which``. An Arnoldi
        factorization of length ``krylovdim`` is built from ``x0``; after
        each extension, the Schur form of the Hessenberg matrix is sorted
        and the factorization is shrunk to a subspace that contains the
        wanted (and the already converged) Schur vectors.

        :param A: a linear operator on :math:`\mathbb{C}^N` (has to be
          compatible with :py:meth:`~kryeig.utils.get_linearoperator`).
        :param x0: the starting vector with ``x0.shape==(N,)`` or
          ``x0.shape==(N,1)``.
        :param howmany: the number of wanted eigenpairs.
        :param which: (optional) the selection criterion, see
          :py:meth:`~kryeig.schur.eigsort`. Defaults to ``'LM'`` (largest
          magnitude).
        :param krylovdim: (optional) the maximal dimension of the Krylov
          subspace. Is capped at ``N`` and has to be larger than ``howmany``.
          Defaults to 30.
        :param maxiter: (optional) the maximal number of outer iterations
          (extensions). Defaults to 100.
        :param tol: (optional) an eigenpair is converged if its residual
          norm is below ``tol``. Defaults to ``1e-12``.
        :param ortho: (optional) orthogonalization of the Arnoldi basis,
          ``'mgs'`` or ``'dmgs'`` (default).
        :param ip_B: (optional) defines the inner product, see
          :py:meth:`~kryeig.utils.inner`.
        :param dtype: (optional) the scalar type of the computation. Is
          promoted with the dtypes of ``A`` and ``x0`` and has to be complex
          if a callable ``A`` returns complex vectors for real input.
          Defaults to the common dtype of ``A`` and ``x0``.

        After the computation, the instance contains the following
        attributes:

          * ``values``: the eigenvalues (``howmany`` of them or one more if
            the last one would split a complex conjugate pair of a real
            operator).
          * ``vectors``: the eigenvectors with ``shape==(N,len(values))``.
          * ``info``: a :py:class:`ConvergenceInfo`.
          * ``history``: the number of converged eigenpairs in each outer
            iteration.
          * ``arnoldi``: the final Arnoldi factorization.

        If fewer than ``howmany`` eigenpairs converge, a warning is issued
        and ``info.converged`` tells how many of the returned eigenpairs can
        be trusted.
        '''
        _, (x0,) = utils.shape_vecs(x0)
        if not isinstance(x0, numpy.ndarray) or x0.ndim != 2 \
                or x0.shape[1] != 1:
            raise utils.ArgumentError('x0 has to be a vector with '
                                      'shape==(N,) or shape==(N,1)')
        self.N = N = x0.shape[0]
        self.krylovdim = min(krylovdim, N)
        self.howmany = howmany
        self.which = which
        self.maxiter = maxiter
        self.tol = tol
        self.ortho = ortho
        self.ip_B = ip_B

        # sanitize arguments before the operator is applied
        eigsort(which)
        if howmany < 1:
            raise utils.ArgumentError('howmany has to be positive')
        if howmany >= self.krylovdim:
            raise utils.ArgumentError(
                'krylov dimension {0} too small to compute {1} eigenvalues'
                .format(self.krylovdim, howmany))
        if maxiter < 1:
            raise utils.ArgumentError('maxiter has to be positive')
        if ortho not in ['mgs', 'dmgs']:
            raise utils.ArgumentError(
                'Invalid value \'{0}\' for argument \'ortho\'. '.format(ortho)
                + 'Valid are mgs and dmgs.')

        self.dtype = utils.find_common_dtype(A, x0)
        if dtype is not None:
            self.dtype = numpy.result_type(self.dtype, dtype)
        x0 = numpy.asarray(x0, dtype=self.dtype)
        self.A = utils.get_linearoperator((N, N), A, dtype=self.dtype)
        if utils.norm(x0, ip_B=ip_B) == 0:
            raise utils.ArgumentError('x0 must not be zero')
        self.x0 = x0

        self.numiter = 0
        '''Number of outer iterations.'''

        self.numops = 0
        '''Number of operator applications.'''

        self.history = []
        '''Number of converged eigenpairs in each outer iteration.'''

        self._solve()

    def _extend(self):
        '''Extend the Arnoldi factorization up to the Krylov dimension.'''
        arnoldi = self.arnoldi
        while arnoldi.iter < self.krylovdim and not arnoldi.invariant:
            arnoldi.advance()
            self.numops += 1
            if arnoldi.resnorm < self.tol:
                break

    def _schur(self):
        '''Compute the sorted Schur form of the current Hessenberg matrix.

        :return: ``T, U, f, converged`` where ``T``, ``U`` and ``f`` are
          views of the work arrays.
        '''
        arnoldi = self.arnoldi
        m = arnoldi.iter
        beta = arnoldi.resnorm
        H = self._HH[:m, :m]
        U = self._UU[:m, :m]
        f = self._HH[m, :m]

        H[...] = arnoldi.get_hessenberg()
        T, Z, values = hschur(H)
        H[...] = T
        U[...] = Z
        permuteschur(H, U, sortperm(values, self.which))
        f[...] = beta * U[m-1, :]

        converged = 0
        while converged < m and numpy.abs(f[converged]) < self.tol:
            converged += 1
        if utils.has_paired_blocks(H.dtype) and 0 < converged < m \
                and H[converged, converged-1] != 0:
            # a conjugate pair converges as a whole
            converged -= 1
        self.history.append(converged)
        logger.debug('iteration %d: dimension %d, %d operator applications, '
                     '%d converged', self.numiter, m, self.numops, converged)
        return H, U, f, converged

    def _get_keep(self, T, converged):
        '''Number of Schur vectors to keep upon restart.'''
        krylovdim = self.krylovdim
        # strictly smaller than krylovdim, at least equal to converged
        keep = (3*krylovdim + 2*converged) // 5
        if utils.has_paired_blocks(T.dtype) and T[keep, keep-1] != 0:
            # do not split a 2x2 block
            keep += 1
            if keep >= krylovdim:
                raise utils.ArgumentError(
                    'krylov dimension {0} too small to compute {1} '
                    'eigenvalues'.format(krylovdim, self.howmany))
        return keep

    def _solve(self):
        krylovdim = self.krylovdim
        self.arnoldi = utils.Arnoldi(self.A, self.x0, maxiter=krylovdim,
                                     ortho=self.ortho, ip_B=self.ip_B)
        dtype = self.arnoldi.dtype

        # work arrays, every iteration operates on views of them
        self._HH = numpy.zeros((krylovdim+1, krylovdim), dtype=dtype)
        self._UU = numpy.zeros((krylovdim, krylovdim), dtype=dtype)

        self.numiter = 1
        self._extend()
        T, U, f, converged = self._schur()

        while self.numiter < self.maxiter and converged < self.howmany:
            if self.arnoldi.invariant or self.arnoldi.resnorm < self.tol:
                warnings.warn(
                    'Krylov subspace of dimension {0} is invariant, only {1} '
                    'eigenvalues can be computed.'.format(self.arnoldi.iter,
                                                          converged))
                break
            self.numiter += 1
            keep = self._get_keep(T, converged)
            logger.debug('restart: keeping %d of %d Schur vectors',
                         keep, self.arnoldi.iter)
            krylov_schur_restart(self.arnoldi, T, U, f, keep)
            self._extend()
            T, U, f, converged = self._schur()

        self._finalize(T, U, converged)

    def _finalize(self, T, U, converged):
        '''Extract eigenpairs and convergence information.'''
        arnoldi = self.arnoldi
        m = arnoldi.iter
        beta = arnoldi.resnorm

        howmany = min(self.howmany, m)
        if utils.has_paired_blocks(T.dtype) and m > howmany \
                and T[howmany, howmany-1] != 0:
            # do not return half of a complex conjugate pair
            howmany += 1

        self.values = schur2eigvals(T, howmany)
        '''Eigenvalues.'''

        W = numpy.dot(U, schur2eigvecs(T, howmany))
        self.vectors = numpy.dot(arnoldi.V[:, :m], W)
        '''Eigenvectors.'''

        resnorms = beta * numpy.abs(W[m-1, :])
        if arnoldi.invariant:
            residuals = numpy.zeros((self.N, howmany), dtype=W.dtype)
        else:
            residuals = beta * arnoldi.V[:, [m]] * W[[m-1], :]

        self.info = ConvergenceInfo(converged, resnorms, residuals,
                                    self.numiter, self.numops)
        '''Convergence information.'''

        if converged < self.howmany:
            warnings.warn('KrylovSchur did not converge: {0} of {1} '
                          'eigenpairs converged after {2} iterations.'
                          .format(converged, self.howmany, self.numiter))

    def __repr__(self):
        return 'KrylovSchur(howmany={0}, which={1}, krylovdim={2}, ' \
            'numiter={3}, numops={4})'.format(
                self.howmany, self.which, self.krylovdim, self.numiter,
                self.numops)
