# -*- coding: utf8 -*-
'''
Collection of standard functions.

This module provides the exceptions, inner products, norms, linear operators
and the Arnoldi factorization that the eigensolver is built upon.
'''

import numpy
import warnings
import scipy.sparse
import scipy.sparse.linalg

__all__ = ['ArgumentError', 'LinearOperatorError', 'InnerProductError',
           'Arnoldi', 'IdentityLinearOperator', 'LinearOperator',
           'MatrixLinearOperator', 'arnoldi_res',
           'find_common_dtype', 'get_linearoperator', 'has_paired_blocks',
           'inner', 'norm', 'orthonormality', 'shape_vec', 'shape_vecs']


class ArgumentError(Exception):
    '''Raised when an argument is invalid.

    Analogue to ``ValueError`` which is not used here in order to be able
    to distinguish between built-in errors and ``kryeig`` errors.
    '''


class LinearOperatorError(Exception):
    '''Raised when a :py:class:`LinearOperator` cannot be applied.'''


class InnerProductError(Exception):
    '''Raised when the inner product is indefinite.'''


def find_common_dtype(*args):
    '''Returns the common inexact dtype of numpy and scipy objects.

    Every argument with a ``dtype`` attribute is taken into account, all other
    objects are ignored (most notably None). Integer dtypes are promoted to
    floating point since all computations are carried out in floating point.
    '''
    dtypes = [arg.dtype for arg in args
              if arg is not None and getattr(arg, 'dtype', None) is not None]
    if not dtypes:
        return numpy.dtype(numpy.float64)
    dtype = numpy.result_type(*dtypes)
    if not numpy.issubdtype(dtype, numpy.inexact):
        dtype = numpy.result_type(dtype, numpy.float64)
    return dtype


def has_paired_blocks(dtype):
    '''Does the scalar field represent complex eigenvalues as 2x2 blocks?

    Real fields cannot hold a complex eigenvalue on the diagonal of a Schur
    form, a complex conjugate pair occupies a 2x2 diagonal block instead.
    Complex fields have no such blocks.
    '''
    return not numpy.issubdtype(numpy.dtype(dtype), numpy.complexfloating)


def shape_vec(x):
    '''Take a (n,) ndarray and return it as (n,1) ndarray.'''
    return numpy.reshape(x, (x.shape[0], 1))


def shape_vecs(*args):
    '''Reshape all ndarrays with ``shape==(n,)`` to ``shape==(n,1)``.

    Recognizes ndarrays and ignores all others.'''
    ret_args = []
    flat_vecs = True
    for arg in args:
        if type(arg) is numpy.ndarray:
            if len(arg.shape) == 1:
                arg = shape_vec(arg)
            else:
                flat_vecs = False
        ret_args.append(arg)
    return flat_vecs, ret_args


def inner(X, Y, ip_B=None):
    '''Euclidean and non-Euclidean inner product.

    :param X: numpy array with ``shape==(N,m)``
    :param Y: numpy array with ``shape==(N,n)``
    :param ip_B: (optional) May be one of the following

        * ``None``: Euclidean inner product.
        * a self-adjoint and positive definite operator :math:`B` (as
          ``numpy.array`` or ``LinearOperator``). Then :math:`X^*B Y` is
          returned.
        * a callable which takes 2 arguments X and Y and returns
          :math:`\\langle X,Y\\rangle`.

    :return: numpy array :math:`\\langle X,Y\\rangle` with ``shape==(m,n)``.
    '''
    if ip_B is None or isinstance(ip_B, IdentityLinearOperator):
        return numpy.dot(X.T.conj(), Y)
    (N, m) = X.shape
    (_, n) = Y.shape
    if isinstance(ip_B, LinearOperator) or isinstance(ip_B, numpy.ndarray) \
            or scipy.sparse.issparse(ip_B):
        B = get_linearoperator((N, N), ip_B)
        if m > n:
            return numpy.dot((B*X).T.conj(), Y)
        return numpy.dot(X.T.conj(), B*Y)
    return ip_B(X, Y)


def norm(x, y=None, ip_B=None):
    r'''Compute norm (Euclidean and non-Euclidean).

    :param x: a 2-dimensional ``numpy.array``.
    :param y: a 2-dimensional ``numpy.array``.
    :param ip_B: see :py:meth:`inner`.

    Compute :math:`\sqrt{\langle x,y\rangle}` where the inner product is
    defined via ``ip_B``.
    '''
    # Euclidean inner product?
    if y is None and (ip_B is None
                      or isinstance(ip_B, IdentityLinearOperator)):
        return numpy.linalg.norm(x, 2)
    if y is None:
        y = x
    ip = inner(x, y, ip_B=ip_B)
    nrm_diag = numpy.linalg.norm(numpy.diag(ip), 2)
    nrm_diag_imag = numpy.linalg.norm(numpy.imag(numpy.diag(ip)), 2)
    if nrm_diag_imag > nrm_diag*1e-10:
        raise InnerProductError('inner product defined by ip_B not positive '
                                'definite? ||diag(ip).imag||/||diag(ip)||={0}'
                                .format(nrm_diag_imag/nrm_diag))
    return numpy.sqrt(numpy.linalg.norm(ip, 2))


def get_linearoperator(shape, A, dtype=None):
    """Wraps ``A`` in a :py:class:`LinearOperator`.

    :param shape: the expected shape ``(N, N)``.
    :param A: one of

      * ``None`` (identity),
      * a :py:class:`LinearOperator`,
      * a ``numpy.ndarray``, ``numpy.matrix`` or ``scipy.sparse`` matrix,
      * a ``scipy.sparse.linalg.LinearOperator``,
      * a callable that maps a vector with ``shape==(N,)`` to a vector with
        ``shape==(N,)``.
    :param dtype: (optional) dtype of a callable ``A``. Defaults to float64.
      A callable whose results are complex needs a complex ``dtype``.
    """
    ret = None
    if isinstance(A, LinearOperator):
        ret = A
    elif A is None:
        ret = IdentityLinearOperator(shape)
    elif isinstance(A, numpy.matrix):
        ret = MatrixLinearOperator(numpy.atleast_2d(numpy.asarray(A)))
    elif isinstance(A, numpy.ndarray) or scipy.sparse.issparse(A):
        ret = MatrixLinearOperator(A)
    elif isinstance(A, scipy.sparse.linalg.LinearOperator):
        if getattr(A, 'dtype', None) is None:
            raise ArgumentError('scipy LinearOperator has no dtype.')
        ret = LinearOperator(A.shape, A.dtype, dot=A.matmat)
    elif callable(A):
        def _dot(X):
            return numpy.column_stack([numpy.ravel(A(X[:, i]))
                                       for i in range(X.shape[1])])
        ret = LinearOperator(shape, dtype, dot=_dot)
    else:
        raise TypeError('type not understood')

    # check shape
    if shape != ret.shape:
        raise LinearOperatorError('shape mismatch')

    return ret


def orthonormality(V, ip_B=None):
    """Measure orthonormality of given basis.

    :param V: a matrix :math:`V=[v_1,\\ldots,v_n]` with ``shape==(N,n)``.
    :param ip_B: (optional) the inner product to use, see :py:meth:`inner`.

    :return: :math:`\\| I_n - \\langle V,V \\rangle \\|_2`.
    """
    return norm(numpy.eye(V.shape[1]) - inner(V, V, ip_B=ip_B))


def arnoldi_res(A, V, H, ip_B=None):
    """Measure Arnoldi residual.

    :param A: a linear operator that can be used with
      :py:meth:`get_linearoperator` with ``shape==(N,N)``.
    :param V: Arnoldi basis matrix with ``shape==(N,n)``.
    :param H: Hessenberg matrix: either :math:`\\underline{H}_{n-1}` with
      ``shape==(n,n-1)`` or :math:`H_n` with ``shape==(n,n)`` (if the Arnoldi
      basis spans an A-invariant subspace).
    :param ip_B: (optional) the inner product to use, see :py:meth:`inner`.

    :returns: either :math:`\\|AV_{n-1} - V_n \\underline{H}_{n-1}\\|` or
      :math:`\\|A V_n - V_n H_n\\|` (in the invariant case).
    """
    N = V.shape[0]
    invariant = H.shape[0] == H.shape[1]
    A = get_linearoperator((N, N), A, dtype=V.dtype)
    if invariant:
        res = A*V - numpy.dot(V, H)
    else:
        res = A*V[:, :-1] - numpy.dot(V, H)
    return norm(res, ip_B=ip_B)


class Arnoldi(object):
    def __init__(self, A, v,
                 maxiter=None,
                 ortho='mgs',
                 ip_B=None
                 ):
        """Arnoldi algorithm.

        Computes V and H such that :math:`AV_n=V_{n+1}\\underline{H}_n`.  If
        the Krylov subspace becomes A-invariant then V and H are truncated such
        that :math:`AV_n = V_n H_n`.

        The arrays for V and H are allocated once for ``maxiter`` iterations.
        The factorization can be truncated with :py:meth:`shrink` and then be
        extended again with :py:meth:`advance`.

        :param A: a linear operator that can be used with
          :py:meth:`get_linearoperator` with ``shape==(N,N)``.
        :param v: the initial vector with ``shape==(N,1)``.
        :param maxiter: (optional) maximal number of iterations. Default: N.
        :param ortho: (optional) orthogonalization algorithm: may be one of

            * ``'mgs'``: modified Gram-Schmidt (default).
            * ``'dmgs'``: double Modified Gram-Schmidt.
        :param ip_B: (optional) defines the inner product to use. See
          :py:meth:`inner`.
        """
        N = v.shape[0]

        # save parameters
        self.dtype = find_common_dtype(A, v)
        self.A = get_linearoperator((N, N), A, dtype=self.dtype)
        self.maxiter = N if maxiter is None else maxiter
        self.ortho = ortho
        self.ip_B = ip_B

        if ortho not in ['mgs', 'dmgs']:
            raise ArgumentError(
                'Invalid value \'{0}\' for argument \'ortho\'. '.format(ortho)
                + 'Valid are mgs and dmgs.')
        self.reorthos = 1 if ortho == 'dmgs' else 0

        # number of iterations
        self.iter = 0
        # Arnoldi basis
        self.V = numpy.zeros((N, self.maxiter+1), dtype=self.dtype)
        # Hessenberg matrix
        self.H = numpy.zeros((self.maxiter+1, self.maxiter),
                             dtype=self.dtype)
        # flag indicating if Krylov subspace is invariant
        self.invariant = False

        self.vnorm = norm(v, ip_B=ip_B)
        if self.vnorm > 0:
            self.V[:, [0]] = v / self.vnorm
        else:
            self.invariant = True

    @property
    def resnorm(self):
        '''Norm of the residual :math:`f` in :math:`AV_n = V_nH_n + fe_n^T`.
        '''
        k = self.iter
        if self.invariant or k == 0:
            return 0.
        return numpy.abs(self.H[k, k-1])

    def advance(self):
        """Carry out one iteration of Arnoldi."""
        if self.iter >= self.maxiter:
            raise ArgumentError('Maximum number of iterations reached.')
        if self.invariant:
            raise ArgumentError('Krylov subspace was found to be invariant '
                                'in the previous iteration.')

        k = self.iter

        # the matrix-vector multiplication
        Av = self.A * self.V[:, [k]]
        if numpy.iscomplexobj(Av) and not numpy.iscomplexobj(self.V):
            raise ArgumentError(
                'The operator returned complex values for a real '
                'factorization. Pass a complex dtype or starting vector.')
        Av = numpy.array(Av, dtype=self.dtype)

        # (double) modified Gram-Schmidt
        for reortho in range(self.reorthos+1):
            for j in range(k+1):
                alpha = inner(self.V[:, [j]], Av, ip_B=self.ip_B)[0, 0]
                self.H[j, k] += alpha
                Av -= alpha * self.V[:, [j]]
        hnext = norm(Av, ip_B=self.ip_B)
        self.H[k+1, k] = hnext
        if hnext <= 1e-14 * numpy.linalg.norm(self.H[:k+2, :k+1], 2):
            self.invariant = True
        else:
            self.V[:, [k+1]] = Av / hnext

        # increase iteration counter
        self.iter += 1

    def shrink(self, keep, H=None):
        """Truncate the factorization to its first ``keep`` basis vectors.

        The caller is responsible for ``V[:, :keep+1]`` and (if ``H`` is not
        provided) ``self.H[:keep+1, :keep]`` forming a valid Arnoldi
        relation :math:`AV_{keep} = V_{keep+1}\\underline{H}_{keep}`.

        :param keep: the new length with ``1 <= keep <= iter``.
        :param H: (optional) the extended Hessenberg matrix with
          ``shape==(keep+1, keep)`` that replaces the leading block.
        """
        if keep < 1 or keep > self.iter:
            raise ArgumentError('cannot shrink factorization of length {0} '
                                'to {1}'.format(self.iter, keep))
        if H is not None:
            if H.shape != (keep+1, keep):
                raise ArgumentError('H has to have shape (keep+1, keep).')
            self.H[:keep+1, :keep] = H
        self.H[keep+1:, :] = 0
        self.H[:, keep:] = 0
        self.iter = keep
        self.invariant = self.H[keep, keep-1] == 0
        if self.invariant:
            warnings.warn('Residual vanished while shrinking the Arnoldi '
                          'factorization to length {0}.'.format(keep))

    def get(self):
        k = self.iter
        if self.invariant:
            return self.V[:, :k], self.H[:k, :k]
        return self.V[:, :k+1], self.H[:k+1, :k]

    def get_hessenberg(self):
        '''Returns the square Hessenberg matrix :math:`H_n`.'''
        k = self.iter
        return self.H[:k, :k]


class LinearOperator(object):
    """Linear operator.

    Is partly based on the LinearOperator from scipy (BSD License).
    """
    def __init__(self, shape, dtype, dot):
        if len(shape) != 2 or not isinstance(shape[0], (int, numpy.integer)) \
                or not isinstance(shape[1], (int, numpy.integer)):
            raise LinearOperatorError('shape must be (m,n) with m and n '
                                      'integer')
        self.shape = shape
        self.dtype = numpy.dtype(dtype)  # defaults to float64
        self._dot = dot

    def dot(self, X):
        X = numpy.asanyarray(X)
        m, n = self.shape
        if X.shape[0] != n:
            raise LinearOperatorError('dimension mismatch')
        if X.shape[1] == 0:
            return numpy.zeros(X.shape)
        return self._dot(X)

    def __mul__(self, X):
        try:
            if isinstance(X, IdentityLinearOperator):
                return self
            elif isinstance(self, IdentityLinearOperator):
                return X
            return self.dot(X)
        except LinearOperatorError:
            return NotImplemented

    def __repr__(self):
        m, n = self.shape
        return '<%dx%d %s with dtype=%s>' \
            % (m, n, self.__class__.__name__, str(self.dtype))


class IdentityLinearOperator(LinearOperator):
    def __init__(self, shape):
        super(IdentityLinearOperator, self).__init__(shape, numpy.dtype(None),
                                                     self._dot)

    def _dot(self, X):
        return X


class MatrixLinearOperator(LinearOperator):
    def __init__(self, A):
        super(MatrixLinearOperator, self).__init__(A.shape, A.dtype,
                                                   self._dot)
        self._A = A

    def _dot(self, X):
        return self._A.dot(X)

    def __repr__(self):
        return self._A.__repr__()
