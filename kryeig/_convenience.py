from .krylovschur import KrylovSchur


def eigsolve(
    A,
    x0,
    howmany,
    which="LM",
    krylovdim=30,
    maxiter=100,
    tol=1e-12,
    ortho="dmgs",
    ip_B=None,
    dtype=None,
):
    """Compute a few eigenpairs of a linear operator.

    Runs :py:class:`~kryeig.krylovschur.KrylovSchur` and returns
    ``(values, vectors, info)``. Check ``info.converged`` against
    ``howmany``: if the iteration budget is exhausted, the unconverged
    eigenpairs are returned as well.
    """
    if hasattr(A, "shape"):
        assert len(A.shape) == 2
        assert A.shape[0] == A.shape[1]
        assert A.shape[1] == x0.shape[0]

    out = KrylovSchur(
        A,
        x0,
        howmany,
        which=which,
        krylovdim=krylovdim,
        maxiter=maxiter,
        tol=tol,
        ortho=ortho,
        ip_B=ip_B,
        dtype=dtype,
    )
    return out.values, out.vectors, out.info
