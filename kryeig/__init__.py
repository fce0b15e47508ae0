import logging

from . import krylovschur, reflector, schur, utils
from .__about__ import __version__
from ._convenience import eigsolve
from .krylovschur import ConvergenceInfo, KrylovSchur

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "krylovschur",
    "reflector",
    "schur",
    "utils",
    "eigsolve",
    "ConvergenceInfo",
    "KrylovSchur",
    "__version__",
]
