"""
Linear algebra module.

Currently holds the eigenvalue solvers (``arnoldi_python.algebra.eigen``).
The most used names are re-exported lazily so that importing the package
does not pull in scipy or numba.

Example:
    >>> from arnoldi_python.algebra import eigs
    >>> res = eigs(A, k=4, which='LR')
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    'eigen'                 : ('.eigen', None),  # None means import the whole module
    'GenEigsSolver'         : ('.eigen.arnoldi', 'GenEigsSolver'),
    'ArnoldiEigensolver'    : ('.eigen.arnoldi', 'ArnoldiEigensolver'),
    'eigs'                  : ('.eigen.factory', 'eigs'),
    'EigenResult'           : ('.eigen.result', 'EigenResult'),
    'get_logger'            : ('..common.flog', 'get_global_logger'),
}

_LAZY_CACHE = {}

if TYPE_CHECKING:
    from .                  import eigen
    from .eigen.arnoldi     import GenEigsSolver, ArnoldiEigensolver
    from .eigen.factory     import eigs
    from .eigen.result      import EigenResult

def __getattr__(name: str):
    """
    Module-level __getattr__ for lazy imports.
    """
    if name in _LAZY_CACHE:
        return _LAZY_CACHE[name]
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    module_path, attr_name  = _LAZY_IMPORTS[name]
    module                  = importlib.import_module(module_path, package=__name__)
    result                  = module if attr_name is None else getattr(module, attr_name)
    _LAZY_CACHE[name]       = result
    return result

def __dir__():
    return list(_LAZY_IMPORTS.keys())

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
