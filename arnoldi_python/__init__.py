"""
arnoldi_python - implicitly restarted Arnoldi eigensolver for general matrices.

Modules:
--------
- algebra   : eigenvalue solvers (restarted Arnoldi, dense Hessenberg kernels)
- common    : logging
- maths     : seeded random vectors

Examples:
---------
>>> import numpy as np
>>> from arnoldi_python import eigs
>>> A = np.diag(np.arange(1.0, 11.0))
>>> res = eigs(A, k=3, ncv=6)
>>> res.eigenvalues.real
array([10.,  9.,  8.])

File    : arnoldi_python/__init__.py
Version : 0.1.0
License : MIT
"""

import importlib

# Package metadata
__version__         = "0.1.0"
__license__         = "MIT"

MODULE_DESCRIPTION  = "Implicitly restarted Arnoldi method for a few eigenpairs of large general operators."

_LAZY_IMPORTS = {
    'algebra'           : ('.algebra', None),
    'common'            : ('.common', None),
    'maths'             : ('.maths', None),
    'eigs'              : ('.algebra.eigen.factory', 'eigs'),
    'GenEigsSolver'     : ('.algebra.eigen.arnoldi', 'GenEigsSolver'),
    'CompInfo'          : ('.algebra.eigen.result', 'CompInfo'),
    'SortRule'          : ('.algebra.eigen.sorting', 'SortRule'),
}

_LAZY_CACHE = {}

def __getattr__(name: str):
    """Lazy import handler - loads submodules only when accessed."""
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
