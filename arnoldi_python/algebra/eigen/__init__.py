"""
Eigenvalue Solvers Module

Implicitly restarted Arnoldi method for a few eigenvalues of large general
(non-symmetric, real or complex) operators, together with its dense building
blocks.

Available Solvers:
    - GenEigsSolver         : restarted Arnoldi driver (init / compute / queries)
    - ArnoldiEigensolver    : configuration holder with a ``solve(A)`` call
    - eigs                  : one-call front end

Building Blocks:
    - UpperHessenbergEigen, UpperHessenbergEigenComplex : dense Hessenberg eigen-decomposition
    - UpperHessenbergQR, DoubleShiftQR                  : shifted QR steps
    - ArnoldiOp, ArnoldiFactorization                   : Krylov factorization
    - SortRule, sort_eigenvalues                        : selection rules

Standard Result:
    - EigenResult: Standardized return type (eigenvalues, eigenvectors, iterations, converged)

This module uses lazy imports to minimize startup overhead.
"""

from typing import TYPE_CHECKING
import importlib

# -----------------------------------------------------------------------------------------------
# Lazy Import Configuration
# -----------------------------------------------------------------------------------------------

_LAZY_IMPORTS = {
    # Driver
    'GenEigsSolver'                 : ('.arnoldi', 'GenEigsSolver'),
    'ArnoldiEigensolver'            : ('.arnoldi', 'ArnoldiEigensolver'),
    'eigs'                          : ('.factory', 'eigs'),
    # Dense kernels
    'UpperHessenbergEigen'          : ('.hessenberg_eigen', 'UpperHessenbergEigen'),
    'UpperHessenbergEigenComplex'   : ('.hessenberg_eigen', 'UpperHessenbergEigenComplex'),
    'UpperHessenbergQR'             : ('.hessenberg_qr', 'UpperHessenbergQR'),
    'DoubleShiftQR'                 : ('.hessenberg_qr', 'DoubleShiftQR'),
    # Factorization
    'ArnoldiOp'                     : ('.arnoldi_fac', 'ArnoldiOp'),
    'ArnoldiFactorization'          : ('.arnoldi_fac', 'ArnoldiFactorization'),
    'as_operator'                   : ('.arnoldi_fac', 'as_operator'),
    # Rules
    'SortRule'                      : ('.sorting', 'SortRule'),
    'sort_eigenvalues'              : ('.sorting', 'sort_eigenvalues'),
    # Result types and errors
    'EigenResult'                   : ('.result', 'EigenResult'),
    'CompInfo'                      : ('.result', 'CompInfo'),
    'EigsError'                     : ('.result', 'EigsError'),
    'EigsErrorMsg'                  : ('.result', 'EigsErrorMsg'),
    'EigsValueError'                : ('.result', 'EigsValueError'),
    'EigsStateError'                : ('.result', 'EigsStateError'),
    'EigsDecompositionError'        : ('.result', 'EigsDecompositionError'),
}

_LAZY_CACHE = {}

# For type checking only
if TYPE_CHECKING:
    from .arnoldi           import GenEigsSolver, ArnoldiEigensolver
    from .factory           import eigs
    from .hessenberg_eigen  import UpperHessenbergEigen, UpperHessenbergEigenComplex
    from .hessenberg_qr     import UpperHessenbergQR, DoubleShiftQR
    from .arnoldi_fac       import ArnoldiOp, ArnoldiFactorization, as_operator
    from .sorting           import SortRule, sort_eigenvalues
    from .result            import (EigenResult, CompInfo, EigsError, EigsErrorMsg,
                                    EigsValueError, EigsStateError, EigsDecompositionError)

# -----------------------------------------------------------------------------------------------

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
    result                  = getattr(module, attr_name)
    _LAZY_CACHE[name]       = result
    return result

__all__ = list(_LAZY_IMPORTS.keys())

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
