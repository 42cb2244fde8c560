"""
Eigenvalue Solver Result Types

Standardized result containers, status codes and errors for the
implicitly restarted Arnoldi eigensolver.
"""

import numpy as np
from enum import Enum, auto, unique
from typing import Optional, NamedTuple
from numpy.typing import NDArray

# ---------------------------------------------------------------------------------
#! Status of a computation
# ---------------------------------------------------------------------------------

@unique
class CompInfo(Enum):
    """
    Status of the eigenvalue computation, set once at the end of ``compute``.
    """
    NOT_COMPUTED    = auto()    # compute() has not been called yet
    SUCCESSFUL      = auto()    # all requested eigenvalues converged
    NOT_CONVERGING  = auto()    # maxit exhausted (or no room to restart)
    NUMERICAL_ISSUE = auto()    # reserved for failures of the dense kernels

    def __str__(self):
        return self.name.replace('_', ' ').title()

# ---------------------------------------------------------------------------------
#! Errors
# ---------------------------------------------------------------------------------

class EigsErrorMsg(Enum):
    '''
    Enumeration class for eigensolver error messages.
    '''
    INVALID_NEV         = 201
    INVALID_NCV         = 202
    NOT_SQUARE          = 203
    DIM_MISMATCH        = 204
    INVALID_RULE        = 205
    ZERO_START_VECTOR   = 206
    NOT_COMPUTED        = 207
    SCHUR_FAILED        = 208
    INVALID_INPUT       = 209

    def __str__(self):
        return self.name.replace('_', ' ').title()

    def __repr__(self):
        return f"<{self.__class__.__name__}.{self.name}: '{str(self)}'>"

class EigsError(Exception):
    '''
    Base class for exceptions in the eigensolver module.
    '''
    def __init__(self, code: EigsErrorMsg, message: Optional[str] = None):
        self.code       = code
        self.message    = message if message else str(code)
        super().__init__(self.message)

    def __str__(self):
        return f"[EigsError {self.code.name} ({self.code.value})]: {self.message}"

    def __repr__(self):
        return self.__str__()

class EigsValueError(EigsError, ValueError):
    ''' Invalid argument: bad sizes, non-square matrices, unknown rules. '''

class EigsStateError(EigsError, RuntimeError):
    ''' Logic error: results requested before a successful computation. '''

class EigsDecompositionError(EigsError, RuntimeError):
    ''' The underlying dense (Schur) decomposition did not succeed. '''

# ---------------------------------------------------------------------------------

class EigenSolver:
    """
    Marker class for eigenvalue solver types.
    """

    @staticmethod
    def is_dense_solver() -> bool:
        """Indicate if the solver is for dense matrices."""
        return False

    @staticmethod
    def is_sparse_solver() -> bool:
        """Indicate if the solver only needs matrix-vector products."""
        return False

    @staticmethod
    def is_iterative_solver() -> bool:
        """Indicate if the solver is iterative."""
        return False

    # ----------------------------------------------------------------------------

    def solve(self, *args, **kwargs) -> 'EigenResult':
        """
        Solve the eigenvalue problem.

        Returns:
            EigenResult: Standardized result container.
        """
        raise NotImplementedError("This method should be implemented by subclasses.")

# ---------------------------------------------------------------------------------

class EigenResult(NamedTuple):
    r"""
    Standardized result from eigenvalue solvers.

    Attributes:
        eigenvalues:
            Converged eigenvalues in the requested sort order (complex)
        eigenvectors:
            Corresponding eigenvectors as columns (n x nconv, complex)
        subspacevectors:
            Krylov basis V at the end of the computation
        iterations:
            Number of restart iterations performed
        converged:
            Whether all requested eigenvalues converged
        residual_norms:
            Residual norms ||A v - \lambda v|| for each returned eigenpair
        nconv:
            Number of converged eigenvalues (at most nev)
        num_operations:
            Number of matrix-vector products with A
        info:
            Final status of the computation
    """
    eigenvalues     : NDArray
    eigenvectors    : NDArray
    subspacevectors : Optional[NDArray] = None
    iterations      : Optional[int]     = None
    converged       : bool              = True
    residual_norms  : Optional[NDArray] = None
    nconv           : int               = 0
    num_operations  : Optional[int]     = None
    info            : CompInfo          = CompInfo.NOT_COMPUTED

    def __repr__(self):
        n_eigs      = len(self.eigenvalues) if self.eigenvalues is not None else 0
        iter_str    = f"{self.iterations}" if self.iterations is not None else "N/A"
        return (f"EigenResult(n_eigenvalues={n_eigs}, "
                f"converged={self.converged}, iterations={iter_str}, info={self.info})")

    def __str__(self):
        return f'converged={self.converged}, iterations={self.iterations}, nconv={self.nconv}'

    @property
    def max_residual(self) -> float:
        """Largest residual norm among the returned pairs (0 when nothing converged)."""
        if self.residual_norms is None or len(self.residual_norms) == 0:
            return 0.0
        return float(np.max(self.residual_norms))

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
