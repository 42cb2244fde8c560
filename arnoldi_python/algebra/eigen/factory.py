"""
One-call front end for the restarted Arnoldi solver.

Mirrors ``scipy.sparse.linalg.eigs`` in spirit: give an operator and the
number of wanted eigenvalues, get back an EigenResult.

----------------------------------------------
File        : arnoldi_python/algebra/eigen/factory.py
----------------------------------------------
"""

import numpy as np
from numpy.typing import NDArray
from typing import Optional, Callable, Literal, TYPE_CHECKING

from .result    import EigenResult
from .sorting   import RuleLike
from .arnoldi   import GenEigsSolver

if TYPE_CHECKING:
    from ...common.flog import Logger

# ----------------------------------------------------------------------------------------
#! Front end
# ----------------------------------------------------------------------------------------

def eigs(
        A               = None,
        k               : int                                               = 6,
        ncv             : Optional[int]                                     = None,
        which           : Literal['LM', 'SM', 'LR', 'SR', 'LI', 'SI']       = 'LM',
        sorting         : Optional[RuleLike]                                = None,
        tol             : float                                             = 1e-10,
        maxiter         : int                                               = 1000,
        v0              : Optional[NDArray]                                 = None,
        matvec          : Optional[Callable[[NDArray], NDArray]]            = None,
        n               : Optional[int]                                     = None,
        dtype           : Optional[np.dtype]                                = None,
        B               = None,
        logger          : Optional['Logger']                                = None,
        verbose         : bool                                              = False) -> EigenResult:
    r"""
    Find ``k`` eigenvalues and eigenvectors of a general square operator.

    Parameters:
    -----------
        A :
            Matrix or operator (ndarray, scipy sparse matrix, LinearOperator).
        k :
            Number of eigenvalues, 1 <= k <= n - 2.
        ncv :
            Krylov dimension, k + 2 <= ncv <= n (default: min(n, max(2k+1, 20))).
        which :
            Wanted part of the spectrum:
                - 'LM' / 'SM' : largest / smallest magnitude
                - 'LR' / 'SR' : largest / smallest real part
                - 'LI' / 'SI' : largest / smallest |imaginary part|
        sorting :
            Order of the returned values. Defaults to ``which``, while
            ``GenEigsSolver.compute`` on its own defaults to ``'LM'``.
        tol :
            Relative tolerance, a Ritz value theta is accepted once its
            residual estimate drops below tol * max(eps^(2/3), |theta|).
        maxiter :
            Maximum number of restarts.
        v0 :
            Starting vector (seeded random if None).
        matvec, n, dtype :
            Matrix-vector product x -> A x, the dimension and the scalar type,
            used when ``A`` is None.
        B :
            Optional operator defining the inner product x^H B y of the basis.
        logger, verbose :
            Logging of the final summary.

    Returns:
        EigenResult with the converged pairs. Non-convergence is reported
        through ``converged`` / ``info``, never raised.

    Examples:
        >>> A = np.diag(np.arange(1.0, 11.0))
        >>> res = eigs(A, k=3, ncv=6, which='LM')
        >>> res.eigenvalues
        array([10.+0.j,  9.+0.j,  8.+0.j])
    """
    solver = GenEigsSolver(A, k, ncv, matvec=matvec, n=n, dtype=dtype, bop=B,
                           logger=logger, verbose=verbose)
    return solver.solve(init_resid=v0, selection=which, maxit=maxiter, tol=tol,
                        sorting=which if sorting is None else sorting)

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
