"""
Implicitly Restarted Arnoldi Eigenvalue Solver

Finds a few eigenvalues (and eigenvectors) of a general, possibly
non-symmetric and possibly complex, matrix that is only available through
matrix-vector products.

Mathematical Background:
    An m-step Arnoldi factorization (m = ncv)

        A V_m = V_m H_m + f_m e_m^H

    projects A onto the Krylov subspace K_m(A, v_1). The eigenvalues of the
    small upper Hessenberg H_m (Ritz values) approximate eigenvalues of A,
    and |e_m^H y| * ||f_m|| bounds the residual of the Ritz pair (theta, V y).

    Instead of growing m, the factorization is restarted implicitly: the
    unwanted Ritz values are used as shifts of QR steps on H_m, which filters
    the starting vector and compresses the factorization to k < m steps
    without any new matrix-vector product. Real operators use real double
    shifts for complex conjugate pairs, so all arithmetic stays real.

Key Features:
    - Any square operator: ndarray, scipy sparse matrix, LinearOperator or callable
    - Real (float64) and complex (complex128) scalar domains
    - Six selection / sorting rules (LM, LR, LI, SM, SR, SI)
    - Adaptive restart size with exact conjugate-pair handling
    - Optional B operator defining the inner product of the Krylov basis

References:
    [1] R. B. Lehoucq, D. C. Sorensen, C. Yang, ARPACK Users' Guide, SIAM (1998).
    [2] D. C. Sorensen, Implicit application of polynomial filters in a
        k-step Arnoldi method, SIAM J. Matrix Anal. Appl. 13, 357 (1992).

----------------------------------------
file    : arnoldi_python/algebra/eigen/arnoldi.py
----------------------------------------
"""

import numpy as np
from numpy.typing import NDArray
from typing import Optional, Callable, Literal, TYPE_CHECKING

from .result        import (EigenResult, EigenSolver, CompInfo, EigsErrorMsg,
                            EigsValueError, EigsStateError)
from .sorting       import SortRule, RuleLike, SortStrategy, sort_eigenvalues
from .hessenberg_eigen import hessenberg_eigen_for
from .restart       import restart_engine_for
from .arnoldi_fac   import ArnoldiOp, ArnoldiFactorization, as_operator
from ...maths.random import random_vector
from ...common.flog import get_global_logger

if TYPE_CHECKING:
    from ...common.flog import Logger

_EPS    = np.finfo(np.float64).eps
_NEAR_0 = np.finfo(np.float64).tiny * 10.0

# ---------------------------------------------------------------------------------

def default_ncv(n: int, nev: int) -> int:
    ''' Default Krylov dimension: min(n, max(2 nev + 1, 20)). '''
    return min(n, max(2 * nev + 1, 20))

class GenEigsSolver(EigenSolver):
    """
    Implicitly restarted Arnoldi method for ``nev`` eigenvalues of a general operator.

    Args:
        op:
            The operator A: numpy array, scipy sparse matrix or LinearOperator.
            May be None when ``matvec`` and ``n`` are given.
        nev:
            Number of requested eigenvalues, 1 <= nev <= n - 2.
        ncv:
            Krylov subspace dimension, nev + 2 <= ncv <= n. A larger ncv
            converges in fewer restarts at the cost of memory. Defaults to
            min(n, max(2 nev + 1, 20)).
        matvec, n, dtype:
            Callable x -> A x with the dimension and scalar type of A.
        bop:
            Optional operator B defining the inner product <x, y> = x^H B y.
        sort_strategy:
            Callable (values, rule) -> index permutation used for the final
            ordering of the converged values. Defaults to the built-in rules.
        logger:
            Logger for progress messages (global logger if None).
        verbose:
            Report the summary of each computation at info level.

    Example:
        >>> solver = GenEigsSolver(A, nev=3, ncv=10)
        >>> solver.init()
        >>> nconv = solver.compute(selection='LM')
        >>> if solver.info() is CompInfo.SUCCESSFUL:
        ...     evals = solver.eigenvalues()
    """

    def __init__(self,
                op              = None,
                nev             : int                       = 6,
                ncv             : Optional[int]             = None,
                *,
                matvec          : Optional[Callable[[NDArray], NDArray]] = None,
                n               : Optional[int]             = None,
                dtype           = None,
                bop             = None,
                sort_strategy   : Optional[SortStrategy]    = None,
                logger          : Optional['Logger']        = None,
                verbose         : bool                      = False):

        self._op        = ArnoldiOp(as_operator(A=op, matvec=matvec, n=n, dtype=dtype), bop)
        self._n         = self._op.n
        self._nev       = int(nev)
        self._ncv       = default_ncv(self._n, self._nev) if ncv is None else int(ncv)

        if self._nev < 1 or self._nev > self._n - 2:
            raise EigsValueError(EigsErrorMsg.INVALID_NEV,
                    f"nev must satisfy 1 <= nev <= n - 2, n is the size of matrix (nev={self._nev}, n={self._n})")
        if self._ncv <= self._nev + 1 or self._ncv > self._n:
            raise EigsValueError(EigsErrorMsg.INVALID_NCV,
                    f"ncv must satisfy nev + 2 <= ncv <= n, n is the size of matrix (ncv={self._ncv}, nev={self._nev}, n={self._n})")

        # scalar domain is fixed from here on
        self._dtype         = self._op.dtype
        self._eigen_cls     = hessenberg_eigen_for(self._dtype)
        self._restarter     = restart_engine_for(self._dtype)
        self._fac           = ArnoldiFactorization(self._op, self._ncv)
        self._sort_strategy = sort_strategy if sort_strategy is not None else sort_eigenvalues
        self._logger        = logger if logger is not None else get_global_logger()
        self.verbose        = verbose

        self._nmatop        = 0
        self._niter         = 0
        self._ritz_val      = np.zeros(self._ncv, dtype=np.complex128)
        self._ritz_vec      = np.zeros((self._ncv, self._nev), dtype=np.complex128)
        self._ritz_est      = np.zeros(self._ncv, dtype=np.complex128)
        self._ritz_conv     = np.zeros(self._nev, dtype=bool)
        self._info          = CompInfo.NOT_COMPUTED
        self._initialized   = False

    # ----------------------------------------------------------------------------
    #! Properties
    # ----------------------------------------------------------------------------

    @staticmethod
    def is_sparse_solver() -> bool:
        return True

    @staticmethod
    def is_iterative_solver() -> bool:
        return True

    @property
    def n(self) -> int:
        return self._n

    @property
    def nev(self) -> int:
        return self._nev

    @property
    def ncv(self) -> int:
        return self._ncv

    @property
    def dtype(self) -> np.dtype:
        return self._dtype

    @property
    def is_complex(self) -> bool:
        return self._op.is_complex

    @property
    def factorization(self) -> ArnoldiFactorization:
        return self._fac

    def ritz_values(self) -> NDArray:
        ''' All ncv Ritz values in the current order. '''
        return self._ritz_val.copy()

    def ritz_estimates(self) -> NDArray:
        ''' Last components of the Ritz vectors of H (residual estimates up to ||f||). '''
        return self._ritz_est.copy()

    def ritz_converged(self) -> NDArray:
        ''' Convergence flags of the first nev Ritz values. '''
        return self._ritz_conv.copy()

    # ----------------------------------------------------------------------------
    #! Internals
    # ----------------------------------------------------------------------------

    def _num_converged(self, tol: float) -> int:
        ''' Mark Ritz values with |est| ||f|| < tol max(eps^(2/3), |theta|). '''
        eps23           = np.power(_EPS, 2.0 / 3.0)
        thresh          = tol * np.maximum(np.abs(self._ritz_val[:self._nev]), eps23)
        resid           = np.abs(self._ritz_est[:self._nev]) * self._fac.f_norm
        self._ritz_conv = resid < thresh
        return int(np.count_nonzero(self._ritz_conv))

    def _nev_adjusted(self, nconv: int) -> int:
        ''' Size of the factorization kept by the next restart. '''
        nev_new = self._nev
        nev_new += int(np.count_nonzero(np.abs(self._ritz_est[self._nev:]) < _NEAR_0))

        # keep more of the subspace once some values have converged
        nev_new += min(nconv, (self._ncv - nev_new) // 2)
        if nev_new == 1 and self._ncv >= 6:
            nev_new = self._ncv // 2
        elif nev_new == 1 and self._ncv > 3:
            nev_new = 2

        if nev_new > self._ncv - 2:
            nev_new = self._ncv - 2

        # never split a conjugate pair
        last = self._ritz_val[nev_new - 1]
        if last.imag != 0 and last == np.conj(self._ritz_val[nev_new]):
            nev_new += 1
        return nev_new

    def _retrieve_ritzpair(self, selection: SortRule) -> None:
        ''' Eigen-decompose H and order all ncv Ritz pairs by the selection rule. '''
        decomp  = self._eigen_cls(self._fac.matrix_H)
        evals   = decomp.eigenvalues()
        evecs   = decomp.eigenvectors()
        ind     = sort_eigenvalues(evals, selection)

        self._ritz_val[:]   = evals[ind]
        self._ritz_est[:]   = evecs[self._ncv - 1, ind]
        self._ritz_vec[:, :] = evecs[:, ind[:self._nev]]

    def _restart(self, k: int, selection: SortRule) -> None:
        ''' Implicit restart with the shifts ritz_val[k:], then grow back to ncv. '''
        if k >= self._ncv:
            return
        Q = np.eye(self._ncv, dtype=self._dtype)
        self._restarter.run(self._ritz_val, k, self._fac, Q)
        self._fac.compress_V(Q)
        self._nmatop += self._fac.factorize_from(k, self._ncv)
        self._retrieve_ritzpair(selection)

    def _sort_ritzpair(self, sorting: SortRule) -> None:
        ''' Reorder the first nev Ritz pairs (and their flags) by the sorting rule. '''
        nev = self._nev
        ind = np.asarray(self._sort_strategy(self._ritz_val[:nev].copy(), sorting), dtype=np.intp)
        if ind.shape != (nev,):
            raise EigsValueError(EigsErrorMsg.INVALID_INPUT,
                    f"Sort strategy must return {nev} indices, got shape {ind.shape}")
        self._ritz_val[:nev]    = self._ritz_val[:nev][ind]
        self._ritz_vec[:, :]    = self._ritz_vec[:, ind]
        self._ritz_conv[:]      = self._ritz_conv[ind]

    # ----------------------------------------------------------------------------
    #! Public interface
    # ----------------------------------------------------------------------------

    def init(self, init_resid: Optional[NDArray] = None) -> None:
        '''
        Reset the solver and start the factorization.

        Args:
            init_resid:
                Starting vector of length n. A seeded random vector
                (Uniform(-0.5, 0.5), seed 0) is used when None.
        '''
        self._ritz_val.fill(0.0)
        self._ritz_vec.fill(0.0)
        self._ritz_est.fill(0.0)
        self._ritz_conv.fill(False)
        self._nmatop    = 0
        self._niter     = 0
        self._info      = CompInfo.NOT_COMPUTED

        if init_resid is None:
            init_resid = random_vector(self._n, self._dtype, seed=0)
        self._nmatop       += self._fac.init(init_resid)
        self._initialized   = True

    def compute(self,
                selection   : RuleLike  = 'LM',
                maxit       : int       = 1000,
                tol         : float     = 1e-10,
                sorting     : RuleLike  = 'LM') -> int:
        '''
        Run the restarted Arnoldi iteration.

        Args:
            selection:
                Rule picking the wanted part of the spectrum.
            maxit:
                Maximum number of restarts.
            tol:
                Relative tolerance of the convergence test.
            sorting:
                Rule ordering the returned eigenvalues.

        Returns:
            Number of converged eigenvalues (at most nev).
        '''
        if not self._initialized:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "init() must be called before compute()")
        selection   = SortRule.from_any(selection)
        sorting     = SortRule.from_any(sorting)
        if maxit < 0:
            raise EigsValueError(EigsErrorMsg.INVALID_INPUT, f"maxit must be non-negative, got {maxit}")

        self._logger.title(f" IRAM {selection.value} ", desired_size=50, fill='=', lvl=0, verbose=self.verbose)
        self._nmatop += self._fac.factorize_from(1, self._ncv)
        self._retrieve_ritzpair(selection)

        nconv   = 0
        i       = 0
        while i < maxit:
            nconv = self._num_converged(tol)
            if nconv >= self._nev:
                break

            nev_adj = self._nev_adjusted(nconv)
            self._logger.debug(f"iter={i}, nconv={nconv}, nev_adj={nev_adj}", lvl=2)
            if nev_adj >= self._ncv:
                self._logger.warning(f"Restart size {nev_adj} leaves no room in ncv={self._ncv}, stopping", lvl=1)
                break
            self._restart(nev_adj, selection)
            i += 1
        else:
            # flags must describe the Ritz values that are reported
            nconv = self._num_converged(tol)

        self._sort_ritzpair(sorting)

        self._niter    += i + 1
        self._info      = CompInfo.SUCCESSFUL if nconv >= self._nev else CompInfo.NOT_CONVERGING
        self._logger.info(f"IRAM ({'complex' if self.is_complex else 'real'}, n={self._n}, nev={self._nev}, ncv={self._ncv}): "
                          f"{self._info}, nconv={nconv}, iterations={self._niter}, matvecs={self._nmatop}",
                          lvl=1, verbose=self.verbose,
                          color='green' if self._info is CompInfo.SUCCESSFUL else 'yellow')
        return min(self._nev, nconv)

    def info(self) -> CompInfo:
        return self._info

    def num_iterations(self) -> int:
        return self._niter

    def num_operations(self) -> int:
        return self._nmatop

    def eigenvalues(self) -> NDArray:
        '''
        Converged eigenvalues in the final sort order (complex array, empty
        when nothing converged).
        '''
        return self._ritz_val[:self._nev][self._ritz_conv].copy()

    def eigenvectors(self, nvec: Optional[int] = None) -> NDArray:
        '''
        Converged eigenvectors as columns (n x min(nvec, nconv)), matching
        ``eigenvalues()``. All converged vectors when ``nvec`` is None.
        '''
        nconv   = int(np.count_nonzero(self._ritz_conv))
        nvec    = nconv if nvec is None else max(0, min(int(nvec), nconv))
        if nvec == 0:
            return np.zeros((self._n, 0), dtype=np.complex128)
        cols    = self._ritz_vec[:, self._ritz_conv][:, :nvec]
        return self._fac.matrix_V @ cols

    # ----------------------------------------------------------------------------

    def residual_norms(self, eigenvalues: NDArray, eigenvectors: NDArray) -> NDArray:
        ''' ||A v - lambda v|| for each pair, not counted in num_operations(). '''
        res = np.zeros(len(eigenvalues), dtype=float)
        for i, (lam, vec) in enumerate(zip(eigenvalues, eigenvectors.T)):
            res[i] = np.linalg.norm(np.asarray(self._op.op.matvec(vec)).reshape(-1) - lam * vec)
        return res

    def solve(self,
            init_resid          : Optional[NDArray] = None,
            selection           : RuleLike          = 'LM',
            maxit               : int               = 1000,
            tol                 : float             = 1e-10,
            sorting             : Optional[RuleLike]= None,
            compute_residuals   : bool              = True) -> EigenResult:
        '''
        init() + compute() in one call, packed into an EigenResult.
        ``sorting`` defaults to ``selection`` (compute() alone defaults to 'LM').
        '''
        sorting = selection if sorting is None else sorting
        self.init(init_resid)
        nconv   = self.compute(selection=selection, maxit=maxit, tol=tol, sorting=sorting)
        evals   = self.eigenvalues()
        evecs   = self.eigenvectors()
        return EigenResult(
            eigenvalues     = evals,
            eigenvectors    = evecs,
            subspacevectors = self._fac.matrix_V.copy(),
            iterations      = self._niter,
            converged       = self._info is CompInfo.SUCCESSFUL,
            residual_norms  = self.residual_norms(evals, evecs) if compute_residuals else None,
            nconv           = nconv,
            num_operations  = self._nmatop,
            info            = self._info)

# ---------------------------------------------------------------------------------

class ArnoldiEigensolver(EigenSolver):
    """
    Configuration holder around GenEigsSolver, mirroring the other solvers:
    parameters go to the constructor, the operator to ``solve``.

    Args:
        k:
            Number of eigenvalues to compute.
        which:
            'LM', 'SM', 'LR', 'SR', 'LI' or 'SI'.
        ncv:
            Krylov dimension (default: min(n, max(2k+1, 20))).
        max_iter:
            Maximum number of restarts (default: 1000).
        tol:
            Relative convergence tolerance (default: 1e-10).
        sorting:
            Order of the returned values (default: same as ``which``,
            unlike ``GenEigsSolver.compute`` which defaults to 'LM').

    Example:
        >>> solver = ArnoldiEigensolver(k=5, which='LR')
        >>> result = solver.solve(A)
        >>> print(result.eigenvalues)
    """

    def __init__(self,
                k           : int                                               = 6,
                which       : Literal['LM', 'SM', 'LR', 'SR', 'LI', 'SI']       = 'LM',
                ncv         : Optional[int]                                     = None,
                max_iter    : int                                               = 1000,
                tol         : float                                             = 1e-10,
                sorting     : Optional[RuleLike]                                = None,
                logger      : Optional['Logger']                                = None,
                verbose     : bool                                              = False):
        if k < 1:
            raise EigsValueError(EigsErrorMsg.INVALID_NEV, f"k must be >= 1, got {k}")
        self.k          = k
        self.which      = SortRule.from_any(which)
        self.sorting    = self.which if sorting is None else SortRule.from_any(sorting)
        self.ncv        = ncv
        self.max_iter   = max_iter
        self.tol        = tol
        self.logger     = logger
        self.verbose    = verbose

    @staticmethod
    def is_sparse_solver() -> bool:
        return True

    @staticmethod
    def is_iterative_solver() -> bool:
        return True

    def solve(self,
            A       = None,
            matvec  : Optional[Callable[[NDArray], NDArray]] = None,
            v0      : Optional[NDArray] = None,
            n       : Optional[int]     = None,
            B       = None,
            dtype   = None) -> EigenResult:
        """
        Solve for eigenvalues and eigenvectors.

        Args:
            A: Matrix or operator (if provided, matvec is ignored)
            matvec: Matrix-vector product function (if A not provided)
            v0: Starting vector (seeded random if None)
            n: Dimension of the problem (required with matvec)
            B: Optional operator of the inner product
            dtype: Scalar type of matvec (float64 if None)

        Returns:
            EigenResult with eigenvalues, eigenvectors and convergence info
        """
        solver = GenEigsSolver(A, self.k, self.ncv, matvec=matvec, n=n, dtype=dtype, bop=B,
                               logger=self.logger, verbose=self.verbose)
        return solver.solve(init_resid=v0, selection=self.which, maxit=self.max_iter,
                            tol=self.tol, sorting=self.sorting)

# ---------------------------------------------------------------------------------
#! EOF
# ---------------------------------------------------------------------------------
