'''
file    : arnoldi_python/algebra/eigen/arnoldi_fac.py
desc    : Operator wrapper and restartable Arnoldi factorization.

The factorization keeps

    A V_k = V_k H_k + f_k e_k^H,        V_k^H B V_k = I,    V_k^H B f_k = 0

for a k-step Krylov basis V_k (n x k), an upper Hessenberg H_k (k x k) and a
residual f_k. It can be extended from k to m steps and compressed back after
a shifted QR step on H, which is what the implicit restart needs.
'''

import numpy as np
from numpy.typing import NDArray
from typing import Callable, Optional

from scipy.sparse.linalg import LinearOperator, aslinearoperator

from .result import EigsErrorMsg, EigsValueError, EigsStateError
from ...maths.random import random_vector

_EPS    = np.finfo(np.float64).eps
_NEAR_0 = np.finfo(np.float64).tiny * 10.0

# ##############################################################################
#! Operators
# ##############################################################################

def as_operator(A           = None,
                matvec      : Optional[Callable[[NDArray], NDArray]] = None,
                n           : Optional[int] = None,
                dtype       = None) -> LinearOperator:
    '''
    Turn a dense array, a sparse matrix, a LinearOperator or a bare
    matrix-vector callable into a square scipy LinearOperator.

    Args:
        A:
            Matrix-like object (numpy array, scipy sparse matrix or LinearOperator).
        matvec:
            Callable x -> A x, used when ``A`` is None.
        n:
            Dimension, required together with ``matvec``.
        dtype:
            Scalar type of the operator (float64 if not given with ``matvec``).
    '''
    if A is not None:
        if isinstance(A, LinearOperator):
            op = A
        else:
            if not hasattr(A, 'shape') or not hasattr(A, 'dtype'):
                A = np.asarray(A)
            if A.ndim != 2:
                raise EigsValueError(EigsErrorMsg.NOT_SQUARE, f"Operator must be 2D, got ndim={A.ndim}")
            op = aslinearoperator(A)
    elif matvec is not None:
        if n is None:
            raise EigsValueError(EigsErrorMsg.INVALID_INPUT, "Dimension n must be given together with matvec")
        op = LinearOperator((n, n), matvec=matvec, dtype=np.float64 if dtype is None else dtype)
    else:
        raise EigsValueError(EigsErrorMsg.INVALID_INPUT, "Either A or matvec must be provided")

    if op.shape[0] != op.shape[1]:
        raise EigsValueError(EigsErrorMsg.NOT_SQUARE, f"Operator must be square, got shape {op.shape}")
    return op

class ArnoldiOp:
    '''
    Operator A together with the inner product <x, y> = x^H B y used by the
    factorization. Without ``bop`` the product is the Euclidean one.
    '''

    def __init__(self, op, bop = None):
        self.op     = as_operator(op)
        self.n      = self.op.shape[0]
        self.bop    = None
        if bop is not None:
            self.bop = as_operator(bop)
            if self.bop.shape != self.op.shape:
                raise EigsValueError(EigsErrorMsg.DIM_MISMATCH,
                        f"B operator shape {self.bop.shape} does not match A shape {self.op.shape}")

        cplx        = np.issubdtype(np.dtype(self.op.dtype), np.complexfloating)
        if self.bop is not None:
            cplx    = cplx or np.issubdtype(np.dtype(self.bop.dtype), np.complexfloating)
        self.dtype  = np.dtype(np.complex128 if cplx else np.float64)

    @property
    def is_complex(self) -> bool:
        return self.dtype == np.complex128

    def perform_op(self, x: NDArray) -> NDArray:
        ''' y = A x '''
        y = np.asarray(self.op.matvec(x)).reshape(-1)
        if y.shape[0] != self.n:
            raise EigsValueError(EigsErrorMsg.DIM_MISMATCH,
                    f"Operator returned a vector of length {y.shape[0]}, expected {self.n}")
        return y.astype(self.dtype, copy=False)

    def _apply_b(self, y: NDArray) -> NDArray:
        if self.bop is None:
            return y
        return np.asarray(self.bop.matvec(y)).reshape(-1)

    def inner_product(self, x: NDArray, y: NDArray):
        ''' <x, y> = x^H B y '''
        return np.vdot(x, self._apply_b(y))

    def trans_product(self, V: NDArray, y: NDArray) -> NDArray:
        ''' V^H B y for all columns of V at once. '''
        return V.conj().T @ self._apply_b(y)

    def norm(self, x: NDArray) -> float:
        ''' ||x||_B '''
        if self.bop is None:
            return float(np.linalg.norm(x))
        return float(np.sqrt(abs(self.inner_product(x, x))))

# ##############################################################################
#! Factorization
# ##############################################################################

class ArnoldiFactorization:
    '''
    Arnoldi factorization with a fixed maximal size ``m`` (= ncv).

    Orthogonalization is classical Gram-Schmidt followed, when the new
    residual lost too much of its norm, by at most five DGKS correction passes.
    Breakdowns (||f|| ~ 0) are handled by restarting the basis with a random
    vector orthogonal to the current one.
    '''

    def __init__(self, op: ArnoldiOp, m: int):
        self._op    = op
        self._n     = op.n
        self._m     = int(m)
        if self._m < 1 or self._m > self._n:
            raise EigsValueError(EigsErrorMsg.INVALID_NCV, f"Factorization size must be in [1, {self._n}], got {m}")
        self._k     = 0
        self._fac_V = np.zeros((self._n, self._m), dtype=op.dtype)
        self._fac_H = np.zeros((self._m, self._m), dtype=op.dtype)
        self._fac_f = np.zeros(self._n, dtype=op.dtype)
        self._beta  = 0.0

    # --------------------------------------------------------------------------

    @property
    def matrix_V(self) -> NDArray:
        return self._fac_V

    @property
    def matrix_H(self) -> NDArray:
        return self._fac_H

    @property
    def residual(self) -> NDArray:
        return self._fac_f

    @property
    def f_norm(self) -> float:
        return self._beta

    @property
    def subspace_dim(self) -> int:
        return self._k

    @property
    def size(self) -> int:
        return self._m

    # --------------------------------------------------------------------------

    def init(self, v0: NDArray) -> int:
        '''
        Start a 1-step factorization from ``v0``. Returns the number of
        operator applications (always 1).
        '''
        v0 = np.asarray(v0).reshape(-1)
        if v0.shape[0] != self._n:
            raise EigsValueError(EigsErrorMsg.DIM_MISMATCH,
                    f"Initial residual has length {v0.shape[0]}, expected {self._n}")
        v0 = v0.astype(self._op.dtype, copy=False)

        self._fac_V.fill(0.0)
        self._fac_H.fill(0.0)

        v0norm = self._op.norm(v0)
        if v0norm < _NEAR_0:
            raise EigsValueError(EigsErrorMsg.ZERO_START_VECTOR, "Initial residual vector cannot be zero")

        v               = v0 / v0norm
        self._fac_V[:, 0] = v
        w               = self._op.perform_op(v)
        self._fac_H[0, 0] = self._op.inner_product(v, w)
        self._fac_f     = w - v * self._fac_H[0, 0]

        # invariant subspace of dimension one
        if np.max(np.abs(self._fac_f)) < _EPS:
            self._fac_f.fill(0.0)
            self._beta  = 0.0
        else:
            self._beta  = self._op.norm(self._fac_f)
        self._k         = 1
        return 1

    def _expand_basis(self, V: NDArray, seed: int) -> int:
        '''
        Replace the residual by a random vector orthogonal to ``V``. The first
        attempt pushes the random vector through the operator.
        '''
        thresh  = _EPS * np.sqrt(self._n)
        nops    = 0
        f       = self._fac_f
        fnorm   = 0.0
        for it in range(5):
            f = random_vector(self._n, self._op.dtype, seed=seed + 123 * it)
            if it == 0:
                f       = self._op.perform_op(f)
                nops   += 1
            f       = f - V @ self._op.trans_product(V, f)
            fnorm   = self._op.norm(f)
            if fnorm >= thresh:
                break
        self._fac_f = f
        self._beta  = fnorm
        return nops

    def factorize_from(self, from_k: int, to_m: int) -> int:
        '''
        Extend the factorization from ``from_k`` to ``to_m`` steps.

        Returns:
            Number of operator applications performed.
        '''
        if to_m <= from_k:
            return 0
        if self._k == 0:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "Factorization is not initialized, call init() first")
        if from_k < 1 or from_k > self._k or to_m > self._m:
            raise EigsValueError(EigsErrorMsg.INVALID_INPUT,
                    f"Cannot extend from {from_k} to {to_m} (current size {self._k}, maximum {self._m})")

        op          = self._op
        V, H        = self._fac_V, self._fac_H
        beta_thresh = _EPS * np.sqrt(self._n)
        nops        = 0

        # only the leading from_k x from_k block is kept
        H[:, from_k:]       = 0.0
        H[from_k:, :from_k] = 0.0

        for i in range(from_k, to_m):
            restart = False
            if self._beta < _NEAR_0:
                nops   += self._expand_basis(V[:, :i], 2 * i)
                restart = True

            V[:, i]     = self._fac_f / self._beta
            H[i, i - 1] = 0.0 if restart else self._beta

            w           = op.perform_op(V[:, i])
            nops       += 1

            i1          = i + 1
            Vs          = V[:, :i1]
            h           = op.trans_product(Vs, w)
            f           = w - Vs @ h
            beta        = op.norm(f)

            if beta > 0.717 * np.linalg.norm(h):
                H[:i1, i]   = h
                self._fac_f = f
                self._beta  = beta
                continue

            # DGKS correction
            Vf          = op.trans_product(Vs, f)
            ortho_err   = np.max(np.abs(Vf))
            count       = 0
            while count < 5 and ortho_err > _EPS * beta:
                if beta < beta_thresh:
                    f       = np.zeros_like(f)
                    beta    = 0.0
                    break
                f          -= Vs @ Vf
                h          += Vf
                beta        = op.norm(f)
                Vf          = op.trans_product(Vs, f)
                ortho_err   = np.max(np.abs(Vf))
                count      += 1

            H[:i1, i]   = h
            self._fac_f = f
            self._beta  = beta

        self._k = to_m
        return nops

    # --------------------------------------------------------------------------

    def compress_H(self, decomp) -> None:
        '''
        H <- Q^H H Q for a computed shifted QR decomposition; the size of
        the factorization drops by the number of shifts it carries.
        '''
        self._fac_H[...] = decomp.matrix_QtHQ()
        self._k         -= decomp.num_shifts

    def compress_V(self, Q: NDArray) -> None:
        '''
        V <- V Q restricted to the first k+1 columns and the matching update
        of the residual, so that the k-step relation holds again.
        '''
        k           = self._k
        m           = self._m
        Vs          = self._fac_V @ Q[:, :k + 1]
        self._fac_V[:, :k + 1] = Vs
        self._fac_f = self._fac_f * Q[m - 1, k - 1] + self._fac_V[:, k] * self._fac_H[k, k - 1]
        self._beta  = self._op.norm(self._fac_f)

# ##############################################################################
#! EOF
# ##############################################################################
