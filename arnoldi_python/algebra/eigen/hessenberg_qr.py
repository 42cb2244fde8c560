'''
file    : arnoldi_python/algebra/eigen/hessenberg_qr.py
desc    : Shifted QR steps on upper Hessenberg matrices.

Two primitives used by the implicit restart of the Arnoldi factorization:

- UpperHessenbergQR:
    H - mu I = Q R with Givens rotations (real or complex H, real or complex mu).
    Q^H H Q = R Q + mu I is again upper Hessenberg.
- DoubleShiftQR:
    Implicit Francis step for a pair of complex conjugate shifts on a real H,
    i.e. the QR decomposition of M = H^2 - s H + t I (s = 2 Re mu, t = |mu|^2)
    without forming M or any complex number. Q is a product of 3x3
    Householder reflectors.

Both expose the same interface: compute(...), matrix_QtHQ(), apply_YQ(Y).
'''

import math
import numba
import numpy as np
from numpy.typing import NDArray
from typing import Optional, Union

from .result import EigsErrorMsg, EigsValueError, EigsStateError

_EPS    = np.finfo(np.float64).eps
_NEAR_0 = np.finfo(np.float64).tiny * 10.0

# ##############################################################################
#! Givens kernels
# ##############################################################################

@numba.njit(cache=True)
def _givens_qr_kernel(R, rot_c, rot_s):
    '''
    In-place QR of an upper Hessenberg R. Rotation i acts on rows (i, i+1):

        G_i = [[c, -conj(s)], [s, conj(c)]],    G_i^H [x, y]^T = [r, 0]^T
    '''
    n = R.shape[0]
    for i in range(n - 1):
        for k in range(i + 2, n):
            R[k, i] = 0.0
        x = R[i, i]
        y = R[i + 1, i]
        r = math.hypot(abs(x), abs(y))
        if r == 0.0:
            rot_c[i] = 1.0
            rot_s[i] = 0.0
        else:
            rot_c[i] = x / r
            rot_s[i] = y / r
        c           = rot_c[i]
        s           = rot_s[i]
        R[i, i]     = r
        R[i + 1, i] = 0.0
        for j in range(i + 1, n):
            a           = R[i, j]
            b           = R[i + 1, j]
            R[i, j]     = np.conj(c) * a + np.conj(s) * b
            R[i + 1, j] = -s * a + c * b

@numba.njit(cache=True)
def _apply_rotations_right(Y, rot_c, rot_s, triangular):
    '''
    Y <- Y G_0 G_1 ... G_{n-2}. With ``triangular`` only the rows that can be
    nonzero for an upper triangular Y are touched (R Q is Hessenberg).
    '''
    nrow = Y.shape[0]
    for i in range(rot_c.shape[0]):
        c    = rot_c[i]
        s    = rot_s[i]
        last = min(i + 2, nrow) if triangular else nrow
        for k in range(last):
            a           = Y[k, i]
            b           = Y[k, i + 1]
            Y[k, i]     = a * c + b * s
            Y[k, i + 1] = -a * np.conj(s) + b * np.conj(c)

# ##############################################################################
#! Helpers
# ##############################################################################

def _as_square(mat: NDArray, dtype, who: str) -> NDArray:
    mat = np.asarray(mat)
    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        raise EigsValueError(EigsErrorMsg.NOT_SQUARE, f"{who}: matrix must be square, got shape {mat.shape}")
    if mat.shape[0] == 0:
        raise EigsValueError(EigsErrorMsg.INVALID_INPUT, f"{who}: matrix must not be empty")
    return np.array(mat, dtype=dtype, order='C')

def _check_Y(Y: NDArray, n: int, dtype, who: str) -> None:
    if not isinstance(Y, np.ndarray) or Y.ndim != 2 or Y.shape[1] != n:
        raise EigsValueError(EigsErrorMsg.DIM_MISMATCH, f"{who}: Y must be a 2D array with {n} columns")
    if np.iscomplexobj(np.empty(0, dtype=dtype)) and not np.iscomplexobj(Y):
        raise EigsValueError(EigsErrorMsg.INVALID_INPUT, f"{who}: complex rotations cannot be applied to a real Y")

# ##############################################################################
#! Single shift
# ##############################################################################

class UpperHessenbergQR:
    '''
    QR decomposition of H - shift * I for an upper Hessenberg H using
    Givens rotations.

    Example:
        >>> qr = UpperHessenbergQR(H, shift=0.5)
        >>> H_new = qr.matrix_QtHQ()      # Q^H H Q, upper Hessenberg
        >>> qr.apply_YQ(Q)                # Q <- Q Qi, in place
    '''

    num_shifts = 1

    def __init__(self, mat: Optional[NDArray] = None, shift: Union[float, complex] = 0.0):
        self._n         : int               = 0
        self._shift     : Union[float, complex] = 0.0
        self._mat_r     : Optional[NDArray] = None
        self._rot_c     : Optional[NDArray] = None
        self._rot_s     : Optional[NDArray] = None
        self._computed  : bool              = False
        if mat is not None:
            self.compute(mat, shift)

    def compute(self, mat: NDArray, shift: Union[float, complex] = 0.0) -> 'UpperHessenbergQR':
        '''
        Factorize mat - shift * I.

        Args:
            mat     : Square upper Hessenberg matrix.
            shift   : Real shift for real matrices, real or complex shift otherwise.
        '''
        cplx            = np.iscomplexobj(mat) or np.iscomplexobj(shift)
        dtype           = np.complex128 if cplx else np.float64
        self._mat_r     = _as_square(mat, dtype, "UpperHessenbergQR")
        self._n         = self._mat_r.shape[0]
        self._shift     = complex(shift) if cplx else float(shift)
        self._mat_r[np.diag_indices(self._n)] -= self._shift

        self._rot_c     = np.empty(self._n - 1, dtype=dtype)
        self._rot_s     = np.empty(self._n - 1, dtype=dtype)
        _givens_qr_kernel(self._mat_r, self._rot_c, self._rot_s)
        self._computed  = True
        return self

    def _check(self):
        if not self._computed:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "UpperHessenbergQR: need to call compute() first")

    def matrix_R(self) -> NDArray:
        ''' Upper triangular factor R. '''
        self._check()
        return self._mat_r.copy()

    def matrix_QtHQ(self) -> NDArray:
        ''' Q^H H Q = R Q + shift * I, upper Hessenberg. '''
        self._check()
        RQ = self._mat_r.copy()
        _apply_rotations_right(RQ, self._rot_c, self._rot_s, True)
        RQ[np.diag_indices(self._n)] += self._shift
        RQ[np.tril_indices(self._n, -2)] = 0.0
        return RQ

    def apply_YQ(self, Y: NDArray) -> NDArray:
        ''' Y <- Y Q, in place. Returns Y. '''
        self._check()
        _check_Y(Y, self._n, self._mat_r.dtype, "UpperHessenbergQR")
        _apply_rotations_right(Y, self._rot_c, self._rot_s, False)
        return Y

    def matrix_Q(self) -> NDArray:
        ''' Explicit orthogonal / unitary factor Q. '''
        self._check()
        return self.apply_YQ(np.eye(self._n, dtype=self._mat_r.dtype))

# ##############################################################################
#! Double shift
# ##############################################################################

class DoubleShiftQR:
    '''
    Francis double shift step for a real upper Hessenberg H with the two
    shifts mu and conj(mu), given through s = 2 Re(mu) and t = |mu|^2.

    Negligible subdiagonal entries (|h_{i+1,i}| <= eps (|h_ii| + |h_{i+1,i+1}|))
    are set to zero first, and the step is applied to each unreduced block.
    Reflector i acts on rows/columns i .. i + nr_i - 1 (nr_i in {0, 1, 2, 3},
    values below 2 mean the identity).
    '''

    num_shifts = 2

    def __init__(self, mat: Optional[NDArray] = None, s: float = 0.0, t: float = 0.0):
        self._n         : int               = 0
        self._mat_h     : Optional[NDArray] = None
        self._shift_s   : float             = 0.0
        self._shift_t   : float             = 0.0
        self._ref_u     : Optional[NDArray] = None     # 3 x n, column i is reflector i
        self._ref_nr    : Optional[NDArray] = None
        self._computed  : bool              = False
        if mat is not None:
            self.compute(mat, s, t)

    # --------------------------------------------------------------------------

    def _compute_reflector(self, x1: float, x2: float, x3: float, ind: int) -> None:
        ''' Householder reflector P = I - 2 u u^T mapping (x1, x2, x3) onto a multiple of e1. '''
        self._ref_nr[ind]   = 3
        if abs(x3) < _NEAR_0:
            if abs(x2) < _NEAR_0:
                self._ref_nr[ind] = 1
                return
            self._ref_nr[ind]   = 2
            x2x3                = abs(x2)
        else:
            x2x3                = math.hypot(x2, x3)

        # x1' = x1 + sign(x1) ||x||, with sign(0) = -1
        x1_new = x1 - (1.0 if x1 <= 0.0 else -1.0) * math.hypot(x1, x2x3)
        x_norm = math.hypot(x1_new, x2x3)
        if x_norm < _NEAR_0:
            self._ref_nr[ind] = 1
            return
        self._ref_u[0, ind] = x1_new / x_norm
        self._ref_u[1, ind] = x2 / x_norm
        self._ref_u[2, ind] = x3 / x_norm

    def _apply_PX(self, X: NDArray, row0: int, col0: int, ind: int) -> None:
        ''' X[row0:row0+nr, col0:] <- P X[...] '''
        nr = int(self._ref_nr[ind])
        if nr < 2:
            return
        u           = self._ref_u[:nr, ind]
        block       = X[row0:row0 + nr, col0:]
        block      -= 2.0 * np.outer(u, u @ block)

    def _apply_XP(self, X: NDArray, nrow: int, col0: int, ind: int) -> None:
        ''' X[:nrow, col0:col0+nr] <- X[...] P '''
        nr = min(int(self._ref_nr[ind]), X.shape[1] - col0)
        if nr < 2:
            return
        u           = self._ref_u[:nr, ind]
        block       = X[:nrow, col0:col0 + nr]
        block      -= 2.0 * np.outer(block @ u, u)

    def _update_block(self, il: int, iu: int) -> None:
        ''' Chase the bulge through the unreduced block H[il:iu+1, il:iu+1]. '''
        H       = self._mat_h
        n       = self._n
        bsize   = iu - il + 1

        if bsize == 1:
            self._ref_nr[il] = 1
            return

        x00 = H[il, il]
        x01 = H[il, il + 1]
        x10 = H[il + 1, il]
        x11 = H[il + 1, il + 1]
        # first column of M = H^2 - s H + t I
        m00 = x00 * (x00 - self._shift_s) + x01 * x10 + self._shift_t
        m10 = x10 * (x00 + x11 - self._shift_s)

        if bsize == 2:
            self._compute_reflector(m00, m10, 0.0, il)
            self._apply_PX(H, il, il, il)
            self._apply_XP(H, il + 2, il, il)
            self._ref_nr[il + 1] = 1
            return

        m20 = H[il + 2, il + 1] * H[il + 1, il]
        self._compute_reflector(m00, m10, m20, il)
        self._apply_PX(H, il, il, il)
        self._apply_XP(H, il + min(bsize, 4), il, il)

        # bulge chasing, only entered for blocks of size >= 4
        for i in range(1, bsize - 2):
            c = il + i - 1
            self._compute_reflector(H[il + i, c], H[il + i + 1, c], H[il + i + 2, c], il + i)
            self._apply_PX(H, il + i, c, il + i)
            self._apply_XP(H, il + min(bsize, i + 4), il + i, il + i)

        # last reflector is a 2x2 one
        self._compute_reflector(H[iu - 1, iu - 2], H[iu, iu - 2], 0.0, iu - 1)
        self._apply_PX(H, iu - 1, iu - 2, iu - 1)
        self._apply_XP(H, il + bsize, iu - 1, iu - 1)
        self._ref_nr[iu] = 0

    # --------------------------------------------------------------------------

    def compute(self, mat: NDArray, s: float, t: float) -> 'DoubleShiftQR':
        '''
        Apply the double shift step to a real upper Hessenberg matrix.

        Args:
            mat : Square real upper Hessenberg matrix.
            s   : 2 Re(mu).
            t   : |mu|^2.
        '''
        if np.iscomplexobj(mat):
            raise EigsValueError(EigsErrorMsg.INVALID_INPUT, "DoubleShiftQR: matrix must be real")
        self._mat_h     = _as_square(mat, np.float64, "DoubleShiftQR")
        self._n         = n = self._mat_h.shape[0]
        self._shift_s   = float(s)
        self._shift_t   = float(t)
        self._ref_u     = np.zeros((3, n), dtype=np.float64)
        self._ref_nr    = np.ones(n, dtype=np.int64)
        H               = self._mat_h

        # split H into unreduced blocks
        zero_ind = [0]
        for i in range(n - 1):
            h       = abs(H[i + 1, i])
            diag    = abs(H[i, i]) + abs(H[i + 1, i + 1])
            if h <= 0.0 or h <= _EPS * diag:
                H[i + 1, i] = 0.0
                zero_ind.append(i + 1)
            H[i + 2:, i] = 0.0
        zero_ind.append(n)

        for start, end in zip(zero_ind[:-1], zero_ind[1:]):
            self._update_block(start, end - 1)

        # the chased bulge leaves rounding noise below the subdiagonal
        H[np.tril_indices(n, -2)] = 0.0
        self._computed = True
        return self

    def _check(self):
        if not self._computed:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "DoubleShiftQR: need to call compute() first")

    def matrix_QtHQ(self) -> NDArray:
        ''' Q^T H Q, upper Hessenberg. '''
        self._check()
        return self._mat_h.copy()

    def apply_YQ(self, Y: NDArray) -> NDArray:
        ''' Y <- Y Q, in place. Returns Y. '''
        self._check()
        _check_Y(Y, self._n, np.float64, "DoubleShiftQR")
        nrow = Y.shape[0]
        for i in range(self._n - 1):
            self._apply_XP(Y, nrow, i, i)
        return Y

    def matrix_Q(self) -> NDArray:
        ''' Explicit orthogonal factor Q. '''
        self._check()
        return self.apply_YQ(np.eye(self._n, dtype=np.float64))

# ##############################################################################
#! EOF
# ##############################################################################
