"""
Eigen-decomposition of small upper Hessenberg matrices

Used by the implicitly restarted Arnoldi driver to obtain Ritz values and
Ritz vectors of the projected matrix H (size ncv x ncv, typically tens).

Real matrices:
    H / s = U T U^T is reduced to real Schur form (T quasi-triangular with
    1x1 and 2x2 diagonal blocks). Every 1x1 block gives a real eigenvalue
    with an exactly zero imaginary part, every 2x2 block gives a pair of
    eigenvalues that are exact complex conjugates of each other. The
    eigenvectors of T are obtained by backsubstitution (never forming a
    complex matrix) and mapped back with U.

Complex matrices:
    H = U T U^H with T upper triangular. T = X D X^{-1} with X unit upper
    triangular, the eigenvectors are the normalized columns of U X. The
    eigenpairs are ordered ascending by magnitude.

The exact-zero / exact-conjugate structure of the real eigenvalues is
relied upon by the restart code, which tests conjugacy with ``==``.

----------------------------------------------
File        : arnoldi_python/algebra/eigen/hessenberg_eigen.py
----------------------------------------------
"""

import numpy as np
import scipy.linalg as scipy_linalg
from numpy.typing import NDArray
from typing import Optional, Tuple, Type, Union

from .result import (EigsErrorMsg, EigsValueError, EigsStateError,
                    EigsDecompositionError)

# ----------------------------------------------------------------------------------------
#! Helpers
# ----------------------------------------------------------------------------------------

_EPS    = np.finfo(np.float64).eps
_TINY   = np.finfo(np.float64).tiny

def _check_square(mat: NDArray, who: str) -> None:
    if mat.ndim != 2 or mat.shape[0] != mat.shape[1]:
        raise EigsValueError(EigsErrorMsg.NOT_SQUARE, f"{who}: matrix must be square, got shape {mat.shape}")
    if mat.shape[0] == 0:
        raise EigsValueError(EigsErrorMsg.INVALID_INPUT, f"{who}: matrix must not be empty")

def _normalize_columns(mat: NDArray) -> NDArray:
    """Unit-normalize the columns in place, zero columns are left untouched."""
    norms           = np.linalg.norm(mat, axis=0)
    norms[norms == 0] = 1.0
    mat            /= norms
    return mat

def real_schur(mat: NDArray) -> Tuple[NDArray, NDArray]:
    """
    Real Schur decomposition mat = U T U^T.

    LAPACK returns T in standardized form: a 2x2 diagonal block always
    carries a complex conjugate pair, all other subdiagonal entries are
    exactly zero.
    """
    T, U = scipy_linalg.schur(mat, output='real')
    return np.array(T, dtype=np.float64), np.array(U, dtype=np.float64)

def complex_schur(mat: NDArray) -> Tuple[NDArray, NDArray]:
    """
    Complex Schur decomposition mat = U T U^H.

    Raises:
        EigsDecompositionError: if the QR algorithm does not converge or the input is not finite.
    """
    if not np.all(np.isfinite(mat)):
        raise EigsDecompositionError(EigsErrorMsg.SCHUR_FAILED,
                "UpperHessenbergEigenComplex: matrix contains non-finite entries")
    try:
        T, U = scipy_linalg.schur(mat, output='complex')
    except scipy_linalg.LinAlgError as e:
        raise EigsDecompositionError(EigsErrorMsg.SCHUR_FAILED,
                f"UpperHessenbergEigenComplex: eigen decomposition failed ({e})") from e
    return np.array(T, dtype=np.complex128), np.array(U, dtype=np.complex128)

# ----------------------------------------------------------------------------------------
#! Real upper Hessenberg matrices
# ----------------------------------------------------------------------------------------

class UpperHessenbergEigen:
    """
    Eigenvalues and eigenvectors of a real upper Hessenberg matrix.

    Args:
        mat: Optional matrix to decompose right away.

    Example:
        >>> H = np.array([[1.0, 2.0], [-3.0, 1.0]])
        >>> decomp = UpperHessenbergEigen(H)
        >>> decomp.eigenvalues()      # 1 +/- i sqrt(6), exact conjugates
    """

    def __init__(self, mat: Optional[NDArray] = None):
        self._n         : int               = 0
        self._mat_t     : Optional[NDArray] = None     # Schur form, overwritten by backsubstitution
        self._eivec     : Optional[NDArray] = None     # Schur vectors -> real eigenvector data
        self._eivalues  : Optional[NDArray] = None
        self._computed  : bool              = False
        if mat is not None:
            self.compute(mat)

    # ------------------------------------------------------------------------------------

    @staticmethod
    def _block_eigenvalues(T: NDArray) -> NDArray:
        """Eigenvalues of a real Schur form, conjugate pairs built exactly."""
        n       = T.shape[0]
        evals   = np.zeros(n, dtype=np.complex128)
        i       = 0
        while i < n:
            if i == n - 1 or T[i + 1, i] == 0.0:
                evals[i] = complex(T[i, i], 0.0)
                i       += 1
            else:
                p       = 0.5 * (T[i, i] - T[i + 1, i + 1])
                # z = sqrt(|p^2 + t0 * t1|) without overflow
                t0      = T[i + 1, i]
                t1      = T[i, i + 1]
                maxval  = max(abs(p), abs(t0), abs(t1))
                t0     /= maxval
                t1     /= maxval
                p0      = p / maxval
                z       = maxval * np.sqrt(abs(p0 * p0 + t0 * t1))
                re      = T[i + 1, i + 1] + p
                evals[i]        = complex(re, z)
                evals[i + 1]    = complex(re, -z)
                i      += 2
        return evals

    def _compute_eigenvectors(self) -> None:
        """
        Backsubstitution for the eigenvectors of T, followed by the back
        transformation with the Schur vectors. T is overwritten.
        """
        T       = self._mat_t
        evals   = self._eivalues
        size    = T.shape[1]
        eps     = _EPS

        norm    = 0.0
        for j in range(size):
            start   = max(j - 1, 0)
            norm   += float(np.sum(np.abs(T[j, start:])))

        if norm == 0.0:
            return

        n = size - 1
        while n >= 0:
            p = evals[n].real
            q = evals[n].imag

            if q == 0.0:
                # real eigenvalue
                lastr   = 0.0
                lastw   = 0.0
                l       = n
                T[n, n] = 1.0
                for i in range(n - 1, -1, -1):
                    w = T[i, i] - p
                    r = float(T[i, l:n + 1] @ T[l:n + 1, n])

                    if evals[i].imag < 0.0:
                        lastw = w
                        lastr = r
                        continue

                    l = i
                    if evals[i].imag == 0.0:
                        T[i, n] = -r / w if w != 0.0 else -r / (eps * norm)
                    else:
                        # 2x2 block: solve the two real equations together
                        x       = T[i, i + 1]
                        y       = T[i + 1, i]
                        dre     = evals[i].real - p
                        denom   = dre * dre + evals[i].imag * evals[i].imag
                        t       = (x * lastr - lastw * r) / denom
                        T[i, n] = t
                        if abs(x) > abs(lastw):
                            T[i + 1, n] = (-r - w * t) / x
                        else:
                            T[i + 1, n] = (-lastr - y * t) / lastw

                    # overflow control
                    t = abs(T[i, n])
                    if (eps * t) * t > 1.0:
                        T[i:, n] /= t

            elif q < 0.0 and n > 0:
                # complex pair (n-1, n): real part in column n-1, imaginary part in column n
                lastra  = 0.0
                lastsa  = 0.0
                lastw   = 0.0
                l       = n - 1

                # last vector component imaginary so the matrix is triangular
                if abs(T[n, n - 1]) > abs(T[n - 1, n]):
                    T[n - 1, n - 1] = q / T[n, n - 1]
                    T[n - 1, n]     = -(T[n, n] - p) / T[n, n - 1]
                else:
                    cc              = complex(0.0, -T[n - 1, n]) / complex(T[n - 1, n - 1] - p, q)
                    T[n - 1, n - 1] = cc.real
                    T[n - 1, n]     = cc.imag
                T[n, n - 1] = 0.0
                T[n, n]     = 1.0

                for i in range(n - 2, -1, -1):
                    ra = float(T[i, l:n + 1] @ T[l:n + 1, n - 1])
                    sa = float(T[i, l:n + 1] @ T[l:n + 1, n])
                    w  = T[i, i] - p

                    if evals[i].imag < 0.0:
                        lastw   = w
                        lastra  = ra
                        lastsa  = sa
                        continue

                    l = i
                    if evals[i].imag == 0.0:
                        cc              = complex(-ra, -sa) / complex(w, q)
                        T[i, n - 1]     = cc.real
                        T[i, n]         = cc.imag
                    else:
                        # solve the complex equations of a 2x2 block
                        x   = T[i, i + 1]
                        y   = T[i + 1, i]
                        dre = evals[i].real - p
                        vr  = dre * dre + evals[i].imag * evals[i].imag - q * q
                        vi  = dre * 2.0 * q
                        if vr == 0.0 and vi == 0.0:
                            vr = eps * norm * (abs(w) + abs(q) + abs(x) + abs(y) + abs(lastw))

                        cc              = complex(x * lastra - lastw * ra + q * sa,
                                                  x * lastsa - lastw * sa - q * ra) / complex(vr, vi)
                        T[i, n - 1]     = cc.real
                        T[i, n]         = cc.imag
                        if abs(x) > abs(lastw) + abs(q):
                            T[i + 1, n - 1] = (-ra - w * T[i, n - 1] + q * T[i, n]) / x
                            T[i + 1, n]     = (-sa - w * T[i, n] - q * T[i, n - 1]) / x
                        else:
                            cc              = complex(-lastra - y * T[i, n - 1],
                                                      -lastsa - y * T[i, n]) / complex(lastw, q)
                            T[i + 1, n - 1] = cc.real
                            T[i + 1, n]     = cc.imag

                    # overflow control
                    t = max(abs(T[i, n - 1]), abs(T[i, n]))
                    if (eps * t) * t > 1.0:
                        T[i:, n - 1:n + 1] /= t

                # both members of the pair are done
                n -= 1
            n -= 1

        # back transformation to the eigenvectors of the original matrix
        U = self._eivec
        for j in range(size - 1, -1, -1):
            U[:, j] = U[:, :j + 1] @ T[:j + 1, j]

    # ------------------------------------------------------------------------------------

    def compute(self, mat: NDArray) -> 'UpperHessenbergEigen':
        """
        Decompose a real upper Hessenberg matrix.

        Args:
            mat: Square real matrix (upper Hessenberg).

        Returns:
            self, for chaining.

        Raises:
            EigsValueError: if the matrix is not square.
        """
        mat = np.asarray(mat)
        _check_square(mat, "UpperHessenbergEigen")
        mat             = np.asarray(mat, dtype=np.float64)
        self._computed  = False
        self._n         = mat.shape[0]

        # scale prior to the Schur decomposition
        scale = float(np.max(np.abs(mat)))
        if scale == 0.0:
            scale = 1.0

        self._mat_t, self._eivec    = real_schur(mat / scale)
        self._eivalues              = self._block_eigenvalues(self._mat_t)
        self._compute_eigenvectors()
        self._eivalues             *= scale
        self._computed              = True
        return self

    def eigenvalues(self) -> NDArray:
        """
        Eigenvalues as a complex array (real ones have an exactly zero
        imaginary part, complex ones come as adjacent exact conjugates).
        """
        if not self._computed:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "UpperHessenbergEigen: need to call compute() first")
        return self._eivalues.copy()

    def eigenvectors(self) -> NDArray:
        """
        Unit-norm complex eigenvectors as columns, in the order of eigenvalues().
        """
        if not self._computed:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "UpperHessenbergEigen: need to call compute() first")

        U       = self._eivec
        n       = U.shape[1]
        mat_v   = np.empty((n, n), dtype=np.complex128)
        j       = 0
        while j < n:
            # imaginary part of a real eigenvalue is exactly zero
            if self._eivalues[j].imag == 0.0 or j + 1 == n:
                mat_v[:, j]     = U[:, j]
                j              += 1
            else:
                mat_v[:, j]     = U[:, j] + 1j * U[:, j + 1]
                mat_v[:, j + 1] = U[:, j] - 1j * U[:, j + 1]
                j              += 2
        return _normalize_columns(mat_v)

# ----------------------------------------------------------------------------------------
#! Complex upper Hessenberg matrices
# ----------------------------------------------------------------------------------------

class UpperHessenbergEigenComplex:
    """
    Eigenvalues and eigenvectors of a complex upper Hessenberg matrix,
    ordered ascending by magnitude.
    """

    def __init__(self, mat: Optional[NDArray] = None):
        self._n         : int               = 0
        self._eivec     : Optional[NDArray] = None
        self._eivalues  : Optional[NDArray] = None
        self._computed  : bool              = False
        if mat is not None:
            self.compute(mat)

    @staticmethod
    def _triangular_eigenvectors(T: NDArray, matrix_norm: float) -> NDArray:
        """
        Unit upper triangular X with T = X D X^{-1}, D = diag(T).
        Column k is solved from the (i, k) entries of X T = D X, from the bottom up.
        """
        n           = T.shape[0]
        matrix_norm = max(matrix_norm, _TINY)
        X           = np.zeros((n, n), dtype=np.complex128)
        for k in range(n - 1, -1, -1):
            X[k, k] = 1.0
            for i in range(k - 1, -1, -1):
                xik = -T[i, k]
                if k - i - 1 > 0:
                    xik -= T[i, i + 1:k] @ X[i + 1:k, k]
                z = T[i, i] - T[k, k]
                if z == 0:
                    # equal eigenvalues, use a small value instead of dividing by zero
                    z = complex(_EPS * matrix_norm, 0.0)
                X[i, k] = xik / z
        return X

    def _sort_eigenvalues(self) -> None:
        """Selection sort, ascending by magnitude."""
        n = self._eivalues.shape[0]
        for i in range(n):
            k = int(np.argmin(np.abs(self._eivalues[i:])))
            if k != 0:
                k                       += i
                self._eivalues[[i, k]]   = self._eivalues[[k, i]]
                self._eivec[:, [i, k]]   = self._eivec[:, [k, i]]

    def compute(self, mat: NDArray) -> 'UpperHessenbergEigenComplex':
        """
        Decompose a complex upper Hessenberg matrix.

        Raises:
            EigsValueError: if the matrix is not square.
            EigsDecompositionError: if the complex Schur step fails.
        """
        mat = np.asarray(mat)
        _check_square(mat, "UpperHessenbergEigenComplex")
        mat             = np.asarray(mat, dtype=np.complex128)
        self._computed  = False
        self._n         = mat.shape[0]

        T, U            = complex_schur(mat)
        self._eivalues  = np.diag(T).copy()
        X               = self._triangular_eigenvectors(T, float(np.linalg.norm(T)))
        self._eivec     = _normalize_columns(U @ X)
        self._sort_eigenvalues()
        self._computed  = True
        return self

    def eigenvalues(self) -> NDArray:
        if not self._computed:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "UpperHessenbergEigenComplex: need to call compute() first")
        return self._eivalues.copy()

    def eigenvectors(self) -> NDArray:
        if not self._computed:
            raise EigsStateError(EigsErrorMsg.NOT_COMPUTED, "UpperHessenbergEigenComplex: need to call compute() first")
        return self._eivec.copy()

# ----------------------------------------------------------------------------------------

HessenbergEigen = Union[UpperHessenbergEigen, UpperHessenbergEigenComplex]

def hessenberg_eigen_for(dtype) -> Type[HessenbergEigen]:
    """
    Pick the eigen engine for a scalar domain (real or complex).
    """
    if np.issubdtype(np.dtype(dtype), np.complexfloating):
        return UpperHessenbergEigenComplex
    return UpperHessenbergEigen

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
