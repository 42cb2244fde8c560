"""
Tests for the shifted QR steps on upper Hessenberg matrices.
"""

import numpy as np
import pytest
from scipy.linalg import hessenberg

from arnoldi_python.algebra.eigen.hessenberg_qr import UpperHessenbergQR, DoubleShiftQR
from arnoldi_python.algebra.eigen.result import EigsValueError, EigsStateError

# ----------------------------------
#! Helper functions
# ----------------------------------

def create_real_hessenberg(n, seed=0):
    rng = np.random.default_rng(seed)
    return hessenberg(rng.standard_normal((n, n)))

def create_complex_hessenberg(n, seed=0):
    rng = np.random.default_rng(seed)
    return hessenberg(rng.standard_normal((n, n)) + 1j * rng.standard_normal((n, n)))

def assert_hessenberg(H):
    np.testing.assert_array_equal(np.tril(H, -2), 0.0)

# ----------------------------------
#! Single shift
# ----------------------------------

class TestUpperHessenbergQR:

    @pytest.mark.parametrize("shift", [0.0, 0.7, -2.5])
    def test_real_factorization(self, shift):
        n   = 8
        H   = create_real_hessenberg(n, seed=1)
        qr  = UpperHessenbergQR(H, shift)
        Q   = qr.matrix_Q()
        R   = qr.matrix_R()
        np.testing.assert_allclose(Q.T @ Q, np.eye(n), atol=1e-13)
        np.testing.assert_array_equal(np.tril(R, -1), 0.0)
        np.testing.assert_allclose(Q @ R, H - shift * np.eye(n), atol=1e-12)

    def test_real_similarity(self):
        n       = 10
        H       = create_real_hessenberg(n, seed=2)
        qr      = UpperHessenbergQR(H, 0.3)
        Q       = qr.matrix_Q()
        H_new   = qr.matrix_QtHQ()
        assert H_new.dtype == np.float64
        assert_hessenberg(H_new)
        np.testing.assert_allclose(H_new, Q.T @ H @ Q, atol=1e-12)

    def test_complex_similarity(self):
        n       = 7
        H       = create_complex_hessenberg(n, seed=3)
        shift   = 0.2 - 0.5j
        qr      = UpperHessenbergQR(H, shift)
        Q       = qr.matrix_Q()
        H_new   = qr.matrix_QtHQ()
        np.testing.assert_allclose(Q.conj().T @ Q, np.eye(n), atol=1e-13)
        np.testing.assert_allclose(Q @ qr.matrix_R(), H - shift * np.eye(n), atol=1e-12)
        assert_hessenberg(H_new)
        np.testing.assert_allclose(H_new, Q.conj().T @ H @ Q, atol=1e-12)

    def test_apply_YQ_in_place(self):
        n   = 6
        H   = create_real_hessenberg(n, seed=4)
        qr  = UpperHessenbergQR(H, 1.0)
        Y   = np.random.default_rng(0).standard_normal((4, n))
        ref = Y @ qr.matrix_Q()
        out = qr.apply_YQ(Y)
        assert out is Y
        np.testing.assert_allclose(Y, ref, atol=1e-13)

    def test_exact_shift_deflates(self):
        """Shifting by an exact eigenvalue makes the last subdiagonal entry vanish."""
        H       = np.array([[2.0, 1.0, 0.5], [1.0, 3.0, 1.0], [0.0, 1.0, 4.0]])
        mu      = np.linalg.eigvals(H).real.max()
        H_new   = UpperHessenbergQR(H, mu).matrix_QtHQ()
        assert abs(H_new[2, 1]) < 1e-10
        assert abs(H_new[2, 2] - mu) < 1e-10

    def test_zero_column(self):
        H   = np.zeros((3, 3))
        qr  = UpperHessenbergQR(H, 0.0)
        np.testing.assert_allclose(qr.matrix_Q(), np.eye(3))

    def test_errors(self):
        with pytest.raises(EigsStateError):
            UpperHessenbergQR().matrix_QtHQ()
        with pytest.raises(EigsValueError):
            UpperHessenbergQR(np.zeros((2, 3)))
        qr = UpperHessenbergQR(create_real_hessenberg(4), 0.1)
        with pytest.raises(EigsValueError):
            qr.apply_YQ(np.zeros((4, 5)))

# ----------------------------------
#! Double shift
# ----------------------------------

class TestDoubleShiftQR:

    @pytest.mark.parametrize("n", [3, 4, 9])
    def test_similarity(self, n):
        H       = create_real_hessenberg(n, seed=n)
        mu      = 0.4 + 1.1j
        s, t    = 2 * mu.real, abs(mu) ** 2
        ds      = DoubleShiftQR(H, s, t)
        Q       = ds.matrix_Q()
        H_new   = ds.matrix_QtHQ()
        np.testing.assert_allclose(Q.T @ Q, np.eye(n), atol=1e-13)
        assert_hessenberg(H_new)
        np.testing.assert_allclose(H_new, Q.T @ H @ Q, atol=1e-11)

    def test_first_column_matches_shift_polynomial(self):
        """Q e1 is parallel to (H^2 - s H + t I) e1."""
        n       = 6
        H       = create_real_hessenberg(n, seed=11)
        s, t    = 1.0, 2.0
        Q       = DoubleShiftQR(H, s, t).matrix_Q()
        m       = (H @ H - s * H + t * np.eye(n))[:, 0]
        m      /= np.linalg.norm(m)
        assert abs(abs(Q[:, 0] @ m) - 1.0) < 1e-12

    def test_eigenvalues_preserved(self):
        H       = create_real_hessenberg(8, seed=5)
        H_new   = DoubleShiftQR(H, 0.5, 3.0).matrix_QtHQ()
        np.testing.assert_allclose(np.sort_complex(np.linalg.eigvals(H_new)),
                                   np.sort_complex(np.linalg.eigvals(H)), atol=1e-10)

    def test_reducible_matrix(self):
        """A zero subdiagonal entry splits H into blocks."""
        H           = create_real_hessenberg(7, seed=6)
        H[3, 2]     = 0.0
        ds          = DoubleShiftQR(H, 0.2, 1.5)
        Q           = ds.matrix_Q()
        np.testing.assert_allclose(ds.matrix_QtHQ(), Q.T @ H @ Q, atol=1e-11)
        np.testing.assert_allclose(Q.T @ Q, np.eye(7), atol=1e-13)

    def test_apply_YQ(self):
        n   = 5
        ds  = DoubleShiftQR(create_real_hessenberg(n, seed=8), 0.0, 1.0)
        Y   = np.random.default_rng(1).standard_normal((3, n))
        ref = Y @ ds.matrix_Q()
        ds.apply_YQ(Y)
        np.testing.assert_allclose(Y, ref, atol=1e-13)

    def test_errors(self):
        with pytest.raises(EigsStateError):
            DoubleShiftQR().apply_YQ(np.eye(3))
        with pytest.raises(EigsValueError):
            DoubleShiftQR(np.eye(3, dtype=complex), 0.0, 1.0)
        with pytest.raises(EigsValueError):
            DoubleShiftQR(np.zeros((3, 2)), 0.0, 1.0)

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
