"""
Tests for the dense upper Hessenberg eigen-decompositions (real and complex).
"""

import numpy as np
import pytest
from scipy.linalg import hessenberg

from arnoldi_python.algebra.eigen.hessenberg_eigen import (
    UpperHessenbergEigen, UpperHessenbergEigenComplex, hessenberg_eigen_for,
)
from arnoldi_python.algebra.eigen.result import (
    EigsValueError, EigsStateError, EigsDecompositionError, EigsErrorMsg,
)

# ----------------------------------
#! Helper functions to create test matrices
# ----------------------------------

def create_real_hessenberg(n, seed=0):
    """Random real upper Hessenberg matrix (generically has complex pairs)."""
    rng = np.random.default_rng(seed)
    return hessenberg(rng.standard_normal((n, n)))

def create_complex_hessenberg(n, seed=0):
    """Random complex upper Hessenberg matrix."""
    rng = np.random.default_rng(seed)
    return hessenberg(rng.standard_normal((n, n)) + 1j * rng.standard_normal((n, n)))

def max_eigen_residual(H, evals, evecs):
    return max(np.linalg.norm(H @ evecs[:, i] - evals[i] * evecs[:, i]) for i in range(len(evals)))

# ----------------------------------
#! Real engine
# ----------------------------------

class TestUpperHessenbergEigen:
    """Real Hessenberg matrices."""

    def test_rotation_block_exact_conjugates(self):
        H       = np.array([[1.0, 2.0], [-3.0, 1.0]])
        evals   = UpperHessenbergEigen(H).eigenvalues()
        assert evals[0].imag != 0
        assert evals[0] == np.conj(evals[1])
        np.testing.assert_allclose(sorted(evals, key=lambda z: z.imag),
                                   [1 - 1j * np.sqrt(6), 1 + 1j * np.sqrt(6)], rtol=1e-14)

    def test_matches_numpy(self):
        H       = create_real_hessenberg(12, seed=3)
        evals   = UpperHessenbergEigen(H).eigenvalues()
        ref     = np.linalg.eigvals(H)
        np.testing.assert_allclose(np.sort_complex(evals), np.sort_complex(ref), atol=1e-10)

    def test_pairs_are_adjacent_and_exact(self):
        H       = create_real_hessenberg(15, seed=7)
        evals   = UpperHessenbergEigen(H).eigenvalues()
        i = 0
        while i < len(evals):
            if evals[i].imag != 0:
                assert evals[i + 1] == np.conj(evals[i])
                i += 2
            else:
                i += 1

    def test_eigenvectors(self):
        H       = create_real_hessenberg(10, seed=1)
        decomp  = UpperHessenbergEigen(H)
        evals   = decomp.eigenvalues()
        evecs   = decomp.eigenvectors()
        assert evecs.shape == (10, 10)
        np.testing.assert_allclose(np.linalg.norm(evecs, axis=0), 1.0, rtol=1e-12)
        assert max_eigen_residual(H, evals, evecs) < 1e-10

    def test_conjugate_eigenvectors(self):
        H       = np.array([[0.0, -1.0, 0.5], [1.0, 0.0, 0.2], [0.0, 0.3, 2.0]])
        decomp  = UpperHessenbergEigen(H)
        evals   = decomp.eigenvalues()
        evecs   = decomp.eigenvectors()
        for i in range(2):
            if evals[i].imag != 0 and evals[i + 1] == np.conj(evals[i]):
                np.testing.assert_allclose(evecs[:, i + 1], np.conj(evecs[:, i]), atol=1e-14)
                break
        else:
            pytest.fail("expected a complex pair")

    def test_diagonal_matrix(self):
        H       = np.diag([3.0, -1.0, 2.0])
        decomp  = UpperHessenbergEigen(H)
        np.testing.assert_allclose(np.sort(decomp.eigenvalues().real), [-1.0, 2.0, 3.0])
        assert np.all(decomp.eigenvalues().imag == 0)
        assert max_eigen_residual(H, decomp.eigenvalues(), decomp.eigenvectors()) < 1e-14

    def test_zero_matrix(self):
        decomp = UpperHessenbergEigen(np.zeros((4, 4)))
        np.testing.assert_array_equal(decomp.eigenvalues(), np.zeros(4))
        assert np.all(np.isfinite(decomp.eigenvectors()))

    def test_near_defective_stays_finite(self):
        """Repeated eigenvalue with a Jordan-like block: no inf / nan."""
        H       = np.array([[1.0, 1.0, 0.0, 0.0],
                            [0.0, 1.0, 1.0, 0.0],
                            [0.0, 1e-300, 1.0, 1.0],
                            [0.0, 0.0, 0.0, 1.0]])
        decomp  = UpperHessenbergEigen(H)
        assert np.all(np.isfinite(decomp.eigenvalues()))
        assert np.all(np.isfinite(decomp.eigenvectors()))

    def test_repeated_complex_pair(self):
        """Two identical 2x2 rotation blocks: the pair solve has a zero determinant."""
        H       = np.array([[1.0, 2.0, 0.3, 0.1],
                            [-2.0, 1.0, 0.2, 0.4],
                            [0.0, 0.0, 1.0, 2.0],
                            [0.0, 0.0, -2.0, 1.0]])
        decomp  = UpperHessenbergEigen(H)
        evals   = decomp.eigenvalues()
        evecs   = decomp.eigenvectors()
        np.testing.assert_allclose(np.sort_complex(evals), [1 - 2j, 1 - 2j, 1 + 2j, 1 + 2j], atol=1e-12)
        assert np.all(np.isfinite(evecs))
        np.testing.assert_allclose(np.linalg.norm(evecs, axis=0), 1.0, rtol=1e-12)
        assert max_eigen_residual(H, evals, evecs) < 1e-10

    def test_close_complex_pairs_rescaled(self):
        """Pairs 1 +/- 2i and (1 + 1e-10) +/- 2i: the large back-substituted entries are rescaled."""
        d       = 1e-10
        H       = np.array([[1.0, 2.0, 0.3, 0.1],
                            [-2.0, 1.0, 0.2, 0.4],
                            [0.0, 0.0, 1.0 + d, 2.0],
                            [0.0, 0.0, -2.0, 1.0 + d]])
        decomp  = UpperHessenbergEigen(H)
        evals   = decomp.eigenvalues()
        evecs   = decomp.eigenvectors()
        assert np.all(np.isfinite(evals))
        assert np.all(np.isfinite(evecs))
        np.testing.assert_allclose(np.linalg.norm(evecs, axis=0), 1.0, rtol=1e-12)
        assert max_eigen_residual(H, evals, evecs) < 1e-8

    def test_one_by_one(self):
        decomp = UpperHessenbergEigen(np.array([[5.0]]))
        np.testing.assert_array_equal(decomp.eigenvalues(), [5.0])
        np.testing.assert_allclose(np.abs(decomp.eigenvectors()), [[1.0]])

    def test_not_square(self):
        with pytest.raises(EigsValueError) as exc:
            UpperHessenbergEigen(np.zeros((3, 4)))
        assert exc.value.code is EigsErrorMsg.NOT_SQUARE

    def test_queries_before_compute(self):
        decomp = UpperHessenbergEigen()
        with pytest.raises(EigsStateError):
            decomp.eigenvalues()
        with pytest.raises(EigsStateError):
            decomp.eigenvectors()

    def test_queries_are_idempotent(self):
        decomp  = UpperHessenbergEigen(create_real_hessenberg(6))
        np.testing.assert_array_equal(decomp.eigenvalues(), decomp.eigenvalues())
        np.testing.assert_array_equal(decomp.eigenvectors(), decomp.eigenvectors())

# ----------------------------------
#! Complex engine
# ----------------------------------

class TestUpperHessenbergEigenComplex:
    """Complex Hessenberg matrices."""

    def test_ascending_magnitude(self):
        H       = create_complex_hessenberg(10, seed=2)
        evals   = UpperHessenbergEigenComplex(H).eigenvalues()
        assert np.all(np.diff(np.abs(evals)) >= 0)
        np.testing.assert_allclose(np.sort_complex(evals), np.sort_complex(np.linalg.eigvals(H)), atol=1e-10)

    def test_eigenvectors(self):
        H       = create_complex_hessenberg(8, seed=4)
        decomp  = UpperHessenbergEigenComplex(H)
        evecs   = decomp.eigenvectors()
        np.testing.assert_allclose(np.linalg.norm(evecs, axis=0), 1.0, rtol=1e-12)
        assert max_eigen_residual(H, decomp.eigenvalues(), evecs) < 1e-10

    def test_repeated_eigenvalue_finite(self):
        H       = np.array([[2.0, 1.0], [0.0, 2.0]], dtype=complex)
        decomp  = UpperHessenbergEigenComplex(H)
        assert np.all(np.isfinite(decomp.eigenvectors()))

    def test_non_finite_input(self):
        H = np.array([[np.nan, 1.0], [1.0, 0.0]], dtype=complex)
        with pytest.raises(EigsDecompositionError):
            UpperHessenbergEigenComplex(H)

    def test_queries_before_compute(self):
        with pytest.raises(EigsStateError):
            UpperHessenbergEigenComplex().eigenvalues()

# ----------------------------------

def test_engine_for_dtype():
    assert hessenberg_eigen_for(np.float64) is UpperHessenbergEigen
    assert hessenberg_eigen_for(np.complex128) is UpperHessenbergEigenComplex

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
