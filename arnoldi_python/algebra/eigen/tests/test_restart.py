"""
Tests for the implicit restart engines.
"""

import numpy as np
import pytest

from arnoldi_python.algebra.eigen.arnoldi_fac import ArnoldiOp, ArnoldiFactorization
from arnoldi_python.algebra.eigen.hessenberg_eigen import UpperHessenbergEigen, UpperHessenbergEigenComplex
from arnoldi_python.algebra.eigen.restart import RestartArnoldi, RestartArnoldiComplex, restart_engine_for
from arnoldi_python.algebra.eigen.sorting import sort_eigenvalues
from arnoldi_python.maths.random import random_vector

# ----------------------------------
#! Helper functions
# ----------------------------------

def build_factorization(A, m):
    op  = ArnoldiOp(A)
    fac = ArnoldiFactorization(op, m)
    fac.init(random_vector(A.shape[0], op.dtype))
    fac.factorize_from(1, m)
    return fac

def sorted_ritz_values(fac, engine, rule='LM'):
    evals = engine(fac.matrix_H).eigenvalues()
    return evals[sort_eigenvalues(evals, rule)]

def relation_error(A, fac):
    k   = fac.subspace_dim
    V   = fac.matrix_V[:, :k]
    ek  = np.zeros(k)
    ek[-1] = 1.0
    return np.linalg.norm(A @ V - V @ fac.matrix_H[:k, :k] - np.outer(fac.residual, ek))

# ----------------------------------

class TestRestartArnoldi:

    def test_real_restart_with_pairs(self):
        """Rotation-like spectrum: shifts contain conjugate pairs (double shift steps)."""
        n, m, k = 40, 12, 4
        rng     = np.random.default_rng(0)
        A       = rng.standard_normal((n, n))
        fac     = build_factorization(A, m)
        ritz    = sorted_ritz_values(fac, UpperHessenbergEigen)
        if ritz[k - 1].imag != 0 and ritz[k - 1] == np.conj(ritz[k]):
            k += 1
        assert np.any(ritz[k:].imag != 0)

        Q       = np.eye(m)
        RestartArnoldi.run(ritz, k, fac, Q)
        assert fac.subspace_dim == k
        np.testing.assert_allclose(Q.T @ Q, np.eye(m), atol=1e-12)
        np.testing.assert_array_equal(np.tril(fac.matrix_H, -2), 0.0)

        fac.compress_V(Q)
        assert relation_error(A, fac) < 1e-9

    def test_wanted_values_survive(self):
        """After the restart the leading block of H keeps (approximately) the wanted Ritz values."""
        n, m, k = 30, 10, 3
        A       = np.diag(np.arange(1.0, n + 1)) + np.diag(0.1 * np.ones(n - 1), 1)
        fac     = build_factorization(A, m)
        for _ in range(30):
            ritz    = sorted_ritz_values(fac, UpperHessenbergEigen)
            Q       = np.eye(m)
            RestartArnoldi.run(ritz, k, fac, Q)
            fac.compress_V(Q)
            fac.factorize_from(k, m)
        ritz = sorted_ritz_values(fac, UpperHessenbergEigen)
        np.testing.assert_allclose(np.sort(ritz[:k].real)[::-1], [30.0, 29.0, 28.0], atol=1e-6)

    def test_complex_restart(self):
        n, m, k = 25, 9, 3
        rng     = np.random.default_rng(1)
        A       = rng.standard_normal((n, n)) + 1j * rng.standard_normal((n, n))
        fac     = build_factorization(A, m)
        ritz    = sorted_ritz_values(fac, UpperHessenbergEigenComplex)
        Q       = np.eye(m, dtype=complex)
        RestartArnoldiComplex.run(ritz, k, fac, Q)
        assert fac.subspace_dim == k
        np.testing.assert_allclose(Q.conj().T @ Q, np.eye(m), atol=1e-12)
        fac.compress_V(Q)
        assert relation_error(A, fac) < 1e-9

    def test_engine_for(self):
        assert restart_engine_for(np.float64) is RestartArnoldi
        assert restart_engine_for(np.complex128) is RestartArnoldiComplex

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
