"""
Tests for the seeded random vectors.
"""

import numpy as np
import pytest

from arnoldi_python.maths.random import random_vector

class TestRandomVector:

    def test_reproducible(self):
        np.testing.assert_array_equal(random_vector(50, seed=0), random_vector(50, seed=0))
        assert not np.array_equal(random_vector(50, seed=0), random_vector(50, seed=1))

    def test_range_and_dtype(self):
        v = random_vector(1000, seed=3)
        assert v.dtype == np.float64
        assert v.shape == (1000,)
        assert np.all(v >= -0.5) and np.all(v < 0.5)

    def test_complex(self):
        v = random_vector(200, dtype=np.complex128, seed=4)
        assert v.dtype == np.complex128
        assert np.all(np.abs(v.real) <= 0.5) and np.all(np.abs(v.imag) <= 0.5)
        assert np.any(v.imag != 0)

    def test_external_generator(self):
        rng_a = np.random.default_rng(7)
        rng_b = np.random.default_rng(7)
        np.testing.assert_array_equal(random_vector(10, rng=rng_a), random_vector(10, rng=rng_b))
