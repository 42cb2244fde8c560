"""
Mathematical helpers: seeded random vectors used to start Krylov iterations.
"""

from .random import random_vector

__all__ = ['random_vector']
