'''
Implicit restart of an Arnoldi factorization.

The unwanted Ritz values ritz[k:] are used as shifts of QR steps on H. Each
step compresses the factorization, and the accumulated orthogonal factor Q
is later used to compress the basis V.
'''

import numpy as np
from numpy.typing import NDArray, DTypeLike
from typing import Type, Union

from .hessenberg_qr import UpperHessenbergQR, DoubleShiftQR
from .arnoldi_fac import ArnoldiFactorization

# -----------------------------------------------------------------------------

class RestartArnoldi:
    '''
    Restart for real operators. A complex Ritz value followed by its exact
    conjugate is applied as one real double shift step, every other value as
    a single shift by its real part.
    '''

    @staticmethod
    def run(ritz_val: NDArray, k: int, fac: ArnoldiFactorization, Q: NDArray) -> None:
        ncv         = ritz_val.shape[0]
        decomp_ds   = DoubleShiftQR()
        decomp_hb   = UpperHessenbergQR()

        i = k
        while i < ncv:
            mu = ritz_val[i]
            if mu.imag != 0 and i + 1 < ncv and mu == np.conj(ritz_val[i + 1]):
                s = 2.0 * mu.real
                t = mu.real * mu.real + mu.imag * mu.imag
                decomp_ds.compute(fac.matrix_H, s, t)
                decomp_ds.apply_YQ(Q)
                fac.compress_H(decomp_ds)
                i += 2
            else:
                decomp_hb.compute(fac.matrix_H, float(mu.real))
                decomp_hb.apply_YQ(Q)
                fac.compress_H(decomp_hb)
                i += 1

class RestartArnoldiComplex:
    ''' Restart for complex operators: one complex single shift per value. '''

    @staticmethod
    def run(ritz_val: NDArray, k: int, fac: ArnoldiFactorization, Q: NDArray) -> None:
        decomp = UpperHessenbergQR()
        for i in range(k, ritz_val.shape[0]):
            decomp.compute(fac.matrix_H, complex(ritz_val[i]))
            decomp.apply_YQ(Q)
            fac.compress_H(decomp)

RestartEngine = Union[Type[RestartArnoldi], Type[RestartArnoldiComplex]]

def restart_engine_for(dtype: DTypeLike) -> RestartEngine:
    ''' Restart engine matching the scalar type of the operator. '''
    if np.issubdtype(np.dtype(dtype), np.complexfloating):
        return RestartArnoldiComplex
    return RestartArnoldi

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
