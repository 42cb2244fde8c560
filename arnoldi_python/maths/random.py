'''
Seeded random vectors for starting and re-seeding Krylov factorizations.
'''

import numpy as np
from numpy.typing import NDArray, DTypeLike

##################################### RANDOM #####################################

def random_vector(  n       :   int,
                    dtype   :   DTypeLike   = np.float64,
                    seed    :   int         = 0,
                    rng     =   None) -> NDArray:
    '''
    Create a vector with i.i.d. Uniform(-0.5, 0.5) entries.

    The same seed always gives the same vector, so a solver started without
    a user vector is reproducible. For complex dtypes the real and the
    imaginary parts are drawn independently.

    - n     : length of the vector
    - dtype : real or complex floating dtype of the result
    - seed  : seed of the generator (ignored if rng is given)
    - rng   : optional numpy Generator to draw from
    '''
    if rng is None:
        rng = np.random.default_rng(seed)
    dtype = np.dtype(dtype)
    if np.issubdtype(dtype, np.complexfloating):
        re  = rng.uniform(-0.5, 0.5, size=n)
        im  = rng.uniform(-0.5, 0.5, size=n)
        return (re + 1j * im).astype(dtype)
    return rng.uniform(-0.5, 0.5, size=n).astype(dtype)

# -------------------------------------------------------------------------------
#! End of file
# -------------------------------------------------------------------------------
