'''
Selection and sorting rules for (complex) eigenvalues.

The same six rules are used twice by the Arnoldi driver: to pick the
wanted Ritz values out of the whole projected spectrum, and to order the
final result. Every rule maps an eigenvalue to a real key and the values
are ordered by a stable ascending sort on that key:

    LM  largest magnitude        key = -|x|
    LR  largest real part        key = -Re(x)
    LI  largest imaginary part   key = -|Im(x)|
    SM  smallest magnitude       key =  |x|
    SR  smallest real part       key =  Re(x)
    SI  smallest imaginary part  key =  |Im(x)|

The imaginary rules use the magnitude of the imaginary part so that the
two members of a conjugate pair always share the same key.
'''

import numpy as np
from enum import Enum, unique
from typing import Optional, Union, Literal, Callable
from numpy.typing import NDArray

from .result import EigsValueError, EigsErrorMsg

# -----------------------------------------------------------------------------

@unique
class SortRule(Enum):
    """
    Rules for selecting / sorting eigenvalues. The value is the usual ARPACK code.
    """
    LARGEST_MAGN    = 'LM'
    LARGEST_REAL    = 'LR'
    LARGEST_IMAG    = 'LI'
    SMALLEST_MAGN   = 'SM'
    SMALLEST_REAL   = 'SR'
    SMALLEST_IMAG   = 'SI'

    def __str__(self):
        return self.value

    @classmethod
    def from_any(cls, rule: Union['SortRule', str]) -> 'SortRule':
        """
        Parse a rule given either as a member or as its two-letter code.

        Raises:
            EigsValueError: if the rule is unknown.
        """
        if isinstance(rule, cls):
            return rule
        if isinstance(rule, str):
            key = rule.strip().upper()
            for member in cls:
                if key == member.value or key == member.name:
                    return member
        raise EigsValueError(EigsErrorMsg.INVALID_RULE,
                f"Invalid rule '{rule}'. Must be 'LM', 'SM', 'LR', 'SR', 'LI', or 'SI'")

RuleLike        = Union[SortRule, Literal['LM', 'SM', 'LR', 'SR', 'LI', 'SI']]
SortStrategy    = Callable[[NDArray, SortRule], NDArray]

# -----------------------------------------------------------------------------

def sort_key(values: NDArray, rule: RuleLike) -> NDArray:
    """
    Real sort key of each value under the given rule (ascending = wanted first).
    """
    rule    = SortRule.from_any(rule)
    values  = np.asarray(values)
    if rule is SortRule.LARGEST_MAGN:
        return -np.abs(values)
    if rule is SortRule.LARGEST_REAL:
        return -np.real(values)
    if rule is SortRule.LARGEST_IMAG:
        return -np.abs(np.imag(values))
    if rule is SortRule.SMALLEST_MAGN:
        return np.abs(values)
    if rule is SortRule.SMALLEST_REAL:
        return np.real(values).astype(float, copy=True)
    return np.abs(np.imag(values))

def sort_eigenvalues(values: NDArray, rule: RuleLike, n: Optional[int] = None) -> NDArray:
    """
    Index permutation that orders the first ``n`` values by ``rule``.

    Args:
        values:
            Eigenvalues (real or complex).
        rule:
            Sorting rule, member of SortRule or its two-letter code.
        n:
            Only the leading ``n`` entries take part (default: all).

    Returns:
        Integer array ``ind`` of length ``n`` so that ``values[ind]`` is sorted.

    Example:
        >>> sort_eigenvalues(np.array([1.0, -3.0, 2.0]), 'LM')
        array([1, 2, 0])
    """
    values = np.asarray(values)
    if n is None:
        n = values.shape[0]
    return np.argsort(sort_key(values[:n], rule), kind='stable')

# ------------------------------------------------------------------------------------------------
#! EOF
# ------------------------------------------------------------------------------------------------
