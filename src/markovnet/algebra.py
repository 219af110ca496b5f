"""
Operations combining factors: scope union, product, full joint.
"""

from __future__ import annotations

from typing import Sequence, Tuple

import torch

from .errors import InvalidOperationError
from .factor import Factor, odometer_walk, table_size


def union_scope(a: Sequence[int], b: Sequence[int]) -> Tuple[int, ...]:
    """All of ``a`` in order, followed by the variables of ``b`` not in ``a``."""
    return tuple(dict.fromkeys(tuple(a) + tuple(b)))


def product(a: Factor, b: Factor) -> Factor:
    """
    Multiply two factors.

    The result is a new factor over ``union_scope(a.scope, b.scope)``. A single
    odometer walk over the result's stored scope keeps one flat index into
    ``a`` and one into ``b``; the entries are then gathered and multiplied.

    Args:
        a: Left operand
        b: Right operand

    Returns:
        New Factor holding ``a * b`` for every joint assignment
    """
    cardinalities = a.cardinalities
    result = Factor(union_scope(a.scope, b.scope), cardinalities)
    size = table_size(result.scope, cardinalities)
    result.initialize_values(size)

    digits = [
        (cardinalities[var], (a.stride(var).step, b.stride(var).step))
        for var in result.scope
    ]
    index_a, index_b = odometer_walk(digits, size, 2)
    result.set_values(a.values[index_a] * b.values[index_b])
    return result


def product_all(factors: Sequence[Factor]) -> Factor:
    """Left fold of :func:`product`; a single factor is returned unchanged."""
    if not factors:
        raise InvalidOperationError("Cannot multiply an empty list of factors.")
    result = factors[0]
    for factor in factors[1:]:
        result = product(result, factor)
    return result


def full_joint(factors: Sequence[Factor]) -> Factor:
    """Factor over every variable mentioned by ``factors``."""
    return product_all(factors)


def full_joint_sum(factors: Sequence[Factor]) -> float:
    """
    Brute-force partition function of ``factors``.

    Returns -1 when there are no factors.
    """
    if len(factors) == 0:
        return -1.0
    if len(factors) == 1:
        return factors[0].sum()
    return product_all(factors).sum()


def message_difference(a: Factor, b: Factor) -> float:
    """Mean absolute difference between matching entries of two messages."""
    return float(torch.mean(torch.abs(a.values - b.values)))

