"""
Exact inference by variable elimination.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .algebra import full_joint_sum, product_all, union_scope
from .factor import Factor
from .network import Network

logger = logging.getLogger(__name__)


class EliminationOrdering:
    """Strategy choosing the next variable to eliminate."""

    def next_variable(self, network: Network) -> Optional[int]:
        """Return the next variable, or None when no candidates remain."""
        raise NotImplementedError


class StaticMinNeighborOrdering(EliminationOrdering):
    """
    Pick the variable with the fewest neighbors in the construction-time map.

    The neighbor map is copied once and never recomputed; each chosen variable
    is dropped from it. Ties go to the smallest variable id.
    """

    def __init__(self, network: Network):
        self.neighbors: Dict[int, Tuple[int, ...]] = dict(network.neighbors)

    def next_variable(self, network: Network) -> Optional[int]:
        if not self.neighbors:
            return None
        var = min(sorted(self.neighbors), key=lambda v: len(self.neighbors[v]))
        del self.neighbors[var]
        return var


class DynamicMinNeighborOrdering(EliminationOrdering):
    """Min-neighbor ordering recomputed from the current factors at every step."""

    def __init__(self):
        self.eliminated: Set[int] = set()

    def next_variable(self, network: Network) -> Optional[int]:
        neighbors: Dict[int, Tuple[int, ...]] = {}
        for factor in network.factors:
            for var in factor.scope:
                if var not in self.eliminated:
                    neighbors[var] = union_scope(neighbors.get(var, ()), factor.scope)
        if not neighbors:
            return None
        var = min(sorted(neighbors), key=lambda v: len(neighbors[v]))
        self.eliminated.add(var)
        return var


class FixedOrdering(EliminationOrdering):
    """Eliminate variables in a caller-supplied order."""

    def __init__(self, order: Iterable[int]):
        self.order: List[int] = list(order)

    def next_variable(self, network: Network) -> Optional[int]:
        if not self.order:
            return None
        return self.order.pop(0)


class EliminationEngine:
    """Variable elimination over a network's factor set."""

    def __init__(self, network: Network, ordering: Optional[EliminationOrdering] = None):
        """
        Args:
            network: Network whose factor set is consumed by elimination
            ordering: Strategy for :meth:`eliminate_min_neighbor` (default:
                static min-neighbor)
        """
        self.network = network
        self.ordering = ordering if ordering is not None else StaticMinNeighborOrdering(network)

    def eliminate(self, var: int) -> None:
        """Multiply every factor mentioning ``var`` and sum ``var`` out of the product."""
        handles = self.network.handles_with(var)
        if not handles:
            return
        targets = [self.network.remove_factor(handle) for handle in handles]
        # A single matching factor is summed out in place.
        result = product_all(targets)
        result.sum_out(var)
        self.network.add_factor(result)
        logger.debug(
            "Eliminated variable %d from %d factor(s); new factor %r",
            var, len(targets), result,
        )

    def eliminate_in_order(self, *variables: int) -> None:
        for var in variables:
            self.eliminate(var)

    def eliminate_min_neighbor(self) -> Optional[int]:
        """Eliminate the variable chosen by the ordering strategy and return it."""
        var = self.ordering.next_variable(self.network)
        if var is not None:
            self.eliminate(var)
        return var

    def eliminate_all(self) -> List[int]:
        """Eliminate until the ordering strategy runs out; return the order used."""
        order = []
        while True:
            var = self.eliminate_min_neighbor()
            if var is None:
                break
            order.append(var)
        logger.debug("Elimination order: %s", order)
        return order

    def full_joint_sum(self) -> float:
        """Brute-force sum over the product of the current factors (-1 if none)."""
        return full_joint_sum(self.network.factors)

    def partition_function(self) -> float:
        """Eliminate every variable and sum what is left."""
        self.eliminate_all()
        partition = self.full_joint_sum()
        logger.info("Partition function: %g", partition)
        return partition

    def marginal(self, var: int) -> Factor:
        """
        Exact marginal of ``var``, computed on a copy of the network.

        Returns:
            Factor over ``(var,)`` normalized to sum to one
        """
        scratch = EliminationEngine(self.network.copy())
        scratch.eliminate_in_order(*(v for v in self.network.variables if v != var))
        ones = Factor.from_values(
            (var,), self.network.cardinalities, [1.0] * self.network.cardinalities[var]
        )
        result = product_all([ones] + scratch.network.factors)
        result.normalize_by_sum()
        return result
