"""
Markov network: variables, cardinalities and a handle-keyed factor arena.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .algebra import union_scope
from .errors import MalformedInputError
from .factor import Factor

logger = logging.getLogger(__name__)


class Network:
    """Markov network over variables ``0..N-1``."""

    def __init__(self, cardinalities: Sequence[int], factors: Iterable[Factor]):
        """
        Args:
            cardinalities: Number of states of each variable
            factors: Initial factors; each gets a stable integer handle
        """
        for var, card in enumerate(cardinalities):
            if card <= 0:
                raise MalformedInputError(
                    f"Variable {var} has non-positive cardinality {card}."
                )
        self.cardinalities: Tuple[int, ...] = tuple(cardinalities)
        self.variables: Tuple[int, ...] = tuple(range(len(self.cardinalities)))
        self._arena: Dict[int, Factor] = {}
        self._next_handle = 0
        for factor in factors:
            self.add_factor(factor)
        self.neighbors: Dict[int, Tuple[int, ...]] = self._build_neighbors()

    def _build_neighbors(self) -> Dict[int, Tuple[int, ...]]:
        """Map each variable to the union of the scopes of the factors touching it."""
        neighbors: Dict[int, Tuple[int, ...]] = {}
        for factor in self._arena.values():
            for var in factor.scope:
                if var in neighbors:
                    neighbors[var] = union_scope(neighbors[var], factor.scope)
                else:
                    neighbors[var] = factor.scope
        return neighbors

    def add_factor(self, factor: Factor) -> int:
        for var in factor.scope:
            if not 0 <= var < len(self.cardinalities):
                raise MalformedInputError(
                    f"Factor {factor!r} mentions unknown variable {var}."
                )
        handle = self._next_handle
        self._next_handle += 1
        self._arena[handle] = factor
        return handle

    def remove_factor(self, handle: int) -> Factor:
        return self._arena.pop(handle)

    def factor(self, handle: int) -> Factor:
        return self._arena[handle]

    def handles(self) -> List[int]:
        """Live factor handles in insertion order."""
        return list(self._arena)

    def handles_with(self, var: int) -> List[int]:
        return [handle for handle, factor in self._arena.items() if factor.in_scope(var)]

    @property
    def factors(self) -> List[Factor]:
        return list(self._arena.values())

    def num_variables(self) -> int:
        return len(self.variables)

    def num_factors(self) -> int:
        return len(self._arena)

    def copy(self) -> "Network":
        """Independent network with copied factor tables and the same neighbor map."""
        clone = Network(self.cardinalities, [])
        for factor in self._arena.values():
            clone.add_factor(factor.copy())
        clone.neighbors = dict(self.neighbors)
        return clone

    def __repr__(self):
        return f"Network(nvars={len(self.variables)}, nfactors={len(self._arena)})"


def build_network(model, evidence: Optional[Dict[int, int]] = None) -> Network:
    """
    Create factors for every clique of a parsed model and wrap them in a Network.

    Args:
        model: Parsed :class:`~markovnet.uai_parser.UAIModel`
        evidence: Optional ``{variable: state}`` to clamp the factors with

    Returns:
        Network holding one factor per clique, in file order
    """
    cardinalities = tuple(model.cards)
    factors = []
    for raw in model.factors:
        factor = Factor(raw.vars, cardinalities)
        factor.initialize_values(len(raw.values))
        factor.set_values(raw.values)
        factors.append(factor)

    network = Network(cardinalities, factors)
    if evidence:
        apply_evidence(network, evidence)
    logger.debug("Built %r", network)
    return network


def apply_evidence(network: Network, evidence: Dict[int, int]) -> Network:
    """
    Clamp every factor to the observed states in ``evidence``.

    Entries inconsistent with an observation are set to zero; scopes and
    sizes are unchanged. An observed variable that no factor mentions gets a
    unary indicator factor appended to the arena. Modifies the network in
    place.
    """
    for var, state in evidence.items():
        if not 0 <= var < network.num_variables():
            raise MalformedInputError(f"Evidence on unknown variable {var}.")
        if not 0 <= state < network.cardinalities[var]:
            raise MalformedInputError(
                f"Evidence state {state} out of range for variable {var} "
                f"with cardinality {network.cardinalities[var]}."
            )

    covered = set()
    for factor in network.factors:
        for var in factor.scope:
            covered.add(var)
            if var in evidence:
                factor.clamp(var, evidence[var])

    for var in sorted(set(evidence) - covered):
        card = network.cardinalities[var]
        indicator = Factor.from_values(
            (var,),
            network.cardinalities,
            [1.0 if state == evidence[var] else 0.0 for state in range(card)],
        )
        network.add_factor(indicator)
        network.neighbors[var] = (var,)
        logger.debug("Added indicator factor for observed variable %d", var)
    return network
