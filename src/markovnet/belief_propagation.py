"""
Loopy sum-product belief propagation over the factor graph of a Markov network.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .algebra import message_difference, product, product_all
from .factor import Factor
from .network import Network

logger = logging.getLogger(__name__)


@dataclass
class BPConfig:
    """Tunables for :class:`BeliefPropagationEngine`."""

    max_iterations: int = 100
    threshold: float = 1e-6
    initial_message: float = 0.5

    def __post_init__(self):
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")
        if self.threshold < 0:
            raise ValueError(f"threshold must be >= 0, got {self.threshold}")
        if self.initial_message <= 0:
            raise ValueError(f"initial_message must be > 0, got {self.initial_message}")


class BPStatus(Enum):
    INITIALIZING = "initializing"
    ITERATING = "iterating"
    CONVERGED = "converged"
    ITERATION_CAP_REACHED = "iteration_cap_reached"


class BPInfo:
    """BP convergence information."""

    def __init__(self, status: BPStatus, iterations: int):
        self.status = status
        self.iterations = iterations

    @property
    def converged(self) -> bool:
        return self.status is BPStatus.CONVERGED

    @property
    def capped(self) -> bool:
        return self.status is BPStatus.ITERATION_CAP_REACHED

    def __repr__(self):
        status = "converged" if self.converged else "not converged"
        return f"BPInfo({status}, iterations={self.iterations})"


@dataclass
class Message:
    """Single-variable factor travelling along one direction of a graph edge."""

    table: Factor
    sender_factor: Optional[int] = None
    sender_variable: Optional[int] = None


@dataclass
class BPResult:
    marginals: Dict[int, Factor]
    info: BPInfo
    notices: List[str] = field(default_factory=list)


class BeliefPropagationEngine:
    """
    Sum-product message passing between variables and factors.

    Messages are emitted in a fixed order every iteration: variables ascending,
    factor handles in arena order, and each factor's scope in stored order.
    Convergence compares each variable's inbox positionally against the
    previous iteration, so that order must not change between iterations.
    """

    def __init__(self, network: Network, config: Optional[BPConfig] = None):
        self.network = network
        self.config = config if config is not None else BPConfig()
        self.status = BPStatus.INITIALIZING
        self.iterations = 0
        self.variable_inbox: Dict[int, List[Message]] = {}
        self.factor_inbox: Dict[int, List[Message]] = {}

    def _uniform_message(self, var: int) -> Factor:
        card = self.network.cardinalities[var]
        return Factor.from_values(
            (var,), self.network.cardinalities, [self.config.initial_message] * card
        )

    def _send_variable_messages(self) -> None:
        """Variable-to-factor messages, excluding what came from the destination."""
        for var in self.network.variables:
            for handle in self.network.handles():
                if not self.network.factor(handle).in_scope(var):
                    continue
                table = self._uniform_message(var)
                for incoming in self.variable_inbox[var]:
                    if incoming.sender_factor != handle:
                        table = product(table, incoming.table)
                self.factor_inbox[handle].append(Message(table, sender_variable=var))

    def _send_factor_messages(self) -> None:
        """Factor-to-variable messages, excluding what came from the destination."""
        for handle in self.network.handles():
            factor = self.network.factor(handle)
            for var in factor.scope:
                # Copy so sum_out never touches the network's own table.
                table = factor.copy()
                for incoming in self.factor_inbox[handle]:
                    if incoming.sender_variable != var:
                        table = product(table, incoming.table)
                for other in table.scope:
                    if other != var:
                        table.sum_out(other)
                self.variable_inbox[var].append(Message(table, sender_factor=handle))

    def _has_converged(self, baseline: Dict[int, List[Message]]) -> bool:
        converged = True
        for var in self.network.variables:
            current = self.variable_inbox[var]
            previous = baseline[var]
            for new, old in zip(current, previous):
                if message_difference(new.table, old.table) > self.config.threshold:
                    converged = False
        return converged

    def run(self) -> BPResult:
        """
        Iterate until messages stop changing or the iteration cap is hit.

        Returns:
            BPResult with one normalized marginal per variable
        """
        self.variable_inbox = {var: [] for var in self.network.variables}
        self.factor_inbox = {handle: [] for handle in self.network.handles()}
        self.iterations = 0
        self.status = BPStatus.ITERATING
        baseline: Dict[int, List[Message]] = {}
        notices: List[str] = []

        while self.status is BPStatus.ITERATING:
            self._send_variable_messages()
            self.variable_inbox = {var: [] for var in self.network.variables}
            self._send_factor_messages()

            for messages in self.variable_inbox.values():
                for message in messages:
                    message.table.normalize_by_max()

            if self.iterations > 0 and self._has_converged(baseline):
                self.status = BPStatus.CONVERGED
            baseline = dict(self.variable_inbox)

            self.factor_inbox = {handle: [] for handle in self.network.handles()}
            self.iterations += 1
            logger.debug("BP iteration %d done", self.iterations)

            if self.iterations > self.config.max_iterations:
                # A run that converged on its last allowed pass keeps CONVERGED.
                if self.status is BPStatus.ITERATING:
                    self.status = BPStatus.ITERATION_CAP_REACHED
                notice = (
                    f"Exceeded {self.config.max_iterations} iterations... "
                    "breaking and calculating marginals."
                )
                logger.warning(notice)
                notices.append(notice)

        info = BPInfo(self.status, self.iterations)
        logger.info("Belief propagation finished: %r", info)
        return BPResult(self.marginals(), info, notices)

    def marginals(self) -> Dict[int, Factor]:
        """Normalize the product of each variable's inbox into a distribution."""
        result: Dict[int, Factor] = {}
        for var in self.network.variables:
            messages = [message.table for message in self.variable_inbox.get(var, [])]
            if messages:
                marginal = product_all(messages).copy()
            else:
                # Untouched by any factor.
                marginal = self._uniform_message(var)
            marginal.normalize_by_sum()
            result[var] = marginal
        return result


def belief_propagate(network: Network, config: Optional[BPConfig] = None) -> BPResult:
    """Run loopy belief propagation on ``network`` with ``config``."""
    return BeliefPropagationEngine(network, config).run()
