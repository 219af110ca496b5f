import unittest

import pytest
import torch

from markovnet import (
    DynamicMinNeighborOrdering,
    EliminationEngine,
    Factor,
    FixedOrdering,
    Network,
    StaticMinNeighborOrdering,
    apply_evidence,
    build_network,
    read_model_file,
    read_model_from_string,
)

from _reference import EXAMPLES, exact_marginals, exact_partition, random_factor

PAIR = "\n".join(
    [
        "MARKOV",
        "2",
        "2 2",
        "1",
        "2 0 1",
        "4",
        "1 2 3 4",
    ]
)


class TestEliminate(unittest.TestCase):
    def test_pair_partition_in_given_order(self):
        network = build_network(read_model_from_string(PAIR))
        engine = EliminationEngine(network)
        engine.eliminate_in_order(1, 0)
        self.assertEqual(network.num_factors(), 1)
        self.assertEqual(network.factors[0].size, 1)
        self.assertEqual(engine.full_joint_sum(), 10.0)

    def test_pair_partition_by_min_neighbor(self):
        network = build_network(read_model_from_string(PAIR))
        self.assertEqual(EliminationEngine(network).partition_function(), 10.0)

    def test_eliminate_absent_variable_is_noop(self):
        cards = (2, 2)
        factor = Factor.from_values((0,), cards, [1.0, 3.0])
        network = Network(cards, [factor])
        EliminationEngine(network).eliminate(1)
        self.assertEqual(network.factors, [factor])
        self.assertEqual(factor.tolist(), [1.0, 3.0])

    def test_single_matching_factor_is_reused(self):
        cards = (2, 3)
        factor = Factor.from_values((0, 1), cards, [1, 2, 3, 4, 5, 6])
        network = Network(cards, [factor])
        EliminationEngine(network).eliminate(0)
        self.assertIs(network.factors[0], factor)
        self.assertEqual(factor.scope, (1,))
        self.assertEqual(factor.tolist(), [5.0, 7.0, 9.0])

    def test_product_goes_to_back_of_arena(self):
        cards = (2, 2, 2)
        a = Factor.from_values((0, 1), cards, [1, 2, 3, 4])
        b = Factor.from_values((2,), cards, [1, 1])
        c = Factor.from_values((1,), cards, [2, 5])
        network = Network(cards, [a, b, c])
        EliminationEngine(network).eliminate(1)
        self.assertEqual(network.num_factors(), 2)
        self.assertIs(network.factors[0], b)
        self.assertEqual(network.factors[1].scope, (0,))


class TestOrdering(unittest.TestCase):
    def setUp(self):
        self.network = build_network(read_model_file(str(EXAMPLES / "chain.uai")))

    def test_neighbor_map(self):
        self.assertEqual(self.network.neighbors, {0: (0, 1), 1: (1, 0, 2), 2: (2, 1)})

    def test_static_order_prefers_fewest_neighbors_then_smallest_id(self):
        engine = EliminationEngine(self.network)
        self.assertEqual(engine.eliminate_all(), [0, 2, 1])
        self.assertIsNone(engine.eliminate_min_neighbor())

    def test_static_order_never_recomputes(self):
        neighbors = dict(self.network.neighbors)
        ordering = StaticMinNeighborOrdering(self.network)
        EliminationEngine(self.network, ordering).eliminate_all()
        self.assertEqual(self.network.neighbors, neighbors)
        self.assertEqual(ordering.neighbors, {})

    def test_dynamic_and_fixed_orderings_agree_on_partition(self):
        expected = exact_partition(self.network.factors, self.network.cardinalities)
        for ordering in (DynamicMinNeighborOrdering(), FixedOrdering([1, 2, 0])):
            network = self.network.copy()
            partition = EliminationEngine(network, ordering).partition_function()
            self.assertAlmostEqual(partition / expected, 1.0, places=9)


@pytest.mark.parametrize("name", ["pair.uai", "chain.uai", "loop.uai"])
def test_partition_matches_full_joint(name):
    network = build_network(read_model_file(str(EXAMPLES / name)))
    brute = EliminationEngine(network.copy()).full_joint_sum()
    partition = EliminationEngine(network).partition_function()
    assert partition == pytest.approx(brute, rel=1e-9)


def test_partition_on_random_grid():
    generator = torch.Generator().manual_seed(3)
    cards = (2, 3, 2, 2, 3, 2)
    edges = [(0, 1), (1, 2), (3, 4), (4, 5), (0, 3), (1, 4), (2, 5)]
    factors = [random_factor(edge, cards, generator) for edge in edges]
    factors.append(random_factor((4,), cards, generator))
    network = Network(cards, factors)
    expected = exact_partition(network.factors, cards)
    assert EliminationEngine(network).partition_function() == pytest.approx(expected, rel=1e-9)


def test_exact_marginal_does_not_touch_network():
    network = build_network(read_model_file(str(EXAMPLES / "loop.uai")))
    before = [(f.scope, f.tolist()) for f in network.factors]
    engine = EliminationEngine(network)
    expected = exact_marginals(network.factors, network.cardinalities)
    for var in network.variables:
        marginal = engine.marginal(var)
        assert marginal.scope == (var,)
        assert torch.allclose(marginal.values, expected[var], atol=1e-12)
    assert [(f.scope, f.tolist()) for f in network.factors] == before


def test_exact_marginal_of_isolated_variable():
    cards = (2, 3)
    network = Network(cards, [Factor.from_values((0,), cards, [1.0, 3.0])])
    engine = EliminationEngine(network)
    assert engine.marginal(1).tolist() == pytest.approx([1 / 3] * 3)
    assert engine.marginal(0).tolist() == pytest.approx([0.25, 0.75])


def test_evidence_on_isolated_variable():
    cards = (2, 3)
    network = Network(cards, [Factor.from_values((0,), cards, [1.0, 3.0])])
    apply_evidence(network, {1: 2})
    assert network.neighbors[1] == (1,)
    engine = EliminationEngine(network)
    assert engine.marginal(1).tolist() == pytest.approx([0.0, 0.0, 1.0])
    assert engine.marginal(0).tolist() == pytest.approx([0.25, 0.75])
    assert engine.partition_function() == pytest.approx(4.0)


if __name__ == "__main__":
    unittest.main()
