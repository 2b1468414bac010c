"""Tests for the reduced ordered BDD."""

from itertools import product

import pytest

from ftquant.analysis.bdd import FALSE, TRUE, Bdd
from ftquant.analysis.budget import CancellationToken, WorkBudget
from ftquant.analysis.pdag import normalize
from ftquant.errors import Cancelled
from ftquant.model import ATLEAST


def _evaluate(bdd: Bdd, node: int, values) -> bool:
    while node > TRUE:
        node = bdd.high(node) if values[bdd.var_of(node)] else bdd.low(node)
    return node == TRUE


class TestConstruction:
    def test_variable_and_negation(self):
        bdd = Bdd(2)
        a = bdd.variable(0)
        assert bdd.negate(bdd.negate(a)) == a
        assert bdd.apply_and(a, bdd.negate(a)) == FALSE
        assert bdd.apply_or(a, bdd.negate(a)) == TRUE

    def test_nodes_are_unique(self):
        bdd = Bdd(2)
        a, b = bdd.variable(0), bdd.variable(1)
        assert bdd.apply_and(a, b) == bdd.apply_and(b, a)
        assert bdd.variable(0) == a

    def test_reduction(self):
        bdd = Bdd(1)
        assert bdd.node(0, TRUE, TRUE) == TRUE

    def test_variable_out_of_range(self):
        with pytest.raises(ValueError):
            Bdd(2).variable(2)

    def test_signed_literal(self):
        bdd = Bdd(2)
        assert bdd.literal(-1) == bdd.variable(0, complement=True)
        assert bdd.literal(2) == bdd.variable(1)

    def test_from_pdag_matches_truth_table(self, make_model):
        names = [f"E{i}" for i in range(5)]
        model = make_model({"Top": ATLEAST(3, *names)}, dict.fromkeys(names, 0.1))
        pdag = normalize(model, "Top")
        bdd = Bdd(pdag.num_variables)
        root = bdd.from_pdag(pdag)
        for values in product([False, True], repeat=5):
            assert _evaluate(bdd, root, values) == (sum(values) >= 3)

    def test_from_products(self):
        bdd = Bdd(3)
        root = bdd.from_products([(1,), (2, 3)])
        assert _evaluate(bdd, root, (True, False, False))
        assert _evaluate(bdd, root, (False, True, True))
        assert not _evaluate(bdd, root, (False, True, False))

    def test_house_event_folded_before_build(self, make_model):
        model = make_model({"Top": ATLEAST(2, "A", "B", "H")}, {"A": 0.1, "B": 0.1}, houses={"H": True})
        pdag = normalize(model, "Top")
        assert Bdd(pdag.num_variables).from_pdag(pdag) > TRUE


class TestProbability:
    def test_or_and(self):
        bdd = Bdd(3)
        root = bdd.from_products([(1,), (2, 3)])
        assert bdd.probability(root, [0.1, 0.2, 0.3]) == pytest.approx(0.154)

    def test_complement(self):
        bdd = Bdd(2)
        root = bdd.from_products([(1, -2), (-1, 2)])
        assert bdd.probability(root, [0.5, 0.5]) == pytest.approx(0.5)

    def test_terminals(self):
        bdd = Bdd(1)
        assert bdd.probability(FALSE, [0.3]) == 0.0
        assert bdd.probability(TRUE, [0.3]) == 1.0


class TestMinimalCutSets:
    def test_or_and(self):
        bdd = Bdd(3)
        root = bdd.from_products([(1,), (2, 3), (1, 2)])
        assert bdd.minimal_cut_sets(root, 10) == {frozenset({0}), frozenset({1, 2})}
        assert bdd.truncated is False

    def test_order_limit(self):
        bdd = Bdd(3)
        root = bdd.from_products([(1,), (2, 3)])
        assert bdd.minimal_cut_sets(root, 1) == {frozenset({0})}
        assert bdd.truncated is True

    def test_constants(self):
        bdd = Bdd(1)
        assert bdd.minimal_cut_sets(TRUE, 3) == {frozenset()}
        assert bdd.minimal_cut_sets(FALSE, 3) == set()
        assert bdd.truncated is False


class TestPrimeImplicants:
    def test_xor(self):
        bdd = Bdd(2)
        root = bdd.from_products([(1, -2), (-1, 2)])
        assert bdd.prime_implicants(root, 10) == {frozenset({1, -2}), frozenset({-1, 2})}

    def test_consensus_term(self):
        # a.b + not-a.c has the consensus prime b.c
        bdd = Bdd(3)
        root = bdd.from_products([(1, 2), (-1, 3)])
        assert bdd.prime_implicants(root, 10) == {
            frozenset({1, 2}),
            frozenset({-1, 3}),
            frozenset({2, 3}),
        }

    def test_monotone_function_primes_equal_cut_sets(self):
        bdd = Bdd(3)
        root = bdd.from_products([(1,), (2, 3)])
        assert bdd.prime_implicants(root, 10) == {frozenset({1}), frozenset({2, 3})}


def test_budget_cancellation():
    token = CancellationToken()
    token.cancel()
    bdd = Bdd(20, WorkBudget(token=token, check_interval=1))
    with pytest.raises(Cancelled):
        bdd.from_products([(i, i + 1) for i in range(1, 20)])


class TestTruncation:
    def test_prime_implicants_within_limit_are_complete(self):
        # not-A + not-C: exploring the positive cofactors hits the limit but loses nothing
        bdd = Bdd(2)
        root = bdd.from_products([(-1,), (-2,)])
        assert bdd.prime_implicants(root, 1) == {frozenset({-1}), frozenset({-2})}
        assert bdd.truncated is False

    def test_prime_implicants_above_limit(self):
        bdd = Bdd(2)
        root = bdd.from_products([(1, -2), (-1, 2)])
        assert bdd.prime_implicants(root, 1) == set()
        assert bdd.truncated is True


class TestLargeDiagrams:
    NUM_VARIABLES = 1200

    def test_wide_disjunction(self):
        n = self.NUM_VARIABLES
        bdd = Bdd(n)
        root = bdd.from_products([(i,) for i in range(1, n + 1)])
        assert bdd.probability(root, [0.001] * n) == pytest.approx(1 - 0.999**n)
        cut_sets = bdd.minimal_cut_sets(root, 2)
        assert cut_sets == {frozenset({i}) for i in range(n)}
        assert bdd.truncated is False
        assert bdd.prime_implicants(root, 1) == {frozenset({i}) for i in range(1, n + 1)}
        assert bdd.truncated is False

    def test_wide_conjunction_and_negation(self):
        n = self.NUM_VARIABLES
        bdd = Bdd(n)
        root = bdd.conjunction(bdd.variable(i) for i in reversed(range(n)))
        assert bdd.probability(root, [1.0] * n) == 1.0
        assert bdd.negate(bdd.negate(root)) == root
        assert bdd.apply_or(root, bdd.negate(root)) == TRUE
        assert bdd.minimal_cut_sets(root, n) == {frozenset(range(n))}
