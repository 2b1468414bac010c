"""Tests for product generation: minimal cut sets and prime implicants."""

from itertools import product

import pytest

from ftquant.analysis.budget import WorkBudget
from ftquant.analysis.pdag import normalize
from ftquant.analysis.products import generate_products
from ftquant.config import AnalysisSettings
from ftquant.errors import AnalysisLimitExceeded
from ftquant.model import AND, ATLEAST, NAND, NOT, OR
from ftquant.results.artifacts import ProductSet
from ftquant.types.dto import Literal


def _products(model, top, **kwargs):
    settings = AnalysisSettings(**kwargs)
    return generate_products(normalize(model, top, settings), settings)


def _holds(products: ProductSet, assignment) -> bool:
    return any(
        all(assignment[lit.event] != lit.complement for lit in p.literals) for p in products
    )


class TestCutSets:
    def test_or_and(self, or_and_model):
        products = _products(or_and_model, "Top")
        assert products.as_sets() == {frozenset({"A"}), frozenset({"B", "C"})}
        assert products.truncated is False
        assert products.prime_implicants is False
        assert [str(p) for p in products] == ["{A}", "{B, C}"]

    def test_two_train(self, two_train_model):
        products = _products(two_train_model, "TopEvent")
        assert len(products) == 4
        assert products.as_sets() == {
            frozenset({"ValveOne", "ValveTwo"}),
            frozenset({"ValveOne", "PumpTwo"}),
            frozenset({"ValveTwo", "PumpOne"}),
            frozenset({"PumpOne", "PumpTwo"}),
        }

    def test_sorted_by_order_then_names(self, make_model):
        model = make_model(
            {"Top": OR("Z", "G1", "G2"), "G1": AND("B", "C"), "G2": AND("A", "D")},
            dict.fromkeys("ABCDZ", 0.1),
        )
        products = _products(model, "Top")
        assert [p.events for p in products] == [("Z",), ("A", "D"), ("B", "C")]

    def test_mocus_agrees_with_bdd(self, two_train_model):
        bdd = _products(two_train_model, "TopEvent")
        mocus = _products(two_train_model, "TopEvent", algorithm="mocus")
        assert mocus.products == bdd.products

    @pytest.mark.parametrize("vote,count", [(2, 3), (3, 5), (4, 9)])
    def test_minimal_and_complete(self, make_model, vote, count):
        names = [f"E{i}" for i in range(count)]
        model = make_model({"Top": ATLEAST(vote, *names)}, dict.fromkeys(names, 0.1))
        products = _products(model, "Top")
        pdag = normalize(model, "Top")
        # Every product implies the top event and no literal can be dropped
        for p in products:
            events = set(p.events)
            assert pdag.evaluate({name: name in events for name in names})
            for removed in events:
                assert not pdag.evaluate({name: name in events - {removed} for name in names})
        # Every failure state is covered by some product
        for values in product([False, True], repeat=count):
            assignment = dict(zip(names, values))
            assert _holds(products, assignment) == pdag.evaluate(assignment)

    def test_antichain(self, two_train_model):
        sets = [frozenset(p.events) for p in _products(two_train_model, "TopEvent")]
        for a in sets:
            for b in sets:
                assert a == b or not a <= b


class TestPrimeImplicants:
    def test_xor_modes_differ(self, xor_model):
        primes = _products(xor_model, "Top", prime_implicants=True)
        assert primes.prime_implicants is True
        assert set(primes.products[0].literals) | set(primes.products[1].literals) == {
            Literal("A"),
            Literal("A", True),
            Literal("B"),
            Literal("B", True),
        }
        assert primes.as_sets() == {frozenset({"A", "not B"}), frozenset({"not A", "B"})}

        cut_sets = _products(xor_model, "Top")
        assert cut_sets.as_sets() == {frozenset({"A"}), frozenset({"B"})}

    def test_non_coherent_tree(self, make_model):
        model = make_model({"Top": OR(AND("A", "B"), AND(NOT("A"), "C"))}, dict.fromkeys("ABC", 0.1))
        primes = _products(model, "Top", prime_implicants=True)
        assert primes.as_sets() == {
            frozenset({"A", "B"}),
            frozenset({"not A", "C"}),
            frozenset({"B", "C"}),
        }

    def test_mode_mismatch_rejected(self, xor_model):
        settings = AnalysisSettings(prime_implicants=True)
        with pytest.raises(ValueError):
            generate_products(normalize(xor_model, "Top", complements=False), settings)
        with pytest.raises(ValueError):
            generate_products(normalize(xor_model, "Top", complements=True), AnalysisSettings())


class TestLimits:
    def test_order_limit_drops_everything(self, and3_model):
        products = _products(and3_model, "Top", limit_order=1)
        assert len(products) == 0
        assert products.truncated is True
        assert products.is_null is False

    def test_order_limit_keeps_small_products(self, or_and_model):
        products = _products(or_and_model, "Top", limit_order=1)
        assert products.as_sets() == {frozenset({"A"})}
        assert products.truncated is True

    @pytest.mark.parametrize("algorithm", ["bdd", "mocus"])
    def test_product_limit(self, two_train_model, algorithm):
        products = _products(two_train_model, "TopEvent", limit_products=2, algorithm=algorithm)
        assert len(products) == 2
        assert products.truncated is True
        assert [p.events for p in products] == [("PumpOne", "PumpTwo"), ("PumpOne", "ValveTwo")]

    def test_prime_implicants_within_order_limit_not_truncated(self, make_model):
        model = make_model({"Top": NAND("A", "C")}, {"A": 0.1, "C": 0.1})
        products = _products(model, "Top", prime_implicants=True, limit_order=1)
        assert products.as_sets() == {frozenset({"not A"}), frozenset({"not C"})}
        assert products.truncated is False

    def test_monotone_prime_implicants_at_order_limit_not_truncated(self, make_model):
        model = make_model({"Top": AND("C", OR("D", "A"))}, dict.fromkeys("ACD", 0.1))
        products = _products(model, "Top", prime_implicants=True, limit_order=2)
        assert products.as_sets() == {frozenset({"A", "C"}), frozenset({"C", "D"})}
        assert products.truncated is False

    def test_prime_implicants_above_order_limit_truncated(self, xor_model):
        products = _products(xor_model, "Top", prime_implicants=True, limit_order=1)
        assert len(products) == 0
        assert products.truncated is True

    def test_product_limit_not_reached(self, or_and_model):
        products = _products(or_and_model, "Top", limit_products=5)
        assert products.truncated is False

    def test_timeout_attaches_partial(self, two_train_model):
        ticks = iter(range(1000))
        settings = AnalysisSettings(algorithm="mocus")
        budget = WorkBudget(time_limit=1.0, check_interval=1, clock=lambda: float(next(ticks)))
        with pytest.raises(AnalysisLimitExceeded) as excinfo:
            generate_products(normalize(two_train_model, "TopEvent"), settings, budget)
        assert isinstance(excinfo.value.partial, ProductSet)
        assert excinfo.value.partial.truncated is True


class TestConstants:
    def test_tautology(self, make_model):
        model = make_model({"Top": OR("A", "H")}, {"A": 0.1}, houses={"H": True})
        products = _products(model, "Top")
        assert products.is_unity
        assert products.truncated is False

    def test_contradiction(self, make_model):
        model = make_model({"Top": AND("A", "H")}, {"A": 0.1}, houses={"H": False})
        products = _products(model, "Top")
        assert len(products) == 0
        assert products.is_null
