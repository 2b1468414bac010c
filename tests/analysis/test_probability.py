"""Tests for top-event probability calculation."""

import logging

import pytest

from ftquant.analysis.pdag import normalize
from ftquant.analysis.probability import (
    ProbabilityCalculator,
    annotate_products,
    check_event_probability,
    check_range,
    event_probabilities,
)
from ftquant.analysis.products import generate_products
from ftquant.analysis.risk import analyze
from ftquant.config import AnalysisSettings
from ftquant.errors import (
    InvalidExpressionError,
    ProbabilityRangeError,
    ValidationError,
    ValidationRule,
)
from ftquant.model import AND, OR, BasicEvent, ExponentialExpression, FaultTree, Gate, Model
from ftquant.results.artifacts import ProductSet
from ftquant.types.base import Approximation
from ftquant.types.dto import Literal, Product


def _calculator(model, top, approximation=Approximation.NONE, **kwargs):
    settings = AnalysisSettings(approximation=approximation, **kwargs)
    pdag = normalize(model, top, settings)
    products = generate_products(pdag, settings)
    probabilities = event_probabilities(model, pdag.variables, settings.mission_time)
    return ProbabilityCalculator(products, approximation, order=pdag.variables), probabilities


class TestEventProbabilities:
    def test_constant_and_exponential(self):
        model = Model()
        model.add_basic_event(BasicEvent("A", ExponentialExpression(1e-4)))
        result = event_probabilities(model, ["A"], 1000)
        assert result["A"] == pytest.approx(0.09516258)

    def test_missing_expression(self, make_model):
        model = make_model({"Top": OR("A", "B")}, {"A": 0.1, "B": None})
        with pytest.raises(ValidationError) as excinfo:
            event_probabilities(model, ["A", "B"], 10)
        assert excinfo.value.rule == ValidationRule.MISSING_EXPRESSION
        assert excinfo.value.entity == "B"

    def test_invalid_expression_names_event(self, make_model):
        model = make_model({"Top": OR("A", "B")}, {"A": 0.1, "B": 1.2})
        with pytest.raises(InvalidExpressionError, match="Basic event 'B'"):
            event_probabilities(model, ["A", "B"], 10)

    def test_check_event_probability_clamps_noise(self):
        assert check_event_probability(1.0 + 1e-12, "A") == 1.0
        assert check_event_probability(-1e-12, "A") == 0.0
        with pytest.raises(InvalidExpressionError):
            check_event_probability(1.1, "A")


class TestApproximations:
    def test_or_and_exact(self, or_and_model):
        calc, p = _calculator(or_and_model, "Top")
        assert calc.value(p) == pytest.approx(0.1 + 0.2 * 0.3 - 0.1 * 0.2 * 0.3)
        assert calc.value(p) == pytest.approx(0.154)

    def test_or_and_rare_event(self, or_and_model):
        calc, p = _calculator(or_and_model, "Top", Approximation.RARE_EVENT)
        assert calc.value(p) == pytest.approx(0.16)

    def test_or_and_mcub(self, or_and_model):
        calc, p = _calculator(or_and_model, "Top", Approximation.MCUB)
        assert calc.value(p) == pytest.approx(1 - 0.9 * 0.94)

    def test_two_train_exact(self, two_train_model):
        calc, p = _calculator(two_train_model, "TopEvent")
        assert calc.value(p) == pytest.approx(0.7225)

    def test_two_train_rare_event_clamped(self, two_train_model, caplog):
        calc, p = _calculator(two_train_model, "TopEvent", Approximation.RARE_EVENT)
        assert calc.rare_event(p) == pytest.approx(1.44)
        with caplog.at_level(logging.WARNING, logger="ftquant"):
            value, warnings = calc.quantify(p)
        assert value == 1.0
        assert any("exceeds 1" in w for w in warnings)
        assert "clamped to 1" in caplog.text

    def test_rare_event_accuracy_warning(self, or_and_model):
        calc, p = _calculator(or_and_model, "Top", Approximation.RARE_EVENT)
        value, warnings = calc.quantify(p)
        assert value == pytest.approx(0.16)
        assert warnings == []

        calc, p = _calculator(or_and_model, "Top", Approximation.RARE_EVENT)
        p["A"] = 0.3
        _, warnings = calc.quantify(p)
        assert any("> 0.1" in w for w in warnings)

    def test_rare_event_divergence(self, or_and_model):
        calc, p = _calculator(or_and_model, "Top", Approximation.RARE_EVENT)
        # (0.16 - 0.154) / 0.154 = 3.9%
        _, warnings = calc.quantify(p, rare_event_divergence=0.05)
        assert not any("diverges" in w for w in warnings)
        _, warnings = calc.quantify(p, rare_event_divergence=0.01)
        assert any("diverges" in w for w in warnings)

    def test_exact_xor_over_products(self, xor_model):
        calc, p = _calculator(xor_model, "Top", prime_implicants=True)
        assert calc.value(p) == pytest.approx(0.5)
        calc, p = _calculator(xor_model, "Top")
        assert calc.value(p) == pytest.approx(0.75)

    def test_unity_and_null(self):
        unity = ProductSet(products=(Product(()),))
        assert ProbabilityCalculator(unity).value({}) == 1.0
        assert ProbabilityCalculator(unity, Approximation.RARE_EVENT).value({}) == 1.0
        assert ProbabilityCalculator(ProductSet()).value({}) == 0.0

    def test_complemented_literal_probability(self):
        products = ProductSet(
            products=(Product((Literal("A"), Literal("B", True))),), prime_implicants=True
        )
        calc = ProbabilityCalculator(products, Approximation.RARE_EVENT)
        assert calc.value({"A": 0.5, "B": 0.2}) == pytest.approx(0.4)


class TestMonotonicity:
    @pytest.mark.parametrize("approximation", list(Approximation))
    @pytest.mark.parametrize(
        "fixture, top", [("two_train_model", "TopEvent"), ("or_and_model", "Top")]
    )
    def test_raising_an_event_probability_never_lowers_top(
        self, request, fixture, top, approximation
    ):
        calc, p = _calculator(request.getfixturevalue(fixture), top, approximation)
        base = calc.value(p)
        for event in p:
            previous = base
            for value in (p[event] + 0.01, p[event] + 0.1, 0.9, 1.0):
                raised = dict(p)
                raised[event] = min(1.0, value)
                current = calc.value(raised)
                assert current >= previous - 1e-12, (event, value)
                previous = current

    @pytest.mark.parametrize("approximation", ["none", "rare-event", "mcub"])
    def test_end_to_end(self, make_model, approximation):
        gates = {"Top": OR("A", "G1"), "G1": AND("B", "C")}
        base = {"A": 0.1, "B": 0.2, "C": 0.3}
        top = analyze(make_model(gates, base), approximation=approximation)["FT"].probability
        for event in base:
            raised = dict(base, **{event: base[event] * 2})
            result = analyze(make_model(gates, raised), approximation=approximation)["FT"]
            assert result.probability > top


class TestRangeChecks:
    def test_check_range(self):
        assert check_range(1.0 + 1e-12) == 1.0
        assert check_range(-1e-12) == 0.0
        with pytest.raises(ProbabilityRangeError):
            check_range(1.5)
        with pytest.raises(ArithmeticError):
            check_range(float("nan"))


def test_annotate_products(or_and_model):
    calc, p = _calculator(or_and_model, "Top")
    total = calc.value(p)
    annotated = annotate_products(calc.products, calc, p, total)
    assert [prod.probability for prod in annotated] == pytest.approx([0.1, 0.06])
    assert [prod.contribution for prod in annotated] == pytest.approx([0.1 / 0.154, 0.06 / 0.154])

    zero = annotate_products(calc.products, calc, p, 0.0)
    assert all(prod.contribution == 0.0 for prod in zero)


def test_order_places_unknown_events_last():
    products = ProductSet(products=(Product((Literal("A"), Literal("B"))),))
    calc = ProbabilityCalculator(products, order=["B"])
    assert calc.events == ["B", "A"]


def test_exponential_events_under_and_gate():
    model = Model()
    model.add_fault_tree(FaultTree("FT"))
    model.add_basic_event(BasicEvent("A", ExponentialExpression(1e-3)))
    model.add_basic_event(BasicEvent("B", ExponentialExpression(2e-3)))
    model.add_gate(Gate("Top", AND("A", "B")), "FT")
    calc, p = _calculator(model, "Top", mission_time=100)
    expected = (1 - 2.718281828459045 ** -0.1) * (1 - 2.718281828459045 ** -0.2)
    assert calc.value(p) == pytest.approx(expected)
