"""Tests for result artifacts and their serialization."""

import json
import math

import pandas as pd
import pytest

from ftquant.errors import Cancelled, ValidationError, ValidationRule
from ftquant.results.artifacts import (
    AnalysisResult,
    FaultTreeResult,
    ImportanceRecord,
    ImportanceTable,
    ProductSet,
    UncertaintyResult,
)
from ftquant.types.base import Status
from ftquant.types.dto import Literal, Product


def _product(*names: str, probability=None, contribution=None) -> Product:
    literals = tuple(
        sorted(Literal(n[4:], True) if n.startswith("not ") else Literal(n) for n in names)
    )
    return Product(literals, probability, contribution)


class TestProduct:
    def test_properties(self):
        p = _product("A", "not B")
        assert p.order == 2
        assert p.events == ("A", "B")
        assert str(p) == "{A, not B}"
        assert not p.is_unity

    def test_unity(self):
        assert Product(()).is_unity
        assert str(Product(())) == "{}"

    def test_literal_negation(self):
        assert -Literal("A") == Literal("A", True)
        assert -(-Literal("A")) == Literal("A")


class TestProductSet:
    def test_container_protocol(self):
        products = ProductSet((_product("A"), _product("B", "C")))
        assert len(products) == 2
        assert products[0] == _product("A")
        assert [p.order for p in products] == [1, 2]

    def test_unity_and_null(self):
        assert ProductSet((Product(()),)).is_unity
        assert ProductSet().is_null
        assert not ProductSet(truncated=True).is_null
        assert not ProductSet((_product("A"),)).is_unity

    def test_event_statistics(self):
        products = ProductSet(
            (_product("A", "not B"), _product("not A", "C"), _product("B", "C")),
            prime_implicants=True,
        )
        assert products.events() == ["A", "B", "C"]
        assert products.occurrences() == {"A": 2, "B": 2, "C": 2}
        assert products.distribution() == {2: 3}
        assert frozenset({"not A", "C"}) in products.as_sets()

    def test_to_dataframe(self):
        products = ProductSet(
            (_product("A", probability=0.1, contribution=0.5), _product("B", "not C"))
        )
        frame = products.to_dataframe()
        assert list(frame.columns) == ["product", "order", "probability", "contribution"]
        assert list(frame["product"]) == ["A", "B not C"]
        assert list(frame["order"]) == [1, 2]

    def test_empty_dataframe_keeps_columns(self):
        frame = ProductSet().to_dataframe()
        assert isinstance(frame, pd.DataFrame)
        assert frame.empty
        assert list(frame.columns) == ["product", "order", "probability", "contribution"]

    def test_to_dict(self):
        data = ProductSet((_product("not A"),), truncated=True, prime_implicants=True).to_dict()
        assert data["kind"] == "prime_implicants"
        assert data["truncated"] is True
        assert data["products"][0]["literals"] == [{"event": "A", "complement": True}]
        assert data["distribution"] == {1: 1}


class TestImportance:
    def test_defaults_are_neutral(self):
        record = ImportanceRecord("A", 0, 0.1)
        assert (record.mif, record.cif, record.dif, record.raw, record.rrw) == (
            0.0,
            0.0,
            0.0,
            1.0,
            1.0,
        )

    def test_infinite_worth_serializes(self):
        record = ImportanceRecord("A", 1, 0.1, rrw=math.inf)
        assert record.to_dict()["rrw"] == "inf"
        json.dumps(record.to_dict())

    def test_table_lookup(self):
        table = ImportanceTable((ImportanceRecord("A", 1, 0.1), ImportanceRecord("B", 2, 0.2)))
        assert len(table) == 2
        assert table["B"].occurrence == 2
        assert "A" in table
        with pytest.raises(KeyError, match="'C'"):
            table["C"]
        assert list(table.to_dict()) == ["A", "B"]
        assert table.to_dataframe().loc["B", "probability"] == 0.2


def _uncertainty() -> UncertaintyResult:
    return UncertaintyResult(
        mean=0.1,
        sigma=0.01,
        confidence_interval=(0.09, 0.11),
        error_factor=1.5,
        quantiles={0.05: 0.08, 0.5: 0.1, 0.95: 0.15},
        histogram=((0.0, 0.1, 5.0), (0.1, 0.2, 5.0)),
        num_trials=100,
    )


class TestFaultTreeResult:
    def test_ok(self):
        assert FaultTreeResult("FT", Status.COMPLETE).ok
        assert not FaultTreeResult("FT", Status.TRUNCATED).ok

    def test_to_dict_with_structured_error(self):
        error = ValidationError(ValidationRule.CYCLE, "G1", "cycle", cycle=("G1", "G2", "G1"))
        data = FaultTreeResult("FT", Status.FAILED, error=error).to_dict()
        assert data["status"] == "failed"
        assert data["error"]["rule"] == "cycle"
        assert data["error"]["cycle"] == ["G1", "G2", "G1"]
        assert data["products"] is None

    def test_to_dict_with_plain_error(self):
        data = FaultTreeResult("FT", Status.CANCELLED, error=Cancelled("stop")).to_dict()
        assert data["error"] == {"error": "Cancelled", "message": "stop"}

    def test_to_dict_is_json_serializable(self):
        result = FaultTreeResult(
            "FT",
            Status.COMPLETE,
            top_gate="Top",
            products=ProductSet((_product("A", probability=0.1, contribution=1.0),)),
            probability=0.1,
            importance=ImportanceTable((ImportanceRecord("A", 1, 0.1, rrw=math.inf),)),
            uncertainty=_uncertainty(),
            warnings=("careful",),
        )
        data = json.loads(json.dumps(result.to_dict()))
        assert data["uncertainty"]["quantiles"]["0.95"] == 0.15
        assert data["importance"]["A"]["rrw"] == "inf"
        assert data["warnings"] == ["careful"]


class TestAnalysisResult:
    def _result(self) -> AnalysisResult:
        return AnalysisResult(
            results={
                "One": FaultTreeResult(
                    "One", Status.COMPLETE, top_gate="T1", products=ProductSet(), probability=0.0
                ),
                "Two": FaultTreeResult("Two", Status.FAILED),
            },
            settings={"limit_order": 20},
            duration=1.5,
        )

    def test_mapping_access(self):
        result = self._result()
        assert len(result) == 2
        assert result["Two"].status == Status.FAILED
        assert [r.name for r in result] == ["One", "Two"]
        assert [r.name for r in result.by_status(Status.COMPLETE)] == ["One"]

    def test_summary(self):
        frame = self._result().summary()
        assert list(frame.index) == ["One", "Two"]
        assert frame.loc["One", "products"] == 0
        assert frame.loc["Two", "status"] == "failed"

    def test_to_dict(self):
        data = self._result().to_dict()
        assert data["settings"] == {"limit_order": 20}
        assert data["duration"] == 1.5
        assert list(data["fault_trees"]) == ["One", "Two"]
