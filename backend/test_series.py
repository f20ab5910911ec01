"""
Tests for record derivation, range scaling, the metric registry and the series builder.
"""

import copy
import math

import pytest
from pydantic import ValidationError

from core.metrics import DEFAULT_METRICS, MetricRegistry, default_registry
from core.models import AccessorMetric, MetricDescriptor, SeriesOptions
from core.utils import safe_number
from skills.derive import derive_record, derive_records
from skills.scaling import compute_min_max, min_max_normalize
from skills.series import build_series


class TestSafeNumber:
    """Tests for numeric-safe coercion."""

    @pytest.mark.parametrize("raw,expected", [
        (42, 42.0),
        ("42", 42.0),
        (" 7.5 ", 7.5),
        (True, 1.0),
        (False, 0.0),
        (None, 0.0),
        ("", 0.0),
        ("not-a-number", 0.0),
        (float("inf"), 0.0),
        (float("-inf"), 0.0),
        (float("nan"), 0.0),
        ("Infinity", 0.0),
        ("1_000", 0.0),
        ("1e3", 1000.0),
        ([1, 2], 0.0),
        ({"a": 1}, 0.0),
    ])
    def test_safe_number(self, raw, expected):
        assert safe_number(raw) == expected


class TestRecordNormalizer:
    """Tests for derive_record."""

    def test_computes_totals(self):
        out = derive_record({"purchases": "4", "avgSpend": 2.5, "visits": 2, "miles": "100"})
        assert out["purchases"] == 4.0
        assert out["avgSpend"] == 2.5
        assert out["miles"] == 100.0
        assert out["totalSpend"] == 10.0
        assert out["spendPerVisit"] == 5.0

    def test_zero_visits_gives_zero_spend_per_visit(self):
        out = derive_record({"purchases": 1, "avgSpend": 10, "visits": 0})
        assert out["totalSpend"] == 10.0
        assert out["spendPerVisit"] == 0.0

    def test_negative_visits_gives_zero_spend_per_visit(self):
        out = derive_record({"purchases": 1, "avgSpend": 10, "visits": -3})
        assert out["spendPerVisit"] == 0.0

    def test_every_numeric_field_is_finite(self):
        out = derive_record({"purchases": 1e308, "avgSpend": 1e308, "visits": "x", "miles": float("nan")})
        for key in ("purchases", "visits", "miles", "avgSpend", "totalSpend", "spendPerVisit"):
            assert math.isfinite(out[key]), key
        assert out["totalSpend"] == 0.0

    def test_name_from_title_first_last(self):
        out = derive_record({"title": "Dr", "firstName": "Al", "lastName": "Capone"})
        assert out["name"] == "Dr Al Capone"

    def test_name_skips_empty_parts(self):
        out = derive_record({"title": "", "firstName": "Ada", "lastName": None})
        assert out["name"] == "Ada"

    def test_name_falls_back_to_passenger_id(self):
        assert derive_record({"passengerId": "PID999"})["name"] == "PID999"
        assert derive_record({"passengerId": 12})["name"] == "12"

    def test_name_falls_back_to_unknown(self):
        assert derive_record({})["name"] == "Unknown"
        assert derive_record({"passengerId": ""})["name"] == "Unknown"

    def test_carries_forward_fields_without_mutating_input(self):
        raw = {"firstName": "X", "purchases": "3", "type": "GOLD", "extra": [1, 2]}
        before = copy.deepcopy(raw)
        out = derive_record(raw)
        assert raw == before
        assert out is not raw
        assert out["type"] == "GOLD"
        assert out["extra"] == [1, 2]
        assert out["purchases"] == 3.0

    def test_non_mapping_record_is_treated_as_empty(self):
        out = derive_record("garbage")
        assert out["name"] == "Unknown"
        assert out["totalSpend"] == 0.0

    def test_derive_records_handles_none(self):
        assert derive_records(None) == []


class TestRangeScaler:
    """Tests for compute_min_max and min_max_normalize."""

    def test_passthrough_identities(self):
        assert min_max_normalize(None) is None
        empty = []
        assert min_max_normalize(empty) is empty

    def test_equal_values_collapse_to_zero(self):
        assert min_max_normalize([5, 5, 5]) == [0.0, 0.0, 0.0]
        assert min_max_normalize([0, 0]) == [0.0, 0.0]

    def test_scales_to_0_100(self):
        out = min_max_normalize([0, 50, 100])
        assert out == [0.0, 50.0, 100.0]
        out = min_max_normalize([40, 50, 45])
        assert min(out) == 0.0
        assert max(out) == 100.0
        assert out[2] == pytest.approx(50.0)

    def test_range_wider_than_float_max(self):
        out = min_max_normalize([-1e308, 0.0, 1e308])
        assert out == [0.0, 50.0, 100.0]
        out = min_max_normalize([1.7e308, -1.7e308])
        assert out == [100.0, 0.0]

    def test_compute_min_max(self):
        assert compute_min_max([0, 50, 100]) == (0, 100)
        assert compute_min_max([3, -1, 2]) == (-1, 3)
        assert compute_min_max([]) == (None, None)

    def test_nan_only_inputs_are_non_finite(self):
        lo, hi = compute_min_max([float("nan"), float("nan")])
        assert not math.isfinite(lo)
        assert not math.isfinite(hi)
        out = min_max_normalize([float("nan"), float("nan")])
        assert isinstance(out, list)
        assert len(out) == 2


class TestMetricRegistry:
    """Tests for MetricRegistry."""

    def test_defaults(self):
        reg = default_registry()
        keys = [m.key for m in reg.list()]
        assert keys == ["purchases", "visits", "miles", "avgSpend", "totalSpend", "spendPerVisit"]
        assert reg.get("avgSpend").label == "AvgSpend"
        assert reg.get("missing") is None

    def test_label_at(self):
        reg = default_registry()
        assert reg.label_at(0) == "Purchases"
        assert reg.label_at(5) == "SpendPerVisit"
        assert reg.label_at(6) is None
        assert reg.label_at(-1) is None
        assert reg.label_at(None) is None

    def test_register_rejects_duplicates(self):
        reg = default_registry()
        with pytest.raises(ValueError):
            reg.register(MetricDescriptor(key="visits", label="Visits again"))

    def test_replace_and_remove(self):
        reg = default_registry()
        reg.replace(MetricDescriptor(key="visits", label="Trips"))
        assert reg.index_of("visits") == 1
        assert reg.get("visits").label == "Trips"
        assert reg.remove("visits") is True
        assert reg.remove("visits") is False
        assert "visits" not in reg
        assert len(reg) == len(DEFAULT_METRICS) - 1

    def test_registries_are_isolated(self):
        reg = default_registry()
        reg.remove("totalSpend")
        clone = reg.copy()
        clone.register(MetricDescriptor(key="score", label="Score"))
        assert default_registry().get("totalSpend") is not None
        assert reg.get("score") is None

    def test_accessor_must_be_callable(self):
        with pytest.raises(ValidationError):
            AccessorMetric(key="miles", label="Miles", accessor="not-a-fn")


class TestSeriesBuilder:
    """Tests for build_series."""

    @pytest.fixture
    def spenders(self):
        return [
            {"purchases": 10, "avgSpend": 5, "visits": 2},
            {"purchases": 20, "avgSpend": 2, "visits": 1},
        ]

    @pytest.fixture
    def passengers(self):
        return [
            {"firstName": "A", "lastName": "One", "purchases": 10, "visits": 1},
            {"firstName": "B", "lastName": "Two", "purchases": 20, "visits": 2},
            {"firstName": "C", "lastName": "Three", "purchases": 15, "visits": 3},
        ]

    def test_total_spend_preserves_order(self, spenders):
        out = build_series(spenders, "totalSpend")
        assert out.values == [50, 40]

    def test_total_spend_sorted_ascending(self, spenders):
        out = build_series(spenders, "totalSpend", {"sort": "asc"})
        assert out.values == [40, 50]

    def test_equal_values_normalize_to_zero(self):
        records = [{"purchases": 2, "avgSpend": 5, "visits": 1}] * 2
        out = build_series(records, "totalSpend", {"normalize": True})
        assert out.values == [0, 0]

    def test_spend_per_visit(self, spenders):
        out = build_series(spenders, "spendPerVisit")
        assert out.values == [25.0, 40.0]

    @pytest.mark.parametrize("records", [[], None])
    @pytest.mark.parametrize("options", [None, {"normalize": True}, {"sort": "desc"}])
    def test_empty_input(self, records, options):
        out = build_series(records, "totalSpend", options)
        assert out.labels == []
        assert out.values == []
        assert out.rows == []

    def test_defaults(self, passengers):
        out = build_series(passengers)
        assert out.values == [10, 20, 15]
        assert out.labels == ["A One", "B Two", "C Three"]

    @pytest.mark.parametrize("sort", ["asc", "desc", "none", "sideways"])
    def test_arrays_stay_aligned(self, passengers, sort):
        out = build_series(passengers, "purchases", {"sort": sort, "normalize": True})
        assert len(out.labels) == len(out.values) == len(out.rows) == 3
        for label, value, row in zip(out.labels, out.values, out.rows):
            assert row["name"] == label
            assert row["value"] == value

    def test_sort_directions(self, passengers):
        asc = build_series(passengers, "purchases", {"sort": "asc"})
        assert all(a <= b for a, b in zip(asc.values, asc.values[1:]))
        assert asc.labels == ["A One", "C Three", "B Two"]
        desc = build_series(passengers, "purchases", {"sort": "desc"})
        assert all(a >= b for a, b in zip(desc.values, desc.values[1:]))
        assert desc.labels == ["B Two", "C Three", "A One"]

    def test_unrecognised_sort_keeps_input_order(self, passengers):
        out = build_series(passengers, "purchases", SeriesOptions(sort="random"))
        assert out.values == [10, 20, 15]

    def test_sort_is_stable_for_ties(self):
        records = [
            {"firstName": "A", "purchases": 1},
            {"firstName": "B", "purchases": 2},
            {"firstName": "C", "purchases": 1},
            {"firstName": "D", "purchases": 2},
        ]
        assert build_series(records, "purchases", {"sort": "asc"}).labels == ["A", "C", "B", "D"]
        assert build_series(records, "purchases", {"sort": "desc"}).labels == ["B", "D", "A", "C"]

    def test_normalize_reaches_100(self, passengers):
        out = build_series(passengers, "purchases", {"normalize": True})
        assert max(out.values) == 100
        assert min(out.values) == 0
        assert out.values[2] == pytest.approx(50.0)

    def test_rows_carry_derived_fields(self, passengers):
        out = build_series(passengers, "visits")
        row = out.rows[0]
        assert row["name"] == "A One"
        assert row["value"] == 1.0
        assert row["totalSpend"] == 0.0
        assert row["firstName"] == "A"

    def test_normalize_extreme_range_stays_finite(self):
        records = [{"miles": -1e308}, {"miles": 1e308}]
        out = build_series(records, "miles", {"normalize": True})
        assert out.values == [0.0, 100.0]

    def test_non_numeric_value_becomes_zero(self):
        out = build_series([{"firstName": "X", "purchases": "not-a-number"}], "purchases")
        assert out.values == [0]

    def test_unknown_metric_uses_direct_lookup(self):
        out = build_series([{"firstName": "X", "mystery": "7"}, {"mystery": 3}, {}], "mystery")
        assert out.values == [7, 3, 0]

    def test_computed_metrics_survive_missing_registry_entries(self):
        reg = default_registry()
        reg.remove("totalSpend")
        reg.remove("spendPerVisit")
        records = [{"purchases": 2, "avgSpend": 5, "visits": 1}, {"purchases": 3, "avgSpend": 10, "visits": 2}]
        assert build_series(records, "totalSpend", registry=reg).values == [10, 30]
        assert build_series(records, "spendPerVisit", registry=reg).values == [10, 15]

    def test_computed_metrics_win_over_registry_accessor(self):
        reg = default_registry()
        reg.replace(AccessorMetric(key="totalSpend", label="TotalSpend", accessor=lambda r: -1))
        out = build_series([{"purchases": 2, "avgSpend": 5}], "totalSpend", registry=reg)
        assert out.values == [10]

    def test_accessor_metric_is_used(self):
        reg = default_registry()
        reg.replace(AccessorMetric(key="miles", label="Kilomiles", accessor=lambda r: r["miles"] / 1000))
        out = build_series([{"miles": 2500}, {"miles": "x"}], "miles", registry=reg)
        assert out.values == [2.5, 0]

    def test_accessor_result_is_coerced(self):
        reg = MetricRegistry([AccessorMetric(key="ratio", label="Ratio", accessor=lambda r: "nan")])
        out = build_series([{}], "ratio", registry=reg)
        assert out.values == [0]

    def test_descriptor_without_accessor_uses_key_lookup(self):
        reg = MetricRegistry([MetricDescriptor(key="avgSpend", label="AvgSpend")])
        out = build_series([{"avgSpend": 7}, {"avgSpend": 3}], "avgSpend", registry=reg)
        assert out.values == [7, 3]

    def test_is_idempotent(self, passengers):
        first = build_series(passengers, "purchases", {"sort": "desc", "normalize": True})
        second = build_series(passengers, "purchases", {"sort": "desc", "normalize": True})
        assert first.model_dump() == second.model_dump()

    def test_does_not_mutate_records(self, passengers):
        before = copy.deepcopy(passengers)
        build_series(passengers, "purchases", {"sort": "desc", "normalize": True})
        assert passengers == before
