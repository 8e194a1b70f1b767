"""Tests for the analysis feature registry."""

from __future__ import annotations

import pytest

from backend.analysis import FEATURES, get_feature, list_features, run_analysis


def test_catalogue_order_and_placeholder():
    catalogue = list_features()

    assert [item["id"] for item in catalogue] == [
        "feasibility",
        "forecasting",
        "growth-forecasting",
        "optimization",
        "swot",
        "canvas",
        "cultivation",
    ]
    cultivation = catalogue[-1]
    assert cultivation["implemented"] is False
    assert cultivation["fields"] == []


def test_feature_fields_describe_form_inputs():
    forecasting = get_feature("forecasting").describe()

    fields = {field["name"]: field for field in forecasting["fields"]}
    assert fields["forecastMethod"]["type"] == "select"
    assert fields["maParameters"]["condition"] == {
        "field": "forecastMethod",
        "value": "Simple Moving Average (SMA)",
    }


def test_unimplemented_feature_returns_error_outcome():
    outcome = run_analysis("cultivation", {"anything": "1"})

    assert outcome.is_error
    assert outcome.score == 0


def test_unknown_feature_raises_key_error():
    with pytest.raises(KeyError):
        run_analysis("astrology", {})


@pytest.mark.parametrize("feature_id", sorted(FEATURES))
def test_every_calculator_accepts_an_empty_form(feature_id):
    outcome = run_analysis(feature_id, None)

    assert 0 <= outcome.score <= 100
    assert outcome.metrics
