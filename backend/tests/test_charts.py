"""Tests for chart images and plotly figures."""

from __future__ import annotations

import pytest

from backend.analysis import run_analysis
from backend.charts import (
    DEFAULT_PLACEHOLDER_IMAGE,
    PLACEHOLDER_IMAGES,
    build_chart_figure,
    chart_image_prompt,
    generate_chart_image,
)

from conftest import FakeMediaProvider


def test_placeholder_mode_returns_feature_image():
    assert generate_chart_image("yields", "swot", mode="placeholder") == PLACEHOLDER_IMAGES["swot"]
    assert generate_chart_image("yields", "mystery", mode="placeholder") == DEFAULT_PLACEHOLDER_IMAGE


def test_missing_prompt_is_rejected():
    with pytest.raises(ValueError, match="Missing prompt parameter"):
        generate_chart_image("", "swot", mode="placeholder")


def test_openai_mode_sends_feature_prompt_to_provider():
    provider = FakeMediaProvider()

    url = generate_chart_image("ROI 25%", "feasibility", mode="openai", provider=provider)

    assert url == "https://images.example.com/chart.png"
    assert provider.image_prompts == [chart_image_prompt("ROI 25%", "feasibility")]
    assert "business feasibility analysis" in provider.image_prompts[0]
    assert "ROI 25%" in provider.image_prompts[0]


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError, match="Unknown chart image mode"):
        generate_chart_image("x", "swot", mode="svg")


def test_feasibility_figure_is_a_bar_chart():
    outcome = run_analysis("feasibility", {"investmentCost": 1000, "productionCostPerUnit": 2, "markup": 50})

    figure = build_chart_figure("feasibility", outcome.chart_data)

    assert figure["data"][0]["type"] == "bar"
    assert list(figure["data"][0]["x"]) == [point["name"] for point in outcome.chart_data]


def test_forecast_figure_has_actual_and_forecast_lines():
    outcome = run_analysis("forecasting", {"historicalData": "1,2,3,4", "maParameters": "2", "forecastPeriods": "2"})

    figure = build_chart_figure("forecasting", outcome.chart_data)

    assert [trace["name"] for trace in figure["data"]] == ["Actual", "Forecast"]


def test_optimization_figure_marks_optimal_point():
    outcome = run_analysis("optimization", {})

    figure = build_chart_figure("optimization", outcome.chart_data)

    names = [trace["name"] for trace in figure["data"]]
    assert names == ["Constraint 1", "Constraint 2", "Optimal Point"]
    assert figure["data"][-1]["mode"] == "markers"


def test_unknown_feature_has_no_figure():
    with pytest.raises(ValueError):
        build_chart_figure("cultivation", [])
