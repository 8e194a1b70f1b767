"""Tests for the business feasibility calculator."""

from __future__ import annotations

import pytest

from backend.analysis import FeasibilityAnalysis


def _run(**inputs):
    return FeasibilityAnalysis().run(inputs)


def test_profitable_plan_scores_every_bonus():
    outcome = _run(
        investmentCost="10000",
        operationalCost="1000",
        productionCostPerUnit="10",
        salesVolumePerMonth="1000",
        markup="50",
    )

    # price 15, revenue 15000, profit 15000 - (1000 + 10000) = 4000 per month
    assert outcome.metric("Selling Price per Unit") == "15.00"
    assert outcome.metric("Revenue (Monthly)") == "15000.00"
    assert outcome.metric("Profit (Monthly)") == "4000.00"
    assert outcome.metric("ROI (Return on Investment)") == "480.00%"
    assert outcome.metric("BEP (Break Even Point)") == "200.00 units"
    assert outcome.metric("Payback Period") == "2.50 months"
    assert outcome.score == 100


def test_zero_investment_gives_zero_roi():
    outcome = _run(
        investmentCost="0",
        operationalCost="100",
        productionCostPerUnit="5",
        salesVolumePerMonth="100",
        markup="20",
    )

    assert outcome.metric("ROI (Return on Investment)") == "0.00%"
    assert outcome.metric("Payback Period") == "0.00 months"


def test_zero_unit_cost_and_markup_gives_zero_price():
    outcome = _run(productionCostPerUnit="0", markup="0", salesVolumePerMonth="50")

    assert outcome.metric("Selling Price per Unit") == "0.00"
    assert outcome.metric("Revenue (Monthly)") == "0.00"
    assert outcome.metric("Profit Margin") == "0.00%"


def test_loss_making_plan_has_no_payback():
    outcome = _run(
        investmentCost="5000",
        operationalCost="2000",
        productionCostPerUnit="10",
        salesVolumePerMonth="10",
        markup="10",
    )

    assert outcome.metric("Payback Period") == "0.00 months"
    assert outcome.metric("Profit (Monthly)").startswith("-")
    # Only the "payback < 24" and "payback < 12" bonuses apply to a zero payback.
    assert outcome.score == 35


def test_lenient_number_parsing_uses_leading_prefix():
    outcome = _run(productionCostPerUnit="12abc", markup="  25 % ", salesVolumePerMonth="")

    assert outcome.metric("Selling Price per Unit") == "15.00"


def test_chart_lists_cost_and_revenue_bars():
    outcome = _run(investmentCost=100, operationalCost=10, productionCostPerUnit=1, salesVolumePerMonth=10, markup=100)

    assert [point["name"] for point in outcome.chart_data] == [
        "Investment",
        "Monthly Operational Cost",
        "Monthly Production Cost",
        "Monthly Revenue",
        "Monthly Profit",
    ]
    assert outcome.chart_data[3]["value"] == pytest.approx(20.0)


def test_calculation_is_idempotent():
    inputs = {"investmentCost": "2500", "productionCostPerUnit": "3", "salesVolumePerMonth": "400", "markup": "35"}

    assert FeasibilityAnalysis().run(inputs).to_dict() == FeasibilityAnalysis().run(inputs).to_dict()
