"""Business feasibility calculator (ROI, break-even, payback)."""

from __future__ import annotations

from typing import Any, Mapping

from .base import AnalysisFeature, AnalysisOutcome, FormField, Metric, fmt, parse_number


class FeasibilityAnalysis(AnalysisFeature):
    """Scores a business plan from its cost structure and pricing.

    Selling price is the unit production cost (HPP) plus ``markup`` percent.
    The 0-100 score accumulates fixed bonuses for positive ROI, ROI above 20%,
    payback under 24 and under 12 months, a margin above 10% and a monthly
    profit that exceeds the operational cost.
    """

    feature_id = "feasibility"
    name = "Business Feasibility Analysis"
    description = (
        "Analyze investment costs, operational costs, and potential returns to determine business viability"
    )
    fields = (
        FormField("investmentCost", "Investment Cost (Biaya Investasi)", "number", "0"),
        FormField("operationalCost", "Operational Cost per Month (Biaya Operasional per Bulan)", "number", "0"),
        FormField("productionCostPerUnit", "Production Cost per Unit (Biaya Produksi per Unit)", "number", "0"),
        FormField("salesVolumePerMonth", "Sales Volume per Month (Volume Penjualan per Bulan)", "number", "0"),
        FormField("markup", "Markup (%)", "number", "0"),
    )

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        investment_cost = parse_number(inputs.get("investmentCost"))
        operational_cost = parse_number(inputs.get("operationalCost"))
        unit_cost = parse_number(inputs.get("productionCostPerUnit"))
        sales_volume = parse_number(inputs.get("salesVolumePerMonth"))
        markup = parse_number(inputs.get("markup"))

        selling_price = unit_cost * (1 + markup / 100)
        revenue = selling_price * sales_volume
        production_cost = unit_cost * sales_volume
        monthly_profit = revenue - (operational_cost + production_cost)
        annual_profit = monthly_profit * 12

        roi = (annual_profit / investment_cost) * 100 if investment_cost > 0 else 0.0

        contribution_margin = selling_price - unit_cost
        # Operational cost is the only fixed cost in this model.
        bep_units = operational_cost / contribution_margin if contribution_margin > 0 else 0.0
        payback_months = investment_cost / monthly_profit if monthly_profit > 0 else 0.0
        profit_margin = (monthly_profit / revenue) * 100 if revenue > 0 else 0.0

        score = 0
        if roi > 0:
            score += 20
        if roi > 20:
            score += 15
        if payback_months < 24:
            score += 20
        if payback_months < 12:
            score += 15
        if profit_margin > 10:
            score += 15
        if monthly_profit > operational_cost:
            score += 15

        return AnalysisOutcome(
            score=score,
            metrics=[
                Metric("Production Cost (HPP) per Unit", fmt(unit_cost)),
                Metric("Selling Price per Unit", fmt(selling_price)),
                Metric("Revenue (Monthly)", fmt(revenue)),
                Metric("Profit (Monthly)", fmt(monthly_profit)),
                Metric("ROI (Return on Investment)", f"{fmt(roi)}%"),
                Metric("BEP (Break Even Point)", f"{fmt(bep_units)} units"),
                Metric("Payback Period", f"{fmt(payback_months)} months"),
                Metric("Profit Margin", f"{fmt(profit_margin)}%"),
            ],
            chart_data=[
                {"name": "Investment", "value": investment_cost},
                {"name": "Monthly Operational Cost", "value": operational_cost},
                {"name": "Monthly Production Cost", "value": production_cost},
                {"name": "Monthly Revenue", "value": revenue},
                {"name": "Monthly Profit", "value": monthly_profit},
            ],
        )
