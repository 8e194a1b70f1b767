"""Forecasting calculators.

Two features live here:

* :class:`DemandForecasting` projects a historical demand series forward with a
  simple moving average (SMA) or single exponential smoothing and grades the
  method by how well it would have tracked the history.
* :class:`GrowthForecasting` projects a starting value under compound growth
  with a sinusoidal seasonal swing.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .base import (
    AnalysisFeature,
    AnalysisOutcome,
    FormField,
    Metric,
    error_outcome,
    fmt,
    parse_int,
    parse_number,
    parse_number_list,
    parse_text,
    round_half_up,
)

SMA_METHOD = "Simple Moving Average (SMA)"
EXPONENTIAL_METHOD = "Exponential Smoothing"
MAX_FORECAST_PERIODS = 120

_METHOD_ALIASES = {
    "simple moving average (sma)": SMA_METHOD,
    "simple moving average": SMA_METHOD,
    "sma": SMA_METHOD,
    "exponential smoothing": EXPONENTIAL_METHOD,
    "exponential": EXPONENTIAL_METHOD,
    "es": EXPONENTIAL_METHOD,
}

_MONTH_NAMES = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def normalize_method(value: Any) -> Optional[str]:
    """Map a method label or alias to its canonical name; ``None`` when unknown."""
    text = parse_text(value).strip()
    if not text:
        return SMA_METHOD
    return _METHOD_ALIASES.get(text.lower())


def moving_average_forecast(history: Sequence[float], window: int, periods: int) -> List[float]:
    """Forecast ``periods`` points, each the mean of the trailing ``window``.

    Once the window runs past the end of ``history`` it includes the earlier
    forecasts, which enter the window rounded to two decimals. The returned
    values are unrounded.
    """
    rounded: List[float] = []
    raw: List[float] = []
    size = len(history)
    for step in range(periods):
        series = list(history) + rounded
        window_values = series[size - window + step:size + step]
        average = sum(window_values) / window
        raw.append(average)
        rounded.append(round_half_up(average, 2))
    return raw


def exponential_smoothing(history: Sequence[float], alpha: float) -> List[float]:
    """Return the smoothed series s where s[0] = x[0] and s[t] = a*x[t] + (1-a)*s[t-1]."""
    if not history:
        return []
    smoothed = [float(history[0])]
    for value in history[1:]:
        smoothed.append(alpha * value + (1 - alpha) * smoothed[-1])
    return smoothed


def _moving_average_mae(history: Sequence[float], window: int) -> float:
    errors = []
    for index in range(window, len(history)):
        predicted = sum(history[index - window:index]) / window
        errors.append(abs(history[index] - predicted))
    return sum(errors) / len(errors) if errors else 0.0


def _exponential_mae(history: Sequence[float], alpha: float) -> float:
    # One-step-ahead predictions built from the previous actual value.
    last_prediction = history[0]
    total_error = 0.0
    for index in range(1, len(history)):
        predicted = alpha * history[index - 1] + (1 - alpha) * last_prediction
        last_prediction = predicted
        total_error += abs(history[index] - predicted)
    return total_error / (len(history) - 1) if len(history) > 1 else 0.0


def accuracy_from_mae(mae: float, history: Sequence[float]) -> float:
    """Express the error as a percentage of the largest historical value."""
    max_value = max(history)
    if max_value <= 0:
        return 0.0
    return 100 - (mae / max_value * 100)


class DemandForecasting(AnalysisFeature):
    """Demand forecast by SMA or exponential smoothing."""

    feature_id = "forecasting"
    name = "Demand Forecasting"
    description = "Predict future demand based on historical data using SMA or Exponential Smoothing"
    fields = (
        FormField("forecastMethod", "Forecasting Method", "select", options=(SMA_METHOD, EXPONENTIAL_METHOD)),
        FormField(
            "historicalData",
            "Historical Data (comma-separated values)",
            "text",
            "10, 12, 15, 14, 16, 18, 17, 19, 20, 22",
        ),
        FormField("forecastPeriods", "Number of Periods to Forecast", "number", "5"),
        FormField(
            "maParameters",
            "Moving Average Periods",
            "number",
            "3",
            condition={"field": "forecastMethod", "value": SMA_METHOD},
        ),
        FormField(
            "smoothingFactor",
            "Smoothing Factor (0-1)",
            "number",
            "0.3",
            condition={"field": "forecastMethod", "value": EXPONENTIAL_METHOD},
        ),
    )

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        history = parse_number_list(inputs.get("historicalData"))
        if len(history) < 2:
            return error_outcome("Not enough historical data")

        method = normalize_method(inputs.get("forecastMethod"))
        if method is None:
            return error_outcome(f"Unknown forecasting method: {parse_text(inputs.get('forecastMethod'))}")

        periods = parse_int(inputs.get("forecastPeriods"), 5)
        if periods < 1 or periods > MAX_FORECAST_PERIODS:
            return error_outcome(f"Number of periods to forecast must be between 1 and {MAX_FORECAST_PERIODS}")

        chart_data: List[Dict[str, Any]] = [
            {"name": f"Past {len(history) - index}", "actual": value, "forecast": None}
            for index, value in enumerate(history)
        ]

        if method == SMA_METHOD:
            window = parse_int(inputs.get("maParameters"), 3)
            if window < 1:
                return error_outcome("Moving average period must be at least 1")
            if window > len(history):
                return error_outcome("Not enough data for the selected MA period")
            raw_forecast = moving_average_forecast(history, window, periods)
            forecast = [round_half_up(value, 2) for value in raw_forecast]
            for step, value in enumerate(raw_forecast, start=1):
                chart_data.append({"name": f"Future {step}", "actual": None, "forecast": value})
            mae = _moving_average_mae(history, window)
        else:
            alpha = parse_number(inputs.get("smoothingFactor"), 0.3)
            if alpha < 0 or alpha > 1:
                return error_outcome("Smoothing factor must be between 0 and 1")
            smoothed = exponential_smoothing(history, alpha)
            for index in range(1, len(history)):
                chart_data[index]["forecast"] = round_half_up(smoothed[index], 2)
            last_value = round_half_up(smoothed[-1], 2)
            forecast = [last_value] * periods
            for step in range(1, periods + 1):
                chart_data.append({"name": f"Future {step}", "actual": None, "forecast": last_value})
            mae = _exponential_mae(history, alpha)

        last_actual = history[-1]
        first_forecast = forecast[0]
        percent_change = ((first_forecast - last_actual) / last_actual) * 100 if last_actual != 0 else 0.0
        accuracy = accuracy_from_mae(mae, history)
        rounded_accuracy = int(round_half_up(accuracy))

        return AnalysisOutcome(
            score=min(100, max(0, rounded_accuracy)),
            metrics=[
                Metric("Forecasting Method", method),
                Metric("Next Period Forecast", fmt(first_forecast)),
                Metric("Change from Last Actual", f"{fmt(percent_change)}%"),
                Metric("Forecast Accuracy", f"{rounded_accuracy}%"),
            ],
            chart_data=chart_data,
        )


class GrowthForecasting(AnalysisFeature):
    """Compound-growth projection with a seasonal swing."""

    feature_id = "growth-forecasting"
    name = "Business Forecasting"
    description = "Predict future trends based on historical data and market conditions"
    fields = (
        FormField(
            "forecastType",
            "Forecast Type",
            "select",
            options=("Sales Forecast", "Revenue Forecast", "Growth Forecast"),
        ),
        FormField("timePeriod", "Time Period", "select", options=("Monthly", "Quarterly", "Yearly")),
        FormField("initialValue", "Initial Value", "number", "0"),
        FormField("growthRate", "Growth Rate (%)", "number", "0"),
        FormField("forecastPeriods", "Number of Periods to Forecast", "number", "12"),
        FormField("seasonality", "Seasonality Factor (0-10)", "number", "5"),
    )

    @staticmethod
    def _label(time_period: str, index: int) -> str:
        if time_period == "Monthly":
            return _MONTH_NAMES[index % 12]
        if time_period == "Quarterly":
            return f"Q{(index % 4) + 1}"
        return f"Year {index + 1}"

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        initial_value = parse_number(inputs.get("initialValue"), 1000)
        growth_rate = parse_number(inputs.get("growthRate"), 5)
        periods = parse_int(inputs.get("forecastPeriods"), 12)
        seasonality = parse_number(inputs.get("seasonality"), 5)
        time_period = parse_text(inputs.get("timePeriod")).strip() or "Monthly"

        if periods < 1 or periods > MAX_FORECAST_PERIODS:
            return error_outcome(f"Number of periods to forecast must be between 1 and {MAX_FORECAST_PERIODS}")

        growth_factor = 1 + growth_rate / 100
        chart_data: List[Dict[str, Any]] = []
        for index in range(periods):
            seasonal_factor = 1 + math.sin((index / periods) * math.pi * 2) * (seasonality / 10)
            value = initial_value * growth_factor ** index * seasonal_factor
            chart_data.append({"name": self._label(time_period, index), "value": int(round_half_up(value))})

        final_value = chart_data[-1]["value"]
        total_growth = ((final_value - initial_value) / initial_value) * 100
        average_value = sum(point["value"] for point in chart_data) / len(chart_data)
        ratio = final_value / initial_value
        cagr = (ratio ** (1 / periods) - 1) * 100 if ratio > 0 else 0.0

        return AnalysisOutcome(
            score=min(100.0, max(0.0, total_growth)),
            metrics=[
                Metric("Total Growth", f"{fmt(total_growth)}%"),
                Metric("Final Value", fmt(final_value)),
                Metric("Average Value", fmt(average_value)),
                Metric("CAGR", f"{fmt(cagr)}%"),
            ],
            chart_data=chart_data,
        )
