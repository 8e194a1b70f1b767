"""Chart generation: AI/placeholder chart images and plotly figures."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

import plotly.graph_objects as go

from . import config
from .providers import OpenAIProvider

LOGGER = logging.getLogger(__name__)

_PLACEHOLDER_BASE = "https://placehold.co/800x600"

PLACEHOLDER_IMAGES: Dict[str, str] = {
    "feasibility": f"{_PLACEHOLDER_BASE}/9b87f5/FFFFFF?text=Feasibility+Analysis+Chart&font=roboto",
    "forecasting": f"{_PLACEHOLDER_BASE}/7E69AB/FFFFFF?text=Business+Forecast+Chart&font=roboto",
    "swot": f"{_PLACEHOLDER_BASE}/6E59A5/FFFFFF?text=SWOT+Analysis+Chart&font=roboto",
    "canvas": f"{_PLACEHOLDER_BASE}/8B5CF6/FFFFFF?text=Business+Model+Canvas&font=roboto",
}
DEFAULT_PLACEHOLDER_IMAGE = f"{_PLACEHOLDER_BASE}/9b87f5/FFFFFF?text=Business+Analysis+Chart&font=roboto"

_SYSTEM_PREFIX = "You are a specialized AI assistant that creates data visualizations for business analysis. "
_FEATURE_DESCRIPTIONS: Dict[str, str] = {
    "feasibility": (
        "Create a visualization for a business feasibility analysis showing market factors, costs, "
        "and potential revenue."
    ),
    "forecasting": "Create a visualization for business forecasting showing projected growth over time.",
    "swot": (
        "Create a visualization for SWOT analysis showing strengths, weaknesses, opportunities and threats."
    ),
    "canvas": (
        "Create a visualization for Business Model Canvas showing the nine components of the business model."
    ),
}
_DEFAULT_DESCRIPTION = "Create a business data visualization that is clear and professional."

_PRIMARY_COLOR = "#9b87f5"
_SECONDARY_COLOR = "#4CAF50"


def chart_system_message(feature_id: Optional[str]) -> str:
    return _SYSTEM_PREFIX + _FEATURE_DESCRIPTIONS.get(feature_id or "", _DEFAULT_DESCRIPTION)


def chart_image_prompt(prompt: str, feature_id: Optional[str]) -> str:
    return (
        f"{chart_system_message(feature_id)} "
        f"Create a professional business chart visualization for {feature_id or 'business'} analysis with the "
        f"following data: {prompt}. Make it look like a high-quality infographic suitable for a business "
        "presentation."
    )


def placeholder_image_url(feature_id: Optional[str]) -> str:
    return PLACEHOLDER_IMAGES.get(feature_id or "", DEFAULT_PLACEHOLDER_IMAGE)


def generate_chart_image(
    prompt: Optional[str],
    feature_id: Optional[str],
    *,
    mode: Optional[str] = None,
    provider: Optional[OpenAIProvider] = None,
) -> str:
    """Return an image URL for a chart of ``prompt``.

    In ``placeholder`` mode (the default) a static per-feature image is
    returned. In ``openai`` mode the image generation API is called.

    Raises:
        ValueError: If ``prompt`` is empty or the mode is unknown.
        ProviderError: If the image API call fails.
    """
    if not prompt:
        raise ValueError("Missing prompt parameter")
    mode = (mode or config.CHART_IMAGE_MODE).lower()
    if mode == "placeholder":
        LOGGER.debug("Returning placeholder chart image for feature %s", feature_id or "-")
        return placeholder_image_url(feature_id)
    if mode != "openai":
        raise ValueError(f"Unknown chart image mode: {mode}")
    provider = provider or OpenAIProvider()
    LOGGER.info("Generating chart image for feature %s", feature_id or "-")
    return provider.generate_image(chart_image_prompt(prompt, feature_id))


# ---------------------------------------------------------------------------
# Plotly figures
# ---------------------------------------------------------------------------


def _style(fig: go.Figure, title: str, x_title: str, y_title: str) -> go.Figure:
    fig.update_layout(
        title=title,
        template="plotly_white",
        title_font_size=18,
        title_font_color="#1f2937",
        xaxis_title=x_title,
        yaxis_title=y_title,
        font=dict(family="Inter, sans-serif"),
        plot_bgcolor="rgba(0,0,0,0)",
        paper_bgcolor="rgba(0,0,0,0)",
        margin=dict(t=60, l=50, r=50, b=50),
    )
    return fig


def _bar_figure(points: Sequence[Mapping[str, Any]], title: str) -> go.Figure:
    colors = [point.get("fill") or _PRIMARY_COLOR for point in points]
    fig = go.Figure(
        data=go.Bar(
            x=[point.get("name") for point in points],
            y=[point.get("value") for point in points],
            marker_color=colors,
        )
    )
    return _style(fig, title, "", "Value")


def _forecast_figure(points: Sequence[Mapping[str, Any]]) -> go.Figure:
    names = [point.get("name") for point in points]
    fig = go.Figure()
    fig.add_trace(
        go.Scatter(x=names, y=[point.get("actual") for point in points], mode="lines+markers", name="Actual",
                   line=dict(color=_PRIMARY_COLOR))
    )
    fig.add_trace(
        go.Scatter(x=names, y=[point.get("forecast") for point in points], mode="lines+markers", name="Forecast",
                   line=dict(color=_SECONDARY_COLOR, dash="dash"))
    )
    return _style(fig, "Demand Forecast", "Period", "Demand")


def _growth_figure(points: Sequence[Mapping[str, Any]]) -> go.Figure:
    fig = go.Figure(
        data=go.Scatter(
            x=[point.get("name") for point in points],
            y=[point.get("value") for point in points],
            mode="lines+markers",
            line=dict(color=_PRIMARY_COLOR),
        )
    )
    return _style(fig, "Growth Forecast", "Period", "Value")


def _optimization_figure(points: Sequence[Mapping[str, Any]]) -> go.Figure:
    if any("variable" in point for point in points):
        fig = go.Figure()
        variables = [point.get("variable") for point in points]
        fig.add_trace(go.Bar(x=variables, y=[point.get("value") for point in points], name="Variable Value",
                             marker_color=_PRIMARY_COLOR))
        fig.add_trace(go.Bar(x=variables, y=[point.get("contribution") for point in points], name="Contribution",
                             marker_color=_SECONDARY_COLOR))
        return _style(fig, "Variable Contribution", "Variable", "Value")

    fig = go.Figure()
    series: Dict[str, List[Mapping[str, Any]]] = {}
    for point in points:
        series.setdefault(str(point.get("constraint")), []).append(point)
    for name, members in series.items():
        is_optimal = any(member.get("isOptimal") for member in members)
        fig.add_trace(
            go.Scatter(
                x=[member.get("x1") for member in members],
                y=[member.get("x2") for member in members],
                mode="markers" if is_optimal else "lines",
                name=name,
                marker=dict(size=12, color="#F44336") if is_optimal else None,
            )
        )
    return _style(fig, "Constraints and Optimal Point", "X1", "X2")


def build_chart_figure(feature_id: str, chart_data: Sequence[Mapping[str, Any]]) -> Dict[str, Any]:
    """Render analysis chart points as a JSON-ready plotly figure.

    Raises:
        ValueError: If ``feature_id`` has no chart layout.
    """
    points = list(chart_data or [])
    if feature_id == "feasibility":
        fig = _bar_figure(points, "Feasibility Overview")
    elif feature_id == "swot":
        fig = _bar_figure(points, "SWOT Balance")
    elif feature_id == "canvas":
        fig = _bar_figure(points, "Canvas Section Detail")
    elif feature_id == "forecasting":
        fig = _forecast_figure(points)
    elif feature_id == "growth-forecasting":
        fig = _growth_figure(points)
    elif feature_id == "optimization":
        fig = _optimization_figure(points)
    else:
        raise ValueError(f"No chart layout for feature: {feature_id}")
    return json.loads(fig.to_json())
