"""SWOT analysis scored from how much was written in each quadrant."""

from __future__ import annotations

from typing import Any, Mapping

from .base import AnalysisFeature, AnalysisOutcome, FormField, Metric, parse_text, round_half_up

_QUADRANTS = (
    ("strengths", "Strengths", "#4CAF50"),
    ("weaknesses", "Weaknesses", "#F44336"),
    ("opportunities", "Opportunities", "#2196F3"),
    ("threats", "Threats", "#FF9800"),
)


def _chart_value(length: int) -> float:
    return min(100, max(10, length / 10))


class SwotAnalysis(AnalysisFeature):
    """Balance score: share of text written under strengths and opportunities.

    The score only measures text length, not content. An empty form scores 50.
    """

    feature_id = "swot"
    name = "SWOT Analysis"
    description = "Identify Strengths, Weaknesses, Opportunities, and Threats to your business"
    fields = (
        FormField("businessName", "Business or Project Name", "text", "Enter the name of your business or project"),
        FormField("strengths", "Strengths", "textarea", "List your business strengths here"),
        FormField("weaknesses", "Weaknesses", "textarea", "List your business weaknesses here"),
        FormField("opportunities", "Opportunities", "textarea", "List your business opportunities here"),
        FormField("threats", "Threats", "textarea", "List your business threats here"),
    )

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        texts = {key: parse_text(inputs.get(key)) for key, _, _ in _QUADRANTS}
        lengths = {key: len(text) for key, text in texts.items()}
        total = sum(lengths.values())
        if total > 0:
            score = (lengths["strengths"] + lengths["opportunities"]) / total * 100
        else:
            score = 50

        return AnalysisOutcome(
            score=int(round_half_up(score)),
            metrics=[Metric(label, texts[key] or "None provided") for key, label, _ in _QUADRANTS],
            chart_data=[
                {"name": label, "value": _chart_value(lengths[key]), "fill": color}
                for key, label, color in _QUADRANTS
            ],
        )
