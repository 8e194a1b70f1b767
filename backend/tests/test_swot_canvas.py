"""Tests for the SWOT and Business Model Canvas calculators."""

from __future__ import annotations

import pytest

from backend.analysis import CanvasAnalysis, SwotAnalysis
from backend.analysis.canvas import CANVAS_SECTIONS, section_label


def test_swot_score_is_share_of_positive_text():
    outcome = SwotAnalysis().run({"strengths": "x" * 30, "weaknesses": "y" * 10})

    assert outcome.score == 75
    assert outcome.metric("Strengths") == "x" * 30
    assert outcome.metric("Opportunities") == "None provided"


def test_swot_empty_form_scores_fifty():
    outcome = SwotAnalysis().run({})

    assert outcome.score == 50
    assert [metric.value for metric in outcome.metrics] == ["None provided"] * 4


def test_swot_chart_values_are_clamped():
    outcome = SwotAnalysis().run({"strengths": "s" * 2000, "threats": "t" * 250})

    values = {point["name"]: point["value"] for point in outcome.chart_data}
    assert values == {"Strengths": 100, "Weaknesses": 10, "Opportunities": 10, "Threats": 25.0}
    assert outcome.chart_data[0]["fill"] == "#4CAF50"


def test_section_labels():
    assert section_label("keyPartners") == "Key Partners"
    assert section_label("channels") == "Channels"
    assert section_label("customerRelationships") == "Customer Relationships"


def test_canvas_completion_and_detail():
    inputs = {section: "x" * 50 for section in CANVAS_SECTIONS[:3]}
    outcome = CanvasAnalysis().run(inputs)

    assert outcome.score == 33
    assert outcome.metric("Completion") == "33%"
    assert outcome.metric("Sections Filled") == "3/9"
    assert outcome.metric("Average Detail") == "10%"
    assert outcome.chart_data[0] == {"name": "Key Partners", "value": pytest.approx(10.0)}
    assert outcome.chart_data[-1] == {"name": "Revenue Streams", "value": 0}


def test_canvas_full_and_detailed():
    inputs = {section: "y" * 600 for section in CANVAS_SECTIONS}
    outcome = CanvasAnalysis().run(inputs)

    assert outcome.score == 100
    assert outcome.metric("Average Detail") == "100%"


@pytest.mark.parametrize("feature", [SwotAnalysis(), CanvasAnalysis()])
def test_text_calculators_are_idempotent(feature):
    inputs = {"strengths": "Fertile land", "keyPartners": "Local cooperative", "channels": "Market stalls"}

    assert feature.run(inputs).to_dict() == feature.run(inputs).to_dict()
