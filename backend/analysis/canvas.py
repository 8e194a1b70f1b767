"""Business Model Canvas completeness check."""

from __future__ import annotations

import re
from typing import Any, Mapping

from .base import AnalysisFeature, AnalysisOutcome, FormField, Metric, parse_text, round_half_up

CANVAS_SECTIONS = (
    "keyPartners",
    "keyActivities",
    "valueProposition",
    "customerRelationships",
    "customerSegments",
    "keyResources",
    "channels",
    "costStructure",
    "revenueStreams",
)

_CAMEL_BOUNDARY = re.compile(r"([A-Z])")


def section_label(name: str) -> str:
    """``customerSegments`` -> ``Customer Segments``."""
    spaced = _CAMEL_BOUNDARY.sub(r" \1", name)
    return spaced[:1].upper() + spaced[1:]


def _detail(text: str) -> float:
    return min(100, len(text) / 5)


class CanvasAnalysis(AnalysisFeature):
    feature_id = "canvas"
    name = "Business Model Canvas"
    description = "Interactive tool to design and refine your business model visually"
    fields = (
        FormField("businessName", "Business Name", "text", "Enter business name"),
        FormField(
            "keyPartners",
            "1. Key Partners",
            "textarea",
            "Who are your key partners and suppliers? Which key resources are you acquiring from them? "
            "Which key activities do they perform?",
        ),
        FormField(
            "keyActivities",
            "2. Key Activities",
            "textarea",
            "What key activities does your value proposition require? Your distribution channels? "
            "Customer relationships? Revenue streams?",
        ),
        FormField(
            "valueProposition",
            "3. Value Propositions",
            "textarea",
            "What value do you deliver to the customer? Which of your customer's problems are you helping to solve? "
            "What bundles of products and services are you offering to each segment?",
        ),
        FormField(
            "customerRelationships",
            "4. Customer Relationships",
            "textarea",
            "What type of relationship does each of your customer segments expect you to establish and maintain "
            "with them?",
        ),
        FormField(
            "customerSegments",
            "5. Customer Segments",
            "textarea",
            "For whom are you creating value? Who are your most important customers?",
        ),
        FormField(
            "keyResources",
            "6. Key Resources",
            "textarea",
            "What key resources does your value proposition require? Your distribution channels? "
            "Customer relationships? Revenue streams?",
        ),
        FormField(
            "channels",
            "7. Channels",
            "textarea",
            "Through which channels do your customer segments want to be reached? How are you reaching them now? "
            "How are your channels integrated?",
        ),
        FormField(
            "costStructure",
            "8. Cost Structure",
            "textarea",
            "What are the most important costs inherent in your business model? Which key resources are most "
            "expensive? Which key activities are most expensive?",
        ),
        FormField(
            "revenueStreams",
            "9. Revenue Streams",
            "textarea",
            "For what value are your customers really willing to pay? How are they currently paying? "
            "How would they prefer to pay? How much does each revenue stream contribute to overall revenues?",
        ),
    )

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        texts = [parse_text(inputs.get(section)) for section in CANVAS_SECTIONS]
        filled = [text for text in texts if text]

        completion = len(filled) / len(CANVAS_SECTIONS) * 100
        average_detail = sum(_detail(text) for text in filled) / len(filled) if filled else 0

        return AnalysisOutcome(
            score=int(round_half_up(completion)),
            metrics=[
                Metric("Completion", f"{int(round_half_up(completion))}%"),
                Metric("Sections Filled", f"{len(filled)}/{len(CANVAS_SECTIONS)}"),
                Metric("Average Detail", f"{int(round_half_up(average_detail))}%"),
            ],
            chart_data=[
                {"name": section_label(section), "value": _detail(text)}
                for section, text in zip(CANVAS_SECTIONS, texts)
            ],
        )
