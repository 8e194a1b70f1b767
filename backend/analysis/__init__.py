"""Analysis feature registry."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional

from .base import AnalysisFeature, AnalysisOutcome, FormField, Metric, error_outcome
from .canvas import CanvasAnalysis
from .feasibility import FeasibilityAnalysis
from .forecasting import DemandForecasting, GrowthForecasting
from .optimization import OptimizationAnalysis
from .swot import SwotAnalysis


class CultivationAnalysis(AnalysisFeature):
    """Placeholder listed in the catalogue until the calculator exists."""

    feature_id = "cultivation"
    name = "Agricultural Business"
    description = "Coming Soon"
    implemented = False

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        return error_outcome(f"{self.name} is not available yet")


FEATURES: Dict[str, AnalysisFeature] = {
    feature.feature_id: feature
    for feature in (
        FeasibilityAnalysis(),
        DemandForecasting(),
        GrowthForecasting(),
        OptimizationAnalysis(),
        SwotAnalysis(),
        CanvasAnalysis(),
        CultivationAnalysis(),
    )
}


def get_feature(feature_id: str) -> Optional[AnalysisFeature]:
    return FEATURES.get(feature_id)


def list_features() -> List[Dict[str, Any]]:
    return [feature.describe() for feature in FEATURES.values()]


def run_analysis(feature_id: str, inputs: Optional[Mapping[str, Any]]) -> AnalysisOutcome:
    """Run the calculator registered under ``feature_id``.

    Raises:
        KeyError: If no feature is registered under ``feature_id``.
    """
    feature = FEATURES.get(feature_id)
    if feature is None:
        raise KeyError(feature_id)
    return feature.run(inputs)


__all__ = [
    "AnalysisFeature",
    "AnalysisOutcome",
    "CanvasAnalysis",
    "CultivationAnalysis",
    "DemandForecasting",
    "FEATURES",
    "FeasibilityAnalysis",
    "FormField",
    "GrowthForecasting",
    "Metric",
    "OptimizationAnalysis",
    "SwotAnalysis",
    "error_outcome",
    "get_feature",
    "list_features",
    "run_analysis",
]
