"""Base interface for analysis calculators.

Every analysis feature maps a flat key/value input record (as submitted by a
form) to an :class:`AnalysisOutcome`: a 0-100 score, a list of labeled
metrics and chart-ready data points. Calculators are pure functions of their
inputs; invalid input produces an outcome carrying a single ``Error`` metric
instead of raising.
"""

from __future__ import annotations

import math
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence

_NUMBER_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


@dataclass(frozen=True)
class Metric:
    """A labeled, display-ready value."""

    name: str
    value: str

    def to_dict(self) -> Dict[str, str]:
        return {"name": self.name, "value": self.value}


@dataclass
class AnalysisOutcome:
    """Result of running a calculator.

    Attributes:
        score: 0-100 headline score.
        metrics: Ordered metrics shown next to the score.
        chart_data: Chart points; keys vary per feature.
    """

    score: float
    metrics: List[Metric] = field(default_factory=list)
    chart_data: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def is_error(self) -> bool:
        return len(self.metrics) == 1 and self.metrics[0].name == "Error"

    def metric(self, name: str) -> Optional[str]:
        """Return the value of the first metric called ``name``."""
        for item in self.metrics:
            if item.name == name:
                return item.value
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "metrics": [item.to_dict() for item in self.metrics],
            "chart_data": [dict(point) for point in self.chart_data],
        }


def error_outcome(message: str) -> AnalysisOutcome:
    """Build the outcome used for malformed or insufficient input."""
    return AnalysisOutcome(score=0, metrics=[Metric("Error", message)], chart_data=[])


@dataclass(frozen=True)
class FormField:
    """Form field description served to the client."""

    name: str
    label: str
    type: str = "text"
    placeholder: Optional[str] = None
    options: Sequence[str] = ()
    condition: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name, "label": self.label, "type": self.type}
        if self.placeholder is not None:
            payload["placeholder"] = self.placeholder
        if self.options:
            payload["options"] = list(self.options)
        if self.condition:
            payload["condition"] = dict(self.condition)
        return payload


# ---------------------------------------------------------------------------
# Lenient input parsing
# ---------------------------------------------------------------------------


def _leading_number(value: Any) -> float:
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if value is None:
        return math.nan
    match = _NUMBER_PREFIX.match(str(value).strip())
    if not match:
        return math.nan
    return float(match.group(0))


def parse_number(value: Any, default: float = 0.0) -> float:
    """Parse the leading numeric prefix of ``value``.

    Zero, empty and unparseable values fall back to ``default``, so a form
    field left at 0 behaves like an empty one.
    """
    number = _leading_number(value)
    if math.isnan(number) or math.isinf(number) or number == 0:
        return default
    return number


def parse_int(value: Any, default: int = 0) -> int:
    """Integer variant of :func:`parse_number`; fractions truncate toward zero."""
    number = _leading_number(value)
    if math.isnan(number) or math.isinf(number):
        return default
    truncated = int(number)
    return truncated if truncated != 0 else default


def parse_number_list(value: Any, separator: str = ",") -> List[float]:
    """Split ``value`` on ``separator`` and keep the entries that parse as numbers."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = list(value)
    else:
        items = str(value).split(separator)
    numbers: List[float] = []
    for item in items:
        number = _leading_number(item)
        if not math.isnan(number) and not math.isinf(number):
            numbers.append(number)
    return numbers


def parse_text(value: Any) -> str:
    return "" if value is None else str(value)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with halves going up (toward positive infinity)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def fmt(value: float, digits: int = 2) -> str:
    text = f"{value:.{digits}f}"
    # Drop the sign from values that round to zero ("-0.00").
    if text.startswith("-") and float(text) == 0:
        return text[1:]
    return text


class AnalysisFeature(ABC):
    """Abstract base class for analysis features.

    Subclasses declare their identity and form fields as class attributes and
    implement :meth:`calculate`.
    """

    feature_id: str = ""
    name: str = ""
    description: str = ""
    implemented: bool = True
    fields: Sequence[FormField] = ()

    @abstractmethod
    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        """Run the calculation over a flat input record."""

    def run(self, inputs: Optional[Mapping[str, Any]]) -> AnalysisOutcome:
        if not self.implemented:
            return error_outcome(f"{self.name} is not available yet")
        return self.calculate(inputs or {})

    def describe(self) -> Dict[str, Any]:
        return {
            "id": self.feature_id,
            "name": self.name,
            "description": self.description,
            "implemented": self.implemented,
            "fields": [item.to_dict() for item in self.fields],
        }
