"""Linear-program optimizer based on corner-point (vertex) enumeration.

Candidate vertices are the intersections of ``n`` hyperplanes drawn from the
constraint boundaries ``a . x = b`` and the coordinate planes ``x_j = 0``.
For two variables this yields exactly the origin, the axis intercepts of each
constraint and the pairwise constraint intersections. Candidates that violate
a constraint are discarded and the objective is evaluated on the rest.

Unboundedness is not detected: the optimum is taken over the enumerated
vertices only.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from itertools import combinations
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import numpy as np

from .base import (
    AnalysisFeature,
    AnalysisOutcome,
    FormField,
    Metric,
    error_outcome,
    fmt,
    parse_number_list,
    parse_text,
)

LOGGER = logging.getLogger(__name__)

MAXIMIZE = "Maximize Profit"
MINIMIZE = "Minimize Cost"
MAX_VARIABLES = 8
MAX_CANDIDATE_VERTICES = 50_000
FEASIBILITY_TOLERANCE = 1e-9
# Matrices closer to singular than this cannot be solved to any useful precision.
_MAX_CONDITION = 1 / np.finfo(float).eps

_CHART_MAX_COORD = 20
_CHART_STEPS = 10


@dataclass(frozen=True)
class Constraint:
    """``sum(coefficients[i] * x[i]) <= limit``."""

    coefficients: Tuple[float, ...]
    limit: float

    def evaluate(self, point: Sequence[float]) -> float:
        return sum(coeff * value for coeff, value in zip(self.coefficients, point))

    def is_satisfied(self, point: Sequence[float]) -> bool:
        return self.evaluate(point) <= self.limit + FEASIBILITY_TOLERANCE


@dataclass
class Solution:
    point: List[float]
    objective_value: float


def parse_constraints(value: Any) -> List[Constraint]:
    """Parse ``coefficients;limit`` lines; an unparseable limit becomes 0."""
    if isinstance(value, (list, tuple)):
        lines = [parse_text(item) for item in value]
    else:
        lines = parse_text(value).splitlines()
    constraints: List[Constraint] = []
    for line in lines:
        if not line.strip():
            continue
        coefficients_text, _, limit_text = line.partition(";")
        limits = parse_number_list(limit_text)
        constraints.append(
            Constraint(
                coefficients=tuple(parse_number_list(coefficients_text)),
                limit=limits[0] if limits else 0.0,
            )
        )
    return constraints


def candidate_count(variable_count: int, constraint_count: int) -> int:
    """Number of hyperplane subsets inspected for the given problem size."""
    return math.comb(variable_count + constraint_count, variable_count)


def enumerate_vertices(
    constraints: Sequence[Constraint],
    variable_count: int,
    non_negative: bool,
) -> List[List[float]]:
    """Return the candidate vertices in a stable order.

    Subsets are visited by the number of constraint boundaries they use
    (zero first, which is the origin). Within a size, the set of variables
    left free to be non-zero is the outer loop and the constraint combination
    the inner one. The origin is only a candidate for non-negative problems,
    and other candidates with a negative coordinate are dropped for them.
    """
    vertices: List[List[float]] = []
    indices = range(variable_count)
    for size in range(0, min(variable_count, len(constraints)) + 1):
        for free in combinations(indices, size):
            for chosen in combinations(range(len(constraints)), size):
                if size == 0:
                    if non_negative:
                        vertices.append([0.0] * variable_count)
                    continue
                matrix = np.array(
                    [[constraints[row].coefficients[col] for col in free] for row in chosen],
                    dtype=float,
                )
                rhs = np.array([constraints[row].limit for row in chosen], dtype=float)
                try:
                    values = np.linalg.solve(matrix, rhs)
                except np.linalg.LinAlgError:
                    continue
                if np.linalg.cond(matrix) > _MAX_CONDITION or not np.all(np.isfinite(values)):
                    continue
                point = [0.0] * variable_count
                for col, value in zip(free, values):
                    point[col] = float(value)
                if non_negative and any(value < -FEASIBILITY_TOLERANCE for value in point):
                    continue
                vertices.append(point)
    return vertices


def solve(
    objective: Sequence[float],
    constraints: Sequence[Constraint],
    *,
    maximize: bool,
    non_negative: bool,
) -> Tuple[Optional[Solution], List[Solution]]:
    """Pick the best feasible vertex.

    Returns:
        The optimal solution (``None`` when no vertex is feasible) and every
        feasible vertex with its objective value, in enumeration order. Ties
        keep the earliest vertex.
    """
    feasible: List[Solution] = []
    for point in enumerate_vertices(constraints, len(objective), non_negative):
        if all(constraint.is_satisfied(point) for constraint in constraints):
            value = sum(coeff * x for coeff, x in zip(objective, point))
            feasible.append(Solution(point=point, objective_value=value))
    if not feasible:
        return None, feasible
    best = feasible[0]
    for candidate in feasible[1:]:
        if maximize and candidate.objective_value > best.objective_value:
            best = candidate
        elif not maximize and candidate.objective_value < best.objective_value:
            best = candidate
    return best, feasible


def _is_yes(value: Any) -> bool:
    """Only the literal "Yes" turns non-negativity on; anything else, including a missing value, leaves it off."""
    return parse_text(value).strip() == "Yes"


class OptimizationAnalysis(AnalysisFeature):
    """Maximize profit or minimize cost over linear constraints."""

    feature_id = "optimization"
    name = "Maximization and Minimization Analysis"
    description = "Optimize resource usage and minimize costs using Simplex Method or Linear Programming"
    fields = (
        FormField("optimizationType", "Optimization Type", "select", options=(MAXIMIZE, MINIMIZE)),
        FormField("optimizationMethod", "Method", "select", options=("Simplex Method", "Linear Programming")),
        FormField("variables", 'Variables (comma-separated, e.g. "Crop A,Crop B")', "text", "X1,X2"),
        FormField("objective", "Objective Function Coefficients (comma-separated)", "text", "3,2"),
        FormField(
            "constraints",
            'Constraints (one per line, format: coefficients;limit, e.g. "2,1;10")',
            "textarea",
            "2,1;10\n1,3;15",
        ),
        FormField("nonNegative", "Non-negative variables", "select", options=("Yes", "No")),
    )

    def calculate(self, inputs: Mapping[str, Any]) -> AnalysisOutcome:
        optimization_type = parse_text(inputs.get("optimizationType")).strip() or MAXIMIZE
        method = parse_text(inputs.get("optimizationMethod")).strip() or "Simplex Method"
        maximize = optimization_type == MAXIMIZE
        non_negative = _is_yes(inputs.get("nonNegative"))

        variables = [
            name.strip() for name in (parse_text(inputs.get("variables")).strip() or "X1,X2").split(",") if name.strip()
        ]
        objective = parse_number_list(parse_text(inputs.get("objective")).strip() or "3,2")
        raw_constraints = inputs.get("constraints")
        if not raw_constraints:
            raw_constraints = "2,1;10\n1,3;15"
        constraints = parse_constraints(raw_constraints)

        if not variables:
            return error_outcome("At least one variable is required")
        if len(objective) != len(variables):
            return error_outcome(f"Objective function must have {len(variables)} coefficients")
        for constraint in constraints:
            if len(constraint.coefficients) != len(variables):
                return error_outcome(f"Each constraint must have {len(variables)} coefficients")
        if len(variables) > MAX_VARIABLES:
            return error_outcome(f"At most {MAX_VARIABLES} variables are supported")
        if candidate_count(len(variables), len(constraints)) > MAX_CANDIDATE_VERTICES:
            return error_outcome("Too many constraints for corner-point enumeration")

        best, feasible = solve(objective, constraints, maximize=maximize, non_negative=non_negative)
        LOGGER.debug("Optimization enumerated %d feasible vertices", len(feasible))

        if best is None:
            score: float = 0
            optimal_text = "N/A"
            solution_text = "The problem has no feasible solution"
        else:
            score = (80 if maximize else 20) + min(20, max(0, best.objective_value))
            optimal_text = fmt(best.objective_value)
            assignments = ", ".join(f"{name} = {fmt(value)}" for name, value in zip(variables, best.point))
            solution_text = f"Optimal solution: {assignments}"

        if len(variables) == 2:
            chart_data = self._constraint_chart(constraints, non_negative, best)
        else:
            chart_data = self._contribution_chart(variables, objective, best)

        return AnalysisOutcome(
            score=score,
            metrics=[
                Metric("Method", method),
                Metric("Type", optimization_type),
                Metric("Optimal Value", optimal_text),
                Metric("Solution", solution_text),
            ],
            chart_data=chart_data,
        )

    @staticmethod
    def _constraint_chart(
        constraints: Sequence[Constraint],
        non_negative: bool,
        best: Optional[Solution],
    ) -> List[Dict[str, Any]]:
        chart_data: List[Dict[str, Any]] = []
        for step in range(_CHART_STEPS + 1):
            x1 = (step / _CHART_STEPS) * _CHART_MAX_COORD
            for index, constraint in enumerate(constraints, start=1):
                a, b = constraint.coefficients
                if b == 0:
                    continue
                x2 = (constraint.limit - a * x1) / b
                if x2 >= 0 or not non_negative:
                    chart_data.append({"x1": x1, "x2": x2, "constraint": f"Constraint {index}"})
        if best is not None:
            chart_data.append(
                {"x1": best.point[0], "x2": best.point[1], "constraint": "Optimal Point", "isOptimal": True}
            )
        return chart_data

    @staticmethod
    def _contribution_chart(
        variables: Sequence[str],
        objective: Sequence[float],
        best: Optional[Solution],
    ) -> List[Dict[str, Any]]:
        if best is None:
            return []
        return [
            {"variable": name, "value": value, "contribution": coeff * value}
            for name, coeff, value in zip(variables, objective, best.point)
        ]
