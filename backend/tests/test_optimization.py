"""Tests for the corner-point linear-program optimizer."""

from __future__ import annotations

import pytest

from backend.analysis import OptimizationAnalysis
from backend.analysis.optimization import (
    MAXIMIZE,
    MINIMIZE,
    Constraint,
    enumerate_vertices,
    parse_constraints,
    solve,
)

CONSTRAINTS = ["2,1;10", "1,3;15"]


def _run(**inputs):
    return OptimizationAnalysis().run(inputs)


def test_parse_constraints_accepts_lines_and_lists():
    from_text = parse_constraints("2,1;10\n\n1,3;15")
    from_list = parse_constraints(CONSTRAINTS)

    assert from_text == from_list == [Constraint((2.0, 1.0), 10.0), Constraint((1.0, 3.0), 15.0)]
    assert parse_constraints("1,1")[0].limit == 0.0


def test_two_variable_vertices_are_origin_intercepts_and_intersection():
    vertices = enumerate_vertices(parse_constraints(CONSTRAINTS), 2, non_negative=True)

    assert vertices[0] == [0.0, 0.0]
    rounded = [[round(value, 6) for value in vertex] for vertex in vertices]
    assert [5.0, 0.0] in rounded
    assert [0.0, 5.0] in rounded
    assert [3.0, 4.0] in rounded


def test_optimal_vertex_satisfies_constraints_and_dominates_feasible_vertices():
    constraints = parse_constraints(CONSTRAINTS)
    best, feasible = solve([3, 2], constraints, maximize=True, non_negative=True)

    assert best is not None
    assert best.point == pytest.approx([3.0, 4.0])
    assert all(constraint.is_satisfied(best.point) for constraint in constraints)
    assert all(best.objective_value >= candidate.objective_value for candidate in feasible)


def test_maximize_outcome_metrics_and_score():
    outcome = _run(
        optimizationType=MAXIMIZE,
        variables="X1,X2",
        objective="3,2",
        constraints="2,1;10\n1,3;15",
        nonNegative="Yes",
    )

    assert outcome.metric("Optimal Value") == "17.00"
    assert outcome.metric("Solution") == "Optimal solution: X1 = 3.00, X2 = 4.00"
    assert outcome.metric("Type") == MAXIMIZE
    assert outcome.score == pytest.approx(97.0)


def test_minimize_without_non_negativity_skips_the_origin():
    outcome = _run(optimizationType=MINIMIZE, objective="3,2", constraints="2,1;10\n1,3;15")

    # Candidates are (5, 0), (0, 5) and (3, 4); the origin is not one of them.
    assert outcome.metric("Optimal Value") == "10.00"
    assert outcome.metric("Solution") == "Optimal solution: X1 = 0.00, X2 = 5.00"
    assert outcome.score == pytest.approx(30.0)


def test_minimize_with_non_negativity_stops_at_the_origin():
    outcome = _run(optimizationType=MINIMIZE, objective="3,2", constraints="2,1;10\n1,3;15", nonNegative="Yes")

    assert outcome.metric("Optimal Value") == "0.00"
    assert outcome.score == pytest.approx(20.0)


@pytest.mark.parametrize("flag", [None, "", "No", "yes", "true", "1"])
def test_only_literal_yes_enables_non_negativity(flag):
    inputs = {"optimizationType": MINIMIZE, "objective": "3,2", "constraints": "2,1;10\n1,3;15"}
    if flag is not None:
        inputs["nonNegative"] = flag

    assert OptimizationAnalysis().run(inputs).metric("Optimal Value") == "10.00"


def test_negative_optimum_is_found_when_variables_may_be_negative():
    outcome = _run(
        optimizationType=MINIMIZE,
        objective="1,1",
        constraints="-1,0;2\n0,-1;3\n1,1;10",
        nonNegative="No",
    )

    assert outcome.metric("Optimal Value") == "-5.00"
    assert outcome.metric("Solution") == "Optimal solution: X1 = -2.00, X2 = -3.00"
    assert outcome.score == pytest.approx(20.0)


def test_vertices_without_non_negativity_keep_negative_points_and_drop_origin():
    vertices = enumerate_vertices(parse_constraints("-1,0;2\n0,-1;3\n1,1;10"), 2, non_negative=False)

    rounded = [[round(value, 6) for value in vertex] for vertex in vertices]
    assert [0.0, 0.0] not in rounded
    assert [-2.0, 0.0] in rounded
    assert [0.0, -3.0] in rounded
    assert [-2.0, -3.0] in rounded
    assert [13.0, -3.0] in rounded


def test_origin_stays_a_vertex_when_constraints_cross_there():
    vertices = enumerate_vertices(parse_constraints("1,-1;0\n1,1;0"), 2, non_negative=False)

    assert [0.0, 0.0] in [[round(value, 6) + 0.0 for value in vertex] for vertex in vertices]


def test_small_coefficient_intersection_is_not_discarded():
    outcome = _run(objective="1,1", constraints="1e-7,5e-8;1e-6\n5e-8,1e-7;1e-6", nonNegative="Yes")

    assert outcome.metric("Optimal Value") == "13.33"
    assert outcome.metric("Solution") == "Optimal solution: X1 = 6.67, X2 = 6.67"


def test_parallel_constraints_have_no_intersection():
    vertices = enumerate_vertices(parse_constraints("1,1;4\n2,2;10"), 2, non_negative=True)

    rounded = [[round(value, 6) for value in vertex] for vertex in vertices]
    assert sorted(rounded) == [[0.0, 0.0], [0.0, 4.0], [0.0, 5.0], [4.0, 0.0], [5.0, 0.0]]


def test_infeasible_problem_scores_zero():
    outcome = _run(objective="1,1", constraints="1,1;-5", nonNegative="Yes")

    assert outcome.score == 0
    assert outcome.metric("Optimal Value") == "N/A"
    assert outcome.metric("Solution") == "The problem has no feasible solution"
    assert not any(point.get("isOptimal") for point in outcome.chart_data)


def test_two_variable_chart_traces_constraint_lines_and_optimum():
    outcome = _run(objective="3,2", constraints="2,1;10\n1,3;15", nonNegative="Yes")

    constraint_one = [point for point in outcome.chart_data if point["constraint"] == "Constraint 1"]
    assert constraint_one[0] == {"x1": 0.0, "x2": 10.0, "constraint": "Constraint 1"}
    assert all(point["x2"] >= 0 for point in constraint_one)
    optimum = outcome.chart_data[-1]
    assert optimum["constraint"] == "Optimal Point"
    assert optimum["isOptimal"] is True
    assert optimum["x1"] == pytest.approx(3.0)


def test_three_variable_problem_reports_contributions():
    outcome = _run(
        variables="Rice,Corn,Soy",
        objective="5,4,3",
        constraints="2,3,1;5\n4,1,2;11\n3,4,2;8",
        nonNegative="Yes",
    )

    # Classic textbook LP: optimum 13 at (2, 0, 1).
    assert outcome.metric("Optimal Value") == "13.00"
    assert [point["variable"] for point in outcome.chart_data] == ["Rice", "Corn", "Soy"]
    assert outcome.chart_data[0]["value"] == pytest.approx(2.0)
    assert outcome.chart_data[0]["contribution"] == pytest.approx(10.0)


@pytest.mark.parametrize(
    "inputs, message",
    [
        ({"objective": "3,2,1"}, "Objective function must have 2 coefficients"),
        ({"constraints": "2,1,4;10"}, "Each constraint must have 2 coefficients"),
        (
            {"variables": ",".join(f"X{i}" for i in range(9)), "objective": ",".join("1" for _ in range(9)),
             "constraints": ",".join("1" for _ in range(9)) + ";5"},
            "At most 8 variables are supported",
        ),
    ],
)
def test_invalid_problems_return_error_outcome(inputs, message):
    outcome = _run(**inputs)

    assert outcome.is_error
    assert outcome.metric("Error") == message


def test_optimization_is_idempotent():
    inputs = {"objective": "4,3", "constraints": "1,1;8\n2,1;10", "optimizationType": MAXIMIZE}

    assert OptimizationAnalysis().run(inputs).to_dict() == OptimizationAnalysis().run(inputs).to_dict()
