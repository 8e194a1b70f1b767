"""Tests for feature catalogue and analysis endpoints."""

from __future__ import annotations


def test_feature_catalogue(client):
    response = client.get("/api/v1/features")

    assert response.status_code == 200
    payload = response.json()
    assert payload["analysis"][0]["id"] == "feasibility"
    assert {item["id"] for item in payload["chat"]} == {"business-feasibility", "forecasting", "max-min-analysis"}


def test_run_analysis_returns_outcome(client):
    response = client.post("/api/v1/analysis/optimization/run", json={"inputs": {}})

    assert response.status_code == 200
    payload = response.json()
    assert payload["metrics"][2] == {"name": "Optimal Value", "value": "17.00"}
    assert payload["chart_data"][-1]["isOptimal"] is True


def test_invalid_inputs_are_reported_in_metrics(client):
    response = client.post("/api/v1/analysis/forecasting/run", json={"inputs": {"historicalData": "1"}})

    assert response.status_code == 200
    assert response.json() == {
        "score": 0,
        "metrics": [{"name": "Error", "value": "Not enough historical data"}],
        "chart_data": [],
    }


def test_unknown_feature_is_404(client):
    assert client.post("/api/v1/analysis/astrology/run", json={"inputs": {}}).status_code == 404


def test_save_list_get_and_delete_results(client):
    saved = client.post(
        "/api/v1/analysis/swot/results",
        json={"inputs": {"strengths": "Fertile soil", "threats": "Drought"}},
    )

    assert saved.status_code == 201
    record = saved.json()
    assert record["feature_id"] == "swot"
    assert record["result"]["score"] == 63
    assert record["image_url"] is None

    listed = client.get("/api/v1/analysis/results", params={"feature_id": "swot"}).json()
    assert [item["id"] for item in listed] == [record["id"]]
    assert client.get(f"/api/v1/analysis/results/{record['id']}").json()["inputs"]["threats"] == "Drought"

    assert client.delete(f"/api/v1/analysis/results/{record['id']}").status_code == 200
    assert client.get(f"/api/v1/analysis/results/{record['id']}").status_code == 404


def test_save_with_generated_image_uses_placeholder(client):
    response = client.post(
        "/api/v1/analysis/canvas/results",
        json={"inputs": {"keyPartners": "Cooperative"}, "generate_image": True},
    )

    assert response.json()["image_url"].startswith("https://placehold.co/")


def test_chart_figure(client):
    chart_data = client.post("/api/v1/analysis/feasibility/run", json={"inputs": {}}).json()["chart_data"]

    response = client.post("/api/v1/charts/figure", json={"feature_id": "feasibility", "chart_data": chart_data})

    assert response.status_code == 200
    assert response.json()["data"][0]["type"] == "bar"
    assert client.post("/api/v1/charts/figure", json={"feature_id": "nope"}).status_code == 400
