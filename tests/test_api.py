"""
API integration tests for the prediction and drug endpoints.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api import main
from src.core.prediction_service import PredictionOrchestrator

client = TestClient(main.app)


@pytest.fixture(autouse=True)
def service(clients, monkeypatch):
    orchestrator = PredictionOrchestrator(clients)
    monkeypatch.setattr(main, "prediction_service", orchestrator)
    return orchestrator


@pytest.fixture
def form():
    return {
        "age": "45",
        "gender": "male",
        "height": "170",
        "weight": 70,
        "drug_name": "Metformin",
        "chronic_conditions": "Diabetes",
    }


class TestHealthAPI:

    def test_root(self):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "operational"

    def test_health_connected(self, upstream, urls):
        upstream.add("GET", f"{urls['backend']}/", httpx.Response(200, json={"ok": True}), exact=True)

        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["backend_status"] == "connected"
        assert data["system_status"] is None

    def test_health_disconnected(self, upstream, urls):
        upstream.add("GET", urls["backend"], httpx.ConnectError("refused"))

        data = client.get("/health").json()

        assert data["status"] == "degraded"
        assert data["backend_status"] == "disconnected"


class TestPredictAPI:

    def test_predict_success(self, upstream, form):
        upstream.autocomplete(["metformin"])
        upstream.enhanced(httpx.Response(200, json={
            "prediction": {"prediction_label": "Effective", "confidence": 0.9},
            "explanation": "Backend rationale.",
        }))

        response = client.post("/predict", json=form)

        assert response.status_code == 200
        data = response.json()
        assert data["prediction"] == "Effective"
        assert data["confidence"] == 0.9
        assert data["dosage"] == "150mg daily"
        assert data["source"] == "enhanced_realtime_api"
        assert data["explanation"] == "Backend rationale."
        assert "90% confidence" in data["summary"]
        assert data["formatted_explanation"].startswith("Metformin: Antidiabetic commonly prescribed for")

    def test_predict_formats_sectioned_explanation(self, upstream, form):
        upstream.autocomplete(["metformin"])
        upstream.enhanced(httpx.Response(200, json={
            "prediction": {"prediction_label": "Effective", "confidence": 0.9},
            "explanation": (
                "**Indications:** Lowers blood sugar in type 2 diabetes. "
                "**Mechanism of Action:** Reduces hepatic glucose production."
            ),
        }))

        data = client.post("/predict", json=form).json()

        formatted = data["formatted_explanation"]
        assert formatted.startswith("Metformin: Antidiabetic commonly prescribed for Type 2 Diabetes.")
        assert "How it works: Reduces hepatic glucose production." in formatted
        assert "Used to treat: Lowers blood sugar in type 2 diabetes." in formatted
        assert data["explanation"].startswith("**Indications:**")

    def test_predict_rejected_name(self, upstream, form):
        upstream.autocomplete(["metformin hydrochloride"])

        response = client.post("/predict", json={**form, "drug_name": "Metforminn"})

        assert response.status_code == 422
        detail = response.json()["detail"]
        assert detail["error"] == "drug_name_rejected"
        assert detail["reason"] == "not found"

    def test_predict_invalid_age(self, upstream, form):
        upstream.autocomplete(["metformin"])

        response = client.post("/predict", json={**form, "age": 150})

        assert response.status_code == 422
        assert response.json()["detail"]["error"] == "validation_error"

    def test_predict_invalid_gender(self, upstream, form):
        upstream.autocomplete(["metformin"])

        response = client.post("/predict", json={**form, "gender": "robot"})

        assert response.status_code == 422
        assert "Gender must be" in response.json()["detail"]["message"]

    def test_predict_backends_down(self, upstream, form):
        upstream.autocomplete(["metformin"])
        upstream.enhanced(httpx.Response(500))
        upstream.standard(httpx.Response(502))

        response = client.post("/predict", json=form)

        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["error"] == "prediction_unavailable"
        assert [a["backend"] for a in detail["attempts"]] == ["enhanced_realtime_api", "standard_api"]


class TestDrugAPI:

    def test_validate_drug(self, upstream):
        upstream.autocomplete(["aspirin"])

        data = client.get("/validate-drug", params={"name": "Aspirin"}).json()

        assert data["state"] == "valid"
        assert data["reason"] is None

    def test_validate_blank_drug(self):
        data = client.get("/validate-drug").json()

        assert data["state"] == "invalid"
        assert data["reason"] == "name required"

    def test_suggest(self, upstream):
        upstream.autocomplete(["aspirin", "aspirin buffered"])

        data = client.get("/drugs/suggest", params={"q": "asp"}).json()

        assert data["suggestions"] == ["aspirin", "aspirin buffered"]
        assert data["count"] == 2

    def test_drug_info(self, upstream, urls):
        upstream.add("GET", f"{urls['backend']}/drug-info/", httpx.Response(200, json={
            "data": {"drug_name": "metformin", "sources": ["DrugBank"]}
        }))

        data = client.get("/drug-info/metformin").json()["data"]

        assert data["sources"] == ["DrugBank"]
        assert data["drug_name"] == "metformin"

    def test_drug_info_not_found(self):
        response = client.get("/drug-info/unobtainium")
        assert response.status_code == 404
