from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from recurring_engine.core.configuration import DetectionSettings
from recurring_engine.detector import RecurringDetector
from recurring_engine.main import app
from recurring_engine.models import CandidateClassification
from recurring_engine.services.classification import ClassificationPipeline

client = TestClient(app)

DAY0 = date(2024, 2, 1)


def _record(description: str, amount: object, offset: int) -> dict:
    return {"description": description, "amount": amount, "date": (DAY0 + timedelta(days=offset)).isoformat()}

NETFLIX_HISTORY = [
    _record("Netflix.com", 15.99, 0),
    _record("NETFLIX", 15.99, 29),
    _record("Netflix Inc", 15.99, 61),
]


@pytest.fixture
def detector(monkeypatch: pytest.MonkeyPatch) -> RecurringDetector:
    detector = RecurringDetector(DetectionSettings())
    monkeypatch.setattr(app.state, "detector", detector, raising=False)
    return detector

@pytest.fixture
def mock_service(detector: RecurringDetector, monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    mock = MagicMock()
    monkeypatch.setattr(app.state, "service", mock, raising=False)
    monkeypatch.setattr(
        app.state, "pipeline", ClassificationPipeline(service=mock, min_confidence=0.6), raising=False
    )
    return mock

def test_detect_recurring_end_to_end(mock_service: MagicMock) -> None:
    response = client.post("/detect/recurring", json={"transactions": NETFLIX_HISTORY})
    assert response.status_code == 200
    data = response.json()

    assert data["transactions_analyzed"] == 3
    assert data["transactions_skipped"] == 0
    assert len(data["candidates"]) == 1
    candidate = data["candidates"][0]
    assert candidate["average_amount"] == 15.99
    assert candidate["frequency_days"] == 31
    assert candidate["next_expected_date"] == (DAY0 + timedelta(days=92)).isoformat()
    assert data["new_candidates"] == data["candidates"]
    # Classification only runs on request
    assert data["accepted"] is None
    mock_service.classify.assert_not_called()

def test_detect_recurring_needs_minimum_history(mock_service: MagicMock) -> None:
    response = client.post("/detect/recurring", json={"transactions": NETFLIX_HISTORY[:2]})
    assert response.status_code == 200
    data = response.json()
    assert data["candidates"] == []
    assert data["transactions_analyzed"] == 2
    assert "At least 3 transactions" in data["message"]

def test_detect_recurring_skips_malformed_records(mock_service: MagicMock) -> None:
    payload = NETFLIX_HISTORY + [
        {"description": "Netflix", "amount": "n/a", "date": DAY0.isoformat()},
        {"description": "Netflix", "amount": 15.99},
    ]
    response = client.post("/detect/recurring", json={"transactions": payload})
    assert response.status_code == 200
    data = response.json()
    assert data["transactions_skipped"] == 2
    assert len(data["candidates"]) == 1

def test_detect_recurring_excludes_known(mock_service: MagicMock) -> None:
    response = client.post(
        "/detect/recurring",
        json={"transactions": NETFLIX_HISTORY, "known_obligations": [{"name": "Netflix"}]},
    )
    assert response.status_code == 200
    data = response.json()
    assert len(data["candidates"]) == 1
    assert data["new_candidates"] == []

def test_detect_recurring_with_classification(mock_service: MagicMock) -> None:
    mock_service.classify.return_value = CandidateClassification(
        merchant="Netflix", type="subscription", category="Streaming", confidence=0.95, source="llm"
    )
    response = client.post("/detect/recurring", json={"transactions": NETFLIX_HISTORY, "classify": True})
    assert response.status_code == 200
    data = response.json()
    assert len(data["accepted"]) == 1
    accepted = data["accepted"][0]
    assert accepted["classification"]["merchant"] == "Netflix"
    assert accepted["candidate"]["cluster_key"] == "netflix"
    assert data["rejected"] == []
    assert data["unclassified"] == []

def test_detect_anomalies(mock_service: MagicMock) -> None:
    history = [
        _record("NETFLIX.COM", amount, 30 * i)
        for i, amount in enumerate([15.99, 15.99, 22.99])
    ]
    response = client.post(
        "/detect/anomalies",
        json={
            "known_obligations": [{"name": "Netflix", "id": 7, "kind": "subscription"}],
            "transactions": history,
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert data["transactions_analyzed"] == 3
    assert len(data["anomalies"]) == 1
    anomaly = data["anomalies"][0]
    assert anomaly["entity_reference"] == "7"
    assert anomaly["expected_amount"] == 18.32
    assert anomaly["actual_amount"] == 22.99
    assert anomaly["variance_percent"] == 25.5
    assert anomaly["severity"] == "medium"

def test_confirm_candidate(mock_service: MagicMock) -> None:
    detected = client.post("/detect/recurring", json={"transactions": NETFLIX_HISTORY}).json()
    payload = {
        "candidate": detected["candidates"][0],
        "classification": {
            "merchant": "Netflix",
            "type": "subscription",
            "category": "Streaming",
            "confidence": 1.0,
        },
    }
    response = client.post("/candidates/confirm", json=payload)
    assert response.status_code == 200
    assert response.json() == {"status": "success", "merchant": "Netflix"}

    mock_service.learn.assert_called_once()
    candidate, classification = mock_service.learn.call_args.args
    assert candidate.cluster_key == "netflix"
    assert classification.category == "Streaming"

def test_clear_memory(mock_service: MagicMock) -> None:
    response = client.post("/candidates/clear-memory")
    assert response.status_code == 200
    mock_service.clear_memory.assert_called_once()

def test_health() -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

def test_config_reports_effective_settings(detector: RecurringDetector) -> None:
    response = client.get("/config")
    assert response.status_code == 200
    sections = {s["name"]: s["fields"] for s in response.json()["sections"]}
    anomaly_fields = {f["key"]: f["value"] for f in sections["Anomalies"]}
    assert anomaly_fields["ANOMALY_THRESHOLD"] == 0.2
    assert anomaly_fields["ANOMALY_WINDOW"] == 5
