"""
Test the /eligibility HTTP routes.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from eligibility.logic.config import EngineSettings
from eligibility.logic.registry import InMemoryModelRegistry
from eligibility.logic.weights import ModelWeightProvider, WeightCache
from eligibility.routes import get_weight_provider, router


STUDENT = {"gwa": 1.6, "college": "CEAT", "annualFamilyIncome": 90000, "stBracket": "FD"}


@pytest.fixture
def provider():
    registry = InMemoryModelRegistry(global_model={
        "id": "global-1",
        "weights": {"gwaScore": 1.8, "eligibilityScore": 2.2, "intercept": -2.5},
        "accuracy": 0.74,
    })
    return ModelWeightProvider(registry=registry, cache=WeightCache(300), settings=EngineSettings())


@pytest.fixture
def client(provider):
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_weight_provider] = lambda: provider
    return TestClient(app)


def test_health(client):
    response = client.get("/eligibility/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_check(client):
    response = client.post("/eligibility/check", json={
        "student": STUDENT,
        "criteria": {"maxGWA": 1.5, "eligibleColleges": ["CEAT"]},
    })

    body = response.json()
    assert response.status_code == 200
    assert body["passed"] is False
    assert body["score"] == 50
    assert [c["id"] for c in body["failed_required"]] == ["gwa"]


def test_check_rejects_non_object_student(client):
    response = client.post("/eligibility/check", json={"student": [1, 2], "criteria": {}})

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "InvalidInputError"


def test_quick_check(client):
    response = client.post("/eligibility/quick-check", json={"student": STUDENT, "criteria": {"maxGWA": 2.0}})

    assert response.status_code == 200
    assert response.json() == {"eligible": True}


def test_match_uses_global_model(client):
    response = client.post("/eligibility/match", json={
        "student": STUDENT,
        "scholarship": {"id": "s9", "name": "Engineering Grant", "eligibilityCriteria": {"maxGWA": 2.0}},
    })

    body = response.json()
    assert response.status_code == 200
    assert body["is_eligible"] is True
    assert body["match_type"] == "full"
    assert body["prediction"]["trained_model"] is True
    assert body["prediction"]["model_source"] == "global"
    assert body["prediction"]["match_level"] in {"Strong Match", "Good Match", "Moderate Match", "Weak Match"}
    assert len(body["prediction"]["factors"]) == 9
    assert 0 < body["prediction_score"] < 1


def test_match_factors_expose_raw_contribution(client):
    response = client.post("/eligibility/match", json={
        "student": STUDENT,
        "scholarship": {"id": "s9", "eligibilityCriteria": {"maxGWA": 2.0}},
    })

    factors = {f["factor"]: f for f in response.json()["prediction"]["factors"]}
    overall = factors["Overall Eligibility"]
    # global model weights eligibility at 2.2
    assert overall["weight"] == 2.2
    assert overall["raw_contribution"] == pytest.approx(overall["value"] * 2.2, abs=2e-3)
    assert all("raw_contribution" in f for f in factors.values())


def test_batch_match(client):
    response = client.post("/eligibility/match/batch", json={
        "student": STUDENT,
        "scholarships": [
            {"id": "a", "eligibilityCriteria": {"maxGWA": 1.25}},
            {"id": "b", "eligibilityCriteria": {"maxGWA": 2.5}},
            {"id": "c", "isActive": False},
            {"id": "d", "eligibilityCriteria": {"maxGWA": 2.5, "eligibleColleges": ["CAS"]}},
        ],
    })

    body = response.json()
    assert response.status_code == 200
    assert body["count"] == 2
    assert body["eligible_count"] == 1
    assert body["partial_count"] == 1
    assert [m["scholarship_id"] for m in body["matches"]] == ["b", "d"]
    assert [m["match_type"] for m in body["matches"]] == ["full", "partial"]


def test_batch_match_options(client):
    scholarships = [
        {"id": "a", "eligibilityCriteria": {"maxGWA": 1.25}},
        {"id": "b", "eligibilityCriteria": {"maxGWA": 2.5}},
        {"id": "d", "eligibilityCriteria": {"maxGWA": 2.5, "eligibleColleges": ["CAS"]}},
    ]

    everything = client.post("/eligibility/match/batch", json={
        "student": STUDENT, "scholarships": scholarships, "min_eligibility_score": 0,
    }).json()
    full_only = client.post("/eligibility/match/batch", json={
        "student": STUDENT, "scholarships": scholarships, "include_partial": False,
    }).json()
    limited = client.post("/eligibility/match/batch", json={
        "student": STUDENT, "scholarships": scholarships, "min_eligibility_score": 0, "limit": 2,
    }).json()

    assert [m["scholarship_id"] for m in everything["matches"]] == ["b", "d", "a"]
    assert [m["scholarship_id"] for m in full_only["matches"]] == ["b"]
    assert [m["scholarship_id"] for m in limited["matches"]] == ["b", "d"]


@pytest.mark.parametrize("options", [{"limit": 0}, {"min_eligibility_score": 101}, {"min_eligibility_score": -1}])
def test_batch_match_rejects_bad_options(client, options):
    response = client.post("/eligibility/match/batch", json={"student": STUDENT, "scholarships": [], **options})
    assert response.status_code == 422


def test_batch_rejects_non_object_scholarship(client):
    response = client.post("/eligibility/match/batch", json={"student": STUDENT, "scholarships": ["nope"]})
    assert response.status_code == 400


def test_model_importance_and_cache_clear(client, provider):
    response = client.get("/eligibility/models/importance", params={"scholarship_id": "s9"})

    body = response.json()
    assert response.status_code == 200
    assert body["trained"] is True
    assert body["source"] == "global"
    assert len(body["importance"]) == 10
    assert body["importance"][0]["feature"] == "eligibility_score"
    assert provider.is_cached("s9")

    response = client.post("/eligibility/models/cache/clear")
    assert response.status_code == 200
    assert provider.is_cached("s9") is False
