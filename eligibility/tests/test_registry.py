"""
Test the SQLAlchemy-backed trained model registry.
"""

import sys
import os
from datetime import datetime
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from db import Base
from eligibility.models import TrainedModel
from eligibility.logic.config import EngineSettings
from eligibility.logic.exceptions import ModelRegistryError
from eligibility.logic.registry import SqlModelRegistry
from eligibility.logic.weights import ModelWeightProvider


def _memory_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def session_factory():
    engine = _memory_engine()
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)

    db = factory()
    db.add_all([
        TrainedModel(
            scholarship_id="s1", model_type="scholarship", is_active=True,
            weights={"gwaScore": 0.9}, bias=-1.0, metrics={"accuracy": 0.70},
            accuracy=0.70, trained_at=datetime(2025, 1, 10), training_samples=120,
        ),
        TrainedModel(
            scholarship_id="s1", model_type="scholarship", is_active=True,
            weights={"gwaScore": 1.4}, bias=-0.5, metrics={"accuracy": 0.82},
            accuracy=0.82, trained_at=datetime(2025, 3, 2), training_samples=180,
        ),
        TrainedModel(
            scholarship_id="s1", model_type="scholarship", is_active=False,
            weights={"gwaScore": 9.9}, bias=0.0, metrics={"accuracy": 0.99},
            accuracy=0.99, trained_at=datetime(2025, 6, 1), training_samples=10,
        ),
        TrainedModel(
            scholarship_id=None, model_type="global", is_active=True,
            weights={"incomeMatch": 1.1}, bias=-2.0, metrics={"accuracy": 0.66},
            accuracy=0.66, trained_at=datetime(2025, 2, 1), training_samples=900,
        ),
    ])
    db.commit()
    db.close()

    yield factory
    engine.dispose()


def test_latest_active_scholarship_model(session_factory):
    model = SqlModelRegistry(session_factory).get_scholarship_model("s1")

    assert model["weights"] == {"gwaScore": 1.4}
    assert model["bias"] == -0.5
    assert model["metrics"]["accuracy"] == 0.82
    assert model["trained_at"] == "2025-03-02T00:00:00"


def test_global_model(session_factory):
    registry = SqlModelRegistry(session_factory)

    assert registry.get_global_model()["weights"] == {"incomeMatch": 1.1}
    assert registry.get_scholarship_model("missing") is None


def test_provider_reads_sql_registry(session_factory):
    provider = ModelWeightProvider(
        registry=SqlModelRegistry(session_factory),
        settings=EngineSettings(),
    )

    resolved = provider.get_weights("s1")

    assert resolved.trained is True
    assert resolved.source == "scholarship"
    assert resolved.weights.gwa_score == 1.4
    assert resolved.weights.intercept == -0.5


def test_missing_table_raises_registry_error():
    engine = _memory_engine()
    registry = SqlModelRegistry(sessionmaker(bind=engine))

    with pytest.raises(ModelRegistryError):
        registry.get_global_model()


def test_provider_survives_broken_database():
    engine = _memory_engine()
    provider = ModelWeightProvider(
        registry=SqlModelRegistry(sessionmaker(bind=engine)),
        settings=EngineSettings(),
    )

    assert provider.get_weights("s1").trained is False
