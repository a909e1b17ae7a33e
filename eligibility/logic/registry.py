"""
Trained Model Registries

Read-only sources of trained regression models for the weight provider.
Training happens elsewhere; these only look up what was stored.
"""

import logging
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models.trained_model import TrainedModel
from .exceptions import ModelRegistryError

logger = logging.getLogger(__name__)


class InMemoryModelRegistry:
    """Registry backed by plain dicts, for embedding callers and tests."""

    def __init__(
        self,
        scholarship_models: Optional[Dict[str, Dict[str, Any]]] = None,
        global_model: Optional[Dict[str, Any]] = None,
    ):
        self.scholarship_models = dict(scholarship_models or {})
        self.global_model = global_model

    def get_scholarship_model(self, scholarship_id: str) -> Optional[Dict[str, Any]]:
        return self.scholarship_models.get(str(scholarship_id))

    def get_global_model(self) -> Optional[Dict[str, Any]]:
        return self.global_model


def _serialize_model(row) -> Dict[str, Any]:
    """Convert a TrainedModel row to the raw dict shape the provider validates."""
    return {
        "id": row.id,
        "scholarship_id": row.scholarship_id,
        "model_type": row.model_type,
        "weights": row.weights or {},
        "bias": row.bias,
        "metrics": row.metrics or {},
        "accuracy": row.accuracy,
        "trained_at": row.trained_at.isoformat() if row.trained_at else None,
    }


class SqlModelRegistry:
    """
    Registry reading the `trained_models` table.

    Opens a short-lived session per lookup, so it is safe to call from the
    provider's fetch thread.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def _latest(self, **filters) -> Optional[Dict[str, Any]]:
        session = self.session_factory()
        try:
            row = (
                session.query(TrainedModel)
                .filter_by(is_active=True, **filters)
                .order_by(TrainedModel.trained_at.desc(), TrainedModel.id.desc())
                .first()
            )
            return _serialize_model(row) if row is not None else None
        except SQLAlchemyError as e:
            logger.error(f"❌ Trained model lookup failed ({filters}): {e}")
            raise ModelRegistryError("Trained model lookup failed", details=dict(filters), original_error=e)
        finally:
            session.close()

    def get_scholarship_model(self, scholarship_id: str) -> Optional[Dict[str, Any]]:
        return self._latest(model_type="scholarship", scholarship_id=str(scholarship_id))

    def get_global_model(self) -> Optional[Dict[str, Any]]:
        return self._latest(model_type="global")
