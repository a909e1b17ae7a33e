# Export all eligibility models for easy imports
from .base import Base
from .trained_model import TrainedModel

__all__ = [
    "Base",
    "TrainedModel",
]
