from sqlalchemy import Boolean, Column, DateTime, Float, Integer, JSON, String

from .base import Base


class TrainedModel(Base):
    __tablename__ = "trained_models"

    id = Column(Integer, primary_key=True)
    scholarship_id = Column(String, index=True, nullable=True)  # NULL for the global model
    model_type = Column(String, default="global")  # scholarship/global
    is_active = Column(Boolean, default=True)

    # Learned parameters
    weights = Column(JSON)
    bias = Column(Float, default=0.0)

    # Evaluation
    metrics = Column(JSON)
    accuracy = Column(Float)

    # Meta
    trained_at = Column(DateTime)
    training_samples = Column(Integer)
