"""
Eligibility API Routes

Exposes the eligibility engine via REST API under /eligibility.
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from db import SessionLocal
from .logic.constants import DEFAULT_MIN_ELIGIBILITY_SCORE
from .logic.engine import EligibilityEngine
from .logic.exceptions import InvalidInputError
from .logic.registry import SqlModelRegistry
from .logic.weights import ModelWeightProvider, get_feature_importance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/eligibility", tags=["eligibility"])


# =============================================================================
# DEPENDENCIES
# =============================================================================

_weight_provider: Optional[ModelWeightProvider] = None


def get_weight_provider() -> ModelWeightProvider:
    """One provider per process so the weight cache is shared across requests."""
    global _weight_provider
    if _weight_provider is None:
        _weight_provider = ModelWeightProvider(registry=SqlModelRegistry(SessionLocal))
    return _weight_provider


def get_engine(provider: ModelWeightProvider = Depends(get_weight_provider)) -> EligibilityEngine:
    return EligibilityEngine(weight_provider=provider)


# =============================================================================
# REQUEST/RESPONSE SCHEMAS
# =============================================================================

class CheckRequest(BaseModel):
    """Request body for eligibility checks."""
    student: Any = Field(
        ...,
        description="Student profile (camelCase, nested studentProfile supported)",
        examples=[{
            "gwa": 1.75,
            "yearLevel": "Junior",
            "college": "College of Engineering and Agro-Industrial Technology",
            "course": "BS Civil Engineering",
            "annualFamilyIncome": 180000,
            "stBracket": "PD80",
        }],
    )
    criteria: Any = Field(
        default_factory=dict,
        description="Scholarship eligibility criteria",
        examples=[{"maxGWA": 2.0, "maxAnnualFamilyIncome": 250000, "eligibleColleges": ["CEAT"]}],
    )


class MatchRequest(BaseModel):
    """Request body for a single scholarship match."""
    student: Any = Field(..., description="Student profile")
    scholarship: Any = Field(..., description="Scholarship with eligibilityCriteria")
    include_prediction: bool = Field(default=True, description="Attach a success prediction")
    predict_ineligible: bool = Field(default=False, description="Predict even when ineligible")


class BatchMatchRequest(BaseModel):
    """Request body for matching against many scholarships."""
    student: Any = Field(..., description="Student profile")
    scholarships: List[Any] = Field(default_factory=list, description="Scholarships to match")
    include_prediction: bool = Field(default=True, description="Attach success predictions")
    predict_ineligible: bool = Field(default=False, description="Predict partial matches too")
    limit: Optional[int] = Field(default=None, ge=1, description="Maximum number of matches returned")
    include_partial: bool = Field(default=True, description="Keep ineligible scholarships as partial matches")
    min_eligibility_score: float = Field(
        default=DEFAULT_MIN_ELIGIBILITY_SCORE,
        ge=0,
        le=100,
        description="Smallest eligibility score of a partial match",
    )


def _require_object(value: Any, name: str) -> Dict[str, Any]:
    if not isinstance(value, dict):
        raise InvalidInputError(f"{name} must be a JSON object", details={"field": name})
    return value


def _bad_request(e: InvalidInputError) -> HTTPException:
    return HTTPException(status_code=400, detail=e.to_dict())


def _server_error(e: Exception) -> JSONResponse:
    logger.error(f"❌ Eligibility request failed: {e}", exc_info=True)
    return JSONResponse(status_code=500, content={"error": str(e)})


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.post("/check", summary="Full eligibility check")
def check_eligibility(request: CheckRequest, engine: EligibilityEngine = Depends(get_engine)):
    """
    Evaluate every built-in and custom condition.

    **Response:** passed, score, per-condition checks, failed required checks
    and a summary count.
    """
    try:
        student = _require_object(request.student, "student")
        criteria = _require_object(request.criteria, "criteria")
        return engine.check_eligibility(student, criteria).model_dump()
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        return _server_error(e)


@router.post("/quick-check", summary="Boolean eligibility check")
def quick_check(request: CheckRequest, engine: EligibilityEngine = Depends(get_engine)):
    try:
        student = _require_object(request.student, "student")
        criteria = _require_object(request.criteria, "criteria")
        return {"eligible": engine.quick_check(student, criteria)}
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        return _server_error(e)


@router.post("/match", summary="Match a student to one scholarship")
def match(request: MatchRequest, engine: EligibilityEngine = Depends(get_engine)):
    """
    Eligibility verdict plus, when eligible, the approval probability with
    its factor breakdown.
    """
    try:
        student = _require_object(request.student, "student")
        scholarship = _require_object(request.scholarship, "scholarship")
        result = engine.match_student_to_scholarship(
            student,
            scholarship,
            include_prediction=request.include_prediction,
            predict_ineligible=request.predict_ineligible,
        )
        return _serialize_match(result)
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        return _server_error(e)


@router.post("/match/batch", summary="Match a student to many scholarships")
def match_batch(request: BatchMatchRequest, engine: EligibilityEngine = Depends(get_engine)):
    """
    Match against every active scholarship.

    Eligible scholarships come first as full matches, by prediction score.
    Ineligible ones scoring at least `min_eligibility_score` follow as
    partial matches when `include_partial` is set.
    """
    try:
        student = _require_object(request.student, "student")
        scholarships = [
            _require_object(item, f"scholarships[{index}]")
            for index, item in enumerate(request.scholarships)
        ]
        results = engine.match_student_to_scholarships(
            student,
            scholarships,
            include_prediction=request.include_prediction,
            predict_ineligible=request.predict_ineligible,
            limit=request.limit,
            include_partial=request.include_partial,
            min_eligibility_score=request.min_eligibility_score,
        )
        return {
            "matches": [_serialize_match(r) for r in results],
            "count": len(results),
            "eligible_count": sum(1 for r in results if r.is_eligible),
            "partial_count": sum(1 for r in results if not r.is_eligible),
        }
    except InvalidInputError as e:
        raise _bad_request(e)
    except Exception as e:
        return _server_error(e)


@router.get("/models/importance", summary="Feature importance of the resolved model")
def model_importance(
    scholarship_id: Optional[str] = Query(default=None, description="Omit for the global model"),
    provider: ModelWeightProvider = Depends(get_weight_provider),
):
    try:
        resolved = provider.get_weights(scholarship_id)
        return {
            "scholarship_id": scholarship_id,
            "trained": resolved.trained,
            "source": resolved.source,
            "accuracy": resolved.accuracy,
            "intercept": resolved.weights.intercept,
            "importance": [item.model_dump() for item in get_feature_importance(resolved.weights)],
        }
    except Exception as e:
        return _server_error(e)


@router.post("/models/cache/clear", summary="Invalidate cached model weights")
def clear_model_cache(provider: ModelWeightProvider = Depends(get_weight_provider)):
    provider.clear_cache()
    return {"status": "ok", "cleared": True}


def _serialize_match(result) -> Dict[str, Any]:
    """Convert MatchResult to JSON-serializable dict."""
    prediction = result.prediction
    return {
        "scholarship_id": result.scholarship_id,
        "scholarship_name": result.scholarship_name,
        "is_eligible": result.is_eligible,
        "eligibility": result.eligibility.model_dump(),
        "prediction": {
            "probability": round(prediction.probability, 4),
            "percentage_score": prediction.percentage_score,
            "confidence": prediction.confidence,
            "recommendation": prediction.recommendation,
            "match_level": prediction.match_level,
            "trained_model": prediction.trained_model,
            "model_source": prediction.model_source,
            "factors": [
                {
                    "factor": f.factor,
                    "value": round(f.value, 3),
                    "weight": round(f.weight, 3),
                    "contribution": round(f.contribution, 4),
                    "raw_contribution": round(f.raw_contribution, 4),
                    "description": f.description,
                    "met": f.met,
                }
                for f in prediction.factors
            ],
        } if prediction else None,
        "prediction_score": round(result.prediction_score, 4) if result.prediction_score is not None else None,
        "failed_criteria": result.failed_criteria,
        "match_type": result.match_type,
    }


# =============================================================================
# HEALTH CHECK
# =============================================================================

@router.get("/health", summary="Eligibility engine health check")
def health_check():
    """Check if eligibility engine is operational."""
    return {"status": "ok", "engine": "eligibility", "version": "1.0.0"}
