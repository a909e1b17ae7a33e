"""
Eligibility Engine

Main orchestrator combining the rule evaluator with the success-prediction
scorer. This is the primary entry point for matching students to scholarships.
"""

import logging
import time
from typing import Any, Iterable, List, Mapping, Optional, Union

from .constants import DEFAULT_MIN_ELIGIBILITY_SCORE, MatchType, ScoringConvention
from .contracts import (
    EligibilityCriteria,
    EligibilityResult,
    MatchResult,
    NormalizedStudent,
    PredictionResult,
    Scholarship,
)
from .evaluator import evaluate, quick_check_eligibility
from .exceptions import InvalidInputError
from .normalizers import normalize_scholarship, normalize_student
from .scorer import score
from .weights import ModelWeightProvider

logger = logging.getLogger(__name__)

StudentInput = Union[Mapping[str, Any], NormalizedStudent]
ScholarshipInput = Union[Mapping[str, Any], Scholarship]


def format_failed_criterion(check) -> str:
    return f"{check.criterion}: {check.student_value} (required: {check.required_value})"


def _rank_score(match: MatchResult) -> float:
    """0-1 sort score: probability for full matches, eligibility for partial ones."""
    if match.is_eligible:
        return match.prediction_score or 0.0
    return match.eligibility.score / 100


class EligibilityEngine:
    """
    Matches students to scholarships.

    Pipeline flow:
    1. Normalize - Student and scholarship are normalized once at the edge
    2. Evaluate - Built-in and custom conditions give the eligibility verdict
    3. Resolve weights - Trained or neutral weights for the scholarship
    4. Score - Logistic probability with per-factor explanation
    """

    def __init__(self, weight_provider: Optional[ModelWeightProvider] = None):
        """
        Initialize the engine.

        Args:
            weight_provider: Shared weight provider. If None, a provider
                without a registry is used and predictions use neutral weights.
        """
        self.weight_provider = weight_provider or ModelWeightProvider()

    def check_eligibility(self, student: StudentInput, criteria) -> EligibilityResult:
        return evaluate(student, criteria)

    def quick_check(self, student: StudentInput, criteria) -> bool:
        return quick_check_eligibility(student, criteria)

    def predict(self, student: StudentInput, scholarship: ScholarshipInput) -> PredictionResult:
        """
        Predict the approval probability for one scholarship.

        Trained weights are scored with the graded convention, the neutral
        fallback with the binary one.
        """
        student = normalize_student(student)
        scholarship = normalize_scholarship(scholarship)

        resolved = self.weight_provider.get_weights(scholarship.id)
        convention = ScoringConvention.GRADED if resolved.trained else ScoringConvention.BINARY

        return score(
            student,
            scholarship.criteria,
            resolved.weights,
            trained=resolved.trained,
            source=resolved.source,
            convention=convention,
        )

    def match_student_to_scholarship(
        self,
        student: StudentInput,
        scholarship: ScholarshipInput,
        include_prediction: bool = True,
        predict_ineligible: bool = False
    ) -> MatchResult:
        """
        Evaluate eligibility and, optionally, predict success.

        Args:
            student: Raw or normalized student
            scholarship: Raw or normalized scholarship
            include_prediction: Attach a PredictionResult
            predict_ineligible: Also predict when the student is ineligible

        Returns:
            MatchResult
        """
        student = normalize_student(student)
        scholarship = normalize_scholarship(scholarship)

        eligibility = evaluate(student, scholarship.criteria)

        prediction = None
        if include_prediction and (eligibility.passed or predict_ineligible):
            prediction = self.predict(student, scholarship)

        return MatchResult(
            scholarship_id=scholarship.id,
            scholarship_name=scholarship.name,
            is_eligible=eligibility.passed,
            eligibility=eligibility,
            prediction=prediction,
            prediction_score=prediction.probability if prediction else None,
            failed_criteria=[format_failed_criterion(check) for check in eligibility.failed_required],
            match_type=MatchType.FULL if eligibility.passed else None,
        )

    def match_student_to_scholarships(
        self,
        student: StudentInput,
        scholarships: Iterable[ScholarshipInput],
        include_prediction: bool = True,
        predict_ineligible: bool = False,
        limit: Optional[int] = None,
        include_partial: bool = True,
        min_eligibility_score: float = DEFAULT_MIN_ELIGIBILITY_SCORE
    ) -> List[MatchResult]:
        """
        Match a student against many scholarships.

        Eligible scholarships are full matches. An ineligible scholarship is
        kept as a partial match only when `include_partial` is set and its
        eligibility score reaches `min_eligibility_score`; the rest are
        dropped. Inactive scholarships are skipped.

        Args:
            student: Raw or normalized student
            scholarships: Raw or normalized scholarships
            include_prediction: Attach a PredictionResult to full matches
            predict_ineligible: Also predict for partial matches
            limit: Keep at most this many results; None keeps all
            include_partial: Keep ineligible scholarships as partial matches
            min_eligibility_score: Smallest 0-100 eligibility score of a partial match

        Returns:
            Full matches by prediction score, then partial matches by
            eligibility score, highest first
        """
        if limit is not None and limit < 0:
            raise InvalidInputError("limit must not be negative", details={"limit": limit})

        start_time = time.perf_counter()
        student = normalize_student(student)

        results = []
        skipped = 0
        dropped = 0
        for raw in scholarships:
            scholarship = normalize_scholarship(raw)
            if not scholarship.is_active:
                skipped += 1
                continue
            match = self.match_student_to_scholarship(
                student,
                scholarship,
                include_prediction=include_prediction,
                predict_ineligible=predict_ineligible,
            )
            if not match.is_eligible:
                if not include_partial or match.eligibility.score < min_eligibility_score:
                    dropped += 1
                    continue
                match.match_type = MatchType.PARTIAL.value
            results.append(match)

        results.sort(key=lambda r: (not r.is_eligible, -_rank_score(r)))
        if limit is not None:
            results = results[:limit]

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            f"Matched student against {len(results)} scholarships "
            f"({sum(1 for r in results if r.is_eligible)} eligible, {dropped} ineligible dropped, "
            f"{skipped} inactive skipped) in {elapsed_ms:.2f}ms"
        )
        return results


# Convenience functions for simple usage
_default_engine: Optional[EligibilityEngine] = None


def get_default_engine() -> EligibilityEngine:
    """Process-wide engine sharing one weight cache."""
    global _default_engine
    if _default_engine is None:
        _default_engine = EligibilityEngine()
    return _default_engine


def check_eligibility(student: StudentInput, criteria: Union[Mapping[str, Any], EligibilityCriteria]) -> EligibilityResult:
    return get_default_engine().check_eligibility(student, criteria)


def quick_check(student: StudentInput, criteria: Union[Mapping[str, Any], EligibilityCriteria]) -> bool:
    return get_default_engine().quick_check(student, criteria)


def predict_success(student: StudentInput, scholarship: ScholarshipInput) -> PredictionResult:
    return get_default_engine().predict(student, scholarship)


def match_student_to_scholarship(
    student: StudentInput,
    scholarship: ScholarshipInput,
    include_prediction: bool = True
) -> MatchResult:
    """
    Convenience function to match one scholarship.

    Args:
        student: Raw or normalized student
        scholarship: Raw or normalized scholarship
        include_prediction: Attach a PredictionResult when eligible

    Returns:
        MatchResult
    """
    return get_default_engine().match_student_to_scholarship(
        student, scholarship, include_prediction=include_prediction
    )


def match_student_to_scholarships(
    student: StudentInput,
    scholarships: Iterable[ScholarshipInput],
    include_prediction: bool = True,
    limit: Optional[int] = None,
    include_partial: bool = True,
    min_eligibility_score: float = DEFAULT_MIN_ELIGIBILITY_SCORE
) -> List[MatchResult]:
    return get_default_engine().match_student_to_scholarships(
        student,
        scholarships,
        include_prediction=include_prediction,
        limit=limit,
        include_partial=include_partial,
        min_eligibility_score=min_eligibility_score,
    )
