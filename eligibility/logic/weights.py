"""
Model Weight Provider

Resolves logistic-regression weights for a scholarship:
1. Unexpired cache entry for the scholarship (or the global key)
2. Scholarship-specific trained model from the registry
3. Global trained model from the registry
4. Static neutral fallback weights

A trained model is only used when its reported accuracy clears the minimum
threshold. A failed or slow registry degrades to the fallback, never raises.
"""

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FetchTimeout
from typing import Any, Callable, Dict, List, Mapping, Optional, Protocol, Tuple

from .config import EngineSettings, get_settings
from .constants import (
    EXPECTED_POSITIVE_FEATURES,
    FEATURE_NAMES,
    FEATURE_WEIGHT_ALIASES,
    GLOBAL_CACHE_KEY,
    ModelSource,
    Scoring,
)
from .contracts import FeatureImportance, ModelWeights, ResolvedWeights

logger = logging.getLogger(__name__)


# =============================================================================
# REGISTRY INTERFACE
# =============================================================================

class ModelRegistry(Protocol):
    """Source of trained models. Each method returns a raw model dict or None."""

    def get_scholarship_model(self, scholarship_id: str) -> Optional[Dict[str, Any]]:
        ...

    def get_global_model(self) -> Optional[Dict[str, Any]]:
        ...


# =============================================================================
# CACHE
# =============================================================================

class WeightCache:
    """
    TTL cache of resolved weights keyed by scholarship id or "global".

    An entry is valid only while clock() < expiry. The clock is injectable
    so tests can move time explicitly.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: Dict[str, Tuple[ResolvedWeights, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[ResolvedWeights]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expiry = entry
            if self.clock() < expiry:
                return value
            del self._entries[key]
            return None

    def set(self, key: str, value: ResolvedWeights) -> None:
        with self._lock:
            self._entries[key] = (value, self.clock() + self.ttl_seconds)

    def is_cached(self, key: str) -> bool:
        return self.get(key) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


# =============================================================================
# VALIDATION
# =============================================================================

def neutral_weights() -> ModelWeights:
    """
    Fallback when no usable trained model exists.

    Every feature weight is 1.0 so probability is driven by the raw feature
    values; the intercept recentres the sum of ten features.
    """
    return ModelWeights(intercept=-Scoring.CALIBRATION_OFFSET)


def _as_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return number if math.isfinite(number) else None


def model_accuracy(model: Mapping[str, Any]) -> float:
    """Reported accuracy from metrics.accuracy or accuracy, 0 when absent."""
    metrics = model.get("metrics")
    if isinstance(metrics, Mapping):
        accuracy = _as_float(metrics.get("accuracy"))
        if accuracy:
            return accuracy
    return _as_float(model.get("accuracy")) or 0.0


def validate_trained_weights(
    model: Optional[Mapping[str, Any]],
    min_accuracy: float
) -> Optional[Tuple[ModelWeights, List[str]]]:
    """
    Turn a raw registry model into ModelWeights.

    Returns None when the model is missing or its accuracy is below
    `min_accuracy`. Negative weights on features expected to help approval
    are replaced by their absolute value; each replacement is reported.

    Returns:
        (weights, adjustments) or None
    """
    if not isinstance(model, Mapping) or not model:
        return None

    accuracy = model_accuracy(model)
    if accuracy < min_accuracy:
        logger.warning(
            f"⚠️ Model accuracy ({accuracy * 100:.1f}%) below threshold ({min_accuracy * 100:.0f}%)"
        )
        return None

    raw_weights = model.get("weights")
    raw_weights = raw_weights if isinstance(raw_weights, Mapping) else {}

    values: Dict[str, float] = {}
    for key, value in raw_weights.items():
        name = FEATURE_WEIGHT_ALIASES.get(key, key)
        number = _as_float(value)
        if name in FEATURE_NAMES and number is not None:
            values[name] = number

    intercept = _as_float(raw_weights.get("intercept"))
    if intercept is None:
        intercept = _as_float(model.get("bias"))

    adjustments = []
    for name in EXPECTED_POSITIVE_FEATURES:
        value = values.get(name)
        if value is not None and value < 0:
            values[name] = abs(value)
            adjustments.append(f"{name}: {value:.2f} → {abs(value):.2f}")

    weights = ModelWeights(intercept=intercept if intercept is not None else 0.0, **values)
    return weights, adjustments


def get_feature_importance(weights: ModelWeights) -> List[FeatureImportance]:
    """Share of total absolute weight per feature, most important first."""
    raw = {name: getattr(weights, name) for name in FEATURE_NAMES}
    total = sum(abs(value) for value in raw.values())

    importance = [
        FeatureImportance(
            feature=name,
            weight=value,
            importance=abs(value) / total if total > 0 else 0.0,
            direction="positive" if value >= 0 else "negative",
        )
        for name, value in raw.items()
    ]
    return sorted(importance, key=lambda item: item.importance, reverse=True)


# =============================================================================
# PROVIDER
# =============================================================================

class ModelWeightProvider:
    """
    Resolves and caches regression weights per scholarship.

    Construct once per process and share; pass a fresh WeightCache in tests.
    """

    def __init__(
        self,
        registry: Optional[ModelRegistry] = None,
        cache: Optional[WeightCache] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self.settings = settings or get_settings()
        self.registry = registry
        self.cache = cache if cache is not None else WeightCache(self.settings.weight_cache_ttl_seconds)
        self._executor = ThreadPoolExecutor(max_workers=4, thread_name_prefix="model-fetch")

    @staticmethod
    def cache_key(scholarship_id: Optional[str] = None) -> str:
        return str(scholarship_id) if scholarship_id else GLOBAL_CACHE_KEY

    def fallback(self) -> ResolvedWeights:
        return ResolvedWeights(weights=neutral_weights(), trained=False, source=ModelSource.FALLBACK)

    def get_weights(self, scholarship_id: Optional[str] = None) -> ResolvedWeights:
        """
        Resolve weights for a scholarship (or the global model).

        Args:
            scholarship_id: Scholarship id, None for the global model

        Returns:
            ResolvedWeights; `trained` is False for the neutral fallback
        """
        key = self.cache_key(scholarship_id)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug(f"Model weights cache hit: {key}")
            return cached

        if self.registry is None:
            return self.fallback()

        future = self._executor.submit(self._fetch_model, scholarship_id)
        try:
            fetched = future.result(timeout=self.settings.model_fetch_timeout_seconds)
        except FetchTimeout:
            logger.warning(
                f"⚠️ Model fetch for {key} timed out after "
                f"{self.settings.model_fetch_timeout_seconds}s, using neutral weights"
            )
            return self.fallback()
        except Exception as e:
            logger.warning(f"⚠️ Failed to fetch model weights for {key}: {e}")
            return self.fallback()

        if fetched is None:
            logger.info(f"No trained model for {key}, using neutral weights")
            return self.fallback()

        model, source = fetched
        validated = validate_trained_weights(model, self.settings.min_model_accuracy)
        if validated is None:
            return self.fallback()

        weights, adjustments = validated
        if adjustments:
            logger.warning(f"⚠️ Adjusted negative weights for {key}: {', '.join(adjustments)}")

        resolved = ResolvedWeights(
            weights=weights,
            trained=True,
            source=source,
            accuracy=model_accuracy(model),
            model_id=str(model.get("id") or model.get("_id") or "") or None,
        )
        self.cache.set(key, resolved)
        logger.info(f"✅ Loaded {source.value} model weights for {key} (accuracy {resolved.accuracy:.2f})")
        return resolved

    def _fetch_model(self, scholarship_id: Optional[str]):
        """Scholarship model first, then the global model."""
        if scholarship_id:
            model = self.registry.get_scholarship_model(str(scholarship_id))
            if model:
                return model, ModelSource.SCHOLARSHIP
        model = self.registry.get_global_model()
        if model:
            return model, ModelSource.GLOBAL
        return None

    def is_cached(self, scholarship_id: Optional[str] = None) -> bool:
        return self.cache.is_cached(self.cache_key(scholarship_id))

    def clear_cache(self) -> None:
        """Invalidate every cached entry, e.g. after a model is retrained."""
        self.cache.clear()
        logger.info("🧹 Model weights cache cleared")
