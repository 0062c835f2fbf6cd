"""
Drug Response Prediction Engine - Prediction Orchestrator
Backend fallback chain, normalization and explanation enrichment
"""
import dataclasses
import logging
import time
from typing import Any, Dict, List, Optional, Tuple

from config.settings import ENABLE_DRUG_NAME_VALIDATION, ENABLE_EXPLANATION_SYNTHESIS
from src.core.clients import UpstreamClients
from src.core.drug_info import DrugInfoAggregator
from src.core.drug_name_validator import DrugNameValidator
from src.core.exceptions import (
    AllBackendsFailedError, DrugNameRejectedError, UpstreamError,
    MissingDrugNameError, MissingGenderError, InvalidGenderError,
    InvalidHeightError, InvalidWeightError, InvalidAgeError
)
from src.core.explanation import ExplanationSynthesizer
from src.core.models import (
    BackendReply, EnhancedReply, StandardReply, Gender, NameValidation,
    PredictionRequest, PredictionResult, SourceBackend
)
from src.core.normalizer import ResponseNormalizer

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

GENDERS = {g.value for g in Gender}


def check_preconditions(request: PredictionRequest):
    """Raise the matching precondition error for the first invalid field"""
    if not (request.drug_name or "").strip():
        raise MissingDrugNameError()
    if not request.gender:
        raise MissingGenderError()
    if request.gender not in GENDERS:
        raise InvalidGenderError(request.gender)
    if request.height_cm is None or request.height_cm <= 0:
        raise InvalidHeightError()
    if request.weight_kg is None or request.weight_kg <= 0:
        raise InvalidWeightError()
    if request.age is None or request.age <= 0 or request.age > 120:
        raise InvalidAgeError()


def enhanced_payload(request: PredictionRequest) -> Dict[str, Any]:
    return {
        "patient_id": request.patient_id,
        "age": int(request.age),
        "gender": request.gender,
        "height": float(request.height_cm),
        "weight": float(request.weight_kg),
        "drug_name": request.drug_name.strip(),
        "chronic_conditions": request.chronic_conditions or "None",
    }


def standard_payload(request: PredictionRequest) -> Dict[str, Any]:
    return {
        "patient_age": int(request.age),
        "patient_gender": request.gender,
        "patient_height_cm": float(request.height_cm),
        "patient_weight_kg": float(request.weight_kg),
        "patient_diagnosis": request.chronic_conditions or "General Health Assessment",
        "drug_name": request.drug_name,
    }


class PredictionOrchestrator:
    """
    Main service for drug-response prediction:
    - Precondition checks
    - Enhanced backend, then standard backend on failure (never both at once)
    - Normalization into a canonical PredictionResult
    - Explanation synthesis when the backend supplied none
    """

    def __init__(
        self,
        clients: Optional[UpstreamClients] = None,
        normalizer: Optional[ResponseNormalizer] = None,
        validator: Optional[DrugNameValidator] = None,
        synthesizer: Optional[ExplanationSynthesizer] = None,
        aggregator: Optional[DrugInfoAggregator] = None
    ):
        self.clients = clients or UpstreamClients()
        self.normalizer = normalizer or ResponseNormalizer()
        self.validator = validator or DrugNameValidator(self.clients)
        self.aggregator = aggregator or DrugInfoAggregator(self.clients)
        self.synthesizer = synthesizer or ExplanationSynthesizer(self.aggregator)
        logger.info("Prediction Orchestrator initialized")

    async def validate_drug_name(self, name: str) -> NameValidation:
        """Stateless check shared by all API callers; see DrugNameValidator.lookup"""
        return await self.validator.lookup(name)

    async def submit_prediction(self, request: PredictionRequest) -> PredictionResult:
        """
        Validate the drug name, then predict.

        Raises:
            DrugNameRejectedError: name not found or vocabulary unavailable
            PredictionPreconditionError: invalid request fields
            AllBackendsFailedError: both backends failed
        """
        if ENABLE_DRUG_NAME_VALIDATION:
            validation = await self.validator.lookup(request.drug_name)
            if not validation.is_valid:
                raise DrugNameRejectedError(validation)

        return await self.predict(request)

    async def predict(self, request: PredictionRequest) -> PredictionResult:
        check_preconditions(request)

        start_time = time.perf_counter()
        logger.info(f"Starting prediction for {request.drug_name} ({request.patient_id})")

        reply = await self._call_backends(request)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        result = self.normalizer.normalize(reply, request, elapsed_ms)

        if result.explanation.strip():
            logger.info("Using backend-supplied explanation")
        elif ENABLE_EXPLANATION_SYNTHESIS:
            explanation = await self.synthesizer.explain(
                result.drug_name or request.drug_name, result, request
            )
            result = dataclasses.replace(result, explanation=explanation)

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        result = dataclasses.replace(result, response_time_ms=elapsed_ms)

        logger.info(
            f"Prediction completed in {elapsed_ms:.0f}ms via {result.source}: "
            f"{result.prediction} ({result.confidence_percent}%)"
        )
        return result

    async def _call_backends(self, request: PredictionRequest) -> BackendReply:
        attempts: List[Tuple[str, str]] = []

        try:
            payload = await self.clients.predict_enhanced(enhanced_payload(request))
            logger.info("Enhanced backend answered")
            return EnhancedReply(payload)
        except UpstreamError as e:
            logger.warning(f"Enhanced backend failed, trying standard backend: {e}")
            attempts.append((SourceBackend.ENHANCED, e.reason))

        try:
            payload = await self.clients.predict_standard(standard_payload(request))
            logger.info("Standard backend answered")
            return StandardReply(payload)
        except UpstreamError as e:
            attempts.append((SourceBackend.STANDARD, e.reason))

        logger.error(f"All prediction backends failed for {request.drug_name}: {attempts}")
        raise AllBackendsFailedError(attempts)

    async def aclose(self):
        await self.clients.aclose()


# Singleton instance
_prediction_service: Optional[PredictionOrchestrator] = None

def get_prediction_service() -> PredictionOrchestrator:
    """Get or create prediction orchestrator singleton"""
    global _prediction_service
    if _prediction_service is None:
        _prediction_service = PredictionOrchestrator()
    return _prediction_service
