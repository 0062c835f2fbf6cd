"""
Drug Response Prediction Engine - Response Normalizer
Maps each backend's payload shape into one canonical PredictionResult
"""
import logging
from typing import Any, Dict, Optional

from config.settings import DEFAULT_CONFIDENCE, DEFAULT_PREDICTION_LABEL
from src.core.genetics import GeneticMarkerMapper
from src.core.models import (
    BackendReply, EnhancedReply, StandardReply, PredictionRequest, PredictionResult,
    PatientData, BackendDrugInfo, MedicineSuitability, SourceBackend
)
from src.dosing.calculator import BMICalculator

logger = logging.getLogger(__name__)

NO_HISTORY = "No specific contraindications noted"


def _confidence(value: Any) -> float:
    # Falsy or non-numeric confidence falls back to the documented default
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return DEFAULT_CONFIDENCE
    return float(value)


def _explanation(payload: Dict[str, Any]) -> str:
    return payload.get("explanation") or payload.get("analysis_summary") or ""


def _dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _list(value: Any) -> list:
    return value if isinstance(value, list) else []


class ResponseNormalizer:
    """
    Two mapping profiles:
    - enhanced: nested prediction object, patient data, genetic profile, drug info
    - standard: flat label/confidence, optional medicine suitability block
    """

    def __init__(self, marker_mapper: Optional[GeneticMarkerMapper] = None):
        self.marker_mapper = marker_mapper or GeneticMarkerMapper()

    def normalize(
        self,
        reply: BackendReply,
        request: PredictionRequest,
        elapsed_ms: float = 0
    ) -> PredictionResult:
        if isinstance(reply, EnhancedReply):
            return self.normalize_enhanced(reply.payload, request, elapsed_ms)
        if isinstance(reply, StandardReply):
            return self.normalize_standard(reply.payload, request, elapsed_ms)
        raise TypeError(f"Unknown backend reply: {type(reply).__name__}")

    def normalize_enhanced(
        self,
        payload: Dict[str, Any],
        request: PredictionRequest,
        elapsed_ms: float = 0
    ) -> PredictionResult:
        prediction = _dict(payload.get("prediction"))
        patient = _dict(payload.get("patient_data"))
        genetic_profile = _dict(payload.get("genetic_profile"))
        drug_info = _dict(payload.get("drug_info"))

        history = [str(h) for h in _list(patient.get("medical_history"))]
        markers = self.marker_mapper.map_markers(_dict(genetic_profile.get("genetic_markers")))

        return PredictionResult(
            prediction=(
                prediction.get("prediction_label")
                or prediction.get("prediction")
                or DEFAULT_PREDICTION_LABEL
            ),
            confidence=_confidence(prediction.get("confidence")),
            source=SourceBackend.ENHANCED,
            response_time_ms=elapsed_ms,
            explanation=_explanation(payload) or str(prediction.get("reasoning") or ""),
            dosage=BMICalculator.dosage_for(request.weight_kg, request.height_cm),
            drug_name=request.drug_name.strip(),
            is_enhanced=True,
            genetic_markers=tuple(markers),
            drug_info=BackendDrugInfo(
                rxnorm_data=_dict(drug_info.get("rxnorm_data")),
                fda_data=_dict(drug_info.get("fda_data")),
                interactions=_dict(drug_info.get("interactions")),
                dosage_info=_dict(drug_info.get("dosage_info")),
            ),
            clinical_recommendations=tuple(_list(payload.get("clinical_recommendations"))),
            patient_data=PatientData(
                demographics=_dict(patient.get("demographics")),
                vitals=_dict(patient.get("current_vitals")),
                medical_history=tuple(history),
                allergies=tuple(_list(patient.get("allergies"))),
                current_medications=tuple(_list(patient.get("current_medications"))),
            ),
            medical_history=", ".join(history) or request.chronic_conditions or NO_HISTORY,
        )

    def normalize_standard(
        self,
        payload: Dict[str, Any],
        request: PredictionRequest,
        elapsed_ms: float = 0
    ) -> PredictionResult:
        patient = _dict(payload.get("patient_data"))
        bmi = patient.get("bmi")
        if isinstance(bmi, bool) or not isinstance(bmi, (int, float)) or bmi <= 0:
            bmi = None

        suitability = payload.get("medicine_suitability")
        if isinstance(suitability, dict):
            suitability = MedicineSuitability.from_payload(suitability)
        else:
            suitability = None

        label = payload.get("prediction_label") or payload.get("prediction")
        if not isinstance(label, str) or not label.strip():
            logger.warning(
                f"Standard backend reply carries no prediction label, using {DEFAULT_PREDICTION_LABEL}"
            )
            label = DEFAULT_PREDICTION_LABEL

        return PredictionResult(
            prediction=label,
            confidence=_confidence(payload.get("confidence")),
            source=SourceBackend.STANDARD,
            response_time_ms=elapsed_ms,
            explanation=_explanation(payload),
            dosage=BMICalculator.dosage_for(request.weight_kg, request.height_cm, bmi=bmi),
            drug_name=payload.get("drug_name") or request.drug_name.strip(),
            is_enhanced=False,
            genetic_markers=tuple(_list(payload.get("genetic_markers"))),
            medicine_suitability=suitability,
            medical_history=request.chronic_conditions or NO_HISTORY,
        )
