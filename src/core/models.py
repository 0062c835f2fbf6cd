"""
Drug Response Prediction Engine - Data Models
Canonical records shared by the prediction pipeline
"""
from dataclasses import dataclass, field, asdict
from typing import List, Optional, Dict, Any, Tuple, Union
from enum import Enum
from datetime import datetime


class Gender(Enum):
    MALE = "male"
    FEMALE = "female"
    OTHER = "other"


class ValidationState(Enum):
    IDLE = "idle"
    CHECKING = "checking"
    VALID = "valid"
    INVALID = "invalid"


class OutcomeLabel:
    """Outcome labels produced by the prediction backends"""
    EFFECTIVE = "Effective"
    INEFFECTIVE = "Ineffective"
    RISKY = "Risky/Adverse"
    RESPONSIVE = "Responsive"  # default when the enhanced backend omits a label


class SourceBackend:
    """Discriminators stamped on every PredictionResult"""
    ENHANCED = "enhanced_realtime_api"
    STANDARD = "standard_api"


def _to_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    number = _to_float(value)
    return int(number) if number is not None else None


def _new_patient_id() -> str:
    return f"patient_{int(datetime.now().timestamp() * 1000)}"


@dataclass(frozen=True)
class PredictionRequest:
    """Patient and drug inputs for one prediction submission"""
    age: Optional[int]
    gender: Optional[str]
    height_cm: Optional[float]
    weight_kg: Optional[float]
    drug_name: str
    chronic_conditions: str = ""
    patient_id: str = field(default_factory=_new_patient_id)

    @classmethod
    def from_form(cls, data: Dict[str, Any]) -> "PredictionRequest":
        """Build a request from loosely typed form input, coercing numerics"""
        gender = data.get("gender")
        if isinstance(gender, Gender):
            gender = gender.value
        elif isinstance(gender, str):
            gender = gender.strip().lower()
        kwargs = dict(
            age=_to_int(data.get("age")),
            gender=gender or None,
            height_cm=_to_float(data.get("height_cm", data.get("height"))),
            weight_kg=_to_float(data.get("weight_kg", data.get("weight"))),
            drug_name=str(data.get("drug_name") or data.get("medicine_name") or ""),
            chronic_conditions=str(data.get("chronic_conditions") or ""),
        )
        if data.get("patient_id"):
            kwargs["patient_id"] = str(data["patient_id"])
        return cls(**kwargs)

    @property
    def bmi(self) -> Optional[float]:
        from src.dosing.calculator import BMICalculator
        return BMICalculator.compute_bmi(self.weight_kg, self.height_cm)


@dataclass(frozen=True)
class GeneticMarker:
    """Pharmacogenetic marker with derived clinical significance"""
    gene: str
    genotype: str = "Unknown"
    phenotype: str = "Unknown"
    activity_score: float = 1.0
    drugs_affected: Tuple[str, ...] = ()
    clinical_significance: str = ""


@dataclass(frozen=True)
class PatientData:
    """Patient record echoed back by the enhanced backend"""
    demographics: Dict[str, Any] = field(default_factory=dict)
    vitals: Dict[str, Any] = field(default_factory=dict)
    medical_history: Tuple[str, ...] = ()
    allergies: Tuple[Any, ...] = ()
    current_medications: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class BackendDrugInfo:
    """Drug-info sub-blocks attached to an enhanced prediction"""
    rxnorm_data: Dict[str, Any] = field(default_factory=dict)
    fda_data: Dict[str, Any] = field(default_factory=dict)
    interactions: Dict[str, Any] = field(default_factory=dict)
    dosage_info: Dict[str, Any] = field(default_factory=dict)


# ==================== Medicine suitability ====================

@dataclass(frozen=True)
class OverallSuitability:
    status: str = ""
    score: float = 0.0
    color: str = ""
    recommendation: str = ""
    confidence: float = 0.0


@dataclass(frozen=True)
class AssessmentFactor:
    factor: str
    impact: str = ""
    description: str = ""
    recommendation: str = ""


@dataclass(frozen=True)
class InteractionSummary:
    has_interactions: bool = False
    interaction_count: int = 0
    recommendation: str = ""


@dataclass(frozen=True)
class SafetyInformation:
    warnings: Tuple[str, ...] = ()
    interactions: InteractionSummary = field(default_factory=InteractionSummary)
    monitoring_required: bool = False


@dataclass(frozen=True)
class MedicineSuitability:
    """Suitability assessment supplied by the standard backend"""
    overall_suitability: OverallSuitability = field(default_factory=OverallSuitability)
    assessment_factors: Tuple[AssessmentFactor, ...] = ()
    safety_information: SafetyInformation = field(default_factory=SafetyInformation)
    personalized_recommendations: Tuple[str, ...] = ()
    next_steps: Tuple[str, ...] = ()
    emergency_contact: str = ""

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "MedicineSuitability":
        """Parse the backend's medicine_suitability block"""
        overall = payload.get("overall_suitability") or {}
        safety = payload.get("safety_information") or {}
        interactions = safety.get("interactions") or {}

        return cls(
            overall_suitability=OverallSuitability(
                status=overall.get("status", ""),
                score=_to_float(overall.get("score")) or 0.0,
                color=overall.get("color", ""),
                recommendation=overall.get("recommendation", ""),
                confidence=_to_float(overall.get("confidence")) or 0.0,
            ),
            assessment_factors=tuple(
                AssessmentFactor(
                    factor=f.get("factor", ""),
                    impact=f.get("impact", ""),
                    description=f.get("description", ""),
                    recommendation=f.get("recommendation", ""),
                )
                for f in payload.get("assessment_factors") or []
                if isinstance(f, dict)
            ),
            safety_information=SafetyInformation(
                warnings=tuple(safety.get("warnings") or []),
                interactions=InteractionSummary(
                    has_interactions=bool(interactions.get("has_interactions", False)),
                    interaction_count=_to_int(interactions.get("interaction_count")) or 0,
                    recommendation=interactions.get("recommendation", ""),
                ),
                monitoring_required=bool(safety.get("monitoring_required", False)),
            ),
            personalized_recommendations=tuple(payload.get("personalized_recommendations") or []),
            next_steps=tuple(payload.get("next_steps") or []),
            emergency_contact=payload.get("emergency_contact", ""),
        )


# ==================== Drug reference data ====================

@dataclass(frozen=True)
class RxNormData:
    """Structured-vocabulary concepts (RxNorm)"""
    concepts: Tuple[Dict[str, Any], ...]
    total_concepts: int

    @property
    def rxcui(self) -> Optional[str]:
        for concept in self.concepts:
            if isinstance(concept, dict) and concept.get("rxcui"):
                return str(concept["rxcui"])
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RxNormData":
        raw = data.get("concepts")
        # Only dict concepts are usable
        concepts = tuple(c for c in raw if isinstance(c, dict)) if isinstance(raw, (list, tuple)) else ()
        total = _to_int(data.get("total_concepts"))
        return cls(concepts=concepts, total_concepts=total if total is not None else len(concepts))


def as_text_tuple(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, (list, tuple)):
        return tuple(str(v) for v in value)
    return (str(value),)


@dataclass(frozen=True)
class FdaData:
    """Regulatory label fields (openFDA)"""
    generic_name: Tuple[str, ...] = ()
    brand_name: Tuple[str, ...] = ()
    indications: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    dosage: Tuple[str, ...] = ()
    contraindications: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FdaData":
        return cls(
            generic_name=as_text_tuple(data.get("generic_name")),
            brand_name=as_text_tuple(data.get("brand_name")),
            indications=as_text_tuple(data.get("indications")),
            warnings=as_text_tuple(data.get("warnings")),
            dosage=as_text_tuple(data.get("dosage")),
            contraindications=as_text_tuple(data.get("contraindications")),
        )


@dataclass(frozen=True)
class PubChemData:
    """Chemical-structure properties (PubChem)"""
    molecular_formula: Optional[str] = None
    molecular_weight: Optional[str] = None
    canonical_smiles: Optional[str] = None
    isomeric_smiles: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PubChemData":
        weight = data.get("molecular_weight")
        return cls(
            molecular_formula=data.get("molecular_formula"),
            molecular_weight=str(weight) if weight is not None else None,
            canonical_smiles=data.get("canonical_smiles"),
            isomeric_smiles=data.get("isomeric_smiles"),
        )


SourceRecord = Union[RxNormData, FdaData, PubChemData]

SOURCE_NAMES = {
    RxNormData: "RxNorm",
    FdaData: "FDA",
    PubChemData: "PubChem",
}


@dataclass(frozen=True)
class DrugInfo:
    """Aggregated drug information from one or more sources"""
    drug_name: str
    sources: Tuple[str, ...] = ()
    rxnorm: Optional[RxNormData] = None
    fda: Optional[FdaData] = None
    pubchem: Optional[PubChemData] = None
    backend_data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_backend(cls, drug_name: str, data: Dict[str, Any]) -> "DrugInfo":
        """Wrap the internal drug-info endpoint's payload"""
        def block(key):
            value = data.get(key)
            return value if isinstance(value, dict) and value.get("found", True) else None

        rxnorm, fda, pubchem = block("rxnorm"), block("fda"), block("pubchem")
        rxnorm_data = RxNormData.from_dict(rxnorm) if rxnorm else None
        if rxnorm_data is not None and not rxnorm_data.concepts:
            rxnorm_data = None
        sources = data.get("sources") or ["backend"]
        return cls(
            drug_name=data.get("drug_name", drug_name),
            sources=as_text_tuple(sources),
            rxnorm=rxnorm_data,
            fda=FdaData.from_dict(fda) if fda else None,
            pubchem=PubChemData.from_dict(pubchem) if pubchem else None,
            backend_data=data,
        )


# ==================== Validation & prediction ====================

@dataclass(frozen=True)
class NameValidation:
    """Outcome of one drug-name validation"""
    state: ValidationState
    reason: Optional[str] = None
    message: str = ""

    @property
    def is_valid(self) -> bool:
        return self.state == ValidationState.VALID


@dataclass(frozen=True)
class ExplanationSections:
    """Sections recovered from free-text explanation; absent ones stay None"""
    indications: Optional[str] = None
    mechanism: Optional[str] = None
    chemical_formula: Optional[str] = None
    safety: Optional[str] = None
    recommendation: Optional[str] = None


@dataclass(frozen=True)
class EnhancedReply:
    """Raw payload from the enhanced prediction endpoint"""
    payload: Dict[str, Any]


@dataclass(frozen=True)
class StandardReply:
    """Raw payload from the standard prediction endpoint"""
    payload: Dict[str, Any]


BackendReply = Union[EnhancedReply, StandardReply]


@dataclass(frozen=True)
class PredictionResult:
    """Canonical, normalized drug-response prediction"""
    prediction: str
    confidence: float
    source: str
    response_time_ms: float = 0
    explanation: str = ""
    dosage: str = ""
    drug_name: str = ""
    is_enhanced: bool = False
    genetic_markers: Tuple[Union[GeneticMarker, Dict[str, Any]], ...] = ()
    medicine_suitability: Optional[MedicineSuitability] = None
    drug_info: Optional[BackendDrugInfo] = None
    clinical_recommendations: Tuple[str, ...] = ()
    patient_data: Optional[PatientData] = None
    medical_history: str = ""
    predicted_at: datetime = field(default_factory=datetime.now)

    @property
    def confidence_percent(self) -> int:
        return round(self.confidence * 100)

    def to_dict(self) -> Dict[str, Any]:
        result = asdict(self)
        result["predicted_at"] = self.predicted_at.isoformat()
        return result
