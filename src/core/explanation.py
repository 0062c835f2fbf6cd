"""
Drug Response Prediction Engine - Explanation Synthesizer
Builds human-readable rationale for a prediction
"""
import logging
import re
from typing import Dict, Mapping, Optional

from src.core.drug_info import DrugInfoAggregator
from src.core.drug_knowledge import (
    MEDICINE_KNOWLEDGE, CATEGORY_KNOWLEDGE, GENERIC_CATEGORY,
    DEFAULT_USES, DrugCategoryClassifier
)
from src.core.models import (
    DrugInfo, ExplanationSections, OutcomeLabel, PredictionRequest, PredictionResult,
    as_text_tuple
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

GENERIC_PRECAUTIONS = GENERIC_CATEGORY["precautions"]

# ==================== Section parser ====================

# Section text runs from the header's colon to the next "**" marker or end of text
_SECTION_BODY = r".*?:\s*(?:\*\*)?\s*(.*?)(?=\*\*|\Z)"

SECTION_PATTERNS = [
    ("indications", re.compile(r"(?:How it helps|Indications|INDICATIONS)" + _SECTION_BODY, re.DOTALL)),
    ("mechanism", re.compile(r"(?:How it works|Mechanism of Action)" + _SECTION_BODY, re.DOTALL)),
    ("chemical_formula", re.compile(r"Chemical Formula" + _SECTION_BODY, re.DOTALL)),
    ("safety", re.compile(r"Safety Assessment" + _SECTION_BODY, re.DOTALL)),
    ("recommendation", re.compile(r"Recommendation" + _SECTION_BODY, re.DOTALL)),
]

# Sections at or below this length are treated as absent
MIN_SECTION_LENGTH = {
    "indications": 10,
    "mechanism": 10,
    "chemical_formula": 0,
    "safety": 10,
    "recommendation": 10,
}

# Ordered: first condition found in the indications text wins
INDICATION_CONDITIONS = [
    (("gastroesophageal reflux", "gerd"), "Gastroesophageal reflux disease (GERD)"),
    (("hypertension",), "Hypertension (high blood pressure)"),
    (("diabetes",), "Type 2 Diabetes"),
    (("depression",), "Depression and anxiety disorders"),
    (("pain",), "Pain management"),
    (("inflammation",), "Inflammatory conditions"),
    (("cholesterol",), "High cholesterol and cardiovascular risk"),
    (("infection",), "Bacterial infections"),
]


def parse_explanation_sections(text: str) -> ExplanationSections:
    """
    Split free-text explanation into known sections.

    Extraction is lossy by contract: a section that is missing, empty or
    too short comes back as None. This never raises.
    """
    found: Dict[str, str] = {}
    for name, pattern in SECTION_PATTERNS:
        match = pattern.search(text or "")
        if not match:
            continue
        body = match.group(1).strip()
        if body and len(body) > MIN_SECTION_LENGTH[name]:
            found[name] = body
    return ExplanationSections(**found)


def detect_condition(indications: Optional[str]) -> Optional[str]:
    lowered = (indications or "").lower()
    for keywords, condition in INDICATION_CONDITIONS:
        if any(k in lowered for k in keywords):
            return condition
    return None


def format_explanation(text: str, drug_name: Optional[str] = None) -> str:
    """Compose a medicine-focused summary from a raw explanation text"""
    if not text:
        return "No explanation available."

    sections = parse_explanation_sections(text)
    category = DrugCategoryClassifier.get_category(drug_name or "")
    condition = detect_condition(sections.indications)

    parts = [
        f"{drug_name or 'This Medicine'}: {category} commonly prescribed for "
        f"{condition or DEFAULT_USES}."
    ]
    if sections.mechanism:
        parts.append(f"How it works: {sections.mechanism}")
    if sections.indications:
        uses = sections.indications
        if len(uses) > 200:
            uses = uses[:200] + "..."
        parts.append(f"Used to treat: {uses}")
    if sections.chemical_formula:
        parts.append(f"Chemical Formula: {sections.chemical_formula}")
    if sections.safety:
        parts.append(f"Safety: {sections.safety}")
    if sections.recommendation:
        parts.append(f"Recommendation: {sections.recommendation}")

    return "\n\n".join(parts)


# ==================== Synthesizer ====================

# (condition keywords, first-line drugs that skip the caveat, caveat)
CONDITION_CAVEATS = [
    (("diabetes",), ("metformin", "insulin"),
     "Your diabetes condition requires careful monitoring of blood sugar levels while taking this medication."),
    (("hypertension",), ("lisinopril", "metoprolol"),
     "Your blood pressure should be monitored regularly while taking this medication."),
    (("heart",), ("lisinopril", "metoprolol"),
     "Your heart condition requires careful monitoring while taking this medication."),
    (("kidney", "renal"), (),
     "Your kidney function should be monitored regularly while taking this medication."),
    (("liver", "hepatic"), (),
     "Your liver function should be monitored regularly while taking this medication."),
]


def age_caveat(age: Optional[int]) -> str:
    if age is None:
        return ""
    if age > 65:
        return "Given your age, your doctor may start with a lower dose and monitor you more closely."
    if age < 18:
        return "Pediatric dosing may be required with careful monitoring."
    return ""


def condition_caveat(drug_name: str, chronic_conditions: str) -> str:
    drug = (drug_name or "").lower()
    conditions = (chronic_conditions or "").lower()
    for keywords, first_line, caveat in CONDITION_CAVEATS:
        if any(k in conditions for k in keywords) and not any(d in drug for d in first_line):
            return caveat
    return ""


class ExplanationSynthesizer:
    """
    Produces the explanation text for a PredictionResult.

    A backend-supplied explanation is used unmodified. Otherwise the text is
    built from real-time drug info (label > vocabulary > chemical structure),
    then the static knowledge table, then a category-level description, and
    finished with age and condition caveats.
    """

    def __init__(
        self,
        aggregator: DrugInfoAggregator,
        medicine_knowledge: Mapping[str, Mapping[str, str]] = MEDICINE_KNOWLEDGE,
        category_knowledge: Mapping[str, Mapping[str, str]] = CATEGORY_KNOWLEDGE,
        classifier=DrugCategoryClassifier
    ):
        self.aggregator = aggregator
        self.medicine_knowledge = medicine_knowledge
        self.category_knowledge = category_knowledge
        self.classifier = classifier

    async def explain(
        self,
        drug_name: str,
        result: PredictionResult,
        request: Optional[PredictionRequest] = None
    ) -> str:
        if result.explanation and result.explanation.strip():
            return result.explanation

        drug_info = await self._fetch_drug_info(drug_name)
        info = self.describe(drug_name, drug_info)

        parts = [info["uses"], info["effects"], info["precautions"]]
        if request is not None:
            parts.append(age_caveat(request.age))
            parts.append(condition_caveat(drug_name, request.chronic_conditions))

        return " ".join(p for p in parts if p)

    def describe(self, drug_name: str, drug_info: Optional[DrugInfo]) -> Dict[str, str]:
        """uses / effects / precautions for a drug, best source first"""
        if drug_info is not None:
            try:
                described = self._from_drug_info(drug_name, drug_info)
            except Exception as e:
                logger.warning(f"Unusable drug info for {drug_name}, using static knowledge: {e}")
                described = None
            if described:
                return described

        known = self.medicine_knowledge.get((drug_name or "").lower())
        if known:
            logger.info(f"Using static knowledge for {drug_name}")
            return dict(known)

        category = self.classifier.get_category(drug_name)
        logger.info(f"Using category knowledge ({category}) for {drug_name}")
        category_info = self.category_knowledge.get(category, GENERIC_CATEGORY)
        return {
            "uses": f"{drug_name} is a {category} medication used for {DEFAULT_USES}.",
            "effects": category_info["effects"],
            "precautions": category_info["precautions"],
        }

    def _from_drug_info(self, drug_name: str, drug_info: DrugInfo) -> Optional[Dict[str, str]]:
        if drug_info.fda is not None:
            return self._from_fda(drug_name, drug_info)
        if drug_info.rxnorm is not None:
            return self._from_rxnorm(drug_name, drug_info)
        if drug_info.pubchem is not None:
            return self._from_pubchem(drug_name, drug_info)
        drugbank = (drug_info.backend_data or {}).get("drugbank")
        if isinstance(drugbank, dict):
            return self._from_drugbank(drug_name, drugbank)
        return None

    async def _fetch_drug_info(self, drug_name: str) -> Optional[DrugInfo]:
        try:
            return await self.aggregator.fetch_drug_info(drug_name)
        except Exception as e:
            logger.warning(f"Drug info lookup failed for {drug_name}: {e}")
            return None

    @staticmethod
    def _from_fda(drug_name: str, drug_info: DrugInfo) -> Dict[str, str]:
        fda = drug_info.fda
        generic = ", ".join(fda.generic_name) or drug_name
        indications = ", ".join(fda.indications) or "therapeutic treatment"
        effects = "This medication is approved by the FDA for the treatment of specific medical conditions."
        if fda.dosage:
            effects += f" Dosage information: {', '.join(fda.dosage)}"

        if fda.warnings:
            precautions = ". ".join(fda.warnings)
        elif fda.contraindications:
            precautions = ". ".join(fda.contraindications)
        else:
            precautions = GENERIC_PRECAUTIONS

        return {
            "uses": f"{drug_name} ({generic}) is a medication used for {indications}.",
            "effects": effects,
            "precautions": precautions,
        }

    @staticmethod
    def _from_rxnorm(drug_name: str, drug_info: DrugInfo) -> Dict[str, str]:
        rxnorm = drug_info.rxnorm
        return {
            "uses": f"{drug_name} is a standardized medication (RxCUI: {rxnorm.rxcui}) used for therapeutic treatment.",
            "effects": f"This medication is recognized in the RxNorm database with {rxnorm.total_concepts} related concepts.",
            "precautions": GENERIC_PRECAUTIONS,
        }

    @staticmethod
    def _from_pubchem(drug_name: str, drug_info: DrugInfo) -> Dict[str, str]:
        pubchem = drug_info.pubchem
        structure = pubchem.canonical_smiles or pubchem.isomeric_smiles or "Structure not available"
        return {
            "uses": (
                f"{drug_name} is a chemical compound (Molecular Formula: {pubchem.molecular_formula}, "
                f"Molecular Weight: {pubchem.molecular_weight}) used for therapeutic treatment."
            ),
            "effects": f"This compound has the chemical structure: {structure}.",
            "precautions": GENERIC_PRECAUTIONS,
        }

    @staticmethod
    def _from_drugbank(drug_name: str, drugbank: Dict[str, str]) -> Dict[str, str]:
        warnings = as_text_tuple(drugbank.get("warnings"))
        indication = ", ".join(as_text_tuple(drugbank.get("indication"))) or DEFAULT_USES
        mechanism = as_text_tuple(
            drugbank.get("mechanism_of_action") or drugbank.get("pharmacodynamics")
        )
        return {
            "uses": f"{drug_name} is a medication used for {indication}.",
            "effects": " ".join(mechanism) or GENERIC_CATEGORY["effects"],
            "precautions": ". ".join(warnings) if warnings else GENERIC_PRECAUTIONS,
        }


def summarize_prediction(result: PredictionResult) -> str:
    """Short outcome summary keyed on the prediction label"""
    category = DrugCategoryClassifier.get_category(result.drug_name)
    drug_context = f"{category} commonly prescribed for {DEFAULT_USES}"
    time_info = ""
    if result.response_time_ms:
        time_info = f" Analysis completed in {round(result.response_time_ms)}ms using real-time AI processing."

    if result.prediction == OutcomeLabel.EFFECTIVE:
        return (
            f"The AI model analyzed the patient's profile for {drug_context}. The analysis predicts "
            f"an effective response with {result.confidence_percent}% confidence. Based on the "
            f"patient's age, BMI, and medical history, the drug is expected to provide therapeutic "
            f"benefits with minimal adverse effects.{time_info}"
        )
    if result.prediction == OutcomeLabel.INEFFECTIVE:
        return (
            f"The AI model analyzed {drug_context} and predicts limited effectiveness for this "
            f"medication with {result.confidence_percent}% confidence. Alternative treatments or "
            f"dosage adjustments may be considered based on the patient's specific profile and "
            f"medical history.{time_info}"
        )
    return (
        f"The AI model analyzed {drug_context} and indicates potential risks or adverse effects "
        f"with {result.confidence_percent}% confidence. Close monitoring and consultation with "
        f"healthcare professionals is recommended for this patient-drug combination.{time_info}"
    )
