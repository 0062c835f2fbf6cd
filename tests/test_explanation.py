"""
Drug Response Prediction Engine - Explanation Tests
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from types import MappingProxyType

import pytest

from src.core.drug_knowledge import DrugCategoryClassifier, MEDICINE_KNOWLEDGE
from src.core.explanation import (
    ExplanationSynthesizer, parse_explanation_sections, format_explanation,
    condition_caveat, age_caveat, summarize_prediction
)
from src.core.models import (
    DrugInfo, FdaData, RxNormData, PubChemData, PredictionRequest,
    PredictionResult, SourceBackend
)


class StubAggregator:
    """Returns a fixed DrugInfo and records lookups"""

    def __init__(self, info=None, error=None):
        self.info = info
        self.error = error
        self.lookups = []

    async def fetch_drug_info(self, drug_name):
        self.lookups.append(drug_name)
        if self.error:
            raise self.error
        return self.info


def make_request(drug_name="Metformin", age=45, conditions=""):
    return PredictionRequest(
        age=age, gender="female", height_cm=165, weight_kg=60,
        drug_name=drug_name, chronic_conditions=conditions
    )


def blank_result(drug_name="Metformin", explanation=""):
    return PredictionResult(
        prediction="Effective", confidence=0.9, source=SourceBackend.ENHANCED,
        drug_name=drug_name, explanation=explanation
    )


class TestExplanationSynthesizer:
    """Test the explanation fallback chain"""

    @pytest.mark.asyncio
    async def test_backend_explanation_is_kept(self):
        aggregator = StubAggregator()
        synthesizer = ExplanationSynthesizer(aggregator)

        text = await synthesizer.explain(
            "Metformin", blank_result(explanation="Backend rationale."), make_request(age=80)
        )

        assert text == "Backend rationale."
        assert aggregator.lookups == []

    @pytest.mark.asyncio
    async def test_fda_label_preferred(self):
        info = DrugInfo(
            drug_name="metformin",
            sources=("RxNorm", "FDA"),
            rxnorm=RxNormData(concepts=({"rxcui": "6809"},), total_concepts=1),
            fda=FdaData(
                generic_name=("METFORMIN HYDROCHLORIDE",),
                indications=("type 2 diabetes mellitus",),
                warnings=("Lactic acidosis",),
                contraindications=("Severe renal impairment",),
                dosage=("500 mg twice daily",),
            ),
        )
        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )

        assert text.startswith("Metformin (METFORMIN HYDROCHLORIDE) is a medication used for type 2 diabetes mellitus.")
        assert "Dosage information: 500 mg twice daily" in text
        assert "Lactic acidosis" in text
        assert "Severe renal impairment" not in text

    @pytest.mark.asyncio
    async def test_fda_contraindications_when_no_warnings(self):
        info = DrugInfo(
            drug_name="x", sources=("FDA",),
            fda=FdaData(contraindications=("Severe renal impairment",)),
        )
        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert "therapeutic treatment" in text
        assert "Severe renal impairment" in text

    @pytest.mark.asyncio
    async def test_rxnorm_only(self):
        info = DrugInfo(
            drug_name="x", sources=("RxNorm",),
            rxnorm=RxNormData(concepts=({"rxcui": "6809"}, {"rxcui": "860975"}), total_concepts=2),
        )
        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert "RxCUI: 6809" in text
        assert "2 related concepts" in text

    @pytest.mark.asyncio
    async def test_pubchem_only(self):
        info = DrugInfo(
            drug_name="x", sources=("PubChem",),
            pubchem=PubChemData(molecular_formula="C4H11N5", molecular_weight="129.16",
                                isomeric_smiles="CN(C)C(=N)N=C(N)N"),
        )
        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert "Molecular Formula: C4H11N5" in text
        assert "Molecular Weight: 129.16" in text
        assert "CN(C)C(=N)N=C(N)N" in text

    @pytest.mark.asyncio
    async def test_backend_drugbank_block(self):
        info = DrugInfo.from_backend("metformin", {
            "sources": ["DrugBank"],
            "drugbank": {"indication": "type 2 diabetes", "mechanism_of_action": "Decreases hepatic glucose output."},
        })
        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert "Metformin is a medication used for type 2 diabetes." in text
        assert "Decreases hepatic glucose output." in text

    @pytest.mark.asyncio
    async def test_drugbank_text_fields(self):
        info = DrugInfo.from_backend("metformin", {
            "drugbank": {
                "indication": ["type 2 diabetes", "prediabetes"],
                "pharmacodynamics": ["Lowers glucose.", "Improves insulin sensitivity."],
                "warnings": "Take with food",
            },
        })
        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert "used for type 2 diabetes, prediabetes." in text
        assert "Lowers glucose. Improves insulin sensitivity." in text
        assert text.endswith("Take with food")

    @pytest.mark.asyncio
    async def test_backend_rxnorm_without_usable_concepts(self):
        info = DrugInfo.from_backend("metformin", {"rxnorm": {"concepts": ["123"]}})
        assert info.rxnorm is None

        text = await ExplanationSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert text.startswith(MEDICINE_KNOWLEDGE["metformin"]["uses"])

    @pytest.mark.asyncio
    async def test_broken_source_record_degrades_to_knowledge(self):
        # A hand-built record that bypasses from_dict filtering
        info = DrugInfo(
            drug_name="x", sources=("PubChem",),
            pubchem=PubChemData(molecular_formula="C4H11N5"),
        )

        class BrokenSynthesizer(ExplanationSynthesizer):
            @staticmethod
            def _from_pubchem(drug_name, drug_info):
                raise AttributeError("'str' object has no attribute 'get'")

        text = await BrokenSynthesizer(StubAggregator(info)).explain(
            "Metformin", blank_result(), make_request()
        )
        assert text.startswith(MEDICINE_KNOWLEDGE["metformin"]["uses"])

    def test_rxcui_skips_non_dict_concepts(self):
        rxnorm = RxNormData(concepts=("123", {"name": "x"}, {"rxcui": 6809}), total_concepts=3)
        assert rxnorm.rxcui == "6809"
        assert RxNormData(concepts=("123",), total_concepts=1).rxcui is None

    @pytest.mark.asyncio
    async def test_static_knowledge_fallback(self):
        text = await ExplanationSynthesizer(StubAggregator()).explain(
            "Metformin", blank_result(), make_request()
        )
        assert text.startswith(MEDICINE_KNOWLEDGE["metformin"]["uses"])

    @pytest.mark.asyncio
    async def test_lookup_failure_degrades_to_knowledge(self):
        aggregator = StubAggregator(error=RuntimeError("boom"))
        text = await ExplanationSynthesizer(aggregator).explain(
            "Lisinopril", blank_result("Lisinopril"), make_request("Lisinopril")
        )
        assert "ACE inhibitor" in text

    @pytest.mark.asyncio
    async def test_category_fallback_for_unknown_drug(self):
        text = await ExplanationSynthesizer(StubAggregator()).explain(
            "Pantoprazole", blank_result("Pantoprazole"), make_request("Pantoprazole")
        )
        assert "Pantoprazole is a Proton Pump Inhibitor medication" in text
        assert "acid production" in text

    @pytest.mark.asyncio
    async def test_generic_fallback_for_unclassified_drug(self):
        text = await ExplanationSynthesizer(StubAggregator()).explain(
            "Xyzzol", blank_result("Xyzzol"), make_request("Xyzzol")
        )
        assert "Xyzzol is a Medication medication" in text
        assert "Follow your doctor's instructions" in text

    @pytest.mark.asyncio
    async def test_knowledge_table_is_substitutable(self):
        table = MappingProxyType({
            "placebo": MappingProxyType({"uses": "U.", "effects": "E.", "precautions": "P."})
        })
        synthesizer = ExplanationSynthesizer(StubAggregator(), medicine_knowledge=table)

        text = await synthesizer.explain("Placebo", blank_result("Placebo"), make_request("Placebo"))

        assert text == "U. E. P."

    @pytest.mark.asyncio
    async def test_caveats_appended(self):
        text = await ExplanationSynthesizer(StubAggregator()).explain(
            "Ibuprofen", blank_result("Ibuprofen"), make_request("Ibuprofen", age=70, conditions="Diabetes")
        )
        assert "lower dose and monitor you more closely" in text
        assert "blood sugar levels" in text


class TestCaveats:
    """Test age and condition caveats"""

    def test_age_caveats(self):
        assert "lower dose" in age_caveat(66)
        assert age_caveat(65) == ""
        assert "Pediatric" in age_caveat(17)
        assert age_caveat(18) == ""

    def test_first_line_drug_skips_condition(self):
        assert condition_caveat("Metformin", "Diabetes") == ""
        assert condition_caveat("Insulin glargine", "type 2 diabetes") == ""

    def test_condition_for_other_drug(self):
        assert "blood sugar" in condition_caveat("Ibuprofen", "Diabetes")
        assert "blood pressure" in condition_caveat("Ibuprofen", "Hypertension")
        assert "heart condition" in condition_caveat("Ibuprofen", "heart disease")
        assert "kidney function" in condition_caveat("Ibuprofen", "chronic renal failure")
        assert "liver function" in condition_caveat("Ibuprofen", "Hepatic impairment")

    def test_excluded_condition_falls_through(self):
        caveat = condition_caveat("Metformin", "Diabetes, kidney disease")
        assert "kidney function" in caveat

    def test_no_conditions(self):
        assert condition_caveat("Ibuprofen", "") == ""


class TestExplanationSections:
    """Test lossy section extraction"""

    TEXT = (
        "**How it helps:** Lowers blood sugar in type 2 diabetes patients. "
        "**How it works:** Reduces hepatic glucose production and improves insulin sensitivity. "
        "**Chemical Formula:** C4H11N5 "
        "**Safety Assessment:** Generally safe with regular kidney monitoring. "
        "**Recommendation:** Take with meals to reduce stomach upset."
    )

    def test_all_sections(self):
        sections = parse_explanation_sections(self.TEXT)

        assert sections.indications == "Lowers blood sugar in type 2 diabetes patients."
        assert sections.mechanism.startswith("Reduces hepatic glucose production")
        assert sections.chemical_formula == "C4H11N5"
        assert sections.safety == "Generally safe with regular kidney monitoring."
        assert sections.recommendation == "Take with meals to reduce stomach upset."

    def test_missing_sections_are_none(self):
        sections = parse_explanation_sections("Mechanism of Action: Blocks COX enzymes in tissue.")

        assert sections.mechanism == "Blocks COX enzymes in tissue."
        assert sections.indications is None
        assert sections.chemical_formula is None
        assert sections.safety is None
        assert sections.recommendation is None

    def test_short_sections_are_dropped(self):
        sections = parse_explanation_sections("**Recommendation:** Ok.")
        assert sections.recommendation is None

    @pytest.mark.parametrize("text", ["", None, "no headers here", "**::**"])
    def test_never_raises(self, text):
        parse_explanation_sections(text)

    def test_format_explanation(self):
        text = format_explanation(self.TEXT, "Metformin")

        assert text.startswith("Metformin: Antidiabetic commonly prescribed for Type 2 Diabetes.")
        assert "How it works: Reduces hepatic glucose production" in text
        assert "Chemical Formula: C4H11N5" in text
        assert "Safety: Generally safe" in text

    def test_format_truncates_long_indications(self):
        text = format_explanation("Indications: " + "x" * 300, "Aspirin")
        assert "Used to treat: " + "x" * 200 + "..." in text

    def test_format_empty(self):
        assert format_explanation("", "Aspirin") == "No explanation available."


class TestSummaries:
    """Test label-specific summaries and category classification"""

    def test_effective_summary(self):
        result = PredictionResult(
            prediction="Effective", confidence=0.9, source=SourceBackend.STANDARD,
            drug_name="Atorvastatin", response_time_ms=120
        )
        summary = summarize_prediction(result)
        assert "effective response with 90% confidence" in summary
        assert "Statin" in summary
        assert "120ms" in summary

    def test_risky_summary(self):
        result = PredictionResult(
            prediction="Risky/Adverse", confidence=0.6, source=SourceBackend.STANDARD
        )
        assert "potential risks or adverse effects with 60% confidence" in summarize_prediction(result)

    @pytest.mark.parametrize("name,category", [
        ("Lisinopril", "ACE Inhibitor"),
        ("Metoprolol", "Beta-blocker"),
        ("Rosuvastatin", "Statin"),
        ("Esomeprazole", "Proton Pump Inhibitor"),
        ("Amoxicillin", "Antibiotic"),
        ("Salbutamol", "Bronchodilator"),
        ("Paracetamol", "Analgesic/Antipyretic"),
        ("Unknownium", "Medication"),
    ])
    def test_categories(self, name, category):
        assert DrugCategoryClassifier.get_category(name) == category
