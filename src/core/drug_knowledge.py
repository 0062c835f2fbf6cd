"""
Drug Response Prediction Engine - Static Drug Knowledge
Built-in per-drug and per-category descriptions used when no
real-time drug information is available
"""
from types import MappingProxyType
from typing import Mapping


def _entry(uses: str, effects: str, precautions: str) -> Mapping[str, str]:
    return MappingProxyType({"uses": uses, "effects": effects, "precautions": precautions})


MEDICINE_KNOWLEDGE = MappingProxyType({
    # Cardiovascular
    "lisinopril": _entry(
        "Lisinopril is an ACE inhibitor used to treat high blood pressure and heart failure.",
        "It helps lower blood pressure by relaxing blood vessels, reducing the workload on your heart and improving blood flow.",
        "Monitor for dizziness, dry cough, and elevated potassium levels. Avoid pregnancy and consult your doctor if you experience swelling.",
    ),
    "enalapril": _entry(
        "Enalapril is an ACE inhibitor used to treat high blood pressure and heart failure.",
        "It works by blocking the conversion of angiotensin I to angiotensin II, relaxing blood vessels and reducing blood pressure.",
        "Monitor for dry cough, dizziness, and elevated potassium levels. Avoid during pregnancy.",
    ),
    "losartan": _entry(
        "Losartan is an ARB (Angiotensin Receptor Blocker) used to treat high blood pressure and heart failure.",
        "It blocks angiotensin II receptors, relaxing blood vessels and reducing blood pressure without causing dry cough.",
        "Monitor for dizziness and elevated potassium levels. Avoid during pregnancy.",
    ),
    "metoprolol": _entry(
        "Metoprolol is a beta-blocker used to treat high blood pressure, heart rhythm disorders, and heart failure.",
        "It slows heart rate and reduces blood pressure by blocking beta-adrenergic receptors.",
        "Do not stop suddenly. Monitor for fatigue, cold hands/feet, and breathing problems in asthma patients.",
    ),
    "amlodipine": _entry(
        "Amlodipine is a calcium channel blocker used to treat high blood pressure and chest pain (angina).",
        "It relaxes blood vessels by blocking calcium channels, improving blood flow and reducing blood pressure.",
        "Monitor for swelling in ankles/feet, dizziness, and flushing. May cause gum overgrowth.",
    ),
    "warfarin": _entry(
        "Warfarin is an anticoagulant (blood thinner) used to prevent blood clots.",
        "It blocks vitamin K-dependent clotting factors, reducing the risk of stroke and blood clots.",
        "Requires regular blood tests (INR). Avoid alcohol and certain foods. Watch for bleeding signs.",
    ),
    # Diabetes
    "metformin": _entry(
        "Metformin is an antidiabetic medication used to control blood sugar levels in type 2 diabetes.",
        "It helps lower blood glucose by reducing glucose production in the liver and improving insulin sensitivity.",
        "Take with food to reduce stomach upset. Monitor for signs of lactic acidosis and kidney function regularly.",
    ),
    "insulin": _entry(
        "Insulin is a hormone used to control blood sugar levels in diabetes.",
        "It helps glucose enter cells for energy, lowering blood sugar levels.",
        "Monitor blood sugar regularly. Watch for signs of low blood sugar (hypoglycemia).",
    ),
    "glipizide": _entry(
        "Glipizide is a sulfonylurea used to treat type 2 diabetes.",
        "It stimulates the pancreas to release more insulin, helping lower blood sugar.",
        "Take 30 minutes before meals. Monitor for low blood sugar and weight gain.",
    ),
    # Pain relief
    "ibuprofen": _entry(
        "Ibuprofen is a nonsteroidal anti-inflammatory drug (NSAID) used to reduce pain, fever, and inflammation.",
        "It works by blocking enzymes that produce prostaglandins, substances that cause pain and inflammation.",
        "Take with food to prevent stomach irritation. Avoid long-term use and monitor for gastrointestinal bleeding or kidney problems.",
    ),
    "paracetamol": _entry(
        "Paracetamol (Acetaminophen) is an analgesic and antipyretic used for pain relief and fever reduction.",
        "It reduces pain and fever by affecting pain receptors and the brain's temperature control center.",
        "Do not exceed recommended dose to prevent liver damage. Avoid alcohol consumption while taking this medication.",
    ),
    "aspirin": _entry(
        "Aspirin is an NSAID and antiplatelet medication used for pain relief and cardiovascular protection.",
        "It reduces pain and inflammation while preventing blood clots by blocking platelet aggregation.",
        "Take with food. Avoid in children with viral infections. Monitor for stomach irritation and bleeding.",
    ),
    "tramadol": _entry(
        "Tramadol is an opioid analgesic used for moderate to severe pain management.",
        "It works by binding to opioid receptors and inhibiting serotonin and norepinephrine reuptake.",
        "Risk of addiction and dependence. Avoid alcohol. Monitor for respiratory depression and seizures.",
    ),
    # Cholesterol
    "atorvastatin": _entry(
        "Atorvastatin is a statin medication used to lower cholesterol and reduce cardiovascular risk.",
        "It works by blocking cholesterol production in the liver, helping to prevent heart disease and stroke.",
        "Monitor liver function and watch for muscle pain or weakness. Avoid grapefruit juice which can increase drug levels.",
    ),
    "simvastatin": _entry(
        "Simvastatin is a statin medication used to lower cholesterol and reduce cardiovascular risk.",
        "It inhibits HMG-CoA reductase, reducing cholesterol production in the liver.",
        "Take in the evening. Monitor liver function and muscle symptoms. Avoid grapefruit juice.",
    ),
    "rosuvastatin": _entry(
        "Rosuvastatin is a statin medication used to lower cholesterol and reduce cardiovascular risk.",
        "It is a potent statin that effectively reduces LDL cholesterol and triglycerides.",
        "Monitor liver function and muscle symptoms. May cause protein in urine at high doses.",
    ),
    # Gastrointestinal
    "omeprazole": _entry(
        "Omeprazole is a proton pump inhibitor used to treat acid reflux and stomach ulcers.",
        "It blocks the final step of acid production in the stomach, providing long-lasting acid suppression.",
        "Take before meals. Long-term use may increase risk of bone fractures and vitamin B12 deficiency.",
    ),
    "lansoprazole": _entry(
        "Lansoprazole is a proton pump inhibitor used to treat acid reflux and stomach ulcers.",
        "It reduces stomach acid production by blocking the proton pump in stomach cells.",
        "Take before meals. Monitor for vitamin B12 deficiency with long-term use.",
    ),
    # Antibiotics
    "amoxicillin": _entry(
        "Amoxicillin is a penicillin antibiotic used to treat bacterial infections.",
        "It kills bacteria by interfering with their cell wall synthesis.",
        "Complete the full course even if feeling better. Watch for allergic reactions and diarrhea.",
    ),
    "azithromycin": _entry(
        "Azithromycin is a macrolide antibiotic used to treat bacterial infections.",
        "It stops bacterial growth by interfering with protein synthesis.",
        "Take as directed. May cause stomach upset. Avoid if allergic to macrolides.",
    ),
    # Mental health
    "sertraline": _entry(
        "Sertraline is an SSRI antidepressant used to treat depression and anxiety disorders.",
        "It increases serotonin levels in the brain, improving mood and reducing anxiety.",
        "May take 4-6 weeks to work. Monitor for suicidal thoughts, especially in young adults.",
    ),
    "fluoxetine": _entry(
        "Fluoxetine is an SSRI antidepressant used to treat depression, anxiety, and OCD.",
        "It blocks serotonin reuptake, increasing serotonin levels in the brain.",
        "Long half-life means effects persist after stopping. Monitor for mood changes.",
    ),
    # Respiratory
    "albuterol": _entry(
        "Albuterol is a bronchodilator used to treat asthma and COPD.",
        "It relaxes airway muscles, making breathing easier during asthma attacks.",
        "Use as needed for symptoms. Overuse may cause tremors and increased heart rate.",
    ),
    "prednisone": _entry(
        "Prednisone is a corticosteroid used to reduce inflammation and suppress the immune system.",
        "It mimics cortisol, reducing inflammation and immune system activity.",
        "Do not stop suddenly. Monitor for mood changes, weight gain, and increased infection risk.",
    ),
    # Thyroid
    "levothyroxine": _entry(
        "Levothyroxine is a thyroid hormone replacement used to treat hypothyroidism.",
        "It replaces missing thyroid hormone, restoring normal metabolism and energy levels.",
        "Take on empty stomach. Monitor thyroid function regularly. Avoid certain foods and medications.",
    ),
})


CATEGORY_KNOWLEDGE = MappingProxyType({
    "Analgesic/Antipyretic": MappingProxyType({
        "effects": "It works by blocking pain signals and reducing fever by affecting the brain's temperature control center.",
        "precautions": "Do not exceed recommended dose. Monitor for liver damage with high doses or alcohol use.",
    }),
    "NSAID": MappingProxyType({
        "effects": "It reduces pain and inflammation by blocking enzymes that produce prostaglandins.",
        "precautions": "Take with food to prevent stomach irritation. Monitor for gastrointestinal bleeding and kidney function.",
    }),
    "ACE Inhibitor": MappingProxyType({
        "effects": "It relaxes blood vessels by blocking the conversion of angiotensin I to angiotensin II.",
        "precautions": "Monitor for dry cough, dizziness, and elevated potassium levels. Avoid during pregnancy.",
    }),
    "Beta-blocker": MappingProxyType({
        "effects": "It slows heart rate and reduces blood pressure by blocking beta-adrenergic receptors.",
        "precautions": "Do not stop suddenly. Monitor for fatigue and breathing problems in asthma patients.",
    }),
    "Statin": MappingProxyType({
        "effects": "It reduces cholesterol production in the liver by blocking HMG-CoA reductase enzyme.",
        "precautions": "Monitor liver function and muscle symptoms. Avoid grapefruit juice which can increase drug levels.",
    }),
    "Antidiabetic": MappingProxyType({
        "effects": "It helps control blood sugar levels through various mechanisms depending on the specific medication.",
        "precautions": "Monitor blood sugar regularly. Watch for signs of low blood sugar (hypoglycemia).",
    }),
    "Proton Pump Inhibitor": MappingProxyType({
        "effects": "It blocks the final step of acid production in the stomach, providing long-lasting acid suppression.",
        "precautions": "Take before meals. Long-term use may increase risk of bone fractures and vitamin B12 deficiency.",
    }),
    "Antibiotic": MappingProxyType({
        "effects": "It kills or stops the growth of bacteria by interfering with essential bacterial processes.",
        "precautions": "Complete the full course even if feeling better. Watch for allergic reactions and side effects.",
    }),
    "SSRI Antidepressant": MappingProxyType({
        "effects": "It increases serotonin levels in the brain by blocking serotonin reuptake.",
        "precautions": "May take 4-6 weeks to work. Monitor for mood changes and suicidal thoughts, especially in young adults.",
    }),
    "Bronchodilator": MappingProxyType({
        "effects": "It relaxes airway muscles, making breathing easier by opening up the airways.",
        "precautions": "Use as needed for symptoms. Overuse may cause tremors and increased heart rate.",
    }),
    "Corticosteroid": MappingProxyType({
        "effects": "It reduces inflammation and suppresses the immune system by mimicking natural cortisol.",
        "precautions": "Do not stop suddenly. Monitor for mood changes, weight gain, and increased infection risk.",
    }),
})

GENERIC_CATEGORY = MappingProxyType({
    "effects": "This medication works by targeting specific pathways in your body to provide therapeutic benefits.",
    "precautions": "Follow your doctor's instructions carefully and report any unusual side effects or concerns.",
})

DEFAULT_CATEGORY = "Medication"
DEFAULT_USES = "its prescribed indication"


class DrugCategoryClassifier:
    """Map drug names to a coarse category label"""

    # Name fragments per category; first category with a matching fragment wins
    CATEGORY_MARKERS = {
        "ACE Inhibitor": ["pril"],
        "Beta-blocker": ["olol", "ilol", "alol"],
        "Statin": ["statin"],
        "Proton Pump Inhibitor": ["prazole"],
        "SSRI Antidepressant": [
            "fluoxetine", "sertraline", "paroxetine", "citalopram", "fluvoxamine"
        ],
        "Antidiabetic": [
            "metformin", "insulin", "gliptin", "glipizide", "glyburide",
            "glimepiride", "gliclazide", "glitazone", "gliflozin"
        ],
        "NSAID": [
            "ibuprofen", "diclofenac", "naproxen", "indomethacin", "piroxicam",
            "meloxicam", "celecoxib", "ketoprofen", "aspirin", "ketorolac"
        ],
        "Analgesic/Antipyretic": ["paracetamol", "acetaminophen"],
        "Antibiotic": ["cillin", "mycin", "floxacin", "cycline", "cef", "penem"],
        "Bronchodilator": ["terol", "albuterol", "salbutamol", "tiotropium", "theophylline"],
        "Corticosteroid": ["sone", "solone", "cort", "betamethasone"],
    }

    @classmethod
    def get_category(cls, drug_name: str) -> str:
        drug_lower = (drug_name or "").lower()
        for category, markers in cls.CATEGORY_MARKERS.items():
            if any(marker in drug_lower for marker in markers):
                return category
        return DEFAULT_CATEGORY
