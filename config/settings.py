"""
Drug Response Prediction Engine - Configuration Settings
"""
import os
from pathlib import Path

# Base paths
BASE_DIR = Path(__file__).parent.parent

# API Settings
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "8000"))
API_TITLE = "Drug Response Prediction Engine"
API_VERSION = "1.0.0"

# Upstream prediction backend
PREDICTION_API_URL = os.getenv("PREDICTION_API_URL", "http://localhost:5000")

# External reference sources
PUBCHEM_AUTOCOMPLETE_URL = os.getenv(
    "PUBCHEM_AUTOCOMPLETE_URL",
    "https://pubchem.ncbi.nlm.nih.gov/rest/autocomplete/Compound/query"
)
PUBCHEM_PUG_URL = os.getenv("PUBCHEM_PUG_URL", "https://pubchem.ncbi.nlm.nih.gov/rest/pug")
RXNAV_URL = os.getenv("RXNAV_URL", "https://rxnav.nlm.nih.gov/REST")
OPENFDA_URL = os.getenv("OPENFDA_URL", "https://api.fda.gov")

# Timeouts (seconds)
VALIDATION_TIMEOUT_SECONDS = float(os.getenv("VALIDATION_TIMEOUT_SECONDS", "5"))
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "5"))
HEALTH_CHECK_TIMEOUT_SECONDS = float(os.getenv("HEALTH_CHECK_TIMEOUT_SECONDS", "3"))

# Autocomplete
AUTOCOMPLETE_MIN_CHARS = 3
AUTOCOMPLETE_LIMIT = 10

# Normalization defaults
DEFAULT_CONFIDENCE = 0.85
DEFAULT_PREDICTION_LABEL = "Responsive"
DEFAULT_BMI = 25.0

# BMI -> daily dose bands (upper bound exclusive, dose)
DOSAGE_BANDS = [
    (18.5, "100mg daily"),
    (25.0, "150mg daily"),
    (30.0, "200mg daily"),
    (float("inf"), "250mg daily"),
]

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Feature Flags
ENABLE_DRUG_NAME_VALIDATION = os.getenv("ENABLE_DRUG_NAME_VALIDATION", "true").lower() == "true"
ENABLE_EXPLANATION_SYNTHESIS = True
