"""
Drug Response Prediction Engine - Genetic Marker Mapper
Converts genotype/phenotype payloads into GeneticMarker records
"""
import logging
from typing import Any, Dict, List

from src.core.models import GeneticMarker

logger = logging.getLogger(__name__)


# Ordered: first matching phenotype token wins
SIGNIFICANCE_RULES = [
    ("Poor", "High – Requires dose adjustment"),
    ("Intermediate", "Moderate – Monitor closely"),
    ("Rapid", "Moderate – May need higher doses"),
]
NORMAL_SIGNIFICANCE = "Normal – Standard dosing appropriate"


def clinical_significance(phenotype: str) -> str:
    """Clinical significance label for a metabolizer phenotype"""
    for token, label in SIGNIFICANCE_RULES:
        if token in (phenotype or ""):
            return label
    return NORMAL_SIGNIFICANCE


class GeneticMarkerMapper:
    """Map the enhanced backend's genetic_markers object to GeneticMarker records"""

    def map_markers(self, genetic_markers: Dict[str, Any]) -> List[GeneticMarker]:
        markers = []

        # Payload order is preserved
        for gene, data in (genetic_markers or {}).items():
            if not isinstance(data, dict):
                logger.warning(f"Skipping malformed marker entry for {gene}")
                continue

            phenotype = data.get("phenotype") or "Unknown"
            activity_score = data.get("activity_score")
            try:
                activity_score = 1.0 if activity_score is None else float(activity_score)
            except (TypeError, ValueError):
                activity_score = 1.0

            markers.append(GeneticMarker(
                gene=gene,
                genotype=data.get("genotype") or "Unknown",
                phenotype=phenotype,
                activity_score=activity_score,
                drugs_affected=tuple(data.get("drugs_affected") or []),
                clinical_significance=clinical_significance(phenotype),
            ))

        return markers
