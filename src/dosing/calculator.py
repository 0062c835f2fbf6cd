"""
Drug Response Prediction Engine - Dosing Calculator
BMI computation and BMI-banded dosage heuristic
"""
import logging
from typing import Optional

from config.settings import DOSAGE_BANDS, DEFAULT_BMI

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


class BMICalculator:
    """Calculate BMI and the placeholder daily dose derived from it"""

    @staticmethod
    def compute_bmi(
        weight_kg: Optional[float],
        height_cm: Optional[float]
    ) -> Optional[float]:
        """
        Calculate Body Mass Index.

        Args:
            weight_kg: Patient weight in kg
            height_cm: Patient height in cm

        Returns:
            BMI rounded to one decimal, or None if either input is missing or <= 0
        """
        if not weight_kg or not height_cm or weight_kg <= 0 or height_cm <= 0:
            return None

        height_m = height_cm / 100
        return round(weight_kg / (height_m * height_m), 1)

    @staticmethod
    def compute_dosage(bmi: float) -> str:
        """
        Map BMI to a daily dose band.

        This is a deterministic placeholder, not a clinical algorithm.
        Band boundaries (18.5, 25, 30) resolve to the higher band.
        """
        for upper_bound, dose in DOSAGE_BANDS:
            if bmi < upper_bound:
                return dose
        return DOSAGE_BANDS[-1][1]

    @classmethod
    def dosage_for(
        cls,
        weight_kg: Optional[float],
        height_cm: Optional[float],
        bmi: Optional[float] = None
    ) -> str:
        """Dose from a supplied BMI, else computed BMI, else the default BMI"""
        if bmi is None:
            bmi = cls.compute_bmi(weight_kg, height_cm)
        if bmi is None:
            logger.info(f"BMI unavailable, using default BMI {DEFAULT_BMI}")
            bmi = DEFAULT_BMI
        return cls.compute_dosage(bmi)


compute_bmi = BMICalculator.compute_bmi
compute_dosage = BMICalculator.compute_dosage
