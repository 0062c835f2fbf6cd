"""
Drug Response Prediction Engine - Exceptions
"""
from typing import List, Tuple


class PredictionEngineError(Exception):
    """Base class for errors surfaced to callers"""


class PredictionPreconditionError(PredictionEngineError):
    """Request failed validation before any network call"""


class MissingDrugNameError(PredictionPreconditionError):
    def __init__(self):
        super().__init__("Medicine name is required")


class MissingGenderError(PredictionPreconditionError):
    def __init__(self):
        super().__init__("Gender is required")


class InvalidGenderError(PredictionPreconditionError):
    def __init__(self, gender):
        self.gender = gender
        super().__init__(f"Gender must be male, female or other (got {gender!r})")


class InvalidHeightError(PredictionPreconditionError):
    def __init__(self):
        super().__init__("Valid height is required")


class InvalidWeightError(PredictionPreconditionError):
    def __init__(self):
        super().__init__("Valid weight is required")


class InvalidAgeError(PredictionPreconditionError):
    def __init__(self):
        super().__init__("Valid age between 1 and 120 is required")


class DrugNameRejectedError(PredictionEngineError):
    """Drug name did not pass vocabulary validation"""

    def __init__(self, validation):
        self.validation = validation
        super().__init__(validation.message or f"Drug name rejected: {validation.reason}")


class AllBackendsFailedError(PredictionEngineError):
    """Every prediction backend attempt failed"""

    def __init__(self, attempts: List[Tuple[str, str]]):
        self.attempts = attempts
        details = "; ".join(f"{backend}: {reason}" for backend, reason in attempts)
        super().__init__(f"All prediction backends failed ({details})")


class UpstreamError(Exception):
    """Upstream call failed (transport, status, or malformed body)"""

    def __init__(self, service: str, reason: str, status_code: int = None):
        self.service = service
        self.reason = reason
        self.status_code = status_code
        super().__init__(f"{service}: {reason}")


class UpstreamTimeoutError(UpstreamError):
    """Upstream call exceeded its timeout"""
