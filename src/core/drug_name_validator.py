"""
Drug Response Prediction Engine - Drug Name Validator
Confirms a drug name exists in the PubChem compound vocabulary before submission
"""
import asyncio
import logging
from typing import List, Optional

from config.settings import (
    VALIDATION_TIMEOUT_SECONDS, AUTOCOMPLETE_MIN_CHARS, AUTOCOMPLETE_LIMIT
)
from src.core.clients import UpstreamClients
from src.core.exceptions import UpstreamError
from src.core.models import NameValidation, ValidationState

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

REASON_REQUIRED = "name required"
REASON_NOT_FOUND = "not found"
REASON_UNAVAILABLE = "service unavailable"
REASON_SUPERSEDED = "superseded"


def _name_required() -> NameValidation:
    return NameValidation(
        state=ValidationState.INVALID,
        reason=REASON_REQUIRED,
        message="Medicine name is required"
    )


class DrugNameValidator:
    """
    Validates drug names against the compound vocabulary.

    Each validate() call is tagged with a sequence number. Issuing a new call
    cancels the previous in-flight lookup, and only the result carrying the
    latest sequence number may change `state`.
    """

    def __init__(self, clients: UpstreamClients, timeout: float = None):
        self.clients = clients
        self.timeout = timeout or VALIDATION_TIMEOUT_SECONDS
        self.state = ValidationState.IDLE
        self.last_result: Optional[NameValidation] = None
        self._sequence = 0
        self._inflight: Optional[asyncio.Task] = None

    def reset(self):
        """Drug-name input changed: drop any in-flight lookup and go idle"""
        self._sequence += 1
        self._cancel_inflight()
        self.state = ValidationState.IDLE
        self.last_result = None

    async def validate(self, name: str) -> NameValidation:
        self._sequence += 1
        sequence = self._sequence
        self._cancel_inflight()

        drug_name = (name or "").strip()
        if not drug_name:
            result = _name_required()
            self._apply(sequence, result)
            return result

        self.state = ValidationState.CHECKING
        task = asyncio.ensure_future(self._lookup(drug_name))
        self._inflight = task

        try:
            result = await task
        except asyncio.CancelledError:
            if not task.cancelled() or sequence == self._sequence:
                raise
            logger.info(f"Validation of '{drug_name}' superseded by a newer request")
            return self._superseded()
        finally:
            if self._inflight is task:
                self._inflight = None

        if not self._apply(sequence, result):
            return self._superseded()
        return result

    async def lookup(self, name: str) -> NameValidation:
        """
        One-shot validation for independent callers.

        Does not take a sequence number, cancel other lookups or touch `state`,
        so concurrent callers sharing this validator cannot supersede each other.
        """
        drug_name = (name or "").strip()
        if not drug_name:
            return _name_required()
        return await self._lookup(drug_name)

    async def suggest(self, term: str) -> List[str]:
        """Autocomplete suggestions; callers debounce input before calling"""
        term = (term or "").strip()
        if len(term) < AUTOCOMPLETE_MIN_CHARS:
            return []

        try:
            suggestions = await self.clients.autocomplete(term)
        except UpstreamError as e:
            logger.warning(f"Autocomplete failed for '{term}': {e}")
            return []

        return suggestions[:AUTOCOMPLETE_LIMIT]

    async def _lookup(self, drug_name: str) -> NameValidation:
        try:
            suggestions = await asyncio.wait_for(
                self.clients.autocomplete(drug_name, limit=1, timeout=self.timeout),
                timeout=self.timeout
            )
        except (UpstreamError, asyncio.TimeoutError) as e:
            logger.warning(f"Drug name validation unavailable: {e}")
            return NameValidation(
                state=ValidationState.INVALID,
                reason=REASON_UNAVAILABLE,
                message=(
                    "Unable to validate medicine name right now. "
                    "Please check the spelling or try again later."
                )
            )

        target = drug_name.lower()
        if any(s.lower() == target for s in suggestions):
            return NameValidation(state=ValidationState.VALID)

        return NameValidation(
            state=ValidationState.INVALID,
            reason=REASON_NOT_FOUND,
            message=(
                f'Medicine Not Found: The term "{drug_name}" is not recognized '
                f"in primary medical databases. Please check spelling."
            )
        )

    def _apply(self, sequence: int, result: NameValidation) -> bool:
        if sequence != self._sequence:
            return False
        self.state = result.state
        self.last_result = result
        return True

    def _cancel_inflight(self):
        if self._inflight is not None and not self._inflight.done():
            self._inflight.cancel()
        self._inflight = None

    def _superseded(self) -> NameValidation:
        return NameValidation(
            state=self.state,
            reason=REASON_SUPERSEDED,
            message="Validation superseded by a newer request"
        )
