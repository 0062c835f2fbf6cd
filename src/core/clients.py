"""
Drug Response Prediction Engine - Upstream Clients
Thin httpx adapters for the prediction backend and external drug references
"""
import logging
import time
from typing import Dict, List, Optional, Any
from urllib.parse import quote

import httpx

from config.settings import (
    PREDICTION_API_URL, PUBCHEM_AUTOCOMPLETE_URL, PUBCHEM_PUG_URL,
    RXNAV_URL, OPENFDA_URL, HTTP_TIMEOUT_SECONDS,
    VALIDATION_TIMEOUT_SECONDS, HEALTH_CHECK_TIMEOUT_SECONDS
)
from src.core.exceptions import UpstreamError, UpstreamTimeoutError
from src.core.models import RxNormData, FdaData, PubChemData, as_text_tuple

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

PUBCHEM_PROPERTIES = "MolecularFormula,MolecularWeight,CanonicalSMILES,IsomericSMILES"


class UpstreamClients:
    """
    Request/response adapters for every upstream system:
    - Prediction backend (enhanced, standard, drug-info, health)
    - PubChem autocomplete (compound vocabulary)
    - RxNorm, openFDA and PubChem PUG (drug reference data)

    All methods raise UpstreamError on transport failure, non-2xx status
    or a malformed body; callers decide whether that is fatal.
    """

    def __init__(
        self,
        backend_url: str = None,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = None
    ):
        self.backend_url = (backend_url or PREDICTION_API_URL).rstrip("/")
        self.timeout = timeout or HTTP_TIMEOUT_SECONDS
        self.http_client = http_client or httpx.AsyncClient(
            timeout=self.timeout,
            headers={"Accept": "application/json"}
        )
        logger.info(f"Upstream clients initialized (backend: {self.backend_url})")

    async def aclose(self):
        await self.http_client.aclose()

    # ==================== Transport ====================

    async def _request_json(
        self,
        service: str,
        method: str,
        url: str,
        timeout: float = None,
        **kwargs
    ) -> Any:
        try:
            resp = await self.http_client.request(
                method, url, timeout=timeout or self.timeout, **kwargs
            )
        except httpx.TimeoutException as e:
            raise UpstreamTimeoutError(service, f"timed out: {e}") from e
        except httpx.HTTPError as e:
            raise UpstreamError(service, f"transport error: {e}") from e

        if not resp.is_success:
            raise UpstreamError(service, f"HTTP {resp.status_code}", resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise UpstreamError(service, "malformed JSON body", resp.status_code) from e

    async def _request_object(self, service: str, method: str, url: str, **kwargs) -> Dict[str, Any]:
        data = await self._request_json(service, method, url, **kwargs)
        if not isinstance(data, dict):
            raise UpstreamError(service, "response body is not a JSON object")
        return data

    # ==================== Prediction backend ====================

    async def predict_enhanced(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /predict/enhanced"""
        return await self._request_object(
            "enhanced_api", "POST", f"{self.backend_url}/predict/enhanced", json=payload
        )

    async def predict_standard(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST /predict"""
        return await self._request_object(
            "standard_api", "POST", f"{self.backend_url}/predict", json=payload
        )

    async def fetch_backend_drug_info(self, drug_name: str) -> Dict[str, Any]:
        """GET /drug-info/{name}; returns the envelope's data object"""
        envelope = await self._request_object(
            "drug_info_api", "GET",
            f"{self.backend_url}/drug-info/{quote(drug_name, safe='')}"
        )
        data = envelope.get("data")
        if not isinstance(data, dict) or not data:
            raise UpstreamError("drug_info_api", "envelope carries no data")
        return data

    async def check_health(self) -> Dict[str, Any]:
        """Probe the backend root and, when reachable, its system status"""
        start_time = time.perf_counter()
        try:
            root = await self._request_json(
                "backend_health", "GET", f"{self.backend_url}/",
                timeout=HEALTH_CHECK_TIMEOUT_SECONDS
            )
        except UpstreamError as e:
            logger.warning(f"Backend health check failed: {e}")
            return {
                "status": "disconnected",
                "response_time_ms": (time.perf_counter() - start_time) * 1000,
                "system_status": None,
            }

        response_time = (time.perf_counter() - start_time) * 1000
        system_status = None
        try:
            system_status = await self._request_json(
                "backend_status", "GET", f"{self.backend_url}/system-status",
                timeout=HEALTH_CHECK_TIMEOUT_SECONDS
            )
        except UpstreamError as e:
            logger.info(f"System status unavailable: {e}")

        return {
            "status": "connected",
            "response_time_ms": response_time,
            "backend": root,
            "system_status": system_status,
        }

    # ==================== Compound vocabulary ====================

    async def autocomplete(
        self,
        term: str,
        limit: Optional[int] = None,
        timeout: float = None
    ) -> List[str]:
        """PubChem compound autocomplete suggestions for a term"""
        params = {"dict": "compound"}
        if limit is not None:
            params["limit"] = limit

        data = await self._request_object(
            "pubchem_autocomplete", "GET",
            f"{PUBCHEM_AUTOCOMPLETE_URL}/{quote(term, safe='')}/json",
            params=params,
            timeout=timeout or VALIDATION_TIMEOUT_SECONDS
        )
        compounds = (data.get("dictionary_terms") or {}).get("compound") or []
        if not isinstance(compounds, list):
            return []
        return [str(c) for c in compounds]

    # ==================== Drug reference sources ====================

    async def fetch_rxnorm(self, drug_name: str) -> Optional[RxNormData]:
        """RxNorm concept groups for a drug name"""
        data = await self._request_object(
            "rxnorm", "GET", f"{RXNAV_URL}/drugs.json", params={"name": drug_name}
        )
        concepts = []
        for group in (data.get("drugGroup") or {}).get("conceptGroup") or []:
            if not isinstance(group, dict):
                continue
            concepts.extend(
                c for c in group.get("conceptProperties") or [] if isinstance(c, dict)
            )

        if not concepts:
            return None
        return RxNormData(concepts=tuple(concepts), total_concepts=len(concepts))

    async def fetch_fda_label(self, drug_name: str) -> Optional[FdaData]:
        """First openFDA drug label matching the generic name"""
        data = await self._request_object(
            "openfda", "GET", f"{OPENFDA_URL}/drug/label.json",
            params={"search": f'generic_name:"{drug_name}"', "limit": 1}
        )
        results = data.get("results") or []
        if not results:
            return None

        label = results[0]
        openfda = label.get("openfda") or {}
        return FdaData(
            generic_name=as_text_tuple(label.get("generic_name") or openfda.get("generic_name")),
            brand_name=as_text_tuple(label.get("brand_name") or openfda.get("brand_name")),
            indications=as_text_tuple(label.get("indications_and_usage")),
            warnings=as_text_tuple(label.get("warnings")),
            dosage=as_text_tuple(label.get("dosage_and_administration")),
            contraindications=as_text_tuple(label.get("contraindications")),
        )

    async def fetch_pubchem_properties(self, drug_name: str) -> Optional[PubChemData]:
        """Molecular formula, weight and SMILES strings from PubChem"""
        data = await self._request_object(
            "pubchem", "GET",
            f"{PUBCHEM_PUG_URL}/compound/name/{quote(drug_name, safe='')}"
            f"/property/{PUBCHEM_PROPERTIES}/JSON"
        )
        properties = (data.get("PropertyTable") or {}).get("Properties") or []
        if not properties:
            return None

        props = properties[0]
        weight = props.get("MolecularWeight")
        return PubChemData(
            molecular_formula=props.get("MolecularFormula"),
            molecular_weight=str(weight) if weight is not None else None,
            canonical_smiles=props.get("CanonicalSMILES"),
            isomeric_smiles=props.get("IsomericSMILES"),
        )
