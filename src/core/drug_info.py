"""
Drug Response Prediction Engine - Drug Info Aggregator
Merges drug reference data under a fixed source priority
"""
import asyncio
import logging
from typing import Iterable, Optional, Union

from src.core.clients import UpstreamClients
from src.core.exceptions import UpstreamError
from src.core.models import (
    DrugInfo, RxNormData, FdaData, PubChemData, SourceRecord, SOURCE_NAMES
)

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def merge_drug_info(
    drug_name: str,
    results: Iterable[Union[SourceRecord, BaseException, None]]
) -> Optional[DrugInfo]:
    """
    Merge per-source lookup results into one DrugInfo.

    Failed lookups (exceptions) and empty lookups (None) are skipped.
    `sources` lists the contributing sources in the order given.
    Returns None when no source contributed.
    """
    sources = []
    records = {}

    for result in results:
        if result is None or isinstance(result, BaseException):
            continue
        source_name = SOURCE_NAMES.get(type(result))
        if source_name is None:
            logger.warning(f"Ignoring unknown drug-info record: {type(result).__name__}")
            continue
        sources.append(source_name)
        records[type(result)] = result

    if not sources:
        return None

    return DrugInfo(
        drug_name=drug_name,
        sources=tuple(sources),
        rxnorm=records.get(RxNormData),
        fda=records.get(FdaData),
        pubchem=records.get(PubChemData),
    )


class DrugInfoAggregator:
    """
    Fetches drug information for explanation enrichment.

    Priority:
    1. Internal backend drug-info endpoint (answer used as-is)
    2. RxNorm, openFDA and PubChem queried concurrently, best effort

    Enrichment is advisory: this never raises, it degrades to None.
    """

    def __init__(self, clients: UpstreamClients):
        self.clients = clients

    async def fetch_drug_info(self, drug_name: str) -> Optional[DrugInfo]:
        try:
            data = await self.clients.fetch_backend_drug_info(drug_name)
            logger.info(f"Drug info for {drug_name} served by backend")
            return DrugInfo.from_backend(drug_name, data)
        except UpstreamError as e:
            logger.info(f"Backend drug info not available: {e}")

        return await self.fetch_external_sources(drug_name)

    async def fetch_external_sources(self, drug_name: str) -> Optional[DrugInfo]:
        lookups = [
            self.clients.fetch_rxnorm(drug_name),
            self.clients.fetch_fda_label(drug_name),
            self.clients.fetch_pubchem_properties(drug_name),
        ]
        results = await asyncio.gather(*lookups, return_exceptions=True)

        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(f"Drug info source failed for {drug_name}: {result}")

        info = merge_drug_info(drug_name, results)
        if info is None:
            logger.warning(f"No drug info source produced data for {drug_name}")
        else:
            logger.info(f"Drug info for {drug_name} from: {', '.join(info.sources)}")
        return info
