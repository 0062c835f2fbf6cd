"""
Shared fixtures: fake upstream services behind httpx.MockTransport
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import inspect

import httpx
import pytest

from config.settings import (
    PUBCHEM_AUTOCOMPLETE_URL, PUBCHEM_PUG_URL, RXNAV_URL, OPENFDA_URL
)
from src.core.clients import UpstreamClients

BACKEND_URL = "http://backend.test"


class FakeUpstream:
    """Routes requests by method and URL prefix; unmatched requests get 404"""

    def __init__(self):
        self.routes = []
        self.calls = []

    def add(self, method, url_prefix, responder, exact=False):
        self.routes.append((method, url_prefix, responder, exact))
        return self

    def calls_to(self, url_prefix):
        return [c for c in self.calls if str(c.url).startswith(url_prefix)]

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        url = str(request.url)
        for method, prefix, responder, exact in self.routes:
            matched = url == prefix if exact else url.startswith(prefix)
            if request.method != method or not matched:
                continue
            if isinstance(responder, Exception):
                raise responder
            if callable(responder):
                result = responder(request)
                if inspect.isawaitable(result):
                    result = await result
                return result
            # Fresh copy per call so a canned response can be served repeatedly
            return httpx.Response(
                responder.status_code, headers=responder.headers, content=responder.content
            )
        return httpx.Response(404, json={"error": "not found"})

    # Convenience routes

    def enhanced(self, responder):
        return self.add("POST", f"{BACKEND_URL}/predict/enhanced", responder, exact=True)

    def standard(self, responder):
        return self.add("POST", f"{BACKEND_URL}/predict", responder, exact=True)

    def autocomplete(self, compounds):
        return self.add(
            "GET", PUBCHEM_AUTOCOMPLETE_URL,
            httpx.Response(200, json={"dictionary_terms": {"compound": compounds}})
        )


@pytest.fixture
def upstream():
    return FakeUpstream()


@pytest.fixture
def clients(upstream):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(upstream))
    return UpstreamClients(backend_url=BACKEND_URL, http_client=http_client)


@pytest.fixture
def urls():
    return {
        "backend": BACKEND_URL,
        "autocomplete": PUBCHEM_AUTOCOMPLETE_URL,
        "pubchem": PUBCHEM_PUG_URL,
        "rxnav": RXNAV_URL,
        "openfda": OPENFDA_URL,
    }


@pytest.fixture
def metformin_form():
    return {
        "age": 45,
        "gender": "male",
        "height": 170,
        "weight": 70,
        "drug_name": "Metformin",
        "chronic_conditions": "Diabetes",
    }
