"""
Drug Response Prediction Engine - FastAPI REST API
"""
from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any, Union
from dataclasses import asdict
from datetime import datetime
import logging

from config.settings import API_TITLE, API_VERSION, API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT
from src.core.exceptions import (
    AllBackendsFailedError, DrugNameRejectedError, PredictionPreconditionError
)
from src.core.explanation import format_explanation, summarize_prediction
from src.core.models import PredictionRequest
from src.core.prediction_service import get_prediction_service, PredictionOrchestrator

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger(__name__)

# Pydantic models for API
class PredictionSubmitRequest(BaseModel):
    patient_id: Optional[str] = None
    age: Optional[Union[int, float, str]] = Field(None, description="Age in years (1-120)")
    gender: Optional[str] = None
    height: Optional[Union[float, str]] = Field(None, description="Height in cm")
    weight: Optional[Union[float, str]] = Field(None, description="Weight in kg")
    drug_name: str = ""
    chronic_conditions: str = ""


class NameValidationResponse(BaseModel):
    name: str
    state: str
    reason: Optional[str]
    message: str


class SuggestionResponse(BaseModel):
    query: str
    suggestions: List[str]
    count: int


class HealthCheckResponse(BaseModel):
    status: str
    version: str
    backend_status: str
    backend_response_time_ms: float
    system_status: Optional[Dict[str, Any]] = None
    timestamp: str


# Create FastAPI app
app = FastAPI(
    title=API_TITLE,
    description="Drug-response prediction with backend fallback, normalized results, pharmacogenetic markers and explainable drug information.",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Global state
prediction_service: Optional[PredictionOrchestrator] = None


def _service() -> PredictionOrchestrator:
    global prediction_service
    if prediction_service is None:
        prediction_service = get_prediction_service()
    return prediction_service


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info("Starting Drug Response Prediction Engine...")
    _service()


@app.on_event("shutdown")
async def shutdown_event():
    if prediction_service is not None:
        await prediction_service.aclose()


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint"""
    return {
        "name": API_TITLE,
        "version": API_VERSION,
        "status": "operational",
        "docs": "/docs"
    }


@app.get("/health", response_model=HealthCheckResponse, tags=["Health"])
async def health_check():
    """Health check including the upstream prediction backend"""
    backend = await _service().clients.check_health()
    system_status = backend.get("system_status")
    return HealthCheckResponse(
        status="healthy" if backend["status"] == "connected" else "degraded",
        version=API_VERSION,
        backend_status=backend["status"],
        backend_response_time_ms=backend["response_time_ms"],
        system_status=system_status if isinstance(system_status, dict) else None,
        timestamp=datetime.now().isoformat()
    )


@app.post("/predict", tags=["Prediction"])
async def submit_prediction(request: PredictionSubmitRequest):
    """
    Predict drug response for a patient.

    The drug name is validated against the compound vocabulary, then the
    enhanced backend is tried with the standard backend as fallback.
    """
    prediction_request = PredictionRequest.from_form(request.model_dump())

    try:
        result = await _service().submit_prediction(prediction_request)
    except DrugNameRejectedError as e:
        raise HTTPException(status_code=422, detail={
            "error": "drug_name_rejected",
            "reason": e.validation.reason,
            "message": str(e)
        })
    except PredictionPreconditionError as e:
        raise HTTPException(status_code=422, detail={
            "error": "validation_error",
            "message": str(e)
        })
    except AllBackendsFailedError as e:
        logger.error(f"Prediction failed: {e}")
        raise HTTPException(status_code=503, detail={
            "error": "prediction_unavailable",
            "message": "Unable to connect to AI prediction service. Please try again.",
            "attempts": [{"backend": b, "reason": r} for b, r in e.attempts]
        })

    response = result.to_dict()
    response["summary"] = summarize_prediction(result)
    response["formatted_explanation"] = format_explanation(result.explanation, result.drug_name)
    return response


@app.get("/validate-drug", response_model=NameValidationResponse, tags=["Drugs"])
async def validate_drug_name(name: str = Query("", description="Drug name to validate")):
    """Check a drug name against the compound vocabulary"""
    validation = await _service().validate_drug_name(name)
    return NameValidationResponse(
        name=name,
        state=validation.state.value,
        reason=validation.reason,
        message=validation.message
    )


@app.get("/drugs/suggest", response_model=SuggestionResponse, tags=["Drugs"])
async def suggest_drugs(q: str = Query(..., description="Partial drug name")):
    """Autocomplete suggestions for a partial drug name"""
    suggestions = await _service().validator.suggest(q)
    return SuggestionResponse(query=q, suggestions=suggestions, count=len(suggestions))


@app.get("/drug-info/{drug_name}", tags=["Drugs"])
async def get_drug_info(drug_name: str):
    """Aggregated drug information from the backend or external references"""
    info = await _service().aggregator.fetch_drug_info(drug_name)
    if info is None:
        raise HTTPException(status_code=404, detail="No drug information available")
    return {"data": asdict(info)}


# Main entry point for running directly
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
