"""
FastAPI application for the ARB PRO dutching calculator
Exposes the stake solver to the calculator form and CSV export
"""

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response
from contextlib import asynccontextmanager
from datetime import datetime
import logging
import os

from backend.schemas import (
    ArbCalculateRequest,
    ArbCalculateResponse,
    ArbConfigResponse,
)
from backend.services.arb_service import (
    config_response,
    get_calc_config,
    run_calculation,
    to_response,
)
from backend.services.arb_export import results_to_csv

APP_NAME = "ARB PRO Calculator"
APP_VERSION = "1.0"

# Logging setup
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    logger.info("Starting %s %s", APP_NAME, APP_VERSION)
    get_calc_config()
    yield
    logger.info("Shutting down %s", APP_NAME)


app = FastAPI(
    title=APP_NAME,
    description="Multi-outcome dutching / arbitrage stake solver",
    version=APP_VERSION,
    lifespan=lifespan,
)

# CORS (comma-separated origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
        if o.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/")
async def root():
    """App banner"""
    return {
        "app": APP_NAME,
        "version": APP_VERSION,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}


# ============================================================================
# CALCULATOR ENDPOINTS
# ============================================================================

@app.get("/api/arb/config", response_model=ArbConfigResponse)
async def get_arb_config():
    """Rounding presets and limits for the calculator form."""
    return config_response()


@app.post("/api/arb/calculate", response_model=ArbCalculateResponse)
def calculate(request: ArbCalculateRequest):
    """Solve stakes, per-outcome profit and ROI for a set of houses."""
    try:
        calc = run_calculation(request)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        logger.error("Arb calculation failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=500, detail=str(exc))
    return to_response(calc)


@app.post("/api/arb/export")
def export_csv(request: ArbCalculateRequest):
    """Solve a request and return the per-house table as CSV."""
    try:
        calc = run_calculation(request)
        body = results_to_csv(calc)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except Exception as exc:
        logger.error("Arb export failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=500, detail=str(exc))

    logger.info("Exported %d houses to CSV", len(calc.houses))
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="arb_pro.csv"'},
    )
