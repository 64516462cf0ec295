"""HTTP surface exposing the collection and workflow results.

Run with: uvicorn scam_detector.api:app
"""
from typing import Any, Dict

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from . import __version__
from .advisory import AdvisoryAnalyzer
from .config import Settings, get_settings
from .dal import GoldRushClient, TransactionProvider
from .schemas import HealthResponse
from .security import require_api_key
from .service import collect_transactions
from .workflow import RiskAssessmentWorkflow

app = FastAPI(title="Scam Detector", version=__version__)


def get_provider(settings: Settings = Depends(get_settings)) -> TransactionProvider:
    return GoldRushClient(settings)


def get_advisor(settings: Settings = Depends(get_settings)) -> AdvisoryAnalyzer:
    return AdvisoryAnalyzer(settings)


def _respond(result: Dict[str, Any]) -> JSONResponse:
    status = 200 if result.get("success") else 502
    return JSONResponse(status_code=status, content=result)


@app.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, environment=settings.environment)


@app.get("/wallets/{chain}/{address}/analysis", dependencies=[Depends(require_api_key)])
def wallet_analysis(
    chain: str,
    address: str,
    settings: Settings = Depends(get_settings),
    provider: TransactionProvider = Depends(get_provider),
    advisor: AdvisoryAnalyzer = Depends(get_advisor),
) -> JSONResponse:
    result = collect_transactions(
        chain,
        address,
        provider=provider,
        advisor=advisor,
        extra_routers=settings.extra_dex_routers,
    )
    return _respond(result)


@app.get("/transactions/{chain}/{tx_hash}/risk", dependencies=[Depends(require_api_key)])
async def transaction_risk(
    chain: str,
    tx_hash: str,
    provider: TransactionProvider = Depends(get_provider),
) -> JSONResponse:
    result = await RiskAssessmentWorkflow(provider).execute(chain, tx_hash)
    return _respond(result)
