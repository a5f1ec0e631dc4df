import re
import logging
from datetime import datetime, timezone
from typing import Optional, Type

from fastapi import Depends, FastAPI, Query
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from wallet_insights.config.settings import get_settings
from wallet_insights.pipeline.common import ReportBase, WalletServices
from wallet_insights.pipeline.reports import (
    OrderAnalysisReport,
    PortfolioHistoryReport,
    TimeAnalysisReport,
    TradingMetricsReport,
    TransactionsReport,
    VolumeFeesReport,
    WalletPnlReport,
)
from wallet_insights.services.errors import InvalidWalletError, WalletInsightsError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

WALLET_PATTERN = re.compile(r'^[1-9A-HJ-NP-Za-km-z]{32,44}$')

app = FastAPI(title="Wallet Insights", version="1.0.0")

_services: Optional[WalletServices] = None


class HealthResponse(BaseModel):
    status: str
    timestamp: str


class ErrorResponse(BaseModel):
    error: str


def get_services() -> WalletServices:
    """Shared provider clients and caches, built once per process."""
    global _services
    if _services is None:
        _services = WalletServices(get_settings())
    return _services


def validate_wallet_address(address: str) -> str:
    """Return the address stripped of whitespace, or raise InvalidWalletError."""
    candidate = (address or '').strip()
    if not WALLET_PATTERN.match(candidate):
        raise InvalidWalletError(f"Invalid Solana address: {address!r}")
    return candidate


def resolve_wallet(wallet: Optional[str], default_wallet: str) -> str:
    """Use the requested wallet when it looks like a base58 address, else the default."""
    if not wallet:
        return default_wallet
    try:
        return validate_wallet_address(wallet)
    except InvalidWalletError as e:
        logger.warning(f"{e}, using default wallet")
        return default_wallet


def run_report(report_class: Type[ReportBase], services: WalletServices, wallet: Optional[str]):
    wallet_address = resolve_wallet(wallet, services.settings.analytics.default_wallet)
    report = report_class(services, wallet_address)
    try:
        return report.execute()
    except WalletInsightsError as e:
        logger.error(f"{report.report_name} failed for {wallet_address}: {e}")
        return JSONResponse(status_code=502, content=ErrorResponse(error=str(e)).model_dump())


ERROR_RESPONSES = {502: {"model": ErrorResponse}}


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc).isoformat())


@app.get("/api/wallet-pnl", responses=ERROR_RESPONSES)
def wallet_pnl(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(WalletPnlReport, services, wallet)


@app.get("/api/transactions", responses=ERROR_RESPONSES)
def transactions(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(TransactionsReport, services, wallet)


@app.get("/api/time-analysis", responses=ERROR_RESPONSES)
def time_analysis(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(TimeAnalysisReport, services, wallet)


@app.get("/api/order-analysis", responses=ERROR_RESPONSES)
def order_analysis(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(OrderAnalysisReport, services, wallet)


@app.get("/api/trading-metrics", responses=ERROR_RESPONSES)
def trading_metrics(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(TradingMetricsReport, services, wallet)


@app.get("/api/volume-fees", responses=ERROR_RESPONSES)
def volume_fees(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(VolumeFeesReport, services, wallet)


@app.get("/api/portfolio-history", responses=ERROR_RESPONSES)
def portfolio_history(wallet: Optional[str] = Query(None), services: WalletServices = Depends(get_services)):
    return run_report(PortfolioHistoryReport, services, wallet)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
