"""
Dashboard router: projections recomputed on every request.
"""
from fastapi import APIRouter, Depends
from datetime import date
from typing import List, Optional

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import Alert, DashboardMetrics, LedgerCheck, StockLevels

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard/metrics", response_model=DashboardMetrics)
def get_dashboard_metrics(today: Optional[date] = None, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_dashboard_metrics(today=today)


@router.get("/dashboard/stock-levels", response_model=StockLevels)
def get_stock_levels(ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_stock_levels()


@router.get("/dashboard/alerts", response_model=List[Alert])
def get_alerts(ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_alerts()


@router.get("/ledger/verify", response_model=LedgerCheck)
def verify_ledger(ledger: LedgerService = Depends(get_ledger)):
    """
    Recompute every item's running sum against its recorded quantity.
    A mismatch is reported as a 500 and logged at ERROR.
    """
    return ledger.verify_ledger()
