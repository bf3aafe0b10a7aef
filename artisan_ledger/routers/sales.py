"""
Sales router.
Per-sale records debit the ledger; the monthly view rolls them up next to
manually entered months.
"""
from fastapi import APIRouter, Depends, status
from typing import List, Optional

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import Sale, SaleCreate, SaleResult, SalesMonth, SalesMonthCreate

router = APIRouter(prefix="/sales", tags=["sales"])


@router.post("", response_model=SaleResult, status_code=status.HTTP_201_CREATED)
def record_sale(sale: SaleCreate, ledger: LedgerService = Depends(get_ledger)):
    return ledger.record_sale(sale)


@router.get("", response_model=List[Sale])
def list_sales(item_id: Optional[str] = None, ledger: LedgerService = Depends(get_ledger)):
    return ledger.list_sales(item_id=item_id)


@router.get("/monthly", response_model=List[SalesMonth])
def monthly_sales(item_id: Optional[str] = None, ledger: LedgerService = Depends(get_ledger)):
    return ledger.monthly_sales(item_id=item_id)


@router.post("/monthly", response_model=SalesMonth, status_code=status.HTTP_201_CREATED)
def import_sales_month(month: SalesMonthCreate, ledger: LedgerService = Depends(get_ledger)):
    """Manual or imported monthly figure. Replaces an earlier entry for the same month."""
    return ledger.import_sales_month(month)
