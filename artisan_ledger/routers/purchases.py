"""
Purchases router.
Each line becomes one purchase transaction and re-weights the item's average cost.
"""
from fastapi import APIRouter, Depends, status
from typing import List, Optional

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import Purchase, PurchaseCreate, PurchaseResult

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("", response_model=PurchaseResult, status_code=status.HTTP_201_CREATED)
def record_purchase(purchase: PurchaseCreate, ledger: LedgerService = Depends(get_ledger)):
    return ledger.record_purchase(purchase)


@router.get("", response_model=List[Purchase])
def list_purchases(supplier_id: Optional[str] = None, ledger: LedgerService = Depends(get_ledger)):
    return ledger.list_purchases(supplier_id=supplier_id)


@router.get("/{purchase_id}", response_model=Purchase)
def get_purchase(purchase_id: str, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_purchase(purchase_id)
