from fastapi import APIRouter, Depends, status
from typing import List, Optional

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import Batch, BatchCreate, BatchResult

router = APIRouter(prefix="/batches", tags=["batches"])


@router.post("", response_model=BatchResult, status_code=status.HTTP_201_CREATED)
def record_batch(batch: BatchCreate, ledger: LedgerService = Depends(get_ledger)):
    """
    Run a production batch: debit every ingredient, credit the output item.
    All or nothing.
    """
    return ledger.record_batch(batch)


@router.get("", response_model=List[Batch])
def list_batches(recipe_id: Optional[str] = None, ledger: LedgerService = Depends(get_ledger)):
    return ledger.list_batches(recipe_id=recipe_id)


@router.get("/{batch_id}", response_model=Batch)
def get_batch(batch_id: str, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_batch(batch_id)
