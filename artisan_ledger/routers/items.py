"""
Items router: catalogue, archive and per-item ledger history.
Quantities and costs are read-only here; they move only through commands.
"""
from fastapi import APIRouter, Depends, status
from typing import List, Optional

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import Item, ItemCreate, ItemResult, ItemStatus, ItemType, Transaction

router = APIRouter(prefix="/items", tags=["items"])

# ====================
# ITEMS
# ====================

@router.post("", response_model=ItemResult, status_code=status.HTTP_201_CREATED)
def create_item(item: ItemCreate, ledger: LedgerService = Depends(get_ledger)):
    """
    Create a new item. A non-zero initial quantity is booked as an
    opening-balance spot check.
    """
    return ledger.create_item(item)


@router.get("", response_model=List[Item])
def list_items(
    type: Optional[ItemType] = None,
    status: Optional[ItemStatus] = None,
    search: Optional[str] = None,
    include_archived: bool = False,
    ledger: LedgerService = Depends(get_ledger),
):
    return ledger.list_items(type=type, status=status, search=search, include_archived=include_archived)


@router.get("/{item_id}", response_model=Item)
def get_item(item_id: str, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_item(item_id)


@router.post("/{item_id}/archive", response_model=Item)
def archive_item(item_id: str, ledger: LedgerService = Depends(get_ledger)):
    """Soft delete. History stays intact."""
    return ledger.archive_item(item_id)


@router.get("/{item_id}/transactions", response_model=List[Transaction])
def get_item_transactions(item_id: str, ledger: LedgerService = Depends(get_ledger)):
    """Ledger entries for one item, oldest first."""
    return ledger.get_transaction_history(item_id)
