from fastapi import APIRouter, Depends, status
from typing import List

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import Supplier, SupplierCreate

router = APIRouter(prefix="/suppliers", tags=["suppliers"])


@router.post("", response_model=Supplier, status_code=status.HTTP_201_CREATED)
def create_supplier(supplier: SupplierCreate, ledger: LedgerService = Depends(get_ledger)):
    return ledger.create_supplier(supplier)


@router.get("", response_model=List[Supplier])
def list_suppliers(include_archived: bool = False, ledger: LedgerService = Depends(get_ledger)):
    return ledger.list_suppliers(include_archived=include_archived)


@router.get("/{supplier_id}", response_model=Supplier)
def get_supplier(supplier_id: str, ledger: LedgerService = Depends(get_ledger)):
    return ledger.get_supplier(supplier_id)


@router.post("/{supplier_id}/archive", response_model=Supplier)
def archive_supplier(supplier_id: str, ledger: LedgerService = Depends(get_ledger)):
    return ledger.archive_supplier(supplier_id)
