from fastapi import APIRouter, Depends, status
from typing import List, Optional

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.schemas import SpotCheck, SpotCheckCreate, SpotCheckResult

router = APIRouter(prefix="/spot-checks", tags=["spot-checks"])


@router.post("", response_model=SpotCheckResult, status_code=status.HTTP_201_CREATED)
def record_spot_check(spot_check: SpotCheckCreate, ledger: LedgerService = Depends(get_ledger)):
    """
    Record a physical count. ``previous_quantity`` must match the ledger,
    otherwise the count is stale (409) and must be redone.
    """
    return ledger.record_spot_check(spot_check)


@router.get("", response_model=List[SpotCheck])
def list_spot_checks(item_id: Optional[str] = None, ledger: LedgerService = Depends(get_ledger)):
    return ledger.list_spot_checks(item_id=item_id)
