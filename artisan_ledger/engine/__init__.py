"""
In-process inventory ledger and weighted-average costing engine.
"""
from artisan_ledger.engine.service import LedgerService

__all__ = ["LedgerService"]
