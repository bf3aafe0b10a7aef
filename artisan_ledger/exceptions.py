"""
Error taxonomy for ledger commands.

Every failure a command can produce is a LedgerError subclass with a stable
``code`` and a message that is safe to show to a user.
"""
from decimal import Decimal
from typing import Any, Dict, Optional


class LedgerError(Exception):
    code = "LEDGER_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"detail": self.message, "error": self.code}
        for key, value in self.context.items():
            payload[key] = str(value) if isinstance(value, Decimal) else value
        return payload


class ValidationError(LedgerError):
    """Malformed or missing command input. Never retried."""

    code = "VALIDATION_ERROR"


class NotFoundError(ValidationError):
    code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} '{entity_id}' not found", entity=entity, id=entity_id)


class InsufficientStockError(LedgerError):
    code = "INSUFFICIENT_STOCK"

    def __init__(self, item_id: str, required: Decimal, available: Decimal):
        super().__init__(
            f"Insufficient stock for item '{item_id}': required {required}, available {available}",
            item_id=item_id,
            required=required,
            available=available,
        )
        self.item_id = item_id
        self.required = required
        self.available = available


class StaleCountError(LedgerError):
    """The counted-from quantity no longer matches the ledger; re-fetch and resubmit."""

    code = "STALE_COUNT"

    def __init__(self, item_id: str, expected: Decimal, actual: Decimal):
        super().__init__(
            f"Spot check for item '{item_id}' is stale: counted from {expected}, "
            f"current quantity is {actual}",
            item_id=item_id,
            expected=expected,
            actual=actual,
        )
        self.item_id = item_id
        self.expected = expected
        self.actual = actual


class DuplicateSKUError(LedgerError):
    code = "DUPLICATE_SKU"

    def __init__(self, sku: str):
        super().__init__(f"An item with SKU '{sku}' already exists", sku=sku)
        self.sku = sku


class LedgerInvariantError(LedgerError):
    """
    A quantity would go negative or a prefix sum does not line up.
    Signals a defect, not a user mistake.
    """

    code = "LEDGER_INVARIANT"

    def __init__(self, message: str, item_id: Optional[str] = None):
        super().__init__(message, item_id=item_id)
        self.item_id = item_id

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": "Internal ledger error, operation aborted", "error": self.code}


class LockTimeoutError(LedgerError):
    code = "LEDGER_BUSY"

    def __init__(self, item_ids, attempts: int):
        super().__init__(
            f"Ledger busy: could not lock {len(item_ids)} item(s) after {attempts} attempts",
            item_ids=list(item_ids),
        )
