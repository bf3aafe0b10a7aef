import threading
from typing import Dict

PREFIXES = {
    "item": "item",
    "supplier": "sup",
    "recipe": "rec",
    "recipe_ingredient": "ri",
    "purchase": "pur",
    "purchase_line": "pli",
    "batch": "batch",
    "spot_check": "spot",
    "sale": "sale",
    "sales_month": "sm",
    "transaction": "txn",
}


class IdSequence:
    """Readable sequential ids per entity kind: ``item-001``, ``txn-042``..."""

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}

    def next(self, kind: str) -> str:
        prefix = PREFIXES[kind]
        with self._lock:
            n = self._counters.get(prefix, 0) + 1
            self._counters[prefix] = n
        return f"{prefix}-{n:03d}"

    def observe(self, identifier: str) -> None:
        """Advance the counter past an id loaded from storage."""
        prefix, _, number = identifier.rpartition("-")
        if not prefix or not number.isdigit():
            return
        with self._lock:
            if int(number) > self._counters.get(prefix, 0):
                self._counters[prefix] = int(number)
