from fastapi import Request

from artisan_ledger.engine import LedgerService


def get_ledger(request: Request) -> LedgerService:
    """The engine instance owned by the running app."""
    return request.app.state.ledger
