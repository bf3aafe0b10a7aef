"""
Reports router: PDF reports and the ledger CSV export.
"""
from fastapi import APIRouter, Depends
from fastapi.responses import Response, StreamingResponse
from io import StringIO
import csv
from datetime import datetime

from artisan_ledger.dependencies import get_ledger
from artisan_ledger.engine import LedgerService
from artisan_ledger.utils.pdf_reports import PDFReportGenerator

router = APIRouter(prefix="/reports", tags=["reports"])


def _generator(ledger: LedgerService) -> PDFReportGenerator:
    return PDFReportGenerator(ledger.settings.APP_NAME, currency=ledger.settings.CURRENCY)


def _pdf(content: bytes, name: str) -> Response:
    filename = f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.pdf"
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@router.get("/inventory.pdf")
def inventory_report(ledger: LedgerService = Depends(get_ledger)):
    generator = _generator(ledger)
    return _pdf(generator.generate_inventory_report(ledger.list_items()), "inventory")


@router.get("/production.pdf")
def production_report(ledger: LedgerService = Depends(get_ledger)):
    generator = _generator(ledger)
    content = generator.generate_production_report(
        ledger.list_batches(), ledger.list_recipes(include_archived=True)
    )
    return _pdf(content, "production")


@router.get("/ledger.csv")
def download_ledger(ledger: LedgerService = Depends(get_ledger)):
    """Every ledger entry in sequence order."""
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(
        ["Sequence", "Transaction ID", "Item ID", "Type", "Quantity Change", "New Quantity", "Source ID", "Timestamp"]
    )

    for txn in ledger.all_transactions():
        writer.writerow([
            txn.sequence,
            txn.transaction_id,
            txn.item_id,
            txn.type.value,
            str(txn.quantity_change),
            str(txn.new_quantity),
            txn.source_id,
            txn.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
        ])

    output.seek(0)
    filename = f"ledger_{datetime.now().strftime('%Y%m%d_%H%M%S')}.csv"
    return StreamingResponse(
        output,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
