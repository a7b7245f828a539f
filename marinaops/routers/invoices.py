"""
Invoice router - invoices with outstanding and overdue classification.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from marinaops.auth.dependencies import SessionUser, get_current_user, require_marina_access
from marinaops.engine.metrics.aggregation import total_outstanding_amount
from marinaops.engine.metrics.builders import build_invoice_summary
from marinaops.engine.metrics.classifiers import is_overdue
from marinaops.models.enums import InvoiceStatus
from marinaops.routers.deps import envelope, get_active_storage, get_now, not_found
from marinaops.storage.base import StorageBackend
from marinaops.utils.logging import get_logger

logger = get_logger(__name__)
router = APIRouter()


@router.get("/")
async def list_invoices(
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
    status: Optional[InvoiceStatus] = Query(None, description="Stored status filter"),
    overdue_only: bool = Query(False, description="Only invoices overdue at request time"),
):
    """
    List invoices. The response carries ``totalOutstandingAmount`` for the
    returned page alongside the records.
    """
    invoices = storage.list_invoices(marina_id=user.marina_scope)
    if status is not None:
        invoices = [i for i in invoices if i.status == status]
    if overdue_only:
        invoices = [i for i in invoices if is_overdue(i, now)]

    summaries = [build_invoice_summary(invoice, now) for invoice in invoices]
    logger.info("invoices_list", user_id=user.id, count=len(summaries))
    return envelope(
        summaries,
        total=len(summaries),
        totalOutstandingAmount=total_outstanding_amount(invoices),
    )


@router.get("/{invoice_id}")
async def get_invoice(
    invoice_id: str,
    user: SessionUser = Depends(get_current_user),
    storage: StorageBackend = Depends(get_active_storage),
    now: datetime = Depends(get_now),
):
    invoice = storage.read_invoice(invoice_id)
    if invoice is None:
        raise not_found("Invoice", invoice_id)
    require_marina_access(user, invoice.marina_id, "invoice")

    return envelope(build_invoice_summary(invoice, now))
