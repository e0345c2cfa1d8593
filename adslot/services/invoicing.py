"""Commission invoices raised when an advert is approved."""
from __future__ import annotations

import secrets
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy.orm import Session

from adslot.config import BOOKING_SETTINGS
from adslot.models.db.enums import InvoiceStatus
from adslot.models.db.invoices import Invoice
from adslot.utils import get_logger
from adslot.utils.time import utc_now

logger = get_logger(__name__)

_CENTS = Decimal("0.01")


def commission_for(amount: Decimal | int | float | str) -> Decimal:
    """Commission owed on ``amount``, rounded half-up to cents."""
    rate = Decimal(str(BOOKING_SETTINGS["commission_rate"]))
    return (Decimal(str(amount)) * rate).quantize(_CENTS, rounding=ROUND_HALF_UP)


def next_invoice_number() -> str:
    return f"INV-{utc_now():%Y%m%d}-{secrets.token_hex(4).upper()}"


def create_invoice(
    session: Session,
    *,
    advert_id: int,
    client_name: str,
    amount: Decimal,
    commission_amount: Decimal,
    sales_rep_id: int,
    approver_id: int,
) -> Invoice:
    """Add an invoice to the caller's transaction (flushed, not committed)."""
    invoice = Invoice(
        invoice_number=next_invoice_number(),
        advert_id=advert_id,
        client_name=client_name,
        amount=Decimal(str(amount)).quantize(_CENTS),
        commission_amount=commission_amount,
        sales_rep_id=sales_rep_id,
        approved_by=approver_id,
        status=InvoiceStatus.PAID,
    )
    session.add(invoice)
    session.flush()
    logger.debug("Invoice staged", invoice_number=invoice.invoice_number, advert_id=advert_id)
    return invoice


__all__ = ["commission_for", "next_invoice_number", "create_invoice"]
