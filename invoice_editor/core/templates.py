"""
Template handling: deriving invoices from templates and building templates
from invoices.

Derivation never mutates the template it reads from.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from invoice_editor.core.calculations import recalculate_invoice
from invoice_editor.core.defaults import DEFAULT_PERIOD_LENGTH_DAYS
from invoice_editor.core.models import (
    Invoice,
    InvoiceContent,
    InvoiceDetails,
    InvoiceTemplate,
    ZERO,
    new_id,
    utc_now,
)
from invoice_editor.core.numbering import InvoiceNumberService


logger = logging.getLogger(__name__)


def create_invoice_from_content(content: InvoiceContent,
                                numbering: InvoiceNumberService,
                                today: Optional[date] = None,
                                period_length_days: int = DEFAULT_PERIOD_LENGTH_DAYS,
                                template_name: Optional[str] = None,
                                footer_note: Optional[str] = None) -> Invoice:
    """
    Build a fresh, dated invoice around a copy of the given content.

    Args:
        content: Parties, services, payment and tax treatment to copy
        numbering: Issues the invoice number (consumes one counter value)
        today: Issue date, defaults to the numbering service's clock
        period_length_days: Calendar days from period start to period end
        template_name: Name of the template the content came from
        footer_note: Closing note printed on the invoice

    Returns:
        Recalculated Invoice with a new id
    """
    day = today or numbering.clock()
    copied = content.copy_content()

    shell = Invoice(
        id=new_id(),
        template_name=template_name,
        company=copied.company,
        client=copied.client,
        details=InvoiceDetails(
            invoice_number=numbering.next_invoice_number(day),
            invoice_date=day.isoformat(),
            service_period_start=day.isoformat(),
            service_period_end=(day + timedelta(days=period_length_days)).isoformat(),
        ),
        services=copied.services,
        payment=copied.payment,
        reverse_charge=copied.reverse_charge,
        vat_rate=copied.vat_rate,
        subtotal=ZERO,
        vat_amount=ZERO,
        total=ZERO,
        footer_note=footer_note,
    )
    return recalculate_invoice(shell)


def create_invoice_from_template(template: InvoiceTemplate,
                                 numbering: InvoiceNumberService,
                                 today: Optional[date] = None,
                                 period_length_days: int = DEFAULT_PERIOD_LENGTH_DAYS) -> Invoice:
    """Derive a new invoice instance from a saved template"""
    invoice = create_invoice_from_content(
        template.invoice,
        numbering,
        today=today,
        period_length_days=period_length_days,
        template_name=template.name,
    )
    logger.info(
        f"Derived invoice {invoice.details.invoice_number} "
        f"from template '{template.name}' ({template.id})"
    )
    return invoice


def build_template(name: str, content: InvoiceContent,
                   description: Optional[str] = None,
                   template_id: Optional[str] = None,
                   created_at: Optional[datetime] = None) -> InvoiceTemplate:
    """
    Create a template, or the edited version of an existing one.

    Passing the id and creation time of an existing template keeps its
    identity; updated_at is always refreshed.
    """
    name = name.strip()
    if not name:
        raise ValueError('Template name cannot be empty')

    now = utc_now()
    return InvoiceTemplate(
        id=template_id or new_id(),
        name=name,
        description=(description or '').strip() or None,
        invoice=content.copy_content(),
        created_at=created_at or now,
        updated_at=now,
    )


def template_from_invoice(invoice: Invoice, name: str,
                          description: Optional[str] = None) -> InvoiceTemplate:
    """Snapshot the content of an invoice as a new template"""
    return build_template(name, invoice.content(), description)


def update_template(template: InvoiceTemplate,
                    name: Optional[str] = None,
                    description: Optional[str] = None,
                    content: Optional[InvoiceContent] = None) -> InvoiceTemplate:
    """Edited copy of a template; unspecified parts are kept"""
    return build_template(
        name if name is not None else template.name,
        content if content is not None else template.invoice,
        description if description is not None else template.description,
        template_id=template.id,
        created_at=template.created_at,
    )


def duplicate_template(template: InvoiceTemplate) -> InvoiceTemplate:
    """Independent copy with a new id, fresh timestamps and a '(Copy)' name"""
    now = utc_now()
    return InvoiceTemplate(
        id=new_id(),
        name=f"{template.name} (Copy)",
        description=template.description,
        invoice=template.invoice.copy_content(),
        created_at=now,
        updated_at=now,
    )
