"""
Report generation utilities.
Creates human-readable invoice documents and template listings.

This is the presentation boundary: money is rounded to two decimals and
dates are prettified here, never in the model.
"""
import json
import logging
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import List, Union

from dateutil.parser import parse as parse_date

from invoice_editor.core.models import Invoice, InvoiceTemplate


logger = logging.getLogger(__name__)

WIDTH = 70

EXPORT_FORMATS = ('txt', 'json')


class ExportError(Exception):
    """Raised when an invoice document cannot be produced"""
    pass


def format_currency(amount: Decimal, currency: str) -> str:
    return f"{currency} {amount:,.2f}"


def format_date(value: str) -> str:
    """
    Format an ISO date as 'November 13, 2025'.

    Values that do not parse as a date are returned unchanged.
    """
    if not value:
        return ''
    try:
        parsed = parse_date(value)
    except (ValueError, OverflowError):
        return value
    return f"{parsed:%B} {parsed.day}, {parsed.year}"


def invoice_file_name(invoice: Invoice, extension: str = '.pdf') -> str:
    """File name for an exported invoice, e.g. CORE-2025-11-13-01_Invoice.pdf"""
    number = invoice.details.invoice_number or invoice.id
    safe = ''.join(c if c.isalnum() or c in '-_.' else '_' for c in number)
    return f"{safe}_Invoice{extension}"


def generate_invoice_report(invoice: Invoice) -> str:
    """
    Render an invoice as a plain-text document.

    Args:
        invoice: Recalculated invoice

    Returns:
        Formatted text document
    """
    currency = invoice.payment.currency
    company = invoice.company
    client = invoice.client
    details = invoice.details

    lines = []

    # Header
    lines.append("=" * WIDTH)
    lines.append(company.name)
    if company.tagline:
        lines.append(company.tagline)
    lines.append(f"{company.address}, {company.postal_code} {company.city}, {company.country}")
    lines.append(f"Company code: {company.company_code}   VAT: {company.vat_number}")
    lines.append(f"{company.email}   {company.phone}")
    lines.append("=" * WIDTH)
    lines.append("")

    # Invoice details
    lines.append(f"INVOICE {details.invoice_number}")
    lines.append("-" * WIDTH)
    lines.append(f"Invoice Date:    {format_date(details.invoice_date)}")
    lines.append(
        f"Service Period:  {format_date(details.service_period_start)} – "
        f"{format_date(details.service_period_end)}"
    )
    lines.append("")

    # Bill to
    lines.append("BILL TO")
    lines.append("-" * WIDTH)
    lines.append(client.name)
    lines.append(client.address)
    extra = ', '.join(part for part in (client.building, client.floor) if part)
    if extra:
        lines.append(extra)
    lines.append(f"{client.city}, {client.country}")
    lines.append(f"UIC: {client.uic}   VAT: {client.vat_number}")
    lines.append("")

    # Services
    lines.append("SERVICES")
    lines.append("-" * WIDTH)
    for index, service in enumerate(invoice.services, 1):
        lines.append(f"{index}. {service.description}")
        if service.additional_info:
            lines.append(f"   {service.additional_info}")
        lines.append(
            f"   {service.quantity} x {format_currency(service.unit_price, currency)}"
            f" = {format_currency(service.amount, currency)}"
        )
    if not invoice.services:
        lines.append("(no services)")
    lines.append("")

    # Totals
    lines.append("-" * WIDTH)
    if invoice.reverse_charge.applicable:
        vat_label = "VAT (reverse):"
    else:
        vat_label = f"VAT ({invoice.vat_rate}%):"
    lines.append(f"{'Subtotal:':<17}{format_currency(invoice.subtotal, currency)}")
    lines.append(f"{vat_label:<17}{format_currency(invoice.vat_amount, currency)}")
    lines.append(f"{'TOTAL:':<17}{format_currency(invoice.total, currency)}")
    lines.append("")

    if invoice.reverse_charge.applicable:
        rc = invoice.reverse_charge
        lines.append("REVERSE CHARGE")
        lines.append("-" * WIDTH)
        lines.append(f"VAT reverse charge applies according to {rc.article44_text}"
                     f" and {rc.article13_text}.")
        lines.append(f"Customer VAT: {rc.customer_vat}")
        lines.append("")

    # Payment
    payment = invoice.payment
    lines.append("PAYMENT INFORMATION")
    lines.append("-" * WIDTH)
    lines.append(f"Bank:   {payment.bank_name}")
    lines.append(f"IBAN:   {payment.iban}")
    lines.append(f"SWIFT:  {payment.swift}")
    lines.append(
        f"Payment due within {payment.payment_terms_days} business days "
        f"from invoice receipt."
    )

    if invoice.footer_note:
        lines.append("")
        lines.append(invoice.footer_note)

    # Footer
    lines.append("=" * WIDTH)

    return "\n".join(lines)


def generate_template_summary(templates: List[InvoiceTemplate]) -> str:
    """One block per template: id, name, description, client, creation date"""
    if not templates:
        return "No templates found."

    lines = []
    for template in templates:
        lines.append(f"{template.id}  {template.name}")
        if template.description:
            lines.append(f"    {template.description}")
        if template.invoice.client.name:
            lines.append(f"    Client: {template.invoice.client.name}")
        lines.append(f"    Created: {template.created_at:%Y-%m-%d}")
    return "\n".join(lines)


def generate_json_report(invoice: Invoice) -> str:
    return json.dumps(invoice.to_json_dict(), indent=2)


def export_invoice(invoice: Invoice, output_dir: Union[str, Path],
                   fmt: str = 'txt') -> Path:
    """
    Write an invoice document into a directory.

    The file appears only once it is complete.

    Args:
        invoice: Invoice to export
        output_dir: Target directory, created if missing
        fmt: 'txt' or 'json'

    Returns:
        Path of the written file

    Raises:
        ExportError: If the format is unknown or the file cannot be written
    """
    if fmt not in EXPORT_FORMATS:
        raise ExportError(f"Unsupported export format: {fmt}")

    if fmt == 'json':
        content = generate_json_report(invoice)
    else:
        content = generate_invoice_report(invoice)

    output_dir = Path(output_dir)
    target = output_dir / invoice_file_name(invoice, f".{fmt}")

    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=output_dir, suffix='.part')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                f.write(content)
            os.replace(tmp_name, target)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
    except OSError as e:
        raise ExportError(f"Failed to export invoice to {target}: {str(e)}") from e

    logger.info(f"Invoice exported: {target}")
    return target
