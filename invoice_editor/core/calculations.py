"""
Invoice arithmetic.

All derived fields of an invoice (line amounts, subtotal, VAT, total) are
pure functions of its services, VAT rate and reverse-charge flag. Values are
kept at full Decimal precision; rounding happens only when formatting for
display (see invoice_editor.reports).
"""
from decimal import Decimal
from typing import Iterable

from invoice_editor.core.models import (
    Invoice,
    ServiceItem,
    ZERO,
    to_derived_money,
    to_money,
)
from invoice_editor.utils.decorators import measure_performance

HUNDRED = Decimal('100')


def calculate_service_amount(quantity, unit_price) -> Decimal:
    return to_money(quantity) * to_money(unit_price)


def calculate_subtotal(services: Iterable[ServiceItem]) -> Decimal:
    return sum((to_derived_money(service.amount) for service in services), ZERO)


def calculate_vat(subtotal: Decimal, vat_rate) -> Decimal:
    return to_derived_money(subtotal) * to_money(vat_rate) / HUNDRED


def calculate_total(subtotal: Decimal, vat_amount: Decimal) -> Decimal:
    return to_derived_money(subtotal) + to_derived_money(vat_amount)


@measure_performance
def recalculate_invoice(invoice: Invoice) -> Invoice:
    """
    Recompute every derived field of an invoice.

    Returns a new invoice; the argument is left untouched. Reverse charge
    forces the VAT amount to zero but keeps the stored rate.

    Args:
        invoice: Invoice whose totals may be stale

    Returns:
        Copy of the invoice with consistent amounts and totals
    """
    services = [
        service.model_copy(update={
            'quantity': to_money(service.quantity),
            'unit_price': to_money(service.unit_price),
            'amount': calculate_service_amount(service.quantity, service.unit_price),
        })
        for service in invoice.services
    ]

    subtotal = calculate_subtotal(services)
    if invoice.reverse_charge.applicable:
        vat_amount = ZERO
    else:
        vat_amount = calculate_vat(subtotal, invoice.vat_rate)

    return invoice.model_copy(
        deep=True,
        update={
            'services': services,
            'subtotal': subtotal,
            'vat_rate': to_money(invoice.vat_rate),
            'vat_amount': vat_amount,
            'total': calculate_total(subtotal, vat_amount),
        },
    )
