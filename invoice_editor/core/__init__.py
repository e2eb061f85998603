"""Invoice Editor - Core Package"""

from invoice_editor.core.models import (
    ClientInfo,
    CompanyInfo,
    Invoice,
    InvoiceContent,
    InvoiceDetails,
    InvoiceTemplate,
    PaymentInfo,
    ReverseChargeInfo,
    ServiceItem,
)
from invoice_editor.core.calculations import recalculate_invoice
from invoice_editor.core.numbering import InvoiceNumberService, format_invoice_number
from invoice_editor.core.templates import (
    create_invoice_from_template,
    duplicate_template,
    template_from_invoice,
)

__all__ = [
    'ClientInfo',
    'CompanyInfo',
    'Invoice',
    'InvoiceContent',
    'InvoiceDetails',
    'InvoiceTemplate',
    'PaymentInfo',
    'ReverseChargeInfo',
    'ServiceItem',
    'recalculate_invoice',
    'InvoiceNumberService',
    'format_invoice_number',
    'create_invoice_from_template',
    'duplicate_template',
    'template_from_invoice',
]
