"""
Invoice Editor

Edit invoices, derive them from reusable templates and issue sequential
invoice numbers, with local persistence and backup import/export.
"""

__version__ = '1.0.0'
__author__ = 'Your Name'
__license__ = 'MIT'

from invoice_editor.core import (
    Invoice,
    InvoiceTemplate,
    InvoiceNumberService,
    recalculate_invoice,
    create_invoice_from_template,
)

from invoice_editor.editing import InvoiceSession

from invoice_editor.storage import (
    JSONFileStore,
    MemoryStore,
    export_data,
    import_data,
)

__all__ = [
    'Invoice',
    'InvoiceTemplate',
    'InvoiceNumberService',
    'recalculate_invoice',
    'create_invoice_from_template',
    'InvoiceSession',
    'JSONFileStore',
    'MemoryStore',
    'export_data',
    'import_data',
]
