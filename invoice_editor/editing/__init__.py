"""Invoice Editor - Editing Package"""

from invoice_editor.editing.session import InvoiceSession

__all__ = [
    'InvoiceSession',
]
