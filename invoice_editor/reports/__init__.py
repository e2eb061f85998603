"""Invoice Editor - Reports Package"""

from invoice_editor.reports.generator import (
    ExportError,
    export_invoice,
    format_currency,
    format_date,
    generate_invoice_report,
    generate_json_report,
    generate_template_summary,
    invoice_file_name,
)

__all__ = [
    'ExportError',
    'export_invoice',
    'format_currency',
    'format_date',
    'generate_invoice_report',
    'generate_json_report',
    'generate_template_summary',
    'invoice_file_name',
]
