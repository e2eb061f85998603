"""Invoice Editor - Utilities Package"""

from invoice_editor.utils.decorators import (
    audit_log,
    measure_performance,
    performance_context,
)
from invoice_editor.utils.diagnostics import (
    Category,
    DiagnosticEvent,
    DiagnosticsLog,
)

__all__ = [
    'audit_log',
    'measure_performance',
    'performance_context',
    'Category',
    'DiagnosticEvent',
    'DiagnosticsLog',
]
