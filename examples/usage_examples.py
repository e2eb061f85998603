"""
Example usage of Invoice Editor.
Demonstrates the library API without the command line.
"""
from decimal import Decimal
from pathlib import Path

from invoice_editor import (
    InvoiceNumberService,
    InvoiceSession,
    JSONFileStore,
    MemoryStore,
    export_data,
    import_data,
)
from invoice_editor.reports import export_invoice, generate_invoice_report
from invoice_editor.storage import CounterRepository
from invoice_editor.utils import Category, DiagnosticsLog


def build_session(store):
    """Wire a session with its numbering service"""
    numbering = InvoiceNumberService(CounterRepository(store), prefix='CORE')
    return InvoiceSession(store, numbering, diagnostics=DiagnosticsLog())


def example_edit_invoice():
    """Example: Edit the current invoice and watch totals follow"""
    print("Example 1: Editing an Invoice")
    print("-" * 50)

    session = build_session(MemoryStore())

    # Switch from reverse charge to standard VAT
    session.update_reverse_charge(applicable=False)
    session.set_vat_rate(Decimal('21'))
    invoice = session.add_service(description='Workshop', quantity=2, unit_price=750)

    print(f"Invoice {invoice.details.invoice_number}")
    print(f"Subtotal: {invoice.subtotal:.2f}")
    print(f"VAT:      {invoice.vat_amount:.2f}")
    print(f"Total:    {invoice.total:.2f}")
    print()


def example_templates():
    """Example: Save a template and derive a new invoice from it"""
    print("Example 2: Templates")
    print("-" * 50)

    session = build_session(MemoryStore())
    session.update_client(name='ACME Ltd', city='Riga', country='Latvia')
    template = session.save_as_template('ACME monthly', 'Fixed fee retainer')

    invoice = session.apply_template(template)

    print(f"Template '{template.name}' -> invoice {invoice.details.invoice_number}")
    print(f"Templates stored: {len(session.templates.list())}")
    print()


def example_persistence_and_backup():
    """Example: Persist to disk and move data with a backup"""
    print("Example 3: Persistence and Backup")
    print("-" * 50)

    store = JSONFileStore(Path('invoice_data/'))
    session = build_session(store)
    session.save_as_template('Default')

    backup = export_data(store)
    restored = MemoryStore()
    import_data(restored, backup)

    print(f"Backup size: {len(backup)} bytes")
    print(f"Counter after restore: {CounterRepository(restored).get()}")
    print()


def example_documents():
    """Example: Render and export the invoice document"""
    print("Example 4: Documents")
    print("-" * 50)

    session = build_session(MemoryStore())

    print(generate_invoice_report(session.invoice))
    path = export_invoice(session.invoice, Path('exports/'), 'txt')
    print(f"\nWritten to {path}")
    print()


def example_diagnostics():
    """Example: Inspect the diagnostics trail"""
    print("Example 5: Diagnostics")
    print("-" * 50)

    session = build_session(MemoryStore())
    session.save_as_template('Retainer')

    stats = session.diagnostics.statistics()
    print(f"Events: {stats['total']}")
    for event in session.diagnostics.entries(category=Category.NUMBERING):
        print(f"  {event.timestamp:%H:%M:%S} {event.message} {event.data}")
    print()


if __name__ == '__main__':
    print("Invoice Editor - Usage Examples")
    print("=" * 50)
    print()

    example_edit_invoice()
    example_templates()
    example_diagnostics()

    # These write to the working directory
    # example_persistence_and_backup()
    # example_documents()
