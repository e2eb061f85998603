"""
Invoice Editor - Main Entry Point
Command-line interface for editing invoices and managing templates.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from invoice_editor.config import Settings, load_settings
from invoice_editor.core.numbering import InvoiceNumberService
from invoice_editor.core.templates import update_template
from invoice_editor.editing.session import InvoiceSession
from invoice_editor.reports.generator import (
    ExportError,
    export_invoice,
    generate_invoice_report,
    generate_json_report,
    generate_template_summary,
)
from invoice_editor.storage.backends import JSONFileStore, KeyValueStore, StorageError
from invoice_editor.storage.backup import (
    ImportDataError,
    clear_all_data,
    export_data,
    import_data,
)
from invoice_editor.storage.repositories import CounterRepository
from invoice_editor.utils.diagnostics import Category, DiagnosticsLog


# Configure logging
def setup_logging(verbose: bool = False, log_file: Optional[Path] = None):
    """Configure application logging"""
    level = logging.DEBUG if verbose else logging.WARNING

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


class Application:
    """Composition root: owns the store and every service built on it"""

    def __init__(self, settings: Settings, store: Optional[KeyValueStore] = None):
        self.settings = settings
        self.store = store if store is not None else JSONFileStore(settings.data_dir)
        self.diagnostics = DiagnosticsLog(max_entries=settings.diagnostics_max_entries)
        self.numbering = InvoiceNumberService(
            CounterRepository(self.store),
            prefix=settings.invoice_prefix,
            diagnostics=self.diagnostics,
        )
        self.session = InvoiceSession(
            self.store,
            self.numbering,
            diagnostics=self.diagnostics,
            period_length_days=settings.period_length_days,
        )
        self.templates = self.session.templates


def parse_assignments(pairs: List[str]) -> dict:
    """Turn ['city=Vilnius', 'postal-code=LT-01104'] into field updates"""
    fields = {}
    for pair in pairs:
        name, sep, value = pair.partition('=')
        name = name.strip().replace('-', '_')
        if not sep or not name:
            raise ValueError(f"Expected FIELD=VALUE, got {pair!r}")
        fields[name] = value
    return fields


def print_totals(app: Application):
    invoice = app.session.invoice
    currency = invoice.payment.currency
    print(f"Invoice Number: {invoice.details.invoice_number}")
    print(f"Subtotal:       {currency} {invoice.subtotal:.2f}")
    print(f"VAT:            {currency} {invoice.vat_amount:.2f}")
    print(f"Total:          {currency} {invoice.total:.2f}")


def cmd_show(app: Application, args) -> int:
    invoice = app.session.invoice
    if args.json:
        print(generate_json_report(invoice))
    else:
        print(generate_invoice_report(invoice))
    return 0


def cmd_new(app: Application, args) -> int:
    app.session.new_invoice()
    print_totals(app)
    return 0


def cmd_renumber(app: Application, args) -> int:
    if args.preview:
        print(app.numbering.preview_next_number())
        return 0

    invoice = app.session.renumber()
    print(invoice.details.invoice_number)
    return 0


def cmd_edit(app: Application, args) -> int:
    session = app.session
    sections = [
        ('company', args.company, session.update_company),
        ('client', args.client, session.update_client),
        ('details', args.details, session.update_details),
        ('payment', args.payment, session.update_payment),
        ('reverse charge', args.reverse_charge, session.update_reverse_charge),
    ]

    changed = False
    for _, pairs, update in sections:
        if pairs:
            update(**parse_assignments(pairs))
            changed = True

    if args.vat_rate is not None:
        session.set_vat_rate(args.vat_rate)
        changed = True
    if args.footer is not None:
        session.set_footer_note(args.footer)
        changed = True

    if not changed:
        logging.error("Nothing to edit; pass at least one option")
        return 1

    print_totals(app)
    return 0


def cmd_service(app: Application, args) -> int:
    session = app.session

    if args.action == 'add':
        session.add_service(
            description=args.description,
            quantity=args.quantity,
            unit_price=args.unit_price,
            additional_info=args.info,
        )
    elif args.action == 'update':
        session.update_service(args.index, **parse_assignments(args.fields))
    elif args.action == 'remove':
        session.remove_service(args.index)
    else:
        for index, service in enumerate(session.invoice.services):
            print(f"[{index}] {service.description}: "
                  f"{service.quantity} x {service.unit_price:.2f} = {service.amount:.2f}")
        return 0

    print_totals(app)
    return 0


def cmd_template(app: Application, args) -> int:
    templates = app.templates

    if args.action == 'list':
        found = templates.search(args.search) if args.search else templates.list()
        print(generate_template_summary(found))
        return 0

    if args.action == 'save':
        template = app.session.save_as_template(args.name, args.description)
        print(f"Saved template '{template.name}' ({template.id})")
        return 0

    template = templates.get(args.template_id)

    if args.action == 'delete':
        if template is None:
            print(f"No template with id {args.template_id}; nothing deleted")
            return 0

        templates.delete(args.template_id)
        app.diagnostics.info(Category.TEMPLATE, 'Template deleted',
                             {'templateId': template.id, 'templateName': template.name})
        print(f"Deleted template '{template.name}'")
        return 0

    if template is None:
        logging.error(f"Template not found: {args.template_id}")
        return 1

    if args.action == 'use':
        invoice = app.session.apply_template(template)
        print(f"Created invoice {invoice.details.invoice_number} from '{template.name}'")
    elif args.action == 'duplicate':
        copy = templates.duplicate(template)
        print(f"Created '{copy.name}' ({copy.id})")
    elif args.action == 'edit':
        content = app.session.invoice.content() if args.from_current else None
        edited = update_template(template, name=args.name,
                                 description=args.description, content=content)
        templates.save(edited)
        print(f"Updated template '{edited.name}'")
    return 0


def cmd_backup(app: Application, args) -> int:
    if args.action == 'export':
        data = export_data(app.store)
        if args.file == '-':
            print(data)
        else:
            Path(args.file).write_text(data, encoding='utf-8')
            logging.info(f"Backup written: {args.file}")
        return 0

    try:
        text = sys.stdin.read() if args.file == '-' else Path(args.file).read_text(encoding='utf-8')
    except OSError as e:
        raise ImportDataError(f"Cannot read backup file {args.file}: {e}") from e

    document = import_data(app.store, text)
    print(f"Imported {len(document.templates or [])} template(s)")
    return 0


def cmd_export(app: Application, args) -> int:
    path = export_invoice(app.session.invoice, args.output, args.format)
    print(f"Invoice exported: {path}")
    return 0


def cmd_clear(app: Application, args) -> int:
    if not args.yes:
        logging.error("Refusing to clear all data without --yes")
        return 1

    clear_all_data(app.store)
    print("All invoice data cleared")
    return 0


COMMANDS = {
    'show': cmd_show,
    'new': cmd_new,
    'renumber': cmd_renumber,
    'edit': cmd_edit,
    'service': cmd_service,
    'template': cmd_template,
    'backup': cmd_backup,
    'export': cmd_export,
    'clear': cmd_clear,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='invoice-editor',
        description='Invoice Editor - Edit invoices, manage templates and issue invoice numbers'
    )
    parser.add_argument('--data-dir', '-d', help='Directory holding stored data')
    parser.add_argument('--verbose', '-v', action='store_true', help='Verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to execute')

    show_parser = subparsers.add_parser('show', help='Show the current invoice')
    show_parser.add_argument('--json', action='store_true', help='Print stored JSON instead of a document')

    subparsers.add_parser('new', help='Start a new invoice from the default content')

    renumber_parser = subparsers.add_parser('renumber', help='Issue a new number for the current invoice')
    renumber_parser.add_argument('--preview', action='store_true', help='Only show the next number')

    edit_parser = subparsers.add_parser('edit', help='Edit fields of the current invoice')
    for option in ('company', 'client', 'details', 'payment', 'reverse-charge'):
        edit_parser.add_argument(f'--{option}', nargs='+', metavar='FIELD=VALUE', default=[],
                                 help=f'Set {option} fields')
    edit_parser.add_argument('--vat-rate', help='VAT rate in percent')
    edit_parser.add_argument('--footer', help='Footer note')

    service_parser = subparsers.add_parser('service', help='Manage line items')
    service_sub = service_parser.add_subparsers(dest='action', required=True)
    service_sub.add_parser('list', help='List line items')
    add_parser = service_sub.add_parser('add', help='Append a line item')
    add_parser.add_argument('--description', default='New Service')
    add_parser.add_argument('--quantity', default='1')
    add_parser.add_argument('--unit-price', default='0')
    add_parser.add_argument('--info', help='Additional information line')
    update_parser = service_sub.add_parser('update', help='Change a line item')
    update_parser.add_argument('index', type=int)
    update_parser.add_argument('fields', nargs='+', metavar='FIELD=VALUE')
    remove_parser = service_sub.add_parser('remove', help='Remove a line item')
    remove_parser.add_argument('index', type=int)

    template_parser = subparsers.add_parser('template', help='Manage templates')
    template_sub = template_parser.add_subparsers(dest='action', required=True)
    list_parser = template_sub.add_parser('list', help='List templates')
    list_parser.add_argument('--search', '-s', help='Filter by name or description')
    save_parser = template_sub.add_parser('save', help='Save the current invoice as a template')
    save_parser.add_argument('name')
    save_parser.add_argument('--description')
    for action, help_text in (('use', 'Create a new invoice from a template'),
                              ('delete', 'Delete a template'),
                              ('duplicate', 'Copy a template')):
        action_parser = template_sub.add_parser(action, help=help_text)
        action_parser.add_argument('template_id')
    edit_template_parser = template_sub.add_parser('edit', help='Rename or refresh a template')
    edit_template_parser.add_argument('template_id')
    edit_template_parser.add_argument('--name')
    edit_template_parser.add_argument('--description')
    edit_template_parser.add_argument('--from-current', action='store_true',
                                      help='Replace content with the current invoice')

    backup_parser = subparsers.add_parser('backup', help='Export or import all data')
    backup_parser.add_argument('action', choices=['export', 'import'])
    backup_parser.add_argument('file', help="Backup file path, '-' for stdout/stdin")

    export_parser = subparsers.add_parser('export', help='Write the current invoice document')
    export_parser.add_argument('--output', '-o', default='.', help='Output directory')
    export_parser.add_argument('--format', '-f', choices=['txt', 'json'], default='txt')

    clear_parser = subparsers.add_parser('clear', help='Delete all stored data')
    clear_parser.add_argument('--yes', action='store_true', help='Confirm deletion')

    return parser


def main(argv: Optional[List[str]] = None, store: Optional[KeyValueStore] = None) -> int:
    """Main entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    try:
        settings = load_settings()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    if args.data_dir:
        settings.data_dir = Path(args.data_dir)
    if args.verbose:
        settings.verbose = True

    # Setup logging
    setup_logging(settings.verbose, settings.log_file)

    app = Application(settings, store=store)

    # Execute command
    try:
        return COMMANDS[args.command](app, args)
    except KeyboardInterrupt:
        logging.info("Operation cancelled by user")
        return 130
    except ImportDataError as e:
        print(f"Import failed, nothing was changed: {e}", file=sys.stderr)
        return 1
    except StorageError as e:
        print(f"Storage error: {e}. Your last changes may not be saved.", file=sys.stderr)
        return 1
    except ExportError as e:
        print(f"Export failed: {e}", file=sys.stderr)
        return 1
    except (ValueError, IndexError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except Exception as e:
        logging.exception(f"Unexpected error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
