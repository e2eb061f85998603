"""
User-facing backup of all persisted data.

The backup is a JSON document with the keys templates, currentInvoice,
lastInvoiceNumber and version. Import is all-or-nothing: the whole document
is parsed and validated before anything is written.
"""
import json
import logging

from pydantic import ValidationError

from invoice_editor.core.models import BACKUP_VERSION, BackupDocument
from invoice_editor.storage.backends import KeyValueStore, StorageKeys
from invoice_editor.storage.repositories import (
    CounterRepository,
    CurrentInvoiceRepository,
    TemplateRepository,
)
from invoice_editor.utils.decorators import performance_context


logger = logging.getLogger(__name__)


class ImportDataError(Exception):
    """Raised when a backup document cannot be imported"""
    pass


def export_data(store: KeyValueStore) -> str:
    """
    Serialize templates, current invoice and counter to a backup document.

    Returns:
        Indented JSON text
    """
    current = CurrentInvoiceRepository(store).load()
    document = {
        'templates': [t.to_json_dict() for t in TemplateRepository(store).list()],
        'currentInvoice': current.to_json_dict() if current is not None else None,
        'lastInvoiceNumber': CounterRepository(store).get(),
        'version': BACKUP_VERSION,
    }
    return json.dumps(document, indent=2)


def parse_backup(text: str) -> BackupDocument:
    """
    Parse and validate a backup document without touching storage.

    Raises:
        ImportDataError: If the text is not valid JSON or holds invalid records
    """
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportDataError(f"Backup is not valid JSON: {str(e)}") from e

    if not isinstance(data, dict):
        raise ImportDataError('Backup must be a JSON object')

    try:
        return BackupDocument.model_validate(data)
    except ValidationError as e:
        raise ImportDataError(f"Backup contains invalid records: {str(e)}") from e


def import_data(store: KeyValueStore, text: str) -> BackupDocument:
    """
    Replace persisted collections with the content of a backup.

    Only keys present in the document are applied; the version key is
    informational and not enforced.

    Raises:
        ImportDataError: On malformed input; nothing is written in that case
        StorageError: If writing to the store fails
    """
    with performance_context('backup import'):
        document = parse_backup(text)

        if document.version != BACKUP_VERSION:
            logger.warning(f"Importing backup version {document.version!r}, "
                           f"expected {BACKUP_VERSION!r}")

        if document.templates is not None:
            TemplateRepository(store).replace_all(document.templates)
        if document.current_invoice is not None:
            CurrentInvoiceRepository(store).save(document.current_invoice)
        if document.last_invoice_number is not None:
            CounterRepository(store).set(document.last_invoice_number)

    logger.info(
        f"Imported backup: {len(document.templates or [])} templates, "
        f"current invoice {'present' if document.current_invoice else 'absent'}"
    )
    return document


def clear_all_data(store: KeyValueStore) -> None:
    """Remove every logical key, including the numbering counter"""
    for key in StorageKeys.ALL:
        store.delete(key)
    logger.info('All stored data cleared')
