"""Invoice Editor - Storage Package"""

from invoice_editor.storage.backends import (
    JSONFileStore,
    KeyValueStore,
    MemoryStore,
    StorageError,
    StorageKeys,
)
from invoice_editor.storage.repositories import (
    CounterRepository,
    CurrentInvoiceRepository,
    TemplateRepository,
)
from invoice_editor.storage.backup import (
    ImportDataError,
    clear_all_data,
    export_data,
    import_data,
)

__all__ = [
    'JSONFileStore',
    'KeyValueStore',
    'MemoryStore',
    'StorageError',
    'StorageKeys',
    'CounterRepository',
    'CurrentInvoiceRepository',
    'TemplateRepository',
    'ImportDataError',
    'clear_all_data',
    'export_data',
    'import_data',
]
