"""
Repositories for templates, the current invoice and the numbering counter.

Absent or structurally malformed stored data falls back to defaults with a
warning; a store that cannot be read at all raises StorageError.
"""
import logging
from typing import List, Optional

from pydantic import ValidationError

from invoice_editor.core.models import Invoice, InvoiceTemplate
from invoice_editor.core.templates import duplicate_template
from invoice_editor.storage.backends import KeyValueStore, StorageKeys


class TemplateRepository:
    """CRUD over named invoice templates"""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    def doc_to_template(self, doc: dict) -> Optional[InvoiceTemplate]:
        try:
            return InvoiceTemplate.model_validate(doc)
        except ValidationError as e:
            self.logger.warning('Skipping malformed stored template: %s', e)
            return None

    def _load_all(self) -> List[InvoiceTemplate]:
        docs = self.store.get_json(StorageKeys.TEMPLATES, [])
        if not isinstance(docs, list):
            self.logger.warning('Stored template collection is not a list, ignoring it')
            return []

        templates = []
        for doc in docs:
            template = self.doc_to_template(doc)
            if template is not None:
                templates.append(template)
        return templates

    def _write_all(self, templates: List[InvoiceTemplate]) -> None:
        self.store.set_json(StorageKeys.TEMPLATES, [t.to_json_dict() for t in templates])

    def list(self) -> List[InvoiceTemplate]:
        return self._load_all()

    def get(self, template_id: str) -> Optional[InvoiceTemplate]:
        for template in self._load_all():
            if template.id == template_id:
                return template
        return None

    def search(self, query: str) -> List[InvoiceTemplate]:
        """Templates whose name or description contains the query"""
        needle = query.strip().lower()
        return [
            t for t in self._load_all()
            if needle in t.name.lower() or needle in (t.description or '').lower()
        ]

    def save(self, template: InvoiceTemplate) -> None:
        """Insert, or replace the stored template with the same id"""
        templates = self._load_all()

        for index, existing in enumerate(templates):
            if existing.id == template.id:
                templates[index] = template
                break
        else:
            templates.append(template)

        self._write_all(templates)

    def delete(self, template_id: str) -> None:
        templates = self._load_all()
        remaining = [t for t in templates if t.id != template_id]
        if len(remaining) != len(templates):
            self._write_all(remaining)

    def duplicate(self, template: InvoiceTemplate) -> InvoiceTemplate:
        copy = duplicate_template(template)
        self.save(copy)
        return copy

    def replace_all(self, templates: List[InvoiceTemplate]) -> None:
        self._write_all(templates)

    def clear(self) -> None:
        self.store.delete(StorageKeys.TEMPLATES)


class CurrentInvoiceRepository:
    """Snapshot of the invoice being edited"""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    def load(self) -> Optional[Invoice]:
        doc = self.store.get_json(StorageKeys.CURRENT_INVOICE)
        if doc is None:
            return None

        try:
            return Invoice.model_validate(doc)
        except ValidationError as e:
            self.logger.warning('Stored current invoice is malformed, ignoring it: %s', e)
            return None

    def save(self, invoice: Invoice) -> None:
        self.store.set_json(StorageKeys.CURRENT_INVOICE, invoice.to_json_dict())

    def clear(self) -> None:
        self.store.delete(StorageKeys.CURRENT_INVOICE)


class CounterRepository:
    """The last issued invoice sequence number"""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.logger = logging.getLogger(self.__class__.__name__)

    def get(self) -> int:
        value = self.store.get_json(StorageKeys.LAST_INVOICE_NUMBER, 0)

        if isinstance(value, bool):
            value = None
        elif isinstance(value, str):
            value = int(value) if value.strip().isdigit() else None
        elif isinstance(value, float) and value.is_integer():
            value = int(value)

        if not isinstance(value, int) or value < 0:
            self.logger.warning('Stored invoice counter is malformed, starting from 0')
            return 0
        return value

    def set(self, value: int) -> None:
        self.store.set_json(StorageKeys.LAST_INVOICE_NUMBER, int(value))

    def clear(self) -> None:
        self.store.delete(StorageKeys.LAST_INVOICE_NUMBER)
