"""Invoice numbering service for sequential, date-stamped number generation."""
import logging
import threading
from datetime import date
from typing import Callable, Optional

from invoice_editor.utils.diagnostics import Category, DiagnosticsLog


logger = logging.getLogger(__name__)

DEFAULT_PREFIX = 'CORE'


def format_invoice_number(prefix: str, day: date, sequence: int) -> str:
    """
    Format PREFIX-YYYY-MM-DD-NN.

    The sequence is zero-padded to two digits; larger values simply grow
    (e.g. CORE-2025-11-13-100).
    """
    return f"{prefix}-{day.year:04d}-{day.month:02d}-{day.day:02d}-{sequence:02d}"


class InvoiceNumberService:
    """
    Issues invoice numbers from a persisted running counter.

    The counter is global: it is NOT reset when the calendar day changes, so
    the date stamp and the sequence are independent. Calls are serialized
    with a lock owned by the service, since read-increment-write on the
    counter must never interleave.

    Args:
        counter: Object with get() -> int and set(int), usually a
            CounterRepository
        prefix: Organization code at the start of every number
        clock: Callable returning today's date
        diagnostics: Optional event sink
    """

    def __init__(self, counter, prefix: str = DEFAULT_PREFIX,
                 clock: Callable[[], date] = date.today,
                 diagnostics: Optional[DiagnosticsLog] = None):
        self.counter = counter
        self.prefix = prefix
        self.clock = clock
        self.diagnostics = diagnostics
        self._lock = threading.Lock()

    def next_invoice_number(self, today: Optional[date] = None) -> str:
        """
        Consume one counter value and return the formatted number.

        Raises:
            StorageError: If the new counter value cannot be persisted; no
                number is issued in that case
        """
        day = today or self.clock()

        with self._lock:
            sequence = self.counter.get() + 1
            self.counter.set(sequence)

        number = format_invoice_number(self.prefix, day, sequence)

        logger.info(f"Issued invoice number {number}")
        if self.diagnostics is not None:
            self.diagnostics.info(Category.NUMBERING, 'Invoice number issued',
                                  {'invoiceNumber': number, 'sequence': sequence})
        return number

    def preview_next_number(self, today: Optional[date] = None) -> str:
        """Preview what the next invoice number would look like without incrementing."""
        day = today or self.clock()
        with self._lock:
            sequence = self.counter.get() + 1
        return format_invoice_number(self.prefix, day, sequence)

    @staticmethod
    def parse_sequence(invoice_number: str) -> Optional[int]:
        """Sequence embedded in a generated number, or None if not generated here"""
        head, _, tail = invoice_number.rpartition('-')
        if not head or not tail.isdigit():
            return None
        return int(tail)
