"""
Decorators for audit logging and performance monitoring.
"""
import functools
import logging
import time
from contextlib import contextmanager
from datetime import datetime
from typing import Callable

# Audit and performance loggers are kept apart from the module loggers
audit_logger = logging.getLogger('invoice_editor.audit')
perf_logger = logging.getLogger('invoice_editor.performance')


def _describe_target(args, kwargs) -> str:
    """Find the invoice or template an audited call operates on"""
    for value in list(args) + list(kwargs.values()):
        details = getattr(value, 'details', None)
        if details is not None and hasattr(details, 'invoice_number'):
            return f"Invoice: {details.invoice_number or value.id}"
        if hasattr(value, 'name') and hasattr(value, 'invoice'):
            return f"Template: {value.name} ({value.id})"
    return "Target: N/A"


def audit_log(func: Callable) -> Callable:
    """
    Decorator that logs calls that change persisted state.

    Usage:
        @audit_log
        def apply_template(self, template):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        func_name = func.__qualname__
        target = _describe_target(args, kwargs)

        audit_logger.info(
            f"CALL | {func_name} | {target} | "
            f"Timestamp: {datetime.now().isoformat()}"
        )

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            audit_logger.error(f"FAILURE | {func_name} | {target} | Error: {str(e)}")
            raise

        audit_logger.info(f"SUCCESS | {func_name} | {target}")
        return result

    return wrapper


def measure_performance(func: Callable) -> Callable:
    """
    Decorator to measure and log function execution time.

    Usage:
        @measure_performance
        def recalculate_invoice(invoice):
            ...
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()

        try:
            result = func(*args, **kwargs)
        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            perf_logger.warning(
                f"{func.__qualname__} failed after {elapsed_ms:.2f}ms: {str(e)}"
            )
            raise

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        perf_logger.debug(f"{func.__qualname__} completed in {elapsed_ms:.2f}ms")
        return result

    return wrapper


@contextmanager
def performance_context(operation_name: str):
    """
    Context manager for measuring code block performance.

    Usage:
        with performance_context("backup import"):
            import_data(store, text)
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = (time.perf_counter() - start) * 1000
        perf_logger.debug(f"{operation_name}: {elapsed:.2f}ms")
