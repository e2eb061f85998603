"""
Unit tests for storage backends and repositories.
"""
import json
import pytest
from decimal import Decimal

from invoice_editor.core.calculations import recalculate_invoice
from invoice_editor.core.models import Invoice, InvoiceDetails, ServiceItem
from invoice_editor.core.templates import build_template
from invoice_editor.storage.backends import JSONFileStore, MemoryStore, StorageError, StorageKeys
from invoice_editor.storage.repositories import (
    CounterRepository,
    CurrentInvoiceRepository,
    TemplateRepository,
)


@pytest.fixture
def file_store(tmp_path):
    return JSONFileStore(tmp_path / 'data')


@pytest.fixture
def templates(store):
    return TemplateRepository(store)


@pytest.fixture
def template(sample_content):
    return build_template('Retainer', sample_content, 'Monthly work for Client Ltd')


class TestJSONFileStore:
    """Test suite for the on-disk store"""

    def test_round_trip(self, file_store, tmp_path):
        file_store.set_json('current_invoice', {'total': 240, 'items': [1, 2]})

        assert file_store.get_json('current_invoice') == {'total': 240, 'items': [1, 2]}
        assert (tmp_path / 'data' / 'current_invoice.json').exists()

    def test_no_temporary_files_left(self, file_store, tmp_path):
        file_store.set_json('invoice_templates', [])
        file_store.set_json('invoice_templates', [{'id': '1'}])

        names = [p.name for p in (tmp_path / 'data').iterdir()]
        assert names == ['invoice_templates.json']

    def test_missing_key_returns_default(self, file_store):
        assert file_store.get_json('current_invoice') is None
        assert file_store.get_json('invoice_templates', []) == []

    def test_malformed_file_raises(self, file_store, tmp_path):
        (tmp_path / 'data').mkdir()
        (tmp_path / 'data' / 'current_invoice.json').write_text('{not json')

        with pytest.raises(StorageError):
            file_store.get_json('current_invoice')

    def test_invalid_key_rejected(self, file_store):
        with pytest.raises(StorageError):
            file_store.set_json('../escape', 1)

    def test_unwritable_directory(self, tmp_path):
        blocker = tmp_path / 'blocker'
        blocker.write_text('not a directory')

        with pytest.raises(StorageError):
            JSONFileStore(blocker).set_json('current_invoice', {})

    def test_unserializable_value(self, file_store):
        with pytest.raises(StorageError):
            file_store.set_json('app_settings', {'value': object()})

    def test_delete_and_keys(self, file_store):
        file_store.set_json('a', 1)
        file_store.set_json('b', 2)

        file_store.delete('a')
        file_store.delete('never-stored')

        assert file_store.keys() == ['b']


class TestMemoryStore:

    def test_values_are_copies(self, store):
        value = {'names': ['a']}
        store.set_json('k', value)
        value['names'].append('b')

        assert store.get_json('k') == {'names': ['a']}

    def test_corrupted_value_raises(self, store):
        store.set_raw('k', '{oops')

        with pytest.raises(StorageError):
            store.get_json('k')


class TestTemplateRepository:
    """Test suite for template CRUD"""

    def test_save_and_get(self, templates, template):
        templates.save(template)

        loaded = templates.get(template.id)
        assert loaded == template
        assert templates.get('unknown') is None

    def test_save_is_upsert(self, templates, template):
        templates.save(template)
        template.name = 'Renamed'
        templates.save(template)

        stored = templates.list()
        assert len(stored) == 1
        assert stored[0].name == 'Renamed'

    def test_order_preserved(self, templates, sample_content):
        for name in ('First', 'Second', 'Third'):
            templates.save(build_template(name, sample_content))

        assert [t.name for t in templates.list()] == ['First', 'Second', 'Third']

    def test_delete_unknown_is_noop(self, templates, template):
        templates.save(template)

        templates.delete('unknown')

        assert len(templates.list()) == 1

    def test_delete(self, templates, template):
        templates.save(template)

        templates.delete(template.id)

        assert templates.list() == []

    def test_search(self, templates, template, sample_content):
        templates.save(template)
        templates.save(build_template('Audit', sample_content))

        assert [t.name for t in templates.search('client ltd')] == ['Retainer']
        assert [t.name for t in templates.search('AUD')] == ['Audit']

    def test_duplicate_is_saved(self, templates, template):
        templates.save(template)

        copy = templates.duplicate(template)

        assert templates.get(copy.id).name == 'Retainer (Copy)'
        assert len(templates.list()) == 2

    def test_camel_case_storage(self, templates, template, store):
        templates.save(template)

        doc = store.get_json(StorageKeys.TEMPLATES)[0]
        assert 'createdAt' in doc
        assert 'reverseCharge' in doc['invoice']
        assert 'customerVAT' in doc['invoice']['reverseCharge']
        assert 'unitPrice' in doc['invoice']['services'][0]

    def test_malformed_entries_skipped(self, templates, template, store):
        store.set_json(StorageKeys.TEMPLATES, [template.to_json_dict(), {'description': 'no name'}])

        assert [t.id for t in templates.list()] == [template.id]

    def test_non_list_collection(self, templates, store):
        store.set_json(StorageKeys.TEMPLATES, {'unexpected': True})

        assert templates.list() == []


class TestCurrentInvoiceRepository:

    def test_absent(self, store):
        assert CurrentInvoiceRepository(store).load() is None

    def test_round_trip(self, store):
        repo = CurrentInvoiceRepository(store)
        invoice = recalculate_invoice(Invoice(
            details=InvoiceDetails(invoice_number='CORE-2025-11-13-01', invoice_date='2025-11-13'),
            services=[ServiceItem(description='Work', quantity='2', unit_price='5231.25')],
            vat_rate=Decimal('21'),
        ))

        repo.save(invoice)

        assert repo.load() == invoice

    def test_malformed_falls_back(self, store):
        store.set_json(StorageKeys.CURRENT_INVOICE, {'services': 'not a list'})

        assert CurrentInvoiceRepository(store).load() is None

    def test_exact_decimal_round_trip(self, store):
        """Test that digits beyond float precision survive save and load"""
        repo = CurrentInvoiceRepository(store)
        price = Decimal('0.12345678901234567891')
        repo.save(recalculate_invoice(Invoice(
            services=[ServiceItem(quantity='1', unit_price=price)],
        )))

        loaded = repo.load()

        assert loaded.services[0].unit_price == price
        assert loaded.services[0].amount == price
        assert loaded.total == price

    def test_exact_decimal_round_trip_on_disk(self, file_store):
        repo = CurrentInvoiceRepository(file_store)
        price = Decimal('12345.678901234567891')
        repo.save(Invoice(services=[ServiceItem(unit_price=price)]))

        assert repo.load().services[0].unit_price == price

    def test_out_of_range_value_still_persists(self, store):
        repo = CurrentInvoiceRepository(store)
        invoice = recalculate_invoice(Invoice(
            services=[ServiceItem(quantity='1e5000', unit_price='1')],
        ))

        repo.save(invoice)

        assert repo.load().services[0].quantity == 0

    def test_large_values_round_trip(self, store):
        repo = CurrentInvoiceRepository(store)
        invoice = recalculate_invoice(Invoice(
            services=[ServiceItem(quantity='123456789012345', unit_price='1000000')],
            vat_rate=Decimal('20'),
        ))

        repo.save(invoice)

        loaded = repo.load()
        assert loaded == invoice
        assert loaded.total == Decimal('148148146814814000000')

    def test_stored_json_uses_numbers(self, store):
        CurrentInvoiceRepository(store).save(Invoice(subtotal=Decimal('12.5')))

        raw = json.loads(store._data[StorageKeys.CURRENT_INVOICE])
        assert raw['subtotal'] == 12.5
        assert raw['reverseCharge']['applicable'] is False

    def test_unrepresentable_float_stored_as_text(self, store):
        CurrentInvoiceRepository(store).save(Invoice(vat_rate='19.0000000000000000001'))

        raw = json.loads(store._data[StorageKeys.CURRENT_INVOICE])
        assert raw['vatRate'] == '19.0000000000000000001'


class TestCounterRepository:

    def test_missing_is_zero(self, counter):
        assert counter.get() == 0

    @pytest.mark.parametrize('stored, expected', [
        (7, 7),
        ('12', 12),
        (3.0, 3),
        ('abc', 0),
        (-4, 0),
        (True, 0),
        ([1], 0),
    ])
    def test_tolerant_read(self, counter, store, stored, expected):
        store.set_json(StorageKeys.LAST_INVOICE_NUMBER, stored)

        assert counter.get() == expected

    def test_set(self, counter):
        counter.set(41)

        assert counter.get() == 41
