"""
Tests for the command-line interface.
"""
import json
import logging
import pytest

from invoice_editor.main import main, parse_assignments


@pytest.fixture
def cli(tmp_path, monkeypatch):
    """Run the CLI against an isolated data directory"""
    for name in ('DATA_DIR', 'INVOICE_PREFIX', 'PERIOD_LENGTH_DAYS', 'LOG_FILE'):
        monkeypatch.delenv(f'INVOICE_EDITOR_{name}', raising=False)
    data_dir = tmp_path / 'data'

    def run(*args):
        return main(['--data-dir', str(data_dir), *args])

    return run


class TestCommands:
    """Test suite for CLI commands"""

    def test_show_creates_invoice(self, cli, capsys):
        assert cli('show') == 0

        out = capsys.readouterr().out
        assert 'INVOICE CORE-' in out
        assert 'MB Core vienas' in out

    def test_show_json(self, cli, capsys):
        cli('show')
        capsys.readouterr()

        assert cli('show', '--json') == 0

        data = json.loads(capsys.readouterr().out)
        assert data['details']['invoiceNumber'].endswith('-01')
        assert data['total'] == 5231.25

    def test_edit_and_services(self, cli, capsys):
        assert cli('edit', '--reverse-charge', 'applicable=false', '--vat-rate', '20') == 0
        assert cli('service', 'add', '--description', 'Workshop',
                   '--quantity', '2', '--unit-price', '100') == 0
        assert cli('service', 'update', '1', 'unit_price=150') == 0
        capsys.readouterr()

        cli('show', '--json')

        data = json.loads(capsys.readouterr().out)
        assert data['services'][1]['amount'] == 300
        assert data['subtotal'] == 5531.25
        assert data['vatAmount'] == 1106.25
        assert data['total'] == 6637.5

    def test_edit_requires_options(self, cli):
        assert cli('edit') == 1

    def test_unknown_field(self, cli, capsys):
        assert cli('edit', '--client', 'nickname=ACME') == 1

        assert 'nickname' in capsys.readouterr().err

    def test_service_index_error(self, cli, capsys):
        assert cli('service', 'remove', '9') == 1

        assert 'out of range' in capsys.readouterr().err

    def test_renumber(self, cli, capsys):
        cli('show')
        capsys.readouterr()
        cli('renumber', '--preview')
        preview = capsys.readouterr().out.strip()

        assert cli('renumber') == 0

        assert capsys.readouterr().out.strip() == preview
        assert preview.endswith('-02')

    def test_template_workflow(self, cli, capsys, tmp_path):
        assert cli('template', 'save', 'Retainer', '--description', 'Monthly fee') == 0
        capsys.readouterr()

        cli('show', '--json')
        invoice = json.loads(capsys.readouterr().out)
        templates = json.loads((tmp_path / 'data' / 'invoice_templates.json').read_text())
        template_id = templates[0]['id']

        assert cli('template', 'list', '--search', 'monthly') == 0
        assert 'Retainer' in capsys.readouterr().out

        assert cli('template', 'use', template_id) == 0
        assert 'from \'Retainer\'' in capsys.readouterr().out

        assert cli('template', 'duplicate', template_id) == 0
        assert 'Retainer (Copy)' in capsys.readouterr().out

        assert cli('template', 'edit', template_id, '--name', 'Renamed') == 0
        assert cli('template', 'delete', template_id) == 0
        capsys.readouterr()

        cli('template', 'list')
        listing = capsys.readouterr().out
        assert 'Renamed' not in listing
        assert 'Retainer (Copy)' in listing
        assert invoice['details']['invoiceNumber'].endswith('-01')

    def test_renumber_fresh_data_dir(self, cli, capsys):
        assert cli('renumber') == 0

        assert capsys.readouterr().out.strip().endswith('-01')

    def test_delete_records_event_only_when_deleted(self, cli, capsys, caplog, tmp_path):
        cli('template', 'save', 'Retainer')
        templates = json.loads((tmp_path / 'data' / 'invoice_templates.json').read_text())

        with caplog.at_level(logging.INFO, logger='invoice_editor.events'):
            assert cli('template', 'delete', 'missing-id') == 0
            assert 'Template deleted' not in caplog.text
            assert 'nothing deleted' in capsys.readouterr().out

            assert cli('template', 'delete', templates[0]['id']) == 0
            assert 'Template deleted' in caplog.text

    def test_template_not_found(self, cli):
        assert cli('template', 'use', 'missing-id') == 1

    def test_backup_round_trip(self, cli, capsys, tmp_path):
        cli('template', 'save', 'Retainer')
        backup = tmp_path / 'backup.json'

        assert cli('backup', 'export', str(backup)) == 0
        assert cli('clear', '--yes') == 0
        assert cli('backup', 'import', str(backup)) == 0

        assert 'Imported 1 template(s)' in capsys.readouterr().out
        assert json.loads(backup.read_text())['lastInvoiceNumber'] == 1

    def test_bad_backup(self, cli, capsys, tmp_path):
        backup = tmp_path / 'backup.json'
        backup.write_text('not json')

        assert cli('backup', 'import', str(backup)) == 1
        assert 'Import failed' in capsys.readouterr().err

    def test_missing_backup_file(self, cli, tmp_path):
        assert cli('backup', 'import', str(tmp_path / 'nope.json')) == 1

    def test_clear_requires_confirmation(self, cli):
        assert cli('clear') == 1

    def test_export(self, cli, capsys, tmp_path):
        out_dir = tmp_path / 'out'

        assert cli('export', '--output', str(out_dir), '--format', 'json') == 0

        files = list(out_dir.iterdir())
        assert len(files) == 1
        assert files[0].name.endswith('_Invoice.json')

    def test_no_command(self, capsys):
        assert main([]) == 1


class TestParseAssignments:

    def test_pairs(self):
        assert parse_assignments(['city=Sofia', 'postal-code=1000', 'note=a=b']) == {
            'city': 'Sofia',
            'postal_code': '1000',
            'note': 'a=b',
        }

    @pytest.mark.parametrize('pair', ['novalue', '=x'])
    def test_invalid(self, pair):
        with pytest.raises(ValueError):
            parse_assignments([pair])
