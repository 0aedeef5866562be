"""
Tests for the command line interface.
"""
import json

import pytest
from typer.testing import CliRunner

from ..app import app
from .samples import make_document, statement_document


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def statement_pdf(tmp_path):
    path = tmp_path / "statement.pdf"
    path.write_bytes(statement_document())
    return path


class TestParseCommand:

    def test_writes_json(self, runner, statement_pdf, tmp_path):
        out = tmp_path / "statement.json"
        result = runner.invoke(app, ["parse", str(statement_pdf), "--out", str(out)])

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text())
        assert data["period"] == "JANUARI 2024"
        assert len(data["transactions"]) == 4

    def test_debug_dump(self, runner, statement_pdf, tmp_path):
        dump_dir = tmp_path / "dump"
        result = runner.invoke(app, ["parse", str(statement_pdf), "--out", str(tmp_path / "o.json"),
                                     "--debug-dump", str(dump_dir)])

        assert result.exit_code == 0, result.output
        assert (dump_dir / "extract.txt").exists()
        assert (dump_dir / "chunks.txt").exists()

    def test_missing_file(self, runner, tmp_path):
        result = runner.invoke(app, ["parse", str(tmp_path / "missing.pdf")])
        assert result.exit_code == 1

    def test_no_transactions(self, runner, tmp_path):
        path = tmp_path / "empty.pdf"
        path.write_bytes(make_document(["NOTHING TO SEE"]))

        result = runner.invoke(app, ["parse", str(path), "--out", str(tmp_path / "o.json")])
        assert result.exit_code == 1

    def test_unknown_template(self, runner, statement_pdf):
        result = runner.invoke(app, ["parse", str(statement_pdf), "--template", "nope"])
        assert result.exit_code == 1


class TestDetectCommand:

    def test_detects(self, runner, statement_pdf):
        result = runner.invoke(app, ["detect", str(statement_pdf)])

        assert result.exit_code == 0
        assert "bca_mutasi_v1" in result.output

    def test_no_match(self, runner, tmp_path):
        path = tmp_path / "other.pdf"
        path.write_bytes(make_document(["INVOICE"]))

        result = runner.invoke(app, ["detect", str(path)])
        assert result.exit_code == 1


class TestValidateCommand:

    def test_valid(self, runner, statement_pdf, tmp_path):
        out = tmp_path / "statement.json"
        runner.invoke(app, ["parse", str(statement_pdf), "--out", str(out)])

        result = runner.invoke(app, ["validate", str(out)])
        assert result.exit_code == 0
        assert "Transactions: 4" in result.output

    def test_invalid(self, runner, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"period": "X"}))

        result = runner.invoke(app, ["validate", str(path)])
        assert result.exit_code == 1
