"""
Tests for template loading, anchors and detection.
"""
import pytest

from ..core.anchors import find_anchor, find_anchors_in_text
from ..core.detectors import TemplateDetector, detect_template, get_layout
from .samples import make_document, statement_document


class TestLayout:

    def test_bundled_template(self):
        layout = get_layout("bca_mutasi_v1")

        assert layout.template_id == "bca_mutasi_v1"
        assert len(layout.months) == 12
        assert layout.month_number("mei") == 5
        assert layout.month_number("DESEMBER") == 12
        assert layout.month_number("MAY") is None
        assert layout.transactions.credit_marker == "CR"
        assert "SALDO AWAL" in layout.transactions.header_keywords

    def test_unknown_template(self):
        with pytest.raises(ValueError, match="Template not found"):
            get_layout("unknown_layout")

    def test_broken_templates_are_skipped(self, tmp_path):
        (tmp_path / "broken.yaml").write_text("template_id: [unclosed\n")
        (tmp_path / "incomplete.yaml").write_text("template_id: incomplete\n")
        (tmp_path / "custom.yaml").write_text(
            "template_id: custom\n"
            "page_match:\n  must_contain: ['MUTASI REKENING']\n"
            "months:\n  JANUARY: 1\n"
        )

        detector = TemplateDetector(tmp_path)
        assert detector.list_templates() == ["custom"]
        assert detector.detect_text("laporan MUTASI REKENING") == "custom"

    def test_missing_templates_dir(self, tmp_path):
        detector = TemplateDetector(tmp_path / "nowhere")
        assert detector.list_templates() == []


class TestAnchors:

    def test_exact_match(self):
        match = find_anchor("REKENING TAHAPAN PERIODE : JANUARI", "periode")

        assert match.confidence == 100.0
        assert match.position == 17

    def test_fuzzy_match(self):
        match = find_anchor("TANGGAL KETERANGAN SALD0 AWAL 1.000,00", "SALDO AWAL", 85)

        assert match is not None
        assert match.confidence >= 85

    def test_no_match(self):
        assert find_anchor("INVOICE TOTAL", "SALDO AWAL", 85) is None
        assert find_anchor("", "SALDO AWAL") is None

    def test_find_many(self):
        found = find_anchors_in_text("PERIODE X SALDO AWAL", ["PERIODE", "SALDO AWAL", "KETERANGAN"])

        assert set(found) == {"PERIODE", "SALDO AWAL"}


class TestDetectTemplate:

    def test_detects_statement(self):
        assert detect_template(statement_document()) == "bca_mutasi_v1"

    def test_rejects_other_documents(self):
        assert detect_template(make_document(["INVOICE", "TOTAL DUE 100.00"])) is None

    def test_rejects_documents_without_text(self):
        assert detect_template(b"%PDF-1.4\n%%EOF\n") is None
