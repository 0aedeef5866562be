"""
Tests for chunk segmentation and per-chunk transaction extraction.
"""
import pytest
from datetime import date

from ..core.detectors import get_layout
from ..core.runner import aggregate, parse_fields
from ..core.tables import Chunk, extract_transaction, segment


class TestSegment:

    def test_splits_on_date_stamps(self):
        chunks = segment("01/02 DESC 100,00 02/02 DESC2 50,00")

        assert len(chunks) == 2
        assert chunks[0].text.startswith("01/02 ")
        assert chunks[1].text.startswith("02/02 ")
        assert (chunks[0].day, chunks[0].month) == ("01", "02")
        assert (chunks[1].day, chunks[1].month) == ("02", "02")

    def test_normalizes_whitespace_first(self):
        chunks = segment("01/02\n  DESC\t100,00\n\n02/02\tDESC2   50,00")

        assert [c.text for c in chunks] == ["01/02 DESC 100,00 ", "02/02 DESC2 50,00"]

    def test_preamble_is_not_a_chunk(self):
        chunks = segment("REKENING TAHAPAN 05/01 TRANSFER 500.000,00")

        assert chunks == [Chunk("05/01 TRANSFER 500.000,00", "05", "01")]

    def test_stamp_needs_trailing_space(self):
        assert segment("TRANSFER 100,00 05/01") == []

    @pytest.mark.parametrize("stamp", ["00/01", "32/01", "05/00", "05/13"])
    def test_rejects_impossible_stamps(self, stamp):
        assert segment(f"{stamp} TRANSFER 100,00") == []

    @pytest.mark.parametrize("header", ["TANGGAL", "KETERANGAN", "MUTASI", "SALDO AWAL", "keterangan"])
    def test_rejects_header_chunks(self, header):
        chunks = segment(f"01/01 {header} 10.000,00 02/01 TRANSFER 500,00")

        assert len(chunks) == 1
        assert chunks[0].text.startswith("02/01")

    def test_keeps_document_order(self):
        chunks = segment("20/01 B 1,00 05/01 A 1,00 31/01 C 1,00")

        assert [c.day for c in chunks] == ["20", "05", "31"]


class TestExtractTransaction:

    def test_debit_without_balance(self):
        transaction = extract_transaction(Chunk("05/01 TRANSFER 500.000,00", "05", "01"), 2024)

        assert transaction.transaction_date == date(2024, 1, 5)
        assert transaction.description == "TRANSFER"
        assert transaction.debit_amount == 500_000
        assert transaction.credit_amount == 0
        assert transaction.balance is None

    def test_credit_marker(self):
        chunk = Chunk("05/01 SETORAN CR 750.000,00 1.750.000,00", "05", "01")
        transaction = extract_transaction(chunk, 2024)

        assert transaction.credit_amount == 750_000
        assert transaction.debit_amount == 0
        assert transaction.balance == 1_750_000

    def test_marker_must_stand_alone(self):
        chunk = Chunk("05/01 CREDIT CARD 750.000,00", "05", "01")
        transaction = extract_transaction(chunk, 2024)

        assert transaction.debit_amount == 750_000

    def test_middle_amounts_are_discarded(self):
        chunk = Chunk("05/01 TRANSFER 500.000,00 6.500,00 1.493.500,00", "05", "01")
        transaction = extract_transaction(chunk, 2024)

        assert transaction.debit_amount == 500_000
        assert transaction.balance == 1_493_500

    def test_two_digit_tokens_are_not_amounts(self):
        chunk = Chunk("05/01 KIRIM KE 12 TOKO 100.000,00", "05", "01")
        transaction = extract_transaction(chunk, 2024)

        assert transaction.debit_amount == 100_000
        assert transaction.description == "KIRIM KE"

    def test_rejected_amounts_still_end_description(self):
        chunk = Chunk("05/01 BIAYA ADM 0,50 100.000,00", "05", "01")
        transaction = extract_transaction(chunk, 2024)

        assert transaction.debit_amount == 100_000
        assert transaction.description == "BIAYA ADM"

    def test_out_of_range_amounts_are_dropped(self):
        assert extract_transaction(Chunk("05/01 BUNGA 0,50", "05", "01"), 2024) is None
        assert extract_transaction(Chunk("05/01 X 100.000.000.000,00", "05", "01"), 2024) is None

    def test_chunk_without_amount_is_dropped(self):
        assert extract_transaction(Chunk("05/01 TRANSFER", "05", "01"), 2024) is None

    def test_impossible_calendar_date_is_dropped(self):
        assert extract_transaction(Chunk("31/02 TRANSFER 100,00", "31", "02"), 2024) is None

    def test_short_description_placeholder(self):
        transaction = extract_transaction(Chunk("05/01 AB 100,00", "05", "01"), 2024)

        assert transaction.description == "Transaction"

    def test_description_is_cleaned_and_truncated(self):
        text = "05/01 TOKO*ABC#" + "X" * 600 + " 100,00"
        transaction = extract_transaction(Chunk(text, "05", "01"), 2024)

        assert transaction.description.startswith("TOKO ABC X")
        assert len(transaction.description) == 500


class TestParseFields:

    def test_period_and_balances(self):
        text = "periode : januari 2024 SALDO AWAL : 1.000,00 SALDO AKHIR 2.500,50"
        period, balances, transactions = parse_fields(text, segment(text))

        assert period.month_name == "januari"
        assert period.month == 1
        assert period.year == 2024
        assert balances.opening == 1000.0
        assert balances.closing == 2500.5
        assert transactions == []

    def test_period_end_date(self):
        text = "PERIODE FEBRUARI 2024"
        period, _, _ = parse_fields(text, [])

        assert period.start_date == date(2024, 2, 1)
        assert period.end_date == date(2024, 2, 29)
        assert period.label == "FEBRUARI 2024"

    def test_missing_period_falls_back_to_current_year(self):
        text = "05/03 TRANSFER 100,00"
        today = date(2026, 10, 19)
        period, balances, transactions = parse_fields(text, segment(text), today=today)

        assert period is None
        assert balances.opening == 0
        assert balances.closing == 0
        assert transactions[0].transaction_date == date(2026, 3, 5)

        statement = aggregate(transactions, period, balances, today=today)
        assert statement.period == ""
        assert statement.start_date == date(2026, 1, 1)
        assert statement.end_date == date(2026, 12, 31)

    def test_period_year_is_reused_for_other_months(self):
        text = "PERIODE DESEMBER 2023 05/01 TRANSFER 100,00"
        period, _, transactions = parse_fields(text, segment(text))

        assert period.month == 12
        assert transactions[0].transaction_date == date(2023, 1, 5)

    def test_custom_layout(self):
        layout = get_layout().model_copy(update={"transactions": get_layout().transactions.model_copy(
            update={"credit_marker": "KR"})})
        chunk = Chunk("05/01 SETORAN KR 100,00", "05", "01")

        assert extract_transaction(chunk, 2024, layout).credit_amount == 100
        assert extract_transaction(chunk, 2024).debit_amount == 100


class TestAggregate:

    def test_totals(self):
        text = "PERIODE MARET 2024 01/03 A CR 100,00 02/03 B 40,00 03/03 C 60,00"
        period, balances, transactions = parse_fields(text, segment(text))
        statement = aggregate(transactions, period, balances)

        assert statement.total_credits == 100
        assert statement.total_debits == 100
        assert [t.description for t in statement.transactions] == ["A CR", "Transaction", "Transaction"]

    def test_empty(self):
        statement = aggregate([], None, parse_fields("", [])[1], today=date(2025, 6, 1))

        assert statement.transactions == []
        assert statement.total_debits == 0
        assert statement.total_credits == 0
