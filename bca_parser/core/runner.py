"""
End-to-end parsing orchestration.

The pipeline is a chain of pure stages:

    extract_text -> segment -> parse_fields -> aggregate

Nothing in it raises for a statement it cannot read; a document without
recognizable rows simply yields an empty transaction list.
"""
from datetime import date
from pathlib import Path
from typing import List, Optional, Tuple, Union
import logging

from .loader import DocumentLoader, PdfPlumberFallback, extract_text
from .detectors import DEFAULT_TEMPLATE, get_layout
from .anchors import extract_balances, extract_period
from .tables import Chunk, extract_transactions, segment
from .normalize import normalize_text
from ..models.schema import (
    BalanceSnapshot, LayoutTemplate, ParsedStatement, ParseResult, StatementPeriod, Transaction
)

logger = logging.getLogger(__name__)


def resolve_year(period: Optional[StatementPeriod], today: date = None) -> int:
    """Statement year, or the current year when no period was printed."""
    if period is not None:
        return period.year
    return (today or date.today()).year


def parse_fields(text: str, chunks: List[Chunk], layout: LayoutTemplate = None,
                 today: date = None) -> Tuple[Optional[StatementPeriod], BalanceSnapshot, List[Transaction]]:
    """
    Read the period, balances and transactions of a statement.

    Transaction dates take the year of the statement period. Without a
    period the current calendar year is used.

    Args:
        text: Extracted statement text
        chunks: Chunks produced by segment()
        layout: Layout template, the default BCA layout when omitted
        today: Reference date for the year fallback

    Returns:
        (period, balances, transactions)
    """
    layout = layout or get_layout()
    text = normalize_text(text)

    period = extract_period(text, layout)
    balances = extract_balances(text, layout)
    transactions = extract_transactions(chunks, resolve_year(period, today), layout)

    return period, balances, transactions


def aggregate(transactions: List[Transaction], period: Optional[StatementPeriod],
              balances: BalanceSnapshot, today: date = None) -> ParsedStatement:
    """
    Assemble the final statement record.

    Without a period the statement spans the whole fallback year.

    Args:
        transactions: Transactions in document order
        period: Statement period, if printed
        balances: Opening and closing balances
        today: Reference date for the year fallback

    Returns:
        ParsedStatement
    """
    if period is not None:
        label, start_date, end_date = period.label, period.start_date, period.end_date
    else:
        year = resolve_year(None, today)
        label, start_date, end_date = '', date(year, 1, 1), date(year, 12, 31)

    return ParsedStatement(
        period=label,
        start_date=start_date,
        end_date=end_date,
        opening_balance=balances.opening,
        closing_balance=balances.closing,
        total_debits=sum(t.debit_amount for t in transactions),
        total_credits=sum(t.credit_amount for t in transactions),
        transactions=transactions,
    )


class StatementParser:
    """Main parser class that runs the pipeline for one layout."""

    def __init__(self, template_id: str = DEFAULT_TEMPLATE,
                 fallback_pdfplumber: bool = False, verbose: bool = False):
        self.template_id = template_id
        self.fallback_pdfplumber = fallback_pdfplumber
        self.verbose = verbose
        self.layout = get_layout(template_id)

        if verbose:
            logging.basicConfig(level=logging.DEBUG)

    def parse(self, source: Union[bytes, Path, str], currency: str = "IDR",
              today: date = None) -> ParseResult:
        """
        Parse a statement document.

        Args:
            source: Document bytes or path
            currency: Account currency, echoed back untouched
            today: Reference date for the year fallback

        Returns:
            ParseResult
        """
        data = DocumentLoader(source).load()
        text = extract_text(data)

        if not text and self.fallback_pdfplumber:
            logger.info("No text objects found, trying pdfplumber fallback")
            try:
                text = PdfPlumberFallback.extract_text(data)
            except Exception as e:
                logger.warning(f"pdfplumber fallback failed: {e}")

        return self.parse_text(text, currency, today)

    def parse_text(self, text: str, currency: str = "IDR", today: date = None) -> ParseResult:
        """
        Parse already extracted statement text.

        Args:
            text: Statement text
            currency: Account currency, echoed back untouched
            today: Reference date for the year fallback

        Returns:
            ParseResult
        """
        # One reference date for the whole run
        today = today or date.today()

        chunks = segment(text, self.layout)
        period, balances, transactions = parse_fields(text, chunks, self.layout, today)
        statement = aggregate(transactions, period, balances, today)

        logger.debug(
            f"Text length {len(text)}, {len(chunks)} chunks, "
            f"{len(transactions)} transactions, "
            f"DR {statement.total_debits}, CR {statement.total_credits}"
        )

        return ParseResult(
            statement=statement,
            currency=currency,
            template_id=self.template_id,
            text=text,
            chunk_count=len(chunks),
        )


def parse_statement(source: Union[bytes, Path, str], currency: str = "IDR",
                    template_id: str = DEFAULT_TEMPLATE,
                    fallback_pdfplumber: bool = False, verbose: bool = False) -> ParseResult:
    """
    Parse a BCA account statement.

    Args:
        source: Document bytes or path
        currency: Account currency, echoed back untouched
        template_id: Template ID to use
        fallback_pdfplumber: Enable pdfplumber fallback
        verbose: Enable verbose logging

    Returns:
        ParseResult
    """
    parser = StatementParser(template_id, fallback_pdfplumber, verbose)
    return parser.parse(source, currency)


def parse_text(text: str, currency: str = "IDR",
               template_id: str = DEFAULT_TEMPLATE) -> ParseResult:
    """Parse statement text that was extracted elsewhere."""
    return StatementParser(template_id).parse_text(text, currency)
