"""
Transaction table segmentation and row extraction.

The statement's transaction table comes out of the text extractor as one
long line. Every row starts with a dd/mm stamp, so the table is cut into
chunks at each stamp and every chunk is read as one transaction.
"""
import re
from typing import Iterable, List, Optional, Tuple

from .detectors import get_layout
from .normalize import clean_description, normalize_amount, normalize_date, normalize_text
from ..models.schema import LayoutTemplate, Transaction

_ROW_ANCHOR = re.compile(r'(?=\d{2}/\d{2}\s)')
_DATE_STAMP = re.compile(r'^(\d{2})/(\d{2})')
_AMOUNT_TOKEN = re.compile(r'[\d,.]+')
_TWO_DIGITS = re.compile(r'^\d{2}$')

STAMP_LENGTH = 5


class Chunk:
    """A slice of statement text starting at a dd/mm stamp."""
    def __init__(self, text: str, day: str, month: str):
        self.text = text
        self.day = day
        self.month = month

    def __eq__(self, other):
        if not isinstance(other, Chunk):
            return NotImplemented
        return (self.text, self.day, self.month) == (other.text, other.day, other.month)

    def __repr__(self):
        return f"Chunk('{self.day}/{self.month}', text='{self.text[:40]}')"


def keyword_pattern(keywords: Iterable[str]) -> Optional[re.Pattern]:
    """Compile a case-insensitive alternation of literal keywords."""
    escaped = [re.escape(k) for k in keywords if k]
    if not escaped:
        return None
    return re.compile('|'.join(escaped), re.IGNORECASE)


def segment(text: str, layout: LayoutTemplate = None) -> List[Chunk]:
    """
    Split statement text into one chunk per candidate transaction.

    Whitespace is collapsed first. A chunk starts at every "dd/mm " stamp
    and runs up to the next one. Chunks with an impossible day or month,
    and chunks carrying a column header keyword, are dropped.

    Args:
        text: Extracted statement text
        layout: Layout template, the default BCA layout when omitted

    Returns:
        Chunks in document order
    """
    layout = layout or get_layout()
    headers = keyword_pattern(layout.transactions.header_keywords)

    chunks = []
    for piece in _ROW_ANCHOR.split(normalize_text(text)):
        stamp = _DATE_STAMP.match(piece)
        if not stamp:
            continue

        day, month = stamp.groups()
        if not (1 <= int(day) <= 31 and 1 <= int(month) <= 12):
            continue

        if headers and headers.search(piece):
            continue

        chunks.append(Chunk(piece, day, month))

    return chunks


def find_amounts(chunk: Chunk, layout: LayoutTemplate) -> List[Tuple[int, float]]:
    """
    Find the plausible amounts of a chunk.

    Bare two-digit tokens are the halves of date stamps and never count.

    Returns:
        (position, value) pairs in text order
    """
    rules = layout.transactions
    amounts = []
    for match in _AMOUNT_TOKEN.finditer(chunk.text):
        token = match.group()
        if _TWO_DIGITS.match(token):
            continue
        value = normalize_amount(token)
        if rules.min_amount <= value < rules.max_amount:
            amounts.append((match.start(), value))
    return amounts


def extract_description(chunk: Chunk, layout: LayoutTemplate) -> str:
    """
    Take the text between the date stamp and the first amount-shaped token.

    Tokens that find_amounts() rejects still end the description, so small
    fees and two-digit numbers never leak into it.
    """
    rest = chunk.text[STAMP_LENGTH:]
    start = STAMP_LENGTH + len(rest) - len(rest.lstrip())
    end = len(chunk.text)

    for match in _AMOUNT_TOKEN.finditer(chunk.text):
        if match.start() > start:
            end = match.start()
            break

    rules = layout.transactions
    return clean_description(
        chunk.text[start:end],
        max_length=rules.description_max_length,
        placeholder=rules.description_placeholder,
    )


def extract_transaction(chunk: Chunk, year: int,
                        layout: LayoutTemplate = None) -> Optional[Transaction]:
    """
    Read one transaction out of a chunk.

    The first amount is the transaction amount. When there are two or more,
    the last one is the running balance and anything in between is ignored.

    Args:
        chunk: Chunk produced by segment()
        year: Statement year used to complete the dd/mm stamp
        layout: Layout template, the default BCA layout when omitted

    Returns:
        Transaction, or None when the chunk holds no usable row
    """
    layout = layout or get_layout()

    transaction_date = normalize_date(chunk.day, chunk.month, year)
    if transaction_date is None:
        return None

    amounts = find_amounts(chunk, layout)
    if not amounts:
        return None

    amount = amounts[0][1]
    balance = amounts[-1][1] if len(amounts) > 1 else None
    is_credit = f" {layout.transactions.credit_marker} " in chunk.text

    return Transaction(
        transaction_date=transaction_date,
        description=extract_description(chunk, layout),
        branch_code='',
        debit_amount=0.0 if is_credit else amount,
        credit_amount=amount if is_credit else 0.0,
        balance=balance,
    )


def extract_transactions(chunks: List[Chunk], year: int,
                         layout: LayoutTemplate = None) -> List[Transaction]:
    """Extract transactions from chunks, keeping document order."""
    layout = layout or get_layout()
    transactions = []
    for chunk in chunks:
        transaction = extract_transaction(chunk, year, layout)
        if transaction is not None:
            transactions.append(transaction)
    return transactions
