"""
Data normalization and cleaning functions.
"""
import re
from datetime import date
from typing import Optional

_NON_NUMERIC = re.compile(r'[^0-9,.]')
_WHITESPACE = re.compile(r'\s+')
_DESCRIPTION_JUNK = re.compile(r'[^A-Za-z0-9\s\-/.]')


def normalize_amount(value: str) -> float:
    """
    Normalize an amount written with either dot or comma grouping.

    Statements mix the Indonesian convention (1.234.567,89) with the
    US one (1,234,567.89). The separators are disambiguated by counting
    them, in this order:

    1. several dots: dots group thousands, the comma is the decimal point
    2. several commas: commas group thousands, the dot is the decimal point
    3. one dot and one comma: dot groups thousands, comma is decimal
    4. a lone comma: decimal comma
    5. anything else is already a plain number

    Args:
        value: Raw amount string

    Returns:
        Float value, or 0.0 when nothing parseable is left
    """
    if not value:
        return 0.0

    cleaned = _NON_NUMERIC.sub('', value.strip())
    dots = cleaned.count('.')
    commas = cleaned.count(',')

    if dots > 1:
        cleaned = cleaned.replace('.', '').replace(',', '.', 1)
    elif commas > 1:
        cleaned = cleaned.replace(',', '')
    elif dots == 1 and commas == 1:
        cleaned = cleaned.replace('.', '').replace(',', '.')
    elif commas == 1 and dots == 0:
        cleaned = cleaned.replace(',', '.')

    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def normalize_text(value: str) -> str:
    """
    Collapse every whitespace run into a single space.

    Args:
        value: Raw text string

    Returns:
        Text with single spaces only
    """
    if not value:
        return ""

    return _WHITESPACE.sub(' ', value)


def clean_description(value: str, max_length: int = 500,
                      placeholder: str = "Transaction") -> str:
    """
    Clean a transaction description.

    Characters other than letters, digits, whitespace, hyphen, slash and
    dot are blanked out.

    Args:
        value: Raw description text
        max_length: Maximum length kept
        placeholder: Returned when fewer than 3 characters survive

    Returns:
        Cleaned description
    """
    cleaned = _DESCRIPTION_JUNK.sub(' ', value or '').strip()
    if len(cleaned) < 3:
        cleaned = placeholder
    return cleaned[:max_length]


def normalize_date(day: str, month: str, year: int) -> Optional[date]:
    """
    Build a calendar date from a dd/mm stamp and a year.

    Args:
        day: Two-digit day
        month: Two-digit month
        year: Statement year

    Returns:
        Date object, or None when the combination does not exist (e.g. 31/02)
    """
    try:
        return date(year, int(month), int(day))
    except ValueError:
        return None
