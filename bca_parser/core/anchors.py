"""
Anchor finding and keyword field extraction.
"""
import re
from typing import Dict, List, Optional
from rapidfuzz import fuzz
import logging

from .normalize import normalize_amount
from ..models.schema import BalanceSnapshot, LayoutTemplate, StatementPeriod

logger = logging.getLogger(__name__)

_AMOUNT = r'([\d,.]+)'


class AnchorMatch:
    """Represents a found anchor with position and confidence."""
    def __init__(self, target: str, confidence: float, position: int):
        self.target = target
        self.confidence = confidence
        self.position = position

    def __repr__(self):
        return f"AnchorMatch('{self.target}', confidence={self.confidence:.1f}, position={self.position})"


def find_anchor(text: str, target: str, fuzzy_threshold: float = 85) -> Optional[AnchorMatch]:
    """
    Find an anchor in text using fuzzy string matching.

    Args:
        text: Text to search through
        target: Target text to find
        fuzzy_threshold: Minimum confidence score (0-100)

    Returns:
        AnchorMatch if found, None otherwise
    """
    if not text or not target:
        return None

    # Try exact match first
    position = text.upper().find(target.upper())
    if position >= 0:
        return AnchorMatch(target, 100.0, position)

    # Best matching substring of the text
    alignment = fuzz.partial_ratio_alignment(
        target.lower(), text.lower(), score_cutoff=fuzzy_threshold
    )
    if alignment is None:
        return None

    return AnchorMatch(target, alignment.score, alignment.dest_start)


def find_anchors_in_text(text: str, targets: List[str],
                         fuzzy_threshold: float = 85) -> Dict[str, AnchorMatch]:
    """
    Find multiple anchors in text.

    Args:
        text: Text to search
        targets: List of target strings to find
        fuzzy_threshold: Minimum confidence score

    Returns:
        Dictionary mapping target strings to AnchorMatch objects
    """
    results = {}

    for target in targets:
        match = find_anchor(text, target, fuzzy_threshold)
        if match:
            results[target] = match
            logger.debug(f"Found anchor '{target}' with confidence {match.confidence:.1f}")
        else:
            logger.debug(f"Anchor '{target}' not found")

    return results


def keyword_regex(keyword: str) -> str:
    """Turn a keyword phrase into a regex tolerant of any whitespace."""
    return r'\s+'.join(re.escape(word) for word in keyword.split())


def extract_period(text: str, layout: LayoutTemplate) -> Optional[StatementPeriod]:
    """
    Find the statement period, e.g. "PERIODE : JANUARI 2024".

    Args:
        text: Statement text
        layout: Layout template holding the keyword and month names

    Returns:
        StatementPeriod, or None when the period is not printed
    """
    months = '|'.join(re.escape(name) for name in layout.months)
    pattern = re.compile(
        keyword_regex(layout.keywords.period_keyword) + r'[:\s]+(' + months + r')\s+(\d{4})',
        re.IGNORECASE,
    )

    match = pattern.search(text)
    if not match:
        return None

    month_name, year = match.groups()
    return StatementPeriod(
        month_name=month_name,
        month=layout.month_number(month_name),
        year=int(year),
    )


def extract_keyword_amount(text: str, keyword: str) -> float:
    """Normalize the amount that follows a keyword, 0.0 when absent."""
    pattern = re.compile(keyword_regex(keyword) + r'[:\s]*' + _AMOUNT, re.IGNORECASE)
    match = pattern.search(text)
    if not match:
        return 0.0
    return normalize_amount(match.group(1))


def extract_balances(text: str, layout: LayoutTemplate) -> BalanceSnapshot:
    """
    Find the opening ("SALDO AWAL") and closing ("SALDO AKHIR") balances.

    Args:
        text: Statement text
        layout: Layout template holding the keywords

    Returns:
        BalanceSnapshot, with zero for any balance not printed
    """
    return BalanceSnapshot(
        opening=extract_keyword_amount(text, layout.keywords.opening_balance_keyword),
        closing=extract_keyword_amount(text, layout.keywords.closing_balance_keyword),
    )
