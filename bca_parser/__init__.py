"""
BCA Account Statement Parser

A best-effort parser for BCA (Bank Central Asia) account statements. Text is
scanned straight out of the document's text objects and cut into one chunk
per dated row; amounts written with either Indonesian or US separators are
normalized on the way.
"""

__version__ = "1.0.0"
__author__ = "BillBuddy Team"

from .core.runner import parse_statement, parse_text, StatementParser
from .core.detectors import detect_template, get_layout
from .models.schema import (
    StatementPeriod, BalanceSnapshot, Transaction, ParsedStatement, ParseResult, LayoutTemplate
)

__all__ = [
    "parse_statement",
    "parse_text",
    "StatementParser",
    "detect_template",
    "get_layout",
    "StatementPeriod",
    "BalanceSnapshot",
    "Transaction",
    "ParsedStatement",
    "ParseResult",
    "LayoutTemplate"
]
