"""
Pydantic models for BCA account statement data.
"""
import calendar
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PageMatch(BaseModel):
    """Anchors a document must contain to match a template."""
    must_contain: List[str] = Field(default_factory=list)
    fuzzy_threshold: float = 85


class FieldKeywords(BaseModel):
    """Keywords that precede the statement-level fields."""
    period_keyword: str = "PERIODE"
    opening_balance_keyword: str = "SALDO AWAL"
    closing_balance_keyword: str = "SALDO AKHIR"


class TransactionRules(BaseModel):
    """Rules applied to every transaction chunk."""
    header_keywords: List[str] = Field(default_factory=list)
    credit_marker: str = "CR"
    min_amount: float = 1
    max_amount: float = 100_000_000_000
    description_max_length: int = 500
    description_placeholder: str = "Transaction"


class LayoutTemplate(BaseModel):
    """A statement layout loaded from a YAML template."""
    model_config = ConfigDict(frozen=True)

    template_id: str
    bank: str = "Bank Central Asia"
    description: str = ""
    page_match: PageMatch = Field(default_factory=PageMatch)
    keywords: FieldKeywords = Field(default_factory=FieldKeywords)
    months: Dict[str, int]
    transactions: TransactionRules = Field(default_factory=TransactionRules)

    def month_number(self, name: str) -> Optional[int]:
        """Look up a localized month name, ignoring case."""
        lookup = {key.upper(): number for key, number in self.months.items()}
        return lookup.get(name.upper())


class StatementPeriod(BaseModel):
    """Calendar month covered by a statement."""
    model_config = ConfigDict(frozen=True)

    month_name: str
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=1000, le=9999)

    @property
    def label(self) -> str:
        return f"{self.month_name} {self.year}"

    @property
    def start_date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end_date(self) -> date:
        last_day = calendar.monthrange(self.year, self.month)[1]
        return date(self.year, self.month, last_day)


class BalanceSnapshot(BaseModel):
    """Opening and closing balances printed on the statement."""
    model_config = ConfigDict(frozen=True)

    opening: float = 0.0
    closing: float = 0.0


class Transaction(BaseModel):
    """Individual transaction record."""
    model_config = ConfigDict(frozen=True)

    transaction_date: date
    description: str = Field(max_length=500)
    branch_code: str = ""
    debit_amount: float = Field(default=0.0, ge=0)
    credit_amount: float = Field(default=0.0, ge=0)
    balance: Optional[float] = None

    @model_validator(mode="after")
    def validate_single_side(self):
        """Exactly one of debit and credit carries the amount."""
        if (self.debit_amount > 0) == (self.credit_amount > 0):
            raise ValueError(
                f"Transaction must be either a debit or a credit: "
                f"debit={self.debit_amount}, credit={self.credit_amount}"
            )
        return self

    @property
    def is_credit(self) -> bool:
        return self.credit_amount > 0

    @property
    def amount(self) -> float:
        return self.credit_amount if self.is_credit else self.debit_amount


class ParsedStatement(BaseModel):
    """Complete statement data structure."""
    model_config = ConfigDict(frozen=True)

    period: str = ""
    start_date: date
    end_date: date
    opening_balance: float = 0.0
    closing_balance: float = 0.0
    total_debits: float = 0.0
    total_credits: float = 0.0
    transactions: List[Transaction] = Field(default_factory=list)


class ParseResult(BaseModel):
    """A parsed statement together with the diagnostics of the run."""
    model_config = ConfigDict(frozen=True)

    statement: ParsedStatement
    currency: str
    template_id: str
    text: str = ""
    chunk_count: int = 0

    @property
    def transaction_count(self) -> int:
        return len(self.statement.transactions)
