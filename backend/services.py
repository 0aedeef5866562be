"""
Collaborators of the upload endpoint.

Each collaborator is an abstract base class with an in-memory
implementation. A deployment overrides the FastAPI dependencies in
backend.main to plug in real authentication, storage and persistence.
"""
import threading
import uuid
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, List, Optional

from pydantic import BaseModel


class UploadError(Exception):
    """Raised for any failure while handling a statement upload."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class BankAccount(BaseModel):
    """Account metadata needed to store a statement."""
    id: str
    currency: str = "IDR"
    account_number: str = ""
    bank_name: str = "BCA"


class UploadRecord(BaseModel):
    """One uploaded statement."""
    bank_account_id: str
    statement_period: str
    statement_start_date: date
    statement_end_date: date
    currency: str
    opening_balance: float
    closing_balance: float
    total_credits: float
    total_debits: float
    transaction_count: int
    file_url: str
    uploaded_by: str
    status: str = "completed"


class StatementLine(BaseModel):
    """One transaction row linked to an upload."""
    upload_id: str
    bank_account_id: str
    transaction_date: date
    description: str
    reference: str = ""
    branch_code: str = ""
    debit_amount: float
    credit_amount: float
    running_balance: Optional[float] = None
    currency: str
    reconciliation_status: str = "unmatched"
    created_by: str


class Authenticator(ABC):
    """Resolves the caller from the Authorization header."""

    @abstractmethod
    def authenticate(self, authorization: Optional[str]) -> str:
        """
        Return the caller's user id.

        Raises:
            UploadError: If the header is missing or not accepted
        """


class AccountDirectory(ABC):
    """Looks up bank accounts."""

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[BankAccount]:
        """Return the account, or None when unknown."""


class DocumentStorage(ABC):
    """Durable storage for original documents and debug artifacts."""

    @abstractmethod
    def upload(self, path: str, content: bytes) -> None:
        """Store content under path."""

    @abstractmethod
    def public_url(self, path: str) -> str:
        """Return the retrieval URL of a stored path."""


class StatementRepository(ABC):
    """Persists uploads and their transaction lines."""

    @abstractmethod
    def create_upload(self, record: UploadRecord) -> str:
        """Insert an upload record and return its id."""

    @abstractmethod
    def insert_lines(self, lines: List[StatementLine]) -> None:
        """Insert the transaction lines of an upload."""


class TokenAuthenticator(Authenticator):
    """Accepts "Bearer <token>" headers for a fixed set of tokens."""

    def __init__(self, tokens: Dict[str, str]):
        self.tokens = dict(tokens)

    def authenticate(self, authorization: Optional[str]) -> str:
        if not authorization:
            raise UploadError("No authorization header")

        scheme, _, token = authorization.partition(" ")
        user_id = self.tokens.get(token.strip()) if scheme.lower() == "bearer" else None
        if not user_id:
            raise UploadError("Unauthorized")
        return user_id


class InMemoryAccountDirectory(AccountDirectory):
    """Account directory backed by a dict."""

    def __init__(self, accounts: List[BankAccount] = None):
        self.accounts = {account.id: account for account in accounts or []}

    def add(self, account: BankAccount) -> None:
        self.accounts[account.id] = account

    def get_account(self, account_id: str) -> Optional[BankAccount]:
        return self.accounts.get(account_id)


class InMemoryStorage(DocumentStorage):
    """Document storage backed by a dict."""

    def __init__(self, bucket: str, base_url: str):
        self.bucket = bucket
        self.base_url = base_url.rstrip("/")
        self.objects: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def upload(self, path: str, content: bytes) -> None:
        with self._lock:
            if path in self.objects:
                raise UploadError(f"The resource already exists: {path}")
            self.objects[path] = content

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/{self.bucket}/{path}"


class InMemoryStatementRepository(StatementRepository):
    """Statement repository backed by dicts."""

    def __init__(self):
        self.uploads: Dict[str, UploadRecord] = {}
        self.lines: List[StatementLine] = []
        self._lock = threading.Lock()

    def create_upload(self, record: UploadRecord) -> str:
        upload_id = str(uuid.uuid4())
        with self._lock:
            self.uploads[upload_id] = record
        return upload_id

    def insert_lines(self, lines: List[StatementLine]) -> None:
        with self._lock:
            self.lines.extend(lines)
