"""
FastAPI backend service for BCA statement uploads.
"""
from fastapi import Depends, FastAPI, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from functools import lru_cache
import logging
import time
from typing import Optional

from bca_parser import StatementParser, detect_template
from bca_parser.core.detectors import list_layouts

from .services import (
    AccountDirectory, Authenticator, DocumentStorage, InMemoryAccountDirectory,
    InMemoryStatementRepository, InMemoryStorage, StatementLine, StatementRepository,
    TokenAuthenticator, UploadError, UploadRecord,
)
from .settings import get_settings

settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.version)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=settings.cors_headers,
)

# Configure logging
logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)


@lru_cache
def get_authenticator() -> Authenticator:
    return TokenAuthenticator(get_settings().api_tokens)


@lru_cache
def get_account_directory() -> AccountDirectory:
    return InMemoryAccountDirectory()


@lru_cache
def get_storage() -> DocumentStorage:
    current = get_settings()
    return InMemoryStorage(current.storage_bucket, current.public_base_url)


@lru_cache
def get_repository() -> StatementRepository:
    return InMemoryStatementRepository()


def _millis() -> int:
    return int(time.time() * 1000)


@app.exception_handler(UploadError)
async def handle_upload_error(request: Request, exc: UploadError) -> JSONResponse:
    """Report upload failures as {"error": message}."""
    logger.error(f"Upload failed on {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "BillBuddy BCA Statement Parser API", "status": "healthy"}


@app.post("/statements/upload")
async def upload_statement(
    file: Optional[UploadFile] = File(None),
    bank_account_id: Optional[str] = Form(None, alias="bankAccountId"),
    authorization: Optional[str] = Header(None),
    authenticator: Authenticator = Depends(get_authenticator),
    accounts: AccountDirectory = Depends(get_account_directory),
    storage: DocumentStorage = Depends(get_storage),
    repository: StatementRepository = Depends(get_repository),
):
    """
    Parse a statement, store it and record its transactions.

    Returns:
        {success, uploadId, transactionCount, period, openingBalance, closingBalance}
    """
    try:
        user_id = authenticator.authenticate(authorization)

        if not file or not bank_account_id:
            raise UploadError("Missing file or bankAccountId")

        account = accounts.get_account(bank_account_id)
        if account is None:
            raise UploadError("Bank account not found")

        content = await file.read()
        logger.info(f"Processing statement {file.filename} for account {bank_account_id}")

        parser = StatementParser(settings.default_template)
        result = await run_in_threadpool(parser.parse, content, account.currency)
        statement = result.statement

        if not statement.transactions:
            try:
                storage.upload(f"debug/{_millis()}_extract.txt", result.text.encode("utf-8"))
            except UploadError as e:
                logger.warning(f"Could not save debug text: {e.message}")
            raise UploadError(
                f"No transactions parsed. Text length: {len(result.text)}. "
                f"Debug file saved. Please contact support."
            )

        file_name = f"{bank_account_id}/{_millis()}_{file.filename}"
        try:
            storage.upload(file_name, content)
        except UploadError as e:
            raise UploadError(f"Failed to upload PDF: {e.message}")

        try:
            upload_id = repository.create_upload(UploadRecord(
                bank_account_id=bank_account_id,
                statement_period=statement.period,
                statement_start_date=statement.start_date,
                statement_end_date=statement.end_date,
                currency=account.currency,
                opening_balance=statement.opening_balance,
                closing_balance=statement.closing_balance,
                total_credits=statement.total_credits,
                total_debits=statement.total_debits,
                transaction_count=len(statement.transactions),
                file_url=storage.public_url(file_name),
                uploaded_by=user_id,
            ))
        except UploadError as e:
            raise UploadError(f"Failed to create upload record: {e.message}")

        lines = [
            StatementLine(
                upload_id=upload_id,
                bank_account_id=bank_account_id,
                transaction_date=txn.transaction_date,
                description=txn.description,
                branch_code=txn.branch_code,
                debit_amount=txn.debit_amount,
                credit_amount=txn.credit_amount,
                running_balance=txn.balance,
                currency=account.currency,
                created_by=user_id,
            )
            for txn in statement.transactions
        ]
        try:
            repository.insert_lines(lines)
        except UploadError as e:
            raise UploadError(f"Failed to insert transactions: {e.message}")

        logger.info(f"Stored upload {upload_id}: {len(lines)} transactions")

        return JSONResponse(content={
            "success": True,
            "uploadId": upload_id,
            "transactionCount": len(lines),
            "period": statement.period,
            "openingBalance": statement.opening_balance,
            "closingBalance": statement.closing_balance,
        })

    except UploadError:
        raise
    except Exception as e:
        logger.exception("Unexpected error while uploading statement")
        raise UploadError(str(e) or "Failed to parse PDF")


@app.post("/parse")
async def parse_pdf(file: UploadFile = File(...), currency: str = "IDR",
                    template: str = settings.default_template, include_text: bool = False):
    """
    Parse a PDF file and return structured data.

    Args:
        file: Uploaded PDF file
        currency: Account currency, echoed back
        template: Template ID to use, or "auto" to detect it
        include_text: Include the extracted text in the response

    Returns:
        Parsed statement data as JSON
    """
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    content = await file.read()
    logger.info(f"Processing PDF: {file.filename}")

    if template == "auto":
        detected_template = detect_template(content)
        if not detected_template:
            raise HTTPException(status_code=400, detail="Could not detect template for this PDF")
        template = detected_template
        logger.info(f"Detected template: {template}")

    try:
        parser = StatementParser(template)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await run_in_threadpool(parser.parse, content, currency)
    except Exception as e:
        logger.error(f"Error parsing PDF: {e}")
        raise HTTPException(status_code=500, detail=f"Error parsing PDF: {str(e)}")

    data = result.model_dump(mode="json", exclude=None if include_text else {"text"})
    logger.info(f"Successfully parsed PDF: {result.transaction_count} transactions found")

    return JSONResponse(content={
        "success": True,
        "data": data,
        "template_used": template,
        "summary": {
            "transactions_count": result.transaction_count,
            "period": result.statement.period,
            "total_debits": result.statement.total_debits,
            "total_credits": result.statement.total_credits,
        }
    })


@app.post("/detect-template")
async def detect_pdf_template(file: UploadFile = File(...)):
    """
    Detect which template matches a PDF file.

    Args:
        file: Uploaded PDF file

    Returns:
        Detected template ID
    """
    if not file.filename or not file.filename.lower().endswith('.pdf'):
        raise HTTPException(status_code=400, detail="File must be a PDF")

    template = detect_template(await file.read())
    if not template:
        raise HTTPException(status_code=400, detail="No matching template found")

    return JSONResponse(content={
        "success": True,
        "template": template
    })


@app.get("/templates")
async def list_templates():
    """List all available templates."""
    return JSONResponse(content={
        "success": True,
        "templates": [
            {
                "id": layout.template_id,
                "bank": layout.bank,
                "description": layout.description,
            }
            for layout in list_layouts()
        ]
    })


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
